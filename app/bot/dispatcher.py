# app/bot/dispatcher.py
"""
Сборка бота и диспетчера aiogram.

Один и тот же Dispatcher обслуживает оба режима:
- long polling:  await dp.start_polling(bot)
- webhook:       await dp.feed_update(bot, update)
"""

from typing import Optional

from aiogram import Bot, Dispatcher
from aiogram.client.default import DefaultBotProperties
from sqlalchemy.ext.asyncio import async_sessionmaker

from app.bot.handlers import create_registration_router
from app.bot.middlewares import DatabaseMiddleware, LoggingMiddleware
from app.errors import TelegramNotConfigured


def create_bot(token: str) -> Bot:
    if not token:
        raise TelegramNotConfigured("TELEGRAM_BOT_TOKEN is not set")

    return Bot(
        token=token,
        default=DefaultBotProperties(parse_mode="HTML")
    )


def create_dispatcher(session_maker: Optional[async_sessionmaker] = None) -> Dispatcher:
    dp = Dispatcher()

    # Порядок важен: сначала логируем, потом открываем сессию
    dp.message.middleware(LoggingMiddleware())
    dp.message.middleware(DatabaseMiddleware(session_maker))

    dp.include_router(create_registration_router())
    return dp
