# app/bot/handlers/registration.py
"""
Обработчики бота уведомлений.

- /start  - приветствие и просьба прислать номер
- /help   - справка
- /status - привязан ли этот чат к сотруднику
- любой другой текст - попытка регистрации номера телефона

Одни и те же обработчики работают и в polling-режиме (python main.py bot),
и через webhook (POST /api/telegram/webhook).
"""

from aiogram import F, Router, types
from aiogram.filters import Command, CommandStart
from sqlalchemy.ext.asyncio import AsyncSession

from app.bot.services.registration import registration_reply, status_reply
from app.bot.utils.text import GENERIC_ERROR_TEXT, HELP_TEXT, welcome_text
from infrastructure.logger import logger


async def cmd_start(message: types.Message):
    first_name = message.from_user.first_name if message.from_user else None

    logger.info("bot_start_command", chat_id=message.chat.id, first_name=first_name)
    await message.answer(welcome_text(first_name))


async def cmd_help(message: types.Message):
    logger.info("bot_help_command", chat_id=message.chat.id)
    await message.answer(HELP_TEXT)


async def cmd_status(message: types.Message, session: AsyncSession):
    await message.answer(await status_reply(session, message.chat.id))


async def register_phone(message: types.Message, session: AsyncSession):
    """Всё, что не команда, считаем номером телефона."""
    try:
        reply = await registration_reply(session, message.chat.id, message.text)
    except Exception as e:
        logger.error("bot_registration_error", chat_id=message.chat.id, error=str(e))
        reply = GENERIC_ERROR_TEXT

    await message.answer(reply)


def create_router() -> Router:
    """Новый роутер на каждый Dispatcher: у роутера может быть только один родитель."""
    router = Router(name="registration")

    router.message.register(cmd_start, CommandStart())
    router.message.register(cmd_help, Command("help"))
    router.message.register(cmd_status, Command("status"))
    router.message.register(register_phone, F.text, ~F.text.startswith("/"))

    return router
