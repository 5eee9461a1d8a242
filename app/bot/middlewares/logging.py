# app/bot/middlewares/logging.py
"""
Middleware для логирования всех входящих сообщений.
"""

from typing import Any, Awaitable, Callable

from aiogram import BaseMiddleware
from aiogram.types import Message, TelegramObject
import structlog

from app.bot.utils.text import truncate

logger = structlog.get_logger()


class LoggingMiddleware(BaseMiddleware):
    """Middleware который логирует все сообщения."""

    async def __call__(
        self,
        handler: Callable[[TelegramObject, dict[str, Any]], Awaitable[Any]],
        event: TelegramObject,
        data: dict[str, Any]
    ) -> Any:
        if isinstance(event, Message):
            logger.info(
                "message_received",
                chat_id=event.chat.id,
                first_name=event.from_user.first_name if event.from_user else None,
                text=truncate(event.text) if event.text else None
            )

        return await handler(event, data)
