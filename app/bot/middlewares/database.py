# app/bot/middlewares/database.py
"""
Middleware для подачи БД сессии в каждый обработчик.

Middleware выполняется ДО обработчика для всех сообщений.

Логика:
1. Создаем сессию
2. Передаем её обработчику (аргумент session)
3. Если обработчик упал - откатываем транзакцию
4. После обработчика закрываем сессию
"""

from typing import Any, Awaitable, Callable, Optional

from aiogram import BaseMiddleware
from aiogram.types import TelegramObject
from sqlalchemy.ext.asyncio import async_sessionmaker

from infrastructure.database.base import async_session_maker
from infrastructure.logger import logger


class DatabaseMiddleware(BaseMiddleware):
    """Middleware который подает AsyncSession в контекст."""

    def __init__(self, session_maker: Optional[async_sessionmaker] = None):
        self.session_maker = session_maker or async_session_maker

    async def __call__(
        self,
        handler: Callable[[TelegramObject, dict[str, Any]], Awaitable[Any]],
        event: TelegramObject,
        data: dict[str, Any]
    ) -> Any:
        async with self.session_maker() as session:
            data["session"] = session
            try:
                return await handler(event, data)
            except Exception as e:
                await session.rollback()
                logger.error("database_error", error=str(e))
                raise
