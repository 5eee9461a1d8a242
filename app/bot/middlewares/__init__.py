# app/bot/middlewares/__init__.py
"""
🔄 MIDDLEWARE (перехватчики)

Срабатывают для КАЖДОГО сообщения:
- LoggingMiddleware  - пишет входящие сообщения в лог
- DatabaseMiddleware - даёт обработчику сессию БД
"""

from .database import DatabaseMiddleware
from .logging import LoggingMiddleware

__all__ = [
    "LoggingMiddleware",
    "DatabaseMiddleware",
]
