# infrastructure/__init__.py
"""Инфраструктура приложения: логи, БД, key-value хранилище, лента изменений."""

from .logger import logger, setup_logging
from .storage import KeyValueStorage, create_storage
from .database import engine, async_session_maker, init_db, close_db

__all__ = [
    "logger",
    "setup_logging",
    "KeyValueStorage",
    "create_storage",
    "engine",
    "async_session_maker",
    "init_db",
    "close_db",
]
