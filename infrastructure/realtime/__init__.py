# infrastructure/realtime/__init__.py
"""📡 Лента изменений заказов (in-memory и PostgreSQL LISTEN/NOTIFY)."""

from config.settings import config

from .feed import (
    ChangeFeed,
    ChangePayload,
    ChangeType,
    InMemoryChangeFeed,
    RealtimeChannel,
    SubscriptionStatus,
)
from .postgres import PostgresChangeFeed


def create_change_feed(backend: str = None) -> ChangeFeed:
    """Создаёт ленту по настройке CHANGE_FEED."""
    backend = backend or config.change_feed

    if backend == "postgres":
        return PostgresChangeFeed(
            config.asyncpg_dsn,
            pg_channel=config.realtime_channel,
            timeout=config.realtime_subscribe_timeout,
        )

    return InMemoryChangeFeed()


__all__ = [
    "ChangeFeed",
    "ChangePayload",
    "ChangeType",
    "InMemoryChangeFeed",
    "PostgresChangeFeed",
    "RealtimeChannel",
    "SubscriptionStatus",
    "create_change_feed",
]
