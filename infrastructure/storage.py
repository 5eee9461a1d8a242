# infrastructure/storage.py
"""
🔴 KEY-VALUE ХРАНИЛИЩЕ

Здесь живёт состояние, которое должно пережить перезапуск,
но не заслуживает отдельной таблицы в БД.
Сейчас это лента уведомлений (ключ "savor_notifications").

Два варианта:
- Redis (продакшн) - данные переживают рестарт процесса
- Memory (разработка и тесты) - всё в словаре, теряется при рестарте
"""

from typing import Dict, Optional

from redis.asyncio.client import Redis

from config.settings import config
from infrastructure.logger import logger


class KeyValueStorage:
    """Минимальный интерфейс: прочитать строку / записать строку."""

    async def get(self, key: str) -> Optional[str]:
        raise NotImplementedError

    async def set(self, key: str, value: str) -> None:
        raise NotImplementedError

    async def close(self) -> None:
        return None


class MemoryKeyValueStorage(KeyValueStorage):
    """Хранилище в памяти процесса."""

    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self.data: Dict[str, str] = dict(initial or {})

    async def get(self, key: str) -> Optional[str]:
        return self.data.get(key)

    async def set(self, key: str, value: str) -> None:
        self.data[key] = value


class RedisKeyValueStorage(KeyValueStorage):
    """Хранилище в Redis."""

    def __init__(self, redis: Redis):
        self.redis = redis

    @classmethod
    def from_url(cls, url: str) -> "RedisKeyValueStorage":
        return cls(Redis.from_url(url, encoding="utf-8", decode_responses=True))

    async def get(self, key: str) -> Optional[str]:
        return await self.redis.get(key)

    async def set(self, key: str, value: str) -> None:
        await self.redis.set(key, value)

    async def ping(self) -> bool:
        """
        Проверяет что Redis живой и отвечает.
        Вызывается при старте приложения для диагностики.
        """
        try:
            await self.redis.ping()
            return True
        except Exception as e:
            logger.error("redis_connection_error", error=str(e))
            return False

    async def close(self) -> None:
        await self.redis.aclose()


# ==========================================
# ФАБРИКА
# ==========================================

def create_storage(backend: Optional[str] = None) -> KeyValueStorage:
    """
    Создаёт хранилище по настройке NOTIFICATION_STORAGE.

    Пример:
        storage = create_storage()          # из .env
        storage = create_storage("memory")  # явно
    """
    backend = backend or config.notification_storage

    if backend == "redis":
        logger.info("storage_selected", backend="redis", url=config.redis_url)
        return RedisKeyValueStorage.from_url(config.redis_url)

    logger.info("storage_selected", backend="memory")
    return MemoryKeyValueStorage()


__all__ = [
    "KeyValueStorage",
    "MemoryKeyValueStorage",
    "RedisKeyValueStorage",
    "create_storage",
]
