# app/services/notification_store.py
"""
🔔 ЛЕНТА УВЕДОМЛЕНИЙ (колокольчик)

- новые сверху
- максимум 50 записей, самые старые выкидываются
- прочитано / не прочитано
- после каждого изменения весь список пишется в хранилище (Redis)
  под ключом "savor_notifications"; запись не ждём
- при старте читаем обратно; битые данные → пустой список
"""

import asyncio
import random
import string
import time
from typing import List, Optional, Set

from pydantic import TypeAdapter, ValidationError

from app.models import NotificationKind, StoredNotification
from infrastructure.logger import logger
from infrastructure.storage import KeyValueStorage


STORAGE_KEY = "savor_notifications"
MAX_NOTIFICATIONS = 50

_notifications_adapter = TypeAdapter(List[StoredNotification])
_ALPHABET = string.ascii_lowercase + string.digits


def generate_notification_id(now_ms: Optional[int] = None) -> str:
    """'1760000000000-k3j9x' - время + случайный хвост."""
    now_ms = now_ms if now_ms is not None else int(time.time() * 1000)
    suffix = "".join(random.choices(_ALPHABET, k=6))
    return f"{now_ms}-{suffix}"


class NotificationStore:

    def __init__(
        self,
        storage: KeyValueStorage,
        key: str = STORAGE_KEY,
        max_items: int = MAX_NOTIFICATIONS,
    ):
        self.storage = storage
        self.key = key
        self.max_items = max_items
        self._items: List[StoredNotification] = []
        self._pending_writes: Set[asyncio.Task] = set()
        # записи уходят в хранилище строго по порядку изменений
        self._write_lock = asyncio.Lock()

    # ==========================================
    # ЧТЕНИЕ
    # ==========================================

    @property
    def notifications(self) -> List[StoredNotification]:
        return list(self._items)

    @property
    def unread_count(self) -> int:
        return sum(1 for n in self._items if not n.read)

    # ==========================================
    # ЗАГРУЗКА
    # ==========================================

    async def load(self) -> List[StoredNotification]:
        """Поднять сохранённую ленту. Никогда не бросает исключений."""
        try:
            raw = await self.storage.get(self.key)
        except Exception as e:
            logger.error("notifications_load_failed", key=self.key, error=str(e))
            raw = None

        items: List[StoredNotification] = []
        if raw:
            try:
                items = _notifications_adapter.validate_json(raw)
            except (ValidationError, ValueError) as e:
                logger.warning("notifications_storage_corrupt", key=self.key, error=str(e))
                items = []

        self._items = items[: self.max_items]
        logger.info("notifications_loaded", count=len(self._items))
        return self.notifications

    # ==========================================
    # ИЗМЕНЕНИЯ
    # ==========================================

    def add(self, title: str, body: str, kind: NotificationKind) -> StoredNotification:
        now_ms = int(time.time() * 1000)
        notification = StoredNotification(
            id=generate_notification_id(now_ms),
            title=title,
            body=body,
            type=kind,
            timestamp=now_ms,
            read=False,
        )

        self._items = [notification, *self._items][: self.max_items]
        self._persist()

        return notification

    def mark_read(self, notification_id: str) -> bool:
        """True если такая запись есть."""
        found = False
        for item in self._items:
            if item.id == notification_id:
                item.read = True
                found = True

        if found:
            self._persist()
        return found

    def mark_all_read(self) -> None:
        for item in self._items:
            item.read = True
        self._persist()

    def clear(self, notification_id: str) -> bool:
        before = len(self._items)
        self._items = [n for n in self._items if n.id != notification_id]

        removed = len(self._items) != before
        if removed:
            self._persist()
        return removed

    def clear_all(self) -> None:
        self._items = []
        self._persist()

    # ==========================================
    # СОХРАНЕНИЕ
    # ==========================================

    def _persist(self) -> None:
        """Сериализуем сразу, пишем в фоне."""
        payload = _notifications_adapter.dump_json(self._items).decode()

        task = asyncio.get_running_loop().create_task(self._write(payload))
        self._pending_writes.add(task)
        task.add_done_callback(self._pending_writes.discard)

    async def _write(self, payload: str) -> None:
        async with self._write_lock:
            try:
                await self.storage.set(self.key, payload)
            except Exception as e:
                logger.error("notifications_save_failed", key=self.key, error=str(e))

    async def flush(self) -> None:
        """Дождаться всех фоновых записей (перед выключением и в тестах)."""
        pending = [t for t in self._pending_writes if not t.done()]
        while pending:
            await asyncio.gather(*pending)
            pending = [t for t in self._pending_writes if not t.done()]
