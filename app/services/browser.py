# app/services/browser.py
"""
🖥️ БРАУЗЕРНЫЕ УВЕДОМЛЕНИЯ

Сервер не может сам показать Notification в браузере, поэтому
открытые вкладки персонала держат SSE-соединение
(GET /api/notifications/stream) и показывают то, что мы туда шлём.

Типы событий в потоке:
- permission_request   - вкладка должна вызвать Notification.requestPermission()
- notification         - показать уведомление (title, body, icon, tag)
- notification_close   - закрыть уведомление с этим tag
- toast / toast_remove - зеркало очереди тостов
"""

import asyncio
import json
from typing import Any, Dict, List, Optional

from app.errors import NotificationPermissionError
from app.models import BrowserPermission
from infrastructure.logger import logger


class SseBroadcaster:
    """
    Подписчики SSE = очереди. Медленный клиент (очередь полна)
    пропускает событие, остальные получают.
    """

    def __init__(self, queue_size: int = 20):
        self.queue_size = queue_size
        self.subscribers: List["asyncio.Queue[str]"] = []

    def connect(self) -> "asyncio.Queue[str]":
        queue: "asyncio.Queue[str]" = asyncio.Queue(maxsize=self.queue_size)
        self.subscribers.append(queue)
        logger.info("sse_client_connected", clients=len(self.subscribers))
        return queue

    def disconnect(self, queue: "asyncio.Queue[str]") -> None:
        if queue in self.subscribers:
            self.subscribers.remove(queue)
        logger.info("sse_client_disconnected", clients=len(self.subscribers))

    def broadcast(self, event: str, data: Dict[str, Any]) -> int:
        """Возвращает, скольким клиентам ушло событие."""
        message = f"event: {event}\ndata: {json.dumps(data, ensure_ascii=False)}\n\n"

        delivered = 0
        for queue in list(self.subscribers):
            try:
                queue.put_nowait(message)
                delivered += 1
            except asyncio.QueueFull:
                logger.warning("sse_event_dropped", sse_event=event)
        return delivered


class BrowserNotifier:
    """
    Аналог window.Notification на стороне сервера.

    permission сообщает сама вкладка (POST /api/notifications/permission).
    """

    def __init__(self, broadcaster: SseBroadcaster, scheduler=None):
        self.broadcaster = broadcaster
        self.scheduler = scheduler
        self.permission = BrowserPermission.DEFAULT

    @property
    def supported(self) -> bool:
        """Есть ли кому показывать (хоть одна открытая вкладка)."""
        return bool(self.broadcaster.subscribers)

    def set_permission(self, permission) -> BrowserPermission:
        self.permission = BrowserPermission(permission)
        logger.info("browser_permission_updated", permission=self.permission.value)
        return self.permission

    def request_permission(self) -> None:
        """Попросить вкладки спросить пользователя. Ответ придёт отдельным запросом."""
        self.broadcaster.broadcast("permission_request", {})

    def show(
        self,
        title: str,
        body: str,
        icon: Optional[str] = None,
        tag: Optional[str] = None,
        timeout: Optional[float] = 5.0,
    ) -> None:
        if self.permission != BrowserPermission.GRANTED:
            raise NotificationPermissionError(
                f"Notification permission is {self.permission.value}"
            )

        self.broadcaster.broadcast(
            "notification",
            {
                "title": title,
                "body": body,
                "icon": icon,
                "badge": icon,
                "tag": tag,
                "requireInteraction": False,
            },
        )

        if timeout:
            scheduler = self.scheduler or asyncio.get_running_loop()
            scheduler.call_later(
                timeout,
                self.broadcaster.broadcast,
                "notification_close",
                {"tag": tag},
            )
