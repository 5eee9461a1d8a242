# infrastructure/realtime/feed.py
"""
📡 ЛЕНТА ИЗМЕНЕНИЙ (change feed)

Push-подписка на изменения строк в таблице orders.

Как это выглядит для потребителя:

    channel = feed.channel("orders-changes")
    channel.on(ChangeType.INSERT, "orders", on_insert)
    channel.on(ChangeType.UPDATE, "orders", on_update)
    status = await channel.subscribe(on_status)
    ...
    await feed.remove_channel(channel)

Подписка сообщает результат: SUBSCRIBED / CHANNEL_ERROR / TIMED_OUT / CLOSED.
Повторные попытки - забота потребителя (см. app/services/realtime.py).
"""

import asyncio
import inspect
from collections import deque
from enum import Enum
from typing import Any, Awaitable, Callable, Deque, Dict, Iterable, List, Optional, Tuple, Union

from pydantic import BaseModel, Field

import structlog

logger = structlog.get_logger()


class ChangeType(str, Enum):
    INSERT = "INSERT"
    UPDATE = "UPDATE"


class SubscriptionStatus(str, Enum):
    SUBSCRIBED = "SUBSCRIBED"
    CHANNEL_ERROR = "CHANNEL_ERROR"
    TIMED_OUT = "TIMED_OUT"
    CLOSED = "CLOSED"


class ChangePayload(BaseModel):
    """
    Одно изменение строки.

    old заполнен только для UPDATE (снимок строки ДО изменения).
    """
    type: ChangeType
    table: str = "orders"
    new: Dict[str, Any] = Field(default_factory=dict)
    old: Optional[Dict[str, Any]] = None


ChangeHandler = Callable[[ChangePayload], Union[Awaitable[None], None]]
StatusCallback = Callable[[SubscriptionStatus, Optional[BaseException]], None]
Outcome = Union[SubscriptionStatus, BaseException]


# ==========================================
# КАНАЛ
# ==========================================

class RealtimeChannel:
    """
    Канал = набор обработчиков + состояние подписки.

    Базовый класс умеет раздавать события обработчикам,
    а подключение к источнику делают наследники.
    """

    def __init__(self, feed: "ChangeFeed", name: str):
        self.feed = feed
        self.name = name
        self.status: Optional[SubscriptionStatus] = None
        self._handlers: List[Tuple[ChangeType, str, ChangeHandler]] = []
        self._status_callback: Optional[StatusCallback] = None

    def on(self, event: ChangeType, table: str, handler: ChangeHandler) -> "RealtimeChannel":
        self._handlers.append((ChangeType(event), table, handler))
        return self

    @property
    def is_subscribed(self) -> bool:
        return self.status == SubscriptionStatus.SUBSCRIBED

    async def subscribe(self, callback: Optional[StatusCallback] = None) -> SubscriptionStatus:
        raise NotImplementedError

    async def unsubscribe(self) -> None:
        raise NotImplementedError

    def _report(self, status: SubscriptionStatus, error: Optional[BaseException] = None) -> None:
        self.status = status
        if self._status_callback is not None:
            self._status_callback(status, error)

    async def deliver(self, payload: ChangePayload) -> None:
        """Отдаёт изменение всем подходящим обработчикам по очереди."""
        for event, table, handler in self._handlers:
            if event != payload.type or table != payload.table:
                continue
            try:
                result = handler(payload)
                if inspect.isawaitable(result):
                    await result
            except Exception as e:
                logger.error(
                    "change_handler_failed",
                    channel=self.name,
                    change_type=payload.type.value,
                    error=str(e),
                    error_type=type(e).__name__,
                )


class ChangeFeed:
    """Источник изменений. Хранит свои каналы."""

    def __init__(self):
        self.channels: List[RealtimeChannel] = []

    def channel(self, name: str) -> RealtimeChannel:
        raise NotImplementedError

    @property
    def active_channels(self) -> List[RealtimeChannel]:
        return [c for c in self.channels if c.is_subscribed]

    async def remove_channel(self, channel: RealtimeChannel) -> None:
        """Отписывает канал и забывает про него."""
        try:
            await channel.unsubscribe()
        finally:
            if channel in self.channels:
                self.channels.remove(channel)

    async def publish(self, payload: ChangePayload) -> None:
        """
        Сообщить об изменении, сделанном этим процессом.

        Для источников, где изменения приходят из самой БД (триггер),
        ничего не делает.
        """
        return None

    async def close(self) -> None:
        for channel in list(self.channels):
            await self.remove_channel(channel)


# ==========================================
# IN-MEMORY РЕАЛИЗАЦИЯ
# ==========================================

class InMemoryChannel(RealtimeChannel):
    """
    Канал внутри процесса.

    У каждого подписанного канала своя очередь и своя задача-насос:
    изменения доставляются строго в порядке публикации, а публикующий
    не ждёт обработчиков.
    """

    def __init__(self, feed: "InMemoryChangeFeed", name: str):
        super().__init__(feed, name)
        self._queue: "asyncio.Queue[ChangePayload]" = asyncio.Queue()
        self._pump: Optional[asyncio.Task] = None

    async def subscribe(self, callback: Optional[StatusCallback] = None) -> SubscriptionStatus:
        self._status_callback = callback
        status, error = self.feed.next_outcome()
        if status is None:
            raise error

        if status == SubscriptionStatus.SUBSCRIBED:
            self._pump = asyncio.create_task(self._run_pump())

        self._report(status, error)
        return status

    async def unsubscribe(self) -> None:
        if self._pump is not None:
            self._pump.cancel()
            try:
                await self._pump
            except asyncio.CancelledError:
                pass
            self._pump = None
        self.status = SubscriptionStatus.CLOSED

    def enqueue(self, payload: ChangePayload) -> None:
        self._queue.put_nowait(payload)

    async def join(self) -> None:
        await self._queue.join()

    async def _run_pump(self) -> None:
        while True:
            payload = await self._queue.get()
            try:
                await self.deliver(payload)
            finally:
                self._queue.task_done()


class InMemoryChangeFeed(ChangeFeed):
    """
    Лента изменений внутри процесса.

    OrderService публикует сюда изменения после коммита.

    outcomes - заранее заданные результаты подписки (для тестов):
        feed = InMemoryChangeFeed(outcomes=[SubscriptionStatus.CHANNEL_ERROR])
        # первая подписка упадёт, следующие пройдут

    Исключение в outcomes - subscribe() его выбросит:
        feed.fail_next(ConnectionResetError("boom"))
    """

    def __init__(self, outcomes: Optional[Iterable[Outcome]] = None):
        super().__init__()
        self._outcomes: Deque[Outcome] = deque(outcomes or [])

    def fail_next(self, *statuses: Outcome) -> None:
        self._outcomes.extend(statuses)

    def next_outcome(self) -> Tuple[Optional[SubscriptionStatus], Optional[BaseException]]:
        if not self._outcomes:
            return SubscriptionStatus.SUBSCRIBED, None

        status = self._outcomes.popleft()
        if isinstance(status, BaseException):
            return None, status

        error = None
        if status == SubscriptionStatus.CHANNEL_ERROR:
            error = ConnectionError("simulated channel error")
        return status, error

    def channel(self, name: str) -> InMemoryChannel:
        channel = InMemoryChannel(self, name)
        self.channels.append(channel)
        return channel

    async def publish(self, payload: ChangePayload) -> None:
        for channel in self.active_channels:
            channel.enqueue(payload)

    async def drain(self) -> None:
        """Дождаться, пока все опубликованные изменения обработаны."""
        for channel in list(self.active_channels):
            await channel.join()
