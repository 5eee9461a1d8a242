# infrastructure/realtime/postgres.py
"""
🐘 ЛЕНТА ИЗМЕНЕНИЙ ЧЕРЕЗ PostgreSQL LISTEN/NOTIFY

Триггер orders_change_trigger (см. infrastructure/database/base.py)
на каждый INSERT/UPDATE делает pg_notify(<REALTIME_CHANNEL>, json).
Здесь мы держим отдельное asyncpg-соединение и слушаем этот канал.

Так изменения видны, даже если заказ двигал другой процесс
(админка, второй инстанс API, руками из psql).
"""

import asyncio
import json
from typing import Optional

import asyncpg
from pydantic import ValidationError

import structlog

from .feed import ChangeFeed, ChangePayload, RealtimeChannel, StatusCallback, SubscriptionStatus

logger = structlog.get_logger()


class PostgresChannel(RealtimeChannel):

    def __init__(self, feed: "PostgresChangeFeed", name: str):
        super().__init__(feed, name)
        self.connection: Optional[asyncpg.Connection] = None
        self._queue: "asyncio.Queue[ChangePayload]" = asyncio.Queue()
        self._pump: Optional[asyncio.Task] = None
        self._closing = False

    async def subscribe(self, callback: Optional[StatusCallback] = None) -> SubscriptionStatus:
        self._status_callback = callback

        try:
            self.connection = await asyncio.wait_for(
                asyncpg.connect(self.feed.dsn),
                timeout=self.feed.timeout
            )
            await self.connection.add_listener(self.feed.pg_channel, self._on_notify)
            self.connection.add_termination_listener(self._on_terminated)

        except asyncio.TimeoutError as e:
            await self._close_connection()
            self._report(SubscriptionStatus.TIMED_OUT, e)
            return SubscriptionStatus.TIMED_OUT

        except (OSError, asyncpg.PostgresError, asyncpg.InterfaceError) as e:
            await self._close_connection()
            self._report(SubscriptionStatus.CHANNEL_ERROR, e)
            return SubscriptionStatus.CHANNEL_ERROR

        logger.info("pg_listen_started", channel=self.name, pg_channel=self.feed.pg_channel)
        self._pump = asyncio.create_task(self._run_pump())
        self._report(SubscriptionStatus.SUBSCRIBED)
        return SubscriptionStatus.SUBSCRIBED

    async def unsubscribe(self) -> None:
        self._closing = True

        if self._pump is not None:
            self._pump.cancel()
            try:
                await self._pump
            except asyncio.CancelledError:
                pass
            self._pump = None

        await self._close_connection()
        self.status = SubscriptionStatus.CLOSED

    async def _close_connection(self) -> None:
        if self.connection is None:
            return

        connection, self.connection = self.connection, None
        try:
            if not connection.is_closed():
                await connection.remove_listener(self.feed.pg_channel, self._on_notify)
                await connection.close()
        except (OSError, asyncpg.PostgresError, asyncpg.InterfaceError) as e:
            logger.warning("pg_listen_close_failed", channel=self.name, error=str(e))

    def _on_notify(self, connection, pid, pg_channel, raw: str) -> None:
        """asyncpg зовёт это синхронно: кладём в очередь, обработчики вызывает насос."""
        try:
            payload = ChangePayload.model_validate(json.loads(raw))
        except (ValueError, ValidationError) as e:
            logger.warning("pg_notify_payload_invalid", channel=self.name, error=str(e))
            return

        self._queue.put_nowait(payload)

    async def _run_pump(self) -> None:
        while True:
            payload = await self._queue.get()
            try:
                await self.deliver(payload)
            finally:
                self._queue.task_done()

    def _on_terminated(self, connection) -> None:
        if self._closing:
            return

        logger.error("pg_listen_connection_lost", channel=self.name)
        self._report(SubscriptionStatus.CHANNEL_ERROR, ConnectionError("connection terminated"))


class PostgresChangeFeed(ChangeFeed):
    """
    Пример:
        feed = PostgresChangeFeed(config.asyncpg_dsn, pg_channel="orders_changes")
    """

    def __init__(self, dsn: str, pg_channel: str = "orders_changes", timeout: float = 10.0):
        super().__init__()
        self.dsn = dsn
        self.pg_channel = pg_channel
        self.timeout = timeout

    def channel(self, name: str) -> PostgresChannel:
        channel = PostgresChannel(self, name)
        self.channels.append(channel)
        return channel
