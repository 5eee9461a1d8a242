# app/services/realtime.py
"""
🔔 REALTIME-СЛУШАТЕЛЬ ЗАКАЗОВ

Держит одну подписку на ленту изменений таблицы orders
и превращает сырые INSERT/UPDATE в DomainNotificationEvent:

- INSERT → всегда событие "new"
- UPDATE → событие "update", только если поменялся статус

Готовые события уходят в OrderEventBus.

Если подписка не удалась (CHANNEL_ERROR / TIMED_OUT) - старый канал
закрываем и пробуем снова по RetryPolicy (по умолчанию каждые 5 секунд).
"""

import asyncio
from typing import Any, Optional, Protocol

from pydantic import ValidationError

from app.models import BrowserPermission, DomainNotificationEvent, OrderSnapshot
from app.services.events import OrderEventBus
from infrastructure.logger import logger
from infrastructure.realtime import ChangeFeed, ChangePayload, ChangeType, RealtimeChannel, SubscriptionStatus


STATUS_EMOJI = {
    "pending": "⏳",
    "preparing": "👨‍🍳",
    "delivering": "🚚",
    "delivered": "✅",
}
DEFAULT_STATUS_EMOJI = "📦"


class Scheduler(Protocol):
    """То, что умеет asyncio loop: call_later(delay, callback) → handle.cancel()."""

    def call_later(self, delay: float, callback, *args) -> Any: ...


# ==========================================
# ПОЛИТИКА ПОВТОРОВ
# ==========================================

class RetryPolicy:
    """
    Когда и сколько раз переподписываться.

    delay = base_delay * multiplier ** (attempt - 1), но не больше max_delay.
    max_attempts=None - без ограничения.

    Пример:
        RetryPolicy()                                   # 5с, 5с, 5с ...
        RetryPolicy(multiplier=2, max_delay=60)         # 5с, 10с, 20с, 40с, 60с ...
        RetryPolicy(max_attempts=3)                     # три попытки и всё
    """

    def __init__(
        self,
        base_delay: float = 5.0,
        multiplier: float = 1.0,
        max_delay: float = 60.0,
        max_attempts: Optional[int] = None,
    ):
        if base_delay < 0 or multiplier < 1:
            raise ValueError("base_delay must be >= 0 and multiplier >= 1")
        self.base_delay = base_delay
        self.multiplier = multiplier
        self.max_delay = max(max_delay, base_delay)
        self.max_attempts = max_attempts

    @classmethod
    def from_settings(cls, settings) -> "RetryPolicy":
        return cls(
            base_delay=settings.realtime_retry_delay,
            multiplier=settings.realtime_retry_multiplier,
            max_delay=settings.realtime_retry_max_delay,
            max_attempts=settings.realtime_retry_max_attempts,
        )

    def should_retry(self, attempt: int) -> bool:
        return self.max_attempts is None or attempt <= self.max_attempts

    def delay_for(self, attempt: int) -> float:
        delay = self.base_delay * (self.multiplier ** max(attempt - 1, 0))
        return min(delay, self.max_delay)


# ==========================================
# СЫРОЕ ИЗМЕНЕНИЕ → СОБЫТИЕ
# ==========================================

def format_amount(value: float) -> str:
    """150.0 → '150', 12.5 → '12.5'"""
    if float(value).is_integer():
        return str(int(value))
    return f"{value:g}"


def build_event(payload: ChangePayload) -> Optional[DomainNotificationEvent]:
    """
    Превратить изменение строки в событие для уведомлений.

    None = уведомлять не о чем (UPDATE без смены статуса).
    """
    if payload.type == ChangeType.INSERT:
        order = OrderSnapshot.model_validate(payload.new)
        return DomainNotificationEvent(
            kind="new",
            title="🛒 New Order Received!",
            body=f"Order #{order.short_id} - ETB {format_amount(order.total_price)}",
            order_id=order.id,
            order=order,
        )

    old_status = (payload.old or {}).get("status")
    new_status = payload.new.get("status")

    # Цена и товары после создания не меняются, но на всякий случай
    # шумим только на смену статуса
    if old_status == new_status:
        return None

    order = OrderSnapshot.model_validate(payload.new)
    emoji = STATUS_EMOJI.get(order.status.value, DEFAULT_STATUS_EMOJI)

    return DomainNotificationEvent(
        kind="update",
        title=f"{emoji} Order Status Updated",
        body=f"Order #{order.short_id} is now {order.status.value}",
        order_id=order.id,
        order=order,
        previous_status=old_status if old_status in STATUS_EMOJI else None,
    )


# ==========================================
# СЛУШАТЕЛЬ
# ==========================================

class RealtimeOrderListener:
    """
    Жизненный цикл:
        listener = RealtimeOrderListener(feed, bus, browser=browser)
        await listener.start()
        ...
        await listener.stop()   # отменяет таймер повтора И закрывает канал

    В каждый момент активен максимум один канал.
    """

    def __init__(
        self,
        feed: ChangeFeed,
        bus: OrderEventBus,
        browser=None,
        retry_policy: Optional[RetryPolicy] = None,
        scheduler: Optional[Scheduler] = None,
        company_id: Optional[str] = None,
        channel_name: str = "orders-changes",
    ):
        self.feed = feed
        self.bus = bus
        self.browser = browser
        self.retry_policy = retry_policy or RetryPolicy()
        self.scheduler = scheduler
        self.company_id = company_id
        self.channel_name = channel_name

        self.channel: Optional[RealtimeChannel] = None
        self.retry_handle = None
        self.retry_task: Optional[asyncio.Task] = None
        self.attempts = 0
        self._running = False

    # ------------------------------------------
    # старт / стоп
    # ------------------------------------------

    async def start(self) -> None:
        if self._running:
            return
        self._running = True

        logger.info("realtime_setup", company_id=self.company_id)
        self._request_browser_permission()

        try:
            await self._subscribe()
        except Exception as e:
            self._on_subscribe_crashed(e)

    async def stop(self) -> None:
        self._running = False

        if self.retry_handle is not None:
            self.retry_handle.cancel()
            self.retry_handle = None

        if self.retry_task is not None and not self.retry_task.done():
            self.retry_task.cancel()
            try:
                await self.retry_task
            except asyncio.CancelledError:
                pass
        self.retry_task = None

        if self.channel is not None:
            logger.info("realtime_unsubscribe", channel=self.channel.name)
            channel, self.channel = self.channel, None
            await self.feed.remove_channel(channel)

    def _request_browser_permission(self) -> None:
        """Один раз спросить разрешение на уведомления. Результат не ждём."""
        browser = self.browser
        if browser is None or not browser.supported:
            return
        if browser.permission != BrowserPermission.DEFAULT:
            return

        try:
            browser.request_permission()
            logger.info("browser_permission_requested")
        except Exception as e:
            logger.warning("browser_permission_request_failed", error=str(e))

    # ------------------------------------------
    # подписка
    # ------------------------------------------

    async def _subscribe(self) -> None:
        channel = self.feed.channel(self.channel_name)
        channel.on(ChangeType.INSERT, "orders", self._handle_change)
        channel.on(ChangeType.UPDATE, "orders", self._handle_change)
        self.channel = channel

        await channel.subscribe(
            lambda status, error: self._on_status(channel, status, error)
        )

    def _on_status(
        self,
        channel: RealtimeChannel,
        status: SubscriptionStatus,
        error: Optional[BaseException],
    ) -> None:
        if channel is not self.channel:
            # Поздний ответ от канала, который мы уже закрыли
            return

        logger.info("realtime_subscription_status", status=status.value)

        if status == SubscriptionStatus.SUBSCRIBED:
            self.attempts = 0
            logger.info("realtime_subscribed", channel=channel.name)
            return

        if status in (SubscriptionStatus.CHANNEL_ERROR, SubscriptionStatus.TIMED_OUT):
            logger.error(
                "realtime_subscription_failed",
                status=status.value,
                error=str(error) if error else None,
            )
            self._schedule_retry()

    def _schedule_retry(self) -> None:
        if not self._running or self.retry_handle is not None:
            return

        self.attempts += 1
        if not self.retry_policy.should_retry(self.attempts):
            logger.error("realtime_retry_exhausted", attempts=self.attempts - 1)
            return

        delay = self.retry_policy.delay_for(self.attempts)
        logger.info("realtime_retry_scheduled", attempt=self.attempts, delay=delay)

        scheduler = self.scheduler or asyncio.get_running_loop()
        self.retry_handle = scheduler.call_later(delay, self._on_retry_timer)

    def _on_retry_timer(self) -> None:
        self.retry_handle = None
        if not self._running:
            return
        self.retry_task = asyncio.ensure_future(self._resubscribe())

    async def _resubscribe(self) -> None:
        try:
            failed, self.channel = self.channel, None
            if failed is not None:
                await self.feed.remove_channel(failed)

            if self._running:
                await self._subscribe()
        except Exception as e:
            self._on_subscribe_crashed(e)

    def _on_subscribe_crashed(self, error: Exception) -> None:
        """Лента упала исключением, а не статусом: тоже повторяем по политике."""
        logger.error(
            "realtime_subscribe_crashed",
            error=str(error),
            error_type=type(error).__name__,
        )
        self._schedule_retry()

    # ------------------------------------------
    # изменения
    # ------------------------------------------

    async def _handle_change(self, payload: ChangePayload) -> None:
        try:
            event = build_event(payload)
        except ValidationError as e:
            logger.warning(
                "realtime_payload_invalid",
                change_type=payload.type.value,
                error=str(e),
            )
            return

        if event is None:
            return

        if self.company_id and event.order and event.order.company_id != self.company_id:
            return

        logger.info(
            "realtime_event",
            kind=event.kind,
            order_id=event.order_id,
            title=event.title,
        )
        await self.bus.publish(event)
