import asyncpg
import pytest

from app.models import BrowserPermission
from app.services.browser import BrowserNotifier, SseBroadcaster
from app.services.dispatcher import NotificationDispatcher
from app.services.events import OrderEventBus
from app.services.realtime import RealtimeOrderListener, RetryPolicy, build_event, format_amount
from infrastructure.realtime import ChangePayload, ChangeType, InMemoryChangeFeed, SubscriptionStatus


# ============================================================================
# build_event
# ============================================================================


def test_insert_becomes_new_order_event(make_row):
    event = build_event(ChangePayload(type=ChangeType.INSERT, new=make_row(id="abc12345", total_price=150)))

    assert event.kind == "new"
    assert event.title == "🛒 New Order Received!"
    assert event.body == "Order #abc12345 - ETB 150"
    assert event.order.employee_name == "Abebe Kebede"


def test_update_with_status_change(make_row):
    payload = ChangePayload(
        type=ChangeType.UPDATE,
        old=make_row(status="pending"),
        new=make_row(status="preparing"),
    )
    event = build_event(payload)

    assert event.kind == "update"
    assert event.title == "👨‍🍳 Order Status Updated"
    assert event.body == "Order #abc12345 is now preparing"
    assert event.previous_status == "pending"


def test_update_without_status_change_is_ignored(make_row):
    payload = ChangePayload(
        type=ChangeType.UPDATE,
        old=make_row(status="preparing", floor_number=3),
        new=make_row(status="preparing", floor_number=5),
    )
    assert build_event(payload) is None


def test_items_as_json_string_are_parsed(make_row):
    row = make_row(items='[{"name": "Tea", "quantity": 1, "price": 20}]')
    event = build_event(ChangePayload(type=ChangeType.INSERT, new=row))
    assert [i.name for i in event.order.items] == ["Tea"]


def test_format_amount():
    assert format_amount(150.0) == "150"
    assert format_amount(12.5) == "12.5"


# ============================================================================
# RetryPolicy
# ============================================================================


def test_default_policy_is_fixed_five_seconds():
    policy = RetryPolicy()
    assert [policy.delay_for(n) for n in (1, 2, 3)] == [5.0, 5.0, 5.0]
    assert policy.should_retry(10_000)


def test_backoff_is_capped():
    policy = RetryPolicy(base_delay=5, multiplier=2, max_delay=30)
    assert [policy.delay_for(n) for n in (1, 2, 3, 4, 5)] == [5, 10, 20, 30, 30]


def test_max_attempts():
    policy = RetryPolicy(max_attempts=2)
    assert policy.should_retry(2)
    assert not policy.should_retry(3)


def test_invalid_policy():
    with pytest.raises(ValueError):
        RetryPolicy(multiplier=0.5)


# ============================================================================
# RealtimeOrderListener
# ============================================================================


def make_listener(feed, bus, scheduler, **kwargs):
    return RealtimeOrderListener(feed, bus, scheduler=scheduler, **kwargs)


async def test_insert_reaches_toast_with_success_type(make_row, scheduler):
    feed = InMemoryChangeFeed()
    bus = OrderEventBus()
    toasts = []
    dispatcher = NotificationDispatcher(toast_sink=lambda *args: toasts.append(args))
    bus.subscribe("in_app", dispatcher.dispatch)

    listener = make_listener(feed, bus, scheduler)
    await listener.start()

    await feed.publish(ChangePayload(type=ChangeType.INSERT, new=make_row(id="abc12345", total_price=150)))
    await feed.drain()

    assert len(toasts) == 1
    title, body, toast_type = toasts[0]
    assert "abc12345" in body
    assert "150" in body
    assert toast_type == "success"

    await listener.stop()


async def test_insert_then_unchanged_update_dispatches_once(make_row, scheduler):
    feed = InMemoryChangeFeed()
    bus = OrderEventBus()
    events = []
    bus.subscribe("collect", events.append)

    listener = make_listener(feed, bus, scheduler)
    await listener.start()

    await feed.publish(ChangePayload(type=ChangeType.INSERT, new=make_row()))
    await feed.publish(
        ChangePayload(type=ChangeType.UPDATE, old=make_row(), new=make_row(employee_name="Someone"))
    )
    await feed.drain()

    assert [e.kind for e in events] == ["new"]
    await listener.stop()


async def test_channel_error_retries_every_five_seconds(scheduler):
    feed = InMemoryChangeFeed(
        outcomes=[SubscriptionStatus.CHANNEL_ERROR, SubscriptionStatus.CHANNEL_ERROR]
    )
    listener = make_listener(feed, OrderEventBus(), scheduler)

    await listener.start()
    assert [h.delay for h in scheduler.pending] == [5.0]

    scheduler.fire(scheduler.pending[0])
    await listener.retry_task
    assert [h.delay for h in scheduler.pending] == [5.0]
    assert listener.attempts == 2

    scheduler.fire(scheduler.pending[0])
    await listener.retry_task

    assert scheduler.pending == []
    assert len(feed.active_channels) == 1
    assert feed.channels == feed.active_channels
    assert listener.attempts == 0

    await listener.stop()


async def test_crash_during_retry_is_retried(scheduler):
    feed = InMemoryChangeFeed(
        outcomes=[
            SubscriptionStatus.CHANNEL_ERROR,
            asyncpg.InterfaceError("cannot perform operation: connection is closed"),
        ]
    )
    listener = make_listener(feed, OrderEventBus(), scheduler)

    await listener.start()
    scheduler.fire(scheduler.pending[0])
    await listener.retry_task

    assert [h.delay for h in scheduler.pending] == [5.0]
    assert listener.attempts == 2

    scheduler.fire(scheduler.pending[0])
    await listener.retry_task

    assert len(feed.active_channels) == 1
    assert feed.channels == feed.active_channels
    await listener.stop()


async def test_crash_on_first_subscribe_is_retried(scheduler):
    feed = InMemoryChangeFeed(outcomes=[ConnectionResetError("reset by peer")])
    listener = make_listener(feed, OrderEventBus(), scheduler)

    await listener.start()
    assert len(scheduler.pending) == 1

    scheduler.fire(scheduler.pending[0])
    await listener.retry_task

    assert len(feed.active_channels) == 1
    assert feed.channels == feed.active_channels
    await listener.stop()


async def test_timeout_is_retried_too(scheduler):
    feed = InMemoryChangeFeed(outcomes=[SubscriptionStatus.TIMED_OUT])
    listener = make_listener(feed, OrderEventBus(), scheduler)

    await listener.start()
    assert len(scheduler.pending) == 1

    await listener.stop()


async def test_stop_cancels_pending_retry(scheduler):
    feed = InMemoryChangeFeed(outcomes=[SubscriptionStatus.CHANNEL_ERROR])
    listener = make_listener(feed, OrderEventBus(), scheduler)

    await listener.start()
    handle = scheduler.pending[0]
    await listener.stop()

    assert handle.cancelled
    assert listener.channel is None
    assert feed.channels == []


async def test_stop_unsubscribes_active_channel(scheduler):
    feed = InMemoryChangeFeed()
    listener = make_listener(feed, OrderEventBus(), scheduler)

    await listener.start()
    assert len(feed.active_channels) == 1

    await listener.stop()
    assert feed.active_channels == []
    assert feed.channels == []


async def test_retry_gives_up_after_max_attempts(scheduler):
    feed = InMemoryChangeFeed(outcomes=[SubscriptionStatus.CHANNEL_ERROR] * 3)
    listener = make_listener(feed, OrderEventBus(), scheduler, retry_policy=RetryPolicy(max_attempts=1))

    await listener.start()
    scheduler.fire(scheduler.pending[0])
    await listener.retry_task

    assert scheduler.pending == []
    await listener.stop()


async def test_company_filter(make_row, scheduler):
    feed = InMemoryChangeFeed()
    bus = OrderEventBus()
    events = []
    bus.subscribe("collect", events.append)

    listener = make_listener(feed, bus, scheduler, company_id="company-1")
    await listener.start()

    await feed.publish(ChangePayload(type=ChangeType.INSERT, new=make_row(company_id="company-2")))
    await feed.publish(ChangePayload(type=ChangeType.INSERT, new=make_row(company_id="company-1")))
    await feed.drain()

    assert [e.order.company_id for e in events] == ["company-1"]
    await listener.stop()


async def test_malformed_row_is_skipped(make_row, scheduler):
    feed = InMemoryChangeFeed()
    bus = OrderEventBus()
    events = []
    bus.subscribe("collect", events.append)

    listener = make_listener(feed, bus, scheduler)
    await listener.start()

    await feed.publish(ChangePayload(type=ChangeType.INSERT, new={"total_price": 10}))
    await feed.publish(ChangePayload(type=ChangeType.INSERT, new=make_row()))
    await feed.drain()

    assert len(events) == 1
    await listener.stop()


async def test_start_asks_open_tabs_for_permission(scheduler):
    broadcaster = SseBroadcaster()
    queue = broadcaster.connect()
    browser = BrowserNotifier(broadcaster, scheduler=scheduler)

    listener = make_listener(InMemoryChangeFeed(), OrderEventBus(), scheduler, browser=browser)
    await listener.start()

    assert queue.get_nowait().startswith("event: permission_request")
    await listener.stop()


async def test_start_skips_permission_when_already_decided(scheduler):
    broadcaster = SseBroadcaster()
    queue = broadcaster.connect()
    browser = BrowserNotifier(broadcaster, scheduler=scheduler)
    browser.set_permission(BrowserPermission.DENIED)

    listener = make_listener(InMemoryChangeFeed(), OrderEventBus(), scheduler, browser=browser)
    await listener.start()

    assert queue.empty()
    await listener.stop()
