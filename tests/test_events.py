from app.models import DomainNotificationEvent
from app.services.events import OrderEventBus


def make_event():
    return DomainNotificationEvent(
        kind="new",
        title="🛒 New Order Received!",
        body="Order #abc12345 - ETB 150",
        order_id="abc12345",
    )


async def test_failing_handler_does_not_block_others():
    bus = OrderEventBus()
    received = []

    async def broken(event):
        raise RuntimeError("telegram down")

    bus.subscribe("telegram", broken)
    bus.subscribe("in_app", received.append)

    outcome = await bus.publish(make_event())

    assert outcome == {"telegram": False, "in_app": True}
    assert len(received) == 1


async def test_resubscribe_replaces_handler():
    bus = OrderEventBus()
    first, second = [], []

    bus.subscribe("in_app", first.append)
    bus.subscribe("in_app", second.append)
    await bus.publish(make_event())

    assert bus.handler_names == ["in_app"]
    assert first == []
    assert len(second) == 1


async def test_publish_without_handlers():
    assert await OrderEventBus().publish(make_event()) == {}


async def test_unsubscribe_unknown_name_is_ignored():
    bus = OrderEventBus()
    bus.unsubscribe("missing")
    assert bus.handler_names == []
