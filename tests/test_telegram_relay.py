from unittest.mock import AsyncMock, MagicMock

from aiogram.exceptions import TelegramAPIError

from app.models import DomainNotificationEvent, OrderSnapshot
from app.services.events import OrderEventBus
from app.services.telegram import RelayOutcome, TelegramNotifier, TelegramRelay


def make_order(employee_id="employee-1", status="preparing"):
    return OrderSnapshot(
        id="abc12345-0000-4000-8000-000000000001",
        status=status,
        total_price=90,
        items=[{"name": "Latte", "quantity": 2, "price": 45}],
        company_id="company-1",
        employee_id=employee_id,
    )


def make_event(kind="update", order=None):
    order = order or make_order()
    return DomainNotificationEvent(
        kind=kind,
        title="👨‍🍳 Order Status Updated",
        body=f"Order #{order.short_id} is now {order.status.value}",
        order_id=order.id,
        order=order,
    )


async def test_sends_to_linked_employee(seeded):
    bot = AsyncMock()
    relay = TelegramRelay(TelegramNotifier(bot), seeded)

    assert await relay.push(make_order()) == RelayOutcome.SENT

    kwargs = bot.send_message.await_args.kwargs
    assert kwargs["chat_id"] == "777"
    assert kwargs["parse_mode"] == "HTML"
    assert "<b>Company:</b> Acme Trading" in kwargs["text"]
    assert "2x Latte" in kwargs["text"]


async def test_skips_employee_without_chat(seeded):
    bot = AsyncMock()
    relay = TelegramRelay(TelegramNotifier(bot), seeded)

    assert await relay.push(make_order(employee_id="employee-2")) == RelayOutcome.NOT_LINKED
    bot.send_message.assert_not_awaited()


async def test_skips_unknown_employee(seeded):
    bot = AsyncMock()
    relay = TelegramRelay(TelegramNotifier(bot), seeded)

    assert await relay.push(make_order(employee_id="nobody")) == RelayOutcome.EMPLOYEE_NOT_FOUND
    bot.send_message.assert_not_awaited()


async def test_send_failure_is_reported_not_raised(seeded):
    bot = AsyncMock()
    bot.send_message.side_effect = TelegramAPIError(method=MagicMock(), message="Bad Request: chat not found")
    relay = TelegramRelay(TelegramNotifier(bot), seeded)

    assert await relay.push(make_order()) == RelayOutcome.SEND_FAILED


async def test_handle_ignores_new_orders(seeded):
    bot = AsyncMock()
    relay = TelegramRelay(TelegramNotifier(bot), seeded)

    assert await relay.handle(make_event(kind="new")) is None
    bot.send_message.assert_not_awaited()


async def test_handle_sends_on_status_update(seeded):
    bot = AsyncMock()
    relay = TelegramRelay(TelegramNotifier(bot), seeded)

    assert await relay.handle(make_event()) == RelayOutcome.SENT


async def test_relay_crash_does_not_affect_in_app_path(seeded):
    bot = AsyncMock()
    bot.send_message.side_effect = RuntimeError("network exploded")
    relay = TelegramRelay(TelegramNotifier(bot), seeded)

    in_app = []
    bus = OrderEventBus()
    bus.subscribe("in_app", in_app.append)
    bus.subscribe("telegram", relay.handle)

    outcome = await bus.publish(make_event())

    assert outcome == {"in_app": True, "telegram": False}
    assert len(in_app) == 1
