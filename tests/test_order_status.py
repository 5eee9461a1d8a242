import pytest

from app.errors import InvalidOrderState
from app.services.order_status import STATUS_PIPELINE, advance, coerce_status, is_terminal
from infrastructure.database.models import OrderStatus


def test_three_advances_reach_delivered():
    status = OrderStatus.PENDING
    seen = []
    for _ in range(3):
        status = advance(status)
        seen.append(status)

    assert seen == [OrderStatus.PREPARING, OrderStatus.DELIVERING, OrderStatus.DELIVERED]


def test_advance_on_delivered_is_noop():
    assert advance(OrderStatus.DELIVERED) == OrderStatus.DELIVERED


def test_advance_accepts_plain_strings():
    assert advance("pending") == OrderStatus.PREPARING
    assert advance("delivering") == OrderStatus.DELIVERED


def test_unknown_status_raises():
    with pytest.raises(InvalidOrderState) as exc:
        advance("cancelled")
    assert exc.value.status == "cancelled"


def test_only_delivered_is_terminal():
    assert [is_terminal(s) for s in STATUS_PIPELINE] == [False, False, False, True]


def test_coerce_status_keeps_enum_members():
    assert coerce_status(OrderStatus.PREPARING) is OrderStatus.PREPARING
