from decimal import Decimal

import pytest

from app.errors import OrderNotFound
from app.models import OrderLineItem
from app.services.orders import OrderService, compute_total
from infrastructure.database.models import OrderStatus
from infrastructure.realtime import ChangeFeed, ChangeType


class RecordingFeed(ChangeFeed):
    def __init__(self):
        super().__init__()
        self.published = []

    async def publish(self, payload):
        self.published.append(payload)


ITEMS = [
    {"itemId": "1", "name": "Latte", "quantity": 2, "price": 45},
    {"itemId": "4", "name": "Croissant", "quantity": 1, "price": 35},
]


def test_compute_total():
    items = [OrderLineItem(name="A", quantity=3, price=0.1), OrderLineItem(name="B", price=10)]
    assert compute_total(items) == Decimal("10.30")


async def test_place_order(seeded):
    feed = RecordingFeed()
    service = OrderService(seeded, change_feed=feed)

    order = await service.place_order(ITEMS, floor_number=4, employee_id="employee-1")

    assert order.status == OrderStatus.PENDING
    assert order.total_price == Decimal("125.00")
    assert order.employee_name == "Abebe Kebede"
    assert order.company_id == "company-1"

    [payload] = feed.published
    assert payload.type == ChangeType.INSERT
    assert payload.new["id"] == order.id
    assert payload.new["status"] == "pending"


async def test_place_order_requires_items(seeded):
    with pytest.raises(ValueError):
        await OrderService(seeded).place_order([])


async def test_advance_walks_pipeline_and_stops(seeded):
    feed = RecordingFeed()
    service = OrderService(seeded, change_feed=feed)
    order = await service.place_order(ITEMS, employee_id="employee-1")

    statuses = []
    for _ in range(3):
        order = await service.advance_order(order.id)
        statuses.append(order.status)

    assert statuses == [OrderStatus.PREPARING, OrderStatus.DELIVERING, OrderStatus.DELIVERED]

    updates = [p for p in feed.published if p.type == ChangeType.UPDATE]
    assert [(p.old["status"], p.new["status"]) for p in updates] == [
        ("pending", "preparing"),
        ("preparing", "delivering"),
        ("delivering", "delivered"),
    ]

    # already delivered: nothing written, nothing published
    again = await service.advance_order(order.id)
    assert again.status == OrderStatus.DELIVERED
    assert len(feed.published) == 4


async def test_advance_unknown_order(seeded):
    with pytest.raises(OrderNotFound):
        await OrderService(seeded).advance_order("missing")


async def test_get_and_list(seeded):
    service = OrderService(seeded)
    order = await service.place_order(ITEMS, company_id="company-1")

    assert (await service.get_order(order.id)).id == order.id
    assert [o.id for o in await service.list_orders(company_id="company-1")] == [order.id]
    assert await service.list_orders(company_id="company-2") == []

    with pytest.raises(OrderNotFound):
        await service.get_order("missing")
