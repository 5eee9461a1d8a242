# app/services/orders.py
"""
Сервис заказов.

Бизнес-логика для работы с заказами:
- Создание (сотрудник оформил заказ)
- Продвижение по конвейеру статусов (кухня / доставка)
- Чтение для экранов персонала
"""

from decimal import Decimal
from typing import Iterable, List, Optional, Union

from sqlalchemy.ext.asyncio import async_sessionmaker

from app.errors import OrderNotFound
from app.models import OrderLineItem
from app.services import order_status
from infrastructure.database.base import async_session_maker
from infrastructure.database.models import Order
from infrastructure.database.repositories import EmployeeRepository, OrderRepository
from infrastructure.logger import logger
from infrastructure.realtime import ChangeFeed, ChangePayload, ChangeType


def compute_total(items: Iterable[OrderLineItem]) -> Decimal:
    """Сумма заказа = Σ quantity × price, до копеек."""
    total = sum((Decimal(str(item.price)) * item.quantity for item in items), Decimal("0"))
    return total.quantize(Decimal("0.01"))


class OrderService:
    """Сервис для работы с заказами."""

    def __init__(
        self,
        session_maker: async_sessionmaker = async_session_maker,
        change_feed: Optional[ChangeFeed] = None,
    ):
        self.session_maker = session_maker
        self.change_feed = change_feed

    async def _publish(self, payload: ChangePayload) -> None:
        if self.change_feed is not None:
            await self.change_feed.publish(payload)

    # ==========================================
    # СОЗДАТЬ ЗАКАЗ
    # ==========================================

    async def place_order(
        self,
        items: List[Union[OrderLineItem, dict]],
        floor_number: Optional[int] = None,
        company_id: Optional[str] = None,
        employee_id: Optional[str] = None,
    ) -> Order:
        """
        Создать заказ в статусе pending.

        Сумма считается здесь и больше не меняется.
        Имя сотрудника копируется в заказ (чтобы экран кухни не ходил в employees).
        """
        line_items = [OrderLineItem.model_validate(item) for item in items]
        if not line_items:
            raise ValueError("Order must contain at least one item")

        async with self.session_maker() as session:
            employee_name = None
            if employee_id:
                employee = await EmployeeRepository(session).get_by_id(employee_id)
                if employee:
                    employee_name = employee.name
                    company_id = company_id or employee.company_id

            order = await OrderRepository(session).create(
                items=[item.model_dump() for item in line_items],
                total_price=compute_total(line_items),
                floor_number=floor_number,
                company_id=company_id,
                employee_id=employee_id,
                employee_name=employee_name,
            )

        await self._publish(ChangePayload(type=ChangeType.INSERT, new=order.to_row()))

        return order

    # ==========================================
    # ПРОДВИНУТЬ СТАТУС
    # ==========================================

    async def advance_order(self, order_id: str) -> Order:
        """
        Перевести заказ на следующий статус.

        Если заказ уже delivered - возвращаем как есть, в БД не пишем.
        """
        async with self.session_maker() as session:
            repo = OrderRepository(session)
            order = await repo.get_by_id(order_id)

            if not order:
                logger.warning("order_not_found", order_id=order_id)
                raise OrderNotFound(order_id)

            if order_status.is_terminal(order.status):
                logger.info("order_already_delivered", order_id=order_id)
                return order

            old_row = order.to_row()
            next_status = order_status.advance(order.status)
            order = await repo.update_status(order_id, next_status)

        await self._publish(
            ChangePayload(type=ChangeType.UPDATE, old=old_row, new=order.to_row())
        )

        return order

    # ==========================================
    # ЧТЕНИЕ
    # ==========================================

    async def get_order(self, order_id: str) -> Order:
        async with self.session_maker() as session:
            order = await OrderRepository(session).get_by_id(order_id)

        if not order:
            raise OrderNotFound(order_id)
        return order

    async def list_orders(self, limit: int = 50, company_id: Optional[str] = None) -> List[Order]:
        async with self.session_maker() as session:
            orders = await OrderRepository(session).list_recent(limit=limit, company_id=company_id)

        logger.info("orders_fetched", count=len(orders), company_id=company_id)
        return orders
