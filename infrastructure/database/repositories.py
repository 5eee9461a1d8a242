# infrastructure/database/repositories.py
"""
Repository паттерн.

Вместо того чтобы писать:
    session.execute(select(...))
    session.commit()
везде в коде, мы создаем методы:
    repo.get_by_id("...")
    repo.update_status(...)

Это делает код чище и позволяет подменять БД в тестах.
"""

from decimal import Decimal
from typing import Iterable, List, Optional

from sqlalchemy import or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

import structlog

from .models import Company, Employee, Order, OrderStatus, utcnow

logger = structlog.get_logger()


# ==========================================
# REPOSITORY: Order (работа с заказами)
# ==========================================

class OrderRepository:
    """Все CRUD операции с заказами идут через этот класс."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(
        self,
        items: list,
        total_price: Decimal,
        floor_number: Optional[int],
        company_id: Optional[str],
        employee_id: Optional[str],
        employee_name: Optional[str],
    ) -> Order:
        """
        Создать заказ в статусе pending.

        Пример:
            order = await repo.create(
                items=[{"item_id": "1", "name": "Latte", "quantity": 2, "price": 45.0}],
                total_price=Decimal("90"),
                floor_number=4,
                company_id=company.id,
                employee_id=employee.id,
                employee_name=employee.name,
            )
        """
        order = Order(
            items=items,
            total_price=total_price,
            floor_number=floor_number,
            company_id=company_id,
            employee_id=employee_id,
            employee_name=employee_name,
            status=OrderStatus.PENDING,
        )
        self.session.add(order)

        await self.session.commit()

        logger.info("order_created", order_id=order.id, total_price=str(total_price))

        return order

    async def get_by_id(self, order_id: str) -> Optional[Order]:
        stmt = select(Order).where(Order.id == order_id)
        result = await self.session.execute(stmt)

        return result.scalars().first()

    async def list_recent(
        self,
        limit: int = 50,
        company_id: Optional[str] = None,
        status: Optional[OrderStatus] = None,
    ) -> List[Order]:
        """
        Последние заказы (новые сверху).

        Если передали company_id / status - фильтруем.
        """
        stmt = select(Order)

        if company_id:
            stmt = stmt.where(Order.company_id == company_id)
        if status:
            stmt = stmt.where(Order.status == status)

        stmt = stmt.order_by(Order.created_at.desc()).limit(limit)
        result = await self.session.execute(stmt)

        return list(result.scalars().all())

    async def update_status(self, order_id: str, status: OrderStatus) -> Optional[Order]:
        """
        Обновить статус заказа (и updated_at).

        Оптимистичной блокировки нет: если два оператора двигают
        один заказ одновременно, побеждает последний.
        """
        stmt = (
            update(Order)
            .where(Order.id == order_id)
            .values(status=status, updated_at=utcnow())
        )

        await self.session.execute(stmt)

        await self.session.commit()

        logger.info("order_status_updated", order_id=order_id, status=status.value)

        # populate_existing: в identity map мог остаться старый статус
        stmt = select(Order).where(Order.id == order_id).execution_options(populate_existing=True)
        result = await self.session.execute(stmt)

        return result.scalars().first()


# ==========================================
# REPOSITORY: Employee (работа с сотрудниками)
# ==========================================

class EmployeeRepository:
    """Сотрудники: поиск и привязка Telegram."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_by_id(self, employee_id: str) -> Optional[Employee]:
        stmt = select(Employee).where(Employee.id == employee_id)
        result = await self.session.execute(stmt)

        return result.scalars().first()

    async def get_by_chat_id(self, chat_id: str) -> Optional[Employee]:
        """Кто привязан к этому Telegram-чату (для /status)."""
        stmt = select(Employee).where(Employee.telegram_chat_id == str(chat_id))
        result = await self.session.execute(stmt)

        return result.scalars().first()

    async def link_telegram_chat(
        self,
        chat_id: str,
        phones: Iterable[str]
    ) -> List[Employee]:
        """
        Привязать чат ко ВСЕМ сотрудникам, у которых телефон совпадает
        с любым из вариантов записи номера.

        Возвращает обновлённых сотрудников (пустой список = номер не найден).

        Пример:
            employees = await repo.link_telegram_chat(
                "123456789",
                ["0912 345 678", "0912345678", "+251912345678"],
            )
        """
        variants = sorted({p for p in phones if p})
        if not variants:
            return []

        stmt = select(Employee).where(or_(*(Employee.phone == p for p in variants)))
        result = await self.session.execute(stmt)
        employees = list(result.scalars().all())

        for employee in employees:
            employee.telegram_chat_id = str(chat_id)

        await self.session.commit()

        logger.info(
            "telegram_chat_linked",
            chat_id=str(chat_id),
            matched=len(employees)
        )

        return employees


# ==========================================
# REPOSITORY: Company
# ==========================================

class CompanyRepository:

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_by_id(self, company_id: str) -> Optional[Company]:
        stmt = select(Company).where(Company.id == company_id)
        result = await self.session.execute(stmt)

        return result.scalars().first()
