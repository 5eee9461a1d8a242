# infrastructure/database/models.py
"""
Здесь мы описываем структуру таблиц в базе данных.
SQLAlchemy автоматически создаст эти таблицы при первом запуске.

Каждый класс = одна таблица в БД
Каждое поле класса = один столбец в таблице
"""

import uuid
from datetime import datetime, timezone
from enum import Enum as PyEnum

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    DECIMAL,
    Enum,
    ForeignKey,
    Integer,
    JSON,
    String,
)
from sqlalchemy.orm import declarative_base, relationship


# Base - базовый класс для всех моделей
Base = declarative_base()


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def new_id() -> str:
    return str(uuid.uuid4())


# ==========================================
# ENUMS (Перечисления)
# ==========================================

class OrderStatus(str, PyEnum):
    """
    Статусы заказа. Конвейер строго линейный:
    pending → preparing → delivering → delivered
    """
    PENDING = "pending"
    # Только что оформлен сотрудником
    PREPARING = "preparing"
    # Готовится на кухне
    DELIVERING = "delivering"
    # Несут на этаж
    DELIVERED = "delivered"
    # Доставлен (конечный статус)


# ==========================================
# МОДЕЛЬ: Company (Таблица companies)
# ==========================================

class Company(Base):
    """Компания-арендатор (делает заказы на свой этаж)."""
    __tablename__ = "companies"

    id = Column(String(36), primary_key=True, default=new_id)
    name = Column(String(255), nullable=False)
    floor_number = Column(Integer, nullable=True)
    is_active = Column(Boolean, default=True)
    created_at = Column(DateTime(timezone=True), default=utcnow)

    employees = relationship("Employee", back_populates="company")

    def __repr__(self):
        return f"<Company(id={self.id}, name='{self.name}')>"


# ==========================================
# МОДЕЛЬ: Employee (Таблица employees)
# ==========================================

class Employee(Base):
    """
    Сотрудник компании.

    telegram_chat_id заполняется, когда сотрудник сам отправил
    боту свой номер телефона. У большинства сотрудников его нет.
    """
    __tablename__ = "employees"

    id = Column(String(36), primary_key=True, default=new_id)
    company_id = Column(
        String(36),
        ForeignKey("companies.id"),
        nullable=True,
        index=True
    )
    name = Column(String(255), nullable=False)
    email = Column(String(255), nullable=True)
    phone = Column(String(32), nullable=True, index=True)
    # Телефон как его ввели при регистрации (+251..., 09..., с пробелами)
    position = Column(String(255), nullable=True)
    is_active = Column(Boolean, default=True)
    telegram_chat_id = Column(String(64), nullable=True, index=True)
    created_at = Column(DateTime(timezone=True), default=utcnow)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    company = relationship("Company", back_populates="employees")

    def __repr__(self):
        return f"<Employee(id={self.id}, name='{self.name}', phone='{self.phone}')>"


# ==========================================
# МОДЕЛЬ: Order (Таблица orders)
# ==========================================

class Order(Base):
    """
    Таблица заказов.

    Товары лежат прямо в заказе (JSON):
    [
      {"item_id": "1", "name": "Latte", "quantity": 2, "price": 45.0},
      {"item_id": "4", "name": "Croissant", "quantity": 1, "price": 35.0}
    ]

    total_price считается один раз при создании и больше не меняется.
    После создания меняется только status (и updated_at).
    """
    __tablename__ = "orders"

    id = Column(String(36), primary_key=True, default=new_id)
    items = Column(JSON, nullable=False, default=list)
    total_price = Column(DECIMAL(10, 2), nullable=False)
    floor_number = Column(Integer, nullable=True)
    status = Column(
        Enum(
            OrderStatus,
            name="order_status",
            values_callable=lambda statuses: [s.value for s in statuses],
        ),
        default=OrderStatus.PENDING,
        nullable=False,
        index=True
    )
    company_id = Column(String(36), ForeignKey("companies.id"), nullable=True, index=True)
    employee_id = Column(String(36), ForeignKey("employees.id"), nullable=True, index=True)
    employee_name = Column(String(255), nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, index=True)
    updated_at = Column(DateTime(timezone=True), default=utcnow)

    def to_row(self) -> dict:
        """
        Строка заказа в том же виде, в каком её отдаёт лента изменений
        (ключи = имена столбцов, значения сериализуемы в JSON).
        """
        return {
            "id": self.id,
            "items": list(self.items or []),
            "total_price": float(self.total_price) if self.total_price is not None else None,
            "floor_number": self.floor_number,
            "status": self.status.value if isinstance(self.status, OrderStatus) else self.status,
            "company_id": self.company_id,
            "employee_id": self.employee_id,
            "employee_name": self.employee_name,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }

    def __repr__(self):
        return f"<Order(id={self.id}, status={self.status}, total={self.total_price})>"
