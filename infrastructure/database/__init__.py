# infrastructure/database/__init__.py
"""
🗄️ БАЗА ДАННЫХ

- base.py         - движок, фабрика сессий, init_db / close_db
- models.py       - таблицы companies, employees, orders
- repositories.py - запросы к ним
"""

from infrastructure.database.base import async_session_maker, close_db, engine, init_db
from infrastructure.database.models import Base, Company, Employee, Order, OrderStatus
from infrastructure.database.repositories import CompanyRepository, EmployeeRepository, OrderRepository

__all__ = [
    "Base",
    "Company",
    "Employee",
    "Order",
    "OrderStatus",
    "CompanyRepository",
    "EmployeeRepository",
    "OrderRepository",
    "engine",
    "async_session_maker",
    "init_db",
    "close_db",
]
