# app/services/order_status.py
"""
Конвейер статусов заказа.

    pending → preparing → delivering → delivered

Только вперёд, без пропусков, без отмены.
Сам переход применяет OrderService (UPDATE в БД),
а уведомления узнают о нём уже из ленты изменений.
"""

from typing import Union

from app.errors import InvalidOrderState
from infrastructure.database.models import OrderStatus


STATUS_PIPELINE = (
    OrderStatus.PENDING,
    OrderStatus.PREPARING,
    OrderStatus.DELIVERING,
    OrderStatus.DELIVERED,
)


def coerce_status(value: Union[OrderStatus, str]) -> OrderStatus:
    """'preparing' → OrderStatus.PREPARING, мусор → InvalidOrderState."""
    if isinstance(value, OrderStatus):
        return value
    try:
        return OrderStatus(value)
    except ValueError:
        raise InvalidOrderState(value) from None


def is_terminal(status: Union[OrderStatus, str]) -> bool:
    return coerce_status(status) == STATUS_PIPELINE[-1]


def advance(current: Union[OrderStatus, str]) -> OrderStatus:
    """
    Следующий статус конвейера.

    Для delivered возвращает delivered (ничего не делаем).

    Пример:
        advance("pending")    → OrderStatus.PREPARING
        advance("delivered")  → OrderStatus.DELIVERED
        advance("cancelled")  → InvalidOrderState
    """
    status = coerce_status(current)
    index = STATUS_PIPELINE.index(status)

    if index == len(STATUS_PIPELINE) - 1:
        return status

    return STATUS_PIPELINE[index + 1]
