# app/models.py
"""
📊 МОДЕЛИ ДАННЫХ (Pydantic)

То, что живёт в памяти и ходит между компонентами:
- OrderSnapshot (строка заказа из ленты изменений)
- DomainNotificationEvent (событие "новый заказ" / "статус изменился")
- StoredNotification (запись в ленте уведомлений)
- Toast (всплывашка, живёт несколько секунд)

Таблицы БД описаны отдельно: infrastructure/database/models.py
"""

import json
from datetime import datetime
from enum import Enum
from typing import Any, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from infrastructure.database.models import OrderStatus


NotificationKind = Literal["new", "update"]
ToastType = Literal["success", "info", "warning", "error"]


class BrowserPermission(str, Enum):
    """Значения Notification.permission в браузере."""
    DEFAULT = "default"
    GRANTED = "granted"
    DENIED = "denied"


# ==========================================
# ЗАКАЗ
# ==========================================

class OrderLineItem(BaseModel):
    """Позиция заказа. price = цена за единицу."""
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    item_id: Optional[str] = Field(default=None, alias="itemId")
    name: str
    quantity: int = Field(default=1, ge=1)
    price: float = Field(default=0, ge=0)

    @property
    def subtotal(self) -> float:
        return self.quantity * self.price


def parse_items(raw: Any) -> List[OrderLineItem]:
    """
    Товары приходят либо списком, либо JSON-строкой (так их отдаёт
    NOTIFY из PostgreSQL, если столбец текстовый).

    Битые данные → пустой список, без исключений.
    """
    if raw is None:
        return []

    if isinstance(raw, (str, bytes)):
        try:
            raw = json.loads(raw)
        except ValueError:
            return []

    if not isinstance(raw, list):
        return []

    items = []
    for entry in raw:
        try:
            items.append(OrderLineItem.model_validate(entry))
        except ValidationError:
            continue
    return items


class OrderSnapshot(BaseModel):
    """Строка заказа, как её видит лента изменений."""
    model_config = ConfigDict(extra="ignore")

    id: str
    status: OrderStatus
    total_price: float = 0
    items: List[OrderLineItem] = Field(default_factory=list)
    floor_number: Optional[int] = None
    company_id: Optional[str] = None
    employee_id: Optional[str] = None
    employee_name: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @field_validator("items", mode="before")
    @classmethod
    def _tolerant_items(cls, value):
        return parse_items(value)

    @property
    def short_id(self) -> str:
        return self.id[:8]


# ==========================================
# СОБЫТИЯ И УВЕДОМЛЕНИЯ
# ==========================================

class DomainNotificationEvent(BaseModel):
    """
    Событие для уведомлений. Не сохраняется.

    kind="new"    - заказ создан
    kind="update" - у заказа поменялся статус (previous_status → order.status)
    """
    kind: NotificationKind
    title: str
    body: str
    order_id: str
    order: Optional[OrderSnapshot] = None
    previous_status: Optional[OrderStatus] = None


class StoredNotification(BaseModel):
    """Запись в ленте уведомлений (колокольчик)."""
    id: str
    title: str
    body: str
    type: NotificationKind
    timestamp: int
    # миллисекунды с эпохи
    read: bool = False


class Toast(BaseModel):
    id: str
    title: str
    message: str
    type: ToastType = "info"
    duration: int = 5000
    # миллисекунды
