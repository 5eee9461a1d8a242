# app/api/routes/orders.py
"""
📦 ЗАКАЗЫ

POST /api/orders                 - оформить заказ
GET  /api/orders                 - последние заказы
GET  /api/orders/{id}            - один заказ
POST /api/orders/{id}/advance    - следующий статус (кнопка оператора)
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field
from sqlalchemy.exc import SQLAlchemyError

from app.api.deps import get_runtime
from app.errors import InvalidOrderState, OrderNotFound
from app.models import OrderLineItem, OrderSnapshot
from app.runtime import Runtime
from infrastructure.logger import logger

router = APIRouter(prefix="/orders", tags=["orders"])


class PlaceOrderRequest(BaseModel):
    items: List[OrderLineItem] = Field(min_length=1)
    floor_number: Optional[int] = None
    company_id: Optional[str] = None
    employee_id: Optional[str] = None


def _snapshot(order) -> OrderSnapshot:
    return OrderSnapshot.model_validate(order.to_row())


@router.post("", status_code=201, response_model=OrderSnapshot)
async def place_order(payload: PlaceOrderRequest, runtime: Runtime = Depends(get_runtime)):
    order = await runtime.orders.place_order(
        items=payload.items,
        floor_number=payload.floor_number,
        company_id=payload.company_id,
        employee_id=payload.employee_id,
    )
    return _snapshot(order)


@router.get("", response_model=List[OrderSnapshot])
async def list_orders(
    company_id: Optional[str] = None,
    limit: int = 50,
    runtime: Runtime = Depends(get_runtime),
):
    orders = await runtime.orders.list_orders(limit=limit, company_id=company_id)
    return [_snapshot(order) for order in orders]


@router.get("/{order_id}", response_model=OrderSnapshot)
async def get_order(order_id: str, runtime: Runtime = Depends(get_runtime)):
    try:
        order = await runtime.orders.get_order(order_id)
    except OrderNotFound:
        raise HTTPException(404, "Order not found")
    return _snapshot(order)


@router.post("/{order_id}/advance", response_model=OrderSnapshot)
async def advance_order(order_id: str, runtime: Runtime = Depends(get_runtime)):
    """
    Оператор нажал "дальше". Ошибка здесь - это ответ на явное действие,
    поэтому отдаём её клиенту (он покажет alert).
    """
    try:
        order = await runtime.orders.advance_order(order_id)
    except OrderNotFound:
        raise HTTPException(404, "Order not found")
    except InvalidOrderState as e:
        raise HTTPException(409, str(e))
    except SQLAlchemyError as e:
        logger.error("order_advance_failed", order_id=order_id, error=str(e))
        raise HTTPException(500, "Failed to update order")

    return _snapshot(order)
