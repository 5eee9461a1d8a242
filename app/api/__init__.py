# app/api/__init__.py
"""
🌐 API ROUTES (маршруты FastAPI)

Всё под префиксом /api:
    /orders, /notifications, /toasts, /telegram
"""

from fastapi import APIRouter

from app.api.routes.notifications import router as notifications_router
from app.api.routes.orders import router as orders_router
from app.api.webhooks.telegram import router as telegram_router

api_router = APIRouter()
api_router.include_router(orders_router)
api_router.include_router(notifications_router)
api_router.include_router(telegram_router)

__all__ = ["api_router"]
