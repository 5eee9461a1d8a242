# app/api/webhooks/telegram.py
"""
📨 TELEGRAM

POST /api/telegram/notify   - отправить сотруднику статус его заказа
POST /api/telegram/webhook  - апдейты от Telegram (тот же роутер, что и polling)

Пример вызова notify:
    POST /api/telegram/notify
    {"orderId": "abc12345-..."}
"""

from aiogram.types import Update
from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from pydantic import ValidationError
from sqlalchemy.exc import SQLAlchemyError

from app.api.deps import get_runtime
from app.errors import OrderNotFound
from app.models import OrderSnapshot
from app.runtime import Runtime
from app.services.telegram import RelayOutcome
from infrastructure.logger import logger

router = APIRouter(prefix="/telegram", tags=["telegram"])


# ==========================================
# ENDPOINT: POST /api/telegram/notify
# ==========================================

@router.post("/notify")
async def notify_employee(request: Request, runtime: Runtime = Depends(get_runtime)):
    """
    Ручная отправка уведомления по заказу.

    Коды ответа:
        400 - нет orderId
        404 - заказ не найден
        200 {"error": ...} - сотрудник не привязал Telegram
        500 - Telegram не принял сообщение
        503 - бот не настроен
    """
    try:
        data = await request.json()
    except ValueError:
        data = None

    order_id = data.get("orderId") if isinstance(data, dict) else None
    if not order_id:
        return JSONResponse({"error": "Order ID is required"}, status_code=400)

    if runtime.telegram_relay is None:
        return JSONResponse({"error": "Telegram bot is not configured"}, status_code=503)

    try:
        order = await runtime.orders.get_order(order_id)
    except OrderNotFound:
        logger.warning("telegram_notify_order_not_found", order_id=order_id)
        return JSONResponse({"error": "Order not found"}, status_code=404)

    try:
        outcome = await runtime.telegram_relay.push(OrderSnapshot.model_validate(order.to_row()))
    except SQLAlchemyError as e:
        logger.error("telegram_notify_lookup_failed", order_id=order_id, error=str(e))
        return JSONResponse({"error": "Failed to load employee"}, status_code=500)

    if outcome in (RelayOutcome.EMPLOYEE_NOT_FOUND, RelayOutcome.NOT_LINKED):
        return {"error": "Employee not registered with Telegram"}

    if outcome == RelayOutcome.SEND_FAILED:
        return JSONResponse({"error": "Failed to send Telegram message"}, status_code=500)

    return {"success": True, "message": "Notification sent"}


# ==========================================
# ENDPOINT: POST /api/telegram/webhook
# ==========================================

@router.post("/webhook")
async def telegram_webhook(request: Request, runtime: Runtime = Depends(get_runtime)):
    """
    Telegram присылает сюда апдейты (если настроен setWebhook).

    Отвечаем 200 всегда: иначе Telegram будет повторять один и тот же апдейт.
    """
    if runtime.bot is None:
        logger.warning("telegram_webhook_without_bot")
        return {"ok": True}

    try:
        data = await request.json()
        update = Update.model_validate(data, context={"bot": runtime.bot})
    except (ValueError, ValidationError) as e:
        logger.warning("telegram_webhook_bad_update", error=str(e))
        return {"ok": True}

    logger.info("telegram_webhook_received", update_id=update.update_id)
    try:
        await runtime.bot_dispatcher.feed_update(runtime.bot, update)
    except Exception as e:
        # Например, пользователь заблокировал бота и answer() упал
        logger.error(
            "telegram_webhook_handler_failed",
            update_id=update.update_id,
            error=str(e),
            error_type=type(e).__name__,
        )
    return {"ok": True}
