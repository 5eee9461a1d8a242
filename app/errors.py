# app/errors.py
"""
Ошибки предметной области.

Ловятся там, где есть что ответить пользователю:
- в API превращаются в HTTP ответ
- в боте превращаются в сообщение "❌ ..."
"""


class SavorError(Exception):
    """Базовая ошибка приложения."""


class InvalidOrderState(SavorError):
    """Статус заказа не из конвейера pending → ... → delivered."""

    def __init__(self, status):
        self.status = status
        super().__init__(f"Unknown order status: {status!r}")


class OrderNotFound(SavorError):

    def __init__(self, order_id: str):
        self.order_id = order_id
        super().__init__(f"Order not found: {order_id}")


class NotificationPermissionError(SavorError):
    """Браузерные уведомления не разрешены пользователем."""


class TelegramNotConfigured(SavorError):
    """TELEGRAM_BOT_TOKEN не задан."""
