# app/bot/utils/text.py
"""
Тексты сообщений бота.

Все шаблоны живут здесь, в одном месте: их используют и realtime-реле,
и endpoint /api/telegram/notify, и бот (polling и webhook).
Все тексты отправляются с parse_mode="HTML".
"""

from html import escape
from typing import Iterable, Optional

from app.models import OrderLineItem


STATUS_EMOJI = {
    "pending": "⏳",
    "preparing": "👨‍🍳",
    "delivering": "🚚",
    "delivered": "✅",
}

STATUS_MESSAGES = {
    "pending": "Your order has been received and is being processed.",
    "preparing": "Your order is being prepared by our kitchen staff.",
    "delivering": "Your order is on the way to your location!",
    "delivered": "Your order has been delivered. Enjoy your meal! 🎉",
}

DEFAULT_EMOJI = "📦"
DEFAULT_STATUS_MESSAGE = "Your order status has been updated."


def escape_html(text) -> str:
    return escape(str(text), quote=False)


def truncate(text: str, length: int = 50) -> str:
    if len(text) <= length:
        return text
    return text[: length - 1] + "…"


def status_emoji(status: str) -> str:
    return STATUS_EMOJI.get(status.lower(), DEFAULT_EMOJI)


def status_message(status: str) -> str:
    return STATUS_MESSAGES.get(status.lower(), DEFAULT_STATUS_MESSAGE)


# ==========================================
# УВЕДОМЛЕНИЕ О СТАТУСЕ ЗАКАЗА
# ==========================================

def order_status_text(
    order_id: str,
    status: str,
    items: Iterable[OrderLineItem],
    total_price: float,
    company_name: Optional[str] = None,
) -> str:
    """
    Пример результата:

        👨‍🍳 <b>Order Status Update</b>

        <b>Order ID:</b> #abc12345
        <b>Status:</b> Preparing
        <b>Company:</b> Acme

        <b>Items:</b>
          • 2x Latte

        <b>Total:</b> ETB 90.00

        Your order is being prepared by our kitchen staff.
    """
    lines = [
        f"{status_emoji(status)} <b>Order Status Update</b>",
        "",
        f"<b>Order ID:</b> #{escape_html(order_id[:8])}",
        f"<b>Status:</b> {escape_html(status.capitalize())}",
    ]

    if company_name:
        lines.append(f"<b>Company:</b> {escape_html(company_name)}")

    items_list = [f"  • {item.quantity}x {escape_html(item.name)}" for item in items]
    if items_list:
        lines += ["", "<b>Items:</b>", *items_list]

    lines += [
        "",
        f"<b>Total:</b> ETB {float(total_price):.2f}",
        "",
        status_message(status),
    ]

    return "\n".join(lines)


# ==========================================
# ОТВЕТЫ БОТА
# ==========================================

def welcome_text(first_name: Optional[str]) -> str:
    return (
        f"👋 Welcome to Savor Order Notifications, {escape_html(first_name or 'there')}!\n\n"
        "📱 To receive order updates, please send your registered phone number.\n\n"
        "Format: +251912345678 or 0912345678"
    )


HELP_TEXT = (
    "🆘 <b>Help</b>\n\n"
    "Send your registered phone number to link your account and receive order notifications.\n\n"
    "<b>Commands:</b>\n"
    "/start - Start the bot\n"
    "/help - Show this help message\n"
    "/status - Check if you're registered"
)


def registered_text(name: str, phone: Optional[str]) -> str:
    return (
        "✅ <b>You're registered!</b>\n\n"
        f"<b>Name:</b> {escape_html(name)}\n"
        f"<b>Phone:</b> {escape_html(phone or '-')}\n\n"
        "You will receive order notifications here. 📦"
    )


NOT_REGISTERED_TEXT = (
    "❌ You're not registered yet.\n\n"
    "Send your phone number to register."
)


def registration_success_text(name: str) -> str:
    return (
        "✅ <b>Success!</b>\n\n"
        f"Welcome, {escape_html(name)}! 🎉\n\n"
        "You will now receive order notifications via Telegram.\n\n"
        "📦 You'll be notified when:\n"
        "  • Your order is being prepared\n"
        "  • Your order is out for delivery\n"
        "  • Your order has been delivered"
    )


def phone_not_found_text(text: str) -> str:
    return (
        "❌ <b>Phone number not found</b>\n\n"
        f"The number <code>{escape_html(text)}</code> is not registered in our system.\n\n"
        "Please make sure you entered the same number you registered with."
    )


INVALID_PHONE_TEXT = (
    "❌ <b>Invalid phone number format</b>\n\n"
    "Please send your phone number in one of these formats:\n"
    "  • +251912345678\n"
    "  • 0912345678\n\n"
    "Use /help for more information."
)

GENERIC_ERROR_TEXT = "❌ An error occurred. Please try again later."
