from app.bot.utils.text import (
    order_status_text,
    phone_not_found_text,
    registration_success_text,
    status_emoji,
    status_message,
    truncate,
    welcome_text,
)
from app.models import OrderLineItem


def test_order_status_text_full():
    text = order_status_text(
        order_id="abc12345-ffff",
        status="preparing",
        items=[OrderLineItem(name="Latte", quantity=2, price=45)],
        total_price=90,
        company_name="Acme Trading",
    )

    assert text.splitlines() == [
        "👨‍🍳 <b>Order Status Update</b>",
        "",
        "<b>Order ID:</b> #abc12345",
        "<b>Status:</b> Preparing",
        "<b>Company:</b> Acme Trading",
        "",
        "<b>Items:</b>",
        "  • 2x Latte",
        "",
        "<b>Total:</b> ETB 90.00",
        "",
        "Your order is being prepared by our kitchen staff.",
    ]


def test_order_status_text_omits_optional_blocks():
    text = order_status_text("abc12345", "delivered", [], 12.5)

    assert "Company" not in text
    assert "Items" not in text
    assert "<b>Total:</b> ETB 12.50" in text
    assert text.startswith("✅")


def test_names_are_html_escaped():
    text = order_status_text("abc12345", "pending", [OrderLineItem(name="Tea <hot>", price=1)], 1, "A&B")

    assert "Tea &lt;hot&gt;" in text
    assert "A&amp;B" in text


def test_unknown_status_falls_back():
    assert status_emoji("cancelled") == "📦"
    assert status_message("cancelled") == "Your order status has been updated."


def test_reply_texts():
    assert "Abebe" in welcome_text("Abebe")
    assert "there" in welcome_text(None)
    assert "Welcome, Sara!" in registration_success_text("Sara")
    assert "<code>0911</code>" in phone_not_found_text("0911")


def test_truncate():
    assert truncate("short") == "short"
    assert len(truncate("x" * 80)) == 50
