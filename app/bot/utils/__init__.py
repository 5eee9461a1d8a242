"""Инициализация утилит."""

from .phone import clean_phone, format_phone, phone_variants
from .text import escape_html, order_status_text, truncate

__all__ = [
    "clean_phone",
    "format_phone",
    "phone_variants",
    "escape_html",
    "order_status_text",
    "truncate",
]
