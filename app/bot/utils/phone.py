# app/bot/utils/phone.py
"""
Телефоны сотрудников (Эфиопия, мобильные 9XXXXXXXX).

Пользователи пишут номер как угодно:
    "+251 912 345 678", "0912-345-678", "(091) 234 5678", "912345678"

Канонический вид один: +251912345678
"""

import re
from typing import List, Optional


PHONE_PATTERN = re.compile(r"^(\+251|0)?9\d{8}$")
COUNTRY_CODE = "+251"

_SEPARATORS = re.compile(r"[\s\-()]")


def clean_phone(text: str) -> str:
    """Убираем пробелы, дефисы и скобки."""
    return _SEPARATORS.sub("", text or "")


def format_phone(text: str) -> Optional[str]:
    """
    Привести номер к виду +251XXXXXXXXX.

    Пример:
        format_phone("0912345678")   → "+251912345678"
        format_phone("912345678")    → "+251912345678"
        format_phone("12345")        → None
    """
    cleaned = clean_phone(text)
    if not PHONE_PATTERN.match(cleaned):
        return None

    if cleaned.startswith("0"):
        return COUNTRY_CODE + cleaned[1:]
    if not cleaned.startswith("+"):
        return COUNTRY_CODE + cleaned
    return cleaned


def phone_variants(text: str) -> List[str]:
    """
    Все варианты записи, по которым ищем сотрудника:
    как ввели, без разделителей, канонический.
    """
    raw = (text or "").strip()
    variants = [raw, clean_phone(raw), format_phone(raw)]

    unique = []
    for value in variants:
        if value and value not in unique:
            unique.append(value)
    return unique
