# app/bot/services/registration.py
"""
Привязка Telegram-чата к сотруднику.

Сотрудник пишет боту свой номер телефона, мы ищем его
в employees по любому варианту записи номера и сохраняем chat_id.
После этого реле начинает слать ему статусы заказов.

Функции возвращают готовый текст ответа - одинаковый
для polling-бота и для webhook.
"""

from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.bot.utils.phone import format_phone, phone_variants
from app.bot.utils.text import (
    GENERIC_ERROR_TEXT,
    INVALID_PHONE_TEXT,
    NOT_REGISTERED_TEXT,
    phone_not_found_text,
    registered_text,
    registration_success_text,
)
from infrastructure.database.repositories import EmployeeRepository
from infrastructure.logger import logger


async def status_reply(session: AsyncSession, chat_id) -> str:
    """Ответ на /status."""
    try:
        employee = await EmployeeRepository(session).get_by_chat_id(str(chat_id))
    except SQLAlchemyError as e:
        logger.error("telegram_status_lookup_failed", chat_id=str(chat_id), error=str(e))
        return GENERIC_ERROR_TEXT

    if employee is None:
        logger.info("telegram_status_not_registered", chat_id=str(chat_id))
        return NOT_REGISTERED_TEXT

    logger.info("telegram_status_registered", chat_id=str(chat_id), employee=employee.name)
    return registered_text(employee.name, employee.phone)


async def registration_reply(session: AsyncSession, chat_id, text: str) -> str:
    """
    Ответ на любое не-командное сообщение: пробуем зарегистрировать номер.

    Пример:
        "0912 345 678" → ищем "0912 345 678", "0912345678", "+251912345678"
    """
    text = (text or "").strip()
    normalized: Optional[str] = format_phone(text)

    if normalized is None:
        logger.info("telegram_invalid_phone", chat_id=str(chat_id), text=text)
        return INVALID_PHONE_TEXT

    variants = phone_variants(text)
    logger.info("telegram_phone_lookup", chat_id=str(chat_id), variants=variants)

    try:
        employees = await EmployeeRepository(session).link_telegram_chat(str(chat_id), variants)
    except SQLAlchemyError as e:
        await session.rollback()
        logger.error("telegram_registration_failed", chat_id=str(chat_id), error=str(e))
        return GENERIC_ERROR_TEXT

    if not employees:
        logger.info("telegram_phone_not_found", chat_id=str(chat_id), phone=normalized)
        return phone_not_found_text(text)

    logger.info(
        "telegram_registered",
        chat_id=str(chat_id),
        employee=employees[0].name,
        phone=employees[0].phone,
    )
    return registration_success_text(employees[0].name)
