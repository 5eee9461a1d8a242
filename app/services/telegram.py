# app/services/telegram.py
"""
📨 TELEGRAM-РЕЛЕ

Когда у заказа меняется статус, сотрудник, который его сделал,
получает сообщение в Telegram - если он привязал чат через бота.

Это отдельный канал: если Telegram не ответил, уведомления
в приложении всё равно доставлены. Повторов нет.
"""

from enum import Enum
from typing import Optional

from aiogram import Bot
from aiogram.exceptions import TelegramAPIError
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import async_sessionmaker

from app.bot.utils.text import order_status_text
from app.models import DomainNotificationEvent, OrderSnapshot
from infrastructure.database.repositories import CompanyRepository, EmployeeRepository
from infrastructure.logger import logger


class RelayOutcome(str, Enum):
    SENT = "sent"
    EMPLOYEE_NOT_FOUND = "employee_not_found"
    NOT_LINKED = "not_linked"
    SEND_FAILED = "send_failed"


# ==========================================
# ОТПРАВКА СООБЩЕНИЙ
# ==========================================

class TelegramNotifier:
    """Обёртка над Bot: отправить и не упасть."""

    def __init__(self, bot: Bot):
        self.bot = bot

    async def send_message(self, chat_id, text: str, parse_mode: str = "HTML") -> bool:
        try:
            await self.bot.send_message(chat_id=chat_id, text=text, parse_mode=parse_mode)
            return True
        except TelegramAPIError as e:
            logger.error(
                "telegram_send_failed",
                chat_id=str(chat_id),
                error=str(e),
                error_type=type(e).__name__,
            )
            return False

    async def send_order_notification(
        self,
        chat_id,
        order: OrderSnapshot,
        company_name: Optional[str] = None,
    ) -> bool:
        text = order_status_text(
            order_id=order.id,
            status=order.status.value,
            items=order.items,
            total_price=order.total_price,
            company_name=company_name,
        )
        return await self.send_message(chat_id, text)


# ==========================================
# РЕЛЕ
# ==========================================

class TelegramRelay:
    """
    Подписывается на шину событий:
        bus.subscribe("telegram", relay.handle)

    и используется напрямую из POST /api/telegram/notify:
        outcome = await relay.push(order)
    """

    def __init__(self, notifier: TelegramNotifier, session_maker: async_sessionmaker):
        self.notifier = notifier
        self.session_maker = session_maker

    async def handle(self, event: DomainNotificationEvent) -> Optional[RelayOutcome]:
        # Новые заказы в Telegram не шлём - только смену статуса
        if event.kind != "update" or event.order is None:
            return None

        logger.info("telegram_relay_start", order_id=event.order_id)

        try:
            return await self.push(event.order)
        except SQLAlchemyError as e:
            logger.error("telegram_relay_lookup_failed", order_id=event.order_id, error=str(e))
            return None

    async def push(self, order: OrderSnapshot) -> RelayOutcome:
        async with self.session_maker() as session:
            employee = None
            if order.employee_id:
                employee = await EmployeeRepository(session).get_by_id(order.employee_id)

            if employee is None:
                logger.warning(
                    "telegram_employee_not_found",
                    order_id=order.id,
                    employee_id=order.employee_id,
                )
                return RelayOutcome.EMPLOYEE_NOT_FOUND

            if not employee.telegram_chat_id:
                # У большинства сотрудников Telegram не привязан - это нормально
                logger.info("telegram_not_linked", employee=employee.name, order_id=order.id)
                return RelayOutcome.NOT_LINKED

            chat_id = employee.telegram_chat_id
            company_name = await self._company_name(session, order.company_id)

        sent = await self.notifier.send_order_notification(chat_id, order, company_name)

        if sent:
            logger.info("telegram_notification_sent", order_id=order.id, status=order.status.value)
            return RelayOutcome.SENT

        logger.error("telegram_notification_failed", order_id=order.id)
        return RelayOutcome.SEND_FAILED

    @staticmethod
    async def _company_name(session, company_id: Optional[str]) -> Optional[str]:
        """Без названия компании сообщение всё равно уйдёт."""
        if not company_id:
            return None
        try:
            company = await CompanyRepository(session).get_by_id(company_id)
        except SQLAlchemyError as e:
            logger.warning("telegram_company_lookup_failed", company_id=company_id, error=str(e))
            return None
        return company.name if company else None
