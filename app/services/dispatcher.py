# app/services/dispatcher.py
"""
📣 ДИСПЕТЧЕР УВЕДОМЛЕНИЙ

Один DomainNotificationEvent → три поверхности:
1. toast (всплывашка)              - "success" для нового заказа, "info" для смены статуса
2. браузерное уведомление          - только если permission == granted, закрывается через 5с
3. лента уведомлений (колокольчик) - сохраняется и переживает перезагрузку

Каждая поверхность изолирована: если одна упала, остальные всё равно получат событие.
"""

from typing import Callable, Optional

from app.errors import NotificationPermissionError
from app.models import BrowserPermission, DomainNotificationEvent, NotificationKind, ToastType
from infrastructure.logger import logger


ToastSink = Callable[[str, str, ToastType], object]
StoreSink = Callable[[str, str, NotificationKind], object]

NOTIFICATION_TAGS = {
    "new": "new-order",
    "update": "order-update",
}


def toast_type_for(kind: NotificationKind) -> ToastType:
    return "success" if kind == "new" else "info"


class NotificationDispatcher:
    """
    Пример:
        dispatcher = NotificationDispatcher(
            toast_sink=lambda title, body, type_: toasts.show_toast(title, body, type_),
            store_sink=store.add,
            browser=browser,
        )
        bus.subscribe("in_app", dispatcher.dispatch)

    Слоты toast/store одиночные: attach_* заменяет, detach_* очищает.
    """

    def __init__(
        self,
        toast_sink: Optional[ToastSink] = None,
        store_sink: Optional[StoreSink] = None,
        browser=None,
        icon: str = "/savor-logo.png",
        browser_timeout: float = 5.0,
    ):
        self.toast_sink = toast_sink
        self.store_sink = store_sink
        self.browser = browser
        self.icon = icon
        self.browser_timeout = browser_timeout

    # ==========================================
    # РЕГИСТРАЦИЯ ПОВЕРХНОСТЕЙ
    # ==========================================

    def attach_toast_sink(self, sink: ToastSink) -> None:
        self.toast_sink = sink

    def detach_toast_sink(self) -> None:
        self.toast_sink = None

    def attach_store_sink(self, sink: StoreSink) -> None:
        self.store_sink = sink

    def detach_store_sink(self) -> None:
        self.store_sink = None

    # ==========================================
    # ОТПРАВКА
    # ==========================================

    def dispatch(self, event: DomainNotificationEvent) -> None:
        toast_sink = self.toast_sink
        if toast_sink is not None:
            try:
                toast_sink(event.title, event.body, toast_type_for(event.kind))
            except Exception as e:
                logger.error("toast_sink_failed", order_id=event.order_id, error=str(e))

        self._show_browser_notification(event)

        store_sink = self.store_sink
        if store_sink is not None:
            try:
                store_sink(event.title, event.body, event.kind)
            except Exception as e:
                logger.error("store_sink_failed", order_id=event.order_id, error=str(e))

        logger.info(
            "notification_dispatched",
            kind=event.kind,
            order_id=event.order_id,
            title=event.title,
        )

    def _show_browser_notification(self, event: DomainNotificationEvent) -> None:
        browser = self.browser
        if browser is None or browser.permission != BrowserPermission.GRANTED:
            return

        try:
            browser.show(
                event.title,
                event.body,
                icon=self.icon,
                tag=NOTIFICATION_TAGS[event.kind],
                timeout=self.browser_timeout,
            )
        except NotificationPermissionError as e:
            # Разрешение отозвали посреди сессии
            logger.warning("browser_notification_denied", error=str(e))
        except Exception as e:
            logger.error("browser_notification_failed", error=str(e))
