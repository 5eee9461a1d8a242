# app/services/events.py
"""
🚌 ШИНА СОБЫТИЙ ЗАКАЗОВ

Realtime-слушатель один раз подписан на ленту изменений и публикует
сюда готовые DomainNotificationEvent. Потребители (уведомления в приложении,
Telegram) подписываются на шину независимо друг от друга.

Обработчики запускаются параллельно. Если один упал - остальные
всё равно отработают, ошибка только попадёт в лог.
"""

import asyncio
import inspect
from typing import Awaitable, Callable, Dict, Union

from app.models import DomainNotificationEvent
from infrastructure.logger import logger


EventHandler = Callable[[DomainNotificationEvent], Union[Awaitable[None], None]]


class OrderEventBus:

    def __init__(self):
        self._handlers: Dict[str, EventHandler] = {}

    def subscribe(self, name: str, handler: EventHandler) -> None:
        """
        Подписать обработчик под именем.

        Повторная подписка с тем же именем заменяет старый обработчик.
        """
        if name in self._handlers:
            logger.info("event_handler_replaced", handler=name)
        self._handlers[name] = handler

    def unsubscribe(self, name: str) -> None:
        self._handlers.pop(name, None)

    @property
    def handler_names(self):
        return list(self._handlers)

    async def publish(self, event: DomainNotificationEvent) -> Dict[str, bool]:
        """
        Отдать событие всем обработчикам.

        Возвращает {имя_обработчика: успешно ли отработал}.
        """
        if not self._handlers:
            return {}

        names = list(self._handlers)
        results = await asyncio.gather(
            *(self._run(self._handlers[name], event) for name in names),
            return_exceptions=True
        )

        outcome = {}
        for name, result in zip(names, results):
            if isinstance(result, BaseException):
                logger.error(
                    "event_handler_failed",
                    handler=name,
                    kind=event.kind,
                    order_id=event.order_id,
                    error=str(result),
                    error_type=type(result).__name__,
                )
                outcome[name] = False
            else:
                outcome[name] = True

        return outcome

    @staticmethod
    async def _run(handler: EventHandler, event: DomainNotificationEvent) -> None:
        result = handler(event)
        if inspect.isawaitable(result):
            await result
