# app/services/toasts.py
"""
🍞 ОЧЕРЕДЬ ТОСТОВ

Всплывашки живут несколько секунд (по умолчанию 5000 мс)
и нигде не сохраняются. Убираются сами по таймеру
или раньше - если пользователь закрыл.
"""

import asyncio
import random
import string
from typing import Callable, Dict, List, Optional

from app.models import Toast, ToastType
from infrastructure.logger import logger


DEFAULT_DURATION_MS = 5000

ToastListener = Callable[[str, Toast], None]


def _toast_id() -> str:
    return "".join(random.choices(string.ascii_lowercase + string.digits, k=7))


class ToastQueue:

    def __init__(
        self,
        scheduler=None,
        default_duration: int = DEFAULT_DURATION_MS,
        listener: Optional[ToastListener] = None,
    ):
        self.scheduler = scheduler
        self.default_duration = default_duration
        # listener("toast" | "toast_remove", toast) - например зеркало в SSE
        self.listener = listener
        self._toasts: List[Toast] = []
        self._timers: Dict[str, object] = {}

    @property
    def toasts(self) -> List[Toast]:
        return list(self._toasts)

    def show_toast(
        self,
        title: str,
        message: str,
        type: ToastType = "info",
        duration: Optional[int] = None,
    ) -> Toast:
        # 0 или None → длительность по умолчанию
        toast = Toast(
            id=_toast_id(),
            title=title,
            message=message,
            type=type,
            duration=duration or self.default_duration,
        )
        self._toasts.append(toast)

        scheduler = self.scheduler or asyncio.get_running_loop()
        self._timers[toast.id] = scheduler.call_later(
            toast.duration / 1000, self._expire, toast.id
        )

        self._notify("toast", toast)
        return toast

    def remove_toast(self, toast_id: str) -> bool:
        timer = self._timers.pop(toast_id, None)
        if timer is not None:
            timer.cancel()
        return self._drop(toast_id)

    def _expire(self, toast_id: str) -> None:
        self._timers.pop(toast_id, None)
        self._drop(toast_id)

    def _drop(self, toast_id: str) -> bool:
        for toast in self._toasts:
            if toast.id == toast_id:
                self._toasts.remove(toast)
                self._notify("toast_remove", toast)
                return True
        return False

    def _notify(self, event: str, toast: Toast) -> None:
        if self.listener is None:
            return
        try:
            self.listener(event, toast)
        except Exception as e:
            logger.warning("toast_listener_failed", toast_event=event, error=str(e))
