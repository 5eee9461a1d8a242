# app/api/routes/notifications.py
"""
🔔 УВЕДОМЛЕНИЯ В ПРИЛОЖЕНИИ

Колокольчик:
    GET    /api/notifications
    POST   /api/notifications/{id}/read
    POST   /api/notifications/read-all
    DELETE /api/notifications/{id}
    DELETE /api/notifications

Тосты:
    GET    /api/toasts
    DELETE /api/toasts/{id}

Браузер (только персонал):
    GET    /api/notifications/stream       - SSE
    POST   /api/notifications/permission   - вкладка сообщает Notification.permission
"""

import asyncio
from typing import List

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import StreamingResponse
from pydantic import BaseModel

from app.api.deps import get_runtime, require_staff_role
from app.models import BrowserPermission, StoredNotification, Toast
from app.runtime import Runtime

router = APIRouter(tags=["notifications"])


class NotificationFeed(BaseModel):
    notifications: List[StoredNotification]
    unread_count: int


class PermissionUpdate(BaseModel):
    permission: BrowserPermission


def _feed(runtime: Runtime) -> NotificationFeed:
    return NotificationFeed(
        notifications=runtime.store.notifications,
        unread_count=runtime.store.unread_count,
    )


# ==========================================
# КОЛОКОЛЬЧИК
# ==========================================

@router.get("/notifications", response_model=NotificationFeed)
async def list_notifications(runtime: Runtime = Depends(get_runtime)):
    return _feed(runtime)


@router.post("/notifications/read-all", response_model=NotificationFeed)
async def mark_all_read(runtime: Runtime = Depends(get_runtime)):
    runtime.store.mark_all_read()
    return _feed(runtime)


@router.post("/notifications/{notification_id}/read", response_model=NotificationFeed)
async def mark_read(notification_id: str, runtime: Runtime = Depends(get_runtime)):
    # Нет такой записи - тоже ок (повторный клик)
    runtime.store.mark_read(notification_id)
    return _feed(runtime)


@router.delete("/notifications/{notification_id}", response_model=NotificationFeed)
async def clear_notification(notification_id: str, runtime: Runtime = Depends(get_runtime)):
    runtime.store.clear(notification_id)
    return _feed(runtime)


@router.delete("/notifications", response_model=NotificationFeed)
async def clear_all_notifications(runtime: Runtime = Depends(get_runtime)):
    runtime.store.clear_all()
    return _feed(runtime)


# ==========================================
# ТОСТЫ
# ==========================================

@router.get("/toasts", response_model=List[Toast])
async def list_toasts(runtime: Runtime = Depends(get_runtime)):
    return runtime.toasts.toasts


@router.delete("/toasts/{toast_id}", status_code=204)
async def dismiss_toast(toast_id: str, runtime: Runtime = Depends(get_runtime)):
    if not runtime.toasts.remove_toast(toast_id):
        raise HTTPException(404, "Toast not found")


# ==========================================
# БРАУЗЕР (SSE)
# ==========================================

@router.post("/notifications/permission")
async def update_permission(
    payload: PermissionUpdate,
    role: str = Depends(require_staff_role),
    runtime: Runtime = Depends(get_runtime),
):
    permission = runtime.browser.set_permission(payload.permission)
    return {"permission": permission.value}


@router.get("/notifications/stream")
async def notification_stream(
    role: str = Depends(require_staff_role),
    runtime: Runtime = Depends(get_runtime),
) -> StreamingResponse:
    broadcaster = runtime.broadcaster
    queue = broadcaster.connect()

    # Вкладка ещё не ответила про разрешение - попросим спросить
    if runtime.browser.permission == BrowserPermission.DEFAULT:
        runtime.browser.request_permission()

    async def event_stream():
        try:
            yield ": connected\n\n"
            while True:
                yield await queue.get()
        except asyncio.CancelledError:
            raise
        finally:
            broadcaster.disconnect(queue)

    return StreamingResponse(event_stream(), media_type="text/event-stream")
