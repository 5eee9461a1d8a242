# app/api/deps.py
"""
Зависимости FastAPI.

- get_runtime        - собранные компоненты приложения
- require_staff_role - пускает только admin / super_admin
"""

from typing import Optional

from fastapi import Header, HTTPException, Request

from app.runtime import Runtime
from infrastructure.logger import logger


STAFF_ROLES = {"admin", "super_admin"}


def get_runtime(request: Request) -> Runtime:
    return request.app.state.runtime


async def require_staff_role(x_user_role: Optional[str] = Header(default=None)) -> str:
    """
    Подписка на уведомления - только для персонала.

    Роль приходит от auth-прокси в заголовке X-User-Role.
    """
    role = (x_user_role or "").strip().lower()
    if role not in STAFF_ROLES:
        logger.warning("staff_role_required", role=role or None)
        raise HTTPException(403, "Notifications are available to admins only")
    return role
