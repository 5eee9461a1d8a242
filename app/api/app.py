# app/api/app.py
"""
FastAPI приложение Savor.

Здесь живут:
- заказы (оформление и кнопка "дальше" у оператора)
- уведомления в приложении (тосты, колокольчик, поток для браузера)
- Telegram (webhook и ручная отправка уведомления)
"""

from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI

from app.api import api_router
from app.runtime import Runtime
from infrastructure.database.base import close_db, init_db
from infrastructure.logger import logger


def create_app(runtime: Optional[Runtime] = None) -> FastAPI:
    """
    Собираем приложение.

    runtime можно передать снаружи (тесты, main.py), иначе
    создаётся из настроек.
    """
    runtime = runtime or Runtime()

    # ==========================================
    # 🔄 LIFESPAN
    # ==========================================

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("app_startup", message="🟢 Инициализация приложения")

        if runtime.engine is not None:
            await init_db(runtime.engine)
            logger.info("database_initialized", message="✅ База данных готова")

        await runtime.start()

        try:
            yield
        finally:
            logger.info("app_shutdown", message="🔴 Выключение приложения")
            await runtime.stop()
            if runtime.engine is not None:
                await close_db(runtime.engine)
                logger.info("database_closed", message="✅ База данных закрыта")

    app = FastAPI(
        title="Savor API",
        description="Заказы, уведомления и Telegram",
        version="1.0.0",
        lifespan=lifespan,
    )
    app.state.runtime = runtime

    # ==========================================
    # ENDPOINT: Health check
    # ==========================================

    @app.get("/health")
    async def health_check():
        return {
            "status": "ok",
            "service": "savor",
            "realtime_channels": len(runtime.change_feed.active_channels),
        }

    app.include_router(api_router, prefix="/api")
    return app
