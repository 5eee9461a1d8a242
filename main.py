# main.py
"""
🚀 ГЛАВНЫЙ ФАЙЛ ЗАПУСКА

Режимы:
    python main.py          - API (заказы, уведомления, Telegram webhook)
    python main.py bot      - только бот (long polling)
    python main.py all      - API и бот в одном процессе
"""

import asyncio
import sys

import uvicorn

from app.api.app import create_app
from app.runtime import Runtime
from config.settings import config
from infrastructure.database.base import close_db, init_db
from infrastructure.logger import logger, setup_logging


MODES = ("api", "bot", "all")


# ==========================================
# 🤖 BOT (long polling)
# ==========================================

async def run_bot(runtime: Runtime):
    """
    Слушаем Telegram через getUpdates.

    Тот же роутер, что и у /api/telegram/webhook, поэтому
    webhook и polling одновременно включать нельзя.
    """
    bot = runtime.bot
    dp = runtime.bot_dispatcher

    # Вебхук и polling взаимоисключающие
    await bot.delete_webhook(drop_pending_updates=False)

    try:
        me = await bot.get_me()
        logger.info(
            "polling_started",
            message="👂 Бот начинает слушать сообщения...",
            bot_username=f"@{me.username}"
        )
        await dp.start_polling(bot, handle_signals=False)

    except asyncio.CancelledError:
        logger.info("polling_cancelled", message="⛔ Polling отменён")
        raise

    except Exception as e:
        logger.error("bot_polling_error", error=str(e), error_type=type(e).__name__)
        raise


# ==========================================
# 🌐 API
# ==========================================

async def run_api(runtime: Runtime):
    server = uvicorn.Server(
        uvicorn.Config(
            create_app(runtime),
            host=config.api_host,
            port=config.api_port,
            log_level="debug" if config.debug else "info",
            access_log=True,
        )
    )
    logger.info(
        "fastapi_starting",
        message=f"🌐 FastAPI запускается на {config.api_host}:{config.api_port}"
    )
    await server.serve()


# ==========================================
# 🚀 ГЛАВНАЯ ФУНКЦИЯ
# ==========================================

async def main(mode: str = "api"):
    setup_logging(debug=config.debug, json_logs=config.environment != "development")
    logger.info("application_start", message="🟢 Приложение стартует", mode=mode)

    runtime = Runtime()

    if mode in ("bot", "all") and runtime.bot is None:
        logger.error("bot_token_missing", message="❌ TELEGRAM_BOT_TOKEN не установлен в .env")
        raise ValueError("TELEGRAM_BOT_TOKEN не найден в переменных окружения")

    if mode == "api":
        await run_api(runtime)
        return

    if mode == "bot":
        # Без API: только регистрация номеров, своя инициализация БД
        await init_db(runtime.engine)
        try:
            await run_bot(runtime)
        finally:
            await runtime.bot.session.close()
            await close_db(runtime.engine)
            logger.info("bot_shutdown", message="🔴 Бот выключен")
        return

    # mode == "all": API поднимает runtime в lifespan, бот работает рядом
    await asyncio.gather(
        run_api(runtime),
        run_bot(runtime),
    )


# ==========================================
# 📌 ENTRY POINT
# ==========================================

if __name__ == "__main__":
    mode = sys.argv[1] if len(sys.argv) > 1 else "api"
    if mode not in MODES:
        sys.exit(f"Unknown mode: {mode}. Use one of: {', '.join(MODES)}")

    try:
        asyncio.run(main(mode))
    except KeyboardInterrupt:
        logger.info("app_interrupted", message="⛔ Приложение остановлено пользователем (Ctrl+C)")
    finally:
        logger.info("app_final_shutdown", message="👋 Приложение полностью выключено")
