# infrastructure/logger.py
"""
📝 ЛОГИРОВАНИЕ

Структурированные логи через structlog.
Каждое событие = имя в snake_case + именованный контекст:

    logger.info("order_created", order_id=order.id, total=150)
"""

import logging
import sys

import structlog


def setup_logging(debug: bool = False, json_logs: bool = True):
    """
    Инициализирует логирование.

    Вызывается один раз при старте процесса (API или бот).
    """

    renderer = (
        structlog.processors.JSONRenderer()
        if json_logs
        else structlog.dev.ConsoleRenderer()
    )

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            renderer,
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    # structlog пишет через стандартный logging
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=logging.DEBUG if debug else logging.INFO,
    )

    # aiogram и uvicorn слишком болтливы на DEBUG
    logging.getLogger("aiogram.event").setLevel(logging.WARNING)


logger = structlog.get_logger()
