# infrastructure/database/base.py
"""
🗄️ ПОДКЛЮЧЕНИЕ К БД

Движок SQLAlchemy + фабрика сессий.

Пример:
    async with async_session_maker() as session:
        repo = OrderRepository(session)
        order = await repo.get_by_id(order_id)
"""

from typing import List, Optional

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from config.settings import config
from infrastructure.database.models import Base
from infrastructure.logger import logger


engine = create_async_engine(
    config.async_database_url,
    echo=False,
    pool_pre_ping=True,
)

async_session_maker = async_sessionmaker(
    engine,
    expire_on_commit=False,
    class_=AsyncSession,
)


# ==========================================
# ТРИГГЕР ДЛЯ LISTEN/NOTIFY (только PostgreSQL)
# ==========================================

# Любая запись в orders (из API, из админки, руками из psql)
# отправляет JSON {type, table, new, old} в канал REALTIME_CHANNEL.
NOTIFY_FUNCTION_SQL = """
CREATE OR REPLACE FUNCTION notify_order_change() RETURNS trigger AS $$
BEGIN
    PERFORM pg_notify(
        {channel},
        CAST(json_build_object(
            'type', TG_OP,
            'table', TG_TABLE_NAME,
            'new', row_to_json(NEW),
            'old', CASE WHEN TG_OP = 'UPDATE' THEN row_to_json(OLD) ELSE NULL END
        ) AS text)
    );
    RETURN NEW;
END;
$$ LANGUAGE plpgsql
"""


def order_changes_trigger_sql(pg_channel: str) -> List[str]:
    """
    Пример:
        order_changes_trigger_sql("orders_changes")  # pg_notify('orders_changes', ...)
    """
    channel_literal = "'" + pg_channel.replace("'", "''") + "'"

    return [
        NOTIFY_FUNCTION_SQL.format(channel=channel_literal),
        "DROP TRIGGER IF EXISTS orders_change_trigger ON orders",
        """
        CREATE TRIGGER orders_change_trigger
        AFTER INSERT OR UPDATE ON orders
        FOR EACH ROW EXECUTE FUNCTION notify_order_change()
        """,
    ]


async def init_db(db_engine: AsyncEngine = engine, pg_channel: Optional[str] = None):
    """Создаёт таблицы (и триггер ленты изменений для PostgreSQL)."""
    pg_channel = pg_channel or config.realtime_channel

    async with db_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

        if db_engine.dialect.name == "postgresql":
            for statement in order_changes_trigger_sql(pg_channel):
                await conn.exec_driver_sql(statement)
            logger.info("order_change_trigger_installed", pg_channel=pg_channel)

    logger.info("database_tables_ready", dialect=db_engine.dialect.name)


async def close_db(db_engine: AsyncEngine = engine):
    """Закрывает пул соединений."""
    await db_engine.dispose()
