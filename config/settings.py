# config/settings.py
"""
Settings файл - здесь живут все настройки приложения.

Логика: когда приложение запускается, оно читает .env файл
и создает объект 'config' со всеми необходимыми значениями.

Если какое-то значение из .env потеряется или будет неправильного типа,
Pydantic сразу выдаст ошибку и подскажет что не так.
"""

from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import Literal, Optional


class Settings(BaseSettings):
    """
    Основной класс настроек.

    BaseSettings = специальный класс Pydantic который:
    1. Автоматически читает .env файл
    2. Валидирует типы (API_PORT должен быть int и т.д.)
    3. Выдает ошибку если значение не того типа
    """

    # ==========================================
    # TELEGRAM BOT
    # ==========================================
    telegram_bot_token: str = ""
    telegram_bot_username: str = "savor_orders_bot"

    # ==========================================
    # DATABASE
    # ==========================================
    database_url: str = "sqlite+aiosqlite:///./savor.db"

    # ==========================================
    # REDIS / ХРАНИЛИЩЕ УВЕДОМЛЕНИЙ
    # ==========================================
    redis_url: str = "redis://localhost:6379/0"
    notification_storage: Literal["redis", "memory"] = "memory"
    notification_storage_key: str = "savor_notifications"
    max_notifications: int = 50

    # ==========================================
    # REALTIME (лента изменений заказов)
    # ==========================================
    change_feed: Literal["memory", "postgres"] = "memory"
    realtime_channel: str = "orders_changes"
    realtime_subscribe_timeout: float = 10.0
    realtime_retry_delay: float = 5.0
    realtime_retry_multiplier: float = 1.0
    realtime_retry_max_delay: float = 60.0
    realtime_retry_max_attempts: Optional[int] = 120
    # Пусто = слушаем заказы всех компаний
    realtime_company_id: Optional[str] = None

    # ==========================================
    # УВЕДОМЛЕНИЯ
    # ==========================================
    toast_duration_ms: int = 5000
    browser_notification_timeout: float = 5.0
    browser_notification_icon: str = "/savor-logo.png"

    # ==========================================
    # API
    # ==========================================
    api_host: str = "0.0.0.0"
    api_port: int = 8000

    # ==========================================
    # ENVIRONMENT
    # ==========================================
    environment: Literal["development", "production"] = "development"
    debug: bool = True

    # Конфигурация Pydantic
    model_config = SettingsConfigDict(
        env_file=".env",
        extra="ignore",
        case_sensitive=False
    )

    @property
    def async_database_url(self) -> str:
        """Convert standard PostgreSQL URL to asyncpg format"""
        url = self.database_url
        if url.startswith("postgresql://"):
            url = url.replace("postgresql://", "postgresql+asyncpg://", 1)
        if "sslmode=disable" in url:
            url = url.replace("?sslmode=disable", "")
        return url

    @property
    def asyncpg_dsn(self) -> str:
        """DSN для прямого подключения asyncpg (LISTEN/NOTIFY)."""
        return self.async_database_url.replace("postgresql+asyncpg://", "postgresql://", 1)


config = Settings()
