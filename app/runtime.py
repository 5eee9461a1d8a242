# app/runtime.py
"""
🧩 СБОРКА ВСЕХ КОМПОНЕНТОВ

Здесь создаются и связываются между собой:

    лента изменений → RealtimeOrderListener → OrderEventBus
                                                 ├── NotificationDispatcher → тосты / браузер / колокольчик
                                                 └── TelegramRelay → Bot API

Никаких глобальных синглтонов: всё, что нужно компоненту,
передаётся ему в конструктор.
"""

from typing import Optional

from aiogram import Bot
from sqlalchemy.ext.asyncio import AsyncEngine, async_sessionmaker

from app.bot.dispatcher import create_bot, create_dispatcher
from app.models import Toast
from app.services.browser import BrowserNotifier, SseBroadcaster
from app.services.dispatcher import NotificationDispatcher
from app.services.events import OrderEventBus
from app.services.notification_store import NotificationStore
from app.services.orders import OrderService
from app.services.realtime import RealtimeOrderListener, RetryPolicy
from app.services.telegram import TelegramNotifier, TelegramRelay
from app.services.toasts import ToastQueue
from config.settings import Settings, config
from infrastructure.database.base import async_session_maker, engine as default_engine
from infrastructure.logger import logger
from infrastructure.realtime import ChangeFeed, create_change_feed
from infrastructure.storage import KeyValueStorage, RedisKeyValueStorage, create_storage


class Runtime:

    def __init__(
        self,
        settings: Settings = config,
        session_maker: async_sessionmaker = async_session_maker,
        engine: Optional[AsyncEngine] = default_engine,
        storage: Optional[KeyValueStorage] = None,
        change_feed: Optional[ChangeFeed] = None,
        bot: Optional[Bot] = None,
        scheduler=None,
    ):
        self.settings = settings
        self.session_maker = session_maker
        self.engine = engine

        self.storage = storage or create_storage(settings.notification_storage)
        self.change_feed = change_feed or create_change_feed(settings.change_feed)
        self.bus = OrderEventBus()

        # ---------- поверхности уведомлений ----------
        self.broadcaster = SseBroadcaster()
        self.browser = BrowserNotifier(self.broadcaster, scheduler=scheduler)
        self.toasts = ToastQueue(
            scheduler=scheduler,
            default_duration=settings.toast_duration_ms,
            listener=self._mirror_toast,
        )
        self.store = NotificationStore(
            self.storage,
            key=settings.notification_storage_key,
            max_items=settings.max_notifications,
        )
        self.dispatcher = NotificationDispatcher(
            toast_sink=self.toasts.show_toast,
            store_sink=self.store.add,
            browser=self.browser,
            icon=settings.browser_notification_icon,
            browser_timeout=settings.browser_notification_timeout,
        )

        # ---------- заказы и realtime ----------
        self.orders = OrderService(session_maker, change_feed=self.change_feed)
        self.listener = RealtimeOrderListener(
            self.change_feed,
            self.bus,
            browser=self.browser,
            retry_policy=RetryPolicy.from_settings(settings),
            scheduler=scheduler,
            company_id=settings.realtime_company_id,
        )

        # ---------- Telegram ----------
        if bot is None and settings.telegram_bot_token:
            bot = create_bot(settings.telegram_bot_token)
        self.bot = bot
        self.telegram_relay: Optional[TelegramRelay] = None
        if bot is not None:
            self.telegram_relay = TelegramRelay(TelegramNotifier(bot), session_maker)
        self._bot_dispatcher = None

    @property
    def bot_dispatcher(self):
        """Диспетчер aiogram (создаётся при первом обращении: webhook или polling)."""
        if self.bot is None:
            return None
        if self._bot_dispatcher is None:
            self._bot_dispatcher = create_dispatcher(self.session_maker)
        return self._bot_dispatcher

    def _mirror_toast(self, event: str, toast: Toast) -> None:
        self.broadcaster.broadcast(event, toast.model_dump())

    async def start(self) -> None:
        if isinstance(self.storage, RedisKeyValueStorage) and not await self.storage.ping():
            logger.warning("notification_storage_unavailable", backend="redis")

        await self.store.load()

        self.bus.subscribe("in_app", self.dispatcher.dispatch)
        if self.telegram_relay is not None:
            self.bus.subscribe("telegram", self.telegram_relay.handle)
        else:
            logger.warning(
                "telegram_not_configured",
                message="TELEGRAM_BOT_TOKEN не задан, уведомления в Telegram выключены"
            )

        await self.listener.start()
        logger.info("runtime_started", handlers=self.bus.handler_names)

    async def stop(self) -> None:
        await self.listener.stop()
        await self.change_feed.close()
        await self.store.flush()
        await self.storage.close()

        if self.bot is not None:
            await self.bot.session.close()

        logger.info("runtime_stopped")
