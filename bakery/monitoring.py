"""Monitoring utilities: notifications and error tracking."""

from __future__ import annotations

import logging
from typing import Protocol

import sentry_sdk
from aiogram import Bot

from .config import get_settings

logger = logging.getLogger(__name__)


def init_sentry() -> bool:
    """Initialize Sentry if a DSN is configured."""
    settings = get_settings()
    if not settings.sentry_dsn:
        return False
    sentry_sdk.init(
        dsn=settings.sentry_dsn,
        environment=settings.environment,
        traces_sample_rate=0.0,
    )
    logger.info("Sentry initialized (environment=%s)", settings.environment)
    return True


def capture_exception(error: Exception, context: dict | None = None) -> None:
    """Capture exception to Sentry if configured."""
    settings = get_settings()
    if settings.sentry_dsn:
        with sentry_sdk.new_scope() as scope:
            if context:
                for key, value in context.items():
                    scope.set_extra(key, value)
            sentry_sdk.capture_exception(error)
    logger.error(
        "error_captured",
        extra={"error_type": type(error).__name__, "error": str(error)},
        exc_info=error,
    )


class Notifier(Protocol):
    """Non-blocking, user-facing notification channel (toast-style)."""

    async def notify(self, title: str, description: str, *, destructive: bool = False) -> None: ...


class LogNotifier:
    """Writes notifications to the log."""

    async def notify(self, title: str, description: str, *, destructive: bool = False) -> None:
        level = logging.WARNING if destructive else logging.INFO
        logger.log(level, "%s: %s", title, description)


class TelegramNotifier:
    """Sends notifications to the admin chats; delivery failures are only logged."""

    def __init__(self, bot: Bot, chat_ids: list[int]):
        self._bot = bot
        self._chat_ids = chat_ids

    async def notify(self, title: str, description: str, *, destructive: bool = False) -> None:
        prefix = "🚨" if destructive else "ℹ️"
        text = f"{prefix} {title}\n{description}"
        for chat_id in self._chat_ids:
            try:
                await self._bot.send_message(chat_id, text)
            except Exception as e:
                logger.warning("notify_send_failed", extra={"chat_id": chat_id, "error": str(e)})

    async def close(self) -> None:
        await self._bot.session.close()


def create_notifier() -> Notifier:
    """Telegram when a bot token and admin chats are configured, log otherwise."""
    settings = get_settings()
    if settings.telegram_enabled:
        return TelegramNotifier(Bot(token=settings.telegram_bot_token), settings.admin_telegram_ids)
    return LogNotifier()
