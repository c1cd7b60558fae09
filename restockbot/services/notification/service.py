"""NotificationDispatcher - fans terminal events out to every configured channel."""

import asyncio
from typing import List, Optional

from loguru import logger

from ...core.config.config_models import NotificationConfig
from ...models.product import ProductTarget
from .base import NotificationChannel
from .channels.sms import TwilioSMSChannel
from .channels.webhook import WebhookChannel
from .message_templates import NotificationTemplates


class NotificationDispatcher:
    """Formats events with ``NotificationTemplates`` and sends them on every channel.

    With no channels configured every call is a no-op. A failing channel is
    logged and never interrupts the bot.
    """

    def __init__(self, channels: Optional[List[NotificationChannel]] = None):
        self._channels: List[NotificationChannel] = [c for c in (channels or []) if c.enabled]
        names = ", ".join(c.name for c in self._channels) or "none"
        logger.info(f"NotificationDispatcher initialized (channels: {names})")

    @classmethod
    def from_config(cls, config: NotificationConfig) -> "NotificationDispatcher":
        channels: List[NotificationChannel] = []
        if config.twilio is not None:
            channels.append(TwilioSMSChannel(config.twilio))
        if config.webhook is not None:
            channels.append(WebhookChannel(config.webhook))
        return cls(channels)

    @property
    def channels(self) -> List[NotificationChannel]:
        return list(self._channels)

    async def send_notification(self, title: str, message: str) -> bool:
        """
        Send through all channels in parallel.

        Returns:
            True if at least one channel succeeded (or none are configured)
        """
        if not self._channels:
            logger.debug(f"No notification channels configured, skipping: {title}")
            return True

        results = await asyncio.gather(
            *(channel.send(title, message) for channel in self._channels),
            return_exceptions=True,
        )

        success = False
        for channel, result in zip(self._channels, results):
            if isinstance(result, BaseException):
                logger.error(f"Notification channel {channel.name} raised: {result}")
            elif result:
                success = True
            else:
                logger.warning(f"Notification channel {channel.name} reported failure")
        return success

    async def notify_in_stock(self, target: ProductTarget) -> bool:
        title, message = NotificationTemplates.in_stock(target)
        return await self.send_notification(title, message)

    async def notify_purchased(self, target: ProductTarget) -> bool:
        title, message = NotificationTemplates.purchased(target)
        return await self.send_notification(title, message)

    async def notify_error(self, error_type: str, details: str) -> bool:
        title, message = NotificationTemplates.error(error_type, details)
        return await self.send_notification(title, message)

    async def notify_bot_started(self, product_count: int, dry_run: bool) -> bool:
        title, message = NotificationTemplates.bot_started(product_count, dry_run)
        return await self.send_notification(title, message)

    async def notify_bot_stopped(self) -> bool:
        title, message = NotificationTemplates.bot_stopped()
        return await self.send_notification(title, message)

    async def close(self) -> None:
        await asyncio.gather(*(c.close() for c in self._channels), return_exceptions=True)
