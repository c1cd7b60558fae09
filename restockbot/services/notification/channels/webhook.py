"""Webhook notification channel (Discord-compatible JSON payload)."""

import aiohttp
from loguru import logger

from ....core.config.config_models import WebhookConfig
from ....core.exceptions import NotificationError
from ....core.retry import get_notification_retry
from ..base import NotificationChannel, render_text
from ._http import HttpChannelMixin


class WebhookChannel(HttpChannelMixin, NotificationChannel):
    """Posts ``{"content": text}`` to a webhook URL."""

    def __init__(self, config: WebhookConfig):
        self._config = config
        self._session = None

    @property
    def name(self) -> str:
        return "webhook"

    @property
    def enabled(self) -> bool:
        return bool(self._config.url)

    @get_notification_retry()
    async def _post(self, text: str) -> None:
        session = await self._get_session()
        async with session.post(self._config.url, json={"content": text}) as response:
            if response.status >= 400:
                body = await response.text()
                raise NotificationError(
                    f"Webhook returned HTTP {response.status}: {body[:200]}", channel=self.name
                )

    async def send(self, title: str, message: str) -> bool:
        try:
            await self._post(render_text(title, message))
        except (NotificationError, aiohttp.ClientError, TimeoutError) as e:
            logger.error(f"Webhook notification failed: {e}")
            return False
        logger.info("Triggered webhook successfully")
        return True
