"""SMS notification channel backed by the Twilio REST API."""

import aiohttp
from loguru import logger

from ....core.config.config_models import TwilioConfig
from ....core.exceptions import NotificationError
from ....core.retry import get_notification_retry
from ..base import NotificationChannel, render_text
from ._http import HttpChannelMixin

TWILIO_API_URL = "https://api.twilio.com/2010-04-01/Accounts/{sid}/Messages.json"


class TwilioSMSChannel(HttpChannelMixin, NotificationChannel):
    """Sends a text message to a single phone number."""

    def __init__(self, config: TwilioConfig):
        self._config = config
        self._session = None

    @property
    def name(self) -> str:
        return "sms"

    @property
    def enabled(self) -> bool:
        return bool(self._config.sid and self._config.to_number)

    @get_notification_retry()
    async def _post(self, body: str) -> None:
        session = await self._get_session()
        auth = aiohttp.BasicAuth(self._config.sid, self._config.auth_token.get_secret_value())
        form = {
            "Body": body,
            "To": self._config.to_number,
            "From": self._config.from_number,
        }
        url = TWILIO_API_URL.format(sid=self._config.sid)
        async with session.post(url, data=form, auth=auth) as response:
            if response.status >= 400:
                text = await response.text()
                raise NotificationError(
                    f"Twilio returned HTTP {response.status}: {text[:200]}", channel=self.name
                )

    async def send(self, title: str, message: str) -> bool:
        """
        Send an SMS.

        Returns:
            True if Twilio accepted the message
        """
        try:
            await self._post(render_text(title, message))
        except (NotificationError, aiohttp.ClientError, TimeoutError) as e:
            logger.error(f"SMS notification failed: {e}")
            return False
        logger.info("Sent notification SMS successfully")
        return True
