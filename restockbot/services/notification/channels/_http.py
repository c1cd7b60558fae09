"""Shared aiohttp session handling for HTTP-based channels."""

from typing import Optional

import aiohttp

from ....constants import Timeouts


class HttpChannelMixin:
    """Lazily creates one ``aiohttp.ClientSession`` per channel."""

    _session: Optional[aiohttp.ClientSession] = None

    async def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            timeout = aiohttp.ClientTimeout(total=Timeouts.NOTIFICATION_REQUEST_SECONDS)
            self._session = aiohttp.ClientSession(timeout=timeout)
        return self._session

    async def close(self) -> None:
        if self._session is not None and not self._session.closed:
            await self._session.close()
        self._session = None
