"""Converts a browser session into credentials for the direct API client."""

from typing import Dict, Iterable, Optional

from loguru import logger

from ...constants import DESKTOP_USER_AGENT, IMPERSONATE_PROFILE, Timeouts
from ...core.config.config_models import RetailerConfig
from ...models.session import Cookie
from .client import RetailerApiClient


class SessionBridge:
    """Builds API clients from browser cookies.

    Only cookies on the auth allow-list are forwarded. Names are matched
    case-insensitively; tracking and other ephemeral cookies are dropped.
    """

    def __init__(
        self,
        retailer: RetailerConfig,
        user_agent: str = DESKTOP_USER_AGENT,
        impersonate: str = IMPERSONATE_PROFILE,
        timeout: float = Timeouts.HTTP_REQUEST_SECONDS,
    ):
        self.retailer = retailer
        self.user_agent = user_agent
        self.impersonate = impersonate
        self.timeout = timeout
        self._allowed = frozenset(name.lower() for name in retailer.auth_cookie_names)

    def is_auth_cookie(self, name: str) -> bool:
        return name.lower() in self._allowed

    def filter_cookies(self, cookies: Iterable[Cookie]) -> Dict[str, str]:
        """Reduce a cookie set to the allow-listed auth cookies."""
        return {cookie.name: cookie.value for cookie in cookies if self.is_auth_cookie(cookie.name)}

    def from_cookies(
        self, cookies: Iterable[Cookie], user_agent: Optional[str] = None
    ) -> RetailerApiClient:
        """
        Build an API client carrying only the auth cookies.

        Args:
            cookies: Full browser cookie set
            user_agent: Override the bridge's default user agent

        Returns:
            A new client; the caller owns it and must close it
        """
        auth_cookies = self.filter_cookies(cookies)
        missing = sorted(self._allowed - {name.lower() for name in auth_cookies})
        if missing:
            logger.warning(f"Session is missing auth cookies: {', '.join(missing)}")
        logger.info(f"Building API client with {len(auth_cookies)} auth cookie(s)")
        return RetailerApiClient(
            base_url=self.retailer.base_url,
            cookies=auth_cookies,
            user_agent=user_agent or self.user_agent,
            impersonate=self.impersonate,
            timeout=self.timeout,
        )
