"""Authenticated session produced by sign-in."""

import time
from dataclasses import dataclass, field
from typing import Dict, Tuple


@dataclass(frozen=True)
class Cookie:
    """Browser cookie."""

    name: str
    value: str
    domain: str = ""
    path: str = "/"


@dataclass(frozen=True)
class Session:
    """Cookie set captured from the browser after a successful sign-in."""

    cookies: Tuple[Cookie, ...]
    created_at: float = field(default_factory=time.time)

    @property
    def age_seconds(self) -> float:
        return time.time() - self.created_at

    def cookie_map(self) -> Dict[str, str]:
        return {cookie.name: cookie.value for cookie in self.cookies}
