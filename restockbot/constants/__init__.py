"""Constants for RestockBot.

All classes and constants can be imported directly from this package:
    from restockbot.constants import Timeouts, Endpoints, Selectors
"""

from .retailer import (
    ADD_TO_CART_LABEL,
    AUTH_COOKIE_NAMES,
    BASE_URL,
    CART_URL,
    DESKTOP_USER_AGENT,
    HEADLESS_LAUNCH_ARGS,
    IMPERSONATE_PROFILE,
    SIGN_IN_URL,
    VERIFICATION_CODE_PATTERN,
    VERIFICATION_SENDER,
    Endpoints,
    Selectors,
)
from .timing import Delays, Intervals, Retries, Timeouts

__all__ = [
    "ADD_TO_CART_LABEL",
    "AUTH_COOKIE_NAMES",
    "BASE_URL",
    "CART_URL",
    "DESKTOP_USER_AGENT",
    "HEADLESS_LAUNCH_ARGS",
    "IMPERSONATE_PROFILE",
    "SIGN_IN_URL",
    "VERIFICATION_CODE_PATTERN",
    "VERIFICATION_SENDER",
    "Delays",
    "Endpoints",
    "Intervals",
    "Retries",
    "Selectors",
    "Timeouts",
]
