"""Timing-related constants (timeouts, intervals, delays)."""

from typing import Final


class Timeouts:
    """Timeout values - MILLISECONDS for the page driver, SECONDS noted separately."""

    # Page driver timeouts (milliseconds)
    NAVIGATION: Final[int] = 30_000
    SELECTOR_WAIT: Final[int] = 10_000
    # Sign-in controls wait independently so a failure names the control
    USERNAME_FIELD: Final[int] = 10_000
    PASSWORD_FIELD: Final[int] = 5_000
    SUBMIT_BUTTON: Final[int] = 5_000
    VERIFICATION_INPUT: Final[int] = 3_000
    ADD_TO_CART_BUTTON: Final[int] = 10_000
    CHECKOUT_BUTTON: Final[int] = 10_000
    CHECKOUT_FORM: Final[int] = 15_000
    ORDER_CONFIRMATION: Final[int] = 60_000

    # API/Service timeouts (seconds)
    HTTP_REQUEST_SECONDS: Final[int] = 10
    NOTIFICATION_REQUEST_SECONDS: Final[int] = 10
    MAILBOX_REQUEST_SECONDS: Final[int] = 15


class Intervals:
    """Interval values in SECONDS."""

    PASS_INTERVAL_DEFAULT: Final[int] = 20
    PASS_INTERVAL_MIN: Final[int] = 1
    PASS_INTERVAL_MAX: Final[int] = 3600
    MAILBOX_POLL: Final[float] = 5.0


class Delays:
    """UI interaction delays in SECONDS."""

    MODAL_SETTLE: Final[float] = 1.0
    CHECKOUT_CLICK_RETRY: Final[float] = 0.5
    CONFIRMATION_SETTLE: Final[float] = 5.0


class Retries:
    """Bounded retry counts."""

    CHECKOUT_CLICK_ATTEMPTS: Final[int] = 10
    MAILBOX_POLL_ATTEMPTS: Final[int] = 12
    API_ATTEMPTS: Final[int] = 3
    NOTIFICATION_ATTEMPTS: Final[int] = 3
