"""Retry strategies for different exception types."""

import logging as stdlib_logging
from typing import Tuple, Type, Union

import aiohttp
from tenacity import (
    AsyncRetrying,
    before_sleep_log,
    retry,
    retry_if_exception,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
    wait_fixed,
    wait_random,
)

from ..constants import Retries
from .exceptions import (
    ApiAuthorizationError,
    ApiError,
    ApiSchemaError,
    MailboxError,
    PageInteractionError,
)

# Stdlib logger needed for tenacity's before_sleep_log
_stdlib_logger = stdlib_logging.getLogger(__name__)


def _make_retry(
    attempts: int,
    wait_strategy: object,
    retry_condition: object,
) -> object:
    """
    Factory for creating retry decorators with consistent configuration.

    Args:
        attempts: Maximum number of attempts
        wait_strategy: Tenacity wait strategy
        retry_condition: Tenacity retry predicate

    Returns:
        Configured retry decorator
    """
    return retry(
        stop=stop_after_attempt(attempts),
        wait=wait_strategy,
        retry=retry_condition,
        before_sleep=before_sleep_log(_stdlib_logger, stdlib_logging.WARNING),
        reraise=True,
    )


def is_transient_api_error(exc: BaseException) -> bool:
    """Transport failures, rate limiting and 5xx responses are worth retrying."""
    if isinstance(exc, (ApiAuthorizationError, ApiSchemaError)):
        return False
    if not isinstance(exc, ApiError):
        return False
    status = exc.status_code
    return status is None or status == 429 or status >= 500


def get_api_retry():
    """Retry strategy for direct API calls."""
    return _make_retry(
        attempts=Retries.API_ATTEMPTS,
        wait_strategy=wait_exponential(multiplier=0.5, min=0.5, max=5) + wait_random(0, 0.5),
        retry_condition=retry_if_exception(is_transient_api_error),
    )


def get_mailbox_retry():
    """Retry strategy for mailbox HTTP calls."""
    return _make_retry(
        attempts=3,
        wait_strategy=wait_exponential(multiplier=1, min=1, max=8),
        retry_condition=retry_if_exception_type((aiohttp.ClientError, TimeoutError)),
    )


def get_notification_retry():
    """Retry strategy for notification channel HTTP calls."""
    return _make_retry(
        attempts=Retries.NOTIFICATION_ATTEMPTS,
        wait_strategy=wait_exponential(multiplier=1, min=1, max=8) + wait_random(0, 1),
        retry_condition=retry_if_exception_type(
            (aiohttp.ClientError, ConnectionError, TimeoutError)
        ),
    )


def click_retrying(
    attempts: int,
    delay: float,
    exception_types: Union[Type[Exception], Tuple[Type[Exception], ...]] = PageInteractionError,
) -> AsyncRetrying:
    """
    Async retry controller for page clicks that may fail transiently.

    Usage:
        async for attempt in click_retrying(5, 0.5):
            with attempt:
                await click()
    """
    return AsyncRetrying(
        stop=stop_after_attempt(attempts),
        wait=wait_fixed(delay),
        retry=retry_if_exception_type(exception_types),
        before_sleep=before_sleep_log(_stdlib_logger, stdlib_logging.WARNING),
        reraise=True,
    )


def mailbox_polling(attempts: int, delay: float) -> AsyncRetrying:
    """Async retry controller for waiting on a verification email to arrive."""
    return AsyncRetrying(
        stop=stop_after_attempt(attempts),
        wait=wait_fixed(delay),
        retry=retry_if_exception_type(MailboxError),
        reraise=True,
    )


