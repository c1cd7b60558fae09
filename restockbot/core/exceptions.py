"""Custom exception classes for RestockBot.

Every error carries a ``recoverable`` flag. The scheduler treats a
recoverable error as fatal for the current product only (the product is
requeued) and a non-recoverable one as fatal for the whole run.
"""

from datetime import datetime, timezone
from typing import Any, Dict, Optional


class RestockBotError(Exception):
    """Base exception for RestockBot."""

    def __init__(
        self, message: str, recoverable: bool = True, details: Optional[Dict[str, Any]] = None
    ):
        """
        Initialize RestockBot error.

        Args:
            message: Error message
            recoverable: Whether the run can continue after this error
            details: Additional error details
        """
        self.message = message
        self.recoverable = recoverable
        self.details = details or {}
        self.timestamp = datetime.now(timezone.utc).isoformat()
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary."""
        return {
            "error": self.__class__.__name__,
            "message": self.message,
            "recoverable": self.recoverable,
            "details": self.details,
            "timestamp": self.timestamp,
        }


# Configuration Errors
class ConfigurationError(RestockBotError):
    """Configuration error occurred."""

    def __init__(
        self,
        message: str = "Configuration error",
        recoverable: bool = False,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, recoverable, details)


class MissingEnvironmentVariableError(ConfigurationError):
    """Raised when a required environment variable is missing."""

    def __init__(self, variable_name: str, config_key: Optional[str] = None):
        message = f"Required environment variable '{variable_name}' is not set"
        if config_key:
            message += f" and {config_key} is empty"
        super().__init__(
            message,
            recoverable=False,
            details={"variable": variable_name, "config_key": config_key},
        )


# Authentication Errors
class AuthenticationError(RestockBotError):
    """Sign-in failed. Always fatal for the run."""

    def __init__(
        self,
        message: str = "Authentication failed",
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, recoverable=False, details=details)


class VerificationError(AuthenticationError):
    """Email verification challenge could not be resolved."""

    def __init__(
        self,
        message: str = "Verification challenge could not be resolved",
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, details=details)


# Page Errors
class PageInteractionError(RestockBotError):
    """A page step failed for the current product."""

    def __init__(
        self,
        message: str = "Page interaction failed",
        recoverable: bool = True,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, recoverable, details)


class ElementNotFoundError(PageInteractionError):
    """An element did not appear within its timeout."""

    def __init__(self, selector: str, timeout_ms: Optional[int] = None):
        self.selector = selector
        self.timeout_ms = timeout_ms
        message = f"Element '{selector}' not found"
        if timeout_ms is not None:
            message += f" within {timeout_ms}ms"
        super().__init__(message, details={"selector": selector, "timeout_ms": timeout_ms})


class CheckoutError(PageInteractionError):
    """Checkout could not be completed."""

    def __init__(
        self,
        message: str = "Checkout failed",
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, recoverable=True, details=details)


class InvalidStateTransitionError(RestockBotError):
    """A purchase state machine attempted an illegal transition."""

    def __init__(self, product_id: str, current: str, requested: str):
        self.product_id = product_id
        self.current = current
        self.requested = requested
        super().__init__(
            f"Illegal transition {current} -> {requested} for product {product_id}",
            recoverable=False,
            details={"product_id": product_id, "current": current, "requested": requested},
        )


# Direct API Errors
class ApiError(RestockBotError):
    """Direct API request failed."""

    def __init__(
        self,
        message: str = "API request failed",
        status_code: Optional[int] = None,
        recoverable: bool = True,
        details: Optional[Dict[str, Any]] = None,
    ):
        self.status_code = status_code
        merged = {"status_code": status_code}
        merged.update(details or {})
        super().__init__(message, recoverable, merged)


class ApiAuthorizationError(ApiError):
    """Session cookies were rejected; the session must be re-established."""

    def __init__(self, message: str = "API authorization failed", status_code: int = 401):
        super().__init__(message, status_code=status_code, recoverable=True)


class ApiSchemaError(ApiError):
    """API response did not match the expected shape."""

    def __init__(self, endpoint: str, reason: str):
        self.endpoint = endpoint
        super().__init__(
            f"Unexpected response shape from {endpoint}: {reason}",
            recoverable=False,
            details={"endpoint": endpoint},
        )


# Collaborator Errors
class MailboxError(RestockBotError):
    """Mailbox could not be read."""

    def __init__(
        self,
        message: str = "Mailbox error",
        recoverable: bool = True,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, recoverable, details)


class NotificationError(RestockBotError):
    """Notification delivery failed."""

    def __init__(self, message: str = "Notification failed", channel: Optional[str] = None):
        super().__init__(message, recoverable=True, details={"channel": channel})


class SchedulerAbortedError(RestockBotError):
    """Too many consecutive product failures; the run stops."""

    def __init__(self, failures: int, last_error: Optional[BaseException] = None):
        self.failures = failures
        message = f"Aborting after {failures} consecutive product failures"
        if last_error is not None:
            message += f" (last error: {last_error})"
        super().__init__(message, recoverable=False, details={"failures": failures})
