"""Configuration models and loader."""

from .config_loader import load_config, parse_config
from .config_models import (
    Address,
    AppConfig,
    CheckoutConfig,
    DriverConfig,
    LoginConfig,
    MailboxConfig,
    NotificationConfig,
    PaymentProfile,
    RetailerConfig,
    SchedulerConfig,
    SelectorConfig,
    TwilioConfig,
    WebhookConfig,
)

__all__ = [
    "Address",
    "AppConfig",
    "CheckoutConfig",
    "DriverConfig",
    "LoginConfig",
    "MailboxConfig",
    "NotificationConfig",
    "PaymentProfile",
    "RetailerConfig",
    "SchedulerConfig",
    "SelectorConfig",
    "TwilioConfig",
    "WebhookConfig",
    "load_config",
    "parse_config",
]
