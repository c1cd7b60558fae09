"""Notification channels and dispatcher."""

from .base import NotificationChannel
from .channels import TwilioSMSChannel, WebhookChannel
from .message_templates import NotificationTemplates
from .service import NotificationDispatcher

__all__ = [
    "NotificationChannel",
    "NotificationDispatcher",
    "NotificationTemplates",
    "TwilioSMSChannel",
    "WebhookChannel",
]
