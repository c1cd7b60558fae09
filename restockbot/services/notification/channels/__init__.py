"""Notification channel implementations."""

from .sms import TwilioSMSChannel
from .webhook import WebhookChannel

__all__ = ["TwilioSMSChannel", "WebhookChannel"]
