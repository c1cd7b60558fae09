"""Direct retailer API access."""

from .client import RetailerApiClient
from .session_bridge import SessionBridge

__all__ = ["RetailerApiClient", "SessionBridge"]
