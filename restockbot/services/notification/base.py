"""Base notification channel interface."""

from abc import ABC, abstractmethod


def render_text(title: str, message: str) -> str:
    """Single-line text form used by channels without a separate title field."""
    return f"{title}: {message}" if title else message


class NotificationChannel(ABC):
    """Abstract base class for notification channels."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Get channel name."""
        pass

    @property
    @abstractmethod
    def enabled(self) -> bool:
        """Check if channel is enabled."""
        pass

    @abstractmethod
    async def send(self, title: str, message: str) -> bool:
        """
        Send notification through this channel.

        Args:
            title: Notification title
            message: Notification message

        Returns:
            True if successful
        """
        pass

    async def close(self) -> None:
        """Release network resources."""
