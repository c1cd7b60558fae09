"""Page driver interface and the Playwright adapter."""

from .base import PageDriver
from .playwright_driver import PlaywrightDriver

__all__ = ["PageDriver", "PlaywrightDriver"]
