"""RestockBot - automated stock monitoring and checkout for retail product drops."""

import importlib as _importlib
from typing import TYPE_CHECKING, Any

__version__ = "1.0.0"
__license__ = "MIT"

if TYPE_CHECKING:
    from .core.config.config_loader import load_config as load_config
    from .core.logger import setup_structured_logging as setup_structured_logging
    from .services.api.session_bridge import SessionBridge as SessionBridge
    from .services.bot.restock_bot import RestockBot as RestockBot
    from .services.bot.scheduler import Scheduler as Scheduler
    from .services.notification.service import NotificationDispatcher as NotificationDispatcher

# Explicit lazy-loading map: name -> (module_path, attribute_name)
_LAZY_MODULE_MAP = {
    "load_config": ("restockbot.core.config.config_loader", "load_config"),
    "setup_structured_logging": ("restockbot.core.logger", "setup_structured_logging"),
    "SessionBridge": ("restockbot.services.api.session_bridge", "SessionBridge"),
    "RestockBot": ("restockbot.services.bot.restock_bot", "RestockBot"),
    "Scheduler": ("restockbot.services.bot.scheduler", "Scheduler"),
    "NotificationDispatcher": (
        "restockbot.services.notification.service",
        "NotificationDispatcher",
    ),
}

__all__ = list(_LAZY_MODULE_MAP.keys())


def __getattr__(name: str) -> Any:
    """Lazy import with explicit mapping - importlib based."""
    if name in _LAZY_MODULE_MAP:
        module_path, attr_name = _LAZY_MODULE_MAP[name]
        module = _importlib.import_module(module_path)
        attr = getattr(module, attr_name)
        globals()[name] = attr
        return attr
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
