"""Bot services: authentication, state machine, scheduling and orchestration."""

from .auth_service import AuthSession
from .checkout import (
    ApiCheckoutStrategy,
    BrowserCheckoutStrategy,
    CheckoutFlow,
    CheckoutStrategy,
    StockStatus,
)
from .restock_bot import RestockBot
from .scheduler import Scheduler
from .state_machine import PurchaseStateMachine
from .worker_pool import WorkerPool, partition

__all__ = [
    "ApiCheckoutStrategy",
    "AuthSession",
    "BrowserCheckoutStrategy",
    "CheckoutFlow",
    "CheckoutStrategy",
    "PurchaseStateMachine",
    "RestockBot",
    "Scheduler",
    "StockStatus",
    "WorkerPool",
    "partition",
]
