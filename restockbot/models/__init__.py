"""Domain models."""

from .cart import (
    Cart,
    CartEntry,
    CartFulfillment,
    CartLineItem,
    CartState,
    InStorePickupFulfillment,
    ItemInfo,
    ItemPrice,
    PickupStore,
    ShippingFulfillment,
)
from .product import TERMINAL_STATES, ProductTarget, PurchaseOutcome, PurchaseState
from .session import Cookie, Session

__all__ = [
    "Cart",
    "CartEntry",
    "CartFulfillment",
    "CartLineItem",
    "CartState",
    "Cookie",
    "InStorePickupFulfillment",
    "ItemInfo",
    "ItemPrice",
    "PickupStore",
    "ProductTarget",
    "PurchaseOutcome",
    "PurchaseState",
    "Session",
    "ShippingFulfillment",
    "TERMINAL_STATES",
]
