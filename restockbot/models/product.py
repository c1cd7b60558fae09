"""Product target and purchase state definitions."""

from dataclasses import dataclass
from enum import Enum
from typing import Dict, FrozenSet, Optional

from ..core.exceptions import InvalidStateTransitionError


class PurchaseState(str, Enum):
    """State of one product's purchase flow within a pass."""

    STARTED = "started"
    SIGNED_IN = "signed_in"
    IN_STOCK = "in_stock"
    NOT_IN_STOCK = "not_in_stock"
    CART_UPDATED = "cart_updated"
    PURCHASED = "purchased"


class PurchaseOutcome(str, Enum):
    """Terminal result of one pass over a product."""

    NOT_IN_STOCK = "not_in_stock"
    PURCHASED = "purchased"
    FAILED = "failed"
    # Dry run: the product was in stock and checkout was rehearsed without placing the order
    IN_STOCK = "in_stock"


_TRANSITIONS: Dict[PurchaseState, FrozenSet[PurchaseState]] = {
    PurchaseState.STARTED: frozenset({PurchaseState.SIGNED_IN}),
    PurchaseState.SIGNED_IN: frozenset({PurchaseState.IN_STOCK, PurchaseState.NOT_IN_STOCK}),
    PurchaseState.IN_STOCK: frozenset({PurchaseState.CART_UPDATED}),
    PurchaseState.CART_UPDATED: frozenset({PurchaseState.PURCHASED}),
    PurchaseState.NOT_IN_STOCK: frozenset(),
    PurchaseState.PURCHASED: frozenset(),
}

TERMINAL_STATES: FrozenSet[PurchaseState] = frozenset(
    {PurchaseState.NOT_IN_STOCK, PurchaseState.PURCHASED}
)


@dataclass
class ProductTarget:
    """A product the bot is tracking."""

    id: str
    state: PurchaseState = PurchaseState.STARTED
    retry_count: int = 0
    outcome: Optional[PurchaseOutcome] = None
    name: Optional[str] = None
    last_price: Optional[float] = None
    consecutive_failures: int = 0

    @property
    def is_url(self) -> bool:
        return self.id.startswith(("http://", "https://"))

    @property
    def display_name(self) -> str:
        return self.name or self.id

    @property
    def is_terminal(self) -> bool:
        return self.state in TERMINAL_STATES

    def can_advance(self, new_state: PurchaseState) -> bool:
        return new_state in _TRANSITIONS[self.state]

    def advance(self, new_state: PurchaseState) -> None:
        """
        Move to ``new_state``.

        Raises:
            InvalidStateTransitionError: If the transition is not allowed
        """
        if not self.can_advance(new_state):
            raise InvalidStateTransitionError(self.id, self.state.value, new_state.value)
        self.state = new_state

    def finish(self, outcome: PurchaseOutcome) -> None:
        self.outcome = outcome
        if outcome is PurchaseOutcome.FAILED:
            self.consecutive_failures += 1
        else:
            self.consecutive_failures = 0

    def reset_for_next_pass(self) -> None:
        """Return to STARTED before the target is requeued."""
        self.state = PurchaseState.STARTED
        self.outcome = None
        self.retry_count += 1
