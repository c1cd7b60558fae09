"""Tests for ProductTarget state transitions."""

import pytest

from restockbot.core.exceptions import InvalidStateTransitionError
from restockbot.models.product import (
    TERMINAL_STATES,
    ProductTarget,
    PurchaseOutcome,
    PurchaseState,
)

ORDER = [
    PurchaseState.STARTED,
    PurchaseState.SIGNED_IN,
    PurchaseState.IN_STOCK,
    PurchaseState.CART_UPDATED,
    PurchaseState.PURCHASED,
]


class TestTransitions:
    """Tests for the transition table."""

    def test_happy_path_advances_in_order(self):
        """Test the full purchase path is accepted."""
        target = ProductTarget(id="123")
        for state in ORDER[1:]:
            target.advance(state)
        assert target.state is PurchaseState.PURCHASED
        assert target.is_terminal

    def test_not_in_stock_branch(self):
        """Test SIGNED_IN may branch to NOT_IN_STOCK."""
        target = ProductTarget(id="123")
        target.advance(PurchaseState.SIGNED_IN)
        target.advance(PurchaseState.NOT_IN_STOCK)
        assert target.is_terminal

    @pytest.mark.parametrize(
        "path,illegal",
        [
            ([], PurchaseState.IN_STOCK),
            ([], PurchaseState.PURCHASED),
            ([PurchaseState.SIGNED_IN], PurchaseState.CART_UPDATED),
            ([PurchaseState.SIGNED_IN, PurchaseState.IN_STOCK], PurchaseState.PURCHASED),
            ([PurchaseState.SIGNED_IN, PurchaseState.IN_STOCK], PurchaseState.SIGNED_IN),
            ([PurchaseState.SIGNED_IN, PurchaseState.NOT_IN_STOCK], PurchaseState.IN_STOCK),
        ],
    )
    def test_skipping_or_going_back_is_rejected(self, path, illegal):
        """Test skipped and backward transitions raise and leave the state untouched."""
        target = ProductTarget(id="123")
        for state in path:
            target.advance(state)
        before = target.state

        with pytest.raises(InvalidStateTransitionError) as exc_info:
            target.advance(illegal)

        assert target.state is before
        assert exc_info.value.recoverable is False
        assert exc_info.value.product_id == "123"

    def test_terminal_states_have_no_exits(self):
        """Test no state can be entered from a terminal state."""
        for terminal in TERMINAL_STATES:
            target = ProductTarget(id="1", state=terminal)
            assert not any(target.can_advance(s) for s in PurchaseState)


class TestPassLifecycle:
    """Tests for outcomes and requeue reset."""

    def test_reset_for_next_pass(self):
        """Test a requeued target starts over with an incremented retry count."""
        target = ProductTarget(id="123")
        target.advance(PurchaseState.SIGNED_IN)
        target.advance(PurchaseState.NOT_IN_STOCK)
        target.finish(PurchaseOutcome.NOT_IN_STOCK)

        target.reset_for_next_pass()

        assert target.state is PurchaseState.STARTED
        assert target.outcome is None
        assert target.retry_count == 1

    def test_failures_are_counted_until_success(self):
        """Test consecutive failures reset on any other outcome."""
        target = ProductTarget(id="123")
        target.finish(PurchaseOutcome.FAILED)
        target.finish(PurchaseOutcome.FAILED)
        assert target.consecutive_failures == 2

        target.finish(PurchaseOutcome.NOT_IN_STOCK)
        assert target.consecutive_failures == 0

    def test_url_target(self):
        """Test URL detection and display name fallback."""
        target = ProductTarget(id="https://www.bestbuy.com/site/x.p?skuId=1")
        assert target.is_url
        assert target.display_name == target.id
        target.name = "Console"
        assert target.display_name == "Console"
        assert not ProductTarget(id="6429440").is_url
