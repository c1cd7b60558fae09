"""Per-product purchase state machine."""

from typing import Optional

from loguru import logger

from ...core.exceptions import PageInteractionError, RestockBotError
from ...models.product import ProductTarget, PurchaseOutcome, PurchaseState
from ..api.client import RetailerApiClient
from .checkout import CheckoutFlow, CheckoutStrategy, StepHook


class PurchaseStateMachine:
    """Drives one product from SIGNED_IN to a terminal outcome for the current pass.

    ``STARTED -> SIGNED_IN -> IN_STOCK | NOT_IN_STOCK -> CART_UPDATED -> PURCHASED``

    A dry run stops at CART_UPDATED with outcome ``IN_STOCK``. Any error
    marks the target FAILED and is re-raised for the scheduler; errors that
    are not ``RestockBotError`` are raised as ``PageInteractionError``.
    """

    def __init__(
        self,
        strategy: CheckoutStrategy,
        flow: CheckoutFlow,
        verifier: Optional[StepHook] = None,
        verify_each_step: bool = True,
    ):
        """
        Initialize the state machine.

        Args:
            strategy: Stock check and add-to-cart implementation
            flow: Browser checkout flow (fulfillment and payment)
            verifier: Resolves a verification challenge if one is shown
            verify_each_step: Run ``verifier`` before every step
        """
        self.strategy = strategy
        self.flow = flow
        self.verifier = verifier
        self.verify_each_step = verify_each_step
        if verify_each_step and verifier is not None:
            self.flow.before_step = verifier

    async def _before_step(self) -> None:
        if self.verify_each_step and self.verifier is not None:
            await self.verifier()

    async def run(self, target: ProductTarget, api: RetailerApiClient) -> PurchaseOutcome:
        """
        Run one pass over ``target``.

        Args:
            target: Product in state STARTED
            api: Client bound to the current session

        Returns:
            NOT_IN_STOCK, PURCHASED or IN_STOCK (dry run)

        Raises:
            RestockBotError: The step that failed; the target's outcome is FAILED
        """
        try:
            return await self._run(target, api)
        except RestockBotError:
            target.finish(PurchaseOutcome.FAILED)
            raise
        except Exception as e:
            target.finish(PurchaseOutcome.FAILED)
            raise PageInteractionError(
                f"{target.id}: unexpected error in state {target.state.value}: {e}",
                details={"product_id": target.id, "state": target.state.value},
            ) from e

    async def _run(self, target: ProductTarget, api: RetailerApiClient) -> PurchaseOutcome:
        target.advance(PurchaseState.SIGNED_IN)

        await self._before_step()
        status = await self.strategy.check_stock(target, api)
        if status.name:
            target.name = status.name
        if status.price is not None:
            target.last_price = status.price

        if not status.in_stock:
            target.advance(PurchaseState.NOT_IN_STOCK)
            target.finish(PurchaseOutcome.NOT_IN_STOCK)
            logger.info(f"{target.display_name} is not in stock")
            return PurchaseOutcome.NOT_IN_STOCK

        target.advance(PurchaseState.IN_STOCK)
        price_text = f"${target.last_price:.2f}" if target.last_price is not None else "unknown"
        logger.success(f"{target.display_name} is in stock (price: {price_text})")

        await self._before_step()
        await self.strategy.add_to_cart(target, api)
        target.advance(PurchaseState.CART_UPDATED)

        placed = await self.flow.run(target, api)
        if not placed:
            target.finish(PurchaseOutcome.IN_STOCK)
            return PurchaseOutcome.IN_STOCK

        target.advance(PurchaseState.PURCHASED)
        target.finish(PurchaseOutcome.PURCHASED)
        return PurchaseOutcome.PURCHASED
