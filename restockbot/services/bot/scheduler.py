"""Queue scheduler - drives the purchase state machine over all targets."""

import asyncio
from collections import deque
from typing import Deque, Iterable, List, Optional, Tuple

from loguru import logger

from ...core.config.config_models import LoginConfig, SchedulerConfig
from ...core.exceptions import ApiAuthorizationError, RestockBotError, SchedulerAbortedError
from ...core.logger import product_id_ctx
from ...models.product import ProductTarget, PurchaseOutcome, PurchaseState
from ...models.session import Session
from ...utils.decorators import timed_async
from ...utils.masking import mask_email
from ..api.client import RetailerApiClient
from ..api.session_bridge import SessionBridge
from ..notification.service import NotificationDispatcher
from .auth_service import AuthSession
from .state_machine import PurchaseStateMachine

PassResult = List[Tuple[ProductTarget, PurchaseOutcome]]


class Scheduler:
    """FIFO queue of product targets processed in fixed-size passes.

    Each pass handles exactly the targets queued when it starts, so no
    product is checked twice before every other product is checked once.
    One session (and its API client) serves every product until it expires
    or the API rejects it.
    """

    def __init__(
        self,
        *,
        targets: Iterable[ProductTarget],
        auth: AuthSession,
        bridge: SessionBridge,
        machine: PurchaseStateMachine,
        notifier: NotificationDispatcher,
        credentials: LoginConfig,
        interval: float,
        policy: Optional[SchedulerConfig] = None,
        shutdown_event: Optional[asyncio.Event] = None,
        user_agent: Optional[str] = None,
        name: str = "main",
    ):
        self.queue: Deque[ProductTarget] = deque(targets)
        self.auth = auth
        self.bridge = bridge
        self.machine = machine
        self.notifier = notifier
        self.credentials = credentials
        self.interval = interval
        self.policy = policy or SchedulerConfig()
        self.shutdown_event = shutdown_event or asyncio.Event()
        self.user_agent = user_agent
        self.name = name

        self.session: Optional[Session] = None
        self.api: Optional[RetailerApiClient] = None
        self.passes = 0
        self.completed: List[ProductTarget] = []
        self.dropped: List[ProductTarget] = []
        self._consecutive_failures = 0

    @property
    def pending(self) -> int:
        return len(self.queue)

    async def establish_session(self) -> RetailerApiClient:
        """
        Sign in, build a fresh API client and empty the cart.

        Raises:
            AuthenticationError: If sign-in fails
        """
        await self.close()
        account = mask_email(self.credentials.username)
        logger.info(f"[{self.name}] Establishing session for {account}")
        self.session = await self.auth.sign_in(
            self.credentials.username, self.credentials.password.get_secret_value()
        )
        self.api = self.bridge.from_cookies(self.session.cookies, self.user_agent)

        if await self.api.get_cart_count() > 0:
            await self.api.clear_cart()
        return self.api

    def _session_expired(self) -> bool:
        if self.session is None or self.api is None:
            return True
        max_age = self.policy.session_max_age
        return max_age is not None and self.session.age_seconds >= max_age

    async def ensure_session(self) -> RetailerApiClient:
        if self._session_expired():
            if self.session is not None:
                logger.info(f"[{self.name}] Session expired, signing in again")
            return await self.establish_session()
        assert self.api is not None
        return self.api

    async def close(self) -> None:
        """Close the API client bound to the current session."""
        if self.api is not None:
            await self.api.close()
        self.api = None
        self.session = None

    async def _process(self, target: ProductTarget) -> PurchaseOutcome:
        api = await self.ensure_session()
        token = product_id_ctx.set(target.id)
        try:
            outcome = await self.machine.run(target, api)
        except ApiAuthorizationError as e:
            logger.warning(f"[{self.name}] {target.id}: {e.message}; re-authenticating")
            self.session = None
            await self.establish_session()
            return PurchaseOutcome.FAILED
        except RestockBotError as e:
            if not e.recoverable:
                raise
            self._consecutive_failures += 1
            logger.error(
                f"[{self.name}] {target.id} failed in this pass: {e.message} "
                f"(consecutive failures: {self._consecutive_failures})"
            )
            await self._discard_cart(target)
            limit = self.policy.max_consecutive_failures
            if limit is not None and self._consecutive_failures >= limit:
                raise SchedulerAbortedError(self._consecutive_failures, e) from e
            return PurchaseOutcome.FAILED
        finally:
            product_id_ctx.reset(token)

        self._consecutive_failures = 0
        if outcome is not PurchaseOutcome.PURCHASED:
            await self._discard_cart(target)
        return outcome

    async def _discard_cart(self, target: ProductTarget) -> None:
        """Empty the cart when ``target`` stopped with an item possibly still in it."""
        if self.api is None:
            return
        if target.state not in (PurchaseState.IN_STOCK, PurchaseState.CART_UPDATED):
            return
        try:
            removed = await self.api.clear_cart()
        except RestockBotError as e:
            if not e.recoverable:
                raise
            # A fresh session empties the cart before the next product
            logger.warning(
                f"[{self.name}] Could not empty the cart after {target.id}: {e.message}"
            )
            await self.close()
            return
        if removed:
            logger.info(f"[{self.name}] Removed {removed} cart line(s) left by {target.id}")

    async def _settle(self, target: ProductTarget, outcome: PurchaseOutcome) -> None:
        """Drop or requeue ``target`` according to its outcome."""
        if outcome is PurchaseOutcome.PURCHASED:
            self.completed.append(target)
            await self.notifier.notify_purchased(target)
            return

        if outcome is PurchaseOutcome.IN_STOCK:
            self.completed.append(target)
            await self.notifier.notify_in_stock(target)
            return

        limit = self.policy.max_product_failures
        if outcome is PurchaseOutcome.FAILED and limit and target.consecutive_failures >= limit:
            logger.error(
                f"[{self.name}] Dropping {target.id} after {target.consecutive_failures} failures"
            )
            self.dropped.append(target)
            return

        target.reset_for_next_pass()
        self.queue.append(target)

    @timed_async
    async def run_pass(self) -> PassResult:
        """
        Process every target queued at pass start, once.

        Returns:
            (target, outcome) pairs in processing order

        Raises:
            RestockBotError: Non-recoverable errors (authentication, schema, abort)
        """
        self.passes += 1
        snapshot = len(self.queue)
        logger.debug(f"[{self.name}] Pass {self.passes}: {snapshot} target(s)")

        results: PassResult = []
        for _ in range(snapshot):
            if self.shutdown_event.is_set():
                logger.info(f"[{self.name}] Shutdown requested, ending pass early")
                break
            target = self.queue.popleft()
            outcome = await self._process(target)
            await self._settle(target, outcome)
            results.append((target, outcome))
        return results

    async def _wait_or_shutdown(self, seconds: float) -> bool:
        """
        Wait for ``seconds`` or until shutdown is requested.

        Returns:
            True if shutdown was requested during the wait
        """
        if self.shutdown_event.is_set():
            return True
        try:
            await asyncio.wait_for(self.shutdown_event.wait(), timeout=seconds)
            return True
        except asyncio.TimeoutError:
            return False

    async def run(self) -> None:
        """
        Loop over the queue until it is empty, shutdown is requested or a
        non-recoverable error occurs.
        """
        await self.establish_session()
        try:
            while self.queue:
                await self.run_pass()
                if not self.queue:
                    break
                logger.debug(f"[{self.name}] Sleeping {self.interval}s")
                if await self._wait_or_shutdown(self.interval):
                    logger.info(f"[{self.name}] Shutdown requested")
                    break
        finally:
            await self.close()
        logger.info(
            f"[{self.name}] Stopped after {self.passes} pass(es): "
            f"{len(self.completed)} completed, {len(self.dropped)} dropped, "
            f"{len(self.queue)} pending"
        )
