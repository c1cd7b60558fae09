"""RestockBot orchestrator - wires drivers, sessions, schedulers and notifications."""

import asyncio
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, List, Optional, Union

from loguru import logger

from ...core.config.config_models import AppConfig, LoginConfig
from ...core.exceptions import RestockBotError
from ...models.product import ProductTarget
from ..api.session_bridge import SessionBridge
from ..driver.base import PageDriver
from ..driver.playwright_driver import PlaywrightDriver
from ..mailbox import create_mailbox
from ..mailbox.base import MailboxReader
from ..notification.service import NotificationDispatcher
from .auth_service import AuthSession
from .checkout import ApiCheckoutStrategy, BrowserCheckoutStrategy, CheckoutFlow, CheckoutStrategy
from .scheduler import Scheduler
from .state_machine import PurchaseStateMachine
from .worker_pool import WorkerPool, partition

DriverFactory = Callable[[], PageDriver]


@dataclass
class Worker:
    """Everything one account needs: its own browser and its own scheduler."""

    driver: PageDriver
    scheduler: Scheduler


class RestockBot:
    """Top-level bot: one worker per account, sequential or pooled."""

    def __init__(
        self,
        config: AppConfig,
        notifier: Optional[NotificationDispatcher] = None,
        shutdown_event: Optional[asyncio.Event] = None,
        driver_factory: Optional[DriverFactory] = None,
        mailbox: Optional[MailboxReader] = None,
    ):
        """
        Initialize RestockBot with dependency injection.

        Args:
            config: Validated application configuration
            notifier: Notification dispatcher (built from config if omitted)
            shutdown_event: Event that ends the loop when set
            driver_factory: Creates one page driver per worker (Playwright by default)
            mailbox: Mailbox reader (built from config if omitted)
        """
        self.config = config
        self.notifier = notifier or NotificationDispatcher.from_config(config.notifications)
        self.shutdown_event = shutdown_event or asyncio.Event()
        self.driver_factory = driver_factory or (lambda: PlaywrightDriver(config.driver))
        self.mailbox = mailbox or create_mailbox(config.mailbox, Path(config.working_dir))
        self.bridge = SessionBridge(config.retailer, user_agent=config.driver.user_agent)
        self.workers: List[Worker] = []
        self._runner: Optional[Union[Scheduler, WorkerPool]] = None
        self._stopped = False

    def _make_strategy(self, driver: PageDriver) -> CheckoutStrategy:
        if self.config.retailer.strategy == "browser":
            return BrowserCheckoutStrategy(driver, self.config.retailer, self.config.selectors)
        return ApiCheckoutStrategy()

    def build_worker(
        self, credentials: LoginConfig, targets: List[ProductTarget], name: str
    ) -> Worker:
        """Create the driver, auth session, state machine and scheduler for one account."""
        config = self.config
        driver = self.driver_factory()

        mailbox_config = config.mailbox
        if not mailbox_config.account:
            mailbox_config = mailbox_config.model_copy(update={"account": credentials.username})

        auth = AuthSession(
            driver=driver,
            mailbox=self.mailbox,
            retailer=config.retailer,
            selectors=config.selectors,
            mailbox_config=mailbox_config,
        )
        flow = CheckoutFlow(
            driver=driver,
            retailer=config.retailer,
            selectors=config.selectors,
            payment=config.payment,
            shipping=config.shipping_address,
            checkout=config.checkout,
            dry_run=config.dry_run,
        )
        machine = PurchaseStateMachine(
            strategy=self._make_strategy(driver),
            flow=flow,
            verifier=auth.verify,
            verify_each_step=config.retailer.verify_before_each_step,
        )
        scheduler = Scheduler(
            targets=targets,
            auth=auth,
            bridge=self.bridge,
            machine=machine,
            notifier=self.notifier,
            credentials=credentials,
            interval=config.interval,
            policy=config.scheduler,
            shutdown_event=self.shutdown_event,
            user_agent=config.driver.user_agent,
            name=name,
        )
        return Worker(driver=driver, scheduler=scheduler)

    def build(self) -> Union[Scheduler, WorkerPool]:
        """Build the sequential scheduler, or a worker pool when several accounts are pooled."""
        targets = [ProductTarget(id=product_id) for product_id in self.config.products]
        accounts = self.config.all_accounts()
        pool_size = min(self.config.scheduler.pool_size, len(accounts), len(targets))

        if pool_size <= 1:
            worker = self.build_worker(self.config.login, targets, "main")
            self.workers = [worker]
            return worker.scheduler

        slices = partition(targets, pool_size)
        self.workers = [
            self.build_worker(account, product_slice, f"worker-{index + 1}")
            for index, (account, product_slice) in enumerate(zip(accounts, slices))
        ]
        logger.info(f"Pooling {len(self.workers)} accounts over {len(targets)} products")
        return WorkerPool(
            [w.scheduler for w in self.workers], self.config.interval, self.shutdown_event
        )

    async def start(self) -> None:
        """
        Run until every product is resolved, shutdown is requested or a fatal error occurs.

        Raises:
            RestockBotError: Fatal errors (authentication, configuration, schema)
        """
        self._runner = self.build()
        try:
            for worker in self.workers:
                await worker.driver.start()
            await self.notifier.notify_bot_started(len(self.config.products), self.config.dry_run)
            await self._runner.run()
        except RestockBotError as e:
            logger.error(f"Fatal error: {e.message}")
            await self.notifier.notify_error(type(e).__name__, e.message)
            raise
        finally:
            await self.stop()

    async def stop(self) -> None:
        """Release every resource. Idempotent."""
        if self._stopped:
            logger.debug("stop() called but bot is already stopped")
            return
        self._stopped = True
        self.shutdown_event.set()

        for worker in self.workers:
            await worker.scheduler.close()
            try:
                await worker.driver.close()
            except Exception as e:
                logger.warning(f"Error closing browser: {e}")

        await self.notifier.notify_bot_stopped()
        await self.mailbox.close()
        await self.notifier.close()
        logger.info("RestockBot stopped")
