"""Tests for the RestockBot orchestrator."""

import asyncio
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from restockbot.core.exceptions import AuthenticationError
from restockbot.services.bot.checkout import ApiCheckoutStrategy, BrowserCheckoutStrategy
from restockbot.services.bot.restock_bot import RestockBot
from restockbot.services.bot.scheduler import Scheduler
from restockbot.services.bot.worker_pool import WorkerPool

from fakes import FakeMailbox, FakePageDriver


@pytest.fixture
def drivers():
    """Every driver the factory has created."""
    return []


@pytest.fixture
def make_bot(app_config, mock_notifier, drivers):
    """Factory building a RestockBot over fakes."""

    def factory(config=None):
        def driver_factory():
            driver = FakePageDriver()
            drivers.append(driver)
            return driver

        return RestockBot(
            config or app_config,
            notifier=mock_notifier,
            driver_factory=driver_factory,
            mailbox=FakeMailbox(),
        )

    return factory


class TestBuild:
    """Tests for component wiring."""

    def test_single_account_builds_scheduler(self, make_bot, app_config, drivers):
        """Test one account yields one scheduler owning every product."""
        bot = make_bot()
        runner = bot.build()

        assert isinstance(runner, Scheduler)
        assert [t.id for t in runner.queue] == app_config.products
        assert len(drivers) == 1

    def test_mailbox_account_defaults_to_login(self, make_bot):
        """Test the verification mailbox is the login account when not configured."""
        bot = make_bot()
        scheduler = bot.build()
        assert scheduler.auth.mailbox_config.account == "shopper@example.com"

    def test_strategy_selection(self, make_bot, app_config):
        """Test the configured strategy is used."""
        assert isinstance(make_bot().build().machine.strategy, ApiCheckoutStrategy)

        retailer = app_config.retailer.model_copy(update={"strategy": "browser"})
        config = app_config.model_copy(update={"retailer": retailer})
        assert isinstance(make_bot(config).build().machine.strategy, BrowserCheckoutStrategy)

    def test_pool_with_several_accounts(self, make_bot, app_config, config_data, drivers):
        """Test several accounts and pool_size > 1 build a worker pool with disjoint slices."""
        from restockbot.core.config.config_loader import parse_config

        config_data["products"] = ["1", "2", "3"]
        config_data["accounts"] = [{"username": "second@example.com", "password": "pw2"}]
        config_data["scheduler"] = {"pool_size": 2}
        config = parse_config(config_data, environ={})

        runner = make_bot(config).build()

        assert isinstance(runner, WorkerPool)
        slices = [[t.id for t in w.queue] for w in runner.workers]
        assert slices == [["1", "3"], ["2"]]
        assert [w.credentials.username for w in runner.workers] == [
            "shopper@example.com",
            "second@example.com",
        ]
        assert len(drivers) == 2

    def test_pool_size_one_stays_sequential(self, make_bot, config_data):
        """Test extra accounts are ignored unless pooling is enabled."""
        from restockbot.core.config.config_loader import parse_config

        config_data["accounts"] = [{"username": "second@example.com", "password": "pw2"}]
        config = parse_config(config_data, environ={})
        assert isinstance(make_bot(config).build(), Scheduler)


class TestLifecycle:
    """Tests for start and stop."""

    @pytest.mark.asyncio
    async def test_start_runs_and_cleans_up(self, make_bot, mock_notifier, drivers):
        """Test start() opens drivers, runs the scheduler and releases everything."""
        bot = make_bot()
        with patch.object(Scheduler, "run", new=AsyncMock()) as run:
            await bot.start()

        run.assert_awaited_once()
        assert drivers[0].started and drivers[0].closed
        mock_notifier.notify_bot_started.assert_awaited_once_with(2, False)
        mock_notifier.notify_bot_stopped.assert_awaited_once()
        mock_notifier.close.assert_awaited_once()
        assert bot.mailbox.closed

    @pytest.mark.asyncio
    async def test_fatal_error_is_reported_and_raised(self, make_bot, mock_notifier, drivers):
        """Test a fatal error notifies, cleans up and propagates."""
        bot = make_bot()
        failing = AsyncMock(side_effect=AuthenticationError("Credentials were rejected"))
        with patch.object(Scheduler, "run", new=failing):
            with pytest.raises(AuthenticationError):
                await bot.start()

        mock_notifier.notify_error.assert_awaited_once()
        assert drivers[0].closed

    @pytest.mark.asyncio
    async def test_stop_is_idempotent(self, make_bot, mock_notifier):
        """Test calling stop twice releases resources once."""
        bot = make_bot()
        bot.build()
        await bot.stop()
        await bot.stop()

        assert bot.shutdown_event.is_set()
        mock_notifier.notify_bot_stopped.assert_awaited_once()
