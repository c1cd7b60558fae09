"""Pytest configuration and common fixtures."""

import sys
import warnings
from pathlib import Path
from typing import Any, Dict
from unittest.mock import AsyncMock, MagicMock

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))
sys.path.insert(0, str(Path(__file__).parent))

import pytest

from fakes import FakeMailbox, FakePageDriver
from restockbot.core.config.config_loader import parse_config
from restockbot.core.config.config_models import AppConfig
from restockbot.models.cart import CartEntry, CartState, ItemInfo, ItemPrice
from restockbot.models.session import Cookie


def pytest_configure(config):
    """Configure pytest environment before tests run."""
    warnings.filterwarnings("ignore", message="coroutine.*was never awaited")


@pytest.fixture
def config_data() -> Dict[str, Any]:
    """Minimal valid raw configuration."""
    return {
        "interval": 1,
        "products": ["6429440", "https://www.bestbuy.com/site/x.p?skuId=6429434"],
        "login": {"username": "shopper@example.com", "password": "hunter2"},
        "payment": {
            "card_number": "4111111111111111",
            "exp_month": "1",
            "exp_year": "28",
            "cvv": "123",
            "billing": {
                "first_name": "Jane",
                "last_name": "Doe",
                "street": "1 Main St",
                "city": "Springfield",
                "state": "IL",
                "zip_code": "62701",
            },
        },
        "mailbox": {"poll_attempts": 3, "poll_delay": 0},
        "checkout": {"max_click_attempts": 5, "click_retry_delay": 0, "confirmation_settle": 0},
    }


@pytest.fixture
def app_config(config_data) -> AppConfig:
    """Validated configuration with no environment lookups."""
    return parse_config(config_data, environ={})


@pytest.fixture
def fake_driver() -> FakePageDriver:
    """Page driver double with the standard auth cookies."""
    return FakePageDriver(
        cookies=[
            Cookie("ut", "user-token"),
            Cookie("bm_sz", "bot-token"),
            Cookie("at", "access-token"),
            Cookie("_ga", "tracking"),
        ]
    )


@pytest.fixture
def fake_mailbox() -> FakeMailbox:
    """Empty mailbox double."""
    return FakeMailbox()


@pytest.fixture
def mock_api():
    """RetailerApiClient mock: item in stock at $199.99 over an in-memory cart.

    ``api.cart`` lists the SKUs added and not yet cleared, one unit each.
    """
    api = MagicMock()
    api.cart = []

    async def add(sku):
        api.cart.append(sku)

    async def cart_state():
        return CartState(
            items=[CartEntry(product_id=sku, quantity=1, price=199.99) for sku in api.cart]
        )

    async def clear():
        removed = len(api.cart)
        api.cart.clear()
        return removed

    api.is_in_stock = AsyncMock(return_value=True)
    api.get_item_price = AsyncMock(
        return_value=ItemPrice(regular_price=249.99, current_price=199.99, customer_price=199.99)
    )
    api.get_item_info = AsyncMock(
        return_value=ItemInfo(sku="6429440", name="Console", url="https://www.bestbuy.com/site/x")
    )
    api.add_to_cart = AsyncMock(side_effect=add)
    api.get_cart_state = AsyncMock(side_effect=cart_state)
    api.get_cart_count = AsyncMock(side_effect=lambda: len(api.cart))
    api.clear_cart = AsyncMock(side_effect=clear)
    api.close = AsyncMock()
    return api


@pytest.fixture
def mock_notifier():
    """NotificationDispatcher mock."""
    notifier = MagicMock()
    notifier.notify_in_stock = AsyncMock(return_value=True)
    notifier.notify_purchased = AsyncMock(return_value=True)
    notifier.notify_error = AsyncMock(return_value=True)
    notifier.notify_bot_started = AsyncMock(return_value=True)
    notifier.notify_bot_stopped = AsyncMock(return_value=True)
    notifier.close = AsyncMock()
    return notifier
