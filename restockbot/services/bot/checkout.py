"""Checkout strategies and the shared browser checkout flow.

A strategy decides how stock is checked and how an item reaches the cart
(page automation or direct API). Fulfillment and payment always run in the
browser through ``CheckoutFlow``.
"""

import asyncio
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Optional
from urllib.parse import parse_qs, urlparse

from loguru import logger

from ...constants import ADD_TO_CART_LABEL, Delays, Timeouts
from ...core.config.config_models import (
    Address,
    CheckoutConfig,
    PaymentProfile,
    RetailerConfig,
    SelectorConfig,
)
from ...core.exceptions import CheckoutError, PageInteractionError
from ...core.retry import click_retrying
from ...models.cart import CartState, parse_money
from ...models.product import ProductTarget
from ...utils.decorators import page_step
from ...utils.masking import mask_card_number
from ..api.client import RetailerApiClient
from ..driver.base import PageDriver

StepHook = Callable[[], Awaitable[Any]]


@dataclass
class StockStatus:
    """Result of a stock check."""

    in_stock: bool
    price: Optional[float] = None
    name: Optional[str] = None


def _query_sku(url: str) -> Optional[str]:
    sku_values = parse_qs(urlparse(url).query).get("skuId")
    return sku_values[0] if sku_values else None


def sku_of(target: ProductTarget) -> str:
    """SKU of a target given either as a bare SKU or as a product URL with ``skuId``."""
    if not target.is_url:
        return target.id
    sku = _query_sku(target.id)
    if sku is None:
        raise CheckoutError(f"Product URL has no skuId parameter: {target.id}")
    return sku


class CheckoutStrategy(ABC):
    """How stock is checked and how an item is added to the cart."""

    name: str = "base"

    @abstractmethod
    async def check_stock(self, target: ProductTarget, api: RetailerApiClient) -> StockStatus:
        """Report availability (and price when known) for ``target``."""

    @abstractmethod
    async def add_to_cart(self, target: ProductTarget, api: RetailerApiClient) -> None:
        """Put one unit of ``target`` in the cart."""


class BrowserCheckoutStrategy(CheckoutStrategy):
    """Reads the product page's add-to-cart button and clicks it."""

    name = "browser"

    def __init__(self, driver: PageDriver, retailer: RetailerConfig, selectors: SelectorConfig):
        self.driver = driver
        self.retailer = retailer
        self.selectors = selectors

    def product_url(self, target: ProductTarget) -> str:
        if target.is_url:
            return target.id
        return f"{self.retailer.base_url}/site/{target.id}.p?skuId={target.id}"

    async def _read_text(self, selector: str) -> Optional[str]:
        matches = await self.driver.find_all(selector)
        if not matches:
            return None
        text = await self.driver.read_property(matches[0], "innerText")
        return str(text).strip() if text else None

    async def check_stock(self, target: ProductTarget, api: RetailerApiClient) -> StockStatus:
        await self.driver.goto(self.product_url(target))
        button = await self.driver.find_element(
            self.selectors.add_to_cart, Timeouts.ADD_TO_CART_BUTTON
        )
        label = str(await self.driver.read_property(button, "innerText") or "")
        disabled = bool(await self.driver.read_property(button, "disabled"))
        in_stock = ADD_TO_CART_LABEL.lower() in label.lower() and not disabled

        price_text = await self._read_text(self.selectors.price)
        price = parse_money(price_text) if price_text else None
        name = await self._read_text(self.selectors.product_title)
        return StockStatus(in_stock=in_stock, price=price, name=name)

    async def add_to_cart(self, target: ProductTarget, api: RetailerApiClient) -> None:
        button = await self.driver.find_element(
            self.selectors.add_to_cart, Timeouts.ADD_TO_CART_BUTTON
        )
        await self.driver.click(button)

        # Fixed wait: the confirmation modal animates in without a navigation
        await asyncio.sleep(Delays.MODAL_SETTLE)
        close_buttons = await self.driver.find_all(self.selectors.modal_close)
        if close_buttons:
            await self.driver.click(close_buttons[0])
            logger.debug("Dismissed add-to-cart modal")


class ApiCheckoutStrategy(CheckoutStrategy):
    """Uses the availability, price lookup and add-to-cart endpoints."""

    name = "api"

    async def check_stock(self, target: ProductTarget, api: RetailerApiClient) -> StockStatus:
        sku = sku_of(target)
        if not await api.is_in_stock(sku):
            return StockStatus(in_stock=False)

        price = await api.get_item_price(sku)
        name = target.name
        if name is None:
            name = (await api.get_item_info(sku)).name
        return StockStatus(in_stock=True, price=price.customer_price, name=name)

    async def add_to_cart(self, target: ProductTarget, api: RetailerApiClient) -> None:
        await api.add_to_cart(sku_of(target))


class CheckoutFlow:
    """Cart page, checkout click, fulfillment and payment."""

    def __init__(
        self,
        driver: PageDriver,
        retailer: RetailerConfig,
        selectors: SelectorConfig,
        payment: PaymentProfile,
        shipping: Address,
        checkout: CheckoutConfig,
        dry_run: bool,
        before_step: Optional[StepHook] = None,
    ):
        """
        Initialize checkout flow.

        Args:
            driver: Page driver
            retailer: Retailer URLs
            selectors: Page selectors
            payment: Card and billing address
            shipping: Address used when a shipping form is shown
            checkout: Click retry and settle timings
            dry_run: Never submit the order when True
            before_step: Awaited before each sub-step (verification check)
        """
        self.driver = driver
        self.retailer = retailer
        self.selectors = selectors
        self.payment = payment
        self.shipping = shipping
        self.checkout = checkout
        self.dry_run = dry_run
        self.before_step = before_step

    async def _step(self) -> None:
        if self.before_step is not None:
            await self.before_step()

    async def run(self, target: ProductTarget, api: RetailerApiClient) -> bool:
        """
        Drive checkout from the cart page to order placement.

        Returns:
            True if the order was placed, False in dry-run mode

        Raises:
            CheckoutError: If the cart does not hold exactly one unit of ``target``
                or a checkout control is missing
        """
        await self.require_cart_of(target, api)

        await self.driver.goto(self.retailer.cart_url)
        await self._step()
        await self.open_checkout()

        await self._step()
        await self.fulfill()

        await self._step()
        return await self.pay()

    async def require_cart_of(self, target: ProductTarget, api: RetailerApiClient) -> CartState:
        """Refuse to check out anything but one unit of ``target``."""
        cart = await api.get_cart_state()
        if cart.is_empty:
            raise CheckoutError("Cart is empty; refusing to check out")

        expected = _query_sku(target.id) if target.is_url else target.id
        skus = sorted({entry.product_id for entry in cart.items})
        units = sum(entry.quantity for entry in cart.items)
        if units != 1 or (expected is not None and skus != [expected]):
            raise CheckoutError(
                f"Cart holds {units} unit(s) of {', '.join(skus)}; "
                f"refusing to check out {target.id}",
                details={"cart": skus, "units": units},
            )
        return cart

    async def open_checkout(self) -> None:
        """Click the checkout control until the page actually navigates."""
        attempts = 0
        try:
            async for attempt in click_retrying(
                self.checkout.max_click_attempts, self.checkout.click_retry_delay
            ):
                with attempt:
                    attempts += 1
                    button = await self.driver.find_element(
                        self.selectors.checkout, Timeouts.CHECKOUT_BUTTON
                    )
                    await self.driver.click_and_wait(button, Timeouts.NAVIGATION)
        except PageInteractionError as e:
            raise CheckoutError(
                f"Checkout did not open after {attempts} attempt(s): {e.message}",
                details={"attempts": attempts},
            ) from e
        logger.info(f"Checkout opened (attempts: {attempts})")

    @page_step("fulfillment")
    async def fulfill(self) -> None:
        """Fill the shipping form when one is presented, then continue to payment."""
        if await self.driver.find_all(self.selectors.shipping_first_name):
            if await self.driver.find_all(self.selectors.saved_address):
                logger.info("Using saved shipping address")
            else:
                add_new = await self.driver.find_all(self.selectors.add_new_address)
                if add_new:
                    await self.driver.click(add_new[0])
                await self._fill_address(self.shipping, shipping=True)
                logger.info("Shipping address entered")

        continue_button = await self.driver.find_element(
            self.selectors.continue_to_payment, Timeouts.CHECKOUT_FORM
        )
        await self.driver.click_and_wait(continue_button, Timeouts.NAVIGATION)

    async def _fill(self, selector: str, value: str) -> None:
        handle = await self.driver.find_element(selector, Timeouts.CHECKOUT_FORM)
        await self.driver.fill_field(handle, value)

    async def _fill_if_present(self, selector: str, value: str) -> bool:
        matches = await self.driver.find_all(selector)
        if not matches:
            return False
        await self.driver.fill_field(matches[0], value)
        return True

    async def _select(self, selector: str, value: str) -> None:
        handle = await self.driver.find_element(selector, Timeouts.CHECKOUT_FORM)
        await self.driver.select_option(handle, value)

    async def _fill_address(self, address: Address, shipping: bool) -> None:
        s = self.selectors
        if shipping:
            await self._fill(s.shipping_first_name, address.first_name)
            await self._fill(s.shipping_last_name, address.last_name)
            await self._fill(s.shipping_street, address.street)
            await self._fill(s.shipping_city, address.city)
            await self._select(s.shipping_state, address.state)
            await self._fill(s.shipping_zip, address.zip_code)
            return

        # Billing fields are absent when the profile already has a billing address
        if not await self._fill_if_present(s.billing_first_name, address.first_name):
            return
        await self._fill_if_present(s.billing_last_name, address.last_name)
        await self._fill_if_present(s.billing_street, address.street)
        await self._fill_if_present(s.billing_city, address.city)
        states = await self.driver.find_all(s.billing_state)
        if states:
            await self.driver.select_option(states[0], address.state)
        await self._fill_if_present(s.billing_zip, address.zip_code)

    @page_step("payment")
    async def pay(self) -> bool:
        """Enter card details and place the order unless running dry."""
        s = self.selectors
        card_number = self.payment.card_number.get_secret_value()
        await self._fill(s.card_number, card_number)
        await self._select(s.exp_month, self.payment.exp_month)
        await self._select(s.exp_year, self.payment.exp_year)
        await self._fill(s.cvv, self.payment.cvv.get_secret_value())
        await self._fill_address(self.payment.billing, shipping=False)

        save_card = await self.driver.find_all(s.save_card)
        if save_card and not await self.driver.read_property(save_card[0], "checked"):
            await self.driver.click(save_card[0])

        logger.info(f"Payment details entered for card {mask_card_number(card_number)}")

        if self.dry_run:
            logger.warning("Dry run: stopping before order placement")
            return False

        place_order = await self.driver.find_element(s.place_order, Timeouts.CHECKOUT_FORM)
        await self.driver.click_and_wait(place_order, Timeouts.ORDER_CONFIRMATION)
        await asyncio.sleep(self.checkout.confirmation_settle)
        logger.success("Order placed")
        return True
