"""Playwright implementation of the page driver."""

from typing import Any, Dict, List, Optional

from loguru import logger
from playwright.async_api import Browser, BrowserContext, ElementHandle, Page, Playwright
from playwright.async_api import Error as PlaywrightError
from playwright.async_api import TimeoutError as PlaywrightTimeoutError
from playwright.async_api import async_playwright

from ...constants import HEADLESS_LAUNCH_ARGS, Timeouts
from ...core.config.config_models import DriverConfig
from ...core.exceptions import ElementNotFoundError, PageInteractionError
from ...models.session import Cookie
from .base import PageDriver

SUBMIT_FORM_SCRIPT = "form => form.requestSubmit ? form.requestSubmit() : form.submit()"


class PlaywrightDriver(PageDriver):
    """Drives a single Chromium page, local or remote over CDP."""

    def __init__(self, config: DriverConfig):
        """
        Initialize Playwright driver.

        Args:
            config: Driver configuration (hostname, remote, headless, user agent)
        """
        self.config = config
        self.playwright: Optional[Playwright] = None
        self.browser: Optional[Browser] = None
        self.context: Optional[BrowserContext] = None
        self.page: Optional[Page] = None

    def launch_args(self) -> List[str]:
        return list(HEADLESS_LAUNCH_ARGS) if self.config.headless else []

    async def start(self) -> None:
        """Launch or connect to the browser and open a page."""
        if self.browser is not None:
            logger.warning("Browser already started")
            return

        try:
            self.playwright = await async_playwright().start()
            if self.config.remote:
                logger.info(f"Connecting to remote browser at {self.config.hostname}")
                self.browser = await self.playwright.chromium.connect_over_cdp(
                    self.config.hostname
                )
            else:
                self.browser = await self.playwright.chromium.launch(
                    headless=self.config.headless,
                    args=self.launch_args(),
                )

            context_options: Dict[str, Any] = {
                "viewport": {"width": 1920, "height": 1080},
                "user_agent": self.config.user_agent,
                "locale": "en-US",
            }
            self.context = await self.browser.new_context(**context_options)
            self.page = await self.context.new_page()
            self.page.set_default_timeout(Timeouts.SELECTOR_WAIT)
            logger.info(f"Browser started (headless={self.config.headless})")
        except Exception:
            await self.close()
            raise

    async def close(self) -> None:
        """Clean up browser resources."""
        if self.context:
            await self.context.close()
            self.context = None
            self.page = None
            logger.debug("Browser context closed")

        if self.browser:
            await self.browser.close()
            self.browser = None
            logger.debug("Browser closed")

        if self.playwright:
            await self.playwright.stop()
            self.playwright = None

    def _require_page(self) -> Page:
        if self.page is None:
            raise RuntimeError("Browser page is not initialized. Call start() first.")
        return self.page

    async def goto(self, url: str) -> None:
        page = self._require_page()
        try:
            await page.goto(url, wait_until="domcontentloaded", timeout=Timeouts.NAVIGATION)
        except PlaywrightError as e:
            raise PageInteractionError(f"Navigation to {url} failed: {e}") from e

    async def find_element(
        self, selector: str, timeout_ms: int = Timeouts.SELECTOR_WAIT
    ) -> ElementHandle:
        page = self._require_page()
        try:
            handle = await page.wait_for_selector(selector, state="attached", timeout=timeout_ms)
        except PlaywrightTimeoutError as e:
            raise ElementNotFoundError(selector, timeout_ms) from e
        except PlaywrightError as e:
            raise PageInteractionError(f"Lookup of '{selector}' failed: {e}") from e
        if handle is None:
            raise ElementNotFoundError(selector, timeout_ms)
        return handle

    async def find_all(self, selector: str) -> List[ElementHandle]:
        page = self._require_page()
        try:
            return await page.query_selector_all(selector)
        except PlaywrightError as e:
            raise PageInteractionError(f"Lookup of '{selector}' failed: {e}") from e

    async def fill_field(self, handle: ElementHandle, text: str) -> None:
        try:
            await handle.fill(text)
        except PlaywrightError as e:
            raise PageInteractionError(f"Fill failed: {e}") from e

    async def click(self, handle: ElementHandle) -> None:
        try:
            await handle.click()
        except PlaywrightError as e:
            raise PageInteractionError(f"Click failed: {e}") from e

    async def select_option(self, handle: ElementHandle, value: str) -> None:
        try:
            await handle.select_option(value)
        except PlaywrightError as e:
            raise PageInteractionError(f"Selecting '{value}' failed: {e}") from e

    async def submit_form(self, handle: ElementHandle) -> None:
        try:
            await handle.evaluate(SUBMIT_FORM_SCRIPT)
        except PlaywrightError as e:
            raise PageInteractionError(f"Form submission failed: {e}") from e

    async def wait_for_navigation(self, timeout_ms: int = Timeouts.NAVIGATION) -> None:
        page = self._require_page()
        try:
            await page.wait_for_load_state("load", timeout=timeout_ms)
            await page.wait_for_load_state("networkidle", timeout=timeout_ms)
        except PlaywrightTimeoutError as e:
            raise PageInteractionError(
                f"Navigation did not complete within {timeout_ms}ms"
            ) from e
        except PlaywrightError as e:
            raise PageInteractionError(f"Waiting for page load failed: {e}") from e

    async def click_and_wait(
        self, handle: ElementHandle, timeout_ms: int = Timeouts.NAVIGATION
    ) -> None:
        page = self._require_page()
        try:
            async with page.expect_navigation(timeout=timeout_ms):
                await handle.click()
        except PlaywrightTimeoutError as e:
            raise PageInteractionError(f"Click did not navigate within {timeout_ms}ms") from e
        except PlaywrightError as e:
            raise PageInteractionError(f"Click failed: {e}") from e
        await self.wait_for_navigation(timeout_ms)

    async def submit_and_wait(
        self, handle: ElementHandle, timeout_ms: int = Timeouts.NAVIGATION
    ) -> None:
        page = self._require_page()
        try:
            async with page.expect_navigation(timeout=timeout_ms):
                await handle.evaluate(SUBMIT_FORM_SCRIPT)
        except PlaywrightTimeoutError as e:
            raise PageInteractionError(
                f"Form submission did not navigate within {timeout_ms}ms"
            ) from e
        except PlaywrightError as e:
            raise PageInteractionError(f"Form submission failed: {e}") from e
        await self.wait_for_navigation(timeout_ms)

    async def read_property(self, handle: ElementHandle, name: str) -> Any:
        try:
            prop = await handle.get_property(name)
            return await prop.json_value()
        except PlaywrightError as e:
            raise PageInteractionError(f"Reading property '{name}' failed: {e}") from e

    async def get_cookies(self) -> List[Cookie]:
        if self.context is None:
            raise RuntimeError("Browser context is not initialized. Call start() first.")
        try:
            raw = await self.context.cookies()
        except PlaywrightError as e:
            raise PageInteractionError(f"Reading cookies failed: {e}") from e
        return [
            Cookie(
                name=c["name"],
                value=c["value"],
                domain=c.get("domain", ""),
                path=c.get("path", "/"),
            )
            for c in raw
        ]
