"""Page driver capability consumed by sign-in and checkout."""

from abc import ABC, abstractmethod
from typing import Any, List

from ...constants import Timeouts
from ...models.session import Cookie


class PageDriver(ABC):
    """Narrow browser automation interface.

    Element handles are opaque to callers; they are only passed back into
    the same driver. Timeouts are in milliseconds.
    """

    async def start(self) -> None:
        """Acquire the browser; no-op for drivers without a lifecycle."""

    async def close(self) -> None:
        """Release the browser; no-op for drivers without a lifecycle."""

    @abstractmethod
    async def goto(self, url: str) -> None:
        """Navigate to ``url`` and wait for the page to load."""

    @abstractmethod
    async def find_element(self, selector: str, timeout_ms: int = Timeouts.SELECTOR_WAIT) -> Any:
        """
        Wait for an element to be present.

        Raises:
            ElementNotFoundError: If the element does not appear within the timeout
        """

    @abstractmethod
    async def find_all(self, selector: str) -> List[Any]:
        """Return every element currently matching ``selector`` without waiting."""

    @abstractmethod
    async def fill_field(self, handle: Any, text: str) -> None:
        """Replace the field's value with ``text``."""

    @abstractmethod
    async def click(self, handle: Any) -> None:
        """Click an element."""

    @abstractmethod
    async def select_option(self, handle: Any, value: str) -> None:
        """Choose ``value`` in a <select>."""

    @abstractmethod
    async def submit_form(self, handle: Any) -> None:
        """Submit the form ``handle`` refers to."""

    @abstractmethod
    async def wait_for_navigation(self, timeout_ms: int = Timeouts.NAVIGATION) -> None:
        """
        Wait until the current page has finished loading.

        Returns at once when the page is already loaded; use
        ``click_and_wait`` / ``submit_and_wait`` when an action must navigate.

        Raises:
            PageInteractionError: If loading does not complete in time
        """

    @abstractmethod
    async def click_and_wait(self, handle: Any, timeout_ms: int = Timeouts.NAVIGATION) -> None:
        """
        Click an element and wait for the navigation the click starts.

        Raises:
            PageInteractionError: If the click fails or no navigation follows in time
        """

    @abstractmethod
    async def submit_and_wait(self, handle: Any, timeout_ms: int = Timeouts.NAVIGATION) -> None:
        """
        Submit a form and wait for the navigation the submission starts.

        Raises:
            PageInteractionError: If submission fails or no navigation follows in time
        """

    @abstractmethod
    async def read_property(self, handle: Any, name: str) -> Any:
        """Read a DOM property such as ``innerText``, ``value`` or ``disabled``."""

    @abstractmethod
    async def get_cookies(self) -> List[Cookie]:
        """Return all cookies of the browsing context."""

    async def __aenter__(self) -> "PageDriver":
        await self.start()
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()
