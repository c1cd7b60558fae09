"""Common decorators for RestockBot."""

import asyncio
import functools
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable, Optional, TypeVar

from loguru import logger

F = TypeVar("F", bound=Callable[..., Awaitable[Any]])


def page_step(step_name: Optional[str] = None) -> Callable[[F], F]:
    """
    Surface any unexpected error raised by a page step as ``PageInteractionError``.

    ``RestockBotError`` subclasses and cancellation pass through untouched, so a
    failed step is never mistaken for a normal outcome such as "not in stock".

    Example:
        @page_step("add to cart")
        async def add_to_cart(self, target):
            ...
    """

    def decorator(func: F) -> F:
        op_name = step_name if step_name is not None else func.__name__

        @functools.wraps(func)
        async def wrapper(*args: Any, **kwargs: Any) -> Any:
            try:
                return await func(*args, **kwargs)
            except asyncio.CancelledError:
                logger.info(f"{op_name} was cancelled")
                raise
            except Exception as e:
                from ..core.exceptions import PageInteractionError, RestockBotError

                if isinstance(e, RestockBotError):
                    raise
                logger.error(f"{op_name} failed: {e}")
                raise PageInteractionError(
                    f"{op_name} failed: {e}", details={"step": op_name}
                ) from e

        return wrapper  # type: ignore[return-value]

    return decorator


def timed_async(func: F) -> F:
    """
    Decorator to measure and log execution time of async functions.

    Example:
        @timed_async
        async def run_pass():
            ...
    """

    @functools.wraps(func)
    async def wrapper(*args: Any, **kwargs: Any) -> Any:
        start = datetime.now(timezone.utc)
        try:
            result = await func(*args, **kwargs)
            elapsed = (datetime.now(timezone.utc) - start).total_seconds()
            logger.debug(f"{func.__name__} completed in {elapsed:.3f}s")
            return result
        except Exception:
            elapsed = (datetime.now(timezone.utc) - start).total_seconds()
            logger.debug(f"{func.__name__} failed after {elapsed:.3f}s")
            raise

    return wrapper  # type: ignore[return-value]
