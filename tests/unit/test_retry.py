"""Tests for retry strategies."""

import pytest

from restockbot.core.exceptions import (
    ApiAuthorizationError,
    ApiError,
    ApiSchemaError,
    MailboxError,
    PageInteractionError,
)
from restockbot.core.retry import click_retrying, is_transient_api_error, mailbox_polling


class TestTransientApiError:
    """Tests for the API retry predicate."""

    @pytest.mark.parametrize(
        "error,expected",
        [
            (ApiError("reset"), True),
            (ApiError("slow down", status_code=429), True),
            (ApiError("unavailable", status_code=503), True),
            (ApiError("missing", status_code=404), False),
            (ApiAuthorizationError(), False),
            (ApiSchemaError("/cart", "bad"), False),
            (ValueError("x"), False),
        ],
    )
    def test_predicate(self, error, expected):
        """Test only transport failures, 429 and 5xx are retried."""
        assert is_transient_api_error(error) is expected


class TestAsyncControllers:
    """Tests for the async retry controllers."""

    @pytest.mark.asyncio
    async def test_click_retrying_stops_after_success(self):
        """Test the block runs until it succeeds."""
        calls = []
        async for attempt in click_retrying(5, 0):
            with attempt:
                calls.append(1)
                if len(calls) < 3:
                    raise PageInteractionError("intercepted")
        assert len(calls) == 3

    @pytest.mark.asyncio
    async def test_click_retrying_reraises(self):
        """Test the last error is re-raised after the final attempt."""
        calls = []
        with pytest.raises(PageInteractionError):
            async for attempt in click_retrying(2, 0):
                with attempt:
                    calls.append(1)
                    raise PageInteractionError("intercepted")
        assert len(calls) == 2

    @pytest.mark.asyncio
    async def test_click_retrying_ignores_other_errors(self):
        """Test errors outside the retried types are raised immediately."""
        calls = []
        with pytest.raises(ValueError):
            async for attempt in click_retrying(5, 0):
                with attempt:
                    calls.append(1)
                    raise ValueError("bug")
        assert len(calls) == 1

    @pytest.mark.asyncio
    async def test_mailbox_polling(self):
        """Test polling retries MailboxError up to the attempt limit."""
        calls = []
        with pytest.raises(MailboxError):
            async for attempt in mailbox_polling(3, 0):
                with attempt:
                    calls.append(1)
                    raise MailboxError("no mail yet")
        assert len(calls) == 3
