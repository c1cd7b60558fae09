"""Retailer sign-in and email verification handling."""

from typing import Any, Optional, Set, Tuple

from loguru import logger

from ...constants import Timeouts
from ...core.config.config_models import MailboxConfig, RetailerConfig, SelectorConfig
from ...core.exceptions import (
    AuthenticationError,
    ElementNotFoundError,
    MailboxError,
    PageInteractionError,
    RestockBotError,
    VerificationError,
)
from ...core.retry import mailbox_polling
from ...models.session import Session
from ...utils.masking import mask_code, mask_email
from ..driver.base import PageDriver
from ..mailbox.base import MailboxReader
from ..mailbox.pattern_matcher import VerificationCodeExtractor


class AuthSession:
    """Signs in through the page driver and resolves email verification challenges."""

    def __init__(
        self,
        driver: PageDriver,
        mailbox: MailboxReader,
        retailer: RetailerConfig,
        selectors: SelectorConfig,
        mailbox_config: MailboxConfig,
        extractor: Optional[VerificationCodeExtractor] = None,
    ):
        """
        Initialize authentication session.

        Args:
            driver: Page driver used for the browser flow
            mailbox: Mailbox the retailer sends verification codes to
            retailer: Retailer URLs and verification sender filter
            selectors: Page selectors
            mailbox_config: Mailbox account and polling policy
            extractor: Code extractor (default: digits inside a <span>)
        """
        self.driver = driver
        self.mailbox = mailbox
        self.retailer = retailer
        self.selectors = selectors
        self.mailbox_config = mailbox_config
        self.extractor = extractor or VerificationCodeExtractor()
        # Messages whose code was already typed; an old email never resolves a new challenge
        self._used_message_ids: Set[str] = set()

    async def _require(self, selector: str, control: str, timeout_ms: int) -> Any:
        try:
            return await self.driver.find_element(selector, timeout_ms)
        except ElementNotFoundError as e:
            raise AuthenticationError(
                f"Sign-in {control} not found ({selector})",
                details={"control": control, "selector": selector, "timeout_ms": timeout_ms},
            ) from e

    async def sign_in(self, username: str, password: str) -> Session:
        """
        Sign in and return the browser's cookie set.

        Args:
            username: Account email
            password: Account password

        Returns:
            Session holding the cookies captured after sign-in

        Raises:
            AuthenticationError: If a control is missing, credentials are rejected
                or the page does not respond
            VerificationError: If the email challenge cannot be resolved
        """
        logger.info(f"Signing in as {mask_email(username)}")
        try:
            await self.driver.goto(self.retailer.sign_in_url)

            # Independent waits so the error names the control that is missing
            username_field = await self._require(
                self.selectors.username, "username field", Timeouts.USERNAME_FIELD
            )
            password_field = await self._require(
                self.selectors.password, "password field", Timeouts.PASSWORD_FIELD
            )
            submit_button = await self._require(
                self.selectors.sign_in_submit, "submit button", Timeouts.SUBMIT_BUTTON
            )

            await self.driver.fill_field(username_field, username)
            await self.driver.fill_field(password_field, password)
            await self.driver.click_and_wait(submit_button, Timeouts.NAVIGATION)

            if await self.driver.find_all(self.selectors.sign_in_error):
                raise AuthenticationError(
                    "Credentials were rejected by the sign-in page",
                    details={"username": mask_email(username)},
                )

            await self.verify()
            cookies = await self.driver.get_cookies()
        except PageInteractionError as e:
            raise AuthenticationError(f"Sign-in failed: {e.message}") from e

        logger.info(f"Signed in as {mask_email(username)} ({len(cookies)} cookies)")
        return Session(cookies=tuple(cookies))

    async def verify(self) -> bool:
        """
        Resolve a verification challenge if one is on the page.

        Returns immediately, without touching the page, when no challenge
        input is present.

        Returns:
            True if a challenge was resolved, False if none was present

        Raises:
            VerificationError: If no code arrives or the form cannot be submitted
        """
        inputs = await self.driver.find_all(self.selectors.verification_input)
        if not inputs:
            return False

        logger.info("Verification challenge detected, waiting for email code")
        message_id, code = await self._fetch_code()

        try:
            form = await self.driver.find_element(
                self.selectors.verification_form, Timeouts.VERIFICATION_INPUT
            )
            await self.driver.fill_field(inputs[0], code)
            await self.driver.submit_and_wait(form, Timeouts.NAVIGATION)
        except PageInteractionError as e:
            raise VerificationError(f"Verification form could not be submitted: {e.message}") from e

        self._used_message_ids.add(message_id)
        logger.info(f"Verification code {mask_code(code)} submitted")
        return True

    async def _fetch_code(self) -> Tuple[str, str]:
        account = self.mailbox_config.account
        query = self.retailer.verification_sender

        try:
            async for attempt in mailbox_polling(
                self.mailbox_config.poll_attempts, self.mailbox_config.poll_delay
            ):
                with attempt:
                    return await self._newest_code(account, query)
        except MailboxError as e:
            raise VerificationError(
                f"No verification code received: {e.message}",
                details={"attempts": self.mailbox_config.poll_attempts},
            ) from e
        except RestockBotError:
            raise
        except Exception as e:
            raise VerificationError(f"Mailbox could not be read: {type(e).__name__}: {e}") from e
        raise VerificationError("No verification code received")

    async def _newest_code(self, account: str, query: str) -> Tuple[str, str]:
        message_ids = await self.mailbox.list_recent_messages(account, query)
        fresh = [m for m in message_ids if m not in self._used_message_ids]
        if not fresh:
            raise MailboxError(f"No new messages matching '{query}'")

        message_id = fresh[0]
        body = await self.mailbox.get_body(account, message_id)
        code = self.extractor.extract_code(body)
        if code is None:
            raise MailboxError(f"Message {message_id} contains no verification code")
        return message_id, code
