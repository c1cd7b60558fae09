"""Pydantic configuration models - single source of truth for all config structures."""

from typing import Any, Dict, List, Literal, Optional
from urllib.parse import urlparse

from pydantic import BaseModel, Field, SecretStr, field_validator, model_validator

from ...constants import (
    AUTH_COOKIE_NAMES,
    BASE_URL,
    CART_URL,
    DESKTOP_USER_AGENT,
    SIGN_IN_URL,
    VERIFICATION_SENDER,
    Delays,
    Intervals,
    Retries,
    Selectors,
)

# Driver Configuration


class DriverConfig(BaseModel):
    """Browser driver configuration."""

    hostname: str = Field(default="http://localhost:4444")
    remote: bool = Field(default=False)
    headless: bool = Field(default=True)
    user_agent: str = Field(default=DESKTOP_USER_AGENT)


# Account Configuration


class LoginConfig(BaseModel):
    """Retailer account credentials."""

    username: str = Field(default="")
    password: SecretStr = Field(default=SecretStr(""))


class Address(BaseModel):
    """Postal address used for shipping and billing."""

    first_name: str
    last_name: str
    street: str
    city: str
    state: str = Field(min_length=2)
    zip_code: str = Field(min_length=3)


class PaymentProfile(BaseModel):
    """Card and billing address used at checkout."""

    card_number: SecretStr
    exp_month: str
    exp_year: str
    cvv: SecretStr
    billing: Address

    @field_validator("exp_month")
    @classmethod
    def validate_month(cls, v: str) -> str:
        """Normalize expiry month to two digits."""
        v = str(v).strip()
        if not v.isdigit() or not 1 <= int(v) <= 12:
            raise ValueError("exp_month must be between 1 and 12")
        return v.zfill(2)

    @field_validator("exp_year")
    @classmethod
    def validate_year(cls, v: str) -> str:
        v = str(v).strip()
        if not v.isdigit() or len(v) not in (2, 4):
            raise ValueError("exp_year must be a 2 or 4 digit year")
        return v if len(v) == 4 else f"20{v}"


# Retailer Configuration


class RetailerConfig(BaseModel):
    """Retailer endpoints and session policy."""

    base_url: str = Field(default=BASE_URL)
    sign_in_url: str = Field(default=SIGN_IN_URL)
    cart_url: str = Field(default=CART_URL)
    auth_cookie_names: List[str] = Field(default_factory=lambda: list(AUTH_COOKIE_NAMES))
    verification_sender: str = Field(default=VERIFICATION_SENDER)
    verify_before_each_step: bool = Field(default=True)
    strategy: Literal["browser", "api"] = Field(default="api")

    @field_validator("base_url", "sign_in_url", "cart_url")
    @classmethod
    def validate_https(cls, v: str) -> str:
        """Ensure URL is HTTPS and has a domain."""
        if not v.startswith("https://"):
            raise ValueError("retailer URLs must use HTTPS")
        if not urlparse(v).netloc:
            raise ValueError("retailer URLs must have a valid domain")
        return v.rstrip("/")

    @field_validator("auth_cookie_names")
    @classmethod
    def validate_cookie_names(cls, v: List[str]) -> List[str]:
        names = [name.strip() for name in v if name and name.strip()]
        if not names:
            raise ValueError("auth_cookie_names must contain at least one cookie name")
        return names


class SelectorConfig(BaseModel):
    """CSS selectors for every page control the bot touches."""

    username: str = Field(default=Selectors.USERNAME)
    password: str = Field(default=Selectors.PASSWORD)
    sign_in_submit: str = Field(default=Selectors.SIGN_IN_SUBMIT)
    sign_in_error: str = Field(default=Selectors.SIGN_IN_ERROR)
    verification_input: str = Field(default=Selectors.VERIFICATION_INPUT)
    verification_form: str = Field(default=Selectors.VERIFICATION_FORM)
    add_to_cart: str = Field(default=Selectors.ADD_TO_CART)
    price: str = Field(default=Selectors.PRICE)
    product_title: str = Field(default=Selectors.PRODUCT_TITLE)
    modal_close: str = Field(default=Selectors.MODAL_CLOSE)
    checkout: str = Field(default=Selectors.CHECKOUT)
    shipping_first_name: str = Field(default=Selectors.SHIPPING_FIRST_NAME)
    shipping_last_name: str = Field(default=Selectors.SHIPPING_LAST_NAME)
    shipping_street: str = Field(default=Selectors.SHIPPING_STREET)
    shipping_city: str = Field(default=Selectors.SHIPPING_CITY)
    shipping_state: str = Field(default=Selectors.SHIPPING_STATE)
    shipping_zip: str = Field(default=Selectors.SHIPPING_ZIP)
    saved_address: str = Field(default=Selectors.SAVED_ADDRESS)
    add_new_address: str = Field(default=Selectors.ADD_NEW_ADDRESS)
    continue_to_payment: str = Field(default=Selectors.CONTINUE_TO_PAYMENT)
    card_number: str = Field(default=Selectors.CARD_NUMBER)
    exp_month: str = Field(default=Selectors.EXP_MONTH)
    exp_year: str = Field(default=Selectors.EXP_YEAR)
    cvv: str = Field(default=Selectors.CVV)
    billing_first_name: str = Field(default=Selectors.BILLING_FIRST_NAME)
    billing_last_name: str = Field(default=Selectors.BILLING_LAST_NAME)
    billing_street: str = Field(default=Selectors.BILLING_STREET)
    billing_city: str = Field(default=Selectors.BILLING_CITY)
    billing_state: str = Field(default=Selectors.BILLING_STATE)
    billing_zip: str = Field(default=Selectors.BILLING_ZIP)
    save_card: str = Field(default=Selectors.SAVE_CARD)
    place_order: str = Field(default=Selectors.PLACE_ORDER)


# Mailbox Configuration


class MailboxConfig(BaseModel):
    """Mailbox used to read verification codes."""

    provider: Literal["gmail", "imap"] = Field(default="gmail")
    # Empty: use the retailer login as the mailbox account
    account: str = Field(default="")
    imap_host: str = Field(default="imap.gmail.com")
    imap_port: int = Field(default=993, ge=1, le=65535)
    imap_folder: str = Field(default="INBOX")
    app_password: SecretStr = Field(default=SecretStr(""))
    poll_attempts: int = Field(default=Retries.MAILBOX_POLL_ATTEMPTS, ge=1)
    poll_delay: float = Field(default=Intervals.MAILBOX_POLL, ge=0)


# Behavior Configuration


class CheckoutConfig(BaseModel):
    """Checkout behavior."""

    max_click_attempts: int = Field(default=Retries.CHECKOUT_CLICK_ATTEMPTS, ge=1, le=50)
    click_retry_delay: float = Field(default=Delays.CHECKOUT_CLICK_RETRY, ge=0)
    confirmation_settle: float = Field(default=Delays.CONFIRMATION_SETTLE, ge=0)


class SchedulerConfig(BaseModel):
    """Queue policy."""

    max_consecutive_failures: Optional[int] = Field(default=None, ge=1)
    max_product_failures: Optional[int] = Field(default=None, ge=1)
    session_max_age: Optional[int] = Field(default=None, ge=60)
    pool_size: int = Field(default=1, ge=1, le=16)


# Notification Configuration


class TwilioConfig(BaseModel):
    """SMS gateway configuration."""

    sid: str
    auth_token: SecretStr
    from_number: str
    to_number: str


class WebhookConfig(BaseModel):
    """Webhook configuration."""

    url: str

    @field_validator("url")
    @classmethod
    def validate_url(cls, v: str) -> str:
        parsed = urlparse(v)
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            raise ValueError("webhook url must be an http(s) URL")
        return v


class NotificationConfig(BaseModel):
    """Notification channels; every channel is optional."""

    twilio: Optional[TwilioConfig] = Field(default=None)
    webhook: Optional[WebhookConfig] = Field(default=None)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "NotificationConfig":
        """Create from dictionary; accepts the legacy ``discord`` webhook key."""
        data = dict(data or {})
        if "webhook" not in data and isinstance(data.get("discord"), dict):
            discord = data.pop("discord")
            data["webhook"] = {"url": discord.get("webhook_url") or discord.get("url")}
        data.pop("discord", None)
        return cls.model_validate(data)


# Complete Application Configuration


class AppConfig(BaseModel):
    """Complete application configuration.

    Built once at the process boundary by ``load_config`` and passed down
    explicitly; business logic never reads the environment.
    """

    interval: float = Field(
        default=Intervals.PASS_INTERVAL_DEFAULT,
        ge=Intervals.PASS_INTERVAL_MIN,
        le=Intervals.PASS_INTERVAL_MAX,
    )
    dry_run: bool = Field(default=False)
    working_dir: str = Field(default=".")
    products: List[str]
    login: LoginConfig = Field(default_factory=LoginConfig)
    accounts: List[LoginConfig] = Field(default_factory=list)
    payment: PaymentProfile
    shipping: Optional[Address] = Field(default=None)
    driver: DriverConfig = Field(default_factory=DriverConfig)
    retailer: RetailerConfig = Field(default_factory=RetailerConfig)
    selectors: SelectorConfig = Field(default_factory=SelectorConfig)
    mailbox: MailboxConfig = Field(default_factory=MailboxConfig)
    checkout: CheckoutConfig = Field(default_factory=CheckoutConfig)
    scheduler: SchedulerConfig = Field(default_factory=SchedulerConfig)
    notifications: NotificationConfig = Field(default_factory=NotificationConfig)

    @field_validator("products")
    @classmethod
    def validate_products(cls, v: List[str]) -> List[str]:
        products = [str(p).strip() for p in v if str(p).strip()]
        if not products:
            raise ValueError("products must contain at least one product identifier")
        return products

    @model_validator(mode="after")
    def default_shipping_to_billing(self) -> "AppConfig":
        """Ship to the billing address when no shipping address is configured."""
        if self.shipping is None:
            self.shipping = self.payment.billing.model_copy()
        return self

    @property
    def shipping_address(self) -> Address:
        return self.shipping or self.payment.billing

    def all_accounts(self) -> List[LoginConfig]:
        """Primary login followed by any extra pool accounts."""
        return [self.login] + [a for a in self.accounts if a.username != self.login.username]

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "AppConfig":
        """Create from dictionary, normalizing the notification section."""
        data = dict(data)
        if "notifications" in data:
            data["notifications"] = NotificationConfig.from_dict(data["notifications"] or {})
        return cls.model_validate(data)
