"""Retailer endpoints, cookie names and default page selectors."""

from typing import Final

BASE_URL: Final[str] = "https://www.bestbuy.com"
SIGN_IN_URL: Final[str] = "https://www.bestbuy.com/identity/global/signin"
CART_URL: Final[str] = "https://www.bestbuy.com/cart"

# Cookies carrying authentication state (user token, bot-mitigation token, access token)
AUTH_COOKIE_NAMES: Final[tuple[str, ...]] = ("ut", "bm_sz", "at")

# Mailbox query for verification emails
VERIFICATION_SENDER: Final[str] = "BestBuy"

# Digits wrapped in a <span> element of the verification email
VERIFICATION_CODE_PATTERN: Final[str] = r"<span[^>]*>(\d+)</span>"

ADD_TO_CART_LABEL: Final[str] = "Add to Cart"

DESKTOP_USER_AGENT: Final[str] = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)

# curl_cffi browser fingerprint; Chrome profiles negotiate HTTP/2 over ALPN
IMPERSONATE_PROFILE: Final[str] = "chrome120"

HEADLESS_LAUNCH_ARGS: Final[tuple[str, ...]] = (
    "--no-sandbox",
    "--disable-gpu",
    "--blink-settings=imagesEnabled=false",
)


class Endpoints:
    """Direct API paths relative to the retailer origin."""

    PRICE: Final[str] = "/pricing/v1/price/item"
    ITEM_INFO: Final[str] = "/api/tcfb/model.json"
    STOCK_CHECK: Final[str] = "/site/canopy/component/fulfillment/add-to-cart-button/v1"
    CART_COUNT: Final[str] = "/basket/v1/basketCount"
    ADD_TO_CART: Final[str] = "/cart/api/v1/addToCart"
    CART: Final[str] = "/cart/json"
    CART_ITEM: Final[str] = "/cart/item/{line_id}"


class Selectors:
    """Default CSS selectors, overridable through the ``selectors`` config section."""

    USERNAME: Final[str] = "#fld-e"
    PASSWORD: Final[str] = "#fld-p1"
    SIGN_IN_SUBMIT: Final[str] = "div.cia-form__controls > button"
    SIGN_IN_ERROR: Final[str] = "div.c-alert-level-error"
    VERIFICATION_INPUT: Final[str] = "input#verificationCode"
    VERIFICATION_FORM: Final[str] = "form.cia-form"

    ADD_TO_CART: Final[str] = "button.add-to-cart-button"
    PRICE: Final[str] = "div.priceView-customer-price > span"
    PRODUCT_TITLE: Final[str] = "div.sku-title > h1"
    MODAL_CLOSE: Final[str] = "button.c-close-icon"

    CHECKOUT: Final[str] = "div.checkout-buttons__checkout > div > button"

    SHIPPING_FIRST_NAME: Final[str] = "input[id*='firstName']"
    SHIPPING_LAST_NAME: Final[str] = "input[id*='lastName']"
    SHIPPING_STREET: Final[str] = "input[id*='street']"
    SHIPPING_CITY: Final[str] = "input[id*='city']"
    SHIPPING_STATE: Final[str] = "select[id*='state']"
    SHIPPING_ZIP: Final[str] = "input[id*='zipcode']"
    SAVED_ADDRESS: Final[str] = "div.saved-addresses li"
    ADD_NEW_ADDRESS: Final[str] = "button.saved-addresses__add-new-link"
    CONTINUE_TO_PAYMENT: Final[str] = "div.button--continue > button"

    CARD_NUMBER: Final[str] = "#optimized-cc-card-number"
    EXP_MONTH: Final[str] = "select[name='expiration-month']"
    EXP_YEAR: Final[str] = "select[name='expiration-year']"
    CVV: Final[str] = "#credit-card-cvv"
    BILLING_FIRST_NAME: Final[str] = "#payment\\.billingAddress\\.firstName"
    BILLING_LAST_NAME: Final[str] = "#payment\\.billingAddress\\.lastName"
    BILLING_STREET: Final[str] = "#payment\\.billingAddress\\.street"
    BILLING_CITY: Final[str] = "#payment\\.billingAddress\\.city"
    BILLING_STATE: Final[str] = "#payment\\.billingAddress\\.state"
    BILLING_ZIP: Final[str] = "#payment\\.billingAddress\\.zipcode"
    SAVE_CARD: Final[str] = "#save-card-checkbox"
    PLACE_ORDER: Final[str] = "div.payment__order-summary > button"
