"""Retailer cart and catalog models.

The cart payload uses camelCase keys; models expose snake_case attributes
and accept the original keys through aliases.
"""

from typing import Annotated, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


def parse_money(value: Optional[str]) -> float:
    """Parse "$1,299.99", "1299.99" or "FREE" into a float."""
    if value is None:
        return 0.0
    cleaned = str(value).replace("$", "").replace(",", "").strip()
    if not cleaned or cleaned.upper() == "FREE":
        return 0.0
    return float(cleaned)


class _ApiModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class PickupStore(_ApiModel):
    """Store an in-store pickup fulfillment is assigned to."""

    store_id: str = Field(alias="storeId")
    store_name: str = Field(alias="storeName")
    store_address: str = Field(alias="storeAddress")
    store_city: str = Field(alias="storeCity")
    store_state: str = Field(alias="storeState")
    store_zip_code: str = Field(alias="storeZipCode")


class ShippingFulfillment(_ApiModel):
    type_code: Literal["SHIPPING"] = Field(alias="typeCode")
    zipcode: str
    min_date: int = Field(alias="minDate")
    max_date: int = Field(alias="maxDate")
    days_till_fulfillment: int = Field(alias="daysTillFulfillment")
    price: str  # "FREE" for free shipping
    selected: bool
    is_pre_order: bool = Field(alias="isPreOrder")


class InStorePickupFulfillment(_ApiModel):
    type_code: Literal["IN_STORE_PICKUP"] = Field(alias="typeCode")
    days_till_pickup: int = Field(alias="daysTillPickup")
    pickup_date: str = Field(alias="pickupDate")
    pick_up_today: bool = Field(alias="pickUpToday")
    is_curbside_available: bool = Field(alias="isCurbsideAvailable")
    selected: bool
    store: PickupStore


CartFulfillment = Annotated[
    Union[ShippingFulfillment, InStorePickupFulfillment],
    Field(discriminator="type_code"),
]


class CartItemPrice(_ApiModel):
    line_price: str = Field(alias="linePrice")
    regular_price: str = Field(alias="regularPrice")


class CartItem(_ApiModel):
    sku_id: str = Field(alias="skuId")
    short_label: str = Field(alias="shortLabel")
    image_url: Optional[str] = Field(default=None, alias="imageUrl")
    item_url: Optional[str] = Field(default=None, alias="itemUrl")
    fulfillments: List[CartFulfillment] = Field(default_factory=list)
    type_code: str = Field(default="HARDGOOD", alias="typeCode")
    price: CartItemPrice


class CartLineItem(_ApiModel):
    id: str
    quantity: int
    quantity_limit: Optional[int] = Field(default=None, alias="quantityLimit")
    item: CartItem
    digital: bool = False


class CartSummary(_ApiModel):
    product_total: str = Field(alias="productTotal")
    order_total: str = Field(alias="orderTotal")


class Cart(_ApiModel):
    """Cart contents as returned by the cart endpoint."""

    id: str
    cart_item_count: int = Field(alias="cartItemCount")
    subtotal_amount: str = Field(alias="subtotalAmount")
    line_items: List[CartLineItem] = Field(default_factory=list, alias="lineItems")
    fulfillments: List[CartFulfillment] = Field(default_factory=list)
    order_summary: Optional[CartSummary] = Field(default=None, alias="orderSummary")
    paypal_wallet_enabled: bool = Field(default=False, alias="paypalWalletEnabled")
    credit_card_in_profile: bool = Field(default=False, alias="creditCardInProfile")

    @property
    def is_empty(self) -> bool:
        return not self.line_items

    def to_state(self) -> "CartState":
        return CartState(
            items=[
                CartEntry(
                    product_id=line.item.sku_id,
                    quantity=line.quantity,
                    price=parse_money(line.item.price.line_price),
                )
                for line in self.line_items
            ]
        )


class CartEntry(BaseModel):
    product_id: str
    quantity: int
    price: float


class CartState(BaseModel):
    """Flattened (product, quantity, price) view of a cart."""

    items: List[CartEntry] = Field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.items

    @property
    def total(self) -> float:
        return sum(entry.price for entry in self.items)


class ItemPrice(_ApiModel):
    regular_price: float = Field(alias="regularPrice")
    current_price: float = Field(alias="currentPrice")
    customer_price: float = Field(alias="customerPrice")


class ItemInfo(BaseModel):
    """Descriptive product metadata."""

    sku: str
    name: str
    url: str
    image_url: str = ""
    description: str = ""
