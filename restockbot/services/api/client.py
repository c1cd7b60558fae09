"""Direct retailer API client used once a browser session exists."""

import json
from typing import Any, Dict, List, Mapping, Optional

from curl_cffi import CurlError
from curl_cffi.requests import AsyncSession
from loguru import logger
from pydantic import ValidationError

from ...constants import (
    ADD_TO_CART_LABEL,
    DESKTOP_USER_AGENT,
    IMPERSONATE_PROFILE,
    Endpoints,
    Timeouts,
)
from ...core.exceptions import ApiAuthorizationError, ApiError, ApiSchemaError
from ...core.retry import get_api_retry
from ...models.cart import Cart, CartState, ItemInfo, ItemPrice


class RetailerApiClient:
    """Stock, pricing and cart calls against the retailer origin.

    Requests carry only the cookies handed in by the session bridge. The
    TLS/ALPN handshake impersonates desktop Chrome so the origin negotiates
    HTTP/2.
    """

    def __init__(
        self,
        base_url: str,
        cookies: Mapping[str, str],
        user_agent: str = DESKTOP_USER_AGENT,
        impersonate: str = IMPERSONATE_PROFILE,
        timeout: float = Timeouts.HTTP_REQUEST_SECONDS,
    ):
        """
        Initialize API client.

        Args:
            base_url: Retailer origin (https)
            cookies: Auth cookies to send with every request
            user_agent: Desktop browser user agent string
            impersonate: curl_cffi browser fingerprint profile
            timeout: Per-request timeout in seconds
        """
        self.base_url = base_url.rstrip("/")
        self.cookies = dict(cookies)
        self.timeout = timeout
        self.default_headers = {
            "User-Agent": user_agent,
            "Origin": self.base_url,
            "Referer": self.base_url + "/",
            "Accept-Language": "en-US",
            "Accept": "application/json, text/plain, */*",
        }
        self.session = AsyncSession(
            impersonate=impersonate,  # type: ignore[arg-type]
            timeout=timeout,
            headers=self.default_headers,
            cookies=self.cookies,
        )
        logger.debug(f"API client created with {impersonate} impersonation")

    async def close(self) -> None:
        await self.session.close()

    async def __aenter__(self) -> "RetailerApiClient":
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()

    @get_api_retry()
    async def _request(
        self,
        method: str,
        path: str,
        *,
        params: Optional[Dict[str, str]] = None,
        json_body: Optional[Dict[str, Any]] = None,
        headers: Optional[Dict[str, str]] = None,
    ) -> Any:
        url = f"{self.base_url}{path}"
        try:
            response = await self.session.request(
                method, url, params=params, json=json_body, headers=headers  # type: ignore[arg-type]
            )
        except CurlError as e:
            raise ApiError(f"{method} {path} failed: {e}") from e

        status = response.status_code
        if status in (401, 403):
            raise ApiAuthorizationError(f"{method} {path} was not authorized", status_code=status)
        if status >= 400:
            raise ApiError(f"{method} {path} returned HTTP {status}", status_code=status)

        logger.debug(f"{method} {path} -> {status}")
        return response

    async def _get_json(self, path: str, **kwargs: Any) -> Any:
        response = await self._request("GET", path, **kwargs)
        return self._decode(path, response)

    @staticmethod
    def _decode(path: str, response: Any) -> Any:
        try:
            return response.json()
        except ValueError as e:
            content_type = response.headers.get("content-type", "unknown")
            raise ApiError(
                f"{path} returned non-JSON response (Content-Type: {content_type})",
                status_code=response.status_code,
            ) from e

    async def get_item_price(self, sku: str) -> ItemPrice:
        data = await self._get_json(
            Endpoints.PRICE,
            params={
                "skuId": sku,
                "catalog": "bby",
                "context": "product-carousel-v2",
                "includeOpenboxPrice": "false",
                "includeExpirationTimeStamp": "true",
                "salesChannel": "LargeView",
            },
            headers={"X-CLIENT-ID": "lib-price-browser"},
        )
        try:
            return ItemPrice.model_validate(data)
        except ValidationError as e:
            raise ApiSchemaError(Endpoints.PRICE, str(e)) from e

    async def get_item_info(self, sku: str) -> ItemInfo:
        """Fetch name, product page URL, image and description for a SKU."""
        paths = [
            ["shop", "magellan", "v2", "product", "skus", sku, "names", "short"],
            ["shop", "magellan", "v1", "sites", "skuId", sku, "sites", "bbypres", "relativePdpUrl"],
            ["shop", "magellan", "v2", "product", "skus", sku, "images", "0"],
            ["shop", "magellan", "v2", "product", "skus", sku, "descriptions", "long"],
        ]
        data = await self._get_json(
            Endpoints.ITEM_INFO, params={"method": "get", "paths": json.dumps(paths)}
        )
        try:
            graph = data["jsonGraph"]["shop"]["magellan"]
            product = graph["v2"]["product"]["skus"][sku]
            relative_url = graph["v1"]["sites"]["skuId"][sku]["sites"]["bbypres"][
                "relativePdpUrl"
            ]["value"]
            return ItemInfo(
                sku=sku,
                name=product["names"]["short"]["value"],
                url=f"{self.base_url}{relative_url}",
                image_url=product.get("images", {}).get("0", {}).get("value", {}).get("href", ""),
                description=product.get("descriptions", {})
                .get("long", {})
                .get("value", ""),
            )
        except (KeyError, TypeError, AttributeError) as e:
            raise ApiSchemaError(Endpoints.ITEM_INFO, f"missing {e}") from e

    async def is_in_stock(self, sku: str) -> bool:
        """Check the add-to-cart button component; an enabled button means in stock."""
        response = await self._request("GET", Endpoints.STOCK_CHECK, params={"skuId": sku})
        in_stock = ADD_TO_CART_LABEL in response.text
        logger.debug(f"{sku} is in stock: {in_stock}")
        return in_stock

    async def get_cart_count(self) -> int:
        data = await self._get_json(Endpoints.CART_COUNT, headers={"X-CLIENT-ID": "browse"})
        try:
            count = int(data["count"])
        except (KeyError, TypeError, ValueError) as e:
            raise ApiSchemaError(Endpoints.CART_COUNT, f"invalid count: {e}") from e
        logger.debug(f"Cart has {count} items")
        return count

    async def add_to_cart(self, sku: str) -> None:
        response = await self._request(
            "POST", Endpoints.ADD_TO_CART, json_body={"items": [{"skuId": sku}]}
        )
        self._decode(Endpoints.ADD_TO_CART, response)
        logger.info(f"Added {sku} to cart")

    async def get_cart(self) -> Cart:
        data = await self._get_json(Endpoints.CART)
        try:
            return Cart.model_validate(data["cart"])
        except (KeyError, TypeError) as e:
            raise ApiSchemaError(Endpoints.CART, f"missing {e}") from e
        except ValidationError as e:
            raise ApiSchemaError(Endpoints.CART, str(e)) from e

    async def get_cart_state(self) -> CartState:
        return (await self.get_cart()).to_state()

    async def remove_from_cart(self, line_id: str) -> None:
        await self._request("DELETE", Endpoints.CART_ITEM.format(line_id=line_id))
        logger.debug(f"Removed cart line {line_id}")

    async def modify_cart_item(self, line_id: str, quantity: int) -> None:
        if quantity < 1:
            raise ValueError("quantity must be at least 1; use remove_from_cart instead")
        await self._request(
            "PUT",
            Endpoints.CART_ITEM.format(line_id=line_id),
            json_body={"quantity": quantity},
        )
        logger.debug(f"Set cart line {line_id} quantity to {quantity}")

    async def clear_cart(self) -> int:
        """Remove every line item. Returns the number of lines removed."""
        cart = await self.get_cart()
        line_ids: List[str] = [line.id for line in cart.line_items]
        for line_id in line_ids:
            await self.remove_from_cart(line_id)
        logger.info(f"Cart cleared ({len(line_ids)} line items removed)")
        return len(line_ids)
