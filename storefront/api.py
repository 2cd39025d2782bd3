"""HTTP client for the restaurant, cart and payment-signing backends."""

from __future__ import annotations

import logging
from typing import Any

import httpx

from storefront.config import (
    AUTH_TOKEN,
    HTTP_TIMEOUT_SECONDS,
    PAYMENT_START_URL,
    RESTAURANT_API_BASE_URL,
    USER_API_BASE_URL,
)
from storefront.constant import (
    ADD_TO_CART_FAILED_MESSAGE,
    MENU_LOAD_FAILED_MESSAGE,
    PAYMENT_SIGNING_FAILED_MESSAGE,
)
from storefront.exceptions import APIError, PaymentSigningError
from storefront.models import CartLineRequest, MenuItem, PaymentDetails, SignedPayment

logger = logging.getLogger(__name__)


def error_message_from(response: httpx.Response, fallback: str) -> str:
    """Return the server's ``error`` text from a JSON body, or the fallback."""
    try:
        body = response.json()
    except ValueError:
        return fallback
    if isinstance(body, dict):
        error = body.get("error")
        if isinstance(error, str) and error.strip():
            return error
    return fallback


class StorefrontAPI:
    """
    Async client for the storefront backends.

    Args:
        http_client: Optional HTTP client for dependency injection (testing).
    """

    def __init__(
        self,
        http_client: httpx.AsyncClient | None = None,
        restaurant_base_url: str = RESTAURANT_API_BASE_URL,
        user_base_url: str = USER_API_BASE_URL,
        payment_start_url: str = PAYMENT_START_URL,
        auth_token: str = AUTH_TOKEN,
    ) -> None:
        self._client = http_client or httpx.AsyncClient(timeout=HTTP_TIMEOUT_SECONDS)
        self._owns_client = http_client is None
        self.restaurant_base_url = restaurant_base_url.rstrip("/")
        self.user_base_url = user_base_url.rstrip("/")
        self.payment_start_url = payment_start_url
        self.auth_token = auth_token

    async def close(self) -> None:
        """Close the HTTP client if we own it."""
        if self._owns_client:
            await self._client.aclose()

    def menu_items_url(self, restaurant_id: str) -> str:
        return f"{self.restaurant_base_url}/menu/restaurant/{restaurant_id}"

    @property
    def cart_url(self) -> str:
        return f"{self.user_base_url}/cart"

    def _headers(self) -> dict[str, str]:
        if not self.auth_token:
            return {}
        return {"Authorization": f"Bearer {self.auth_token}"}

    async def _request(
        self,
        method: str,
        url: str,
        fallback: str,
        error_cls: type[APIError] = APIError,
        **kwargs: Any,
    ) -> httpx.Response:
        try:
            response = await self._client.request(method, url, headers=self._headers(), **kwargs)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            logger.warning("http_error method=%s url=%s status=%s", method, url, e.response.status_code)
            raise error_cls(
                error_message_from(e.response, fallback),
                status_code=e.response.status_code,
                response_body=e.response.text,
            ) from e
        except httpx.RequestError as e:
            logger.warning("http_request_failed method=%s url=%s error=%r", method, url, e)
            raise error_cls(fallback) from e
        return response

    async def get_menu_items(self, restaurant_id: str) -> list[MenuItem]:
        """Fetch the menu of one restaurant."""
        response = await self._request("GET", self.menu_items_url(restaurant_id), MENU_LOAD_FAILED_MESSAGE)
        try:
            body = response.json()
        except ValueError as e:
            raise APIError(MENU_LOAD_FAILED_MESSAGE, status_code=response.status_code) from e

        rows = body.get("data") if isinstance(body, dict) else None
        items = [MenuItem.from_api(row) for row in rows or [] if isinstance(row, dict)]
        logger.info("menu_loaded restaurant=%s items=%d", restaurant_id, len(items))
        return items

    async def add_to_cart(self, line: CartLineRequest) -> None:
        """Append a line to the user's server-side cart."""
        await self._request("POST", self.cart_url, ADD_TO_CART_FAILED_MESSAGE, json=line.to_payload())
        logger.info(
            "cart_added restaurant=%s item=%s quantity=%d",
            line.restaurant_id,
            line.menu_item_id,
            line.quantity,
        )

    async def start_payment(self, details: PaymentDetails) -> SignedPayment:
        """Ask the backend to sign a payment request."""
        response = await self._request(
            "POST",
            self.payment_start_url,
            PAYMENT_SIGNING_FAILED_MESSAGE,
            error_cls=PaymentSigningError,
            json=details.to_payload(),
        )
        try:
            body = response.json()
        except ValueError as e:
            raise PaymentSigningError(PAYMENT_SIGNING_FAILED_MESSAGE, status_code=response.status_code) from e

        if not isinstance(body, dict) or not body.get("hash") or not body.get("merchant_id"):
            raise PaymentSigningError(
                PAYMENT_SIGNING_FAILED_MESSAGE,
                status_code=response.status_code,
                response_body=response.text,
            )
        return SignedPayment(hash=str(body["hash"]), merchant_id=str(body["merchant_id"]))

    async def fetch_bytes(self, url: str) -> bytes:
        """Download a binary asset such as a menu image."""
        response = await self._client.get(url)
        response.raise_for_status()
        return response.content
