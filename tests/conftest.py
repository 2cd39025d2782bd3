"""
Shared fixtures and fakes for storefront tests.
"""

from __future__ import annotations

from decimal import Decimal
from io import BytesIO

import httpx
import pytest
from PIL import Image

from storefront.checkout import PaymentForm
from storefront.exceptions import APIError
from storefront.models import CartLineRequest, MenuItem, PaymentDescriptor, PaymentDetails, SignedPayment


def png_bytes(size: tuple[int, int] = (4, 2), color: tuple[int, int, int] = (200, 40, 40)) -> bytes:
    buffer = BytesIO()
    Image.new("RGB", size, color).save(buffer, format="PNG")
    return buffer.getvalue()


class FakeScheduler:
    """Records timers instead of running them."""

    def __init__(self) -> None:
        self.calls: list[tuple[float, object]] = []

    def __call__(self, delay: float, callback) -> None:
        self.calls.append((delay, callback))

    def fire(self, index: int) -> None:
        self.calls[index][1]()


class FakeAPI:
    """In-memory stand-in for StorefrontAPI."""

    def __init__(
        self,
        items: list[MenuItem] | None = None,
        menu_error: Exception | None = None,
        cart_errors: dict[str, Exception] | None = None,
        signing_error: Exception | None = None,
        signed: SignedPayment | None = None,
        images: dict[str, bytes] | None = None,
    ) -> None:
        self.items = items or []
        self.menu_error = menu_error
        self.cart_errors = cart_errors or {}
        self.signing_error = signing_error
        self.signed = signed or SignedPayment(hash="ABC123", merchant_id="1221149")
        self.images = images or {}
        self.menu_calls: list[str] = []
        self.cart_calls: list[CartLineRequest] = []
        self.payment_calls: list[PaymentDetails] = []
        self.image_calls: list[str] = []
        self.closed = False

    async def get_menu_items(self, restaurant_id: str) -> list[MenuItem]:
        self.menu_calls.append(restaurant_id)
        if self.menu_error is not None:
            raise self.menu_error
        return list(self.items)

    async def add_to_cart(self, line: CartLineRequest) -> None:
        self.cart_calls.append(line)
        error = self.cart_errors.get(line.menu_item_id)
        if error is not None:
            raise error

    async def start_payment(self, details: PaymentDetails) -> SignedPayment:
        self.payment_calls.append(details)
        if self.signing_error is not None:
            raise self.signing_error
        return self.signed

    async def fetch_bytes(self, url: str) -> bytes:
        self.image_calls.append(url)
        if url not in self.images:
            raise httpx.ConnectError(f"no route to {url}")
        return self.images[url]

    async def close(self) -> None:
        self.closed = True


class FakeCheckout:
    """Hosted checkout that records what it was asked to open."""

    def __init__(self, error: Exception | None = None) -> None:
        self.descriptors: list[PaymentDescriptor] = []
        self.error = error

    def initiate(self, descriptor: PaymentDescriptor) -> None:
        self.descriptors.append(descriptor)
        if self.error is not None:
            raise self.error


@pytest.fixture
def burger() -> MenuItem:
    return MenuItem(
        item_id="item-burger",
        name="Chicken Burger",
        price=Decimal("12.50"),
        category="mains",
        description="Grilled chicken, lettuce, mayo",
        image="/uploads/burger.jpg",
        is_available=True,
    )


@pytest.fixture
def pizza() -> MenuItem:
    return MenuItem(
        item_id="item-pizza",
        name="Margherita",
        price=Decimal("18.00"),
        category="pizza",
        description="Tomato, mozzarella, basil",
        image=None,
        is_available=True,
    )


@pytest.fixture
def soup() -> MenuItem:
    return MenuItem(
        item_id="item-soup",
        name="Soup of the Day",
        price=Decimal("6.00"),
        category="starters",
        is_available=False,
    )


@pytest.fixture
def scheduler() -> FakeScheduler:
    return FakeScheduler()


@pytest.fixture
def filled_form() -> PaymentForm:
    return PaymentForm(order_id="ORDER_1700000000000", amount="900", user_id="user-42", payment_method="card")


@pytest.fixture
def cart_error() -> APIError:
    return APIError("Item is out of stock", status_code=400)
