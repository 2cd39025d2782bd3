"""Domain models for the storefront."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any

from storefront.exceptions import PaymentStateError


class PaymentMethod(str, Enum):
    CASH = "cash"
    CARD = "card"


class PaymentState(str, Enum):
    """Settlement state of a payment session, driven by provider events."""

    IDLE = "idle"
    INITIATED = "initiated"
    PENDING = "pending"
    SETTLED = "settled"
    FAILED = "failed"


def to_decimal(value: Any) -> Decimal:
    """Coerce a wire price into a Decimal, treating garbage as zero."""
    if isinstance(value, Decimal):
        return value
    try:
        return Decimal(str(value))
    except (InvalidOperation, ValueError):
        return Decimal("0")


@dataclass(frozen=True)
class MenuItem:
    """A menu item as served by the restaurant API."""

    item_id: str
    name: str
    price: Decimal
    category: str = ""
    description: str = ""
    image: str | None = None
    is_available: bool = False

    @classmethod
    def from_api(cls, payload: dict[str, Any]) -> MenuItem:
        return cls(
            item_id=str(payload.get("_id") or payload.get("id") or ""),
            name=str(payload.get("name") or ""),
            price=to_decimal(payload.get("price", 0)),
            category=str(payload.get("category") or ""),
            description=str(payload.get("description") or ""),
            image=payload.get("image") or None,
            is_available=bool(payload.get("isAvailable", False)),
        )


@dataclass(frozen=True)
class CartLineRequest:
    """One add-to-cart call."""

    restaurant_id: str
    menu_item_id: str
    quantity: int
    price: Decimal

    def __post_init__(self) -> None:
        if self.quantity < 1:
            raise ValueError("quantity must be at least 1")

    def to_payload(self) -> dict[str, Any]:
        return {
            "restaurant": self.restaurant_id,
            "menuItem": self.menu_item_id,
            "quantity": self.quantity,
            "price": float(self.price),
        }


@dataclass(frozen=True)
class PayerDetails:
    first_name: str
    last_name: str
    email: str
    phone: str
    address: str
    city: str
    country: str


@dataclass(frozen=True)
class PaymentDetails:
    """Everything sent to the hash-signing endpoint for one checkout attempt."""

    order_id: str
    amount: Decimal
    currency: str
    payer: PayerDetails
    user_id: str
    payment_method: PaymentMethod

    @property
    def amount_text(self) -> str:
        return f"{self.amount:.2f}"

    def to_payload(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "order_id": self.order_id,
            "amount": self.amount_text,
            "currency": self.currency,
        }
        payload.update(asdict(self.payer))
        payload["user_id"] = self.user_id
        payload["payment_method"] = self.payment_method.value
        return payload


@dataclass(frozen=True)
class SignedPayment:
    """Hash and merchant id returned by the signing endpoint."""

    hash: str
    merchant_id: str


@dataclass(frozen=True)
class PaymentDescriptor:
    """Signed payment handed to the hosted checkout."""

    details: PaymentDetails
    signed: SignedPayment
    sandbox: bool
    return_url: str
    cancel_url: str
    notify_url: str
    items: str

    @property
    def order_id(self) -> str:
        return self.details.order_id

    def to_payload(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "sandbox": self.sandbox,
            "merchant_id": self.signed.merchant_id,
            "return_url": self.return_url,
            "cancel_url": self.cancel_url,
            "notify_url": self.notify_url,
            "order_id": self.details.order_id,
            "items": self.items,
            "amount": self.details.amount_text,
            "currency": self.details.currency,
        }
        payload.update(asdict(self.details.payer))
        payload["user_id"] = self.details.user_id
        payload["payment_method"] = self.details.payment_method.value
        payload["hash"] = self.signed.hash
        return payload


@dataclass(frozen=True)
class OrderLine:
    """A row of the order summary."""

    item: str
    quantity: int
    price: Decimal

    @property
    def subtotal(self) -> Decimal:
        return self.price * self.quantity


@dataclass
class CartFeedback:
    """Transient add-to-cart message for a single menu item."""

    kind: str
    text: str
    token: int = 0


@dataclass
class ProviderNotification:
    """Payment status pushed by the provider (PayHere notify payload)."""

    order_id: str
    status_code: int
    merchant_id: str = ""
    amount: str = ""
    currency: str = ""
    extra: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> ProviderNotification:
        known = {"order_id", "status_code", "merchant_id", "payhere_amount", "payhere_currency"}
        raw_code = payload.get("status_code", -2)
        try:
            status_code = int(raw_code)
        except (TypeError, ValueError) as e:
            raise PaymentStateError(f"Unrecognised payment status code {raw_code!r}") from e
        return cls(
            order_id=str(payload.get("order_id", "")),
            status_code=status_code,
            merchant_id=str(payload.get("merchant_id", "")),
            amount=str(payload.get("payhere_amount", "")),
            currency=str(payload.get("payhere_currency", "")),
            extra={key: value for key, value in payload.items() if key not in known},
        )
