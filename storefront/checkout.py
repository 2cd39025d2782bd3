"""Checkout handshake: form -> signed payment -> hosted checkout."""

from __future__ import annotations

import html
import logging
import tempfile
import time
import webbrowser
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Callable, Protocol, runtime_checkable

from storefront.config import (
    PAYHERE_LIVE_CHECKOUT_URL,
    PAYHERE_SANDBOX_CHECKOUT_URL,
    PAYMENT_CANCEL_URL,
    PAYMENT_CURRENCY,
    PAYMENT_NOTIFY_URL,
    PAYMENT_RETURN_URL,
    PAYMENT_SANDBOX,
)
from storefront.constant import (
    CHECKOUT_FORM_LABELS,
    CHECKOUT_ITEMS_LABEL,
    DEMO_PAYER,
    PAYHERE_STATUS_CODES,
    PAYMENT_METHOD_SELECTION_STATUS,
)
from storefront.exceptions import CheckoutValidationError, PaymentSigningError, PaymentStateError, StorefrontError
from storefront.models import (
    PayerDetails,
    PaymentDescriptor,
    PaymentDetails,
    PaymentMethod,
    PaymentState,
    ProviderNotification,
    SignedPayment,
)

logger = logging.getLogger(__name__)

PAYER_FIELDS = ("first_name", "last_name", "email", "phone", "address", "city", "country")
_REQUIRED_PAYER_FIELDS = ("first_name", "last_name", "email", "phone")


def generate_order_id(now: float | None = None) -> str:
    """Client-side order id: ``ORDER_<epoch millis>``."""
    stamp = time.time() if now is None else now
    return f"ORDER_{int(stamp * 1000)}"


def status_for_method(method: PaymentMethod | str | None) -> str:
    """Status label shown as soon as a payment method is selected."""
    if method is None:
        return ""
    return PAYMENT_METHOD_SELECTION_STATUS[PaymentMethod(method).value]


@dataclass
class PaymentForm:
    """Editable checkout form state."""

    order_id: str = field(default_factory=generate_order_id)
    amount: str = ""
    user_id: str = ""
    payment_method: PaymentMethod | None = None
    payer: dict[str, str] = field(default_factory=lambda: dict(DEMO_PAYER))

    def __post_init__(self) -> None:
        if self.payment_method is not None:
            self.payment_method = PaymentMethod(self.payment_method)

    @property
    def selection_status(self) -> str:
        return status_for_method(self.payment_method)

    def select_method(self, method: PaymentMethod | str) -> str:
        self.payment_method = PaymentMethod(method)
        return self.selection_status

    def toggle_method(self) -> str:
        if self.payment_method is PaymentMethod.CASH:
            return self.select_method(PaymentMethod.CARD)
        return self.select_method(PaymentMethod.CASH)

    def get_field(self, name: str) -> str:
        if name in PAYER_FIELDS:
            return self.payer.get(name, "")
        if name not in {"order_id", "amount", "user_id"}:
            raise KeyError(name)
        return getattr(self, name)

    def set_field(self, name: str, value: str) -> None:
        if name in PAYER_FIELDS:
            self.payer[name] = value
            return
        if name not in {"order_id", "amount", "user_id"}:
            raise KeyError(name)
        setattr(self, name, value)


def _parse_amount(raw: str) -> Decimal | None:
    try:
        amount = Decimal(raw.strip())
    except (InvalidOperation, ValueError):
        return None
    if not amount.is_finite() or amount <= 0:
        return None
    return amount.quantize(Decimal("0.01"))


def build_payment_details(form: PaymentForm, currency: str = PAYMENT_CURRENCY) -> PaymentDetails:
    """Validate the form and build the details sent for signing."""
    errors: dict[str, str] = {}

    order_id = form.order_id.strip()
    if not order_id:
        errors["order_id"] = "Order ID is required."

    amount = _parse_amount(form.amount)
    if amount is None:
        errors["amount"] = "Amount must be a positive number."

    user_id = form.user_id.strip()
    if not user_id:
        errors["user_id"] = "User ID is required."

    if form.payment_method is None:
        errors["payment_method"] = "Choose a payment method."

    for name in _REQUIRED_PAYER_FIELDS:
        if not form.payer.get(name, "").strip():
            errors[name] = f"{CHECKOUT_FORM_LABELS[name]} is required."

    if errors:
        raise CheckoutValidationError("Please fix the highlighted fields.", errors=errors)

    payer = PayerDetails(**{name: form.payer.get(name, "").strip() for name in PAYER_FIELDS})
    return PaymentDetails(
        order_id=order_id,
        amount=amount,  # type: ignore[arg-type]
        currency=currency,
        payer=payer,
        user_id=user_id,
        payment_method=form.payment_method,  # type: ignore[arg-type]
    )


def build_descriptor(
    details: PaymentDetails,
    signed: SignedPayment,
    sandbox: bool = PAYMENT_SANDBOX,
    return_url: str = PAYMENT_RETURN_URL,
    cancel_url: str = PAYMENT_CANCEL_URL,
    notify_url: str = PAYMENT_NOTIFY_URL,
    items: str = CHECKOUT_ITEMS_LABEL,
) -> PaymentDescriptor:
    return PaymentDescriptor(
        details=details,
        signed=signed,
        sandbox=sandbox,
        return_url=return_url,
        cancel_url=cancel_url,
        notify_url=notify_url,
        items=items,
    )


@dataclass(frozen=True)
class CheckoutEvent:
    """Callback raised by the hosted checkout: completed, dismissed or error."""

    kind: str
    order_id: str = ""
    message: str = ""


class PaymentSession:
    """
    Settlement state of one checkout attempt.

    IDLE -> INITIATED -> {PENDING, SETTLED, FAILED}, PENDING -> {PENDING,
    SETTLED, FAILED}. Only the checkout callbacks and provider notifications
    move the state after initiation.
    """

    _TRANSITIONS: dict[PaymentState, set[PaymentState]] = {
        PaymentState.IDLE: {PaymentState.INITIATED},
        PaymentState.INITIATED: {PaymentState.PENDING, PaymentState.SETTLED, PaymentState.FAILED},
        PaymentState.PENDING: {PaymentState.PENDING, PaymentState.SETTLED, PaymentState.FAILED},
        PaymentState.SETTLED: set(),
        PaymentState.FAILED: set(),
    }

    _LABELS: dict[PaymentState, str] = {
        PaymentState.IDLE: "",
        PaymentState.INITIATED: "Initiated",
        PaymentState.PENDING: "Pending",
        PaymentState.SETTLED: "Success",
        PaymentState.FAILED: "Failed",
    }

    def __init__(self, order_id: str) -> None:
        self.order_id = order_id
        self.state = PaymentState.IDLE
        self.reason = ""

    @property
    def status_label(self) -> str:
        return self._LABELS[self.state]

    @property
    def is_final(self) -> bool:
        return not self._TRANSITIONS[self.state]

    def _transition(self, new_state: PaymentState, reason: str) -> None:
        if new_state not in self._TRANSITIONS[self.state]:
            raise PaymentStateError(
                f"Cannot move payment {self.order_id} from {self.state.value} to {new_state.value}",
                state=self.state.value,
            )
        logger.info(
            "payment_state order_id=%s from=%s to=%s reason=%s",
            self.order_id,
            self.state.value,
            new_state.value,
            reason,
        )
        self.state = new_state
        self.reason = reason

    def initiate(self) -> None:
        self._transition(PaymentState.INITIATED, "checkout_opened")

    def fail(self, reason: str) -> None:
        self._transition(PaymentState.FAILED, reason)

    def apply_checkout_event(self, event: CheckoutEvent) -> None:
        if event.kind == "completed":
            if event.order_id and event.order_id != self.order_id:
                raise PaymentStateError(f"Checkout completed for unknown order {event.order_id}", state=self.state.value)
            # Completion in the widget is unverified until the provider notifies.
            self._transition(PaymentState.PENDING, "checkout_completed")
        elif event.kind == "dismissed":
            self._transition(PaymentState.FAILED, "checkout_dismissed")
        elif event.kind == "error":
            self._transition(PaymentState.FAILED, event.message or "checkout_error")
        else:
            raise PaymentStateError(f"Unknown checkout event {event.kind!r}", state=self.state.value)

    def apply_notification(self, notification: ProviderNotification) -> None:
        if notification.order_id != self.order_id:
            raise PaymentStateError(
                f"Notification for order {notification.order_id} does not match {self.order_id}",
                state=self.state.value,
            )
        outcome = PAYHERE_STATUS_CODES.get(notification.status_code, "failed")
        if outcome == "success":
            self._transition(PaymentState.SETTLED, "provider_success")
        elif outcome == "pending":
            self._transition(PaymentState.PENDING, "provider_pending")
        else:
            self._transition(PaymentState.FAILED, f"provider_{outcome}")


@runtime_checkable
class HostedCheckout(Protocol):
    """Third-party hosted payment page. Results arrive out of band."""

    def initiate(self, descriptor: PaymentDescriptor) -> None: ...


class SigningAPI(Protocol):
    async def start_payment(self, details: PaymentDetails) -> SignedPayment: ...


def render_checkout_form(descriptor: PaymentDescriptor, action_url: str) -> str:
    """Render an auto-submitting HTML form that posts the descriptor."""
    fields = descriptor.to_payload()
    fields.pop("sandbox", None)
    inputs = "\n".join(
        f'    <input type="hidden" name="{html.escape(str(name))}" value="{html.escape(str(value))}">'
        for name, value in fields.items()
    )
    return (
        "<!DOCTYPE html>\n"
        "<html>\n"
        f"<head><meta charset=\"utf-8\"><title>Payment {html.escape(descriptor.order_id)}</title></head>\n"
        '<body onload="document.forms[0].submit()">\n'
        f'  <form method="post" action="{html.escape(action_url)}">\n'
        f"{inputs}\n"
        '    <noscript><button type="submit">Continue to payment</button></noscript>\n'
        "  </form>\n"
        "</body>\n"
        "</html>\n"
    )


class BrowserCheckout:
    """
    Open the PayHere hosted checkout in the user's browser.

    Each attempt writes an auto-submitting page holding the payer's details
    to a temp file. The browser loads it after `initiate` returns, so pages
    are kept until `cleanup()`, which the app calls on exit.
    """

    page_prefix = "payhere-checkout-"

    def __init__(
        self,
        opener: Callable[[str], bool] = webbrowser.open,
        directory: str | None = None,
    ) -> None:
        self._opener = opener
        self._directory = directory
        self.pages: list[Path] = []

    def initiate(self, descriptor: PaymentDescriptor) -> None:
        action_url = PAYHERE_SANDBOX_CHECKOUT_URL if descriptor.sandbox else PAYHERE_LIVE_CHECKOUT_URL
        page = render_checkout_form(descriptor, action_url)
        try:
            with tempfile.NamedTemporaryFile(
                "w",
                encoding="utf-8",
                prefix=self.page_prefix,
                suffix=".html",
                dir=self._directory,
                delete=False,
            ) as fh:
                path = Path(fh.name)
                self.pages.append(path)
                fh.write(page)
        except OSError as e:
            logger.error("checkout_page_write_failed order_id=%s error=%r", descriptor.order_id, e)
            raise StorefrontError(f"Could not write the payment page: {e}") from e

        logger.info("checkout_page order_id=%s path=%s sandbox=%s", descriptor.order_id, path, descriptor.sandbox)
        if not self._opener(path.as_uri()):
            raise StorefrontError("Could not open the payment page in a browser.")

    def cleanup(self) -> None:
        """Delete every checkout page written so far."""
        while self.pages:
            path = self.pages.pop()
            try:
                path.unlink(missing_ok=True)
            except OSError as e:
                logger.warning("checkout_page_cleanup_failed path=%s error=%r", path, e)


class CheckoutHandshake:
    """Sign a payment with the backend and hand it to the hosted checkout."""

    def __init__(
        self,
        api: SigningAPI,
        checkout: HostedCheckout,
        currency: str = PAYMENT_CURRENCY,
        sandbox: bool = PAYMENT_SANDBOX,
        return_url: str = PAYMENT_RETURN_URL,
        cancel_url: str = PAYMENT_CANCEL_URL,
        notify_url: str = PAYMENT_NOTIFY_URL,
    ) -> None:
        self.api = api
        self.checkout = checkout
        self.currency = currency
        self.sandbox = sandbox
        self.return_url = return_url
        self.cancel_url = cancel_url
        self.notify_url = notify_url
        self.session: PaymentSession | None = None

    async def proceed(self, form: PaymentForm) -> PaymentSession:
        """
        Run the three-step handshake for the current form.

        Raises:
            CheckoutValidationError: If the form is incomplete.
            PaymentSigningError: If the backend could not sign the payment.
            StorefrontError: If the hosted checkout could not be opened.
        """
        details = build_payment_details(form, self.currency)
        logger.info("payment_started order_id=%s amount=%s", details.order_id, details.amount_text)

        try:
            signed = await self.api.start_payment(details)
        except PaymentSigningError as e:
            logger.error("payment_signing_failed order_id=%s status=%s error=%r", details.order_id, e.status_code, e.message)
            raise

        descriptor = build_descriptor(
            details,
            signed,
            sandbox=self.sandbox,
            return_url=self.return_url,
            cancel_url=self.cancel_url,
            notify_url=self.notify_url,
        )
        session = PaymentSession(details.order_id)
        session.initiate()
        self.session = session
        try:
            self.checkout.initiate(descriptor)
        except StorefrontError as e:
            session.fail(e.message)
            logger.error("checkout_open_failed order_id=%s error=%r", details.order_id, e.message)
            raise
        return session

    def handle_checkout_event(self, event: CheckoutEvent) -> None:
        if self.session is None:
            raise PaymentStateError(f"No payment in progress for checkout event {event.kind!r}")
        self.session.apply_checkout_event(event)

    def handle_notification(self, notification: ProviderNotification) -> None:
        if self.session is None:
            raise PaymentStateError(f"No payment in progress for order {notification.order_id}")
        self.session.apply_notification(notification)
