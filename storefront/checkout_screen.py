"""Payment checkout screen with order summary."""

from __future__ import annotations

import logging

from rich.text import Text
from textual.app import ComposeResult
from textual.containers import Horizontal, Vertical
from textual.css.query import NoMatches
from textual.reactive import reactive
from textual.screen import Screen
from textual.widgets import Footer, Header, Static

from storefront.checkout import CheckoutEvent, CheckoutHandshake, PaymentForm, generate_order_id
from storefront.constant import CHECKOUT_FORM_LABELS, PAYMENT_METHOD_LABELS
from storefront.exceptions import CheckoutValidationError, StorefrontError
from storefront.models import PaymentMethod, ProviderNotification
from storefront.order_summary import format_amount, order_total, sample_order_lines
from storefront.prompt_modal import PromptModal
from storefront.rendering import format_payment_status, order_summary_table

logger = logging.getLogger(__name__)

FORM_FIELDS = tuple(CHECKOUT_FORM_LABELS)


class CheckoutScreen(Screen):
    """Collect payment details and start the hosted checkout."""

    CSS = """
    #checkout-layout {
        height: 1fr;
    }

    #form-pane {
        width: 3fr;
        border: round $primary;
        padding: 1;
    }

    #summary-pane {
        width: 2fr;
        border: round $secondary;
        padding: 1;
    }

    #form-fields {
        height: auto;
        border: tall $surface;
        padding: 0 1;
        margin-bottom: 1;
    }

    #checkout-message {
        height: auto;
        margin-top: 1;
    }

    .pane-title {
        text-style: bold;
        margin-bottom: 1;
    }
    """

    BINDINGS = [
        ("j", "move_cursor(1)", "Next"),
        ("k", "move_cursor(-1)", "Previous"),
        ("down", "move_cursor(1)", "Next"),
        ("up", "move_cursor(-1)", "Previous"),
        ("enter", "edit_field", "Edit"),
        ("m", "toggle_method", "Method"),
        ("1", "select_method('cash')", "Cash"),
        ("2", "select_method('card')", "Card"),
        ("n", "new_order_id", "New order ID"),
        ("p", "proceed", "Proceed with payment"),
        ("escape", "back", "Back"),
    ]

    cursor_index = reactive(0)

    def __init__(self, handshake: CheckoutHandshake, form: PaymentForm | None = None) -> None:
        super().__init__()
        self.handshake = handshake
        self.order_lines = sample_order_lines()
        self.form = form or PaymentForm(amount=format_amount(order_total(self.order_lines)))
        self.message = ""
        self.message_is_error = False
        self.field_errors: dict[str, str] = {}
        self.submitting = False

    def compose(self) -> ComposeResult:
        yield Header()
        with Horizontal(id="checkout-layout"):
            with Vertical(id="form-pane"):
                yield Static("Complete Your Payment", classes="pane-title")
                yield Static(id="form-fields")
                yield Static(id="payment-method")
                yield Static(id="payment-status")
                yield Static(id="checkout-message")
            with Vertical(id="summary-pane"):
                yield Static("Order Summary", classes="pane-title")
                yield Static(id="order-summary")
        yield Footer()

    def on_mount(self) -> None:
        self.sub_title = "Checkout"
        self._refresh_all()

    @property
    def payment_status(self) -> str:
        """Provider-driven status once a payment is under way, else the selection status."""
        session = self.handshake.session
        if session is not None and session.order_id == self.form.order_id:
            return session.status_label
        return self.form.selection_status

    def action_move_cursor(self, delta: int) -> None:
        self.cursor_index = (self.cursor_index + delta) % len(FORM_FIELDS)
        self._refresh_form()

    def action_edit_field(self) -> None:
        name = FORM_FIELDS[self.cursor_index]

        def apply(value: str | None) -> None:
            if value is None:
                return
            self.form.set_field(name, value)
            self.field_errors.pop(name, None)
            self._refresh_all()

        self.app.push_screen(
            PromptModal(CHECKOUT_FORM_LABELS[name], f"Enter {CHECKOUT_FORM_LABELS[name]}", value=self.form.get_field(name)),
            apply,
        )

    def action_select_method(self, method: str) -> None:
        status = self.form.select_method(method)
        self.field_errors.pop("payment_method", None)
        logger.info("payment_method_selected method=%s status=%s", method, status)
        self._refresh_all()

    def action_toggle_method(self) -> None:
        status = self.form.toggle_method()
        self.field_errors.pop("payment_method", None)
        logger.info("payment_method_selected method=%s status=%s", self.form.payment_method.value, status)
        self._refresh_all()

    def action_new_order_id(self) -> None:
        self.form.order_id = generate_order_id()
        self._refresh_all()

    def action_proceed(self) -> None:
        if self.submitting:
            return
        self.run_worker(self.proceed(), group="payment", exclusive=True)

    def action_back(self) -> None:
        if len(self.app.screen_stack) > 1:
            self.app.pop_screen()

    async def proceed(self) -> None:
        self.submitting = True
        self.field_errors = {}
        self._set_message("Requesting payment signature…")
        try:
            session = await self.handshake.proceed(self.form)
        except CheckoutValidationError as e:
            self.field_errors = dict(e.errors)
            self._set_message(e.message, error=True)
        except StorefrontError as e:
            self._set_message(e.message, error=True)
        else:
            self._set_message(f"Payment page opened for {session.order_id}.")
        finally:
            self.submitting = False
            self._refresh_all()

    def handle_checkout_event(self, event: CheckoutEvent) -> None:
        """Feed a hosted checkout callback into the current payment."""
        try:
            self.handshake.handle_checkout_event(event)
        except StorefrontError as e:
            logger.warning("checkout_event_rejected kind=%s error=%r", event.kind, e.message)
            self._set_message(e.message, error=True)
        self._refresh_all()

    def handle_notification(self, notification: ProviderNotification) -> None:
        """Feed a provider status notification into the current payment."""
        try:
            self.handshake.handle_notification(notification)
        except StorefrontError as e:
            logger.warning("notification_rejected order_id=%s error=%r", notification.order_id, e.message)
            self._set_message(e.message, error=True)
        self._refresh_all()

    def _set_message(self, message: str, error: bool = False) -> None:
        self.message = message
        self.message_is_error = error
        self._refresh_message()

    def _refresh_all(self) -> None:
        self._refresh_form()
        self._refresh_method()
        self._refresh_message()
        self._refresh_summary()

    def _refresh_form(self) -> None:
        try:
            fields = self.query_one("#form-fields", Static)
        except NoMatches:
            return

        text = Text()
        for idx, name in enumerate(FORM_FIELDS):
            if idx > 0:
                text.append("\n")
            pointer = "➤ " if idx == self.cursor_index else "  "
            text.append(pointer)
            text.append(f"{CHECKOUT_FORM_LABELS[name]:<11}", style="bold")
            text.append(self.form.get_field(name) or "-")
            if name in self.field_errors:
                text.append(f"  {self.field_errors[name]}", style="#ff6b6b")
        fields.update(text)

    def _refresh_method(self) -> None:
        try:
            method_widget = self.query_one("#payment-method", Static)
            status_widget = self.query_one("#payment-status", Static)
        except NoMatches:
            return

        text = Text()
        text.append("Payment Method: ", style="bold")
        for idx, method in enumerate(PaymentMethod):
            if idx > 0:
                text.append("   ")
            checked = "(•)" if self.form.payment_method is method else "( )"
            text.append(f"{checked} {idx + 1}. {PAYMENT_METHOD_LABELS[method.value]}")
        if "payment_method" in self.field_errors:
            text.append(f"  {self.field_errors['payment_method']}", style="#ff6b6b")
        method_widget.update(text)
        status_widget.update(format_payment_status(self.payment_status))

    def _refresh_message(self) -> None:
        try:
            message_widget = self.query_one("#checkout-message", Static)
        except NoMatches:
            return
        style = "bold #ff6b6b" if self.message_is_error else "italic"
        message_widget.update(Text(self.message, style=style))

    def _refresh_summary(self) -> None:
        try:
            summary = self.query_one("#order-summary", Static)
        except NoMatches:
            return
        summary.update(order_summary_table(self.order_lines, self.handshake.currency))
