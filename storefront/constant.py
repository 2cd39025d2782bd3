"""Editable static data for the checkout form and order summary."""

from __future__ import annotations

# Sample cart shown in the order summary panel: (item, quantity, price).
SAMPLE_ORDER_LINES: list[tuple[str, int, int]] = [
    ("Burger", 2, 200),
    ("Pizza", 1, 500),
]

# Prefilled payer fields on the checkout form.
DEMO_PAYER: dict[str, str] = {
    "first_name": "Saman",
    "last_name": "Perera",
    "email": "samanp@gmail.com",
    "phone": "0771234567",
    "address": "No.1, Galle Road",
    "city": "Colombo",
    "country": "Sri Lanka",
}

CHECKOUT_ITEMS_LABEL = "Item Title"

PAYMENT_METHOD_LABELS: dict[str, str] = {
    "cash": "Cash",
    "card": "Card",
}

# Status shown as soon as a payment method is picked, before any provider event.
PAYMENT_METHOD_SELECTION_STATUS: dict[str, str] = {
    "cash": "Pending",
    "card": "Success",
}

# PayHere notification status codes.
PAYHERE_STATUS_CODES: dict[int, str] = {
    2: "success",
    0: "pending",
    -1: "cancelled",
    -2: "failed",
    -3: "chargedback",
}

CHECKOUT_FORM_LABELS: dict[str, str] = {
    "order_id": "Order ID",
    "amount": "Amount",
    "user_id": "User ID",
    "first_name": "First name",
    "last_name": "Last name",
    "email": "Email",
    "phone": "Phone",
    "address": "Address",
    "city": "City",
    "country": "Country",
}

EMPTY_MENU_MESSAGE = "No menu items available. Browse other restaurants!"
MENU_LOAD_FAILED_MESSAGE = "Failed to load menu items"
ADD_TO_CART_FAILED_MESSAGE = "Failed to add item to cart"
PAYMENT_SIGNING_FAILED_MESSAGE = "Failed to generate hash for payment."
