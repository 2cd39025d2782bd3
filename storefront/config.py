"""Runtime configuration defaults for API endpoints, payments and logging."""

from __future__ import annotations

import os


def _env(name: str, default: str) -> str:
    value = os.environ.get(name, "").strip()
    return value or default


def _env_flag(name: str, default: bool) -> bool:
    value = os.environ.get(name, "").strip().lower()
    if not value:
        return default
    return value in {"1", "true", "yes", "on"}


def _env_float(name: str, default: float) -> float:
    value = os.environ.get(name, "").strip()
    if not value:
        return default
    try:
        return float(value)
    except ValueError:
        return default


RESTAURANT_API_BASE_URL = _env("STOREFRONT_RESTAURANT_API", "http://localhost:5002/api")
USER_API_BASE_URL = _env("STOREFRONT_USER_API", "http://localhost:5001/api")
IMAGE_BASE_URL = _env("STOREFRONT_IMAGE_BASE_URL", "http://localhost:5002")
IMAGE_PLACEHOLDER_URL = "https://via.placeholder.com/300x224?text=No+Image"
AUTH_TOKEN = _env("STOREFRONT_AUTH_TOKEN", "")
DEFAULT_RESTAURANT_ID = _env("STOREFRONT_RESTAURANT_ID", "")

PAYMENT_START_URL = _env("STOREFRONT_PAYMENT_START_URL", "http://localhost:5005/payment/start")
PAYMENT_RETURN_URL = _env("STOREFRONT_PAYMENT_RETURN_URL", "http://localhost:5173/pay")
PAYMENT_CANCEL_URL = _env("STOREFRONT_PAYMENT_CANCEL_URL", "http://localhost:5173/pay")
PAYMENT_NOTIFY_URL = _env("STOREFRONT_PAYMENT_NOTIFY_URL", "http://localhost:5005/payment/notify")
PAYMENT_SANDBOX = _env_flag("STOREFRONT_PAYMENT_SANDBOX", True)
PAYMENT_CURRENCY = _env("STOREFRONT_PAYMENT_CURRENCY", "LKR")

PAYHERE_SANDBOX_CHECKOUT_URL = "https://sandbox.payhere.lk/pay/checkout"
PAYHERE_LIVE_CHECKOUT_URL = "https://www.payhere.lk/pay/checkout"

HTTP_TIMEOUT_SECONDS = _env_float("STOREFRONT_HTTP_TIMEOUT", 10.0)
CART_SUCCESS_CLEAR_SECONDS = 3.0

LOG_PATH = _env("STOREFRONT_LOG_PATH", "/tmp/storefront-debug.log")
