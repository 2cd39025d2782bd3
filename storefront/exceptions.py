"""Storefront exceptions."""

from __future__ import annotations


class StorefrontError(Exception):
    """Base exception for storefront errors."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class APIError(StorefrontError):
    """HTTP request to a backend service failed."""

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        response_body: str | None = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.response_body = response_body


class PaymentSigningError(APIError):
    """The hash-signing endpoint refused or could not be reached."""


class CheckoutValidationError(StorefrontError):
    """Checkout form contains invalid fields."""

    def __init__(self, message: str, errors: dict[str, str] | None = None) -> None:
        super().__init__(message)
        self.errors = errors or {}


class PaymentStateError(StorefrontError):
    """A provider event arrived that the payment session cannot accept."""

    def __init__(self, message: str, state: str | None = None) -> None:
        super().__init__(message)
        self.state = state


class ImageLoadError(StorefrontError):
    """A menu item image could not be fetched or decoded."""

    def __init__(self, message: str, url: str | None = None) -> None:
        super().__init__(message)
        self.url = url
