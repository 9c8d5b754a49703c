"""Exceptions raised by the storefront's checkout path."""
from __future__ import annotations

from typing import Iterable, Tuple


def _labels(fields: Iterable[str]) -> str:
    return ", ".join(f.replace("_", " ") for f in fields)


class StorefrontError(Exception):
    """Base exception for storefront errors shown to the user."""

    def __init__(self, message: str, *args: object) -> None:
        super().__init__(message, *args)
        self.message = message


class EmptyCartError(StorefrontError):
    """Checkout was attempted with nothing in the cart."""

    def __init__(self) -> None:
        super().__init__("Add items to your cart before checking out.")


class ShippingFormError(StorefrontError):
    """Shipping fields were left blank or hold a malformed value."""

    def __init__(
        self, missing_fields: Iterable[str] = (), invalid_fields: Iterable[str] = ()
    ) -> None:
        self.missing_fields: Tuple[str, ...] = tuple(missing_fields)
        self.invalid_fields: Tuple[str, ...] = tuple(invalid_fields)
        if self.missing_fields:
            message = "Please fill in: " + _labels(self.missing_fields)
        else:
            message = "Please check: " + _labels(self.invalid_fields)
        super().__init__(message)

    @property
    def fields(self) -> Tuple[str, ...]:
        return self.missing_fields + self.invalid_fields


class OrderSubmitError(StorefrontError):
    """The order could not be written. The cart is left as it was."""

    def __init__(self, order_number: str | None = None) -> None:
        super().__init__("There was an error placing your order. Please try again.")
        self.order_number = order_number
