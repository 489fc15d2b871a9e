"""
Exception hierarchy for the delivery ledger.

Every error raised by the package derives from `DeliveryError` so request
handlers and the CLI can translate failures with a single `except` clause.
Input errors carry the offending value for diagnostics.
"""

from __future__ import annotations

from typing import Any


class DeliveryError(Exception):
    """Base class for all delivery ledger errors."""


class InputError(DeliveryError):
    """Raised when caller-supplied data is rejected. Always recoverable."""


class InvalidDateFormat(InputError):
    """A date string does not reduce to `YYYY-MM-DD`."""

    def __init__(self, value: Any) -> None:
        self.value = value
        super().__init__(f"Invalid date format: {value!r}. Expected YYYY-MM-DD")


class InvalidAmount(InputError):
    """An amount is not a positive decimal."""

    def __init__(self, value: Any) -> None:
        self.value = value
        super().__init__(f"Invalid amount: {value!r}. Amount must be a number greater than zero")


class EmptyInvoiceNumber(InputError):
    def __init__(self) -> None:
        super().__init__("Invoice number cannot be empty")


class MissingField(InputError):
    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"Missing required field: {name}")


class InvalidDateRange(InputError):
    """Start and end dates are both required for a range report."""

    def __init__(self, start: Any, end: Any) -> None:
        self.start = start
        self.end = end
        super().__init__(f"Both start and end dates are required (got start={start!r}, end={end!r})")


class NotAuthenticated(DeliveryError):
    def __init__(self, reason: str = "No valid credentials supplied") -> None:
        super().__init__(reason)


class AccessDenied(DeliveryError):
    def __init__(self, reason: str = "Administrator permissions required") -> None:
        super().__init__(reason)


class DeliveryNotFound(DeliveryError):
    """No delivery with that id exists for the acting owner."""

    def __init__(self, delivery_id: str) -> None:
        self.delivery_id = delivery_id
        super().__init__(f"Delivery {delivery_id!r} not found")


__all__ = [
    "DeliveryError",
    "InputError",
    "InvalidDateFormat",
    "InvalidAmount",
    "EmptyInvoiceNumber",
    "MissingField",
    "InvalidDateRange",
    "NotAuthenticated",
    "AccessDenied",
    "DeliveryNotFound",
]
