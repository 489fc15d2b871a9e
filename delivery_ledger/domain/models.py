"""
Domain models for the delivery ledger.

Defines the delivery record schema aligned with `db/init.sql`, the derived
report structures, and the plain value types passed between the request
boundary and the service layer. All models are frozen.
"""
from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Any, List, Optional

from pydantic import BaseModel, Field, field_validator

from delivery_ledger.dates import normalize_service_date
from delivery_ledger.errors import EmptyInvoiceNumber, InvalidAmount

AMOUNT_INTEGER_DIGITS = 10
AMOUNT_QUANTUM = Decimal("0.01")


def coerce_service_date(value: Any) -> str:
    """
    Canonicalize a service date from a string or a driver-provided `date`.

    `date.isoformat()` only formats the stored fields; no timezone is involved.
    A `datetime` is rejected because its calendar day depends on its offset.
    """
    if isinstance(value, date) and not isinstance(value, datetime):
        return value.isoformat()
    return normalize_service_date(value)


def coerce_amount(value: Any) -> Decimal:
    """Parse a positive decimal amount. Floats go through `str` to keep their short repr."""
    if isinstance(value, bool):
        raise InvalidAmount(value)
    if isinstance(value, float):
        value = repr(value)
    try:
        amount = value if isinstance(value, Decimal) else Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        raise InvalidAmount(value) from None
    if not amount.is_finite() or amount <= 0:
        raise InvalidAmount(value)
    # NUMERIC(12, 2): at most 10 integer digits and 2 decimals
    if amount.adjusted() >= AMOUNT_INTEGER_DIGITS:
        raise InvalidAmount(value)
    if amount.quantize(AMOUNT_QUANTUM) != amount:
        raise InvalidAmount(value)
    return amount


def coerce_invoice_number(value: Any) -> str:
    text = "" if value is None else str(value).strip()
    if not text:
        raise EmptyInvoiceNumber()
    return text


class DeliveryRecord(BaseModel):
    """
    Representation of a single row in the `deliveries` table.
    """

    id: str = Field(..., min_length=1, description="Opaque unique identifier.")
    owner_id: str = Field(..., min_length=1, description="Identifier of the owning user.")
    service_date: str = Field(..., description="Calendar date of the delivery (YYYY-MM-DD).")
    invoice_number: str = Field(..., description="Invoice number, trimmed and non-empty.")
    amount: Decimal = Field(..., description="Delivery value, strictly positive.")
    created_at: datetime = Field(..., description="Row creation timestamp (timezone-aware).")

    model_config = {
        "frozen": True,
        "populate_by_name": True,
        "arbitrary_types_allowed": False,
    }

    @field_validator("owner_id", mode="before")
    @classmethod
    def _owner_as_text(cls, value: Any) -> Any:
        # psycopg hands back uuid.UUID for the owner column
        return value if isinstance(value, str) else str(value)

    @field_validator("service_date", mode="before")
    @classmethod
    def _canonical_date(cls, value: Any) -> str:
        return coerce_service_date(value)

    @field_validator("invoice_number", mode="before")
    @classmethod
    def _trimmed_invoice(cls, value: Any) -> str:
        return coerce_invoice_number(value)

    @field_validator("amount", mode="before")
    @classmethod
    def _positive_amount(cls, value: Any) -> Decimal:
        return coerce_amount(value)


class DeliveryDraft(BaseModel):
    """
    Validated user input for creating or updating a delivery.

    Built at the request boundary with `DeliveryDraft.from_payload`, which
    raises the package's own input errors rather than pydantic's.
    """

    service_date: str
    invoice_number: str
    amount: Decimal

    model_config = {"frozen": True}

    @classmethod
    def from_payload(cls, service_date: Any, invoice_number: Any, amount: Any) -> "DeliveryDraft":
        return cls(
            service_date=coerce_service_date(service_date),
            invoice_number=coerce_invoice_number(invoice_number),
            amount=coerce_amount(amount),
        )


class OwnerTotal(BaseModel):
    """Sum of amounts attributable to one owner within a queried range."""

    owner_id: str
    total: Decimal
    owner_label: Optional[str] = None

    model_config = {"frozen": True}


class RangeReport(BaseModel):
    """Admin report over a closed date interval. Recomputed on every query."""

    start_date: str
    end_date: str
    records: List[DeliveryRecord] = Field(default_factory=list)
    owner_totals: List[OwnerTotal] = Field(default_factory=list)
    grand_total: Decimal = Decimal("0")

    model_config = {"frozen": True}

    def owner_label(self, owner_id: str) -> Optional[str]:
        for item in self.owner_totals:
            if item.owner_id == owner_id:
                return item.owner_label
        return None


class PersonalReport(BaseModel):
    """Single-owner listing: records newest first plus one total."""

    records: List[DeliveryRecord] = Field(default_factory=list)
    total: Decimal = Decimal("0")
    start_date: Optional[str] = None
    end_date: Optional[str] = None

    model_config = {"frozen": True}


class AuthenticatedUser(BaseModel):
    """Caller identity resolved once at the request boundary."""

    id: str
    email: Optional[str] = None
    is_admin: bool = False

    model_config = {"frozen": True}


__all__ = [
    "DeliveryRecord",
    "DeliveryDraft",
    "OwnerTotal",
    "RangeReport",
    "PersonalReport",
    "AuthenticatedUser",
    "coerce_service_date",
    "coerce_amount",
    "coerce_invoice_number",
]
