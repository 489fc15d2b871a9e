"""
Delivery Ledger - delivery records per user with date-range admin reports.

This package provides:

- Canonical handling of DATE values as `YYYY-MM-DD` strings (no timezone drift)
- Range filtering and per-owner aggregation with exact decimal totals
- Owner-scoped storage of delivery records in PostgreSQL
- A request-boundary authentication bridge and admin role check
- Rich terminal rendering and CSV export of reports, plus a Typer CLI
"""

from __future__ import annotations

__version__ = "0.1.0"
__license__ = "MIT"

# Public API exports
from delivery_ledger.aggregator import (
    build_personal_report,
    build_range_report,
    filter_by_range,
    grand_total,
    totals_by_owner,
)
from delivery_ledger.config import Settings, get_settings
from delivery_ledger.dates import format_service_date, normalize_service_date
from delivery_ledger.domain.models import (
    AuthenticatedUser,
    DeliveryRecord,
    OwnerTotal,
    PersonalReport,
    RangeReport,
)
from delivery_ledger.errors import (
    DeliveryError,
    EmptyInvoiceNumber,
    InvalidAmount,
    InvalidDateFormat,
)
from delivery_ledger.utils.logging import configure_logging, get_logger

__all__ = [
    # Version info
    "__version__",
    "__license__",
    # Configuration
    "Settings",
    "get_settings",
    # Dates
    "normalize_service_date",
    "format_service_date",
    # Aggregation
    "filter_by_range",
    "grand_total",
    "totals_by_owner",
    "build_range_report",
    "build_personal_report",
    # Domain
    "AuthenticatedUser",
    "DeliveryRecord",
    "OwnerTotal",
    "PersonalReport",
    "RangeReport",
    # Errors
    "DeliveryError",
    "InvalidDateFormat",
    "InvalidAmount",
    "EmptyInvoiceNumber",
    # Logging
    "configure_logging",
    "get_logger",
]
