"""
Domain package for the delivery ledger.

Exports the delivery record, the derived report structures, and the caller
identity type. Keep this package focused on data definitions and validation.
"""

from delivery_ledger.domain.models import (
    AuthenticatedUser,
    DeliveryDraft,
    DeliveryRecord,
    OwnerTotal,
    PersonalReport,
    RangeReport,
)

__all__ = [
    "AuthenticatedUser",
    "DeliveryDraft",
    "DeliveryRecord",
    "OwnerTotal",
    "PersonalReport",
    "RangeReport",
]
