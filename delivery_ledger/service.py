"""
Application service: the operations request handlers and the CLI call.

Validates raw input into `DeliveryDraft`s, enforces owner/admin rules, talks
to the record store, and hands fetched records to the pure aggregation core.
This is the layer that logs; `dates` and `aggregator` stay silent.

Usage:
    from delivery_ledger.service import DeliveryService

    service = DeliveryService(store=DeliveryStore(), settings=get_settings())
    record = service.register(user, {"service_date": "2024-01-15",
                                     "invoice_number": "F-001", "amount": "48900"})
    report = service.admin_report(admin, "2024-01-01", "2024-01-31")
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict, Mapping, Optional
from uuid import uuid4

from delivery_ledger.aggregator import build_personal_report, build_range_report
from delivery_ledger.auth import IdentityProvider
from delivery_ledger.config import Settings, get_settings
from delivery_ledger.dates import is_calendar_date, normalize_service_date
from delivery_ledger.domain.models import (
    AuthenticatedUser,
    DeliveryDraft,
    DeliveryRecord,
    PersonalReport,
    RangeReport,
)
from delivery_ledger.errors import (
    AccessDenied,
    InputError,
    InvalidDateFormat,
    InvalidDateRange,
    MissingField,
)
from delivery_ledger.infrastructure.store import DeliveryRepository
from delivery_ledger.utils.logging import get_logger

log = get_logger(__name__)

UNKNOWN_OWNER_LABEL = "Usuario desconocido"
REQUIRED_FIELDS = ("service_date", "invoice_number", "amount")


def new_delivery_id() -> str:
    return uuid4().hex


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


class DeliveryService:
    """
    Owner-scoped delivery operations plus the admin range report.

    Parameters
    ----------
    store : DeliveryRepository
        Record store; `DeliveryStore` in production.
    settings : Settings | None
        Admin list and business-rule switches. Defaults to `get_settings()`.
    identity : IdentityProvider | None
        Used to label owners in the admin report. Without one, owners are
        labelled "Usuario desconocido".
    """

    def __init__(
        self,
        store: DeliveryRepository,
        settings: Optional[Settings] = None,
        identity: Optional[IdentityProvider] = None,
    ) -> None:
        self.store = store
        self.settings = settings or get_settings()
        self.identity = identity

    def _draft(self, payload: Mapping[str, Any]) -> DeliveryDraft:
        for name in REQUIRED_FIELDS:
            if _is_blank(payload.get(name)):
                raise MissingField(name)
        draft = DeliveryDraft.from_payload(
            payload["service_date"], payload["invoice_number"], payload["amount"]
        )
        if self.settings.strict_calendar_dates and not is_calendar_date(draft.service_date):
            raise InvalidDateFormat(payload["service_date"])
        return draft

    def register(self, user: AuthenticatedUser, payload: Mapping[str, Any]) -> DeliveryRecord:
        """Create a delivery owned by `user`. Raises `InputError` subclasses on bad input."""
        try:
            draft = self._draft(payload)
        except InputError as exc:
            log.warning("Delivery rejected", extra={"owner_id": user.id, "reason": str(exc)})
            raise

        record = DeliveryRecord(
            id=new_delivery_id(),
            owner_id=user.id,
            service_date=draft.service_date,
            invoice_number=draft.invoice_number,
            amount=draft.amount,
            created_at=datetime.now(timezone.utc),
        )
        stored = self.store.insert(record)
        log.info(
            "Delivery registered",
            extra={
                "delivery_id": stored.id,
                "owner_id": user.id,
                "service_date": stored.service_date,
            },
        )
        return stored

    def list_mine(
        self,
        user: AuthenticatedUser,
        start_date: Optional[str] = None,
        end_date: Optional[str] = None,
    ) -> PersonalReport:
        """The caller's deliveries, newest first, optionally bounded on either side."""
        start = normalize_service_date(start_date) if not _is_blank(start_date) else None
        end = normalize_service_date(end_date) if not _is_blank(end_date) else None
        records = self.store.list_for_owner(user.id)
        report = build_personal_report(records, start, end)
        log.debug(
            "Personal listing built",
            extra={"owner_id": user.id, "records": len(report.records)},
        )
        return report

    def update(
        self,
        user: AuthenticatedUser,
        delivery_id: str,
        payload: Mapping[str, Any],
    ) -> DeliveryRecord:
        """Replace date, invoice number and amount. Only the owner may update."""
        try:
            draft = self._draft(payload)
        except InputError as exc:
            log.warning(
                "Delivery update rejected",
                extra={"owner_id": user.id, "delivery_id": delivery_id, "reason": str(exc)},
            )
            raise
        return self.store.update_for_owner(delivery_id, user.id, draft)

    def delete(self, user: AuthenticatedUser, delivery_id: str) -> None:
        self.store.delete_for_owner(delivery_id, user.id)

    def _owner_labels(self, records: list) -> Dict[str, str]:
        labels: Dict[str, str] = {}
        for owner_id in {r.owner_id for r in records}:
            email = self.identity.email_for_owner(owner_id) if self.identity else None
            labels[owner_id] = email or UNKNOWN_OWNER_LABEL
        return labels

    def admin_report(
        self,
        user: AuthenticatedUser,
        start_date: Optional[str],
        end_date: Optional[str],
    ) -> RangeReport:
        """
        Range report across all owners.

        Raises
        ------
        AccessDenied
            When the caller is not an administrator.
        InvalidDateRange
            When either bound is missing.
        InvalidDateFormat
            When a bound is not a canonical date.
        """
        if not user.is_admin:
            log.warning("Admin report denied", extra={"user_id": user.id})
            raise AccessDenied()
        if _is_blank(start_date) or _is_blank(end_date):
            raise InvalidDateRange(start_date, end_date)

        start = normalize_service_date(start_date)
        end = normalize_service_date(end_date)
        records = self.store.list_in_range(start, end)
        report = build_range_report(records, start, end, self._owner_labels(records))
        log.info(
            "Admin report built",
            extra={
                "start_date": start,
                "end_date": end,
                "records": len(report.records),
                "owners": len(report.owner_totals),
            },
        )
        return report


__all__ = ["DeliveryService", "UNKNOWN_OWNER_LABEL", "new_delivery_id"]
