from __future__ import annotations

import logging
from decimal import Decimal

import pytest

from delivery_ledger.auth import StaticIdentityProvider
from delivery_ledger.config import Settings
from delivery_ledger.errors import (
    AccessDenied,
    DeliveryNotFound,
    InvalidAmount,
    InvalidDateFormat,
    InvalidDateRange,
    MissingField,
)
from delivery_ledger.service import UNKNOWN_OWNER_LABEL, DeliveryService

VALID_PAYLOAD = {"service_date": "2024-01-15", "invoice_number": "F-001", "amount": "48900"}


@pytest.fixture
def service(store, unit_settings) -> DeliveryService:
    identity = StaticIdentityProvider(emails={"owner-a": "ana@example.com"})
    return DeliveryService(store, settings=unit_settings, identity=identity)


class TestRegister:
    def test_register_assigns_owner_and_normalizes(self, service, store, owner) -> None:
        record = service.register(
            owner,
            {"service_date": "2024-01-15T00:00:00Z", "invoice_number": " F-1 ", "amount": "48900"},
        )

        assert record.owner_id == owner.id
        assert record.service_date == "2024-01-15"
        assert record.invoice_number == "F-1"
        assert record.amount == Decimal("48900")
        assert record.created_at.tzinfo is not None
        assert store.rows[record.id] == record

    @pytest.mark.parametrize("field", ["service_date", "invoice_number", "amount"])
    def test_missing_field_is_rejected(self, service, store, owner, field) -> None:
        payload = dict(VALID_PAYLOAD)
        payload[field] = "  "

        with pytest.raises(MissingField) as excinfo:
            service.register(owner, payload)

        assert excinfo.value.name == field
        assert store.rows == {}

    def test_bad_values_raise_specific_errors(self, service, owner) -> None:
        with pytest.raises(InvalidDateFormat):
            service.register(owner, {**VALID_PAYLOAD, "service_date": "15/01/2024"})
        with pytest.raises(InvalidAmount):
            service.register(owner, {**VALID_PAYLOAD, "amount": "-3"})
        with pytest.raises(MissingField):
            service.register(owner, {**VALID_PAYLOAD, "invoice_number": "\t"})

    def test_rejection_is_logged(self, service, owner, caplog) -> None:
        with caplog.at_level(logging.WARNING, logger="delivery_ledger.service"):
            with pytest.raises(InvalidAmount):
                service.register(owner, {**VALID_PAYLOAD, "amount": "0"})

        assert any(r.message == "Delivery rejected" for r in caplog.records)

    def test_impossible_dates_pass_unless_strict(self, store, owner) -> None:
        lenient = DeliveryService(store, settings=Settings(strict_calendar_dates=False))
        strict = DeliveryService(store, settings=Settings(strict_calendar_dates=True))
        payload = {**VALID_PAYLOAD, "service_date": "2024-02-30"}

        assert lenient.register(owner, payload).service_date == "2024-02-30"
        with pytest.raises(InvalidDateFormat):
            strict.register(owner, payload)


class TestOwnerScope:
    def test_list_mine_only_returns_own_records(self, service, owner, other_owner) -> None:
        service.register(owner, {**VALID_PAYLOAD, "service_date": "2024-01-10"})
        service.register(owner, {**VALID_PAYLOAD, "service_date": "2024-01-20"})
        service.register(other_owner, VALID_PAYLOAD)

        report = service.list_mine(owner)

        assert [r.service_date for r in report.records] == ["2024-01-20", "2024-01-10"]
        assert all(r.owner_id == owner.id for r in report.records)
        assert report.total == Decimal("97800")

    def test_list_mine_applies_normalized_bounds(self, service, owner) -> None:
        service.register(owner, {**VALID_PAYLOAD, "service_date": "2024-01-10"})
        service.register(owner, {**VALID_PAYLOAD, "service_date": "2024-02-10"})

        report = service.list_mine(owner, "2024-02-01T00:00:00Z", "")

        assert [r.service_date for r in report.records] == ["2024-02-10"]
        assert report.start_date == "2024-02-01"
        assert report.end_date is None

    def test_update_replaces_fields(self, service, owner) -> None:
        created = service.register(owner, VALID_PAYLOAD)

        updated = service.update(
            owner,
            created.id,
            {"service_date": "2024-01-16", "invoice_number": "F-002", "amount": "50000"},
        )

        assert updated.id == created.id
        assert updated.service_date == "2024-01-16"
        assert updated.amount == Decimal("50000")

    def test_other_owner_cannot_update_or_delete(self, service, owner, other_owner) -> None:
        created = service.register(owner, VALID_PAYLOAD)

        with pytest.raises(DeliveryNotFound):
            service.update(other_owner, created.id, VALID_PAYLOAD)
        with pytest.raises(DeliveryNotFound):
            service.delete(other_owner, created.id)

        assert service.list_mine(owner).records == [created]

    def test_delete_removes_record(self, service, owner) -> None:
        created = service.register(owner, VALID_PAYLOAD)

        service.delete(owner, created.id)

        assert service.list_mine(owner).records == []


class TestAdminReport:
    def test_non_admin_is_denied(self, service, owner) -> None:
        with pytest.raises(AccessDenied):
            service.admin_report(owner, "2024-01-01", "2024-01-31")

    @pytest.mark.parametrize("start, end", [(None, "2024-01-31"), ("2024-01-01", ""), (None, None)])
    def test_both_bounds_required(self, service, admin, start, end) -> None:
        with pytest.raises(InvalidDateRange):
            service.admin_report(admin, start, end)

    def test_denied_before_bounds_are_checked(self, service, owner) -> None:
        with pytest.raises(AccessDenied):
            service.admin_report(owner, None, None)

    def test_malformed_bound_is_rejected(self, service, admin) -> None:
        with pytest.raises(InvalidDateFormat):
            service.admin_report(admin, "01/01/2024", "2024-01-31")

    def test_report_spans_owners_with_labels(self, service, admin, owner, other_owner) -> None:
        service.register(owner, {**VALID_PAYLOAD, "amount": "100"})
        service.register(owner, {**VALID_PAYLOAD, "amount": "50"})
        service.register(other_owner, {**VALID_PAYLOAD, "amount": "30"})
        service.register(other_owner, {**VALID_PAYLOAD, "service_date": "2024-03-01"})

        report = service.admin_report(admin, "2024-01-01", "2024-01-31T23:59:59Z")

        assert report.end_date == "2024-01-31"
        assert [(t.owner_id, t.total) for t in report.owner_totals] == [
            ("owner-a", Decimal("150")),
            ("owner-b", Decimal("30")),
        ]
        assert report.grand_total == Decimal("180")
        assert report.owner_label("owner-a") == "ana@example.com"
        assert report.owner_label("owner-b") == UNKNOWN_OWNER_LABEL

    def test_inverted_range_is_empty(self, service, admin, owner) -> None:
        service.register(owner, VALID_PAYLOAD)

        report = service.admin_report(admin, "2024-02-01", "2024-01-01")

        assert report.records == []
        assert report.grand_total == Decimal("0")
