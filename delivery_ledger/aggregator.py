"""
Range filtering and owner aggregation for delivery reports.

All functions are pure: they take already-fetched, already-authorized records
and canonical `YYYY-MM-DD` bounds (see `delivery_ledger.dates`) and return
fresh report objects. Canonical date strings sort like the calendar, so the
range predicate is a plain string comparison. Sums use `Decimal` throughout.

Usage:
    from delivery_ledger.aggregator import build_range_report

    report = build_range_report(records, "2024-01-01", "2024-01-31")
    report.owner_totals[0].total, report.grand_total
"""

from __future__ import annotations

from decimal import Decimal
from typing import Dict, Iterable, List, Mapping, Optional, Sequence

from delivery_ledger.domain.models import (
    DeliveryRecord,
    OwnerTotal,
    PersonalReport,
    RangeReport,
)

ZERO = Decimal("0")


def in_range(record: DeliveryRecord, start_date: Optional[str], end_date: Optional[str]) -> bool:
    """Inclusive on both ends. A missing bound leaves that side open."""
    if start_date is not None and record.service_date < start_date:
        return False
    if end_date is not None and record.service_date > end_date:
        return False
    return True


def filter_by_range(
    records: Iterable[DeliveryRecord],
    start_date: Optional[str],
    end_date: Optional[str],
) -> List[DeliveryRecord]:
    """Keep records whose service date falls in the range, preserving input order."""
    return [r for r in records if in_range(r, start_date, end_date)]


def newest_first(records: Iterable[DeliveryRecord]) -> List[DeliveryRecord]:
    # stable sort keeps fetch order among records sharing a date
    return sorted(records, key=lambda r: r.service_date, reverse=True)


def grand_total(records: Iterable[DeliveryRecord]) -> Decimal:
    return sum((r.amount for r in records), ZERO)


def totals_by_owner(
    records: Iterable[DeliveryRecord],
    labels: Optional[Mapping[str, str]] = None,
) -> List[OwnerTotal]:
    """
    Group records by owner and sum their amounts.

    Ordered by total descending. Equal totals are ordered by owner id
    ascending so the output is deterministic.

    Parameters
    ----------
    records : iterable[DeliveryRecord]
        Records to aggregate; no date filtering is applied here.
    labels : mapping[str, str] | None
        Optional owner id -> display identity (e.g. email) lookup.
    """
    sums: Dict[str, Decimal] = {}
    for record in records:
        sums[record.owner_id] = sums.get(record.owner_id, ZERO) + record.amount

    ordered = sorted(sums.items(), key=lambda item: item[0])
    ordered.sort(key=lambda item: item[1], reverse=True)

    return [
        OwnerTotal(
            owner_id=owner_id,
            total=total,
            owner_label=labels.get(owner_id) if labels is not None else None,
        )
        for owner_id, total in ordered
    ]


def build_range_report(
    records: Sequence[DeliveryRecord],
    start_date: str,
    end_date: str,
    labels: Optional[Mapping[str, str]] = None,
) -> RangeReport:
    """
    Compute the admin report for the closed interval `[start_date, end_date]`.

    A start after the end matches nothing and yields an empty report.
    """
    included = newest_first(filter_by_range(records, start_date, end_date))
    return RangeReport(
        start_date=start_date,
        end_date=end_date,
        records=included,
        owner_totals=totals_by_owner(included, labels),
        grand_total=grand_total(included),
    )


def build_personal_report(
    records: Sequence[DeliveryRecord],
    start_date: Optional[str] = None,
    end_date: Optional[str] = None,
) -> PersonalReport:
    """Single-owner view: filtered records newest first and their total."""
    included = newest_first(filter_by_range(records, start_date, end_date))
    return PersonalReport(
        records=included,
        total=grand_total(included),
        start_date=start_date,
        end_date=end_date,
    )


__all__ = [
    "in_range",
    "filter_by_range",
    "newest_first",
    "grand_total",
    "totals_by_owner",
    "build_range_report",
    "build_personal_report",
]
