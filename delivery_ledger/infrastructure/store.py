"""
PostgreSQL-backed record store for deliveries.

Every owner-facing statement carries `owner_id` in its WHERE clause, so a user
can only read, change or delete their own rows. `list_in_range` is the single
cross-owner read and is reserved for the admin report; the service layer
checks the caller's role before using it.

Dates are sent as canonical `YYYY-MM-DD` text and cast with `::date` on the
server, so no client-side timezone conversion takes place.
"""

from __future__ import annotations

from typing import Any, List, Optional, Protocol, Sequence, runtime_checkable

import psycopg
from psycopg.rows import dict_row
from psycopg_pool import ConnectionPool
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from delivery_ledger.config import Settings, get_settings
from delivery_ledger.domain.models import DeliveryDraft, DeliveryRecord
from delivery_ledger.errors import DeliveryNotFound
from delivery_ledger.infrastructure.db_factory import apply_statement_timeout, get_sync_pool
from delivery_ledger.utils.logging import get_logger

log = get_logger(__name__)

_COLUMNS = "id, owner_id, service_date, invoice_number, amount, created_at"

_read_retry = retry(
    stop=stop_after_attempt(3),
    wait=wait_exponential(multiplier=1, min=1, max=10),
    retry=retry_if_exception_type((psycopg.OperationalError, psycopg.InterfaceError)),
    reraise=True,
)


@runtime_checkable
class DeliveryRepository(Protocol):
    """Storage contract the service layer depends on."""

    def insert(self, record: DeliveryRecord) -> DeliveryRecord: ...

    def get_for_owner(self, delivery_id: str, owner_id: str) -> DeliveryRecord: ...

    def list_for_owner(self, owner_id: str) -> List[DeliveryRecord]: ...

    def list_in_range(self, start_date: str, end_date: str) -> List[DeliveryRecord]: ...

    def update_for_owner(
        self, delivery_id: str, owner_id: str, draft: DeliveryDraft
    ) -> DeliveryRecord: ...

    def delete_for_owner(self, delivery_id: str, owner_id: str) -> None: ...


class DeliveryStore:
    """
    Delivery repository over a psycopg connection pool.

    Parameters
    ----------
    pool : ConnectionPool | None
        Pool to borrow connections from. Defaults to the shared pool from
        `PoolManager`.
    settings : Settings | None
        Source of the statement timeout; defaults to `get_settings()`.
    """

    def __init__(
        self,
        pool: Optional[ConnectionPool] = None,
        settings: Optional[Settings] = None,
    ) -> None:
        self._settings = settings or get_settings()
        self._pool = pool if pool is not None else get_sync_pool(self._settings)

    def _fetch(self, sql: str, params: Sequence[Any]) -> List[dict]:
        with self._pool.connection() as conn:
            with conn.cursor(row_factory=dict_row) as cur:
                apply_statement_timeout(cur, self._settings.db_statement_timeout_ms)
                cur.execute(sql, params)
                return cur.fetchall() if cur.description else []

    def insert(self, record: DeliveryRecord) -> DeliveryRecord:
        rows = self._fetch(
            f"""
            INSERT INTO public.deliveries ({_COLUMNS})
            VALUES (%s, %s, %s::date, %s, %s, %s)
            RETURNING {_COLUMNS};
            """,
            (
                record.id,
                record.owner_id,
                record.service_date,
                record.invoice_number,
                record.amount,
                record.created_at,
            ),
        )
        log.info(
            "Delivery inserted",
            extra={"delivery_id": record.id, "owner_id": record.owner_id},
        )
        return DeliveryRecord.model_validate(rows[0])

    @_read_retry
    def get_for_owner(self, delivery_id: str, owner_id: str) -> DeliveryRecord:
        rows = self._fetch(
            f"SELECT {_COLUMNS} FROM public.deliveries WHERE id = %s AND owner_id = %s;",
            (delivery_id, owner_id),
        )
        if not rows:
            raise DeliveryNotFound(delivery_id)
        return DeliveryRecord.model_validate(rows[0])

    @_read_retry
    def list_for_owner(self, owner_id: str) -> List[DeliveryRecord]:
        rows = self._fetch(
            f"""
            SELECT {_COLUMNS} FROM public.deliveries
            WHERE owner_id = %s
            ORDER BY service_date DESC, created_at DESC;
            """,
            (owner_id,),
        )
        return [DeliveryRecord.model_validate(row) for row in rows]

    @_read_retry
    def list_in_range(self, start_date: str, end_date: str) -> List[DeliveryRecord]:
        """All owners' deliveries with `start_date <= service_date <= end_date`."""
        rows = self._fetch(
            f"""
            SELECT {_COLUMNS} FROM public.deliveries
            WHERE service_date >= %s::date AND service_date <= %s::date
            ORDER BY service_date DESC, created_at DESC;
            """,
            (start_date, end_date),
        )
        log.debug(
            "Range query executed",
            extra={"start_date": start_date, "end_date": end_date, "rows": len(rows)},
        )
        return [DeliveryRecord.model_validate(row) for row in rows]

    def update_for_owner(
        self, delivery_id: str, owner_id: str, draft: DeliveryDraft
    ) -> DeliveryRecord:
        rows = self._fetch(
            f"""
            UPDATE public.deliveries
            SET service_date = %s::date, invoice_number = %s, amount = %s
            WHERE id = %s AND owner_id = %s
            RETURNING {_COLUMNS};
            """,
            (draft.service_date, draft.invoice_number, draft.amount, delivery_id, owner_id),
        )
        if not rows:
            raise DeliveryNotFound(delivery_id)
        log.info("Delivery updated", extra={"delivery_id": delivery_id, "owner_id": owner_id})
        return DeliveryRecord.model_validate(rows[0])

    def delete_for_owner(self, delivery_id: str, owner_id: str) -> None:
        rows = self._fetch(
            "DELETE FROM public.deliveries WHERE id = %s AND owner_id = %s RETURNING id;",
            (delivery_id, owner_id),
        )
        if not rows:
            raise DeliveryNotFound(delivery_id)
        log.info("Delivery deleted", extra={"delivery_id": delivery_id, "owner_id": owner_id})


__all__ = ["DeliveryRepository", "DeliveryStore"]
