"""
Pytest configuration for the delivery ledger.

Provides fixtures for:
- Record factories and an in-memory store for unit tests
- Acting users (owner, other owner, admin)
- Database connection management and schema setup for integration tests
"""

from __future__ import annotations

import os
from datetime import datetime, timezone
from decimal import Decimal
from pathlib import Path
from typing import Callable, Dict, Generator, List

import psycopg
import pytest

from delivery_ledger.config import Settings, get_settings
from delivery_ledger.domain.models import AuthenticatedUser, DeliveryDraft, DeliveryRecord
from delivery_ledger.errors import DeliveryNotFound

ADMIN_EMAIL = "admin@example.com"


class InMemoryDeliveryStore:
    """DeliveryRepository double keeping rows in a dict, owner-scoped like the SQL store."""

    def __init__(self) -> None:
        self.rows: Dict[str, DeliveryRecord] = {}

    def insert(self, record: DeliveryRecord) -> DeliveryRecord:
        if record.id in self.rows:
            raise ValueError(f"duplicate id {record.id}")
        self.rows[record.id] = record
        return record

    def get_for_owner(self, delivery_id: str, owner_id: str) -> DeliveryRecord:
        record = self.rows.get(delivery_id)
        if record is None or record.owner_id != owner_id:
            raise DeliveryNotFound(delivery_id)
        return record

    def list_for_owner(self, owner_id: str) -> List[DeliveryRecord]:
        mine = [r for r in self.rows.values() if r.owner_id == owner_id]
        return sorted(mine, key=lambda r: r.service_date, reverse=True)

    def list_in_range(self, start_date: str, end_date: str) -> List[DeliveryRecord]:
        hits = [r for r in self.rows.values() if start_date <= r.service_date <= end_date]
        return sorted(hits, key=lambda r: r.service_date, reverse=True)

    def update_for_owner(
        self, delivery_id: str, owner_id: str, draft: DeliveryDraft
    ) -> DeliveryRecord:
        current = self.get_for_owner(delivery_id, owner_id)
        updated = current.model_copy(
            update={
                "service_date": draft.service_date,
                "invoice_number": draft.invoice_number,
                "amount": draft.amount,
            }
        )
        self.rows[delivery_id] = updated
        return updated

    def delete_for_owner(self, delivery_id: str, owner_id: str) -> None:
        self.get_for_owner(delivery_id, owner_id)
        del self.rows[delivery_id]


@pytest.fixture
def make_record() -> Callable[..., DeliveryRecord]:
    """Factory for valid records; override any field by keyword."""
    counter = {"n": 0}

    def _make(**overrides) -> DeliveryRecord:
        counter["n"] += 1
        fields = {
            "id": f"rec-{counter['n']}",
            "owner_id": "owner-a",
            "service_date": "2024-01-15",
            "invoice_number": f"F-{counter['n']:04d}",
            "amount": Decimal("100"),
            "created_at": datetime(2024, 1, 15, 12, 0, tzinfo=timezone.utc),
        }
        fields.update(overrides)
        return DeliveryRecord(**fields)

    return _make


@pytest.fixture
def store() -> InMemoryDeliveryStore:
    return InMemoryDeliveryStore()


@pytest.fixture
def unit_settings() -> Settings:
    return Settings(admin_emails=f"{ADMIN_EMAIL}, Boss@Example.com", log_level="DEBUG")


@pytest.fixture
def owner() -> AuthenticatedUser:
    return AuthenticatedUser(id="owner-a", email="ana@example.com", is_admin=False)


@pytest.fixture
def other_owner() -> AuthenticatedUser:
    return AuthenticatedUser(id="owner-b", email="beto@example.com", is_admin=False)


@pytest.fixture
def admin() -> AuthenticatedUser:
    return AuthenticatedUser(id="admin-1", email=ADMIN_EMAIL, is_admin=True)


@pytest.fixture(autouse=True)
def _reset_settings_cache() -> Generator[None, None, None]:
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture(scope="session")
def test_settings() -> Settings:
    """
    Settings fixture with test-specific overrides.

    Can be overridden via environment variables in CI or local testing.
    """
    return Settings(
        db_host=os.getenv("DB_HOST", "localhost"),
        db_port=int(os.getenv("DB_PORT", "5432")),
        db_user=os.getenv("DB_USER", "postgres"),
        db_password=os.getenv("DB_PASSWORD", "postgres"),
        db_name=os.getenv("DB_NAME", "delivery_ledger"),
        log_level="DEBUG",
    )


@pytest.fixture(scope="session")
def test_dsn(test_settings: Settings) -> str:
    """
    Database connection string for tests.
    """
    return test_settings.dsn


@pytest.fixture(scope="session")
def db_connection_available(test_dsn: str) -> bool:
    """
    Check if database is reachable.

    Used to conditionally skip integration tests when DB is not available.
    """
    try:
        with psycopg.connect(test_dsn, connect_timeout=5) as conn:
            with conn.cursor() as cur:
                cur.execute("SELECT 1;")
                cur.fetchone()
        return True
    except psycopg.Error:
        return False


@pytest.fixture(scope="session")
def db_connection(
    test_dsn: str, db_connection_available: bool
) -> Generator[psycopg.Connection, None, None]:
    """
    Provide a session-scoped database connection for integration tests.

    Skips tests if database is not available.
    """
    if not db_connection_available:
        pytest.skip("Database not available for integration tests")

    conn = psycopg.connect(test_dsn)
    try:
        yield conn
    finally:
        conn.close()


@pytest.fixture(scope="session")
def db_schema_initialized(db_connection: psycopg.Connection) -> bool:
    """
    Ensure the deliveries table exists by running db/init.sql (idempotent).
    """
    init_sql_path = Path(__file__).parent.parent / "db" / "init.sql"
    with db_connection.cursor() as cur:
        cur.execute(init_sql_path.read_text(encoding="utf-8"))
    db_connection.commit()
    return True


@pytest.fixture(scope="function")
def clean_deliveries_table(db_connection: psycopg.Connection, db_schema_initialized: bool):
    """
    Empty the deliveries table before and after each test function.
    """
    with db_connection.cursor() as cur:
        cur.execute("TRUNCATE TABLE public.deliveries;")
    db_connection.commit()
    yield
    with db_connection.cursor() as cur:
        cur.execute("TRUNCATE TABLE public.deliveries;")
    db_connection.commit()
