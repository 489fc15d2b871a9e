"""
Database connection factory utilities for the delivery ledger.

Provides centralized management of PostgreSQL connections and the shared
connection pool. The PoolManager singleton ensures the pool is closed on
application exit.

Includes retry logic for transient connection failures using tenacity.
"""

from __future__ import annotations

import atexit
import threading
from typing import Optional

import psycopg
from psycopg import Connection
from psycopg_pool import ConnectionPool
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from delivery_ledger.config import Settings, get_settings
from delivery_ledger.utils.logging import get_logger

log = get_logger(__name__)


def build_dsn(settings: Optional[Settings] = None) -> str:
    """Compose a DSN string from settings."""
    return (settings or get_settings()).dsn


def apply_statement_timeout(cursor: psycopg.Cursor, timeout_ms: int) -> None:
    """Bound statements in the current transaction. Zero or less disables the limit."""
    if timeout_ms and timeout_ms > 0:
        cursor.execute(f"SET LOCAL statement_timeout = {int(timeout_ms)}")


class PoolManager:
    """
    Thread-safe singleton for managing the database connection pool.

    Handles lifecycle management with automatic cleanup via atexit hook.
    """

    _instance: Optional["PoolManager"] = None
    _lock = threading.Lock()

    def __new__(cls) -> "PoolManager":
        """Create or return the singleton instance."""
        with cls._lock:
            if cls._instance is None:
                cls._instance = super().__new__(cls)
                cls._instance._pool = None
                atexit.register(cls._instance.close_all)
            return cls._instance

    def get_pool(self, settings: Optional[Settings] = None) -> ConnectionPool:
        """
        Get or create the synchronous connection pool.

        Pool sizes come from `DB_POOL_MIN_SIZE` / `DB_POOL_MAX_SIZE`.
        """
        with self._lock:
            if self._pool is None:
                settings = settings or get_settings()
                self._pool = ConnectionPool(
                    conninfo=build_dsn(settings),
                    min_size=settings.db_pool_min_size,
                    max_size=settings.db_pool_max_size,
                    open=True,
                )
                log.debug(
                    "Connection pool opened",
                    extra={
                        "db_host": settings.db_host,
                        "db_name": settings.db_name,
                        "pool_max_size": settings.db_pool_max_size,
                    },
                )
            return self._pool

    def close_all(self) -> None:
        """
        Close the managed pool and release resources.

        This is called automatically on exit via atexit hook.
        """
        with self._lock:
            if self._pool is not None:
                try:
                    self._pool.close()
                except Exception:
                    log.warning("Failed to close connection pool cleanly", exc_info=True)
                finally:
                    self._pool = None


@retry(
    stop=stop_after_attempt(3),
    wait=wait_exponential(multiplier=1, min=1, max=10),
    retry=retry_if_exception_type((psycopg.OperationalError, psycopg.InterfaceError)),
    reraise=True,
)
def get_sync_connection(dsn: Optional[str] = None) -> Connection:
    """
    Acquire a dedicated synchronous connection with automatic retry.

    Retries up to 3 times with exponential backoff for transient connection errors.
    Use this for simple, one-off operations such as scripts. Prefer the pool
    for request handling.

    Raises
    ------
    psycopg.OperationalError
        If connection fails after all retry attempts.
    """
    return psycopg.connect(dsn or build_dsn())


def get_sync_pool(settings: Optional[Settings] = None) -> ConnectionPool:
    """Get or create the shared connection pool via PoolManager."""
    return PoolManager().get_pool(settings)


__all__ = [
    "PoolManager",
    "apply_statement_timeout",
    "build_dsn",
    "get_sync_connection",
    "get_sync_pool",
]
