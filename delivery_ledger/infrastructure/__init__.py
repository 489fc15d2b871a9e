"""
Infrastructure package for the delivery ledger.

Centralizes database connectivity (connection factory, pooling) and the
PostgreSQL record store. Keep this layer focused on I/O and resource
management, decoupled from the date and aggregation rules.
"""

from delivery_ledger.infrastructure.db_factory import (
    PoolManager,
    build_dsn,
    get_sync_connection,
    get_sync_pool,
)
from delivery_ledger.infrastructure.store import DeliveryRepository, DeliveryStore

__all__ = [
    "PoolManager",
    "build_dsn",
    "get_sync_connection",
    "get_sync_pool",
    "DeliveryRepository",
    "DeliveryStore",
]
