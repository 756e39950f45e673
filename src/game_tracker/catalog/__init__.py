"""
Game Catalog Management.

Persisted library entries, the store they live in, and the
reconciliation engine that merges discovered games into them.
"""

from game_tracker.catalog.models import (
    MANUAL_SOURCE,
    CatalogEntry,
    GameStatus,
    NewCatalogEntry,
)
from game_tracker.catalog.reconciler import ReconciliationEngine, ReconciliationResult
from game_tracker.catalog.sqlite_store import SQLiteCatalogStore
from game_tracker.catalog.store import (
    CatalogStore,
    CatalogStoreError,
    InMemoryCatalogStore,
    StoreConflictError,
    StoreUnavailableError,
)

__all__ = [
    "MANUAL_SOURCE",
    "CatalogEntry",
    "CatalogStore",
    "CatalogStoreError",
    "GameStatus",
    "InMemoryCatalogStore",
    "NewCatalogEntry",
    "ReconciliationEngine",
    "ReconciliationResult",
    "SQLiteCatalogStore",
    "StoreConflictError",
    "StoreUnavailableError",
]
