"""
Catalog store interface and in-memory implementation.

The reconciliation engine only needs three operations from the store;
any object providing them can be handed to it. The in-memory store
applies the same uniqueness rules as the SQLite store and is used in
tests and dry runs.
"""

from datetime import datetime, timezone
from typing import Any, Protocol

from game_tracker.catalog.models import (
    MANUAL_SOURCE,
    CatalogEntry,
    GameStatus,
    NewCatalogEntry,
)


class CatalogStoreError(Exception):
    """Base exception for catalog store errors."""

    def __init__(
        self,
        message: str,
        *,
        source: str | None = None,
        source_id: str | None = None,
        original_error: Exception | None = None,
    ) -> None:
        super().__init__(message)
        self.source = source
        self.source_id = source_id
        self.original_error = original_error
        self.timestamp = datetime.now(timezone.utc)


class StoreConflictError(CatalogStoreError):
    """Raised when a write would violate a uniqueness rule."""

    pass


class StoreUnavailableError(CatalogStoreError):
    """Raised when the catalog cannot be reached."""

    pass


class CatalogStore(Protocol):
    """Operations reconciliation needs from the catalog."""

    def find_by_source_id(self, source: str, source_id: str) -> CatalogEntry | None:
        """Look up a discovered entry by its natural key."""
        ...

    def insert(self, entry: NewCatalogEntry) -> CatalogEntry:
        """Persist a new entry and return it with its assigned id."""
        ...

    def update_discovered_fields(
        self,
        entry_id: int,
        install_path: str | None,
        executable_path: str | None,
        title: str | None = None,
    ) -> None:
        """Refresh launcher-owned fields; ``title`` is left alone when None."""
        ...


class InMemoryCatalogStore:
    """
    Dictionary-backed catalog store.

    Set ``available = False`` to make every operation raise
    ``StoreUnavailableError``.
    """

    def __init__(self) -> None:
        self._entries: dict[int, CatalogEntry] = {}
        self._next_id = 1
        self.available = True

    def _check_available(self) -> None:
        if not self.available:
            raise StoreUnavailableError("In-memory catalog is offline")

    def get(self, entry_id: int) -> CatalogEntry | None:
        """Fetch an entry by id."""
        self._check_available()
        entry = self._entries.get(entry_id)
        return entry.model_copy() if entry else None

    def list_entries(self) -> list[CatalogEntry]:
        """All entries in insertion order."""
        self._check_available()
        return [entry.model_copy() for entry in self._entries.values()]

    def find_by_source_id(self, source: str, source_id: str) -> CatalogEntry | None:
        self._check_available()
        for entry in self._entries.values():
            if entry.source == source and entry.source_id == source_id:
                return entry.model_copy()
        return None

    def insert(self, entry: NewCatalogEntry) -> CatalogEntry:
        self._check_available()

        for existing in self._entries.values():
            if (
                not entry.is_manual
                and entry.source_id is not None
                and existing.source == entry.source
                and existing.source_id == entry.source_id
            ):
                raise StoreConflictError(
                    f"Entry for {entry.source}:{entry.source_id} already exists",
                    source=entry.source,
                    source_id=entry.source_id,
                )
            if (
                entry.is_manual
                and existing.is_manual
                and existing.title == entry.title
                and existing.platform == entry.platform
            ):
                raise StoreConflictError(
                    f"Manual entry {entry.title!r} on {entry.platform} already exists",
                )

        stored = CatalogEntry(id=self._next_id, **entry.model_dump())
        self._entries[stored.id] = stored
        self._next_id += 1
        return stored.model_copy()

    def add_manual(self, title: str, platform: str, **fields: Any) -> CatalogEntry:
        """Insert a hand-entered game."""
        return self.insert(
            NewCatalogEntry(title=title, platform=platform, source=MANUAL_SOURCE, **fields)
        )

    def update_discovered_fields(
        self,
        entry_id: int,
        install_path: str | None,
        executable_path: str | None,
        title: str | None = None,
    ) -> None:
        self._check_available()

        entry = self._entries.get(entry_id)
        if entry is None:
            raise CatalogStoreError(f"No catalog entry with id {entry_id}")

        changes: dict[str, str | None] = {
            "install_path": install_path,
            "executable_path": executable_path,
        }
        if title is not None:
            changes["title"] = title
        self._entries[entry_id] = entry.model_copy(update=changes)

    def set_status(self, entry_id: int, status: GameStatus) -> None:
        """User edit: change an entry's status."""
        self._check_available()
        entry = self._entries.get(entry_id)
        if entry is None:
            raise CatalogStoreError(f"No catalog entry with id {entry_id}")
        self._entries[entry_id] = entry.model_copy(
            update={"status": GameStatus(status), "last_played_at": datetime.now(timezone.utc)}
        )
