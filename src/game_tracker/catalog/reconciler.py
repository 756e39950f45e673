"""
Reconciliation of discovered candidates against the catalog.

Upserts by natural key ``(source, source_id)``: unknown games are
inserted into the backlog, known games only get their launcher-owned
fields refreshed. Status, playtime, rating and enrichment belong to the
user and are never written here, which is what makes it safe to run
discovery on every launch.
"""

from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Any

from game_tracker.catalog.models import CatalogEntry, NewCatalogEntry
from game_tracker.catalog.store import (
    CatalogStore,
    StoreConflictError,
    StoreUnavailableError,
)
from game_tracker.discovery.contracts import CandidateRecord
from game_tracker.logger import get_logger


@dataclass
class ReconciliationResult:
    """Outcome of one reconciliation pass."""

    total: int = 0
    inserted: int = 0
    updated: int = 0
    unchanged: int = 0
    conflicts: list[dict[str, Any]] = field(default_factory=list)
    errors: list[dict[str, Any]] = field(default_factory=list)
    aborted: bool = False
    not_attempted: int = 0

    @property
    def upserted(self) -> int:
        """Entries actually written: inserts plus updates that changed something."""
        return self.inserted + self.updated


class ReconciliationEngine:
    """
    Merges candidates into a catalog store.

    The store is handed in explicitly so the engine works the same
    against SQLite, the in-memory store, or a mock.

    Example:
        >>> engine = ReconciliationEngine(SQLiteCatalogStore(Path("catalog.db")))
        >>> result = engine.reconcile(discovery.candidates)
        >>> print(result.upserted)
    """

    def __init__(self, store: CatalogStore, *, refresh_titles: bool = False) -> None:
        """
        Initialize the engine.

        Args:
            store: Catalog store to read and write
            refresh_titles: Overwrite stored titles with launcher titles
        """
        self._store = store
        self._refresh_titles = refresh_titles
        self._logger = get_logger(__name__, component="reconciler")

    def reconcile(self, candidates: Iterable[CandidateRecord]) -> ReconciliationResult:
        """
        Upsert every candidate.

        A conflict or any other failure on one candidate is recorded
        and the pass continues.
        If the store becomes unavailable the pass stops and the result
        reports only the writes that were applied.

        Args:
            candidates: Candidates from a discovery run

        Returns:
            ReconciliationResult: Counts of inserted, updated and unchanged entries
        """
        pending = list(candidates)
        result = ReconciliationResult(total=len(pending))

        for index, candidate in enumerate(pending):
            try:
                self._reconcile_one(candidate, result)
            except StoreConflictError as e:
                self._logger.warning(
                    "Catalog conflict",
                    source=candidate.source.value,
                    source_id=candidate.source_id,
                    title=candidate.title,
                    error=str(e),
                )
                result.conflicts.append(
                    {
                        "source": candidate.source.value,
                        "source_id": candidate.source_id,
                        "error": str(e),
                    }
                )
            except StoreUnavailableError as e:
                result.aborted = True
                result.not_attempted = len(pending) - index
                self._logger.error(
                    "Catalog unavailable, aborting reconciliation",
                    applied=result.upserted,
                    not_attempted=result.not_attempted,
                    error=str(e),
                )
                break
            except Exception as e:
                self._logger.error(
                    "Failed to reconcile candidate",
                    source=candidate.source.value,
                    source_id=candidate.source_id,
                    error=str(e),
                    error_type=type(e).__name__,
                )
                result.errors.append(
                    {
                        "source": candidate.source.value,
                        "source_id": candidate.source_id,
                        "error": str(e),
                    }
                )

        self._logger.info(
            "Reconciliation complete",
            total=result.total,
            inserted=result.inserted,
            updated=result.updated,
            unchanged=result.unchanged,
            conflicts=len(result.conflicts),
            aborted=result.aborted,
        )

        return result

    def _reconcile_one(self, candidate: CandidateRecord, result: ReconciliationResult) -> None:
        """Insert, refresh, or leave alone a single candidate."""
        source, source_id = candidate.key
        existing = self._store.find_by_source_id(source, source_id)

        if existing is None:
            entry = self._store.insert(NewCatalogEntry.from_candidate(candidate))
            result.inserted += 1
            self._logger.debug(
                "Inserted discovered game",
                entry_id=entry.id,
                source=source,
                source_id=source_id,
                title=candidate.title,
            )
            return

        changes = self.changed_fields(existing, candidate)
        if not changes:
            result.unchanged += 1
            return

        self._store.update_discovered_fields(
            existing.id,
            changes.get("install_path", existing.install_path),
            changes.get("executable_path", existing.executable_path),
            title=changes.get("title"),
        )
        result.updated += 1
        self._logger.debug(
            "Refreshed discovered game",
            entry_id=existing.id,
            source=source,
            source_id=source_id,
            fields=sorted(changes),
        )

    def changed_fields(self, existing: CatalogEntry, candidate: CandidateRecord) -> dict[str, str]:
        """
        Launcher-owned fields whose discovered value differs from the stored one.

        ``install_path`` always follows discovery. ``executable_path``
        follows discovery only when the scanner resolved one, so an
        ambiguous install never clears a stored executable. ``title``
        follows discovery only with ``refresh_titles`` enabled.
        """
        changes: dict[str, str] = {}

        if candidate.install_path != existing.install_path:
            changes["install_path"] = candidate.install_path

        if (
            candidate.executable_path is not None
            and candidate.executable_path != existing.executable_path
        ):
            changes["executable_path"] = candidate.executable_path

        if self._refresh_titles and candidate.title != existing.title:
            changes["title"] = candidate.title

        return changes
