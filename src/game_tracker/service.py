"""
Library sync service.

The single operation exposed to callers: run discovery now and merge
the results into the catalog, returning ``{discovered, upserted}``.
"""

import asyncio
from collections.abc import Sequence

from pydantic import BaseModel, Field

from game_tracker.catalog import CatalogStore, ReconciliationEngine
from game_tracker.config import Settings, get_settings
from game_tracker.discovery.coordinator import DiscoveryCoordinator
from game_tracker.discovery.scanners import BaseScanner, default_scanners
from game_tracker.logger import get_logger


class DiscoverySummary(BaseModel):
    """Summary returned to the caller after a discovery run."""

    discovered: int = Field(..., ge=0, description="Candidates found across all launchers")
    upserted: int = Field(..., ge=0, description="Catalog entries inserted or refreshed")
    inserted: int = 0
    updated: int = 0
    unchanged: int = 0
    conflicts: int = 0
    errors: int = 0
    skipped_artifacts: int = 0
    failed_sources: list[str] = Field(default_factory=list)
    aborted: bool = False


class LibrarySyncService:
    """
    Runs discovery and reconciliation against a catalog store.

    Example:
        >>> with SQLiteCatalogStore() as store:
        ...     summary = await LibrarySyncService(store).run_discovery()
        ...     print(summary.discovered, summary.upserted)
    """

    def __init__(
        self,
        store: CatalogStore,
        *,
        scanners: Sequence[BaseScanner] | None = None,
        coordinator: DiscoveryCoordinator | None = None,
        settings: Settings | None = None,
    ) -> None:
        """
        Initialize the service.

        Args:
            store: Catalog store handle owned by the caller
            scanners: Scanners to run (enabled sources from settings if None)
            coordinator: Coordinator to run them with (built from settings if None)
            settings: Application settings (cached settings if None)
        """
        self._settings = settings or get_settings()
        self._store = store
        if scanners is None:
            scanners = default_scanners(self._settings)
        self._scanners = list(scanners)
        self._coordinator = coordinator or DiscoveryCoordinator(
            concurrent=self._settings.discovery.concurrent,
            scanner_timeout=self._settings.discovery.scanner_timeout_seconds,
        )
        self._engine = ReconciliationEngine(
            store,
            refresh_titles=self._settings.discovery.refresh_titles,
        )
        self._logger = get_logger(__name__, component="sync_service")

    async def run_discovery(self) -> DiscoverySummary:
        """
        Scan every launcher and reconcile the findings into the catalog.

        Never raises for scanner or store failures: they reduce the
        counts and are logged.

        Returns:
            DiscoverySummary: Discovered and upserted counts with details
        """
        discovery = await self._coordinator.run_all(self._scanners)
        # Store calls block on sqlite I/O and retry backoff
        reconciliation = await asyncio.to_thread(self._engine.reconcile, discovery.candidates)

        summary = DiscoverySummary(
            discovered=discovery.discovered,
            upserted=reconciliation.upserted,
            inserted=reconciliation.inserted,
            updated=reconciliation.updated,
            unchanged=reconciliation.unchanged,
            conflicts=len(reconciliation.conflicts),
            errors=len(reconciliation.errors),
            skipped_artifacts=len(discovery.skipped),
            failed_sources=discovery.failed_sources,
            aborted=reconciliation.aborted,
        )

        self._logger.info(
            "Library sync complete",
            run_id=str(discovery.run_id),
            discovered=summary.discovered,
            upserted=summary.upserted,
            aborted=summary.aborted,
        )

        return summary
