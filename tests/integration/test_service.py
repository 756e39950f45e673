"""End-to-end tests for the library sync service."""

import asyncio
import json
import os
import sys
import time
from collections.abc import Callable
from pathlib import Path
from unittest.mock import patch

import pytest

from game_tracker.catalog import (
    CatalogEntry,
    GameStatus,
    InMemoryCatalogStore,
    SQLiteCatalogStore,
)
from game_tracker.discovery.coordinator import DiscoveryCoordinator
from game_tracker.discovery.scanners import EpicScanner, SteamScanner
from game_tracker.service import LibrarySyncService

ManifestFactory = Callable[[Path, int, str, str], Path]
LibraryFoldersFactory = Callable[[Path, list[Path]], Path]


class SlowStore(InMemoryCatalogStore):
    """Store whose lookups block like a busy database."""

    def __init__(self, delay: float) -> None:
        super().__init__()
        self.delay = delay

    def find_by_source_id(self, source: str, source_id: str) -> CatalogEntry | None:
        time.sleep(self.delay)
        return super().find_by_source_id(source, source_id)


@pytest.fixture
def launchers(
    tmp_path: Path,
    steam_root: Path,
    make_manifest: ManifestFactory,
    make_library_folders: LibraryFoldersFactory,
) -> tuple[Path, Path]:
    """A Steam install with a second library plus an Epic manifest directory."""
    games_drive = tmp_path / "Games"
    make_library_folders(steam_root, [games_drive])
    make_manifest(games_drive / "steamapps", 220, "Half-Life 2", "Half-Life 2")
    make_manifest(games_drive / "steamapps", 400, "Portal", "Portal")

    manifests = tmp_path / "Epic" / "Manifests"
    manifests.mkdir(parents=True)
    (manifests / "AlanWake.item").write_text(
        json.dumps(
            {
                "DisplayName": "Alan Wake",
                "AppName": "Wake",
                "InstallLocation": "C:\\Epic Games\\AlanWake",
                "LaunchExecutable": "AlanWake.exe",
                "bIsApplication": True,
            }
        ),
        encoding="utf-8",
    )

    return steam_root, manifests


class TestRunDiscovery:
    """Tests for LibrarySyncService.run_discovery."""

    @pytest.mark.asyncio
    async def test_steam_library_on_second_drive(
        self,
        tmp_path: Path,
        steam_root: Path,
        make_manifest: ManifestFactory,
        make_library_folders: LibraryFoldersFactory,
    ) -> None:
        """Test two installed Steam games in an additional library."""
        games_drive = tmp_path / "Games"
        make_library_folders(steam_root, [games_drive])
        make_manifest(games_drive / "steamapps", 220, "Half-Life 2", "Half-Life 2")
        make_manifest(games_drive / "steamapps", 400, "Portal", "Portal")
        store = InMemoryCatalogStore()

        summary = await LibrarySyncService(
            store,
            scanners=[SteamScanner(steam_root=steam_root)],
        ).run_discovery()

        assert summary.discovered == 2
        assert summary.upserted == 2
        entry = store.find_by_source_id("steam", "220")
        assert entry is not None
        assert entry.title == "Half-Life 2"
        assert entry.status == GameStatus.BACKLOG
        assert entry.install_path == str(games_drive / "steamapps" / "common" / "Half-Life 2")

    @pytest.mark.asyncio
    async def test_repeated_runs_do_not_duplicate(
        self,
        tmp_path: Path,
        launchers: tuple[Path, Path],
    ) -> None:
        """Test that a second pass over an unchanged disk writes nothing."""
        steam_root, manifests = launchers
        scanners = [SteamScanner(steam_root=steam_root), EpicScanner(manifests_dir=manifests)]

        with SQLiteCatalogStore(tmp_path / "catalog.db") as store:
            service = LibrarySyncService(store, scanners=scanners)
            first = await service.run_discovery()
            second = await service.run_discovery()
            entries = store.list_entries()

        assert first.discovered == 3
        assert first.upserted == 3
        assert second.discovered == 3
        assert second.upserted == 0
        assert second.unchanged == 3
        assert len(entries) == 3

    @pytest.mark.asyncio
    async def test_user_edits_survive_rediscovery(self, launchers: tuple[Path, Path]) -> None:
        """Test that status changes made between passes are kept."""
        steam_root, manifests = launchers
        store = InMemoryCatalogStore()
        service = LibrarySyncService(
            store,
            scanners=[SteamScanner(steam_root=steam_root), EpicScanner(manifests_dir=manifests)],
        )

        await service.run_discovery()
        entry = store.find_by_source_id("epic", "Wake")
        assert entry is not None
        store.set_status(entry.id, GameStatus.COMPLETED)
        await service.run_discovery()

        refreshed = store.get(entry.id)
        assert refreshed is not None
        assert refreshed.status == GameStatus.COMPLETED

    @pytest.mark.asyncio
    async def test_corrupt_manifest_partial_result(
        self,
        launchers: tuple[Path, Path],
    ) -> None:
        """Test that a corrupt manifest only costs its own game."""
        steam_root, manifests = launchers
        scanners = [SteamScanner(steam_root=steam_root), EpicScanner(manifests_dir=manifests)]
        (steam_root / "steamapps" / "appmanifest_999.acf").write_text(
            '"AppState"\n{\n\t"appid"', encoding="utf-8"
        )
        store = InMemoryCatalogStore()

        summary = await LibrarySyncService(
            store,
            scanners=scanners,
        ).run_discovery()

        assert summary.discovered == 3
        assert summary.upserted == 3
        assert summary.skipped_artifacts == 1
        assert summary.failed_sources == []

    @pytest.mark.asyncio
    async def test_no_launchers_installed(self, tmp_path: Path) -> None:
        """Test a machine with neither launcher."""
        store = InMemoryCatalogStore()

        summary = await LibrarySyncService(
            store,
            scanners=[
                SteamScanner(steam_root=tmp_path / "Steam"),
                EpicScanner(manifests_dir=tmp_path / "Manifests"),
            ],
        ).run_discovery()

        assert summary.discovered == 0
        assert summary.upserted == 0
        assert store.list_entries() == []

    @pytest.mark.asyncio
    async def test_unavailable_store_aborts(self, launchers: tuple[Path, Path]) -> None:
        """Test that an unreachable catalog is reported, not raised."""
        steam_root, manifests = launchers
        store = InMemoryCatalogStore()
        store.available = False

        summary = await LibrarySyncService(
            store,
            scanners=[SteamScanner(steam_root=steam_root), EpicScanner(manifests_dir=manifests)],
            coordinator=DiscoveryCoordinator(concurrent=False),
        ).run_discovery()

        assert summary.discovered == 3
        assert summary.upserted == 0
        assert summary.aborted is True

    @pytest.mark.asyncio
    async def test_scanners_from_settings(self, launchers: tuple[Path, Path]) -> None:
        """Test that launcher paths and enabled sources come from the environment."""
        steam_root, manifests = launchers
        env = {
            "STEAM_ROOT": str(steam_root),
            "EPIC_MANIFESTS_DIR": str(manifests),
            "DISCOVERY_ENABLED_SOURCES": '["epic"]',
        }

        with patch.dict(os.environ, env):
            summary = await LibrarySyncService(InMemoryCatalogStore()).run_discovery()

        assert summary.discovered == 1
        assert summary.upserted == 1


class TestWindowsLibraries:
    """Tests for Steam libraries on Windows drive paths."""

    @pytest.mark.asyncio
    @pytest.mark.skipif(sys.platform == "win32", reason="drive path stands in as a directory name")
    async def test_games_drive_library_end_to_end(
        self,
        tmp_path: Path,
        monkeypatch: pytest.MonkeyPatch,
        steam_root: Path,
        make_manifest: ManifestFactory,
        make_library_folders: LibraryFoldersFactory,
    ) -> None:
        """Test a D:\\Games library through scanning and reconciliation."""
        monkeypatch.chdir(tmp_path)
        library = Path("D:\\Games")
        make_library_folders(steam_root, [library])
        make_manifest(library / "steamapps", 220, "Half-Life 2", "Half-Life 2")
        make_manifest(library / "steamapps", 400, "Portal", "Portal")
        store = InMemoryCatalogStore()

        summary = await LibrarySyncService(
            store,
            scanners=[SteamScanner(steam_root=steam_root)],
        ).run_discovery()

        assert summary.discovered == 2
        assert summary.upserted == 2
        half_life = store.find_by_source_id("steam", "220")
        portal = store.find_by_source_id("steam", "400")
        assert half_life is not None
        assert portal is not None
        assert half_life.install_path == r"D:\Games\steamapps\common\Half-Life 2"
        assert portal.install_path == r"D:\Games\steamapps\common\Portal"
        assert half_life.status == GameStatus.BACKLOG
        assert portal.status == GameStatus.BACKLOG
        assert half_life.executable_path is None


class TestStoredRows:
    """Tests for catalogs holding rows written by other tools."""

    @pytest.mark.asyncio
    async def test_out_of_range_row_does_not_abort_run(
        self,
        tmp_path: Path,
        launchers: tuple[Path, Path],
        seed_catalog_row: Callable[..., int],
    ) -> None:
        """Test that a stored rating of 0 and year 1948 still reconcile."""
        steam_root, manifests = launchers
        scanners = [SteamScanner(steam_root=steam_root), EpicScanner(manifests_dir=manifests)]
        database = tmp_path / "catalog.db"

        with SQLiteCatalogStore(database) as store:
            entry_id = seed_catalog_row(
                database,
                title="Half-Life 2",
                source="steam",
                source_id="220",
                install_path="C:\\Old\\Half-Life 2",
                release_year=1948,
                rating=0,
            )
            summary = await LibrarySyncService(
                store,
                scanners=scanners,
            ).run_discovery()
            entry = store.get(entry_id)

        assert summary.discovered == 3
        assert summary.inserted == 2
        assert summary.updated == 1
        assert summary.upserted == 3
        assert summary.errors == 0
        assert entry is not None
        moved_to = tmp_path / "Games" / "steamapps" / "common" / "Half-Life 2"
        assert entry.install_path == str(moved_to)
        assert entry.rating == 0
        assert entry.release_year == 1948

    @pytest.mark.asyncio
    async def test_unreadable_row_costs_only_its_game(
        self,
        tmp_path: Path,
        launchers: tuple[Path, Path],
        seed_catalog_row: Callable[..., int],
    ) -> None:
        """Test that a row that cannot be read is reported and the rest still land."""
        steam_root, manifests = launchers
        scanners = [SteamScanner(steam_root=steam_root), EpicScanner(manifests_dir=manifests)]
        database = tmp_path / "catalog.db"

        with SQLiteCatalogStore(database) as store:
            seed_catalog_row(
                database,
                title="Portal",
                source="steam",
                source_id="400",
                added_at="not a date",
            )
            summary = await LibrarySyncService(
                store,
                scanners=scanners,
            ).run_discovery()
            half_life = store.find_by_source_id("steam", "220")
            alan_wake = store.find_by_source_id("epic", "Wake")

        assert summary.discovered == 3
        assert summary.upserted == 2
        assert summary.errors == 1
        assert summary.aborted is False
        assert half_life is not None
        assert alan_wake is not None


class TestEventLoop:
    """Tests for running discovery inside an application event loop."""

    @pytest.mark.asyncio
    async def test_reconciliation_does_not_block_loop(
        self, launchers: tuple[Path, Path]
    ) -> None:
        """Test that other tasks keep running while the catalog is slow."""
        steam_root, manifests = launchers
        scanners = [SteamScanner(steam_root=steam_root), EpicScanner(manifests_dir=manifests)]
        store = SlowStore(delay=0.1)
        ticks = 0

        async def ticker() -> None:
            nonlocal ticks
            while True:
                await asyncio.sleep(0.01)
                ticks += 1

        task = asyncio.create_task(ticker())
        try:
            summary = await LibrarySyncService(
                store,
                scanners=scanners,
            ).run_discovery()
        finally:
            task.cancel()

        assert summary.upserted == 3
        assert ticks >= 10
