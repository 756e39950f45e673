"""Tests for building scanners from settings."""

import os
from collections.abc import Callable
from pathlib import Path
from unittest.mock import patch

import pytest

from game_tracker.config import EpicConfig, Settings, SteamConfig
from game_tracker.discovery.contracts import LauncherSource
from game_tracker.discovery.scanners import create_scanner, default_scanners

ManifestFactory = Callable[[Path, int, str, str], Path]


class TestCreateScanner:
    """Tests for create_scanner."""

    def test_explicit_steam_settings_win_over_environment(
        self,
        tmp_path: Path,
        steam_root: Path,
        make_manifest: ManifestFactory,
    ) -> None:
        """Test that the given settings pick the Steam root, not the environment."""
        make_manifest(steam_root / "steamapps", 220, "Half-Life 2", "Half-Life 2")
        elsewhere = tmp_path / "OtherSteam"
        make_manifest(elsewhere / "steamapps", 400, "Portal", "Portal")
        settings = Settings(_env_file=None, steam=SteamConfig(root=steam_root))

        with patch.dict(os.environ, {"STEAM_ROOT": str(elsewhere)}):
            candidates = create_scanner(LauncherSource.STEAM, settings).discover()

        assert [c.source_id for c in candidates] == ["220"]

    def test_unset_steam_root_ignores_environment(
        self,
        tmp_path: Path,
        make_manifest: ManifestFactory,
    ) -> None:
        """Test that a settings object without a root falls back to detection only."""
        elsewhere = tmp_path / "OtherSteam"
        make_manifest(elsewhere / "steamapps", 400, "Portal", "Portal")
        settings = Settings(_env_file=None, steam=SteamConfig(root=None))

        with (
            patch.dict(os.environ, {"STEAM_ROOT": str(elsewhere)}),
            patch("game_tracker.discovery.scanners.steam.find_steam_root", return_value=None),
        ):
            candidates = create_scanner(LauncherSource.STEAM, settings).discover()

        assert candidates == []

    def test_explicit_epic_settings_win_over_environment(
        self,
        tmp_path: Path,
        epic_fixtures_dir: Path,
    ) -> None:
        """Test that the given settings pick the Epic manifest directory."""
        empty = tmp_path / "EmptyManifests"
        empty.mkdir()
        settings = Settings(_env_file=None, epic=EpicConfig(manifests_dir=epic_fixtures_dir))

        with patch.dict(os.environ, {"EPIC_MANIFESTS_DIR": str(empty)}):
            candidates = create_scanner(LauncherSource.EPIC, settings).discover()

        assert candidates

    def test_unset_epic_dir_ignores_environment(
        self,
        epic_fixtures_dir: Path,
    ) -> None:
        """Test that a settings object without a directory uses the platform default."""
        settings = Settings(_env_file=None, epic=EpicConfig(manifests_dir=None))

        with (
            patch.dict(os.environ, {"EPIC_MANIFESTS_DIR": str(epic_fixtures_dir)}),
            patch(
                "game_tracker.discovery.scanners.epic.default_manifests_dir",
                return_value=None,
            ),
        ):
            candidates = create_scanner(LauncherSource.EPIC, settings).discover()

        assert candidates == []

    def test_unknown_source_rejected(self) -> None:
        """Test that a source without a scanner raises ValueError."""
        with pytest.raises(ValueError, match="Unknown source"):
            create_scanner("gog", Settings(_env_file=None))  # type: ignore[arg-type]


def test_default_scanners_follow_enabled_sources() -> None:
    """Test that only enabled sources get a scanner."""
    with patch.dict(os.environ, {"DISCOVERY_ENABLED_SOURCES": '["epic"]'}):
        settings = Settings(_env_file=None)

    scanners = default_scanners(settings)

    assert [s.source_name for s in scanners] == [LauncherSource.EPIC]
