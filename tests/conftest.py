"""Shared fixtures for Game Tracker tests."""

import sqlite3
from collections.abc import Callable, Iterator
from contextlib import closing
from pathlib import Path

import pytest

from game_tracker.config import get_settings

FIXTURES_DIR = Path(__file__).parent / "fixtures"


def write_app_manifest(steamapps: Path, app_id: int, name: str, installdir: str) -> Path:
    """Write a minimal appmanifest_<appid>.acf as Steam does."""
    steamapps.mkdir(parents=True, exist_ok=True)
    manifest = steamapps / f"appmanifest_{app_id}.acf"
    manifest.write_text(
        '"AppState"\n'
        "{\n"
        f'\t"appid"\t\t"{app_id}"\n'
        '\t"Universe"\t\t"1"\n'
        f'\t"name"\t\t"{name}"\n'
        '\t"StateFlags"\t\t"4"\n'
        f'\t"installdir"\t\t"{installdir}"\n'
        '\t"SizeOnDisk"\t\t"1048576"\n'
        "}\n",
        encoding="utf-8",
    )
    return manifest


def write_library_folders(steam_root: Path, library_paths: list[Path]) -> Path:
    """Write a modern steamapps/libraryfolders.vdf listing the given roots."""
    steamapps = steam_root / "steamapps"
    steamapps.mkdir(parents=True, exist_ok=True)

    blocks = []
    for index, path in enumerate([steam_root, *library_paths]):
        escaped = str(path).replace("\\", "\\\\")
        blocks.append(
            f'\t"{index}"\n'
            "\t{\n"
            f'\t\t"path"\t\t"{escaped}"\n'
            '\t\t"label"\t\t""\n'
            "\t}\n"
        )

    target = steamapps / "libraryfolders.vdf"
    target.write_text('"libraryfolders"\n{\n' + "".join(blocks) + "}\n", encoding="utf-8")
    return target


def insert_catalog_row(database_path: Path, **columns: object) -> int:
    """Write a games row directly, the way other catalog writers do."""
    values: dict[str, object] = {
        "platform": "PC",
        "status": "Backlog",
        "added_at": "2026-01-01T00:00:00+00:00",
        **columns,
    }
    names = ", ".join(values)
    placeholders = ", ".join("?" for _ in values)

    with closing(sqlite3.connect(database_path)) as conn:
        with conn:
            cursor = conn.execute(
                f"INSERT INTO games ({names}) VALUES ({placeholders})",
                list(values.values()),
            )
    return int(cursor.lastrowid or 0)


@pytest.fixture(autouse=True)
def clear_settings_cache() -> Iterator[None]:
    """Make every test load settings from its own environment."""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def steam_root(tmp_path: Path) -> Path:
    """An empty Steam installation."""
    root = tmp_path / "Steam"
    (root / "steamapps").mkdir(parents=True)
    return root


@pytest.fixture
def make_manifest() -> Callable[[Path, int, str, str], Path]:
    """Factory for Steam app manifests."""
    return write_app_manifest


@pytest.fixture
def make_library_folders() -> Callable[[Path, list[Path]], Path]:
    """Factory for libraryfolders.vdf files."""
    return write_library_folders


@pytest.fixture
def seed_catalog_row() -> Callable[..., int]:
    """Factory writing raw rows into a catalog database."""
    return insert_catalog_row


@pytest.fixture
def epic_fixtures_dir() -> Path:
    """Directory of sample Epic .item manifests."""
    return FIXTURES_DIR / "epic"
