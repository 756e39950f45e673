"""
Steam library scanner.

Finds the Steam installation, follows ``libraryfolders.vdf`` to every
library root, and parses each ``appmanifest_<appid>.acf`` with the
``vdf`` library.
"""

import sys
from pathlib import Path
from typing import Any

import vdf
from pydantic import ValidationError as PydanticValidationError

from game_tracker.discovery.contracts import (
    CandidateRecord,
    LauncherSource,
    SteamAppManifest,
    library_paths_from_vdf,
)
from game_tracker.discovery.scanners.base import BaseScanner, ManifestError
from game_tracker.discovery.scanners.paths import join_path, path_key, resolve_path

# Steam runtimes, redistributables and compatibility tools, not games
EXCLUDED_APP_IDS = frozenset(
    {
        228980,  # Steamworks Common Redistributables
        1070560,  # Steam Linux Runtime
        1391110,  # Steam Linux Runtime 2.0 (soldier)
        1628350,  # Steam Linux Runtime 3.0 (sniper)
        2180100,  # Steam Linux Runtime 1.0 (scout)
        1493710,  # Proton Experimental
        2805730,  # Proton Hotfix
        961940,  # Proton 3.7
        1054830,  # Proton 4.2
        1113280,  # Proton 4.11
        1245040,  # Proton 5.0
        1420170,  # Proton 5.13
        1580130,  # Proton 6.3
        1887720,  # Proton 7.0
        2348590,  # Proton 8.0
        2180110,  # Proton EasyAntiCheat Runtime
        1826330,  # Proton BattlEye Runtime
    }
)

# Substrings of executables that ship next to games but are not the game
NON_GAME_EXECUTABLE_MARKERS = (
    "unins",
    "redist",
    "setup",
    "crash",
    "ue4prereq",
    "dxsetup",
)


def _windows_registry_roots() -> list[Path]:
    """Steam install paths recorded in the Windows registry."""
    import winreg

    lookups = [
        (winreg.HKEY_CURRENT_USER, r"Software\Valve\Steam", "SteamPath"),
        (winreg.HKEY_LOCAL_MACHINE, r"SOFTWARE\WOW6432Node\Valve\Steam", "InstallPath"),
        (winreg.HKEY_LOCAL_MACHINE, r"SOFTWARE\Valve\Steam", "InstallPath"),
    ]

    roots: list[Path] = []
    for hive, subkey, value_name in lookups:
        try:
            with winreg.OpenKey(hive, subkey) as key:
                value, _ = winreg.QueryValueEx(key, value_name)
        except OSError:
            continue
        if value:
            roots.append(Path(value))
    return roots


def candidate_steam_roots() -> list[Path]:
    """Well-known Steam install locations for the running platform."""
    home = Path.home()

    if sys.platform == "win32":
        return [
            *_windows_registry_roots(),
            Path(r"C:\Program Files (x86)\Steam"),
            Path(r"C:\Program Files\Steam"),
        ]

    if sys.platform == "darwin":
        return [home / "Library" / "Application Support" / "Steam"]

    return [
        home / ".steam" / "steam",
        home / ".steam" / "root",
        home / ".local" / "share" / "Steam",
        home / ".var" / "app" / "com.valvesoftware.Steam" / ".steam" / "steam",
        home / ".var" / "app" / "com.valvesoftware.Steam" / ".local" / "share" / "Steam",
    ]


def find_steam_root() -> Path | None:
    """Return the first known location that looks like a Steam install."""
    for candidate in candidate_steam_roots():
        try:
            if (candidate / "steamapps").is_dir():
                return candidate
        except OSError:
            continue
    return None


def resolve_executable(install_path: str) -> str | None:
    """
    Pick the game executable in the root of an install directory.

    Returns a path only when exactly one plausible ``.exe`` exists;
    with none or several candidates the choice is left to the user.
    """
    try:
        entries = sorted(Path(install_path).iterdir())
    except OSError:
        return None

    executables = [
        entry
        for entry in entries
        if entry.suffix.lower() == ".exe"
        and entry.is_file()
        and not any(marker in entry.name.lower() for marker in NON_GAME_EXECUTABLE_MARKERS)
    ]

    if len(executables) != 1:
        return None
    return str(executables[0])


class SteamScanner(BaseScanner):
    """
    Scanner for Steam libraries.

    Example:
        >>> scanner = SteamScanner()
        >>> for candidate in scanner.discover():
        ...     print(candidate.source_id, candidate.install_path)
    """

    def __init__(self, *, steam_root: Path | None = None) -> None:
        """
        Initialize the Steam scanner.

        Args:
            steam_root: Steam installation root (auto-detected if None)
        """
        super().__init__()
        self._steam_root = steam_root

    @property
    def source_name(self) -> LauncherSource:
        """Return source identifier."""
        return LauncherSource.STEAM

    def discover(self) -> list[CandidateRecord]:
        """
        Find every installed Steam app across all library folders.

        Returns:
            list[CandidateRecord]: Installed games, excluding runtimes and tools
        """
        root = self._steam_root or find_steam_root()

        if root is None or not (root / "steamapps").is_dir():
            self._logger.info(
                "Steam installation not found",
                steam_root=str(root) if root else None,
            )
            return []

        candidates: list[CandidateRecord] = []

        for library_root in self._library_roots(root):
            steamapps = Path(library_root) / "steamapps"
            manifests = sorted(steamapps.glob("appmanifest_*.acf"))

            self._logger.debug(
                "Scanning library folder",
                library_root=library_root,
                manifests=len(manifests),
            )

            for manifest_path in manifests:
                try:
                    candidate = self._parse_manifest(manifest_path, library_root)
                except ManifestError as e:
                    self._skip(manifest_path, str(e))
                    continue

                if candidate is not None:
                    candidates.append(candidate)

        return self._dedupe(candidates)

    def _library_roots(self, root: Path) -> list[str]:
        """Steam root plus every extra library folder that exists."""
        roots = [str(root)]
        seen = {path_key(str(root))}

        for path in self._read_library_folders(root):
            key = path_key(path)
            if key in seen:
                continue
            if not (Path(path) / "steamapps").is_dir():
                self._logger.debug("Library folder not reachable", library_root=path)
                continue
            seen.add(key)
            roots.append(path)

        return roots

    def _read_library_folders(self, root: Path) -> list[str]:
        """Library paths listed in ``libraryfolders.vdf``, if the file exists."""
        for location in (
            root / "steamapps" / "libraryfolders.vdf",
            root / "config" / "libraryfolders.vdf",
        ):
            if not location.is_file():
                continue

            try:
                data = self._load_vdf(location)
                return library_paths_from_vdf(data)
            except (ManifestError, ValueError) as e:
                self._skip(location, str(e))
                return []

        return []

    def _load_vdf(self, path: Path) -> dict[str, Any]:
        """Decode a VDF text file."""
        try:
            with path.open(encoding="utf-8") as f:
                data = vdf.load(f)
        except (OSError, ValueError, SyntaxError) as e:
            raise ManifestError(
                f"Unreadable VDF file: {e}",
                source=self.source_name.value,
                path=str(path),
                original_error=e,
            ) from e

        if not isinstance(data, dict):
            raise ManifestError(
                "VDF document is not a mapping",
                source=self.source_name.value,
                path=str(path),
            )
        return dict(data)

    def _parse_manifest(self, manifest_path: Path, library_root: str) -> CandidateRecord | None:
        """
        Parse one app manifest into a candidate.

        Args:
            manifest_path: Path to ``appmanifest_<appid>.acf``
            library_root: Library folder the manifest belongs to

        Returns:
            CandidateRecord, or None for excluded apps

        Raises:
            ManifestError: If the manifest is unreadable or incomplete
        """
        data = self._load_vdf(manifest_path)

        app_state = next(
            (value for key, value in data.items() if key.lower() == "appstate"),
            None,
        )
        if not isinstance(app_state, dict):
            raise ManifestError(
                "Missing AppState block",
                source=self.source_name.value,
                path=str(manifest_path),
            )

        try:
            manifest = SteamAppManifest.model_validate(
                {key.lower(): value for key, value in app_state.items()}
            )
        except PydanticValidationError as e:
            raise ManifestError(
                f"Incomplete manifest: {e.error_count()} invalid field(s)",
                source=self.source_name.value,
                path=str(manifest_path),
                original_error=e,
            ) from e

        if manifest.app_id in EXCLUDED_APP_IDS:
            self._logger.debug("Ignoring non-game app", source_id=manifest.appid)
            return None

        install_path = join_path(
            resolve_path(library_root), "steamapps", "common", manifest.installdir
        )

        return CandidateRecord(
            source=self.source_name,
            source_id=manifest.appid,
            title=manifest.name,
            install_path=install_path,
            executable_path=resolve_executable(install_path),
        )
