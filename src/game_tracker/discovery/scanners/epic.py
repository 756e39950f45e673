"""
Epic Games Launcher scanner.

Reads the JSON ``.item`` manifests the launcher keeps under
``%ProgramData%\\Epic\\EpicGamesLauncher\\Data\\Manifests``.
"""

import os
import sys
from pathlib import Path

from pydantic import ValidationError as PydanticValidationError

from game_tracker.discovery.contracts import CandidateRecord, EpicItemManifest, LauncherSource
from game_tracker.discovery.scanners.base import BaseScanner, ManifestError
from game_tracker.discovery.scanners.paths import join_path, resolve_path


def default_manifests_dir() -> Path | None:
    """Manifest directory used by the launcher on this platform."""
    if sys.platform != "win32":
        return None
    program_data = os.environ.get("ProgramData", r"C:\ProgramData")
    return Path(program_data) / "Epic" / "EpicGamesLauncher" / "Data" / "Manifests"


class EpicScanner(BaseScanner):
    """
    Scanner for Epic Games Launcher installs.

    Example:
        >>> scanner = EpicScanner(manifests_dir=Path("/mnt/c/ProgramData/Epic/Manifests"))
        >>> result = scanner.scan()
        >>> print(result.discovered, len(result.skipped))
    """

    def __init__(self, *, manifests_dir: Path | None = None) -> None:
        """
        Initialize the Epic scanner.

        Args:
            manifests_dir: Manifest directory (platform default if None)
        """
        super().__init__()
        self._manifests_dir = manifests_dir

    @property
    def source_name(self) -> LauncherSource:
        """Return source identifier."""
        return LauncherSource.EPIC

    def discover(self) -> list[CandidateRecord]:
        """
        Parse every ``.item`` manifest into a candidate.

        Returns:
            list[CandidateRecord]: Installed games, excluding DLC and engine components
        """
        manifests_dir = self._manifests_dir or default_manifests_dir()

        if manifests_dir is None or not manifests_dir.is_dir():
            self._logger.info(
                "Epic manifests directory not found",
                manifests_dir=str(manifests_dir) if manifests_dir else None,
            )
            return []

        candidates: list[CandidateRecord] = []

        for manifest_path in sorted(manifests_dir.glob("*.item")):
            try:
                candidate = self._parse_manifest(manifest_path)
            except ManifestError as e:
                self._skip(manifest_path, str(e))
                continue

            if candidate is not None:
                candidates.append(candidate)

        return self._dedupe(candidates)

    def _parse_manifest(self, manifest_path: Path) -> CandidateRecord | None:
        """
        Parse one Epic manifest.

        Args:
            manifest_path: Path to a ``.item`` file

        Returns:
            CandidateRecord, or None when the item is not a game

        Raises:
            ManifestError: If the file is unreadable or not a valid manifest
        """
        try:
            contents = manifest_path.read_text(encoding="utf-8-sig")
        except (OSError, UnicodeDecodeError) as e:
            raise ManifestError(
                f"Unreadable manifest: {e}",
                source=self.source_name.value,
                path=str(manifest_path),
                original_error=e,
            ) from e

        try:
            manifest = EpicItemManifest.model_validate_json(contents)
        except PydanticValidationError as e:
            raise ManifestError(
                f"Invalid manifest: {e.error_count()} error(s)",
                source=self.source_name.value,
                path=str(manifest_path),
                original_error=e,
            ) from e

        if not manifest.is_game:
            self._logger.debug(
                "Ignoring non-game item",
                path=str(manifest_path),
                app_name=manifest.app_name,
            )
            return None

        # is_game guarantees these are set
        install_location = str(manifest.install_location)
        install_path = resolve_path(install_location)

        executable_path = None
        if manifest.launch_executable and manifest.launch_executable.strip():
            full_path = join_path(install_location, manifest.launch_executable)
            if Path(full_path).is_file():
                executable_path = full_path

        return CandidateRecord(
            source=self.source_name,
            source_id=str(manifest.app_name),
            title=str(manifest.display_name),
            install_path=install_path,
            executable_path=executable_path,
        )
