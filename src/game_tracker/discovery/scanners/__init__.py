"""
Launcher scanners.

This module provides one scanner per supported launcher, all built on
a common base with error isolation, skipped-artifact tracking, and
structured logging.
"""

from game_tracker.config import Settings, get_settings
from game_tracker.discovery.contracts import LauncherSource
from game_tracker.discovery.scanners.base import (
    BaseScanner,
    DiscoveryError,
    ManifestError,
    ScannerTimeoutError,
    ScanResult,
    SkippedArtifact,
)
from game_tracker.discovery.scanners.epic import EpicScanner
from game_tracker.discovery.scanners.steam import SteamScanner


def create_scanner(source: LauncherSource, settings: Settings | None = None) -> BaseScanner:
    """
    Build the scanner for a launcher source.

    Args:
        source: Launcher family to scan
        settings: Settings to read launcher paths from (cached settings if None)

    Returns:
        BaseScanner: Scanner instance for the source

    Raises:
        ValueError: If the source has no scanner
    """
    settings = settings or get_settings()

    if source == LauncherSource.STEAM:
        return SteamScanner(steam_root=settings.steam.root)
    elif source == LauncherSource.EPIC:
        return EpicScanner(manifests_dir=settings.epic.manifests_dir)
    else:
        raise ValueError(f"Unknown source: {source}")


def default_scanners(settings: Settings | None = None) -> list[BaseScanner]:
    """Scanners for every source enabled in the discovery settings."""
    settings = settings or get_settings()
    return [create_scanner(source, settings) for source in settings.discovery.enabled_sources]


__all__ = [
    # Base classes and errors
    "BaseScanner",
    "DiscoveryError",
    "ManifestError",
    "ScanResult",
    "ScannerTimeoutError",
    "SkippedArtifact",
    # Scanners
    "EpicScanner",
    "SteamScanner",
    # Registry
    "create_scanner",
    "default_scanners",
]
