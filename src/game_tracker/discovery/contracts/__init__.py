"""
Data contracts for discovery.

This module provides Pydantic models for the normalized candidate
records scanners emit and for the raw launcher files they parse.
"""

from game_tracker.discovery.contracts.candidate import CandidateRecord, LauncherSource
from game_tracker.discovery.contracts.epic import EpicItemManifest
from game_tracker.discovery.contracts.steam import SteamAppManifest, library_paths_from_vdf

__all__ = [
    "CandidateRecord",
    "EpicItemManifest",
    "LauncherSource",
    "SteamAppManifest",
    "library_paths_from_vdf",
]
