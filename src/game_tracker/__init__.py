"""
Game Tracker.

Keeps a personal game-library catalog in sync with the games
installed through third-party launchers (Steam, Epic Games Store).
"""

__version__ = "0.1.0"

__all__ = [
    "__version__",
]
