"""
Path helpers shared by the launcher scanners.

Launcher files can mention Windows drive paths even when they are read
on another host (a mounted drive, a Proton prefix, a test fixture), so
paths are composed with the rules of the path they came from rather
than the rules of the running interpreter.
"""

import ntpath
import os
from types import ModuleType


def is_windows_path(path: str) -> bool:
    """Check whether a path carries a drive letter or UNC share."""
    return bool(ntpath.splitdrive(path)[0])


def _flavour(path: str) -> ModuleType:
    return ntpath if is_windows_path(path) else os.path


def resolve_path(path: str) -> str:
    """Make a path absolute without touching its characters."""
    if is_windows_path(path):
        return ntpath.normpath(path)
    return os.path.abspath(path)


def join_path(base: str, *parts: str) -> str:
    """Join path segments using the flavour of ``base`` and resolve the result."""
    return resolve_path(_flavour(base).join(base, *parts))


def path_key(path: str) -> str:
    """Comparison key for deduplicating directories."""
    flavour = _flavour(path)
    return flavour.normcase(flavour.normpath(path))
