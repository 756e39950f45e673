"""
Data contracts for Steam library files.

Steam keeps its state in Valve's KeyValues text format (VDF). These
models validate the decoded dictionaries produced by the ``vdf``
library before anything downstream trusts them.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


class SteamAppManifest(BaseModel):
    """
    The ``AppState`` block of an ``appmanifest_<appid>.acf`` file.

    Only the keys discovery needs are declared; everything else
    in the manifest is ignored.
    """

    model_config = ConfigDict(extra="ignore")

    appid: str = Field(..., description="Steam application id")
    name: str = Field(..., min_length=1, description="Display name")
    installdir: str = Field(..., min_length=1, description="Folder under steamapps/common")

    @field_validator("appid")
    @classmethod
    def validate_appid(cls, v: str) -> str:
        """App ids are positive integers serialized as strings."""
        v = v.strip()
        if not v.isdigit() or int(v) <= 0:
            raise ValueError(f"Invalid app id: {v!r}")
        return str(int(v))

    @field_validator("name", "installdir")
    @classmethod
    def not_blank(cls, v: str) -> str:
        """Reject values that are only whitespace."""
        if not v.strip():
            raise ValueError("must not be blank")
        return v

    @property
    def app_id(self) -> int:
        """App id as an integer."""
        return int(self.appid)


def library_paths_from_vdf(data: dict[str, Any]) -> list[str]:
    """
    Extract library root paths from a decoded ``libraryfolders.vdf``.

    Handles both layouts Steam has shipped:

    - modern: ``"libraryfolders" { "0" { "path" "C:\\\\Steam" ... } }``
    - legacy: ``"LibraryFolders" { "TimeNextStatsReport" "..." "1" "D:\\\\Games" }``

    Args:
        data: Dictionary returned by ``vdf.load``

    Returns:
        Library root paths in file order

    Raises:
        ValueError: If the file has no library folders block
    """
    block = None
    for key, value in data.items():
        if key.lower() == "libraryfolders" and isinstance(value, dict):
            block = value
            break

    if block is None:
        raise ValueError("missing libraryfolders block")

    paths: list[str] = []
    for key, value in block.items():
        # Library entries are keyed by their index; other keys are metadata
        if not key.isdigit():
            continue
        if isinstance(value, dict):
            path = value.get("path")
        else:
            path = value
        if isinstance(path, str) and path.strip():
            paths.append(path)

    return paths
