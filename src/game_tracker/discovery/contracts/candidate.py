"""
Normalized discovery output shared by every launcher scanner.
"""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator


class LauncherSource(str, Enum):
    """Launcher families the discovery engine knows how to scan."""

    STEAM = "steam"
    EPIC = "epic"


class CandidateRecord(BaseModel):
    """
    A game found on disk that has not been reconciled yet.

    Candidates are produced by scanners, handed to the reconciliation
    engine and never persisted as-is.
    """

    model_config = ConfigDict(frozen=True)

    source: LauncherSource = Field(..., description="Launcher family tag")
    source_id: str = Field(..., min_length=1, description="Launcher-assigned stable id")
    title: str = Field(..., min_length=1, description="Display name reported by the launcher")
    platform: str = Field(default="PC", description="Platform label stored in the catalog")
    install_path: str = Field(..., min_length=1, description="Absolute install directory")
    executable_path: str | None = Field(
        default=None,
        description="Main executable, only when it could be resolved unambiguously",
    )

    @field_validator("source_id", "title")
    @classmethod
    def strip_text(cls, v: str) -> str:
        """Trim surrounding whitespace and reject blank values."""
        stripped = v.strip()
        if not stripped:
            raise ValueError("must not be blank")
        return stripped

    @property
    def key(self) -> tuple[str, str]:
        """Natural key used to match catalog entries."""
        return (self.source.value, self.source_id)
