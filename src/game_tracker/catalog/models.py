"""
Catalog entry models.

A catalog entry is either hand-entered (``source`` is None or
``"manual"``) or discovered from a launcher, in which case
``(source, source_id)`` identifies it across scans.
"""

from datetime import datetime, timezone
from enum import Enum

from pydantic import BaseModel, Field

from game_tracker.discovery.contracts import CandidateRecord

MANUAL_SOURCE = "manual"


class GameStatus(str, Enum):
    """Where a game sits in the player's backlog."""

    BACKLOG = "Backlog"
    PLAYING = "Playing"
    COMPLETED = "Completed"
    WISHLIST = "Wishlist"


class NewCatalogEntry(BaseModel):
    """Payload for inserting a catalog entry."""

    title: str = Field(..., min_length=1)
    platform: str = Field(..., min_length=1)
    status: GameStatus = GameStatus.BACKLOG

    # Enrichment, owned by metadata search
    description: str | None = None
    genre: str | None = None
    release_year: int | None = Field(default=None, ge=1950, le=2100)
    icon_path: str | None = None
    cover_url: str | None = None
    external_id: int | None = Field(default=None, description="External game-catalog id")

    # Discovery
    source: str | None = None
    source_id: str | None = None
    install_path: str | None = None
    executable_path: str | None = None

    # User-owned
    playtime_hours: float = Field(default=0.0, ge=0)
    rating: int | None = Field(default=None, ge=1, le=10)

    @property
    def is_manual(self) -> bool:
        """Hand-entered entries have no launcher source."""
        return self.source is None or self.source == MANUAL_SOURCE

    @classmethod
    def from_candidate(cls, candidate: CandidateRecord) -> "NewCatalogEntry":
        """Backlog entry for a newly discovered game, enrichment left unset."""
        return cls(
            title=candidate.title,
            platform=candidate.platform,
            status=GameStatus.BACKLOG,
            source=candidate.source.value,
            source_id=candidate.source_id,
            install_path=candidate.install_path,
            executable_path=candidate.executable_path,
        )


class CatalogEntry(NewCatalogEntry):
    """
    A persisted catalog entry.

    Rows are also written by manual entry and metadata enrichment, so
    stored values are read back as they are; the bounds above only
    apply to new inserts.
    """

    id: int
    title: str
    platform: str
    release_year: int | None = None
    playtime_hours: float = 0.0
    rating: int | None = None
    added_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    last_played_at: datetime | None = None

    @property
    def is_discovered(self) -> bool:
        """Entries created by launcher discovery."""
        return not self.is_manual and self.source_id is not None
