"""
Base scanner with error isolation, result wrapping, and diagnostics.

Provides a foundation for all launcher scanners: a single bad manifest
is recorded and skipped, a missing launcher yields nothing, and an
unexpected failure is turned into an unsuccessful result instead of
propagating to the caller.
"""

import time
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from pathlib import Path

from pydantic import BaseModel, Field

from game_tracker.discovery.contracts import CandidateRecord, LauncherSource
from game_tracker.logger import get_logger


class DiscoveryError(Exception):
    """Base exception for discovery errors."""

    def __init__(
        self,
        message: str,
        *,
        source: str | None = None,
        path: str | None = None,
        original_error: Exception | None = None,
    ) -> None:
        super().__init__(message)
        self.source = source
        self.path = path
        self.original_error = original_error
        self.timestamp = datetime.now(timezone.utc)


class ManifestError(DiscoveryError):
    """Raised when a launcher artifact cannot be read or parsed."""

    pass


class ScannerTimeoutError(DiscoveryError):
    """Raised when a scanner does not finish within its time budget."""

    pass


class SkippedArtifact(BaseModel):
    """A launcher file that was ignored during a pass."""

    path: str
    reason: str


class ScanResult(BaseModel):
    """
    Wrapper for a scanner pass with metadata.

    Provides consistent structure for all scanner outputs,
    including timing, skipped files, and error information.
    """

    source: LauncherSource
    success: bool
    candidates: list[CandidateRecord] = Field(default_factory=list)
    skipped: list[SkippedArtifact] = Field(default_factory=list)
    error_message: str | None = None
    scanned_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    duration_ms: float | None = None

    @property
    def discovered(self) -> int:
        """Number of valid candidates found."""
        return len(self.candidates)


class BaseScanner(ABC):
    """
    Abstract base class for all launcher scanners.

    Subclasses must implement:
    - source_name: Launcher family this scanner reads
    - discover(): Main discovery logic

    ``discover()`` must return an empty list when the launcher is not
    installed and must call ``_skip()`` for every artifact it cannot use.
    """

    def __init__(self) -> None:
        self._skipped: list[SkippedArtifact] = []
        self._logger = get_logger(
            self.__class__.__name__,
            component="scanner",
            source=self.source_name.value,
        )

    @property
    @abstractmethod
    def source_name(self) -> LauncherSource:
        """Return the launcher family for this scanner."""
        ...

    @property
    def skipped(self) -> list[SkippedArtifact]:
        """Artifacts skipped during the most recent pass."""
        return list(self._skipped)

    @abstractmethod
    def discover(self) -> list[CandidateRecord]:
        """
        Find installed games for this launcher.

        Returns:
            list[CandidateRecord]: One record per installed game
        """
        ...

    def scan(self) -> ScanResult:
        """
        Run ``discover()`` and wrap the outcome.

        Never raises: unexpected errors become an unsuccessful result
        so one broken launcher cannot take down a whole discovery run.

        Returns:
            ScanResult: Candidates, skipped artifacts and timing
        """
        self._skipped = []
        start_time = time.perf_counter()

        try:
            candidates = self.discover()
        except Exception as e:
            duration_ms = (time.perf_counter() - start_time) * 1000
            self._logger.exception("Scanner failed", error=str(e))
            return ScanResult(
                source=self.source_name,
                success=False,
                skipped=self.skipped,
                error_message=f"{type(e).__name__}: {e}",
                duration_ms=duration_ms,
            )

        duration_ms = (time.perf_counter() - start_time) * 1000
        self._logger.info(
            "Scan complete",
            discovered=len(candidates),
            skipped=len(self._skipped),
            duration_ms=round(duration_ms, 2),
        )

        return ScanResult(
            source=self.source_name,
            success=True,
            candidates=candidates,
            skipped=self.skipped,
            duration_ms=duration_ms,
        )

    def _skip(self, path: Path | str, reason: str) -> None:
        """Record an unusable artifact and keep going."""
        self._skipped.append(SkippedArtifact(path=str(path), reason=reason))
        self._logger.warning("Skipping artifact", path=str(path), reason=reason)

    def _dedupe(self, candidates: list[CandidateRecord]) -> list[CandidateRecord]:
        """Keep the first candidate for every source id."""
        seen: set[str] = set()
        unique: list[CandidateRecord] = []

        for candidate in candidates:
            if candidate.source_id in seen:
                self._logger.debug(
                    "Dropping duplicate candidate",
                    source_id=candidate.source_id,
                    install_path=candidate.install_path,
                )
                continue
            seen.add(candidate.source_id)
            unique.append(candidate)

        return unique
