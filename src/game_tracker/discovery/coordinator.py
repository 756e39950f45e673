"""
Discovery coordinator that runs every configured scanner.

Scanners do blocking filesystem I/O, so each one runs in a worker
thread; with concurrency enabled they fan out together, otherwise they
run one after another. One scanner failing or hanging never prevents
the others from contributing.
"""

import asyncio
from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any
from uuid import UUID, uuid4

from game_tracker.config import get_settings
from game_tracker.discovery.contracts import CandidateRecord
from game_tracker.discovery.scanners import (
    BaseScanner,
    ScannerTimeoutError,
    ScanResult,
    SkippedArtifact,
)
from game_tracker.logger import discovery_run_context, get_logger


class _Default(Enum):
    """Marker for arguments that fall back to settings."""

    FROM_SETTINGS = "from_settings"


FROM_SETTINGS = _Default.FROM_SETTINGS


@dataclass
class DiscoveryResult:
    """Result of a complete discovery run."""

    run_id: UUID
    started_at: datetime
    completed_at: datetime
    candidates: list[CandidateRecord]
    scans: list[ScanResult]
    errors: list[dict[str, Any]] = field(default_factory=list)

    @property
    def discovered(self) -> int:
        """Total candidates across sources, before catalog deduplication."""
        return len(self.candidates)

    @property
    def by_source(self) -> dict[str, int]:
        """Candidate count per launcher source."""
        counts: dict[str, int] = {}
        for scan in self.scans:
            counts[scan.source.value] = counts.get(scan.source.value, 0) + scan.discovered
        return counts

    @property
    def skipped(self) -> list[SkippedArtifact]:
        """Artifacts skipped by any scanner."""
        return [artifact for scan in self.scans for artifact in scan.skipped]

    @property
    def failed_sources(self) -> list[str]:
        """Sources whose scanner did not complete."""
        return [scan.source.value for scan in self.scans if not scan.success]

    @property
    def duration_seconds(self) -> float:
        """Get total duration in seconds."""
        return (self.completed_at - self.started_at).total_seconds()


class DiscoveryCoordinator:
    """
    Runs launcher scanners and aggregates their candidates.

    Example:
        >>> coordinator = DiscoveryCoordinator()
        >>> result = await coordinator.run_all([SteamScanner(), EpicScanner()])
        >>> print(result.discovered, result.by_source)
    """

    def __init__(
        self,
        *,
        concurrent: bool | None = None,
        scanner_timeout: float | None | _Default = FROM_SETTINGS,
    ) -> None:
        """
        Initialize the coordinator.

        Args:
            concurrent: Fan scanners out together (settings default if None)
            scanner_timeout: Seconds to wait for each scanner; None waits for
                completion (settings default when omitted)

        Raises:
            ValueError: If the timeout is not positive
        """
        settings = get_settings()
        self._concurrent = settings.discovery.concurrent if concurrent is None else concurrent
        if isinstance(scanner_timeout, _Default):
            scanner_timeout = settings.discovery.scanner_timeout_seconds
        if scanner_timeout is not None and scanner_timeout <= 0:
            raise ValueError(f"scanner_timeout must be positive, got {scanner_timeout}")
        self._scanner_timeout: float | None = scanner_timeout
        self._logger = get_logger(__name__, component="coordinator")

    async def run_all(self, scanners: Sequence[BaseScanner]) -> DiscoveryResult:
        """
        Run every scanner and concatenate their candidates.

        Args:
            scanners: Scanners to run

        Returns:
            DiscoveryResult: Candidates in scanner order plus per-source results
        """
        run_id = uuid4()
        started_at = datetime.now(timezone.utc)

        self._logger.info(
            "Starting discovery",
            run_id=str(run_id),
            sources=[scanner.source_name.value for scanner in scanners],
            concurrent=self._concurrent,
        )

        with discovery_run_context(str(run_id)):
            if self._concurrent:
                scans = list(await asyncio.gather(*(self._run_scanner(s) for s in scanners)))
            else:
                scans = [await self._run_scanner(scanner) for scanner in scanners]

        candidates = [candidate for scan in scans for candidate in scan.candidates]
        errors = [
            {"source": scan.source.value, "error": scan.error_message}
            for scan in scans
            if not scan.success
        ]

        result = DiscoveryResult(
            run_id=run_id,
            started_at=started_at,
            completed_at=datetime.now(timezone.utc),
            candidates=candidates,
            scans=scans,
            errors=errors,
        )

        self._logger.info(
            "Discovery complete",
            run_id=str(run_id),
            discovered=result.discovered,
            by_source=result.by_source,
            skipped=len(result.skipped),
            failed_sources=result.failed_sources,
            duration_seconds=round(result.duration_seconds, 3),
        )

        return result

    async def _run_scanner(self, scanner: BaseScanner) -> ScanResult:
        """Run one scanner in a worker thread, isolating its failures."""
        source = scanner.source_name

        try:
            if self._scanner_timeout is None:
                return await asyncio.to_thread(scanner.scan)
            return await asyncio.wait_for(
                asyncio.to_thread(scanner.scan),
                timeout=self._scanner_timeout,
            )
        except asyncio.TimeoutError as e:
            error = ScannerTimeoutError(
                f"Scanner did not finish within {self._scanner_timeout}s",
                source=source.value,
                original_error=e,
            )
            self._logger.error(
                "Scanner timed out",
                source=source.value,
                timeout=self._scanner_timeout,
            )
            return ScanResult(source=source, success=False, error_message=str(error))
        except Exception as e:
            self._logger.error("Scanner crashed", source=source.value, error=str(e))
            return ScanResult(
                source=source,
                success=False,
                error_message=f"{type(e).__name__}: {e}",
            )
