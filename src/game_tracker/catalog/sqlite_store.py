"""
SQLite-backed catalog store.

Each write runs in its own transaction, so a failure part way through
a reconciliation pass never leaves a half-applied entry behind.
Transient "database is locked" errors are retried with exponential
backoff; anything else the driver raises is mapped onto the store
error taxonomy.
"""

import sqlite3
from collections.abc import Callable
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, TypeVar

from pydantic import ValidationError as PydanticValidationError
from tenacity import retry, retry_if_exception, stop_after_attempt, wait_exponential

from game_tracker.catalog.models import (
    MANUAL_SOURCE,
    CatalogEntry,
    GameStatus,
    NewCatalogEntry,
)
from game_tracker.catalog.store import (
    CatalogStoreError,
    StoreConflictError,
    StoreUnavailableError,
)
from game_tracker.config import RetryConfig, get_settings
from game_tracker.logger import get_logger

T = TypeVar("T")

SCHEMA = """
CREATE TABLE IF NOT EXISTS games (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    title TEXT NOT NULL,
    platform TEXT NOT NULL,
    status TEXT NOT NULL DEFAULT 'Backlog'
        CHECK (status IN ('Backlog', 'Playing', 'Completed', 'Wishlist')),
    description TEXT,
    genre TEXT,
    release_year INTEGER,
    icon_path TEXT,
    cover_url TEXT,
    external_id INTEGER,
    source TEXT,
    source_id TEXT,
    install_path TEXT,
    executable_path TEXT,
    playtime_hours REAL NOT NULL DEFAULT 0,
    rating INTEGER,
    added_at TEXT NOT NULL,
    last_played_at TEXT
);

CREATE UNIQUE INDEX IF NOT EXISTS idx_games_source_id ON games(source, source_id);
CREATE UNIQUE INDEX IF NOT EXISTS idx_games_manual_title ON games(title, platform)
    WHERE source IS NULL OR source = 'manual';
CREATE INDEX IF NOT EXISTS idx_games_status ON games(status);
"""

INSERT_COLUMNS = (
    "title",
    "platform",
    "status",
    "description",
    "genre",
    "release_year",
    "icon_path",
    "cover_url",
    "external_id",
    "source",
    "source_id",
    "install_path",
    "executable_path",
    "playtime_hours",
    "rating",
    "added_at",
)


def _is_transient(error: BaseException) -> bool:
    """Locked/busy errors clear up once the other writer commits."""
    if not isinstance(error, sqlite3.OperationalError):
        return False
    message = str(error).lower()
    return "locked" in message or "busy" in message


class SQLiteCatalogStore:
    """
    Catalog store persisted in a SQLite database file.

    Example:
        >>> with SQLiteCatalogStore(Path("data/catalog.db")) as store:
        ...     entry = store.find_by_source_id("steam", "220")
    """

    def __init__(
        self,
        database_path: Path | str | None = None,
        *,
        retry_config: RetryConfig | None = None,
        timeout: float = 5.0,
    ) -> None:
        """
        Open (and if needed create) the catalog database.

        Args:
            database_path: Database file, or ":memory:" (settings default if None)
            retry_config: Backoff for locked-database retries (settings default if None)
            timeout: Seconds sqlite waits on a lock before reporting it

        Raises:
            StoreUnavailableError: If the database cannot be opened
        """
        settings = get_settings()
        self._path = str(database_path or settings.catalog.database_path)
        self._retry_config = retry_config or settings.retry
        self._logger = get_logger(__name__, component="catalog_store", database=self._path)

        conn: sqlite3.Connection | None = None
        try:
            if self._path != ":memory:":
                Path(self._path).parent.mkdir(parents=True, exist_ok=True)
            conn = sqlite3.connect(self._path, timeout=timeout, check_same_thread=False)
            conn.row_factory = sqlite3.Row
            with conn:
                conn.executescript(SCHEMA)
        except (OSError, sqlite3.Error) as e:
            if conn is not None:
                conn.close()
            raise StoreUnavailableError(
                f"Cannot open catalog database {self._path}: {e}",
                original_error=e,
            ) from e

        self._conn = conn
        self._logger.debug("Catalog database ready")

    def close(self) -> None:
        """Close the database connection."""
        self._conn.close()

    def __enter__(self) -> "SQLiteCatalogStore":
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.close()

    def _create_retry_decorator(self) -> Any:
        """Create retry decorator with current configuration."""
        return retry(
            retry=retry_if_exception(_is_transient),
            stop=stop_after_attempt(self._retry_config.max_attempts),
            wait=wait_exponential(
                multiplier=self._retry_config.base_delay_seconds,
                max=self._retry_config.max_delay_seconds,
                exp_base=self._retry_config.exponential_base,
            ),
            before_sleep=self._log_retry_attempt,
            reraise=True,
        )

    def _log_retry_attempt(self, retry_state: Any) -> None:
        """Log retry attempts for observability."""
        self._logger.warning(
            "Catalog busy, retrying",
            attempt=retry_state.attempt_number,
            wait_seconds=retry_state.next_action.sleep if retry_state.next_action else 0,
            exception=str(retry_state.outcome.exception()) if retry_state.outcome else None,
        )

    def _run(
        self,
        operation: Callable[[], T],
        *,
        source: str | None = None,
        source_id: str | None = None,
    ) -> T:
        """
        Execute a database operation with retries and error mapping.

        Raises:
            StoreConflictError: On a uniqueness violation
            StoreUnavailableError: On any other database failure
        """
        try:
            return self._create_retry_decorator()(operation)()  # type: ignore[no-any-return]
        except sqlite3.IntegrityError as e:
            raise StoreConflictError(
                f"Uniqueness violation: {e}",
                source=source,
                source_id=source_id,
                original_error=e,
            ) from e
        except sqlite3.Error as e:
            self._logger.error("Catalog database error", error=str(e))
            raise StoreUnavailableError(
                f"Catalog database unavailable: {e}",
                source=source,
                source_id=source_id,
                original_error=e,
            ) from e

    @staticmethod
    def _to_entry(row: sqlite3.Row) -> CatalogEntry:
        try:
            return CatalogEntry.model_validate(dict(row))
        except PydanticValidationError as e:
            raise CatalogStoreError(
                f"Unreadable catalog row {row['id']}: {e.error_count()} invalid field(s)",
                source=row["source"],
                source_id=row["source_id"],
                original_error=e,
            ) from e

    def get(self, entry_id: int) -> CatalogEntry | None:
        """Fetch an entry by id."""

        def _query() -> sqlite3.Row | None:
            cursor = self._conn.execute("SELECT * FROM games WHERE id = ?", (entry_id,))
            row: sqlite3.Row | None = cursor.fetchone()
            return row

        row = self._run(_query)
        return self._to_entry(row) if row else None

    def list_entries(self) -> list[CatalogEntry]:
        """All entries ordered by title."""

        def _query() -> list[sqlite3.Row]:
            return self._conn.execute("SELECT * FROM games ORDER BY title, id").fetchall()

        return [self._to_entry(row) for row in self._run(_query)]

    def find_by_source_id(self, source: str, source_id: str) -> CatalogEntry | None:
        """Look up a discovered entry by ``(source, source_id)``."""

        def _query() -> sqlite3.Row | None:
            cursor = self._conn.execute(
                "SELECT * FROM games WHERE source = ? AND source_id = ?",
                (source, source_id),
            )
            row: sqlite3.Row | None = cursor.fetchone()
            return row

        row = self._run(_query, source=source, source_id=source_id)
        return self._to_entry(row) if row else None

    def insert(self, entry: NewCatalogEntry) -> CatalogEntry:
        """
        Insert an entry in its own transaction.

        Raises:
            StoreConflictError: If the natural key or manual title is taken
            StoreUnavailableError: If the database cannot be written
        """
        values = entry.model_dump(mode="json")
        values["added_at"] = datetime.now(timezone.utc).isoformat()
        placeholders = ", ".join("?" for _ in INSERT_COLUMNS)
        sql = f"INSERT INTO games ({', '.join(INSERT_COLUMNS)}) VALUES ({placeholders})"

        def _insert() -> int:
            with self._conn:
                cursor = self._conn.execute(sql, [values[column] for column in INSERT_COLUMNS])
            return int(cursor.lastrowid or 0)

        entry_id = self._run(_insert, source=entry.source, source_id=entry.source_id)
        stored = self.get(entry_id)
        if stored is None:
            raise StoreUnavailableError(f"Inserted entry {entry_id} could not be read back")
        return stored

    def add_manual(self, title: str, platform: str, **fields: Any) -> CatalogEntry:
        """
        Insert a hand-entered game.

        Args:
            title: Game title
            platform: Platform label, unique together with the title
            **fields: Any other ``NewCatalogEntry`` field (status, rating, ...)

        Raises:
            StoreConflictError: If a manual entry with this title and platform exists
        """
        return self.insert(
            NewCatalogEntry(title=title, platform=platform, source=MANUAL_SOURCE, **fields)
        )

    def update_discovered_fields(
        self,
        entry_id: int,
        install_path: str | None,
        executable_path: str | None,
        title: str | None = None,
    ) -> None:
        """Refresh launcher-owned fields of one entry in its own transaction."""
        if title is None:
            sql = "UPDATE games SET install_path = ?, executable_path = ? WHERE id = ?"
            params: tuple[Any, ...] = (install_path, executable_path, entry_id)
        else:
            sql = "UPDATE games SET install_path = ?, executable_path = ?, title = ? WHERE id = ?"
            params = (install_path, executable_path, title, entry_id)

        def _update() -> int:
            with self._conn:
                return self._conn.execute(sql, params).rowcount

        if self._run(_update) == 0:
            raise CatalogStoreError(f"No catalog entry with id {entry_id}")

    def set_status(self, entry_id: int, status: GameStatus) -> None:
        """User edit: change an entry's status and stamp ``last_played_at``."""
        status = GameStatus(status)

        def _update() -> int:
            with self._conn:
                return self._conn.execute(
                    "UPDATE games SET status = ?, last_played_at = ? WHERE id = ?",
                    (status.value, datetime.now(timezone.utc).isoformat(), entry_id),
                ).rowcount

        if self._run(_update) == 0:
            raise CatalogStoreError(f"No catalog entry with id {entry_id}")
