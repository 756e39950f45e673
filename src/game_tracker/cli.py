"""
Command-line interface for Game Tracker.

Provides commands to inspect launcher discovery and to sync the
catalog database manually.
"""

import asyncio
import json
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field

from game_tracker.config import get_settings
from game_tracker.logger import get_logger, setup_logging

# Initialize logging
setup_logging()
logger = get_logger(__name__, component="cli")


class CLIOutput(BaseModel):
    """Structured output for CLI commands."""

    success: bool
    command: str
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    data: dict[str, Any] | list[Any] | None = None
    error: str | None = None


def print_json(output: CLIOutput) -> None:
    """Print output as formatted JSON."""
    print(json.dumps(output.model_dump(mode="json"), indent=2, default=str))


def _option(name: str) -> str | None:
    """Value following ``--name`` on the command line, if any."""
    if name in sys.argv:
        idx = sys.argv.index(name)
        if idx + 1 < len(sys.argv):
            return sys.argv[idx + 1]
    return None


async def cmd_scan(source: str | None = None) -> None:
    """Run the scanners without touching the catalog."""
    from game_tracker.discovery.contracts import LauncherSource
    from game_tracker.discovery.coordinator import DiscoveryCoordinator
    from game_tracker.discovery.scanners import create_scanner, default_scanners

    if source:
        try:
            scanners = [create_scanner(LauncherSource(source.lower()))]
        except ValueError:
            print(f"Error: Invalid source '{source}'. Use 'steam' or 'epic'.")
            sys.exit(1)
    else:
        scanners = default_scanners()

    result = await DiscoveryCoordinator().run_all(scanners)

    output = CLIOutput(
        success=not result.failed_sources,
        command="scan",
        data={
            "discovered": result.discovered,
            "by_source": result.by_source,
            "candidates": [c.model_dump(mode="json") for c in result.candidates],
            "skipped": [s.model_dump() for s in result.skipped],
        },
        error="; ".join(f"{e['source']}: {e['error']}" for e in result.errors) or None,
    )
    print_json(output)


async def cmd_sync(database_path: Path | None = None) -> None:
    """Run discovery now and merge the results into the catalog."""
    from game_tracker.catalog import SQLiteCatalogStore
    from game_tracker.service import LibrarySyncService

    with SQLiteCatalogStore(database_path) as store:
        summary = await LibrarySyncService(store).run_discovery()

    output = CLIOutput(
        success=not summary.aborted,
        command="sync",
        data=summary.model_dump(),
        error="Catalog became unavailable during sync" if summary.aborted else None,
    )
    print_json(output)


async def cmd_list(database_path: Path | None = None) -> None:
    """List catalog entries."""
    from game_tracker.catalog import SQLiteCatalogStore

    with SQLiteCatalogStore(database_path) as store:
        entries = store.list_entries()

    output = CLIOutput(
        success=True,
        command="list",
        data=[entry.model_dump(mode="json") for entry in entries],
    )
    print_json(output)


async def cmd_test_config() -> None:
    """Test configuration loading."""
    settings = get_settings()

    output = CLIOutput(
        success=True,
        command="test-config",
        data={
            "environment": settings.environment,
            "steam_root": str(settings.steam.root) if settings.steam.root else None,
            "epic_manifests_dir": (
                str(settings.epic.manifests_dir) if settings.epic.manifests_dir else None
            ),
            "enabled_sources": [s.value for s in settings.discovery.enabled_sources],
            "concurrent": settings.discovery.concurrent,
            "refresh_titles": settings.discovery.refresh_titles,
            "database_path": str(settings.catalog.database_path),
        },
    )
    print_json(output)


def print_usage() -> None:
    """Print CLI usage information."""
    usage = """
Game Tracker CLI
================

Usage: game-tracker <command> [options]

Commands:
  test-config                 Show the loaded configuration
  scan                        Scan launchers and print candidates (no writes)
  sync                        Scan launchers and update the catalog
  list                        List catalog entries

Options:
  --source <source>           scan: only 'steam' or 'epic'
  --db <path>                 sync/list: catalog database file

Examples:
  game-tracker scan --source epic
  game-tracker sync --db ~/games/catalog.db
"""
    print(usage)


def main() -> None:
    """Main CLI entry point."""
    if len(sys.argv) < 2:
        print_usage()
        sys.exit(1)

    command = sys.argv[1]
    db_option = _option("--db")
    database_path = Path(db_option).expanduser() if db_option else None

    try:
        if command == "test-config":
            asyncio.run(cmd_test_config())

        elif command == "scan":
            asyncio.run(cmd_scan(_option("--source")))

        elif command == "sync":
            asyncio.run(cmd_sync(database_path))

        elif command == "list":
            asyncio.run(cmd_list(database_path))

        elif command in ("help", "--help", "-h"):
            print_usage()

        else:
            print(f"Unknown command: {command}")
            print_usage()
            sys.exit(1)

    except KeyboardInterrupt:
        print("\nInterrupted by user")
        sys.exit(130)
    except Exception as e:
        logger.exception("CLI error", error=str(e))
        output = CLIOutput(
            success=False,
            command=command,
            error=str(e),
        )
        print_json(output)
        sys.exit(1)


if __name__ == "__main__":
    main()
