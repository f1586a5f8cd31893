"""Inspect a feed-store write-queue from the command line.

Usage:
    python -m feed_store stats --db ./data/dp1-feed.db
    python -m feed_store dead-letters --db ./data/dp1-feed.db --limit 20

Both commands print JSON to stdout.  ``--db`` falls back to the
``FEED_STORE_DB_PATH`` environment variable.

Exit codes:
    0: Success
    1: Failure (error details in JSON output)
"""

from __future__ import annotations

import argparse
import asyncio
import json
import sys
from collections.abc import Sequence
from dataclasses import asdict
from typing import Any

from feed_store.config import Settings
from feed_store.engine import StorageEngine
from feed_store.logging_config import configure_logging
from feed_store.queue.sqlite import SQLiteWriteQueue


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="feed_store", description=__doc__.splitlines()[0])
    parser.add_argument("--db", dest="db_path", default=None, help="SQLite database path")
    parser.add_argument("--queue", dest="queue_name", default=None, help="queue name")
    parser.add_argument("--log-level", default=None, help="logging level (default: info)")

    commands = parser.add_subparsers(dest="command", required=True)
    commands.add_parser("stats", help="entry counts by state")
    dead = commands.add_parser("dead-letters", help="list dead-lettered entries")
    dead.add_argument("--limit", type=int, default=100)
    return parser


async def run(args: argparse.Namespace, settings: Settings) -> Any:
    async with StorageEngine(args.db_path or settings.db_path) as engine:
        queue = await SQLiteWriteQueue.create(engine, args.queue_name or settings.queue_name)
        if args.command == "stats":
            return (await queue.stats()).model_dump()
        entries = await queue.fetch_dead(args.limit)
        return [{**asdict(entry), "state": entry.state.name.lower()} for entry in entries]


def main(argv: Sequence[str] | None = None) -> int:
    """Main entry point.

    Returns:
        Exit code (0 for success, 1 for failure)
    """
    args = build_parser().parse_args(argv)
    try:
        settings = Settings()
        configure_logging(args.log_level or settings.log_level)
        output = asyncio.run(run(args, settings))
        print(json.dumps(output, indent=2))
        return 0
    except Exception as e:
        # Always emit valid JSON, even on unexpected errors
        print(json.dumps({"error": str(e), "error_type": type(e).__name__}))
        return 1


if __name__ == "__main__":
    sys.exit(main())
