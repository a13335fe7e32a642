"""Command line entry-point for the character sheet synchronisation utility."""
from __future__ import annotations

import argparse
import json
import sys
from dataclasses import replace
from typing import List, Optional

from .config import SyncSettings
from .errors import CharacterSyncError
from .pipeline import sync_character
from .utils import configure_logger


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Synchronise character sheets with a Notion database")
    parser.add_argument("--verbose", action="store_true", help="Enable verbose logging")
    subparsers = parser.add_subparsers(dest="command", required=True)

    sync_parser = subparsers.add_parser("sync", help="Synchronise a single character")
    sync_parser.add_argument("character_id", help="Numeric character ID")
    sync_parser.add_argument("--database-id", help="Target Notion database (default: NOTION_DATABASE_ID)")
    sync_parser.add_argument("--dry-run", action="store_true", help="Fetch and map without writing to Notion")

    serve_parser = subparsers.add_parser("serve", help="Run the web form and sync endpoint")
    serve_parser.add_argument("--host", default="127.0.0.1", help="Interface to bind (default: 127.0.0.1)")
    serve_parser.add_argument("--port", type=int, help="Port to listen on (default: PORT or 3000)")
    return parser


def _run_sync(args: argparse.Namespace, settings: SyncSettings, logger) -> int:
    if args.database_id:
        settings = replace(settings, database_id=args.database_id)
    try:
        outcome = sync_character(args.character_id, settings, dry_run=args.dry_run, logger=logger)
    except CharacterSyncError as exc:
        logger.error("sync_failed", error=exc.kind, message=str(exc))
        print(json.dumps(exc.to_dict(), ensure_ascii=False), file=sys.stderr)
        return 1
    print(json.dumps(outcome.to_dict(), ensure_ascii=False))
    return 0


def _run_server(args: argparse.Namespace, settings: SyncSettings) -> int:
    from .app import create_app

    app = create_app(settings)
    app.run(host=args.host, port=args.port or settings.port)
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    logger = configure_logger("DEBUG" if args.verbose else None)
    settings = SyncSettings.from_env()

    if args.command == "sync":
        return _run_sync(args, settings, logger)
    return _run_server(args, settings)


if __name__ == "__main__":  # pragma: no cover - CLI entry point
    sys.exit(main())
