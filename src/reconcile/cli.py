#!/usr/bin/env python3
"""CLI interface for reconciling a Moon+ Reader sync folder."""

import argparse
import json
from dataclasses import asdict
from pathlib import Path

from rich.table import Table

from common.constants import CACHE_DIR, MOON_DIR
from common.env import env
from common.logger import console, error, progress, setup_logging, success, warning

from .engine import reconcile_sync
from .fingerprint import compute_highlights_hash
from .models import BookRecord


def book_summary(book: BookRecord) -> dict:
    """Book as a JSON-ready dict, with its highlight fingerprint."""
    data = asdict(book)
    data["highlights_hash"] = compute_highlights_hash(book.highlights)
    return data


def render_table(books: list[BookRecord]) -> Table:
    table = Table(title="Moon+ Reader books")
    table.add_column("Title")
    table.add_column("Author")
    table.add_column("Highlights", justify="right")
    table.add_column("Progress", justify="right")
    table.add_column("Fingerprint")

    for book in sorted(books, key=lambda b: b.title.lower()):
        progress = f"{book.progress:g}%" if book.progress is not None else "-"
        table.add_row(
            book.title,
            book.author or "-",
            str(len(book.highlights)),
            progress,
            compute_highlights_hash(book.highlights) or "-",
        )
    return table


def cmd_scan(args):
    """Reconcile a sync folder and print the books.

    Args:
        args: Parsed command-line arguments

    Returns:
        Exit code (0 for success, non-zero for errors)
    """
    sync_path = args.sync_path or env.sync_path()
    if sync_path is None:
        error("No sync folder given (use --sync-path or MOONSYNC_SYNC_PATH)")
        return 1
    if not sync_path.is_dir():
        error(f"{sync_path} is not a directory")
        return 1
    if not (sync_path / MOON_DIR / CACHE_DIR).is_dir():
        error(f"{MOON_DIR}/{CACHE_DIR} folder not found in {sync_path}")
        return 1

    track = args.track_without_highlights or env.track_books_without_highlights()
    if not args.json:
        progress(f"Reading {sync_path / MOON_DIR}...")
    result = reconcile_sync(sync_path, track_books_without_highlights=track)
    if not result.books and not args.json:
        warning("No books found in the cache")

    if args.json:
        print(json.dumps([book_summary(b) for b in result.books], indent=2, ensure_ascii=False))
        return 0

    console.print(render_table(result.books))
    success(
        f"Reconciled {len(result.books)} book(s), "
        f"{result.enrichment.books_enriched} enriched from books.sync"
    )
    return 0


def main():
    """Main entry point for the CLI."""
    parser = argparse.ArgumentParser(description="Reconcile Moon+ Reader sync data")
    parser.add_argument(
        "--log-level",
        default=None,
        help="Logging level (default: LOG_LEVEL or INFO)",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    scan_parser = subparsers.add_parser(
        "scan", help="Read the .Moon+ cache and list the reconciled books"
    )
    scan_parser.add_argument(
        "--sync-path",
        type=Path,
        default=None,
        help="Folder containing .Moon+ (default: MOONSYNC_SYNC_PATH)",
    )
    scan_parser.add_argument(
        "--track-without-highlights",
        action="store_true",
        help="Include books that only have progress or books.sync metadata",
    )
    scan_parser.add_argument(
        "--json",
        action="store_true",
        help="Print books as JSON instead of a table",
    )
    scan_parser.set_defaults(func=cmd_scan)

    args = parser.parse_args()
    # Keep stdout clean for --json output
    json_output = getattr(args, "json", False)
    quiet = "WARNING" if json_output else None
    setup_logging(level=args.log_level or quiet, stderr=json_output)
    return args.func(args)


if __name__ == "__main__":
    exit(main())
