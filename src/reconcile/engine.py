"""
Reconcile the Moon+ Reader cache into one record per book.

A reconciliation runs in strict order:

1. Annotation pass: every `.an` file in `.Moon+/Cache` creates or extends a
   book keyed by its canonical title.
2. Position pass: every `.po` file is resolved onto an existing book and
   updates its progress. New books are created only when tracking books
   without highlights is enabled.
3. Enrichment pass (see enrichment.py): books.sync, local covers and
   reading statistics fill fields that are still empty.

Each call starts from an empty index, so books that left the cache simply
do not appear in the result.
"""

import asyncio
from pathlib import Path

from common.constants import ANNOTATION_SUFFIX, CACHE_DIR, MOON_DIR, POSITION_SUFFIX
from common.logger import get_logger
from extract.annotations import read_annotation_file
from extract.file_utils import strip_suffix, title_from_position_filename
from extract.models import AnnotationFile, ReadingPosition
from extract.positions import read_position_file

from .enrichment import enrich_books
from .identity import BookIndex, MatchCandidate, book_key, resolve
from .models import BookRecord, ReconcileResult
from .statistics import StatisticsLoader

logger = get_logger(__name__)


def cache_dir(sync_path: Path) -> Path:
    return sync_path / MOON_DIR / CACHE_DIR


def annotation_title(parsed: AnnotationFile) -> str:
    """Title for an annotation file: the first block's title, else the filename's."""
    if parsed.highlights and parsed.highlights[0].book:
        return parsed.highlights[0].book
    return parsed.book_title


def collect_annotations(index: BookIndex, cache: Path, names: list[str]) -> None:
    """Annotation pass: create books and gather their highlights."""
    for name in names:
        if not name.endswith(ANNOTATION_SUFFIX):
            continue

        parsed = read_annotation_file(cache / name)
        if parsed is None:
            logger.debug(f"Skipping unreadable annotation file {name}")
            continue

        title = annotation_title(parsed)
        book = index.add(
            book_key(title),
            BookRecord(title=title, filename=strip_suffix(name, ANNOTATION_SUFFIX)),
        )
        book.highlights.extend(parsed.highlights)
        logger.debug(f"  {name}: {len(parsed.highlights)} highlight(s)")


def apply_position(book: BookRecord, position: ReadingPosition, mtime_ms: float) -> bool:
    """
    Record a position if it is the book's most recent one.

    The position file's modification time decides; the progress value
    breaks ties. The timestamp inside the file is not used because it often
    reflects the first sync rather than the last read.

    Returns:
        True if the book was updated
    """
    current = book.last_read_timestamp or 0
    newer = mtime_ms > current
    tie_with_more_progress = mtime_ms == current and position.progress > (book.progress or 0)
    if not (newer or tie_with_more_progress):
        return False

    book.progress = position.progress
    book.current_chapter = position.chapter
    book.last_read_timestamp = mtime_ms
    return True


def collect_positions(
    index: BookIndex,
    cache: Path,
    names: list[str],
    track_books_without_highlights: bool,
) -> None:
    """Position pass: attach progress to books, optionally creating new ones."""
    for name in names:
        if not name.endswith(POSITION_SUFFIX):
            continue

        path = cache / name
        candidate = MatchCandidate(
            filename=strip_suffix(name, POSITION_SUFFIX),
            title=title_from_position_filename(name),
        )
        key = resolve(index, candidate)
        if key is None and not track_books_without_highlights:
            continue

        position = read_position_file(path)
        if position is None:
            continue

        try:
            mtime_ms = path.stat().st_mtime_ns / 1_000_000
        except OSError as e:
            logger.debug(f"Could not stat {name}: {e}")
            continue

        if key is not None:
            apply_position(index.books[key], position, mtime_ms)
        else:
            book = BookRecord(title=candidate.title, filename=candidate.filename)
            apply_position(book, position, mtime_ms)
            index.add(book_key(candidate.title), book)


def parse_cache(sync_path: Path, track_books_without_highlights: bool = False) -> list[BookRecord]:
    """
    Build book records from the annotation and position files of a sync folder.

    Args:
        sync_path: Folder that contains `.Moon+`
        track_books_without_highlights: Also create books known only from a
            position file

    Returns:
        Books with highlights sorted by position; empty if the cache folder
        is missing or unreadable
    """
    cache = cache_dir(sync_path)
    try:
        names = sorted(entry.name for entry in cache.iterdir())
    except OSError as e:
        logger.debug(f"Failed to read cache folder {cache}: {e}")
        return []

    index = BookIndex()
    collect_annotations(index, cache, names)
    index.build_filename_index()
    collect_positions(index, cache, names, track_books_without_highlights)

    books = list(index)
    for book in books:
        book.sort_highlights()

    logger.info(
        f"Parsed [bold]{len(books)}[/bold] book(s) with "
        f"{sum(len(b.highlights) for b in books)} highlight(s) from {cache}"
    )
    return books


async def reconcile(
    sync_path: Path,
    track_books_without_highlights: bool = False,
    statistics_loader: StatisticsLoader | None = None,
) -> ReconcileResult:
    """
    Run the cache pass then the enrichment pass.

    Args:
        sync_path: Folder that contains `.Moon+`
        track_books_without_highlights: Keep books known only from positions
            or books.sync
        statistics_loader: Supplier of reading-statistics rows, if any

    Returns:
        ReconcileResult with the books and enrichment counters
    """
    books = await asyncio.to_thread(parse_cache, sync_path, track_books_without_highlights)
    enrichment = await enrich_books(
        books,
        sync_path,
        track_books_without_highlights=track_books_without_highlights,
        statistics_loader=statistics_loader,
    )
    return ReconcileResult(books=books, enrichment=enrichment)


def reconcile_sync(
    sync_path: Path,
    track_books_without_highlights: bool = False,
    statistics_loader: StatisticsLoader | None = None,
) -> ReconcileResult:
    """Blocking wrapper around reconcile() for callers without an event loop."""
    return asyncio.run(reconcile(sync_path, track_books_without_highlights, statistics_loader))
