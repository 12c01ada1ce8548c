"""
Enrich reconciled books from books.sync, local covers and reading statistics.

The three sources are read concurrently; the merge is sequential and only
fills fields that are still empty, so values derived from annotation and
position files are never replaced. The one exception is the title, which
books.sync may override when its book name looks like a real title.
"""

import asyncio
import re
from pathlib import Path

from common.constants import MIN_BOOK_NAME_LENGTH
from common.logger import get_logger
from extract.books_sync import format_series, load_books_sync, parse_category_field
from extract.covers import scan_local_covers
from extract.file_utils import filename_key, strip_ebook_extension
from extract.models import BooksSyncEntry, ReadingStatistics

from .models import BookRecord, EnrichmentResult
from .statistics import StatisticsLoader, load_statistics

logger = get_logger(__name__)

# Book names that are really content hashes or UUIDs
_OPAQUE_NAME_RE = re.compile(r"[0-9a-f-]{16,}", re.IGNORECASE)


def is_usable_book_name(name: str) -> bool:
    """A books.sync name is usable if it is long enough and not a hash/UUID."""
    return len(name) >= MIN_BOOK_NAME_LENGTH and not _OPAQUE_NAME_RE.fullmatch(name)


def enrich_from_sync_entry(book: BookRecord, entry: BooksSyncEntry) -> None:
    """
    Apply one books.sync entry to a book.

    The title is replaced (and the old one kept in previous_title) when the
    entry's book name is usable and different. Every other field is only
    filled when empty.
    """
    if entry.book_name and entry.book_name != book.title and is_usable_book_name(entry.book_name):
        book.previous_title = book.title
        book.title = entry.book_name

    if not book.author and entry.author:
        book.author = entry.author
    if not book.description and entry.description:
        book.description = entry.description
    if not book.category and entry.category:
        book.category = entry.category

    if entry.category:
        info = parse_category_field(entry.category)
        if not book.genres and info.genres:
            book.genres = info.genres
        if not book.series:
            book.series = format_series(info)

    if not book.favorite and entry.favorite:
        book.favorite = entry.favorite


def book_from_sync_entry(
    entry: BooksSyncEntry,
    has_cover: bool,
    statistics: ReadingStatistics | None,
) -> BookRecord:
    """Create a book known only from books.sync (no highlights, no position)."""
    if is_usable_book_name(entry.book_name):
        title = entry.book_name
    else:
        title = strip_ebook_extension(entry.filename)

    info = parse_category_field(entry.category) if entry.category else None
    return BookRecord(
        title=title,
        filename=entry.filename,
        author=entry.author,
        description=entry.description,
        category=entry.category,
        favorite=entry.favorite,
        add_time=entry.add_time,
        cover_file=entry.filename if has_cover else "",
        statistics=statistics,
        genres=(info.genres or None) if info else None,
        series=format_series(info) if info else None,
    )


def merge_sources(
    books: list[BookRecord],
    sync_entries: dict[str, BooksSyncEntry] | None,
    covers: set[str],
    statistics: dict[str, ReadingStatistics] | None,
    track_books_without_highlights: bool = False,
) -> EnrichmentResult:
    """
    Merge already-loaded enrichment sources into `books`, in place.

    Args:
        books: Books from the cache pass; books.sync-only books are appended
        sync_entries: books.sync entries by filename key, or None
        covers: Filename keys of books with a local cover
        statistics: Statistics rows by basename key, or None
        track_books_without_highlights: Append books found only in books.sync

    Returns:
        EnrichmentResult counters
    """
    result = EnrichmentResult()
    matched: set[str] = set()

    for i, book in enumerate(books):
        if not book.filename:
            continue
        key = filename_key(book.filename)

        entry = sync_entries.get(key) if sync_entries else None
        if entry is not None:
            matched.add(key)
            enrich_from_sync_entry(book, entry)
            result.books_enriched += 1
            if book.has_sufficient_metadata:
                result.sufficient_metadata.add(i)

        if key in covers:
            if not book.cover_file:
                book.cover_file = book.filename
            result.covers_found += 1

        stats = statistics.get(key) if statistics else None
        if stats is not None and book.statistics is None:
            book.statistics = stats
            result.statistics_found += 1

    if track_books_without_highlights and sync_entries:
        for key, entry in sync_entries.items():
            if key in matched:
                continue

            book = book_from_sync_entry(
                entry,
                has_cover=key in covers,
                statistics=statistics.get(key) if statistics else None,
            )
            books.append(book)
            result.books_enriched += 1
            if book.cover_file:
                result.covers_found += 1
            if book.statistics is not None:
                result.statistics_found += 1
            if book.has_sufficient_metadata:
                result.sufficient_metadata.add(len(books) - 1)

    return result


async def load_sources(
    sync_path: Path,
    statistics_loader: StatisticsLoader | None = None,
) -> tuple[dict[str, BooksSyncEntry] | None, set[str], dict[str, ReadingStatistics] | None]:
    """
    Read books.sync, the cover folder and reading statistics concurrently.

    A source that fails is logged and treated as having no data; the others
    are unaffected.

    Returns:
        Tuple of (sync entries or None, cover keys, statistics or None)
    """
    sync_entries, covers, statistics = await asyncio.gather(
        asyncio.to_thread(load_books_sync, sync_path),
        asyncio.to_thread(scan_local_covers, sync_path),
        asyncio.to_thread(load_statistics, statistics_loader, sync_path),
        return_exceptions=True,
    )

    if isinstance(sync_entries, Exception):
        logger.warning(f"Could not load books.sync: {sync_entries}")
        sync_entries = None
    if isinstance(covers, Exception):
        logger.warning(f"Could not scan local covers: {covers}")
        covers = set()
    if isinstance(statistics, Exception):
        logger.warning(f"Could not load reading statistics: {statistics}")
        statistics = None

    return sync_entries, covers, statistics


async def enrich_books(
    books: list[BookRecord],
    sync_path: Path,
    track_books_without_highlights: bool = False,
    statistics_loader: StatisticsLoader | None = None,
) -> EnrichmentResult:
    """
    Enrichment pass: load the three sources, then merge them into `books`.

    Call after parse_cache(). Books found only in books.sync are appended
    when track_books_without_highlights is set.

    Returns:
        EnrichmentResult counters
    """
    sync_entries, covers, statistics = await load_sources(sync_path, statistics_loader)
    result = merge_sources(
        books,
        sync_entries,
        covers,
        statistics,
        track_books_without_highlights=track_books_without_highlights,
    )

    logger.info(
        f"Enriched {result.books_enriched} book(s): "
        f"{result.covers_found} cover(s), {result.statistics_found} statistics row(s)"
    )
    return result
