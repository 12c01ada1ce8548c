"""Data models produced by reconciliation."""

from dataclasses import dataclass, field

from extract.models import Highlight, ReadingStatistics


@dataclass
class BookRecord:
    """Canonical record for one book, fused from every cache source."""

    title: str
    filename: str  # Book filename without the cache suffix, e.g. 'Dune.epub'
    author: str = ""
    description: str = ""
    category: str = ""  # Raw books.sync category string
    favorite: str = ""
    add_time: str = ""
    cover_file: str = ""  # Set to `filename` when a local cover exists
    thumb_file: str = ""
    highlights: list[Highlight] = field(default_factory=list)
    statistics: ReadingStatistics | None = None
    progress: float | None = None
    current_chapter: int | None = None
    last_read_timestamp: float | None = None  # Position file mtime, epoch ms
    genres: list[str] | None = None
    series: str | None = None
    previous_title: str | None = None  # Title before a books.sync override

    # Filled by the remote metadata collaborator, never by reconciliation
    cover_path: str | None = None
    fetched_description: str | None = None
    published_date: str | None = None
    publisher: str | None = None
    page_count: int | None = None
    isbn10: str | None = None
    isbn13: str | None = None
    language: str | None = None

    @property
    def has_sufficient_metadata(self) -> bool:
        """Title, author and description are all known."""
        return bool(self.title and self.author and self.description)

    def sort_highlights(self) -> None:
        self.highlights.sort(key=lambda h: h.position)


@dataclass
class EnrichmentResult:
    """Counters from one enrichment pass."""

    books_enriched: int = 0
    covers_found: int = 0
    statistics_found: int = 0
    # Indices into the book list that need no remote metadata lookup
    sufficient_metadata: set[int] = field(default_factory=set)


@dataclass
class ReconcileResult:
    """Books for one cache snapshot plus the enrichment counters."""

    books: list[BookRecord]
    enrichment: EnrichmentResult
