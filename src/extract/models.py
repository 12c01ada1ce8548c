"""Data models for records decoded from the Moon+ Reader sync folder."""

from dataclasses import dataclass, field
from enum import IntEnum


class HighlightColor(IntEnum):
    """Color codes Moon+ Reader writes into annotation blocks.

    Unknown codes are kept as raw integers on the highlight.
    """

    DEFAULT = 0
    YELLOW = 1
    BLUE = 2
    RED = 3
    GREEN = 4


@dataclass
class Highlight:
    """A single highlight (and optional note) from an annotation file."""

    id: int
    book: str  # Title recorded inside the annotation block
    filename: str  # Full source path of the book on the device
    chapter: int
    position: int  # Character offset, the sort key within a book
    highlight_length: int
    highlight_color: int
    timestamp: int  # Epoch milliseconds
    note: str
    text: str
    bookmark: str = ""
    underline: bool = False
    strikethrough: bool = False

    @property
    def color(self) -> HighlightColor | None:
        """Known color for this highlight, or None for an unlisted code."""
        try:
            return HighlightColor(self.highlight_color)
        except ValueError:
            return None


@dataclass
class AnnotationFile:
    """Decoded contents of one `.an` file."""

    filename: str
    book_title: str  # Filename-derived title
    highlights: list[Highlight]


@dataclass
class ReadingPosition:
    """Decoded contents of one `.po` file."""

    timestamp: int
    chapter: int
    progress: float  # Percentage, 0-100


@dataclass
class BooksSyncEntry:
    """One entry of the library-wide `books.sync` file."""

    filename: str
    book_name: str = ""
    author: str = ""
    description: str = ""
    category: str = ""
    add_time: str = ""
    favorite: str = ""
    rate: str = ""
    device_id: str = ""
    download_url: str = ""


@dataclass
class CategoryInfo:
    """Series and genre information parsed from a category string."""

    series: str | None = None
    series_number: float | None = None
    genres: list[str] = field(default_factory=list)


@dataclass
class ReadingStatistics:
    """Reading statistics row supplied by the backup database reader."""

    id: int
    filename: str  # Full path as stored on the device
    used_time: int = 0
    read_words: int = 0
    dates: str = ""
