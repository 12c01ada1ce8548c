"""
Book identity resolution across cache sources.

Annotation files, position files and books.sync disagree on how a book is
named: an annotation block may say "Frankenstein; Or, The Modern Prometheus"
while the position file is "Frankenstein_Or_The_Modern_Prometheus.epub.po"
and another is "Dune - Frank Herbert.epub.po". Every source is mapped onto
a canonical key so the pieces land on one BookRecord.
"""

import re
from abc import ABC, abstractmethod
from collections.abc import Iterator, Sequence
from dataclasses import dataclass

from extract.file_utils import filename_key

from .models import BookRecord

_NON_KEY_CHARS_RE = re.compile(r"[^a-z0-9\s]")
_WHITESPACE_RE = re.compile(r"\s+")

AUTHOR_SEPARATOR = " - "


def canonical_key(title: str) -> str:
    """
    Normalize a title into a matching key.

    Lowercases, drops everything outside ASCII letters, digits and
    whitespace, then collapses and trims whitespace.

    Example:
        >>> canonical_key("Frankenstein; Or, The Modern Prometheus")
        'frankenstein or the modern prometheus'
    """
    key = _NON_KEY_CHARS_RE.sub("", title.lower())
    return _WHITESPACE_RE.sub(" ", key).strip()


def book_key(title: str) -> str:
    """
    Key a book is stored under in a BookIndex.

    The canonical key, or for titles with no ASCII letters or digits at all
    (e.g. "三体") the lowercased NFC title, so such books do not all collapse
    onto the empty key.
    """
    return canonical_key(title) or filename_key(title.strip())


class BookIndex:
    """Books of one reconciliation pass keyed by canonical title key.

    Also holds the filename index: filename_key(book.filename) -> title key,
    built once the annotation pass is complete.
    """

    def __init__(self):
        self.books: dict[str, BookRecord] = {}
        self.filename_index: dict[str, str] = {}

    def __contains__(self, key: str) -> bool:
        return key in self.books

    def __len__(self) -> int:
        return len(self.books)

    def __iter__(self) -> Iterator[BookRecord]:
        return iter(self.books.values())

    def get(self, key: str) -> BookRecord | None:
        return self.books.get(key)

    def add(self, key: str, book: BookRecord) -> BookRecord:
        """Register a book under `key` unless one is already there; return the stored book."""
        return self.books.setdefault(key, book)

    def build_filename_index(self) -> None:
        self.filename_index = {
            filename_key(book.filename): key for key, book in self.books.items() if book.filename
        }


@dataclass
class MatchCandidate:
    """How a source names its book."""

    filename: str  # e.g. 'Dune - Frank Herbert.epub'
    title: str  # e.g. 'Dune - Frank Herbert'


class Matcher(ABC):
    """One strategy for finding an existing book for a candidate."""

    @abstractmethod
    def match(self, index: BookIndex, candidate: MatchCandidate) -> str | None:
        """Return the key of a book already in `index`, or None."""


class FilenameIndexMatcher(Matcher):
    """Join on the book filename recorded by the annotation pass."""

    def match(self, index: BookIndex, candidate: MatchCandidate) -> str | None:
        key = index.filename_index.get(filename_key(candidate.filename))
        return key if key is not None and key in index else None


class CanonicalTitleMatcher(Matcher):
    """Join on the canonical key of the candidate title."""

    def match(self, index: BookIndex, candidate: MatchCandidate) -> str | None:
        key = book_key(candidate.title)
        return key if key in index else None


class AuthorSuffixMatcher(Matcher):
    """Drop a trailing ' - Author' from the title and retry the canonical key."""

    def match(self, index: BookIndex, candidate: MatchCandidate) -> str | None:
        separator_at = candidate.title.find(AUTHOR_SEPARATOR)
        if separator_at <= 0:
            return None
        key = book_key(candidate.title[:separator_at].strip())
        return key if key in index else None


DEFAULT_MATCHERS: tuple[Matcher, ...] = (
    FilenameIndexMatcher(),
    CanonicalTitleMatcher(),
    AuthorSuffixMatcher(),
)


def resolve(
    index: BookIndex,
    candidate: MatchCandidate,
    matchers: Sequence[Matcher] = DEFAULT_MATCHERS,
) -> str | None:
    """
    Find the key of the book a candidate refers to.

    Matchers are tried in order and the first hit wins.

    Args:
        index: Books known so far
        candidate: Filename and title as the source records them
        matchers: Strategies to try

    Returns:
        Key of the matching book, or None if no strategy matched
    """
    for matcher in matchers:
        key = matcher.match(index, candidate)
        if key is not None:
            return key
    return None
