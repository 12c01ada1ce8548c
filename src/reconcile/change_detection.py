"""Change detection against previously written book notes.

Notes are rendered elsewhere; this module only reads their YAML
frontmatter to decide whether a reconciled book needs its note rewritten.
"""

import re
from dataclasses import dataclass
from typing import Literal

from extract.books_sync import parse_leading_float

from .fingerprint import compute_highlights_hash
from .models import BookRecord

ChangeOperation = Literal["add", "update", "unchanged"]

FRONTMATTER_DELIMITER = "---"


@dataclass
class NoteFrontmatter:
    """Fields read back from an existing note's frontmatter."""

    title: str | None = None
    author: str | None = None
    progress: float | None = None
    highlights_count: int | None = None
    highlights_hash: str | None = None
    cover_path: str | None = None
    moon_reader_path: str | None = None
    last_read: str | None = None
    last_synced: str | None = None
    is_manual_note: bool = False
    has_custom_metadata: bool = False


def extract_frontmatter(content: str) -> str | None:
    """Return the text between the leading `---` fences, or None."""
    if not content.startswith(FRONTMATTER_DELIMITER):
        return None
    end = content.find(FRONTMATTER_DELIMITER, len(FRONTMATTER_DELIMITER))
    if end == -1:
        return None
    return content[len(FRONTMATTER_DELIMITER) : end]


def parse_frontmatter_field(frontmatter: str, field_name: str) -> str | None:
    """Read a single `name: value` line; surrounding quotes are dropped."""
    match = re.search(rf'^{re.escape(field_name)}:\s*"?([^"\n]+)"?', frontmatter, re.MULTILINE)
    return match.group(1).strip() if match else None


def _parse_float(value: str | None) -> float | None:
    return parse_leading_float(value) if value is not None else None


def _parse_int(value: str | None) -> int | None:
    if value is None:
        return None
    match = re.match(r"\s*[+-]?\d+", value, re.ASCII)
    return int(match.group(0)) if match else None


def _flag(frontmatter: str, field_name: str) -> bool:
    return re.search(rf"^{field_name}:\s*true", frontmatter, re.MULTILINE) is not None


def parse_frontmatter(content: str) -> NoteFrontmatter:
    """
    Parse the frontmatter fields moonsync cares about.

    Args:
        content: Full markdown text of a note

    Returns:
        NoteFrontmatter; all fields unset when the note has no frontmatter
    """
    frontmatter = extract_frontmatter(content)
    if frontmatter is None:
        return NoteFrontmatter()

    return NoteFrontmatter(
        title=parse_frontmatter_field(frontmatter, "title"),
        author=parse_frontmatter_field(frontmatter, "author"),
        progress=_parse_float(parse_frontmatter_field(frontmatter, "progress")),
        highlights_count=_parse_int(parse_frontmatter_field(frontmatter, "highlights_count")),
        highlights_hash=parse_frontmatter_field(frontmatter, "highlights_hash"),
        cover_path=parse_frontmatter_field(frontmatter, "cover"),
        moon_reader_path=parse_frontmatter_field(frontmatter, "moon_reader_path"),
        last_read=parse_frontmatter_field(frontmatter, "last_read"),
        last_synced=parse_frontmatter_field(frontmatter, "last_synced"),
        is_manual_note=_flag(frontmatter, "manual_note"),
        has_custom_metadata=_flag(frontmatter, "custom_metadata"),
    )


def detect_change(existing_content: str | None, book: BookRecord) -> ChangeOperation:
    """
    Decide what a note writer has to do for a book.

    - "add": there is no note yet
    - "unchanged": the note is a manual note, or its stored highlight hash,
      highlight count and progress all match the book
    - "update": anything else

    Args:
        existing_content: Current note text, or None if there is no note
        book: Reconciled book

    Returns:
        The operation to perform
    """
    if existing_content is None:
        return "add"

    stored = parse_frontmatter(existing_content)
    if stored.is_manual_note:
        return "unchanged"

    same_highlights = (
        (stored.highlights_hash or "") == compute_highlights_hash(book.highlights)
        and stored.highlights_count == len(book.highlights)
    )
    same_progress = stored.progress == book.progress
    return "unchanged" if same_highlights and same_progress else "update"
