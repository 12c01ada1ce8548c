"""
Decode Moon+ Reader `.an` annotation files.

An annotation file is a zlib stream. Once inflated it is a list of lines:
some header lines, then one block per highlight, each opened by a line
holding only `#`:

    #
    <id>
    <book title>
    <full path>
    <lower-cased path>
    <chapter>
    0
    <position>
    <highlight length>
    <color>
    <timestamp>
    [blank lines]
    [note]            # only when two text lines are present
    <highlighted text>
    0
    0
    ...

Text and note use `<BR>` for line breaks.
"""

import re
import zlib
from dataclasses import dataclass
from pathlib import Path

from common.constants import BLOCK_MARKER
from common.logger import get_logger

from .file_utils import strip_ebook_extension, title_from_annotation_filename
from .models import AnnotationFile, Highlight

logger = get_logger(__name__)

_LEADING_INT_RE = re.compile(r"\s*([+-]?\d+)")
_TRAILER_LINES = {"0", ""}


def parse_int(value: str | None) -> int:
    """Parse the leading integer of a line, 0 when there is none."""
    if not value:
        return 0
    match = _LEADING_INT_RE.match(value)
    return int(match.group(1)) if match else 0


def clean_text(value: str) -> str:
    """Replace `<BR>` markers with newlines and trim."""
    return value.replace("<BR>", "\n").strip()


class LineCursor:
    """Forward-only cursor over the lines of an inflated annotation file."""

    def __init__(self, lines: list[str]):
        self.lines = lines
        self.index = 0

    def at_end(self) -> bool:
        return self.index >= len(self.lines)

    def peek(self) -> str | None:
        """Current line, or None past the end."""
        if self.at_end():
            return None
        return self.lines[self.index]

    def take(self) -> str | None:
        """Return the current line and advance, even past the end."""
        line = self.peek()
        self.index += 1
        return line


@dataclass
class BlockFields:
    """Fixed-position fields at the head of a highlight block."""

    id: int
    title: str
    full_path: str
    chapter: int
    position: int
    length: int
    color: int
    timestamp: int


def skip_to_marker(cursor: LineCursor) -> None:
    """Skip header lines up to (not past) the next block marker."""
    while not cursor.at_end() and cursor.peek() != BLOCK_MARKER:
        cursor.take()


def read_fixed_fields(cursor: LineCursor) -> BlockFields:
    """
    Consume the ten fixed lines after a block marker.

    Missing lines read as empty strings and missing integers as 0, so a
    truncated block still yields fields.
    """
    id_ = parse_int(cursor.take())
    title = cursor.take() or ""
    full_path = cursor.take() or ""
    cursor.take()  # lower-cased path
    chapter = parse_int(cursor.take())
    cursor.take()  # constant 0
    position = parse_int(cursor.take())
    length = parse_int(cursor.take())
    color = parse_int(cursor.take())
    timestamp = parse_int(cursor.take())
    return BlockFields(
        id=id_,
        title=title,
        full_path=full_path,
        chapter=chapter,
        position=position,
        length=length,
        color=color,
        timestamp=timestamp,
    )


def skip_blank(cursor: LineCursor) -> None:
    while cursor.peek() == "":
        cursor.take()


def read_text_and_note(cursor: LineCursor) -> tuple[str, str]:
    """
    Read the highlighted text and optional note.

    Two text lines mean note then text; a single line is the text alone.

    Returns:
        Tuple of (text, note)
    """
    first = cursor.peek()
    if first is None or first == "0":
        return "", ""

    cursor.take()
    second = cursor.peek()
    if second is not None and second not in _TRAILER_LINES:
        cursor.take()
        return clean_text(second), clean_text(first)

    return clean_text(first), ""


def skip_trailer(cursor: LineCursor) -> None:
    """Consume the run of `0` and empty lines that closes a block."""
    while cursor.peek() in _TRAILER_LINES:
        cursor.take()


def read_block(cursor: LineCursor) -> Highlight | None:
    """
    Decode one block; the cursor sits just past its `#` marker.

    Returns:
        The highlight, or None when the block has no highlighted text
    """
    fields = read_fixed_fields(cursor)
    skip_blank(cursor)
    text, note = read_text_and_note(cursor)
    skip_trailer(cursor)

    if not text:
        return None

    return Highlight(
        id=fields.id,
        book=strip_ebook_extension(fields.title),
        filename=fields.full_path,
        chapter=fields.chapter,
        position=fields.position,
        highlight_length=fields.length,
        highlight_color=fields.color,
        timestamp=fields.timestamp,
        note=note,
        text=text,
    )


def parse_annotation_lines(lines: list[str]) -> list[Highlight]:
    """Decode every highlight block from inflated annotation lines."""
    cursor = LineCursor(lines)
    highlights: list[Highlight] = []

    skip_to_marker(cursor)
    while not cursor.at_end():
        if cursor.take() != BLOCK_MARKER:
            continue
        if cursor.at_end():
            break
        highlight = read_block(cursor)
        if highlight is not None:
            highlights.append(highlight)

    return highlights


def parse_annotation_file(data: bytes, filename: str) -> AnnotationFile | None:
    """
    Decode one annotation file.

    Args:
        data: Raw (compressed) file contents
        filename: Name of the file, e.g. 'Dune.epub.an'

    Returns:
        AnnotationFile, or None if the data is not a zlib stream
    """
    try:
        inflated = zlib.decompress(data)
    except zlib.error as e:
        logger.debug(f"Failed to inflate annotation file {filename}: {e}")
        return None

    lines = inflated.decode("utf-8", errors="replace").split("\n")
    return AnnotationFile(
        filename=filename,
        book_title=title_from_annotation_filename(filename),
        highlights=parse_annotation_lines(lines),
    )


def read_annotation_file(path: Path) -> AnnotationFile | None:
    """
    Read and decode an annotation file from disk.

    Returns:
        AnnotationFile, or None if the file cannot be read or inflated
    """
    try:
        data = path.read_bytes()
    except OSError as e:
        logger.debug(f"Could not read {path.name}: {e}")
        return None
    return parse_annotation_file(data, path.name)
