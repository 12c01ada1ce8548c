"""
Decode the library-wide `.Moon+/books.sync` metadata file.

The file is a zlib stream wrapping a UTF-8 JSON array. It only exists once
"Sync books across devices" is enabled in Moon+ Reader, so a missing file
is normal and reported as no data.
"""

import json
import re
import zlib
from pathlib import Path
from typing import Any

from common.constants import BOOKS_SYNC_FILE, MOON_DIR
from common.logger import get_logger

from .file_utils import filename_key
from .models import BooksSyncEntry, CategoryInfo

logger = get_logger(__name__)

_LEADING_FLOAT_RE = re.compile(
    r"\s*([+-]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][+-]?\d+)?)", re.ASCII
)

# JSON field name -> BooksSyncEntry attribute
_ENTRY_FIELDS = {
    "filename": "filename",
    "bookName": "book_name",
    "author": "author",
    "description": "description",
    "category": "category",
    "addTime": "add_time",
    "favorite": "favorite",
    "rate": "rate",
    "deviceId": "device_id",
    "downloadUrl": "download_url",
}


def _as_str(value: Any) -> str:
    if value is None:
        return ""
    return value if isinstance(value, str) else str(value)


def entry_from_dict(data: dict[str, Any]) -> BooksSyncEntry:
    """Build an entry from one JSON object, defaulting missing fields to ''."""
    return BooksSyncEntry(
        **{attr: _as_str(data.get(key)) for key, attr in _ENTRY_FIELDS.items()}
    )


def parse_books_sync(data: bytes) -> list[BooksSyncEntry] | None:
    """
    Decode the raw contents of a books.sync file.

    Args:
        data: Compressed file contents

    Returns:
        Entries in file order, or None if the data cannot be decoded
    """
    try:
        decoded = json.loads(zlib.decompress(data).decode("utf-8"))
    except (zlib.error, UnicodeDecodeError, json.JSONDecodeError) as e:
        logger.debug(f"Failed to decode {BOOKS_SYNC_FILE}: {e}")
        return None

    if not isinstance(decoded, list):
        logger.debug(f"{BOOKS_SYNC_FILE} does not hold a JSON array")
        return None

    return [entry_from_dict(item) for item in decoded if isinstance(item, dict)]


def load_books_sync(sync_path: Path) -> dict[str, BooksSyncEntry] | None:
    """
    Load books.sync from a sync folder.

    Args:
        sync_path: Folder that contains `.Moon+`

    Returns:
        Entries keyed by filename_key(entry.filename), or None when the file
        is missing or unreadable
    """
    file_path = sync_path / MOON_DIR / BOOKS_SYNC_FILE
    try:
        data = file_path.read_bytes()
    except FileNotFoundError:
        logger.debug(f"No {BOOKS_SYNC_FILE} at {file_path.parent}")
        return None
    except OSError as e:
        logger.debug(f"Could not read {file_path}: {e}")
        return None

    entries = parse_books_sync(data)
    if entries is None:
        return None

    return {filename_key(entry.filename): entry for entry in entries if entry.filename}


def parse_leading_float(value: str) -> float | None:
    """Number at the start of `value` (e.g. "2.0", "63.5%", "1e1"), or None."""
    match =_LEADING_FLOAT_RE.match(value)
    return float(match.group(1)) if match else None


def parse_category_field(category: str) -> CategoryInfo:
    """
    Parse a category string into series and genres.

    Format, one item per line:
        <Series Name>
        #1.0#
        Genre1
        Genre2

    Args:
        category: Raw category field from books.sync

    Returns:
        CategoryInfo with genres in their original order

    Example:
        >>> parse_category_field("<Dune Saga>\\n#2.0#\\nScience Fiction")
        CategoryInfo(series='Dune Saga', series_number=2.0, genres=['Science Fiction'])
    """
    info = CategoryInfo()
    lines = [line.strip() for line in category.split("\n")]

    for line in filter(None, lines):
        if line.startswith("<") and line.endswith(">"):
            info.series = line[1:-1]
        elif line.startswith("#") and line.endswith("#"):
            number = parse_leading_float(line[1:-1])
            if number is not None:
                info.series_number = number
        else:
            info.genres.append(line)

    return info


def format_series_number(number: float) -> str:
    """Render a series number, dropping a zero fraction ('2.0' -> '2')."""
    return str(int(number)) if number.is_integer() else str(number)


def format_series(info: CategoryInfo) -> str | None:
    """
    Series label for a parsed category, e.g. 'Dune Saga #2'.

    Returns:
        The label, or None if the category names no series
    """
    if not info.series:
        return None
    if info.series_number:
        return f"{info.series} #{format_series_number(info.series_number)}"
    return info.series
