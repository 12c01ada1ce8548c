"""Scan the `.Moon+/Cover` folder for locally cached cover images."""

from pathlib import Path

from common.constants import COVER_DIR, COVER_SUFFIX, MOON_DIR
from common.logger import get_logger

from .file_utils import filename_key, strip_suffix

logger = get_logger(__name__)


def cover_dir(sync_path: Path) -> Path:
    return sync_path / MOON_DIR / COVER_DIR


def scan_local_covers(sync_path: Path) -> set[str]:
    """
    Find books that have a cached cover.

    Covers are stored as `<book filename>_2.png`, e.g. `Dune.epub_2.png`.

    Args:
        sync_path: Folder that contains `.Moon+`

    Returns:
        Set of filename_key() values of books with a cover; empty when the
        cover folder does not exist
    """
    try:
        names = [entry.name for entry in cover_dir(sync_path).iterdir()]
    except OSError as e:
        logger.debug(f"No cover folder available: {e}")
        return set()

    return {
        filename_key(strip_suffix(name, COVER_SUFFIX))
        for name in names
        if name.endswith(COVER_SUFFIX)
    }


def read_local_cover(sync_path: Path, book_filename: str) -> bytes | None:
    """
    Read the cached cover image for a book.

    Args:
        sync_path: Folder that contains `.Moon+`
        book_filename: Book filename as used by the cache, e.g. 'Dune.epub'

    Returns:
        Raw PNG bytes, or None if there is no cover
    """
    path = cover_dir(sync_path) / f"{book_filename}{COVER_SUFFIX}"
    try:
        return path.read_bytes()
    except OSError:
        return None
