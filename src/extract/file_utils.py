"""Utilities for deriving titles and lookup keys from cache filenames."""

import re
import unicodedata

from common.constants import ANNOTATION_SUFFIX, EBOOK_EXTENSIONS, POSITION_SUFFIX

_EXT_GROUP = "|".join(EBOOK_EXTENSIONS)
_EBOOK_EXT_RE = re.compile(rf"\.({_EXT_GROUP})$", re.IGNORECASE)


def strip_ebook_extension(name: str) -> str:
    """
    Remove a trailing e-book extension and surrounding whitespace.

    e.g., 'Dune.epub' -> 'Dune', 'Dune.EPUB' -> 'Dune'

    Args:
        name: Filename or title

    Returns:
        Name without the e-book extension
    """
    return _EBOOK_EXT_RE.sub("", name).strip()


def strip_suffix(name: str, suffix: str) -> str:
    """Remove `suffix` from the end of `name` if present."""
    if suffix and name.endswith(suffix):
        return name[: -len(suffix)]
    return name


def filename_key(name: str) -> str:
    """
    Lookup key for joining sources on a book filename.

    Lowercased and NFC-normalized, so decomposed accents coming from one
    platform match precomposed ones from another.
    """
    return unicodedata.normalize("NFC", name.lower())


def basename_key(path: str) -> str:
    """
    Lookup key for a full device path, built from its last component.

    e.g., '/sdcard/Books/MoonReader/Dune.epub' -> 'dune.epub'
    """
    basename = path.rsplit("/", 1)[-1] if "/" in path else path
    return filename_key(basename)


def title_from_annotation_filename(filename: str) -> str:
    """
    Title implied by an annotation filename.

    e.g., 'Dune.epub.an' -> 'Dune'
    """
    return strip_ebook_extension(strip_suffix(filename, ANNOTATION_SUFFIX))


def title_from_position_filename(filename: str) -> str:
    """
    Title implied by a position filename.

    Underscores become spaces when the name has no spaces at all, which is
    how Moon+ Reader mangles some titles.

    e.g., 'Brave_New_World.epub.po' -> 'Brave New World'
    """
    title = strip_ebook_extension(strip_suffix(filename, POSITION_SUFFIX))
    if " " not in title and "_" in title:
        title = title.replace("_", " ")
    return title
