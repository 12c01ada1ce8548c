"""Change fingerprint over a book's highlights."""

from collections.abc import Iterable

from extract.models import Highlight

_BASE36_DIGITS = "0123456789abcdefghijklmnopqrstuvwxyz"


def to_base36(value: int) -> str:
    """Render a non-negative integer in lowercase base 36."""
    if value == 0:
        return "0"
    digits = []
    while value:
        value, remainder = divmod(value, 36)
        digits.append(_BASE36_DIGITS[remainder])
    return "".join(reversed(digits))


def djb2_32(text: str) -> int:
    """djb2 string hash with signed 32-bit wraparound, over UTF-16 code units."""
    value = 5381
    for unit in _utf16_units(text):
        value = (value * 33 + unit) & 0xFFFFFFFF
    return value - 0x100000000 if value >= 0x80000000 else value


def _utf16_units(text: str) -> Iterable[int]:
    encoded = text.encode("utf-16-le", errors="surrogatepass")
    return (int.from_bytes(encoded[i : i + 2], "little") for i in range(0, len(encoded), 2))


def utf16_length(text: str) -> int:
    """Length in UTF-16 code units (astral characters count twice)."""
    return len(text.encode("utf-16-le", errors="surrogatepass")) // 2


def compute_highlights_hash(highlights: Iterable[Highlight]) -> str:
    """
    Fingerprint a set of highlights for change detection.

    Built from position, timestamp and text length of every highlight in
    position order, so input order does not matter. Notes and colors are
    not part of it: editing a note must not mark the book as changed.

    Args:
        highlights: Highlights of one book, in any order

    Returns:
        Short base-36 string, or '' when there are no highlights
    """
    ordered = sorted(highlights, key=lambda h: h.position)
    if not ordered:
        return ""

    composite = "|".join(f"{h.position}:{h.timestamp}:{utf16_length(h.text)}" for h in ordered)
    return to_base36(abs(djb2_32(composite)))
