"""Interface to the reading-statistics collaborator."""

from collections.abc import Callable, Iterable
from pathlib import Path

from extract.file_utils import basename_key
from extract.models import ReadingStatistics

# Takes the sync folder, returns statistics rows or None when unavailable
StatisticsLoader = Callable[[Path], Iterable[ReadingStatistics] | None]


def index_statistics(rows: Iterable[ReadingStatistics]) -> dict[str, ReadingStatistics]:
    """
    Key statistics rows by the basename of their device path.

    e.g., a row for '/sdcard/Books/Dune.epub' is stored under 'dune.epub'.
    Rows with an empty path are dropped; a later row replaces an earlier one
    with the same basename.
    """
    indexed: dict[str, ReadingStatistics] = {}
    for row in rows:
        key = basename_key(row.filename or "")
        if key:
            indexed[key] = row
    return indexed


def load_statistics(
    loader: StatisticsLoader | None, sync_path: Path
) -> dict[str, ReadingStatistics] | None:
    """Run the loader and index its rows; None when there is no loader or no data."""
    if loader is None:
        return None
    rows = loader(sync_path)
    if rows is None:
        return None
    return index_statistics(rows)
