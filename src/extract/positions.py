"""
Decode Moon+ Reader `.po` position files.

A position file holds one line:

    <timestamp>*<chapter>@<marker>#<position>:<percentage>%

e.g. `1761402987558*25@0#2018:41.1%`. Only the timestamp, chapter and
percentage are used.
"""

import re
from pathlib import Path

from common.logger import get_logger

from .models import ReadingPosition

logger = get_logger(__name__)

POSITION_RE = re.compile(r"(\d+)\*(\d+)@\d+#\d+:(\d+(?:\.\d+)?)%", re.ASCII)


def parse_position_text(content: str) -> ReadingPosition | None:
    """
    Parse the text of a position file.

    Args:
        content: File contents; surrounding whitespace is ignored

    Returns:
        ReadingPosition, or None if the content does not match the format
    """
    match = POSITION_RE.fullmatch(content.strip())
    if not match:
        return None

    return ReadingPosition(
        timestamp=int(match.group(1)),
        chapter=int(match.group(2)),
        progress=float(match.group(3)),
    )


def parse_position_file(data: bytes) -> ReadingPosition | None:
    """Decode raw position file bytes; None when unusable."""
    return parse_position_text(data.decode("utf-8", errors="replace"))


def read_position_file(path: Path) -> ReadingPosition | None:
    """Read and decode a position file from disk."""
    try:
        data = path.read_bytes()
    except OSError as e:
        logger.debug(f"Could not read {path.name}: {e}")
        return None

    position = parse_position_file(data)
    if position is None:
        logger.debug(f"Unrecognized position format in {path.name}")
    return position
