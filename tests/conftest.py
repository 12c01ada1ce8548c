"""Shared fixtures for building fake Moon+ Reader sync folders."""

import json
import os
import zlib
from pathlib import Path

import pytest


class SyncFolder:
    """A `.Moon+` folder under a temporary sync root."""

    def __init__(self, root: Path):
        self.root = root
        self.moon = root / ".Moon+"
        self.cache = self.moon / "Cache"
        self.covers = self.moon / "Cover"
        self.cache.mkdir(parents=True)

    @staticmethod
    def block(
        id: int = 1,
        title: str = "Dune",
        path: str = "/sdcard/Books/Dune.epub",
        chapter: int = 0,
        position: int = 0,
        length: int = 10,
        color: int = 0,
        timestamp: int = 0,
        text: str | None = "Some text",
        note: str | None = None,
        trailer: int = 3,
    ) -> list[str]:
        """Lines of one highlight block, starting with its `#` marker."""
        lines = [
            "#",
            str(id),
            title,
            path,
            path.lower(),
            str(chapter),
            "0",
            str(position),
            str(length),
            str(color),
            str(timestamp),
        ]
        if note is not None:
            lines.append(note)
        if text is not None:
            lines.append(text)
        lines.extend(["0"] * trailer)
        return lines

    @staticmethod
    def compress_lines(lines: list[str]) -> bytes:
        return zlib.compress("\n".join(lines).encode("utf-8"))

    def add_annotation(self, filename: str, *blocks: list[str]) -> Path:
        lines = ["1", filename]
        for block in blocks:
            lines.extend(block)
        path = self.cache / filename
        path.write_bytes(self.compress_lines(lines))
        return path

    def add_position(self, filename: str, content: str, mtime: float | None = None) -> Path:
        """Write a position file; `mtime` is in epoch seconds."""
        path = self.cache / filename
        path.write_text(content, encoding="utf-8")
        if mtime is not None:
            os.utime(path, (mtime, mtime))
        return path

    def add_books_sync(self, entries: list[dict]) -> Path:
        path = self.moon / "books.sync"
        path.write_bytes(zlib.compress(json.dumps(entries).encode("utf-8")))
        return path

    def add_cover(self, book_filename: str, data: bytes = b"\x89PNG") -> Path:
        self.covers.mkdir(exist_ok=True)
        path = self.covers / f"{book_filename}_2.png"
        path.write_bytes(data)
        return path


@pytest.fixture
def moon(tmp_path):
    """Empty sync folder with a `.Moon+/Cache` directory."""
    return SyncFolder(tmp_path / "sync")
