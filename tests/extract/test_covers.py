"""Tests for local cover scanning."""

from extract.covers import read_local_cover, scan_local_covers


def test_scan_local_covers(moon):
    """Test only `_2.png` files count, keyed by lowercased filename."""
    moon.add_cover("Dune.epub")
    moon.add_cover("Emma.PDF")
    (moon.covers / "Dune.epub_1.png").write_bytes(b"thumb")
    (moon.covers / "notes.txt").write_text("x")

    assert scan_local_covers(moon.root) == {"dune.epub", "emma.pdf"}


def test_scan_missing_cover_folder(moon):
    """Test a missing cover folder yields an empty set."""
    assert scan_local_covers(moon.root) == set()


def test_read_local_cover(moon):
    """Test reading cover bytes for a book."""
    moon.add_cover("Dune.epub", data=b"png-bytes")
    assert read_local_cover(moon.root, "Dune.epub") == b"png-bytes"
    assert read_local_cover(moon.root, "Missing.epub") is None
