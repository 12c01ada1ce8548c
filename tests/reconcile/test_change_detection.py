"""Tests for frontmatter parsing and note change detection."""

from extract.models import Highlight
from reconcile.change_detection import (
    detect_change,
    extract_frontmatter,
    parse_frontmatter,
    parse_frontmatter_field,
)
from reconcile.fingerprint import compute_highlights_hash
from reconcile.models import BookRecord


def make_book(progress: float | None = 42.0) -> BookRecord:
    highlight = Highlight(
        id=1,
        book="Dune",
        filename="/sdcard/Dune.epub",
        chapter=1,
        position=100,
        highlight_length=4,
        highlight_color=0,
        timestamp=1700000000000,
        note="",
        text="Fear",
    )
    return BookRecord(title="Dune", filename="Dune.epub", highlights=[highlight], progress=progress)


def note_for(book: BookRecord, **overrides) -> str:
    fields = {
        "title": f'"{book.title}"',
        "progress": book.progress,
        "highlights_count": len(book.highlights),
        "highlights_hash": compute_highlights_hash(book.highlights),
    }
    fields.update(overrides)
    body = "\n".join(f"{key}: {value}" for key, value in fields.items())
    return f"---\n{body}\n---\n\n# {book.title}\n"


class TestParseFrontmatter:
    """Tests for parse_frontmatter."""

    def test_fields(self):
        content = (
            "---\n"
            'title: "Dune"\n'
            "author: Frank Herbert\n"
            "progress: 63.5\n"
            "highlights_count: 12\n"
            "highlights_hash: abc123\n"
            "cover: covers/dune.png\n"
            "moon_reader_path: Dune.epub\n"
            "last_read: 2025-01-10\n"
            "custom_metadata: true\n"
            "---\n"
            "Body\n"
        )
        parsed = parse_frontmatter(content)

        assert parsed.title == "Dune"
        assert parsed.author == "Frank Herbert"
        assert parsed.progress == 63.5
        assert parsed.highlights_count == 12
        assert parsed.highlights_hash == "abc123"
        assert parsed.cover_path == "covers/dune.png"
        assert parsed.moon_reader_path == "Dune.epub"
        assert parsed.last_read == "2025-01-10"
        assert parsed.last_synced is None
        assert parsed.has_custom_metadata is True
        assert parsed.is_manual_note is False

    def test_no_frontmatter(self):
        parsed = parse_frontmatter("# Just a heading\n")
        assert parsed.title is None
        assert parsed.is_manual_note is False

    def test_unterminated_frontmatter(self):
        assert extract_frontmatter("---\ntitle: Dune\n") is None

    def test_bad_numbers_are_none(self):
        parsed = parse_frontmatter("---\nprogress: lots\nhighlights_count: many\n---\n")
        assert parsed.progress is None
        assert parsed.highlights_count is None

    def test_numbers_are_read_from_the_start_of_the_value(self):
        parsed = parse_frontmatter("---\nprogress: 63.5%\nhighlights_count: 3 highlights\n---\n")
        assert parsed.progress == 63.5
        assert parsed.highlights_count == 3

    def test_field_is_matched_at_line_start(self):
        assert parse_frontmatter_field("subtitle: x\ntitle: y\n", "title") == "y"


class TestDetectChange:
    """Tests for detect_change."""

    def test_no_note_is_add(self):
        assert detect_change(None, make_book()) == "add"

    def test_matching_note_is_unchanged(self):
        book = make_book()
        assert detect_change(note_for(book), book) == "unchanged"

    def test_progress_with_percent_sign_is_unchanged(self):
        book = make_book(progress=63.5)
        assert detect_change(note_for(book, progress="63.5%"), book) == "unchanged"

    def test_new_highlight_is_update(self):
        book = make_book()
        note = note_for(book)
        book.highlights.append(
            Highlight(
                id=2,
                book="Dune",
                filename="/sdcard/Dune.epub",
                chapter=2,
                position=200,
                highlight_length=3,
                highlight_color=0,
                timestamp=1700000001000,
                note="",
                text="Spice",
            )
        )
        assert detect_change(note, book) == "update"

    def test_progress_change_is_update(self):
        book = make_book(progress=42.0)
        note = note_for(book)
        book.progress = 50.0
        assert detect_change(note, book) == "update"

    def test_manual_note_is_never_touched(self):
        book = make_book()
        assert detect_change(note_for(book, manual_note="true", highlights_hash="stale"), book) == "unchanged"

    def test_note_edits_do_not_trigger_update(self):
        book = make_book()
        note = note_for(book)
        book.highlights[0].note = "My thoughts"
        assert detect_change(note, book) == "unchanged"
