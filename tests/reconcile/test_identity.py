"""Tests for canonical keys and the matcher cascade."""

from reconcile.identity import (
    AuthorSuffixMatcher,
    BookIndex,
    CanonicalTitleMatcher,
    FilenameIndexMatcher,
    MatchCandidate,
    book_key,
    canonical_key,
    resolve,
)
from reconcile.models import BookRecord


def make_index(*books: BookRecord) -> BookIndex:
    index = BookIndex()
    for book in books:
        index.add(book_key(book.title), book)
    index.build_filename_index()
    return index


class TestCanonicalKey:
    """Tests for canonical_key."""

    def test_punctuation_is_ignored(self):
        assert canonical_key("Frankenstein; Or, The Modern Prometheus") == canonical_key(
            "Frankenstein Or The Modern Prometheus"
        )

    def test_case_and_whitespace(self):
        assert canonical_key("  The   LORD of\tthe Rings ") == "the lord of the rings"

    def test_non_ascii_letters_are_dropped(self):
        assert canonical_key("Café Society") == "caf society"

    def test_book_key_falls_back_for_non_latin_titles(self):
        assert canonical_key("三体") == ""
        assert book_key("三体") == "三体"
        assert book_key("三体") != book_key("红楼梦")


class TestMatchers:
    """Tests for the individual matcher strategies."""

    def test_filename_index_matcher(self):
        book = BookRecord(title="Dune", filename="Dune - Frank Herbert.epub")
        index = make_index(book)
        candidate = MatchCandidate(filename="dune - frank herbert.EPUB", title="Something else")

        assert FilenameIndexMatcher().match(index, candidate) == "dune"

    def test_filename_index_is_empty_until_built(self):
        index = BookIndex()
        index.add("dune", BookRecord(title="Dune", filename="Dune.epub"))
        candidate = MatchCandidate(filename="Dune.epub", title="x")

        assert FilenameIndexMatcher().match(index, candidate) is None
        index.build_filename_index()
        assert FilenameIndexMatcher().match(index, candidate) == "dune"

    def test_canonical_title_matcher(self):
        index = make_index(BookRecord(title="Frankenstein; Or, The Modern Prometheus", filename="a.epub"))
        candidate = MatchCandidate(
            filename="Frankenstein_Or_The_Modern_Prometheus.epub",
            title="Frankenstein Or The Modern Prometheus",
        )

        assert CanonicalTitleMatcher().match(index, candidate) == "frankenstein or the modern prometheus"

    def test_author_suffix_matcher(self):
        index = make_index(BookRecord(title="Dune", filename="Dune.epub"))
        candidate = MatchCandidate(filename="Dune - Frank Herbert.epub", title="Dune - Frank Herbert")

        assert AuthorSuffixMatcher().match(index, candidate) == "dune"

    def test_author_suffix_matcher_splits_on_first_separator(self):
        index = make_index(BookRecord(title="Dune", filename="Dune.epub"))
        candidate = MatchCandidate(filename="x", title="Dune - Part One - Frank Herbert")

        assert AuthorSuffixMatcher().match(index, candidate) == "dune"

    def test_author_suffix_matcher_ignores_leading_separator(self):
        index = make_index(BookRecord(title="Dune", filename="Dune.epub"))
        candidate = MatchCandidate(filename="x", title=" - Dune")

        assert AuthorSuffixMatcher().match(index, candidate) is None


class TestResolve:
    """Tests for the ordered cascade."""

    def test_first_hit_wins(self):
        dune = BookRecord(title="Dune", filename="Children of Dune.epub")
        children = BookRecord(title="Children of Dune", filename="Other.epub")
        index = make_index(dune, children)
        candidate = MatchCandidate(filename="Children of Dune.epub", title="Children of Dune")

        # Filename index runs before the title match
        assert resolve(index, candidate) == "dune"

    def test_no_match(self):
        index = make_index(BookRecord(title="Dune", filename="Dune.epub"))
        candidate = MatchCandidate(filename="Emma.epub", title="Emma")

        assert resolve(index, candidate) is None

    def test_custom_matchers(self):
        index = make_index(BookRecord(title="Dune", filename="Dune.epub"))
        candidate = MatchCandidate(filename="Dune - Frank Herbert.epub", title="Dune - Frank Herbert")

        assert resolve(index, candidate, matchers=[CanonicalTitleMatcher()]) is None
        assert resolve(index, candidate, matchers=[AuthorSuffixMatcher()]) == "dune"


def test_index_add_keeps_first_book():
    """Test adding under an existing key returns the stored book."""
    index = BookIndex()
    first = index.add("dune", BookRecord(title="Dune", filename="Dune.epub"))
    second = index.add("dune", BookRecord(title="DUNE", filename="DUNE.epub"))

    assert second is first
    assert len(index) == 1
