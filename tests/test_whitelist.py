"""Tests for the whitelist."""

import tempfile
from pathlib import Path

import pytest

from wordguard.core.errors import InvalidImportError
from wordguard.core.whitelist import Whitelist, WhitelistEntry


class TestWhitelistEntry:
    """Tests for WhitelistEntry."""

    def test_defaults(self):
        entry = WhitelistEntry("Scunthorpe")
        assert not entry.case_sensitive
        assert entry.whole_word
        assert entry.key == "scunthorpe"

    def test_strips_whitespace(self):
        assert WhitelistEntry("  hello  ").word == "hello"

    @pytest.mark.parametrize("word", ["", "   "])
    def test_empty_word_rejected(self, word):
        with pytest.raises(ValueError, match="cannot be empty"):
            WhitelistEntry(word)

    def test_case_insensitive_match(self):
        entry = WhitelistEntry("Hell")
        assert entry.matches("hell")
        assert entry.matches("HELL")
        assert not entry.matches("hello")

    def test_case_sensitive_match(self):
        entry = WhitelistEntry("Dick", case_sensitive=True)
        assert entry.matches("Dick")
        assert not entry.matches("dick")

    def test_substring_match(self):
        """Test that whole_word=False exempts any word containing the entry."""
        entry = WhitelistEntry("ass", whole_word=False)
        assert entry.matches("class")
        assert entry.matches("ASS")
        assert not entry.matches("as")

    def test_to_dict(self):
        assert WhitelistEntry("hell", case_sensitive=True).to_dict() == {
            "word": "hell",
            "case_sensitive": True,
            "whole_word": True,
        }


class TestWhitelist:
    """Tests for Whitelist operations."""

    def test_add_and_contains(self):
        whitelist = Whitelist()
        whitelist.add("hell")
        assert whitelist.contains("HELL")
        assert "hell" in whitelist
        assert len(whitelist) == 1

    def test_add_same_word_replaces(self):
        whitelist = Whitelist(["hell"])
        whitelist.add("HELL")
        assert len(whitelist) == 1
        assert whitelist.words == ["HELL"]

    def test_case_variants_are_separate_entries(self):
        whitelist = Whitelist()
        whitelist.add(WhitelistEntry("Hell", case_sensitive=True))
        whitelist.add("hell")
        assert len(whitelist) == 2

    def test_add_rejects_other_types(self):
        with pytest.raises(TypeError):
            Whitelist().add(42)

    def test_add_many_is_atomic(self):
        whitelist = Whitelist()
        with pytest.raises(ValueError):
            whitelist.add_many(["hell", ""])
        assert len(whitelist) == 0

    def test_remove_case_insensitive_entry(self):
        whitelist = Whitelist(["hell"])
        assert whitelist.remove("HELL")
        assert len(whitelist) == 0

    def test_remove_case_sensitive_needs_exact_spelling(self):
        whitelist = Whitelist([WhitelistEntry("Hell", case_sensitive=True)])
        assert not whitelist.remove("hell")
        assert whitelist.remove("Hell")

    def test_remove_missing(self):
        assert not Whitelist().remove("hell")
        assert not Whitelist(["hell"]).remove("")

    def test_clear(self):
        whitelist = Whitelist(["hell", "damn"])
        whitelist.clear()
        assert len(whitelist) == 0

    def test_is_exempt_any_word(self):
        whitelist = Whitelist(["f@ck"])
        assert whitelist.is_exempt("fuck", "f@ck")
        assert not whitelist.is_exempt("fuck", "fuck")

    def test_iteration_is_snapshot(self):
        """Test that iterating while mutating is safe."""
        whitelist = Whitelist(["a", "b"])
        for entry in whitelist:
            whitelist.add(entry.word + "x")
        assert len(whitelist) == 4

    def test_copy_is_independent(self):
        whitelist = Whitelist(["hell"])
        copied = whitelist.copy()
        copied.add("damn")
        assert len(whitelist) == 1
        assert len(copied) == 2


class TestWhitelistFile:
    """Tests for loading whitelist files."""

    def test_load_from_file(self):
        with tempfile.NamedTemporaryFile(
            mode="w", suffix=".txt", delete=False, encoding="utf-8"
        ) as f:
            f.write("# allowed words\n\nScunthorpe\n  hello  \n")
            f.flush()
            path = f.name

        try:
            whitelist = Whitelist()
            assert whitelist.load_from_file(path) == 2
            assert whitelist.contains("scunthorpe")
            assert whitelist.contains("hello")
        finally:
            Path(path).unlink()

    def test_load_case_sensitive(self, tmp_path):
        path = tmp_path / "whitelist.txt"
        path.write_text("Dick\n", encoding="utf-8")

        whitelist = Whitelist()
        whitelist.load_from_file(path, case_sensitive=True)
        assert whitelist.contains("Dick")
        assert not whitelist.contains("dick")

    def test_missing_file(self, tmp_path):
        whitelist = Whitelist()
        assert whitelist.load_from_file(tmp_path / "missing.txt") == 0
        assert len(whitelist) == 0


class TestWhitelistImportExport:
    """Tests for whitelist import and export."""

    def test_export_roundtrip(self):
        whitelist = Whitelist([WhitelistEntry("Hell", case_sensitive=True), "damn"])
        restored = Whitelist()
        assert restored.import_entries(whitelist.export()) == 2
        assert restored.contains("Hell")
        assert not restored.contains("hell")
        assert restored.contains("DAMN")

    def test_import_plain_strings(self):
        whitelist = Whitelist()
        whitelist.import_entries(["hell", {"word": "ass", "whole_word": False}])
        assert whitelist.contains("class")

    def test_import_replace(self):
        whitelist = Whitelist(["old"])
        whitelist.import_entries(["new"], replace=True)
        assert whitelist.words == ["new"]

    @pytest.mark.parametrize(
        "entries",
        [
            [{"case_sensitive": True}],
            [{"word": ""}],
            [42],
        ],
    )
    def test_invalid_entries(self, entries):
        whitelist = Whitelist(["kept"])
        with pytest.raises(InvalidImportError):
            whitelist.import_entries(entries)
        assert whitelist.words == ["kept"]
