"""Tests for the normalization pipeline."""

import pytest

from wordguard.core.normalizer import NormalizedText, Normalizer, NormalizerOptions
from wordguard.core.tables import NormalizationTables, build_default_tables

ZWSP = chr(0x200B)
RLM = chr(0x200F)
TATWEEL = chr(0x0640)
FATHA = chr(0x064E)
SUKUN = chr(0x0652)
CYRILLIC_A = chr(0x0430)


def negative_squared(word: str) -> str:
    """Spell an ASCII word with negative squared letter emoji."""
    return "".join(chr(0x1F170 + ord(ch) - ord("a")) for ch in word)


class TestCanonicalProfile:
    """Tests for the canonical profile (stages 1-5 and 10)."""

    def test_lowercases_and_collapses_whitespace(self):
        """Test case folding and whitespace cleanup."""
        normalizer = Normalizer.canonical()
        assert normalizer.normalize("  HeLLo \t\n World  ") == "hello world"

    def test_strips_zero_width_characters(self):
        """Test that invisible characters are removed."""
        normalizer = Normalizer.canonical()
        assert normalizer.normalize(f"fu{ZWSP}ck") == "fuck"

    def test_strips_bidi_marks_and_tatweel(self):
        """Test removal of bidi controls and Arabic elongation."""
        normalizer = Normalizer.canonical()
        assert normalizer.normalize(f"ك{TATWEEL}ل{TATWEEL}ب") == "كلب"
        assert normalizer.normalize(f"{RLM}كلب") == "كلب"

    def test_strips_arabic_diacritics(self):
        """Test removal of Arabic harakat."""
        normalizer = Normalizer.canonical()
        assert normalizer.normalize(f"ك{FATHA}ل{SUKUN}ب") == "كلب"

    def test_folds_arabic_letter_variants(self):
        """Test alef and teh marbuta folding."""
        normalizer = Normalizer.canonical()
        assert normalizer.normalize("أحمد") == "احمد"
        assert normalizer.normalize("مدرسة") == "مدرسه"

    def test_strips_latin_accents(self):
        """Test removal of Latin diacritics."""
        normalizer = Normalizer.canonical()
        assert normalizer.normalize("Café Déjà") == "cafe deja"

    def test_keeps_hangul_syllables(self):
        """Test that precomposed Hangul is not decomposed."""
        normalizer = Normalizer.canonical()
        assert normalizer.normalize("한국어") == "한국어"

    def test_folds_fullwidth_letters(self):
        """Test compatibility folding of fullwidth forms."""
        normalizer = Normalizer.canonical()
        assert normalizer.normalize("ｆｕｃｋ") == "fuck"

    def test_folds_cyrillic_lookalikes(self):
        """Test that Cyrillic homoglyphs become Latin letters."""
        normalizer = Normalizer.canonical()
        assert normalizer.normalize(f"d{CYRILLIC_A}mn") == "damn"

    def test_folds_letter_emoji(self):
        """Test negative squared letters."""
        normalizer = Normalizer.canonical()
        assert normalizer.normalize(negative_squared("fuck")) == "fuck"

    def test_dotted_capital_i(self):
        """Test that lowercasing does not leave a combining dot behind."""
        normalizer = Normalizer.canonical()
        assert normalizer.normalize("İstanbul") == "istanbul"

    def test_keeps_symbols(self):
        """Test that the canonical profile leaves leet symbols alone."""
        normalizer = Normalizer.canonical()
        assert normalizer.normalize("f@ck") == "f@ck"

    def test_empty_input(self):
        """Test empty input."""
        assert Normalizer.canonical().normalize("") == ""


class TestEvasionProfile:
    """Tests for the evasion profile (all stages)."""

    @pytest.mark.parametrize(
        "text,expected",
        [
            ("f@ck", "fack"),
            ("$hit", "shit"),
            ("sh!t", "shit"),
            ("5h1t", "shit"),
            ("f*ck", "fck"),
            ("f u c k", "fuck"),
            ("f.u.c.k", "fuck"),
            ("f-u-c-k", "fuck"),
            ("f_u_c_k", "fuck"),
            ("fuuuuck", "fuuck"),
        ],
    )
    def test_evasions(self, text, expected):
        """Test common evasion spellings."""
        assert Normalizer.evasion().normalize(text) == expected

    def test_trailing_exclamation_kept(self):
        """Test that sentence punctuation is not read as a letter."""
        assert Normalizer.evasion().normalize("damn!") == "damn!"

    def test_two_single_letters_not_joined(self):
        """Test that fewer than three spaced letters stay apart."""
        assert Normalizer.evasion().normalize("a b") == "a b"

    def test_separator_runs_collapse(self):
        """Test that long separator runs become one space."""
        assert Normalizer.evasion().normalize("hello ... world") == "hello world"

    def test_repeats_case_insensitive(self):
        """Test that mixed-case runs are collapsed."""
        assert Normalizer.evasion().normalize("fuUuUck") == "fuuck"

    def test_toggles_disable_stages(self):
        """Test that evasion toggles switch stages off."""
        normalizer = Normalizer.evasion(symbols=False, spacing=False, repeats=False)
        assert normalizer.normalize("f@ck") == "f@ck"
        assert normalizer.normalize("f u c k") == "f u c k"
        assert normalizer.normalize("fuuuuck") == "fuuuuck"

    def test_phonetic_folding_only_for_mixed_script(self):
        """Test that pure Arabic text is not transliterated."""
        normalizer = Normalizer.evasion()
        assert normalizer.normalize("كلب") == "كلب"
        assert normalizer.normalize("كلب dog") == "klb dog"

    def test_leet_digits_count_as_latin_for_folding(self):
        """Test that a digit read as a letter makes Arabic text mixed-script."""
        normalizer = Normalizer.evasion()
        assert normalizer.normalize("كلب 1") == "klb i"
        assert normalizer.normalize("عندي 3 كلاب") == "andy e klab"

    def test_trailing_symbol_does_not_trigger_folding(self):
        """Test that punctuation left as is keeps Arabic text unfolded."""
        assert Normalizer.evasion().normalize("كلب!") == "كلب!"

    def test_fold_script_override(self):
        """Test forcing phonetic folding on and off."""
        normalizer = Normalizer.evasion()
        assert normalizer.normalize("كلب", fold_script=True) == "klb"
        assert normalizer.normalize("كلب dog", fold_script=False) == "كلب dog"

    def test_key_variants(self):
        """Test plain and folded keys of a word."""
        assert Normalizer.evasion().key_variants("كلب") == ("كلب", "klb")
        assert Normalizer.evasion().key_variants("fuck") == ("fuck",)
        assert Normalizer.canonical().key_variants("كلب") == ("كلب",)
        assert Normalizer.evasion().key_variants("***") == ()


class TestMaximumRecallProfile:
    """Tests for the maximum-recall variant."""

    @pytest.mark.parametrize(
        "text",
        ["fuuuuck", "F.U.C.K", "f u c k!", "f-u-c-k", "FUCK"],
    )
    def test_collapses_to_core_letters(self, text):
        """Test that every variant reduces to the same skeleton."""
        assert Normalizer.maximum_recall().normalize(text) == "fuck"

    def test_strips_non_alphanumerics(self):
        """Test removal of spaces and punctuation."""
        assert Normalizer.maximum_recall().normalize("what the hell?") == "whathehel"


class TestLiteralProfile:
    """Tests for the literal profile."""

    def test_lowercase_and_whitespace(self):
        """Test stage 10 only."""
        assert Normalizer.literal().normalize(f"Hello  {ZWSP}World") == f"hello {ZWSP}world"

    def test_raw_keeps_whitespace(self):
        """Test lowercase-only mode."""
        assert Normalizer.literal(collapse_whitespace=False).normalize("Hello  World") == "hello  world"


class TestOffsetTracking:
    """Tests for the offset map back to the original text."""

    def test_identity_offsets(self):
        """Test offsets when nothing changes."""
        result = Normalizer.canonical().normalize_tracked("abc")
        assert result.text == "abc"
        assert result.offsets == (0, 1, 2)

    def test_span_over_joined_letters(self):
        """Test mapping a span after spacing removal."""
        result = Normalizer.evasion().normalize_tracked("xx f u c k yy")
        assert result.text == "xx fuck yy"
        start = result.text.index("fuck")
        assert result.to_original_span(start, 4) == (3, 7)

    def test_span_over_removed_invisible(self):
        """Test mapping a span that covers a removed character."""
        text = f"a fu{ZWSP}ck"
        result = Normalizer.canonical().normalize_tracked(text)
        assert result.text == "a fuck"
        assert result.to_original_span(2, 4) == (2, 5)

    def test_span_includes_trailing_marks(self):
        """Test that combining marks after a span belong to it."""
        text = f"ك{FATHA}ل{SUKUN}ب{FATHA}"
        result = Normalizer.canonical().normalize_tracked(text)
        assert result.text == "كلب"
        assert result.to_original_span(0, 3) == (0, len(text))

    def test_base_offset(self):
        """Test offsets of a slice of a larger text."""
        result = Normalizer.canonical().normalize_tracked("AB", offset=10)
        assert result.offsets == (10, 11)
        assert result.to_original_span(0, 2) == (10, 2)

    def test_empty_text(self):
        """Test tracking of empty text."""
        result = Normalizer.canonical().normalize_tracked("")
        assert isinstance(result, NormalizedText)
        assert result.text == ""
        assert result.offsets == ()
        assert len(result) == 0


IDEMPOTENCY_SAMPLES = [
    "f u c k",
    "F.U.C.K!!",
    "fuuuuck",
    "ｆｕｃｋ",
    "sh!t happens!!!",
    f"ك{TATWEEL}ل{TATWEEL}ب",
    "İstanbul",
    "a b c! d",
    f"hello{ZWSP}world",
    "Ω mixed ω text",
    "x  .  y",
    "ﬀuuuuck",
    "Ⓕⓤⓒⓚ",
    negative_squared("shit"),
    "a\tb\n\nc",
    "كلب dog",
    "5h1t 2024",
    "كلب 1",
    "عندي 3 كلاب",
    "كلب !ا",
    "ك@ب",
    "",
]


class TestIdempotency:
    """normalize(normalize(x)) == normalize(x) for every profile."""

    @pytest.mark.parametrize("text", IDEMPOTENCY_SAMPLES)
    @pytest.mark.parametrize(
        "factory",
        [Normalizer.literal, Normalizer.canonical, Normalizer.evasion, Normalizer.maximum_recall],
        ids=["literal", "canonical", "evasion", "maximum_recall"],
    )
    def test_idempotent(self, factory, text):
        """Test that a second pass changes nothing."""
        normalizer = factory()
        once = normalizer.normalize(text)
        assert normalizer.normalize(once) == once


class TestTables:
    """Tests for table injection."""

    def test_default_tables_shared(self):
        """Test that default tables are built once."""
        assert build_default_tables() is build_default_tables()

    def test_tables_are_read_only(self):
        """Test that tables cannot be mutated."""
        tables = build_default_tables()
        with pytest.raises(TypeError):
            tables.confusables["x"] = "y"

    def test_custom_tables(self):
        """Test a normalizer with injected tables."""
        tables = NormalizationTables(symbols={"#": "h"})
        normalizer = Normalizer(NormalizerOptions(), tables=tables)
        assert normalizer.normalize("#ello") == "hello"
        assert normalizer.normalize("f@ck") == "f@ck"
