"""Tests for match reconciliation and replacement."""

import pytest

from wordguard.config import FilterConfig
from wordguard.core.automaton import PatternAutomaton
from wordguard.core.fuzzy import get_fuzzy_matcher
from wordguard.core.normalizer import Normalizer
from wordguard.core.reconciler import (
    CONTEXT_SAFE_WORDS,
    DetectionEngines,
    MatchReconciler,
    replace_matches,
)
from wordguard.core.types import (
    DetectionStrictness,
    EvasionTechnique,
    Match,
    MatchSource,
    Pattern,
    SeverityLevel,
)
from wordguard.core.whitelist import Whitelist


def build_engines(patterns, paranoid=False):
    normalizer = Normalizer.canonical()
    automaton = PatternAutomaton.from_patterns(
        patterns, key_func=lambda p: normalizer.normalize(p.word)
    )
    if not paranoid:
        return DetectionEngines(tuple(patterns), automaton, normalizer)
    recall = Normalizer.maximum_recall()
    recall_automaton = PatternAutomaton.from_patterns(
        patterns, key_func=lambda p: recall.normalize(p.word)
    )
    return DetectionEngines(tuple(patterns), automaton, normalizer, recall_automaton, recall)


def make_match(word, position, length):
    return Match(
        word=word,
        severity=SeverityLevel.MODERATE,
        category="general",
        position=position,
        length=length,
    )


class TestReplaceMatches:
    """Tests for replace_matches function."""

    def test_single_match(self):
        assert replace_matches("oh damn it", [make_match("damn", 3, 4)]) == "oh **** it"

    def test_overlapping_matches(self):
        """Test that nested spans are masked completely."""
        matches = [make_match("ass", 0, 3), make_match("assassin", 0, 8), make_match("ass", 3, 3)]
        assert replace_matches("assassin!", matches) == "********!"

    def test_replacement_char(self):
        assert replace_matches("damn", [make_match("damn", 0, 4)], "#") == "####"

    def test_no_matches(self):
        assert replace_matches("fine", []) == "fine"

    def test_keeps_length(self):
        text = "damn, hell and damn"
        matches = [make_match("damn", 0, 4), make_match("hell", 6, 4), make_match("damn", 15, 4)]
        result = replace_matches(text, matches)
        assert len(result) == len(text)
        assert result == "****, **** and ****"


class TestMatchReconciler:
    """Tests for MatchReconciler.detect."""

    def test_automaton_matches(self):
        reconciler = MatchReconciler(Whitelist())
        engines = build_engines([Pattern("damn")])
        result = reconciler.detect("oh damn", FilterConfig(), engines)
        assert result.has_match
        assert result.cleaned_text is None
        assert result.matches[0].source == MatchSource.AUTOMATON

    def test_fuzzy_duplicate_of_automaton_match_dropped(self):
        """Test that a word found by both paths is reported once."""
        reconciler = MatchReconciler(Whitelist())
        engines = build_engines([Pattern("damn")])
        config = FilterConfig(enable_fuzzy_matching=True)
        result = reconciler.detect(
            "oh damn", config, engines, fuzzy_matcher=get_fuzzy_matcher(config.strictness)
        )
        assert len(result.matches) == 1
        assert result.matches[0].source == MatchSource.AUTOMATON

    def test_fuzzy_ignored_when_disabled(self):
        reconciler = MatchReconciler(Whitelist())
        engines = build_engines([Pattern("damn")])
        result = reconciler.detect(
            "oh d@mn", FilterConfig(), engines,
            fuzzy_matcher=get_fuzzy_matcher(DetectionStrictness.MEDIUM),
        )
        assert not result.has_match

    def test_maximum_recall_rescan(self):
        reconciler = MatchReconciler(Whitelist())
        engines = build_engines([Pattern("damn")], paranoid=True)
        config = FilterConfig(strictness=DetectionStrictness.PARANOID)
        result = reconciler.detect("d a a a m n", config, engines)
        assert len(result.matches) == 1
        match = result.matches[0]
        assert match.source == MatchSource.MAXIMUM_RECALL
        assert (match.position, match.length) == (0, 11)

    def test_rescan_skipped_below_paranoid(self):
        reconciler = MatchReconciler(Whitelist())
        engines = build_engines([Pattern("damn")], paranoid=True)
        result = reconciler.detect("d a a a m n", FilterConfig(), engines)
        assert not result.has_match

    def test_whitelist_suppression(self):
        reconciler = MatchReconciler(Whitelist(["damn"]))
        engines = build_engines([Pattern("damn"), Pattern("hell")])
        result = reconciler.detect("damn hell", FilterConfig(), engines)
        assert [m.word for m in result.matches] == ["hell"]

    def test_whitelist_changes_are_seen(self):
        whitelist = Whitelist()
        reconciler = MatchReconciler(whitelist)
        engines = build_engines([Pattern("damn")])
        assert reconciler.detect("damn", FilterConfig(), engines).has_match
        whitelist.add("damn")
        assert not reconciler.detect("damn", FilterConfig(), engines).has_match

    def test_context_suppression(self):
        reconciler = MatchReconciler(Whitelist())
        engines = build_engines([Pattern("ass")])
        config = FilterConfig(partial_match=True, context_aware=True)
        assert not reconciler.detect("first class", config, engines).has_match
        assert reconciler.detect("class ass", config, engines).has_match

    def test_custom_safe_words(self):
        reconciler = MatchReconciler(Whitelist(), safe_words=["Badass"])
        engines = build_engines([Pattern("ass")])
        config = FilterConfig(partial_match=True, context_aware=True)
        assert not reconciler.detect("badass", config, engines).has_match
        assert reconciler.detect("classic", config, engines).has_match

    def test_evasion_tagging(self):
        reconciler = MatchReconciler(Whitelist())
        engines = build_engines([Pattern("damn")], paranoid=True)
        match = reconciler.detect("dammmmn", FilterConfig(strictness="paranoid"), engines).matches[0]
        assert match.matched_text == "dammmmn"
        assert match.evasion_techniques == [EvasionTechnique.REPEATED_LETTERS]
        assert reconciler.detect("damn", FilterConfig(), engines).matches[0].evasion_techniques == []

    def test_sorted_by_position_then_longest(self):
        reconciler = MatchReconciler(Whitelist())
        engines = build_engines([Pattern("ass"), Pattern("assassin")])
        result = reconciler.detect("assassin", FilterConfig(partial_match=True), engines)
        assert [(m.word, m.position) for m in result.matches] == [
            ("assassin", 0),
            ("ass", 0),
            ("ass", 3),
        ]

    def test_replacement(self):
        reconciler = MatchReconciler(Whitelist())
        engines = build_engines([Pattern("damn")])
        result = reconciler.detect("oh damn", FilterConfig(), engines, replacement_char="#")
        assert result.cleaned_text == "oh ####"
        config = FilterConfig(replace_matches=True)
        assert reconciler.detect("oh damn", config, engines).cleaned_text == "oh ****"

    def test_empty_text(self):
        reconciler = MatchReconciler(Whitelist())
        result = reconciler.detect("", FilterConfig(), build_engines([Pattern("damn")]))
        assert not result.has_match
        assert result.matches == []


class TestContextSafeWords:
    """Sanity checks on the bundled safe-word list."""

    @pytest.mark.parametrize("word", ["assessment", "class", "hello", "scunthorpe", "cocktail"])
    def test_contains(self, word):
        assert word in CONTEXT_SAFE_WORDS

    def test_lowercase(self):
        assert all(word == word.lower() for word in CONTEXT_SAFE_WORDS)
