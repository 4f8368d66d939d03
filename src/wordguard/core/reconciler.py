"""
Match reconciliation

Combines the exact automaton pass, the fuzzy pass and the maximum-recall
rescan into one list of matches, then applies whitelist and context-aware
suppression, evasion tagging and the optional replacement pass.
"""

from dataclasses import dataclass
from typing import Iterable, Optional, Sequence

from wordguard.config.filter_config import FilterConfig
from wordguard.core.automaton import AutomatonHit, PatternAutomaton
from wordguard.core.fuzzy import FuzzyMatcher, detect_evasion_techniques
from wordguard.core.normalizer import NormalizedText, Normalizer
from wordguard.core.types import (
    DetectionResult,
    DetectionStrictness,
    Match,
    MatchSource,
    Pattern,
)
from wordguard.core.whitelist import Whitelist
from wordguard.logging import get_logger
from wordguard.utils.text import sanitize_for_logging, word_tokens

logger = get_logger(__name__)

# Benign words that contain a short sensitive word
CONTEXT_SAFE_WORDS = frozenset({
    # ass
    "assessment", "assassin", "assign", "assist", "assume", "associate",
    "assemble", "class", "classic", "mass", "massive", "pass", "passage",
    "passenger", "passion", "compass", "embassy", "harass", "brass", "grass",
    "glass", "bypass", "trespass", "cassette", "bassoon", "lasso", "molasses",
    "sassafras", "ambassador", "embarrass",
    # hell
    "hello", "shell", "shellfish", "michelle", "seashell", "nutshell", "eggshell",
    # damn
    "goddamn", "amsterdam",
    # cock
    "cocktail", "peacock", "hancock", "cockpit", "cockatoo", "cocoon", "weathercock",
    # dick
    "dickens", "dictate", "dictionary", "predict", "verdict", "addiction",
    "benediction",
    # cum
    "document", "cucumber", "accumulate", "circumstance", "circumference", "incumbent",
    # sex
    "sextant", "sextet", "essex", "sussex", "middlesex",
    # tit
    "title", "entitled", "institution", "constitution", "attitude", "gratitude",
    "competitive", "repetitive", "appetizer", "titanium", "titan",
    # piss
    "mississippi",
    # anal
    "analysis", "analyze", "analyst", "analytical", "canal", "banal", "final",
    "signal",
    # nig
    "night", "nightmare", "knight", "ignite", "significant", "benign", "malignant",
    # fag, ho
    "fagot", "honest", "honor", "horse", "hospital", "host", "hotel", "hope", "horizon",
    # crap, scum
    "scrap", "scrape", "scumble",
    # place names
    "scunthorpe", "penistone", "shitterton", "cockermouth", "clitheroe", "lightwater",
    "arsenal",
})


@dataclass(frozen=True)
class DetectionEngines:
    """Automatons and normalizers for one set of active patterns.

    Attributes:
        patterns: Active patterns, in insertion order.
        automaton: Exact-match automaton keyed by ``normalizer`` output.
        normalizer: Normalizer for exact matching.
        recall_automaton: Automaton keyed by maximum-recall output, only at
            PARANOID strictness.
        recall_normalizer: Normalizer for the maximum-recall rescan.
    """

    patterns: tuple[Pattern, ...]
    automaton: PatternAutomaton
    normalizer: Normalizer
    recall_automaton: Optional[PatternAutomaton] = None
    recall_normalizer: Optional[Normalizer] = None


class MatchReconciler:
    """Turns the raw output of every detection path into final matches."""

    def __init__(
        self,
        whitelist: Whitelist,
        safe_words: Iterable[str] = CONTEXT_SAFE_WORDS,
    ):
        self.whitelist = whitelist
        self.safe_words = frozenset(word.lower() for word in safe_words)
        self._context_normalizer = Normalizer.canonical()

    def detect(
        self,
        text: str,
        config: FilterConfig,
        engines: DetectionEngines,
        fuzzy_matcher: Optional[FuzzyMatcher] = None,
        replacement_char: Optional[str] = None,
    ) -> DetectionResult:
        """Run every detection path over ``text`` and reconcile the results.

        Args:
            text: Original text.
            config: Validated options for this call.
            engines: Automatons built for ``config``.
            fuzzy_matcher: Matcher used when fuzzy matching is enabled.
            replacement_char: Forces a cleaned text using this character.

        Returns:
            DetectionResult with matches ordered by position.
        """
        if not text:
            return DetectionResult(has_match=False, matches=[], original_text=text or "")

        normalized = engines.normalizer.normalize_tracked(text)
        matches = self._from_hits(
            text,
            normalized,
            engines.automaton.search(normalized.text, partial_match=config.partial_match),
            MatchSource.AUTOMATON,
        )
        seen = {m.word.casefold() for m in matches}

        if config.enable_fuzzy_matching and fuzzy_matcher is not None:
            for match in fuzzy_matcher.find_matches(text, engines.patterns):
                key = match.word.casefold()
                if key not in seen:
                    seen.add(key)
                    matches.append(match)

        if (
            config.strictness == DetectionStrictness.PARANOID
            and engines.recall_automaton is not None
            and engines.recall_normalizer is not None
        ):
            recall_text = engines.recall_normalizer.normalize_tracked(text)
            hits = engines.recall_automaton.search(recall_text.text, partial_match=True)
            added = set()
            for match in self._from_hits(text, recall_text, hits, MatchSource.MAXIMUM_RECALL):
                key = match.word.casefold()
                if key not in seen:
                    added.add(key)
                    matches.append(match)
            seen |= added

        matches = self._suppress(text, matches, config)

        for match in matches:
            match.evasion_techniques = detect_evasion_techniques(text[match.position:match.end])

        matches.sort(key=lambda m: (m.position, -m.length))

        cleaned = None
        if replacement_char is not None:
            cleaned = replace_matches(text, matches, replacement_char)
        elif config.replace_matches:
            cleaned = replace_matches(text, matches, config.replacement_char)

        return DetectionResult(
            has_match=bool(matches),
            matches=matches,
            original_text=text,
            cleaned_text=cleaned,
        )

    @staticmethod
    def _from_hits(
        text: str,
        normalized: NormalizedText,
        hits: Sequence[AutomatonHit],
        source: MatchSource,
    ) -> list[Match]:
        matches = []
        for hit in hits:
            position, length = normalized.to_original_span(hit.position, hit.length)
            if length <= 0:
                continue
            matches.append(
                Match(
                    word=hit.pattern.word,
                    severity=hit.pattern.severity,
                    category=hit.pattern.category,
                    position=position,
                    length=length,
                    matched_text=text[position:position + length],
                    source=source,
                )
            )
        return matches

    def _suppress(self, text: str, matches: list[Match], config: FilterConfig) -> list[Match]:
        """Drop whitelisted matches and, if enabled, context-safe ones."""
        tokens: Optional[list[str]] = None
        kept = []
        for match in matches:
            if self.whitelist.is_exempt(match.word, match.matched_text):
                logger.debug(
                    "Match suppressed by whitelist",
                    extra={"word": sanitize_for_logging(match.word)},
                )
                continue

            if config.context_aware:
                if tokens is None:
                    tokens = word_tokens(self._context_normalizer.normalize(text))
                if self._is_context_safe(match.word, tokens):
                    logger.debug(
                        "Match suppressed by context",
                        extra={"word": sanitize_for_logging(match.word)},
                    )
                    continue

            kept.append(match)
        return kept

    def _is_context_safe(self, word: str, tokens: list[str]) -> bool:
        """Check whether ``word`` only occurs inside safe words.

        A token equal to the word is never safe, and a word that occurs in
        no token at all is not suppressed.
        """
        key = self._context_normalizer.normalize(word)
        if not key or key in tokens:
            return False
        containing = [token for token in tokens if key in token]
        if not containing:
            return False
        return all(token in self.safe_words for token in containing)


def replace_matches(text: str, matches: Iterable[Match], replacement_char: str = "*") -> str:
    """Mask every match span with ``replacement_char``.

    Spans are replaced from the end of the text backwards, each by the
    replacement character repeated to the span length, so the text keeps
    its length and every other character its position.
    """
    result = text
    for match in sorted(matches, key=lambda m: m.position, reverse=True):
        if match.length <= 0:
            continue
        result = (
            result[:match.position]
            + replacement_char * match.length
            + result[match.end:]
        )
    return result
