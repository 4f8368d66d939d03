"""
Fuzzy matcher

Near-miss matching of sensitive words, graded by detection strictness:

- LOW: case-insensitive equality only
- MEDIUM: equality after evasion normalization (symbols, spacing,
  repeats, script mixing)
- HIGH: as MEDIUM, plus bounded Levenshtein distance
- PARANOID: maximum-recall normalization, containment, and a length-scaled
  edit-distance allowance
"""

import math
from functools import lru_cache
from dataclasses import dataclass, field
from typing import Iterable, Optional

from wordguard.core.fuzzy.evasion import detect_evasion_techniques
from wordguard.core.normalizer import NormalizedText, Normalizer
from wordguard.core.tables import NormalizationTables, build_default_tables
from wordguard.core.types import (
    DetectionStrictness,
    EvasionTechnique,
    Match,
    MatchSource,
    Pattern,
)
from wordguard.utils.text import iter_tokens

# Confidence assigned per outcome
EXACT_CONFIDENCE = 1.0
NORMALIZED_CONFIDENCE = 0.95
MAXIMUM_RECALL_CONFIDENCE = 0.99
CONTAINMENT_CONFIDENCE = 0.95

# Lowest confidence accepted for edit-distance matches
HIGH_MIN_CONFIDENCE = 0.7
PARANOID_MIN_CONFIDENCE = 0.5
PARANOID_LENGTH_RATIO = 0.4


@dataclass(frozen=True)
class FuzzyOptions:
    """Options of a FuzzyMatcher."""

    strictness: DetectionStrictness = DetectionStrictness.MEDIUM
    max_edit_distance: int = 2
    detect_symbol_replacement: bool = True
    detect_space_insertion: bool = True
    detect_repeated_letters: bool = True
    detect_language_mixing: bool = True

    def __post_init__(self) -> None:
        if isinstance(self.max_edit_distance, bool) or not isinstance(self.max_edit_distance, int):
            raise ValueError("max_edit_distance must be an integer")
        if self.max_edit_distance < 0:
            raise ValueError(f"max_edit_distance must be >= 0, got {self.max_edit_distance}")
        object.__setattr__(self, "strictness", DetectionStrictness(self.strictness))


@dataclass
class FuzzyMatchResult:
    """Outcome of comparing one text with one word.

    Attributes:
        matched: Whether the text is considered a match.
        confidence: Match quality between 0 and 1.
        normalized_text: The text as compared, after normalization.
        evasion_techniques: Evasions seen in the matched part of the text.
        span: ``(position, length)`` of the matched part of the text.
    """

    matched: bool
    confidence: float
    normalized_text: str
    evasion_techniques: list[EvasionTechnique] = field(default_factory=list)
    span: Optional[tuple[int, int]] = None


@dataclass(frozen=True)
class _Candidate:
    """A slice ``[start, end)`` of a normalized text."""

    source: NormalizedText
    start: int
    end: int

    @property
    def text(self) -> str:
        return self.source.text[self.start:self.end]

    def original_span(self, offset: int = 0, length: Optional[int] = None) -> tuple[int, int]:
        if length is None:
            length = self.end - self.start - offset
        return self.source.to_original_span(self.start + offset, length)


def levenshtein_distance(a: str, b: str) -> int:
    """Edit distance with unit cost insertions, deletions and substitutions.

    Examples:
        >>> levenshtein_distance("kitten", "sitting")
        3
    """
    if a == b:
        return 0
    if not a:
        return len(b)
    if not b:
        return len(a)

    rows = len(a) + 1
    cols = len(b) + 1
    matrix = [[0] * cols for _ in range(rows)]
    for i in range(rows):
        matrix[i][0] = i
    for j in range(cols):
        matrix[0][j] = j

    for i in range(1, rows):
        for j in range(1, cols):
            cost = 0 if a[i - 1] == b[j - 1] else 1
            matrix[i][j] = min(
                matrix[i - 1][j] + 1,
                matrix[i][j - 1] + 1,
                matrix[i - 1][j - 1] + cost,
            )
    return matrix[rows - 1][cols - 1]


class FuzzyMatcher:
    """Strictness-levelled fuzzy matcher.

    Instances are immutable after construction and can be shared.
    """

    def __init__(
        self,
        options: Optional[FuzzyOptions] = None,
        tables: Optional[NormalizationTables] = None,
    ):
        self.options = options or FuzzyOptions()
        self.tables = tables or build_default_tables()

        opts = self.options
        self._normalizer: Optional[Normalizer]
        if opts.strictness == DetectionStrictness.LOW:
            self._normalizer = Normalizer.literal(tables=self.tables)
        elif opts.strictness == DetectionStrictness.PARANOID:
            self._normalizer = Normalizer.maximum_recall(
                symbols=opts.detect_symbol_replacement,
                spacing=opts.detect_space_insertion,
                mixing=opts.detect_language_mixing,
                tables=self.tables,
            )
        else:
            self._normalizer = Normalizer.evasion(
                symbols=opts.detect_symbol_replacement,
                spacing=opts.detect_space_insertion,
                repeats=opts.detect_repeated_letters,
                mixing=opts.detect_language_mixing,
                tables=self.tables,
            )

    @property
    def strictness(self) -> DetectionStrictness:
        return self.options.strictness

    @property
    def normalizer(self) -> Normalizer:
        return self._normalizer

    def fuzzy_match(self, text: str, word: str) -> FuzzyMatchResult:
        """Compare a piece of text with a single word.

        Args:
            text: Candidate text (a token, a phrase or a whole message).
            word: The sensitive word.

        Returns:
            FuzzyMatchResult; ``matched`` is False when no level accepts it.
        """
        normalized = self._normalizer.normalize_tracked(text or "")
        candidate = _Candidate(normalized, 0, len(normalized))
        scored = self._best_score([candidate], self.pattern_keys(word))
        if scored is None:
            return FuzzyMatchResult(
                matched=False,
                confidence=0.0,
                normalized_text=normalized.text,
            )

        confidence, (position, length) = scored
        return FuzzyMatchResult(
            matched=True,
            confidence=confidence,
            normalized_text=normalized.text,
            evasion_techniques=detect_evasion_techniques(
                text[position:position + length], self.tables
            ),
            span=(position, length),
        )

    def find_matches(self, text: str, patterns: Iterable[Pattern]) -> list[Match]:
        """Find fuzzy matches of the given patterns in text.

        Each pattern is reported at most once, at its best-scoring
        candidate (the first one on a tie).

        Args:
            text: Original text.
            patterns: Patterns to look for.

        Returns:
            Matches with positions in ``text``, in pattern order.
        """
        patterns = list(patterns)
        if not text or not patterns:
            return []

        normalized = self._normalizer.normalize_tracked(text)
        token_spans = list(iter_tokens(normalized.text))
        extra_candidates = self._paranoid_candidates(text, normalized)
        windows: dict[int, list[_Candidate]] = {}

        matches = []
        for pattern in patterns:
            keys = self.pattern_keys(pattern.word)
            if not keys:
                continue

            if self.strictness == DetectionStrictness.PARANOID:
                candidates = extra_candidates
            else:
                candidates = []
                for size in sorted({max(1, len(key.split())) for key in keys}):
                    if size not in windows:
                        windows[size] = _token_windows(normalized, token_spans, size)
                    candidates.extend(windows[size])

            best = self._best_score(candidates, keys)
            if best is None:
                continue

            confidence, (position, length) = best
            matched_text = text[position:position + length]
            matches.append(
                Match(
                    word=pattern.word,
                    severity=pattern.severity,
                    category=pattern.category,
                    position=position,
                    length=length,
                    confidence=confidence,
                    evasion_techniques=detect_evasion_techniques(matched_text, self.tables),
                    matched_text=matched_text,
                    source=MatchSource.FUZZY,
                )
            )
        return matches

    def pattern_keys(self, word: str) -> tuple[str, ...]:
        """Normalize a word the way candidates are normalized.

        Returns the plain key and, when it differs, the key folded to Latin
        for matching inside mixed-script text.
        """
        if self.strictness == DetectionStrictness.LOW:
            key = (word or "").casefold()
            return (key,) if key else ()
        return self._normalizer.key_variants(word)

    def _best_score(
        self,
        candidates: Iterable[_Candidate],
        keys: tuple[str, ...],
    ) -> Optional[tuple[float, tuple[int, int]]]:
        """Highest-scoring candidate over every key; the first one on a tie."""
        best = None
        for candidate in candidates:
            for key in keys:
                scored = self._score(candidate, key)
                if scored is not None and (best is None or scored[0] > best[0]):
                    best = scored
        return best

    def _paranoid_candidates(self, text: str, normalized: NormalizedText) -> list[_Candidate]:
        """Whole text plus each original token, each strictly normalized."""
        if self.strictness != DetectionStrictness.PARANOID:
            return []
        candidates = [_Candidate(normalized, 0, len(normalized))]
        for start, end in iter_tokens(text):
            token = self._normalizer.normalize_tracked(text[start:end], offset=start)
            if token.text:
                candidates.append(_Candidate(token, 0, len(token)))
        return candidates

    def _score(self, candidate: _Candidate, key: str) -> Optional[tuple[float, tuple[int, int]]]:
        """Confidence and original span of a candidate, or None."""
        value = candidate.text
        if not value or not key:
            return None

        strictness = self.strictness
        if strictness == DetectionStrictness.LOW:
            if value.casefold() == key:
                return EXACT_CONFIDENCE, candidate.original_span()
            return None

        if strictness == DetectionStrictness.PARANOID:
            if value == key:
                return MAXIMUM_RECALL_CONFIDENCE, candidate.original_span()
            index = value.find(key)
            if index >= 0:
                return CONTAINMENT_CONFIDENCE, candidate.original_span(index, len(key))
            allowance = max(
                self.options.max_edit_distance,
                math.ceil(PARANOID_LENGTH_RATIO * len(key)),
            )
            confidence = _edit_confidence(value, key, allowance)
            if confidence is not None and confidence >= PARANOID_MIN_CONFIDENCE:
                return confidence, candidate.original_span()
            return None

        if value == key:
            return NORMALIZED_CONFIDENCE, candidate.original_span()
        if strictness == DetectionStrictness.HIGH:
            confidence = _edit_confidence(value, key, self.options.max_edit_distance)
            if confidence is not None and confidence >= HIGH_MIN_CONFIDENCE:
                return confidence, candidate.original_span()
        return None


def _edit_confidence(value: str, key: str, allowance: int) -> Optional[float]:
    """``1 - d / max(len)`` when the distance is within ``allowance``."""
    if allowance <= 0 or abs(len(value) - len(key)) > allowance:
        return None
    distance = levenshtein_distance(value, key)
    if distance > allowance:
        return None
    return 1.0 - distance / max(len(value), len(key))


def _token_windows(
    normalized: NormalizedText,
    token_spans: list[tuple[int, int]],
    size: int,
) -> list[_Candidate]:
    """Candidates covering ``size`` consecutive tokens."""
    return [
        _Candidate(normalized, token_spans[i][0], token_spans[i + size - 1][1])
        for i in range(len(token_spans) - size + 1)
    ]


def get_fuzzy_matcher(
    strictness: DetectionStrictness = DetectionStrictness.MEDIUM,
    max_edit_distance: int = 2,
) -> FuzzyMatcher:
    """Create a fuzzy matcher with default evasion options."""
    return FuzzyMatcher(
        FuzzyOptions(strictness=strictness, max_edit_distance=max_edit_distance)
    )


@lru_cache(maxsize=32)
def matcher_for_options(options: FuzzyOptions) -> FuzzyMatcher:
    """Shared matcher for a set of options.

    Matchers are immutable, so one instance serves every filter and thread
    using the same options.
    """
    return FuzzyMatcher(options)
