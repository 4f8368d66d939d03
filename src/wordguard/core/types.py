"""
Core types

Patterns, matches and detection results shared by the automaton, the fuzzy
matcher and the reconciler.
"""

from dataclasses import dataclass, field
from enum import Enum, IntEnum
from typing import Optional

from wordguard.core.errors import InvalidPatternError

SUPPORTED_LANGUAGES = frozenset({"en", "ar"})


class SeverityLevel(IntEnum):
    """Severity of a sensitive word."""
    MILD = 1
    MODERATE = 2
    SEVERE = 3
    EXTREME = 4


class DetectionStrictness(IntEnum):
    """How aggressively evasion attempts are matched."""
    LOW = 1        # exact matches only
    MEDIUM = 2     # symbol and spacing evasions
    HIGH = 3       # adds edit-distance matching
    PARANOID = 4   # maximum recall, may produce false positives


class MatchSource(str, Enum):
    """Which detection path produced a match."""
    AUTOMATON = "automaton"
    FUZZY = "fuzzy"
    MAXIMUM_RECALL = "maximum_recall"


class EvasionTechnique(str, Enum):
    """Evasion techniques recognised in original text."""
    SYMBOL_REPLACEMENT = "symbol_replacement"
    SPACE_INSERTION = "space_insertion"
    REPEATED_LETTERS = "repeated_letters"
    LEET_SPEAK = "leet_speak"
    LANGUAGE_MIXING = "language_mixing"
    CHARACTER_SUBSTITUTION = "character_substitution"


@dataclass(frozen=True)
class Pattern:
    """A sensitive word with its metadata.

    Attributes:
        word: The word as supplied (before normalization).
        severity: Severity from 1 (mild) to 4 (extreme).
        category: Free-form grouping such as ``profanity`` or ``insult``.
        language: Language tag, ``en`` or ``ar``.
    """

    word: str
    severity: SeverityLevel = SeverityLevel.MODERATE
    category: str = "general"
    language: str = "en"

    def __post_init__(self) -> None:
        """Validate and coerce field values."""
        if not isinstance(self.word, str) or not self.word.strip():
            raise InvalidPatternError("Pattern word cannot be empty")
        if isinstance(self.severity, bool) or not isinstance(self.severity, int):
            raise InvalidPatternError(
                f"Severity must be an integer between 1 and 4, got {self.severity!r}"
            )
        if not 1 <= self.severity <= 4:
            raise InvalidPatternError(
                f"Severity must be between 1 and 4, got {self.severity}"
            )
        if self.language not in SUPPORTED_LANGUAGES:
            raise InvalidPatternError(f"Unsupported language: {self.language!r}")
        if not self.category:
            object.__setattr__(self, "category", "general")
        object.__setattr__(self, "severity", SeverityLevel(self.severity))

    def to_dict(self) -> dict:
        """Return a JSON-serialisable representation."""
        return {
            "word": self.word,
            "severity": int(self.severity),
            "category": self.category,
            "language": self.language,
        }


@dataclass
class Match:
    """A single detected sensitive word.

    ``position`` and ``length`` always refer to the original text handed to
    the filter, whichever normalized variant the match was found in.
    """

    word: str
    severity: SeverityLevel
    category: str
    position: int
    length: int
    confidence: Optional[float] = None
    evasion_techniques: list[EvasionTechnique] = field(default_factory=list)
    matched_text: str = ""
    source: MatchSource = MatchSource.AUTOMATON

    @property
    def end(self) -> int:
        """Exclusive end offset in the original text."""
        return self.position + self.length


@dataclass
class DetectionResult:
    """Result of running detection over one text."""
    has_match: bool
    matches: list[Match]
    original_text: str
    cleaned_text: Optional[str] = None

    @property
    def max_severity(self) -> Optional[SeverityLevel]:
        """Highest severity among the matches, if any."""
        if not self.matches:
            return None
        return max(m.severity for m in self.matches)

    def get_by_category(self, category: str) -> list[Match]:
        """Return the matches of one category."""
        return [m for m in self.matches if m.category == category]


@dataclass
class BatchDetectionResult:
    """Result of a batch detection run."""
    results: list[DetectionResult]
    processing_time_ms: float
    total_matches: int


@dataclass
class FilterStats:
    """Counts describing the word set loaded into a filter."""
    total_words: int
    custom_words: int
    default_words: int
    whitelist_count: int
    by_language: dict[str, int] = field(default_factory=dict)
    by_severity: dict[int, int] = field(default_factory=dict)
    by_category: dict[str, int] = field(default_factory=dict)
