"""Core matching components: normalization, automaton, fuzzy matching."""

from wordguard.core.automaton import AutomatonHit, PatternAutomaton
from wordguard.core.errors import (
    AutomatonStateError,
    InvalidImportError,
    InvalidPatternError,
    WordGuardError,
)
from wordguard.core.normalizer import NormalizedText, Normalizer, NormalizerOptions
from wordguard.core.tables import NormalizationTables, build_default_tables
from wordguard.core.types import (
    BatchDetectionResult,
    DetectionResult,
    DetectionStrictness,
    EvasionTechnique,
    FilterStats,
    Match,
    MatchSource,
    Pattern,
    SeverityLevel,
)
from wordguard.core.whitelist import Whitelist, WhitelistEntry

__all__ = [
    "AutomatonHit",
    "AutomatonStateError",
    "BatchDetectionResult",
    "DetectionResult",
    "DetectionStrictness",
    "EvasionTechnique",
    "FilterStats",
    "InvalidImportError",
    "InvalidPatternError",
    "Match",
    "MatchSource",
    "NormalizationTables",
    "NormalizedText",
    "Normalizer",
    "NormalizerOptions",
    "Pattern",
    "PatternAutomaton",
    "SeverityLevel",
    "Whitelist",
    "WhitelistEntry",
    "WordGuardError",
    "build_default_tables",
]
