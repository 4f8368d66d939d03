"""
Fuzzy matching module

Near-miss matching of sensitive words that survived normalization in an
obfuscated form, plus evasion technique tagging.
"""

from wordguard.core.fuzzy.evasion import detect_evasion_techniques
from wordguard.core.fuzzy.matcher import (
    FuzzyMatcher,
    FuzzyMatchResult,
    FuzzyOptions,
    get_fuzzy_matcher,
    levenshtein_distance,
    matcher_for_options,
)

__all__ = [
    "FuzzyMatcher",
    "FuzzyMatchResult",
    "FuzzyOptions",
    "detect_evasion_techniques",
    "get_fuzzy_matcher",
    "levenshtein_distance",
    "matcher_for_options",
]
