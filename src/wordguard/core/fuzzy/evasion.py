"""
Evasion technique tagging

Best-effort classification of how a matched span of original text was
obfuscated. Tags are informational and never affect whether a match is
reported.
"""

import re
import unicodedata
from typing import Optional

from wordguard.core.tables import NormalizationTables, build_default_tables
from wordguard.core.types import EvasionTechnique
from wordguard.utils.text import is_mixed_script

_SPACING_RE = re.compile(r"\S\s+\S|[._\-|]")
_REPEAT_RE = re.compile(r"(.)\1{2,}", re.IGNORECASE)
_DIGIT_RE = re.compile(r"\d")


def detect_evasion_techniques(
    text: str,
    tables: Optional[NormalizationTables] = None,
) -> list[EvasionTechnique]:
    """Inspect original text for signs of evasion.

    Args:
        text: Slice of original text (usually one match span).
        tables: Substitution tables; defaults to the shared tables.

    Returns:
        Detected techniques, each at most once, in declaration order.

    Examples:
        >>> detect_evasion_techniques("f@ck")
        [<EvasionTechnique.SYMBOL_REPLACEMENT: 'symbol_replacement'>]
    """
    if not text:
        return []

    tables = tables or build_default_tables()
    found: set[EvasionTechnique] = set()

    symbol_chars = {ch for ch in tables.symbols if not ch.isalnum()} | {"#"}
    if any(ch in symbol_chars for ch in text):
        found.add(EvasionTechnique.SYMBOL_REPLACEMENT)

    if _SPACING_RE.search(text) or any(ch in tables.invisible for ch in text):
        found.add(EvasionTechnique.SPACE_INSERTION)

    if _REPEAT_RE.search(text):
        found.add(EvasionTechnique.REPEATED_LETTERS)

    if _DIGIT_RE.search(text) and any(ch.isalpha() for ch in text):
        found.add(EvasionTechnique.LEET_SPEAK)

    if is_mixed_script(text):
        found.add(EvasionTechnique.LANGUAGE_MIXING)

    if any(_is_substituted_letter(ch, tables) for ch in text):
        found.add(EvasionTechnique.CHARACTER_SUBSTITUTION)

    return [technique for technique in EvasionTechnique if technique in found]


def _is_substituted_letter(ch: str, tables: NormalizationTables) -> bool:
    """Homoglyphs and compatibility forms (fullwidth, circled, ...)."""
    if ch in tables.confusables:
        return True
    return ch.isalpha() and unicodedata.normalize("NFKC", ch) != ch
