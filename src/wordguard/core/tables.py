"""
Normalization tables

Character-fold and substitution maps used by the normalization pipeline.
Tables are read-only: build them once with ``build_default_tables`` (or
construct a custom ``NormalizationTables``) and inject them into a
``Normalizer``.
"""

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Mapping


def _frozen(mapping: dict[str, str]) -> Mapping[str, str]:
    return MappingProxyType(dict(mapping))


def _letter_block(first: int, last: int) -> dict[str, str]:
    """Map a contiguous A..Z block of code points to lowercase ASCII."""
    return {chr(cp): chr(ord("a") + i) for i, cp in enumerate(range(first, last + 1))}


# Stage 1: zero-width, filler and other invisible format characters
INVISIBLE_CHARS = frozenset(
    "\u00ad"                                # soft hyphen
    "\u034f"                                # combining grapheme joiner
    "\u115f\u1160\u3164\uffa0"              # hangul fillers
    "\u17b4\u17b5"                          # khmer inherent vowels
    "\u180b\u180c\u180d\u180e"              # mongolian selectors, vowel separator
    "\u200b\u200c\u200d"                    # zero width space, non-joiner, joiner
    "\u2060\u2061\u2062\u2063\u2064"
    "\u206a\u206b\u206c\u206d\u206e\u206f"
    "\ufeff"                                # byte order mark
    + "".join(chr(cp) for cp in range(0xFE00, 0xFE10))      # variation selectors
    + "".join(chr(cp) for cp in range(0xE0000, 0xE0080))    # tag characters
)

# Stage 2: bidirectional controls and elongation
BIDI_CHARS = frozenset(
    "\u061c\u200e\u200f"
    "\u202a\u202b\u202c\u202d\u202e"
    "\u2066\u2067\u2068\u2069"
)
ELONGATION_CHARS = frozenset("\u0640")  # arabic tatweel

# Stage 3: many-to-one letterform folds within a script
SCRIPT_VARIANTS = {
    # arabic alef forms -> bare alef
    "آ": "ا", "أ": "ا", "إ": "ا",
    "ٱ": "ا", "ٲ": "ا", "ٳ": "ا",
    # yeh forms -> yeh
    "ى": "ي", "ی": "ي", "ئ": "ي",
    # teh marbuta and heh forms -> heh
    "ة": "ه", "ۀ": "ه", "ھ": "ه", "ە": "ه",
    # waw with hamza -> waw
    "ؤ": "و",
    # persian/swash kaf -> kaf
    "ک": "ك", "ڪ": "ك",
    # latin long s, greek final sigma
    "ſ": "s",
    "ς": "σ",
}

# Stage 5: visual look-alikes that compatibility folding does not cover
CONFUSABLES = {
    # cyrillic
    "а": "a", "в": "b", "е": "e", "к": "k", "м": "m",
    "н": "h", "о": "o", "р": "p", "с": "c", "т": "t",
    "у": "y", "х": "x", "ѕ": "s", "і": "i", "ј": "j",
    "ԁ": "d", "ԛ": "q", "ԝ": "w",
    "А": "a", "В": "b", "Е": "e", "К": "k", "М": "m",
    "Н": "h", "О": "o", "Р": "p", "С": "c", "Т": "t",
    "У": "y", "Х": "x", "Ѕ": "s", "І": "i", "Ј": "j",
    # greek
    "α": "a", "β": "b", "γ": "y", "ε": "e", "ι": "i",
    "κ": "k", "ν": "v", "ο": "o", "ρ": "p", "τ": "t",
    "υ": "u", "χ": "x", "ω": "w",
    "Α": "a", "Β": "b", "Ε": "e", "Ζ": "z", "Η": "h",
    "Ι": "i", "Κ": "k", "Μ": "m", "Ν": "n", "Ο": "o",
    "Ρ": "p", "Τ": "t", "Υ": "y", "Χ": "x",
    # latin letters with strokes and small capitals
    "ƒ": "f", "ł": "l", "đ": "d", "ħ": "h", "ø": "o",
    "ı": "i", "ɑ": "a", "ɡ": "g", "Ø": "o", "Ł": "l",
    "ᴀ": "a", "ʙ": "b", "ᴄ": "c", "ᴅ": "d", "ᴇ": "e",
    "ꜰ": "f", "ɢ": "g", "ʜ": "h", "ɪ": "i", "ᴊ": "j",
    "ᴋ": "k", "ʟ": "l", "ᴍ": "m", "ɴ": "n", "ᴏ": "o",
    "ᴘ": "p", "ʀ": "r", "ꜱ": "s", "ᴛ": "t", "ᴜ": "u",
    "ᴠ": "v", "ᴡ": "w", "ʏ": "y", "ᴢ": "z",
    # symbols shaped like letters
    "†": "t", "×": "x", "¢": "c",
}
CONFUSABLES.update(_letter_block(0x1F130, 0x1F149))  # squared latin letters
CONFUSABLES.update(_letter_block(0x1F150, 0x1F169))  # negative circled
CONFUSABLES.update(_letter_block(0x1F170, 0x1F189))  # negative squared
CONFUSABLES.update(_letter_block(0x1F1E6, 0x1F1FF))  # regional indicators

# Stage 6: closest latin phonetic equivalent, for mixed-script text only
PHONETIC = {
    # arabic
    "ا": "a", "ب": "b", "ت": "t", "ث": "th", "ج": "j",
    "ح": "h", "خ": "kh", "د": "d", "ذ": "th", "ر": "r",
    "ز": "z", "س": "s", "ش": "sh", "ص": "s", "ض": "d",
    "ط": "t", "ظ": "z", "ع": "a", "غ": "gh", "ف": "f",
    "ق": "q", "ك": "k", "ل": "l", "م": "m", "ن": "n",
    "ه": "h", "و": "w", "ي": "y",
    # cyrillic letters without a look-alike
    "б": "b", "г": "g", "д": "d", "ж": "zh", "з": "z",
    "и": "i", "й": "i", "л": "l", "п": "p", "ф": "f",
    "ц": "ts", "ч": "ch", "ш": "sh", "щ": "sch", "ъ": "",
    "ы": "y", "ь": "", "э": "e", "ю": "yu", "я": "ya",
    # greek
    "δ": "d", "ζ": "z", "η": "i", "θ": "th", "λ": "l",
    "μ": "m", "ξ": "x", "π": "p", "σ": "s", "φ": "f",
    "ψ": "ps",
}

# Stage 7: leet and decorative symbols ("" removes the character)
SYMBOL_SUBSTITUTIONS = {
    "@": "a", "$": "s", "!": "i", "+": "t", "|": "l", "€": "e",
    "0": "o", "1": "i", "3": "e", "4": "a", "5": "s", "7": "t", "8": "b", "9": "g",
    "*": "", "~": "", "^": "", "`": "",
}

# Substituted only when a letter follows, so "damn!" keeps its punctuation
TRAILING_EXEMPT = frozenset("!+|")

# Stage 8: characters used as artificial word spacing (besides whitespace)
SEPARATORS = frozenset("._-")


@dataclass(frozen=True)
class NormalizationTables:
    """Immutable bundle of every table the pipeline consults."""

    invisible: frozenset = INVISIBLE_CHARS
    bidi: frozenset = BIDI_CHARS
    elongation: frozenset = ELONGATION_CHARS
    script_variants: Mapping[str, str] = field(default_factory=lambda: _frozen(SCRIPT_VARIANTS))
    confusables: Mapping[str, str] = field(default_factory=lambda: _frozen(CONFUSABLES))
    phonetic: Mapping[str, str] = field(default_factory=lambda: _frozen(PHONETIC))
    symbols: Mapping[str, str] = field(default_factory=lambda: _frozen(SYMBOL_SUBSTITUTIONS))
    trailing_exempt: frozenset = TRAILING_EXEMPT
    separators: frozenset = SEPARATORS

    @property
    def substitution_chars(self) -> frozenset:
        """Characters known to stand in for a plain letter."""
        return frozenset(self.confusables) | frozenset(
            ch for ch, repl in self.symbols.items() if repl
        )


_DEFAULT_TABLES: NormalizationTables | None = None


def build_default_tables() -> NormalizationTables:
    """Return the shared default tables, constructing them on first use."""
    global _DEFAULT_TABLES
    if _DEFAULT_TABLES is None:
        _DEFAULT_TABLES = NormalizationTables()
    return _DEFAULT_TABLES
