"""
Text normalization pipeline

Ordered, independently toggleable stages that canonicalize text before
matching:

    1. strip invisible / zero-width / control characters
    2. strip bidirectional marks and elongation (tatweel)
    3. fold script letter variants (alef, yeh, teh marbuta, kaf, long s)
    4. strip diacritics and combining marks
    5. fold confusable glyphs (compatibility forms, homoglyphs, letter emoji)
    6. phonetic folding to Latin, for text that is mixed-script once
       leet symbols are read as letters
    7. collapse leet and decorative symbols
    8. collapse artificial word spacing
    9. collapse runs of 3+ identical characters to 2
   10. lowercase, collapse and trim whitespace

Every stage carries, for each output character, the index of the original
character it came from, so matches found in normalized text can be mapped
back onto the original.
"""

import unicodedata
from dataclasses import dataclass, fields
from typing import Callable, Optional

from wordguard.core.tables import NormalizationTables, build_default_tables
from wordguard.utils.text import is_mixed_script

_Chars = list[str]
_Offsets = list[int]


@dataclass(frozen=True)
class NormalizedText:
    """Normalized text together with its offset map.

    Attributes:
        text: The normalized text.
        original: The text that was normalized.
        offsets: For each character of ``text``, the index of the character
            of the original it came from (shifted by ``base``).
        base: Offset of ``original`` inside a larger text, if any.
    """

    text: str
    original: str
    offsets: tuple[int, ...]
    base: int = 0

    def __len__(self) -> int:
        return len(self.text)

    def to_original_span(self, start: int, length: int) -> tuple[int, int]:
        """Map a span of the normalized text onto the original.

        Args:
            start: Start index in ``text``.
            length: Number of characters in ``text``.

        Returns:
            ``(position, length)`` in original coordinates. Combining marks
            directly after the span are included in it.
        """
        if not self.offsets:
            return self.base, 0
        if start >= len(self.offsets):
            return self.offsets[-1] + 1, 0

        orig_start = self.offsets[start]
        if length <= 0:
            return orig_start, 0

        last = min(start + length, len(self.offsets)) - 1
        orig_end = self.offsets[last] + 1
        while (
            orig_end - self.base < len(self.original)
            and unicodedata.combining(self.original[orig_end - self.base])
        ):
            orig_end += 1
        return orig_start, orig_end - orig_start


@dataclass(frozen=True)
class NormalizerOptions:
    """Which pipeline stages run.

    ``maximum_recall`` replaces stages 9-10 with the lossy scanning tail:
    drop every non-alphanumeric character, lowercase, and collapse every
    repeated run to a single character.
    """

    strip_invisible: bool = True
    strip_bidi: bool = True
    fold_variants: bool = True
    strip_marks: bool = True
    fold_confusables: bool = True
    phonetic_folding: bool = True
    collapse_symbols: bool = True
    collapse_separators: bool = True
    collapse_repeats: bool = True
    lowercase: bool = True
    collapse_whitespace: bool = True
    maximum_recall: bool = False


class Normalizer:
    """Stateless text normalizer.

    Build one through a profile classmethod (``literal``, ``canonical``,
    ``evasion``, ``maximum_recall``) or from explicit ``NormalizerOptions``.
    Instances hold no per-call state and are safe to share between threads.
    """

    def __init__(
        self,
        options: Optional[NormalizerOptions] = None,
        tables: Optional[NormalizationTables] = None,
        name: str = "custom",
    ):
        self.options = options or NormalizerOptions()
        self.tables = tables or build_default_tables()
        self.name = name

    # ------------------------------------------------------------------
    # Profiles
    # ------------------------------------------------------------------

    @classmethod
    def literal(
        cls,
        collapse_whitespace: bool = True,
        tables: Optional[NormalizationTables] = None,
    ) -> "Normalizer":
        """Stage 10 only; with ``collapse_whitespace=False`` just lowercase."""
        options = _only(lowercase=True, collapse_whitespace=collapse_whitespace)
        name = "literal" if collapse_whitespace else "literal-raw"
        return cls(options, tables, name=name)

    @classmethod
    def canonical(cls, tables: Optional[NormalizationTables] = None) -> "Normalizer":
        """Stages 1-5 and 10."""
        options = _only(
            strip_invisible=True,
            strip_bidi=True,
            fold_variants=True,
            strip_marks=True,
            fold_confusables=True,
            lowercase=True,
            collapse_whitespace=True,
        )
        return cls(options, tables, name="canonical")

    @classmethod
    def evasion(
        cls,
        symbols: bool = True,
        spacing: bool = True,
        repeats: bool = True,
        mixing: bool = True,
        tables: Optional[NormalizationTables] = None,
    ) -> "Normalizer":
        """All stages, with 6-9 gated by the evasion toggles."""
        options = NormalizerOptions(
            phonetic_folding=mixing,
            collapse_symbols=symbols,
            collapse_separators=spacing,
            collapse_repeats=repeats,
        )
        return cls(options, tables, name=f"evasion-{_flags(symbols, spacing, repeats, mixing)}")

    @classmethod
    def maximum_recall(
        cls,
        symbols: bool = True,
        spacing: bool = True,
        mixing: bool = True,
        tables: Optional[NormalizationTables] = None,
    ) -> "Normalizer":
        """Stages 1-8 followed by the lossy scanning tail."""
        options = NormalizerOptions(
            phonetic_folding=mixing,
            collapse_symbols=symbols,
            collapse_separators=spacing,
            collapse_repeats=False,
            maximum_recall=True,
        )
        return cls(options, tables, name=f"maximum_recall-{_flags(symbols, spacing, mixing)}")

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def normalize(self, text: str, fold_script: Optional[bool] = None) -> str:
        """Normalize text and return the plain result."""
        return self.normalize_tracked(text, fold_script=fold_script).text

    def key_variants(self, word: str) -> tuple[str, ...]:
        """Keys a word can take in normalized text.

        A word written in one script is folded to Latin only when it sits in
        mixed-script text, so both spellings are returned when they differ.
        Empty keys are dropped.
        """
        keys = []
        for fold in (False, True):
            key = self.normalize(word or "", fold_script=fold)
            if key and key not in keys:
                keys.append(key)
        return tuple(keys)

    def normalize_tracked(
        self,
        text: str,
        offset: int = 0,
        fold_script: Optional[bool] = None,
    ) -> NormalizedText:
        """Normalize text, keeping the map back to original offsets.

        Args:
            text: Text to normalize.
            offset: Added to every recorded offset, for text that is a slice
                of a larger string.
            fold_script: Force phonetic folding on or off. By default it runs
                when the text is mixed-script once symbols are collapsed.

        Returns:
            NormalizedText for ``text``.
        """
        if not text:
            return NormalizedText(text="", original=text or "", offsets=(), base=offset)

        opts = self.options
        chars: _Chars = list(text)
        offs: _Offsets = list(range(offset, offset + len(text)))

        if opts.strip_invisible:
            chars, offs = _map_chars(chars, offs, self._drop_invisible)
        if opts.strip_bidi:
            chars, offs = _map_chars(chars, offs, self._drop_bidi)
        if opts.fold_variants:
            variants = self.tables.script_variants
            chars, offs = _map_chars(chars, offs, lambda ch: variants.get(ch, ch))
        if opts.strip_marks:
            chars, offs = _map_chars(chars, offs, _strip_marks)
        if opts.fold_confusables:
            chars, offs = _map_chars(chars, offs, self._fold_confusable)
        if opts.phonetic_folding:
            if fold_script is None:
                fold_script = self._is_mixed_after_symbols(chars, offs)
            if fold_script:
                phonetic = self.tables.phonetic
                chars, offs = _map_chars(chars, offs, lambda ch: phonetic.get(ch.lower(), ch))
        if opts.collapse_symbols:
            chars, offs = self._collapse_symbols(chars, offs)
        if opts.collapse_separators:
            chars, offs = self._collapse_separators(chars, offs)

        if opts.maximum_recall:
            chars, offs = _map_chars(chars, offs, lambda ch: ch if ch.isalnum() else "")
            chars, offs = _map_chars(chars, offs, _lower)
            chars, offs = _collapse_runs(chars, offs, keep=1)
        else:
            if opts.collapse_repeats:
                chars, offs = _collapse_runs(chars, offs, keep=2)
            if opts.lowercase:
                chars, offs = _map_chars(chars, offs, _lower)
            if opts.collapse_whitespace:
                chars, offs = _collapse_whitespace(chars, offs)

        return NormalizedText(
            text="".join(chars),
            original=text,
            offsets=tuple(offs),
            base=offset,
        )

    # ------------------------------------------------------------------
    # Stages
    # ------------------------------------------------------------------

    def _drop_invisible(self, ch: str) -> str:
        if ch in self.tables.invisible:
            return ""
        if unicodedata.category(ch) == "Cc" and not ch.isspace():
            return ""
        return ch

    def _drop_bidi(self, ch: str) -> str:
        if ch in self.tables.bidi or ch in self.tables.elongation:
            return ""
        return ch

    def _fold_confusable(self, ch: str) -> str:
        confusables = self.tables.confusables
        mapped = confusables.get(ch)
        if mapped is None:
            # Uppercase forms fold like their lowercase letter, or the
            # lowercasing stage would expose a new confusable.
            mapped = confusables.get(ch.lower())
        if mapped is not None:
            return mapped

        folded = unicodedata.normalize("NFKC", ch)
        if folded == ch:
            return ch

        # Compatibility output goes back through the variant and mark stages
        variants = self.tables.script_variants
        pieces = []
        for piece in folded:
            for base in _strip_marks(variants.get(piece, piece)):
                pieces.append(confusables.get(base, base))
        return "".join(pieces)

    def _is_mixed_after_symbols(self, chars: _Chars, offs: _Offsets) -> bool:
        # Leet digits and symbols turn into Latin letters in the next stage
        if self.options.collapse_symbols:
            chars, offs = self._collapse_symbols(chars, offs)
        return is_mixed_script("".join(chars))

    def _collapse_symbols(self, chars: _Chars, offs: _Offsets) -> tuple[_Chars, _Offsets]:
        symbols = self.tables.symbols
        exempt = self.tables.trailing_exempt

        # Right to left, so the character that ends up following a symbol
        # is already known when the symbol is decided.
        out_chars: _Chars = []
        out_offs: _Offsets = []
        for ch, off in zip(reversed(chars), reversed(offs)):
            replacement = symbols.get(ch)
            if replacement is None or (
                ch in exempt and not (out_chars and out_chars[-1].isalpha())
            ):
                out_chars.append(ch)
                out_offs.append(off)
                continue
            for piece in reversed(replacement):
                out_chars.append(piece)
                out_offs.append(off)

        out_chars.reverse()
        out_offs.reverse()
        return out_chars, out_offs

    def _collapse_separators(self, chars: _Chars, offs: _Offsets) -> tuple[_Chars, _Offsets]:
        separators = self.tables.separators
        is_sep = [ch.isspace() or ch in separators for ch in chars]

        segments: list[tuple[int, int, bool]] = []
        i = 0
        while i < len(chars):
            j = i
            while j < len(chars) and is_sep[j] == is_sep[i]:
                j += 1
            segments.append((i, j, is_sep[i]))
            i = j

        single = [
            not sep and end - start == 1 and chars[start].isalnum()
            for start, end, sep in segments
        ]

        # Separator segments inside a chain of 3+ single characters
        joined: set[int] = set()
        k = 0
        while k < len(segments):
            if not single[k]:
                k += 1
                continue
            last = k
            while last + 2 < len(segments) and single[last + 2]:
                last += 2
            if (last - k) // 2 + 1 >= 3:
                joined.update(range(k + 1, last, 2))
            k = last + 1

        out_chars: _Chars = []
        out_offs: _Offsets = []
        for idx, (start, end, sep) in enumerate(segments):
            if idx in joined:
                continue
            if sep and end - start >= 2:
                out_chars.append(" ")
                out_offs.append(offs[start])
            else:
                out_chars.extend(chars[start:end])
                out_offs.extend(offs[start:end])
        return out_chars, out_offs

    def __repr__(self) -> str:
        return f"Normalizer(name={self.name!r})"


def _only(**enabled: bool) -> NormalizerOptions:
    """Options with every stage off except the named ones."""
    values = {f.name: False for f in fields(NormalizerOptions)}
    values.update(enabled)
    return NormalizerOptions(**values)


def _flags(*toggles: bool) -> str:
    return "".join("1" if t else "0" for t in toggles)


def _map_chars(
    chars: _Chars, offs: _Offsets, func: Callable[[str], str]
) -> tuple[_Chars, _Offsets]:
    """Replace every character by ``func(ch)`` (zero or more characters)."""
    out_chars: _Chars = []
    out_offs: _Offsets = []
    for ch, off in zip(chars, offs):
        replacement = func(ch)
        if replacement == ch:
            out_chars.append(ch)
            out_offs.append(off)
            continue
        for piece in replacement:
            out_chars.append(piece)
            out_offs.append(off)
    return out_chars, out_offs


def _strip_marks(ch: str) -> str:
    """Drop combining marks from one character.

    Characters whose decomposition carries no mark are returned unchanged,
    so precomposed syllables (Hangul) are not split into jamo.
    """
    decomposed = unicodedata.normalize("NFD", ch)
    if not any(unicodedata.combining(c) for c in decomposed):
        return ch
    return "".join(c for c in decomposed if not unicodedata.combining(c))


def _lower(ch: str) -> str:
    lowered = ch.lower()
    if lowered == ch:
        return ch
    # e.g. U+0130 lowercases to "i" plus a combining dot
    return "".join(c for c in lowered if not unicodedata.combining(c))


def _collapse_runs(chars: _Chars, offs: _Offsets, keep: int) -> tuple[_Chars, _Offsets]:
    """Keep at most ``keep`` characters of each case-insensitive run."""
    out_chars: _Chars = []
    out_offs: _Offsets = []
    previous = None
    run = 0
    for ch, off in zip(chars, offs):
        key = ch.lower()
        if key == previous:
            run += 1
        else:
            previous = key
            run = 1
        if run <= keep:
            out_chars.append(ch)
            out_offs.append(off)
    return out_chars, out_offs


def _collapse_whitespace(chars: _Chars, offs: _Offsets) -> tuple[_Chars, _Offsets]:
    out_chars: _Chars = []
    out_offs: _Offsets = []
    pending: Optional[int] = None
    for ch, off in zip(chars, offs):
        if ch.isspace():
            if pending is None:
                pending = off
            continue
        if pending is not None and out_chars:
            out_chars.append(" ")
            out_offs.append(pending)
        pending = None
        out_chars.append(ch)
        out_offs.append(off)
    return out_chars, out_offs
