"""
Word filter

The public facade: owns the word set, the configuration, the automatons and
the whitelist, and runs detection through the reconciler.

Usage:
    guard = WordFilter()
    result = guard.detect("some text")
    cleaned = guard.clean("some text")
"""

import asyncio
import json
import threading
import time
from datetime import datetime, timezone
from typing import Any, Iterable, Mapping, Optional, Sequence, Union

from wordguard.config.filter_config import FilterConfig
from wordguard.config.wordlist_loader import load_default_words
from wordguard.core.automaton import PatternAutomaton
from wordguard.core.errors import InvalidImportError, InvalidPatternError
from wordguard.core.fuzzy import FuzzyMatcher, matcher_for_options
from wordguard.core.normalizer import Normalizer
from wordguard.core.reconciler import DetectionEngines, MatchReconciler
from wordguard.core.types import (
    BatchDetectionResult,
    DetectionResult,
    DetectionStrictness,
    FilterStats,
    Pattern,
    SeverityLevel,
)
from wordguard.core.whitelist import EntryLike, Whitelist, WhitelistEntry
from wordguard.logging import get_logger, scan_context
from wordguard.utils.text import sanitize_for_logging

logger = get_logger(__name__)

EXPORT_VERSION = "1.0.0"

_CANONICAL = Normalizer.canonical()

WordLike = Union[str, Pattern]
ConfigLike = Union[FilterConfig, Mapping[str, Any], None]


class WordFilter:
    """Sensitive word filter.

    Every change to the word set or to the configuration builds new
    automatons and swaps them in; a detection running concurrently keeps
    using the automatons it started with. Mutations are serialized with a
    re-entrant lock.

    Args:
        config: Default options; ``FilterConfig()`` if omitted.
        words: Custom words added on construction.
        whitelist: Initial whitelist entries.
        load_defaults: Load the bundled word lists.
    """

    def __init__(
        self,
        config: Optional[FilterConfig] = None,
        words: Optional[Iterable[WordLike]] = None,
        whitelist: Iterable[EntryLike] = (),
        load_defaults: bool = True,
    ):
        if config is not None and not isinstance(config, FilterConfig):
            raise TypeError(f"config must be a FilterConfig, got {type(config).__name__}")

        self._lock = threading.RLock()
        self._config = config or FilterConfig()
        self._default_words: tuple[Pattern, ...] = (
            tuple(load_default_words()) if load_defaults else ()
        )
        self._custom_words: tuple[Pattern, ...] = tuple(
            self._coerce_words(words or ())
        )
        self._whitelist = Whitelist(whitelist)
        self._reconciler = MatchReconciler(self._whitelist)
        self._engines = self._build_engines(self._config)

    # ------------------------------------------------------------------
    # Pattern management
    # ------------------------------------------------------------------

    def add_word(
        self,
        word: WordLike,
        severity: int = SeverityLevel.MODERATE,
        category: str = "general",
        language: str = "en",
    ) -> Pattern:
        """Add a custom word.

        Args:
            word: The word, or a ready-made Pattern (other arguments are
                then ignored).
            severity: Severity from 1 to 4.
            category: Category name.
            language: ``en`` or ``ar``.

        Returns:
            The added Pattern.

        Raises:
            InvalidPatternError: If the word fails validation.
        """
        if isinstance(word, Pattern):
            pattern = word
        else:
            pattern = Pattern(word=word, severity=severity, category=category, language=language)
        self._check_normalizes(pattern)

        with self._lock:
            self._custom_words = self._custom_words + (pattern,)
            self._rebuild()
        return pattern

    def add_words(self, words: Iterable[WordLike]) -> list[Pattern]:
        """Add several custom words; nothing is added if any is invalid."""
        patterns = self._coerce_words(words)
        with self._lock:
            self._custom_words = self._custom_words + tuple(patterns)
            self._rebuild()
        return patterns

    def remove_word(self, word: str) -> bool:
        """Remove a custom word (case-insensitive).

        Returns:
            True if a word was removed.
        """
        target = (word or "").strip().lower()
        with self._lock:
            kept = tuple(p for p in self._custom_words if p.word.lower() != target)
            if len(kept) == len(self._custom_words):
                return False
            self._custom_words = kept
            self._rebuild()
        return True

    def clear_custom_words(self) -> None:
        with self._lock:
            self._custom_words = ()
            self._rebuild()

    @property
    def custom_words(self) -> list[Pattern]:
        return list(self._custom_words)

    @property
    def words(self) -> list[Pattern]:
        """Every known word, defaults first."""
        return list(self._default_words + self._custom_words)

    def _coerce_words(self, words: Iterable[WordLike]) -> list[Pattern]:
        patterns = []
        for i, word in enumerate(words):
            if isinstance(word, Pattern):
                pattern = word
            elif isinstance(word, str):
                pattern = Pattern(word=word)
            else:
                raise InvalidPatternError(
                    f"Word {i} must be a string or Pattern, got {type(word).__name__}"
                )
            self._check_normalizes(pattern)
            patterns.append(pattern)
        return patterns

    @staticmethod
    def _check_normalizes(pattern: Pattern) -> None:
        if not _CANONICAL.normalize(pattern.word):
            raise InvalidPatternError(f"Pattern {pattern.word!r} normalizes to nothing")

    # ------------------------------------------------------------------
    # Configuration
    # ------------------------------------------------------------------

    @property
    def config(self) -> FilterConfig:
        return self._config

    def set_config(self, config: FilterConfig) -> None:
        """Replace the default options and rebuild the automatons."""
        if not isinstance(config, FilterConfig):
            raise TypeError(f"config must be a FilterConfig, got {type(config).__name__}")
        with self._lock:
            self._config = config
            self._rebuild()

    def set_options(self, **overrides: Any) -> FilterConfig:
        """Replace some default options; returns the new config."""
        with self._lock:
            config = self._config.with_options(**overrides)
            self.set_config(config)
        return config

    def with_options(self, **overrides: Any) -> FilterConfig:
        """Return a validated copy of the config, for use as a per-call config."""
        return self._config.with_options(**overrides)

    def _resolve_config(self, config: ConfigLike) -> FilterConfig:
        if config is None:
            return self._config
        if isinstance(config, FilterConfig):
            return config
        if isinstance(config, Mapping):
            return self._config.with_options(**config)
        raise TypeError(f"config must be a FilterConfig or mapping, got {type(config).__name__}")

    # ------------------------------------------------------------------
    # Whitelist
    # ------------------------------------------------------------------

    def add_to_whitelist(self, entry: EntryLike) -> WhitelistEntry:
        with self._lock:
            return self._whitelist.add(entry)

    def add_many_to_whitelist(self, entries: Iterable[EntryLike]) -> int:
        with self._lock:
            return self._whitelist.add_many(entries)

    def remove_from_whitelist(self, word: str) -> bool:
        with self._lock:
            return self._whitelist.remove(word)

    def clear_whitelist(self) -> None:
        with self._lock:
            self._whitelist.clear()

    def get_whitelist(self) -> list[WhitelistEntry]:
        return self._whitelist.entries

    def is_whitelisted(self, word: str) -> bool:
        return self._whitelist.contains(word)

    def load_whitelist_file(self, path, case_sensitive: bool = False) -> int:
        """Add whitelist entries from a text file (one per line)."""
        with self._lock:
            return self._whitelist.load_from_file(path, case_sensitive=case_sensitive)

    # ------------------------------------------------------------------
    # Detection
    # ------------------------------------------------------------------

    def detect(self, text: str, config: ConfigLike = None) -> DetectionResult:
        """Detect sensitive words in text.

        Args:
            text: Text to check.
            config: Options for this call only. Overrides given as a
                mapping are applied to the filter's config and validated
                before anything runs.

        Returns:
            DetectionResult with positions in ``text``.
        """
        return self._detect(text, self._resolve_config(config))

    def has_match(self, text: str, config: ConfigLike = None) -> bool:
        return self.detect(text, config).has_match

    def clean(
        self,
        text: str,
        replacement_char: Optional[str] = None,
        config: ConfigLike = None,
    ) -> str:
        """Return text with every match masked.

        Raises:
            ValueError: If ``replacement_char`` is not a single character.
        """
        resolved = self._resolve_config(config)
        char = resolved.replacement_char if replacement_char is None else replacement_char
        if not isinstance(char, str) or len(char) != 1:
            raise ValueError(f"replacement_char must be a single character, got {char!r}")
        result = self._detect(text, resolved, replacement_char=char)
        return result.cleaned_text if result.cleaned_text is not None else text

    def _detect(
        self,
        text: str,
        config: FilterConfig,
        replacement_char: Optional[str] = None,
    ) -> DetectionResult:
        engines = self._engines
        if config is not self._config and config.automaton_key != self._config.automaton_key:
            logger.debug("Building transient automaton for per-call config")
            engines = self._build_engines(config)

        fuzzy = self._fuzzy_matcher(config) if config.enable_fuzzy_matching else None
        result = self._reconciler.detect(
            text,
            config,
            engines,
            fuzzy_matcher=fuzzy,
            replacement_char=replacement_char,
        )
        if result.has_match:
            logger.debug(
                "Sensitive words detected",
                extra={
                    "matches": len(result.matches),
                    "preview": sanitize_for_logging(text),
                },
            )
        return result

    def _fuzzy_matcher(self, config: FilterConfig) -> FuzzyMatcher:
        return matcher_for_options(config.fuzzy_options())

    # ------------------------------------------------------------------
    # Batch and async
    # ------------------------------------------------------------------

    def detect_batch(self, texts: Sequence[str], config: ConfigLike = None) -> BatchDetectionResult:
        """Detect sensitive words in several texts."""
        resolved = self._resolve_config(config)
        with scan_context():
            start = time.perf_counter()
            results = [self._detect(text, resolved) for text in texts]
            return _batch_result(results, start)

    def has_match_in_any(self, texts: Iterable[str], config: ConfigLike = None) -> bool:
        """Check texts in order, stopping at the first match."""
        resolved = self._resolve_config(config)
        return any(self._detect(text, resolved).has_match for text in texts)

    def clean_batch(
        self,
        texts: Iterable[str],
        replacement_char: Optional[str] = None,
        config: ConfigLike = None,
    ) -> list[str]:
        resolved = self._resolve_config(config)
        return [self.clean(text, replacement_char, resolved) for text in texts]

    async def detect_async(self, text: str, config: ConfigLike = None) -> DetectionResult:
        """Coroutine wrapper around ``detect``; yields once before running."""
        resolved = self._resolve_config(config)
        await asyncio.sleep(0)
        return self._detect(text, resolved)

    async def detect_batch_async(
        self,
        texts: Sequence[str],
        config: ConfigLike = None,
        chunk_size: int = 100,
    ) -> BatchDetectionResult:
        """Detect in chunks, yielding to the event loop between chunks.

        Texts are processed in order. A chunk, once started, runs to
        completion; cancellation takes effect between chunks.

        Raises:
            ValueError: If ``chunk_size`` is less than 1.
        """
        if chunk_size < 1:
            raise ValueError(f"chunk_size must be >= 1, got {chunk_size}")

        texts = list(texts)
        resolved = self._resolve_config(config)
        with scan_context():
            start = time.perf_counter()
            results: list[DetectionResult] = []
            for offset in range(0, len(texts), chunk_size):
                for text in texts[offset:offset + chunk_size]:
                    results.append(self._detect(text, resolved))
                if offset + chunk_size < len(texts):
                    await asyncio.sleep(0)
            return _batch_result(results, start)

    # ------------------------------------------------------------------
    # Import / export
    # ------------------------------------------------------------------

    def export_custom_words(self) -> dict[str, Any]:
        return {
            "version": EXPORT_VERSION,
            "exported_at": datetime.now(timezone.utc).isoformat(),
            "words": [p.to_dict() for p in self._custom_words],
        }

    def import_words(self, payload: Mapping[str, Any], replace: bool = False) -> int:
        """Import custom words from ``export_custom_words`` output.

        The payload is validated completely before anything changes. When
        merging, words already present (case-insensitive) are skipped.

        Returns:
            Number of words added.

        Raises:
            InvalidImportError: If the payload is malformed.
        """
        if not isinstance(payload, Mapping):
            raise InvalidImportError(
                f"Invalid word list format: expected a mapping, got {type(payload).__name__}"
            )
        if not payload.get("version") or "words" not in payload:
            raise InvalidImportError("Invalid word list format: 'version' and 'words' are required")
        raw_words = payload["words"]
        if not isinstance(raw_words, list):
            raise InvalidImportError(
                f"Invalid word list format: 'words' must be a list, got {type(raw_words).__name__}"
            )

        patterns = [self._parse_import_word(i, raw) for i, raw in enumerate(raw_words)]

        with self._lock:
            if replace:
                added = tuple(patterns)
                self._custom_words = added
            else:
                existing = {p.word.lower() for p in self._custom_words}
                added = tuple(p for p in patterns if p.word.lower() not in existing)
                self._custom_words = self._custom_words + added
            self._rebuild()

        logger.info(
            "Custom words imported",
            extra={"words": len(added), "replace": replace},
        )
        return len(added)

    def _parse_import_word(self, index: int, raw: object) -> Pattern:
        if not isinstance(raw, Mapping):
            raise InvalidImportError(f"Word {index} is not a mapping: {type(raw).__name__}")
        for required in ("word", "severity"):
            if required not in raw:
                raise InvalidImportError(f"Word {index} missing required field: {required}")
        try:
            pattern = Pattern(
                word=raw["word"],
                severity=raw["severity"],
                category=raw.get("category") or "general",
                language=raw.get("language") or "en",
            )
            self._check_normalizes(pattern)
        except InvalidPatternError as e:
            raise InvalidImportError(f"Invalid word {index} in import: {e}") from e
        return pattern

    def export_to_json(self, indent: int = 2) -> str:
        return json.dumps(self.export_custom_words(), ensure_ascii=False, indent=indent)

    def import_from_json(self, data: str, replace: bool = False) -> int:
        try:
            payload = json.loads(data)
        except json.JSONDecodeError as e:
            raise InvalidImportError(f"Invalid JSON: {e}") from e
        return self.import_words(payload, replace=replace)

    def export_whitelist(self) -> list[dict]:
        return self._whitelist.export()

    def import_whitelist(self, entries: Iterable[object], replace: bool = False) -> int:
        with self._lock:
            return self._whitelist.import_entries(entries, replace=replace)

    # ------------------------------------------------------------------
    # Statistics
    # ------------------------------------------------------------------

    def get_stats(self) -> FilterStats:
        """Count the known words by language, severity and category."""
        defaults = self._default_words
        custom = self._custom_words
        stats = FilterStats(
            total_words=len(defaults) + len(custom),
            custom_words=len(custom),
            default_words=len(defaults),
            whitelist_count=len(self._whitelist),
            by_language={"en": 0, "ar": 0},
            by_severity={int(level): 0 for level in SeverityLevel},
        )
        for pattern in defaults + custom:
            stats.by_language[pattern.language] = stats.by_language.get(pattern.language, 0) + 1
            stats.by_severity[int(pattern.severity)] += 1
            stats.by_category[pattern.category] = stats.by_category.get(pattern.category, 0) + 1
        return stats

    # ------------------------------------------------------------------
    # Automaton lifecycle
    # ------------------------------------------------------------------

    def _rebuild(self) -> None:
        # Called with the lock held
        self._engines = self._build_engines(self._config)

    def _build_engines(self, config: FilterConfig) -> DetectionEngines:
        active = tuple(p for p in self._default_words + self._custom_words if config.accepts(p))

        normalizer = config.automaton_normalizer()
        automaton = PatternAutomaton.from_patterns(
            active, key_func=lambda p: normalizer.normalize(p.word)
        )

        recall_automaton = None
        recall_normalizer = None
        if config.strictness == DetectionStrictness.PARANOID:
            recall_normalizer = config.maximum_recall_normalizer()
            recall_automaton = PatternAutomaton()
            for pattern in active:
                # Words made only of symbols vanish under maximum recall
                for key in recall_normalizer.key_variants(pattern.word):
                    recall_automaton.insert(pattern, key)
            recall_automaton.build()

        logger.debug(
            "Detection automatons rebuilt",
            extra={"active_words": len(active), "profile": normalizer.name},
        )
        return DetectionEngines(
            patterns=active,
            automaton=automaton,
            normalizer=normalizer,
            recall_automaton=recall_automaton,
            recall_normalizer=recall_normalizer,
        )


def _batch_result(results: list[DetectionResult], start: float) -> BatchDetectionResult:
    elapsed = (time.perf_counter() - start) * 1000
    total = sum(len(r.matches) for r in results)
    logger.debug(
        "Batch scan finished",
        extra={"texts": len(results), "matches": total, "elapsed_ms": round(elapsed, 3)},
    )
    return BatchDetectionResult(results=results, processing_time_ms=elapsed, total_matches=total)


# ----------------------------------------------------------------------
# Presets
# ----------------------------------------------------------------------


def create_strict_filter(**overrides: Any) -> WordFilter:
    """HIGH strictness with fuzzy matching."""
    return _preset(
        {"strictness": DetectionStrictness.HIGH, "enable_fuzzy_matching": True},
        overrides,
    )


def create_balanced_filter(**overrides: Any) -> WordFilter:
    """MEDIUM strictness with fuzzy matching and context-aware suppression."""
    return _preset(
        {
            "strictness": DetectionStrictness.MEDIUM,
            "enable_fuzzy_matching": True,
            "context_aware": True,
        },
        overrides,
    )


def create_paranoid_filter(**overrides: Any) -> WordFilter:
    """PARANOID strictness with fuzzy and partial matching."""
    return _preset(
        {
            "strictness": DetectionStrictness.PARANOID,
            "enable_fuzzy_matching": True,
            "partial_match": True,
        },
        overrides,
    )


def _preset(defaults: dict[str, Any], overrides: dict[str, Any]) -> WordFilter:
    """Build a filter; ``words``, ``whitelist`` and ``load_defaults`` go to
    the constructor, everything else into the config."""
    filter_kwargs = {
        key: overrides.pop(key)
        for key in ("words", "whitelist", "load_defaults")
        if key in overrides
    }
    config = FilterConfig.from_dict({**defaults, **overrides})
    return WordFilter(config=config, **filter_kwargs)
