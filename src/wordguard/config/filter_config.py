"""Filter configuration.

``FilterConfig`` is a fully-defaulted, immutable value validated when it is
constructed. Overrides never cascade: ``with_options`` builds and validates a
new config up front.

Example YAML configuration:

    wordguard:
      strictness: high
      enable_fuzzy_matching: true
      languages: [en]
      min_severity: 2
"""

import dataclasses
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Mapping, Optional

import yaml

from wordguard.core.fuzzy import FuzzyOptions
from wordguard.core.normalizer import Normalizer
from wordguard.core.types import SUPPORTED_LANGUAGES, DetectionStrictness, Pattern

CONFIG_SECTION = "wordguard"


def _coerce_strictness(value: Any) -> DetectionStrictness:
    if isinstance(value, DetectionStrictness):
        return value
    if isinstance(value, str):
        try:
            return DetectionStrictness[value.strip().upper()]
        except KeyError:
            raise ValueError(f"Unknown strictness: {value!r}") from None
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"Strictness must be an integer between 1 and 4, got {value!r}")
    try:
        return DetectionStrictness(value)
    except ValueError:
        raise ValueError(f"Strictness must be between 1 and 4, got {value}") from None


def _check_int(name: str, value: Any) -> None:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"{name} must be an integer, got {value!r}")


@dataclass(frozen=True)
class FilterConfig:
    """Detection options.

    Attributes:
        normalize: Run the canonical normalization before exact matching.
        partial_match: Report words inside longer words.
        enable_fuzzy_matching: Run the fuzzy matcher as well.
        strictness: Detection strictness, LOW (1) to PARANOID (4).
        max_edit_distance: Edit-distance allowance for fuzzy matching.
        detect_symbol_replacement: Fold leet and decorative symbols.
        detect_space_insertion: Join artificially spaced letters.
        detect_repeated_letters: Collapse repeated letters.
        detect_language_mixing: Fold mixed-script text phonetically.
        context_aware: Suppress words found only inside known safe words.
        min_severity: Lowest severity reported.
        max_severity: Highest severity reported.
        languages: Languages whose words are active.
        categories: Active categories; empty means all.
        replace_matches: Produce cleaned text in detection results.
        replacement_char: Character used to mask matches.
    """

    normalize: bool = True
    partial_match: bool = False
    enable_fuzzy_matching: bool = False
    strictness: DetectionStrictness = DetectionStrictness.MEDIUM
    max_edit_distance: int = 2
    detect_symbol_replacement: bool = True
    detect_space_insertion: bool = True
    detect_repeated_letters: bool = True
    detect_language_mixing: bool = True
    context_aware: bool = False
    min_severity: int = 1
    max_severity: int = 4
    languages: tuple[str, ...] = ("en", "ar")
    categories: tuple[str, ...] = ()
    replace_matches: bool = False
    replacement_char: str = "*"

    def __post_init__(self) -> None:
        """Validate configuration values."""
        object.__setattr__(self, "strictness", _coerce_strictness(self.strictness))

        _check_int("max_edit_distance", self.max_edit_distance)
        if self.max_edit_distance < 0:
            raise ValueError(f"max_edit_distance must be >= 0, got {self.max_edit_distance}")

        _check_int("min_severity", self.min_severity)
        _check_int("max_severity", self.max_severity)
        if not 1 <= self.min_severity <= 4:
            raise ValueError(f"min_severity must be between 1 and 4, got {self.min_severity}")
        if not 1 <= self.max_severity <= 4:
            raise ValueError(f"max_severity must be between 1 and 4, got {self.max_severity}")
        if self.min_severity > self.max_severity:
            raise ValueError(
                f"min_severity ({self.min_severity}) cannot exceed max_severity ({self.max_severity})"
            )

        if isinstance(self.languages, str):
            object.__setattr__(self, "languages", (self.languages,))
        languages = tuple(self.languages)
        unsupported = [lang for lang in languages if lang not in SUPPORTED_LANGUAGES]
        if unsupported:
            raise ValueError(f"Unsupported languages: {unsupported}")
        object.__setattr__(self, "languages", languages)

        if isinstance(self.categories, str):
            object.__setattr__(self, "categories", (self.categories,))
        object.__setattr__(self, "categories", tuple(self.categories))

        if not isinstance(self.replacement_char, str) or len(self.replacement_char) != 1:
            raise ValueError(
                f"replacement_char must be a single character, got {self.replacement_char!r}"
            )

    # ------------------------------------------------------------------
    # Derived views
    # ------------------------------------------------------------------

    @property
    def automaton_profile(self) -> str:
        """Name of the normalization profile used for exact matching."""
        if not self.normalize:
            return "literal-raw"
        if self.strictness == DetectionStrictness.LOW:
            return "literal"
        return "canonical"

    def automaton_normalizer(self) -> Normalizer:
        """Normalizer for exact matching under this config."""
        profile = self.automaton_profile
        if profile == "canonical":
            return Normalizer.canonical()
        return Normalizer.literal(collapse_whitespace=profile == "literal")

    def maximum_recall_normalizer(self) -> Normalizer:
        """Normalizer for the maximum-recall rescan."""
        return Normalizer.maximum_recall(
            symbols=self.detect_symbol_replacement,
            spacing=self.detect_space_insertion,
            mixing=self.detect_language_mixing,
        )

    @property
    def automaton_key(self) -> tuple:
        """Everything that determines the content of the automatons.

        Two configs with the same key can share automatons.
        """
        return (
            self.automaton_profile,
            self.min_severity,
            self.max_severity,
            tuple(sorted(self.languages)),
            tuple(sorted(self.categories)),
            self.strictness == DetectionStrictness.PARANOID,
            self.detect_symbol_replacement,
            self.detect_space_insertion,
            self.detect_language_mixing,
        )

    def accepts(self, pattern: Pattern) -> bool:
        """Check whether a pattern is active under this config."""
        if not self.min_severity <= pattern.severity <= self.max_severity:
            return False
        if pattern.language not in self.languages:
            return False
        if self.categories and pattern.category not in self.categories:
            return False
        return True

    def fuzzy_options(self) -> FuzzyOptions:
        return FuzzyOptions(
            strictness=self.strictness,
            max_edit_distance=self.max_edit_distance,
            detect_symbol_replacement=self.detect_symbol_replacement,
            detect_space_insertion=self.detect_space_insertion,
            detect_repeated_letters=self.detect_repeated_letters,
            detect_language_mixing=self.detect_language_mixing,
        )

    # ------------------------------------------------------------------
    # Construction helpers
    # ------------------------------------------------------------------

    def with_options(self, **overrides: Any) -> "FilterConfig":
        """Return a validated copy with some options replaced.

        Raises:
            ValueError: For unknown options or invalid values.
        """
        _check_known(overrides)
        return dataclasses.replace(self, **overrides)

    def to_dict(self) -> dict[str, Any]:
        data = dataclasses.asdict(self)
        data["strictness"] = int(self.strictness)
        data["languages"] = list(self.languages)
        data["categories"] = list(self.categories)
        return data

    @classmethod
    def from_dict(cls, data: Optional[Mapping[str, Any]]) -> "FilterConfig":
        """Build a config from a mapping.

        The options may sit under a ``wordguard`` key or at the top level.

        Raises:
            ValueError: If the structure or a value is invalid.
        """
        if data is None:
            return cls()
        if not isinstance(data, Mapping):
            raise ValueError(f"Invalid config structure: expected dict, got {type(data).__name__}")

        if CONFIG_SECTION in data:
            data = data[CONFIG_SECTION] or {}
            if not isinstance(data, Mapping):
                raise ValueError(
                    f"Invalid '{CONFIG_SECTION}' section: expected dict, got {type(data).__name__}"
                )

        _check_known(data)
        return cls(**dict(data))


def _check_known(options: Mapping[str, Any]) -> None:
    known = {f.name for f in fields(FilterConfig)}
    unknown = sorted(set(options) - known)
    if unknown:
        raise ValueError(f"Unknown configuration options: {unknown}")


def load_config_from_yaml(path: Path | str) -> FilterConfig:
    """Load a filter configuration from a YAML file.

    Args:
        path: Path to the YAML configuration file.

    Returns:
        FilterConfig; an empty file yields the defaults.

    Raises:
        FileNotFoundError: If the configuration file doesn't exist.
        ValueError: If the YAML structure or a value is invalid.
        yaml.YAMLError: If the YAML is malformed.
    """
    path = Path(path)

    if not path.exists():
        raise FileNotFoundError(f"Configuration file not found: {path}")

    with open(path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f)

    return FilterConfig.from_dict(data)
