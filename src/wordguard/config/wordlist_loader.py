"""YAML word-list loader.

Word lists map categories to sensitive words. Each entry may list spelling
variations, which become patterns of their own with the same severity.

Example YAML word list:

    language: en
    categories:
      profanity:
        - word: damn
          severity: 1
          variations: [dammit]
"""

from importlib import resources
from pathlib import Path
from typing import Iterable, Optional

import yaml

from wordguard.core.errors import InvalidPatternError
from wordguard.core.types import SUPPORTED_LANGUAGES, Pattern
from wordguard.logging import get_logger

logger = get_logger(__name__)

DEFAULT_WORDLISTS = {
    "en": "english.yaml",
    "ar": "arabic.yaml",
}


def parse_word_list(data: object, source: str = "<data>") -> list[Pattern]:
    """Turn a parsed YAML word list into patterns.

    Args:
        data: Parsed YAML document.
        source: Name used in error messages.

    Returns:
        Patterns in document order, variations right after their word.

    Raises:
        ValueError: If the structure is invalid or an entry fails validation.
    """
    if data is None:
        return []

    if not isinstance(data, dict):
        raise ValueError(f"Invalid word list structure in {source}: expected dict, got {type(data).__name__}")

    language = data.get("language", "en")
    if language not in SUPPORTED_LANGUAGES:
        raise ValueError(f"Unsupported language in {source}: {language!r}")

    categories = data.get("categories", {})
    if not isinstance(categories, dict):
        raise ValueError(
            f"Invalid categories structure in {source}: expected dict, got {type(categories).__name__}"
        )

    patterns = []
    for category, entries in categories.items():
        if entries is None:
            continue
        if not isinstance(entries, list):
            raise ValueError(f"Category {category!r} in {source} is not a list")

        for i, entry in enumerate(entries):
            if isinstance(entry, str):
                entry = {"word": entry}
            if not isinstance(entry, dict):
                raise ValueError(f"Entry {i} of {category!r} is not a dict: {type(entry).__name__}")
            if "word" not in entry:
                raise ValueError(f"Entry {i} of {category!r} missing required field: word")

            severity = entry.get("severity", 2)
            words = [entry["word"], *(entry.get("variations") or [])]
            for word in words:
                try:
                    patterns.append(
                        Pattern(
                            word=word,
                            severity=severity,
                            category=str(category),
                            language=language,
                        )
                    )
                except InvalidPatternError as e:
                    raise ValueError(f"Entry {i} of {category!r} in {source}: {e}") from e

    return patterns


def load_words_from_yaml(path: Path | str) -> list[Pattern]:
    """Load patterns from a YAML word-list file.

    Args:
        path: Path to the YAML word list.

    Returns:
        List of Pattern objects.

    Raises:
        FileNotFoundError: If the word list doesn't exist.
        ValueError: If the YAML structure is invalid.
        yaml.YAMLError: If the YAML is malformed.
    """
    path = Path(path)

    if not path.exists():
        raise FileNotFoundError(f"Word list not found: {path}")

    with open(path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f)

    patterns = parse_word_list(data, source=str(path))
    logger.info(
        "Word list loaded",
        extra={"path": str(path), "words": len(patterns)},
    )
    return patterns


def load_words_from_yaml_safe(path: Path | str) -> tuple[list[Pattern], Optional[str]]:
    """Load a word list, returning any error message instead of raising.

    Args:
        path: Path to the YAML word list.

    Returns:
        Tuple of (patterns, error_message). If successful, error_message is None.
        If failed, patterns is an empty list.
    """
    try:
        return load_words_from_yaml(path), None
    except FileNotFoundError as e:
        return [], str(e)
    except yaml.YAMLError as e:
        return [], f"YAML parsing error: {e}"
    except ValueError as e:
        return [], f"Validation error: {e}"


def load_default_words(languages: Optional[Iterable[str]] = None) -> list[Pattern]:
    """Load the word lists bundled with the package.

    Args:
        languages: Languages to load; all bundled languages by default.

    Returns:
        Patterns of the requested languages.
    """
    languages = list(languages) if languages is not None else list(DEFAULT_WORDLISTS)

    patterns = []
    data_dir = resources.files("wordguard.data")
    for language in languages:
        filename = DEFAULT_WORDLISTS.get(language)
        if filename is None:
            raise ValueError(f"No bundled word list for language: {language!r}")
        data = yaml.safe_load(data_dir.joinpath(filename).read_text(encoding="utf-8"))
        patterns.extend(parse_word_list(data, source=filename))

    logger.debug("Default word lists loaded", extra={"words": len(patterns)})
    return patterns
