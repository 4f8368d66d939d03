"""Text processing utility functions."""

import re
import unicodedata
from typing import Iterator

# Word characters for boundary checks: \w plus the Arabic blocks, so that
# Arabic letters and their combining marks never count as a boundary.
WORD_CHAR_RE = re.compile(r"[\w\u0600-\u06FF\u0750-\u077F\u08A0-\u08FF]")

_TOKEN_RE = re.compile(r"\S+")

_WORD_TOKEN_RE = re.compile(r"[\w\u0600-\u06FF\u0750-\u077F\u08A0-\u08FF]+")


def is_word_char(char: str) -> bool:
    """Check whether a single character counts as part of a word.

    Examples:
        >>> is_word_char("a"), is_word_char("_"), is_word_char("-")
        (True, True, False)
    """
    return bool(char) and WORD_CHAR_RE.match(char) is not None


def is_latin_letter(char: str) -> bool:
    """Check whether a character is a Latin-script letter."""
    if not char.isalpha():
        return False
    if char.isascii():
        return True
    return unicodedata.name(char, "").startswith("LATIN")


def contains_latin(text: str) -> bool:
    """Check if text contains at least one Latin letter.

    Examples:
        >>> contains_latin("كلب")
        False
        >>> contains_latin("كلب dog")
        True
    """
    if not text:
        return False
    return any(is_latin_letter(ch) for ch in text)


def has_non_latin_letters(text: str) -> bool:
    """Check if text contains a letter from any script other than Latin."""
    if not text:
        return False
    return any(ch.isalpha() and not is_latin_letter(ch) for ch in text)


def is_mixed_script(text: str) -> bool:
    """Check if text mixes Latin letters with letters of another script.

    Args:
        text: Input text to check.

    Returns:
        True if both Latin and non-Latin letters are present.

    Examples:
        >>> is_mixed_script("hello")
        False
        >>> is_mixed_script("hеllo")  # cyrillic e
        True
    """
    return contains_latin(text) and has_non_latin_letters(text)


def iter_tokens(text: str) -> Iterator[tuple[int, int]]:
    """Yield ``(start, end)`` spans of whitespace-separated tokens."""
    for match in _TOKEN_RE.finditer(text):
        yield match.start(), match.end()


def tokenize(text: str) -> list[str]:
    """Split text into whitespace-separated tokens.

    Examples:
        >>> tokenize("  hello   world ")
        ['hello', 'world']
    """
    if not text:
        return []
    return [text[start:end] for start, end in iter_tokens(text)]


def truncate_text(text: str, max_length: int, suffix: str = "...") -> str:
    """Truncate text to a maximum length, adding suffix if truncated.

    Args:
        text: Input text to truncate.
        max_length: Maximum length of the output text including suffix.
        suffix: Suffix to add if text is truncated (default: "...").

    Returns:
        Truncated text with suffix if needed, or original text if short enough.

    Raises:
        ValueError: If max_length is less than suffix length.

    Examples:
        >>> truncate_text("This is a long text", 10)
        'This is...'
        >>> truncate_text("Short", 20)
        'Short'
    """
    if not text:
        return ""

    if max_length < len(suffix):
        raise ValueError(f"max_length ({max_length}) must be >= suffix length ({len(suffix)})")

    if len(text) <= max_length:
        return text

    return text[: max_length - len(suffix)] + suffix


def sanitize_for_logging(text: str, max_length: int = 50) -> str:
    """Prepare user text for a log line.

    Control and invisible characters are escaped so that a log line cannot
    be broken up or hide content, then the text is truncated.

    Args:
        text: Input text to sanitize.
        max_length: Maximum length after sanitization.

    Returns:
        Sanitized text safe for logging.

    Examples:
        >>> sanitize_for_logging("line one\\nline two")
        'line one\\\\nline two'
    """
    if not text:
        return ""

    pieces = []
    for ch in text:
        if ch in "\n\r\t":
            pieces.append(repr(ch)[1:-1])
        elif unicodedata.category(ch) in ("Cc", "Cf"):
            pieces.append(f"<U+{ord(ch):04X}>")
        else:
            pieces.append(ch)

    return truncate_text("".join(pieces), max_length, suffix="...")


def word_tokens(text: str) -> list[str]:
    """Split text into runs of word characters, dropping punctuation.

    Examples:
        >>> word_tokens("a class, (in) session.")
        ['a', 'class', 'in', 'session']
    """
    if not text:
        return []
    return _WORD_TOKEN_RE.findall(text)
