"""Utility functions for wordguard."""

from wordguard.utils.text import (
    contains_latin,
    has_non_latin_letters,
    is_mixed_script,
    is_word_char,
    iter_tokens,
    sanitize_for_logging,
    tokenize,
    truncate_text,
    word_tokens,
)

__all__ = [
    "contains_latin",
    "has_non_latin_letters",
    "is_mixed_script",
    "is_word_char",
    "iter_tokens",
    "sanitize_for_logging",
    "tokenize",
    "truncate_text",
    "word_tokens",
]
