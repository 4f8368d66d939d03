"""Configuration module for wordguard."""

from wordguard.config.filter_config import FilterConfig, load_config_from_yaml
from wordguard.config.wordlist_loader import (
    load_default_words,
    load_words_from_yaml,
    load_words_from_yaml_safe,
)

__all__ = [
    "FilterConfig",
    "load_config_from_yaml",
    "load_default_words",
    "load_words_from_yaml",
    "load_words_from_yaml_safe",
]
