"""
WordGuard: sensitive word detection

Multi-pattern word filtering for English and Arabic text, resistant to
common evasion tricks (symbols, spacing, repeated letters, homoglyphs,
invisible characters).
"""

__version__ = "1.0.0"

from wordguard.config import FilterConfig, load_config_from_yaml
from wordguard.core.errors import (
    AutomatonStateError,
    InvalidImportError,
    InvalidPatternError,
    WordGuardError,
)
from wordguard.core.filter import (
    WordFilter,
    create_balanced_filter,
    create_paranoid_filter,
    create_strict_filter,
)
from wordguard.core.types import (
    DetectionResult,
    DetectionStrictness,
    EvasionTechnique,
    Match,
    Pattern,
    SeverityLevel,
)
from wordguard.core.whitelist import WhitelistEntry

__all__ = [
    "AutomatonStateError",
    "DetectionResult",
    "DetectionStrictness",
    "EvasionTechnique",
    "FilterConfig",
    "InvalidImportError",
    "InvalidPatternError",
    "Match",
    "Pattern",
    "SeverityLevel",
    "WhitelistEntry",
    "WordFilter",
    "WordGuardError",
    "create_balanced_filter",
    "create_paranoid_filter",
    "create_strict_filter",
    "load_config_from_yaml",
]
