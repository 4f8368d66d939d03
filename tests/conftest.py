"""Pytest fixtures and configuration."""

import pytest

from wordguard.config import FilterConfig
from wordguard.core.filter import WordFilter
from wordguard.core.types import Pattern


@pytest.fixture(scope="session")
def default_filter():
    """Filter with the bundled word lists and default options."""
    return WordFilter()


@pytest.fixture
def fresh_filter():
    """Filter with the bundled word lists, safe to mutate."""
    return WordFilter()


@pytest.fixture
def make_filter():
    """Factory for filters holding only the given custom words."""

    def _make(*words, **options):
        return WordFilter(
            config=FilterConfig(**options),
            words=list(words),
            load_defaults=False,
        )

    return _make


@pytest.fixture
def sample_patterns():
    """A small mixed-language pattern set."""
    return [
        Pattern("damn", severity=1, category="profanity"),
        Pattern("hell", severity=1, category="profanity"),
        Pattern("shit", severity=3, category="profanity"),
        Pattern("fuck", severity=4, category="profanity"),
        Pattern("ass", severity=2, category="insult"),
        Pattern("كلب", severity=3, category="insult", language="ar"),
    ]


@pytest.fixture
def evasion_variants():
    """Obfuscated spellings of "fuck"."""
    return {
        "spaced": "f u c k",
        "dotted": "f.u.c.k",
        "symbol": "f@ck",
        "repeated": "fuuuuck",
        "zero_width": "fu" + chr(0x200B) + "ck",
    }
