"""Exception types raised by the matching core."""


class WordGuardError(Exception):
    """Base class for all wordguard errors."""


class InvalidPatternError(WordGuardError, ValueError):
    """A pattern failed validation (blank word, bad severity or language)."""


class InvalidImportError(WordGuardError, ValueError):
    """An import payload is malformed or missing required fields."""


class AutomatonStateError(WordGuardError, RuntimeError):
    """An automaton was searched before its failure links were built."""
