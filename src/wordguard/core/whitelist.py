"""Whitelist of words that must never be reported.

Entries are matched against the detected word (and the original text it was
found in). Whitelists can be filled programmatically, from plain text files
(one entry per line, ``#`` comments) or from exported JSON entries.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Iterator, Union

from wordguard.core.errors import InvalidImportError
from wordguard.logging import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class WhitelistEntry:
    """A single whitelist entry.

    Attributes:
        word: The exempted word.
        case_sensitive: Whether matching is case-sensitive.
        whole_word: If True the entry must equal the word; otherwise it
            exempts any word containing it.
    """

    word: str
    case_sensitive: bool = False
    whole_word: bool = True

    def __post_init__(self) -> None:
        if not isinstance(self.word, str) or not self.word.strip():
            raise ValueError("Whitelist entry cannot be empty")
        object.__setattr__(self, "word", self.word.strip())

    @property
    def key(self) -> str:
        """Identity of the entry inside a whitelist."""
        return self.word if self.case_sensitive else self.word.lower()

    def matches(self, word: str) -> bool:
        """Check whether this entry exempts ``word``."""
        if not word:
            return False
        if self.case_sensitive:
            candidate, entry = word, self.word
        else:
            candidate, entry = word.lower(), self.word.lower()
        if self.whole_word:
            return candidate == entry
        return entry in candidate

    def to_dict(self) -> dict:
        return {
            "word": self.word,
            "case_sensitive": self.case_sensitive,
            "whole_word": self.whole_word,
        }


EntryLike = Union[str, WhitelistEntry]


class Whitelist:
    """Case-aware collection of whitelist entries."""

    def __init__(self, entries: Iterable[EntryLike] = ()):
        self._entries: dict[tuple[str, bool], WhitelistEntry] = {}
        self.add_many(entries)

    @staticmethod
    def _coerce(entry: EntryLike) -> WhitelistEntry:
        if isinstance(entry, WhitelistEntry):
            return entry
        if isinstance(entry, str):
            return WhitelistEntry(entry)
        raise TypeError(f"Expected str or WhitelistEntry, got {type(entry).__name__}")

    def _store(self, entries: Iterable[WhitelistEntry], replace: bool = False) -> None:
        # Mutations swap in a new dict, so readers never see one mid-update
        updated = {} if replace else dict(self._entries)
        for entry in entries:
            updated[(entry.key, entry.case_sensitive)] = entry
        self._entries = updated

    def add(self, entry: EntryLike) -> WhitelistEntry:
        """Add an entry; an entry with the same key is replaced."""
        entry = self._coerce(entry)
        self._store([entry])
        return entry

    def add_many(self, entries: Iterable[EntryLike]) -> int:
        """Add several entries; all are validated before any is added."""
        coerced = [self._coerce(entry) for entry in entries]
        self._store(coerced)
        return len(coerced)

    def remove(self, word: str) -> bool:
        """Remove every entry for ``word``.

        Case-sensitive entries are removed only on an exact spelling match,
        case-insensitive ones regardless of case.

        Returns:
            True if at least one entry was removed.
        """
        if not word:
            return False
        word = word.strip()
        kept = {
            key: entry
            for key, entry in self._entries.items()
            if not (
                entry.word == word
                or (not entry.case_sensitive and entry.key == word.lower())
            )
        }
        removed = len(kept) != len(self._entries)
        self._entries = kept
        return removed

    def clear(self) -> None:
        self._entries = {}

    def contains(self, word: str) -> bool:
        """Check whether any entry exempts ``word``."""
        return any(entry.matches(word) for entry in self._entries.values())

    def is_exempt(self, *words: str) -> bool:
        """Check whether any entry exempts any of ``words``."""
        return any(self.contains(word) for word in words if word)

    @property
    def entries(self) -> list[WhitelistEntry]:
        return list(self._entries.values())

    @property
    def words(self) -> list[str]:
        return [entry.word for entry in self._entries.values()]

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[WhitelistEntry]:
        return iter(list(self._entries.values()))

    def __contains__(self, word: object) -> bool:
        return isinstance(word, str) and self.contains(word)

    def copy(self) -> "Whitelist":
        return Whitelist(self._entries.values())

    def load_from_file(self, path: Path | str, case_sensitive: bool = False) -> int:
        """Load entries from a text file.

        Args:
            path: Path to the text file with one entry per line.
            case_sensitive: Case sensitivity of the loaded entries.

        Returns:
            Number of entries loaded (0 if the file does not exist).
        """
        path = Path(path)
        if not path.exists():
            logger.warning(f"Whitelist file not found: {path}")
            return 0

        loaded = []
        with open(path, "r", encoding="utf-8") as f:
            for line in f:
                line = line.strip()
                # Skip empty lines and comments
                if not line or line.startswith("#"):
                    continue
                loaded.append(WhitelistEntry(line, case_sensitive=case_sensitive))

        self._store(loaded)
        count = len(loaded)

        logger.info(
            "Whitelist loaded",
            extra={"path": str(path), "entries": count},
        )
        return count

    def export(self) -> list[dict]:
        """Return every entry as a JSON-serialisable dict."""
        return [entry.to_dict() for entry in self._entries.values()]

    def import_entries(self, entries: Iterable[object], replace: bool = False) -> int:
        """Import entries from ``export()`` output or plain strings.

        The payload is validated completely before the whitelist changes.

        Raises:
            InvalidImportError: If an entry is malformed.
        """
        parsed = [_parse_entry(i, raw) for i, raw in enumerate(entries)]
        self._store(parsed, replace=replace)
        return len(parsed)


def _parse_entry(index: int, raw: object) -> WhitelistEntry:
    try:
        if isinstance(raw, str):
            return WhitelistEntry(raw)
        if isinstance(raw, dict):
            if "word" not in raw:
                raise InvalidImportError(f"Whitelist entry {index} missing required field: word")
            return WhitelistEntry(
                word=raw["word"],
                case_sensitive=bool(raw.get("case_sensitive", False)),
                whole_word=bool(raw.get("whole_word", True)),
            )
    except InvalidImportError:
        raise
    except ValueError as e:
        raise InvalidImportError(f"Whitelist entry {index} is invalid: {e}") from e
    raise InvalidImportError(
        f"Whitelist entry {index} must be a string or mapping, got {type(raw).__name__}"
    )
