"""
Aho-Corasick pattern automaton

Multi-pattern matcher over a character trie with failure links. Nodes live in
an arena of parallel lists addressed by integer index; failure and output
links are plain indices into the same arena.

Usage:
    automaton = PatternAutomaton.from_patterns(patterns)
    for hit in automaton.search("some text"):
        ...
"""

from collections import deque
from dataclasses import dataclass
from typing import Callable, Iterable, Optional

from wordguard.core.errors import AutomatonStateError, InvalidPatternError
from wordguard.core.types import Pattern
from wordguard.logging import get_logger
from wordguard.utils.text import is_word_char

logger = get_logger(__name__)

ROOT = 0
_NONE = -1

KeyFunc = Callable[[Pattern], str]


def default_key(pattern: Pattern) -> str:
    """Key used when no normalizer is supplied: the lowercased word."""
    return pattern.word.lower()


@dataclass(frozen=True)
class AutomatonHit:
    """A raw automaton match.

    Attributes:
        pattern: The pattern whose key matched.
        position: Start offset in the searched string.
        length: Length of the matched key in the searched string.
    """

    pattern: Pattern
    position: int
    length: int

    @property
    def end(self) -> int:
        return self.position + self.length


class PatternAutomaton:
    """Aho-Corasick automaton over pattern keys.

    The automaton is build-once: insert every pattern, call ``build()`` and
    search. Inserting after a build marks the automaton unbuilt, and
    searching an unbuilt automaton raises ``AutomatonStateError``.
    """

    def __init__(self):
        self._children: list[dict[str, int]] = [{}]
        self._fail: list[int] = [ROOT]
        self._output: list[int] = [_NONE]
        self._depth: list[int] = [0]
        self._terminal: list[int] = [_NONE]

        self._patterns: list[Pattern] = []
        self._keys: list[str] = []
        self._built = False

    # ------------------------------------------------------------------
    # Construction
    # ------------------------------------------------------------------

    @classmethod
    def from_patterns(
        cls,
        patterns: Iterable[Pattern],
        key_func: Optional[KeyFunc] = None,
    ) -> "PatternAutomaton":
        """Create, fill and build an automaton in one step."""
        automaton = cls()
        automaton.insert_many(patterns, key_func)
        automaton.build()
        return automaton

    def insert(self, pattern: Pattern, key: Optional[str] = None) -> None:
        """Insert a pattern under ``key`` (its lowercased word by default).

        When a key is already present the pattern with the higher severity
        is kept; on a tie the earlier one stays.

        Raises:
            InvalidPatternError: If ``pattern`` is not a Pattern or the key
                is empty.
        """
        if not isinstance(pattern, Pattern):
            raise InvalidPatternError(f"Expected Pattern, got {type(pattern).__name__}")
        if key is None:
            key = default_key(pattern)
        if not key:
            raise InvalidPatternError(f"Pattern {pattern.word!r} has an empty key")

        node = ROOT
        for ch in key:
            child = self._children[node].get(ch)
            if child is None:
                child = self._new_node(self._depth[node] + 1)
                self._children[node][ch] = child
            node = child

        existing = self._terminal[node]
        if existing == _NONE:
            self._terminal[node] = len(self._patterns)
            self._patterns.append(pattern)
            self._keys.append(key)
        elif pattern.severity > self._patterns[existing].severity:
            self._patterns[existing] = pattern

        self._built = False

    def insert_many(
        self,
        patterns: Iterable[Pattern],
        key_func: Optional[KeyFunc] = None,
    ) -> None:
        """Insert a batch of patterns.

        The whole batch is validated first; on error nothing is inserted.

        Raises:
            InvalidPatternError: If any item is invalid.
        """
        key_func = key_func or default_key
        prepared = []
        for i, pattern in enumerate(patterns):
            if not isinstance(pattern, Pattern):
                raise InvalidPatternError(
                    f"Item {i} is not a Pattern: {type(pattern).__name__}"
                )
            key = key_func(pattern)
            if not key:
                raise InvalidPatternError(
                    f"Pattern {pattern.word!r} normalizes to an empty key"
                )
            prepared.append((pattern, key))

        for pattern, key in prepared:
            self.insert(pattern, key)

    def _new_node(self, depth: int) -> int:
        self._children.append({})
        self._fail.append(ROOT)
        self._output.append(_NONE)
        self._depth.append(depth)
        self._terminal.append(_NONE)
        return len(self._children) - 1

    def build(self) -> None:
        """Compute failure and output links. Idempotent."""
        if self._built:
            return

        queue: deque[int] = deque()
        for child in self._children[ROOT].values():
            self._fail[child] = ROOT
            self._output[child] = _NONE
            queue.append(child)

        while queue:
            node = queue.popleft()
            for ch, child in self._children[node].items():
                # Deepest proper suffix of child's path that is a trie path
                fallback = self._fail[node]
                while fallback != ROOT and ch not in self._children[fallback]:
                    fallback = self._fail[fallback]
                target = self._children[fallback].get(ch, ROOT)
                self._fail[child] = target

                if self._terminal[target] != _NONE:
                    self._output[child] = target
                else:
                    self._output[child] = self._output[target]
                queue.append(child)

        self._built = True
        logger.debug(
            "Automaton built",
            extra={"patterns": len(self._patterns), "nodes": len(self._children)},
        )

    build_failure_links = build

    # ------------------------------------------------------------------
    # Search
    # ------------------------------------------------------------------

    def search(self, text: str, partial_match: bool = False) -> list[AutomatonHit]:
        """Find every occurrence of every key in ``text``.

        Args:
            text: Text to scan (already normalized with the same profile as
                the keys).
            partial_match: If False, a hit survives only when the characters
                around it are not word characters.

        Returns:
            Hits in order of their end offset.

        Raises:
            AutomatonStateError: If the automaton has not been built since
                the last insertion.
        """
        if not self._built:
            raise AutomatonStateError("Automaton must be built before searching")

        hits: list[AutomatonHit] = []
        if not text or not self._patterns:
            return hits

        children = self._children
        fail = self._fail
        node = ROOT
        for i, ch in enumerate(text):
            while node != ROOT and ch not in children[node]:
                node = fail[node]
            node = children[node].get(ch, ROOT)

            current = node if self._terminal[node] != _NONE else self._output[node]
            while current != _NONE:
                length = self._depth[current]
                start = i - length + 1
                if partial_match or self._on_boundary(text, start, i + 1):
                    pattern = self._patterns[self._terminal[current]]
                    hits.append(AutomatonHit(pattern, start, length))
                current = self._output[current]

        return hits

    @staticmethod
    def _on_boundary(text: str, start: int, end: int) -> bool:
        if start > 0 and is_word_char(text[start - 1]):
            return False
        if end < len(text) and is_word_char(text[end]):
            return False
        return True

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------

    @property
    def is_built(self) -> bool:
        return self._built

    @property
    def node_count(self) -> int:
        return len(self._children)

    @property
    def patterns(self) -> list[Pattern]:
        """Patterns stored in the automaton, one per distinct key."""
        return list(self._patterns)

    def keys(self) -> list[str]:
        return list(self._keys)

    def __len__(self) -> int:
        return len(self._patterns)

    def __contains__(self, key: str) -> bool:
        node = ROOT
        for ch in key:
            node = self._children[node].get(ch, _NONE)
            if node == _NONE:
                return False
        return self._terminal[node] != _NONE
