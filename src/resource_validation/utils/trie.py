"""Character-keyed prefix trie with longest-matching-key lookup."""

from __future__ import annotations

from collections.abc import Iterator
from typing import Generic, TypeVar

V = TypeVar("V")


class TrieNode(Generic[V]):
    """One trie node; ``value`` is ``None`` when no key terminates here."""

    __slots__ = ("children", "key", "value")

    def __init__(self, key: str = "", value: V | None = None) -> None:
        self.key = key
        self.value = value
        self.children: dict[str, TrieNode[V]] = {}

    @property
    def has_value(self) -> bool:
        return self.value is not None

    def __repr__(self) -> str:
        return f"TrieNode(key={self.key!r}, value={self.value!r}, children={len(self.children)})"


class PrefixTrie(Generic[V]):
    """Maps arbitrary string keys to values and answers longest-prefix queries.

    Keys are consumed one character at a time, so a stored key ``/apps/example``
    matches the query ``/apps/example/node/1`` as well as ``/apps/examples``.
    Lookups never raise: absence is a node whose ``value`` is ``None``.
    """

    __slots__ = ("_root", "_size")

    def __init__(self) -> None:
        self._root: TrieNode[V] = TrieNode()
        self._size = 0

    @property
    def root(self) -> TrieNode[V]:
        return self._root

    def insert(self, key: str, value: V) -> None:
        """Store ``value`` under ``key``, overwriting any previous value."""

        if value is None:
            raise ValueError("trie values must not be None")
        node = self._root
        for index, char in enumerate(key):
            child = node.children.get(char)
            if child is None:
                child = TrieNode(key[: index + 1])
                node.children[char] = child
            node = child
        if node.value is None:
            self._size += 1
        node.value = value

    def get_element(self, key: str) -> TrieNode[V]:
        """Return the node for exactly ``key``, or an empty detached node."""

        node = self._root
        for char in key:
            child = node.children.get(char)
            if child is None:
                return TrieNode(key)
            node = child
        return node

    def get_element_for_longest_matching_key(self, key: str) -> TrieNode[V]:
        """Return the deepest valued node whose key is a prefix of ``key``."""

        node = self._root
        best: TrieNode[V] | None = node if node.has_value else None
        for char in key:
            child = node.children.get(char)
            if child is None:
                break
            node = child
            if node.has_value:
                best = node
        if best is None:
            return TrieNode()
        return best

    def get(self, key: str) -> V | None:
        return self.get_element(key).value

    def longest_match(self, key: str) -> V | None:
        return self.get_element_for_longest_matching_key(key).value

    def items(self) -> tuple[tuple[str, V], ...]:
        """Return stored ``(key, value)`` pairs in lexical key order."""

        return tuple(self._iter_items(self._root))

    def __contains__(self, key: object) -> bool:
        if not isinstance(key, str):
            return False
        return self.get_element(key).has_value

    def __len__(self) -> int:
        return self._size

    def _iter_items(self, node: TrieNode[V]) -> Iterator[tuple[str, V]]:
        stack = [node]
        while stack:
            current = stack.pop()
            if current.value is not None:
                yield current.key, current.value
            stack.extend(current.children[char] for char in sorted(current.children, reverse=True))


__all__ = ["PrefixTrie", "TrieNode"]
