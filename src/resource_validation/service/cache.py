"""Per-resource-type cache of model tries with generation-checked publication."""

from __future__ import annotations

import itertools

from resource_validation.domain.models import ValidationModel
from resource_validation.utils.trie import PrefixTrie

ModelTrie = PrefixTrie[ValidationModel]


class ModelCache:
    """Maps a resource type to the finished trie of its models.

    Reads and writes are single builtin ``dict`` operations and take no lock.
    ``clear`` swaps in a fresh dict and advances the generation; a trie built
    from a generation read before that clear is refused by ``publish``.
    """

    def __init__(self) -> None:
        self._generations = itertools.count(1)
        self._generation = next(self._generations)
        self._tries: dict[str, ModelTrie] = {}

    @property
    def generation(self) -> int:
        return self._generation

    def get(self, resource_type: str) -> ModelTrie | None:
        return self._tries.get(resource_type)

    def publish(self, resource_type: str, trie: ModelTrie, generation: int) -> bool:
        """Install ``trie`` unless the cache was cleared after ``generation`` was read."""

        if generation != self._generation:
            return False
        tries = self._tries
        tries[resource_type] = trie
        if generation != self._generation:
            # A clear raced with the assignment above; take the stale trie back out.
            if tries.get(resource_type) is trie:
                tries.pop(resource_type, None)
            return False
        return True

    def clear(self) -> int:
        """Drop every cached trie; returns how many resource types were dropped."""

        self._generation = next(self._generations)
        dropped, self._tries = self._tries, {}
        return len(dropped)

    def resource_types(self) -> tuple[str, ...]:
        return tuple(sorted(self._tries))

    def __contains__(self, resource_type: object) -> bool:
        return resource_type in self._tries

    def __len__(self) -> int:
        return len(self._tries)


__all__ = ["ModelCache", "ModelTrie"]
