"""Utility exports for the prefix trie and the background task executor."""

from resource_validation.utils.concurrency import SerialExecutor, Task
from resource_validation.utils.trie import PrefixTrie, TrieNode

__all__ = [
    "PrefixTrie",
    "SerialExecutor",
    "Task",
    "TrieNode",
]
