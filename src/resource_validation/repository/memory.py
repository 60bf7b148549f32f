"""Thread-safe in-memory resource tree implementing ``ModelRepository``."""

from __future__ import annotations

import threading
from collections.abc import Iterable, Iterator, Mapping, Sequence
from dataclasses import dataclass, field
from types import MappingProxyType

from resource_validation.constants import (
    DEFAULT_SEARCH_ROOTS,
    RESOURCE_TYPE_PROPERTY,
    VALIDATED_RESOURCE_TYPE,
)
from resource_validation.domain.events import ChangeKind
from resource_validation.errors import RepositoryAccessError
from resource_validation.observability.events import ChangeEventBus
from resource_validation.repository.base import (
    PropertyValue,
    ResourceHandle,
    is_descendant,
    join_path,
    leaf_name,
    normalize_path,
    parent_path,
)


@dataclass(slots=True)
class _Node:
    properties: dict[str, PropertyValue] = field(default_factory=dict)
    children: dict[str, None] = field(default_factory=dict)


class InMemoryRepository:
    """Hierarchical store of resources keyed by absolute path.

    Children keep insertion order, so queries return definitions in the order
    they were first stored. When an event bus is attached, every write emits an
    ADDED, CHANGED, or REMOVED event after the store lock is released.
    """

    def __init__(
        self,
        search_roots: Iterable[str] = DEFAULT_SEARCH_ROOTS,
        *,
        event_bus: ChangeEventBus | None = None,
    ) -> None:
        roots = tuple(normalize_path(root) for root in search_roots)
        if not roots:
            raise ValueError("search_roots must not be empty")
        self._search_roots = roots
        self._event_bus = event_bus
        self._lock = threading.RLock()
        self._nodes: dict[str, _Node] = {"/": _Node()}

    @property
    def search_roots(self) -> tuple[str, ...]:
        return self._search_roots

    @property
    def event_bus(self) -> ChangeEventBus | None:
        return self._event_bus

    def attach_event_bus(self, event_bus: ChangeEventBus | None) -> None:
        self._event_bus = event_bus

    def put_resource(
        self,
        path: str,
        properties: Mapping[str, object] | None = None,
    ) -> ResourceHandle:
        """Create or replace the resource at ``path``, creating missing ancestors."""

        normalized = normalize_path(path)
        coerced = _coerce_properties(properties or {}, normalized)
        with self._lock:
            existed = normalized in self._nodes
            self._ensure_ancestors(normalized)
            node = self._nodes.get(normalized)
            if node is None:
                node = _Node()
                self._nodes[normalized] = node
                self._link(normalized)
            node.properties = coerced
        self._emit(ChangeKind.CHANGED if existed else ChangeKind.ADDED, normalized)
        return ResourceHandle.for_path(normalized)

    def delete_resource(self, path: str) -> bool:
        """Remove ``path`` and its subtree; returns ``False`` when nothing was stored."""

        normalized = normalize_path(path)
        if normalized == "/":
            raise ValueError("the repository root cannot be deleted")
        with self._lock:
            if normalized not in self._nodes:
                return False
            for candidate in [p for p in self._nodes if is_descendant(p, normalized)]:
                del self._nodes[candidate]
            del self._nodes[normalized]
            parent = parent_path(normalized)
            if parent is not None and parent in self._nodes:
                self._nodes[parent].children.pop(leaf_name(normalized), None)
        self._emit(ChangeKind.REMOVED, normalized)
        return True

    def exists(self, path: str) -> bool:
        with self._lock:
            return normalize_path(path) in self._nodes

    def query_model_definitions(
        self,
        marker_type: str,
        resource_type: str,
        search_root: str,
    ) -> Sequence[ResourceHandle]:
        root = normalize_path(search_root)
        matches: list[ResourceHandle] = []
        with self._lock:
            if root not in self._nodes:
                return ()
            for path in self._walk(root):
                properties = self._nodes[path].properties
                if (
                    properties.get(RESOURCE_TYPE_PROPERTY) == marker_type
                    and properties.get(VALIDATED_RESOURCE_TYPE) == resource_type
                ):
                    matches.append(ResourceHandle(path=path, name=leaf_name(path)))
        return tuple(matches)

    def read_properties(self, handle: ResourceHandle) -> Mapping[str, str | Sequence[str]]:
        with self._lock:
            node = self._nodes.get(handle.path)
            if node is None:
                raise RepositoryAccessError(f"resource not found: {handle.path}")
            return MappingProxyType(dict(node.properties))

    def list_children(self, handle: ResourceHandle) -> Sequence[ResourceHandle]:
        with self._lock:
            node = self._nodes.get(handle.path)
            if node is None:
                raise RepositoryAccessError(f"resource not found: {handle.path}")
            return tuple(
                ResourceHandle(path=join_path(handle.path, name), name=name)
                for name in node.children
            )

    def _walk(self, start: str) -> Iterator[str]:
        # Depth-first, children in insertion order; excludes ``start`` itself.
        stack = [join_path(start, name) for name in reversed(self._nodes[start].children)]
        while stack:
            path = stack.pop()
            yield path
            stack.extend(join_path(path, name) for name in reversed(self._nodes[path].children))

    def _ensure_ancestors(self, path: str) -> None:
        missing: list[str] = []
        current = parent_path(path)
        while current is not None and current not in self._nodes:
            missing.append(current)
            current = parent_path(current)
        for ancestor in reversed(missing):
            self._nodes[ancestor] = _Node()
            self._link(ancestor)

    def _link(self, path: str) -> None:
        parent = parent_path(path)
        if parent is not None:
            self._nodes[parent].children[leaf_name(path)] = None

    def _emit(self, kind: ChangeKind, path: str) -> None:
        if self._event_bus is not None:
            self._event_bus.emit(kind, path)


def _coerce_properties(properties: Mapping[str, object], path: str) -> dict[str, PropertyValue]:
    if not isinstance(properties, Mapping):
        raise ValueError(f"{path}: properties must be a mapping")
    coerced: dict[str, PropertyValue] = {}
    for key, value in properties.items():
        if not isinstance(key, str) or not key:
            raise ValueError(f"{path}: property names must be non-empty strings")
        if isinstance(value, str):
            coerced[key] = value
        elif isinstance(value, Sequence) and all(isinstance(item, str) for item in value):
            coerced[key] = tuple(value)
        else:
            raise ValueError(
                f"{path}.{key}: property values must be strings or sequences of strings"
            )
    return coerced


__all__ = ["InMemoryRepository"]
