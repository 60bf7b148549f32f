"""Repository access contract used by the model resolver."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import Protocol, runtime_checkable

PropertyValue = str | tuple[str, ...]


@dataclass(frozen=True, slots=True)
class ResourceHandle:
    """Opaque reference to one stored resource: its absolute path and leaf name."""

    path: str
    name: str

    @classmethod
    def for_path(cls, path: str) -> ResourceHandle:
        normalized = normalize_path(path)
        return cls(path=normalized, name=leaf_name(normalized))


@runtime_checkable
class ModelRepository(Protocol):
    """Read access to a hierarchical store of model definitions.

    Implementations raise ``RepositoryAccessError`` when the store cannot be
    read; the resolver treats that as "no models available" for the call.
    """

    @property
    def search_roots(self) -> tuple[str, ...]: ...

    def query_model_definitions(
        self,
        marker_type: str,
        resource_type: str,
        search_root: str,
    ) -> Sequence[ResourceHandle]: ...

    def read_properties(self, handle: ResourceHandle) -> Mapping[str, str | Sequence[str]]: ...

    def list_children(self, handle: ResourceHandle) -> Sequence[ResourceHandle]: ...


def normalize_path(path: object) -> str:
    """Return ``path`` as an absolute path without a trailing slash."""

    if not isinstance(path, str):
        raise ValueError(f"resource path must be a string, got {type(path).__name__}")
    candidate = path.strip()
    if not candidate.startswith("/"):
        raise ValueError(f"resource path must be absolute: {path!r}")
    segments = [segment for segment in candidate.split("/") if segment]
    if any(segment in {".", ".."} for segment in segments):
        raise ValueError(f"resource path must not contain relative segments: {path!r}")
    return "/" + "/".join(segments)


def parent_path(path: str) -> str | None:
    if path == "/":
        return None
    head, _, _ = path.rpartition("/")
    return head or "/"


def leaf_name(path: str) -> str:
    return "" if path == "/" else path.rpartition("/")[2]


def join_path(parent: str, name: str) -> str:
    return f"/{name}" if parent == "/" else f"{parent}/{name}"


def is_descendant(path: str, ancestor: str) -> bool:
    """Return whether ``path`` lies strictly beneath ``ancestor``."""

    if ancestor == "/":
        return path != "/"
    return path.startswith(ancestor + "/")


__all__ = [
    "ModelRepository",
    "PropertyValue",
    "ResourceHandle",
    "is_descendant",
    "join_path",
    "leaf_name",
    "normalize_path",
    "parent_path",
]
