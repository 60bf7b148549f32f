"""Repository change notifications consumed by cache invalidation."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import StrEnum
from uuid import uuid4


class ChangeKind(StrEnum):
    """Kinds of repository change that can affect stored model definitions."""

    ADDED = "added"
    CHANGED = "changed"
    REMOVED = "removed"


@dataclass(frozen=True, slots=True)
class ResourceChangeEvent:
    """A single add/change/remove notification for one repository path."""

    kind: ChangeKind
    path: str
    event_id: str = field(default_factory=lambda: uuid4().hex)
    timestamp: datetime = field(default_factory=lambda: datetime.now(tz=UTC))

    def __post_init__(self) -> None:
        object.__setattr__(self, "kind", _as_change_kind(self.kind))
        if not isinstance(self.path, str) or not self.path.strip():
            raise ValueError("ResourceChangeEvent.path must be a non-empty string")
        if self.timestamp.tzinfo is None or self.timestamp.utcoffset() is None:
            raise ValueError("ResourceChangeEvent.timestamp must be timezone-aware")

    def is_under(self, prefix: str) -> bool:
        """Return whether this event's path equals ``prefix`` or lies beneath it."""

        normalized = prefix.rstrip("/")
        if not normalized:
            return True
        return self.path == normalized or self.path.startswith(normalized + "/")


def _as_change_kind(value: object) -> ChangeKind:
    if isinstance(value, ChangeKind):
        return value
    if not isinstance(value, str):
        raise ValueError(f"change kind must be a string, got {type(value).__name__}")
    try:
        return ChangeKind(value.strip().lower())
    except ValueError as exc:
        allowed = ", ".join(item.value for item in ChangeKind)
        raise ValueError(f"invalid change kind {value!r}; allowed: {allowed}") from exc


__all__ = ["ChangeKind", "ResourceChangeEvent"]
