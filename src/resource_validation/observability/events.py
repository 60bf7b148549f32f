"""In-process change-event bus with path-prefix filtering and bounded replay."""

from __future__ import annotations

import itertools
import threading
from collections import deque
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Final

import structlog

from resource_validation.domain.events import ChangeKind, ResourceChangeEvent

Subscriber = Callable[[ResourceChangeEvent], object]

_ERROR_HISTORY: Final[int] = 1024


@dataclass(frozen=True, slots=True)
class DispatchError:
    """Subscriber failure captured without interrupting publishers."""

    event_id: str
    target: str
    error_type: str
    message: str


@dataclass(frozen=True, slots=True)
class _Subscription:
    callback: Subscriber
    kinds: frozenset[ChangeKind] | None
    path_prefixes: tuple[str, ...]

    def wants(self, event: ResourceChangeEvent) -> bool:
        if self.kinds is not None and event.kind not in self.kinds:
            return False
        if not self.path_prefixes:
            return True
        return any(event.is_under(prefix) for prefix in self.path_prefixes)


class ChangeEventBus:
    """Synchronous event bus delivering repository changes to filtered subscribers.

    Callbacks run on the publishing thread in subscription order. A callback
    that raises is recorded as a ``DispatchError``; remaining subscribers still
    receive the event.
    """

    def __init__(self, *, buffer_size: int = 512, logger: Any | None = None) -> None:
        if isinstance(buffer_size, bool) or not isinstance(buffer_size, int) or buffer_size < 1:
            raise ValueError(f"buffer_size must be a positive integer, got {buffer_size!r}")

        self._history: deque[ResourceChangeEvent] = deque(maxlen=buffer_size)
        self._errors: deque[DispatchError] = deque(maxlen=_ERROR_HISTORY)
        self._subscriptions: dict[int, _Subscription] = {}
        self._tokens = itertools.count(1)
        self._lock = threading.RLock()
        self._logger = logger if logger is not None else structlog.get_logger(__name__)

    def subscribe(
        self,
        callback: Subscriber,
        *,
        kinds: Iterable[ChangeKind | str] | None = None,
        path_prefixes: Iterable[str] | None = None,
    ) -> int:
        """Subscribe ``callback``; ``None`` filters match every kind or path."""

        if not callable(callback):
            raise ValueError("callback must be callable")

        kind_filter = None if kinds is None else frozenset(_as_kind(item) for item in kinds)
        prefixes = () if path_prefixes is None else _normalize_prefixes(path_prefixes)

        subscription = _Subscription(callback, kind_filter, prefixes)
        with self._lock:
            token = next(self._tokens)
            self._subscriptions[token] = subscription
        return token

    def unsubscribe(self, token: int) -> bool:
        """Drop the subscription behind ``token``; ``False`` if it was already gone."""

        if isinstance(token, bool) or not isinstance(token, int):
            raise ValueError(f"token must be an integer, got {type(token).__name__}")
        with self._lock:
            return self._subscriptions.pop(token, None) is not None

    @property
    def subscriber_count(self) -> int:
        with self._lock:
            return len(self._subscriptions)

    def publish(self, event: ResourceChangeEvent) -> tuple[DispatchError, ...]:
        if not isinstance(event, ResourceChangeEvent):
            raise ValueError(f"event must be ResourceChangeEvent, got {type(event).__name__}")
        with self._lock:
            self._history.append(event)
            subscriptions = tuple(self._subscriptions.values())

        errors: list[DispatchError] = []
        for subscription in subscriptions:
            if not subscription.wants(event):
                continue
            try:
                subscription.callback(event)
            except Exception as exc:  # noqa: BLE001
                error = DispatchError(
                    event_id=event.event_id,
                    target=_callback_name(subscription.callback),
                    error_type=exc.__class__.__name__,
                    message=str(exc),
                )
                self._logger.warning(
                    "change_event_dispatch_failed",
                    event_id=error.event_id,
                    target=error.target,
                    error_type=error.error_type,
                    error=error.message,
                )
                errors.append(error)

        if errors:
            with self._lock:
                self._errors.extend(errors)
        return tuple(errors)

    def emit(
        self,
        kind: ChangeKind | str,
        path: str,
    ) -> tuple[ResourceChangeEvent, tuple[DispatchError, ...]]:
        """Create and publish an event for ``path``."""

        event = ResourceChangeEvent(kind=_as_kind(kind), path=path)
        return event, self.publish(event)

    def replay(
        self,
        *,
        since: datetime | None = None,
        kind: ChangeKind | str | None = None,
        limit: int | None = None,
    ) -> tuple[ResourceChangeEvent, ...]:
        """Replay buffered events in publish order."""

        if since is not None and (since.tzinfo is None or since.utcoffset() is None):
            raise ValueError("since datetime must be timezone-aware")
        kind_filter = None if kind is None else _as_kind(kind)

        with self._lock:
            events = tuple(self._history)

        if since is not None:
            events = tuple(event for event in events if event.timestamp > since)
        if kind_filter is not None:
            events = tuple(event for event in events if event.kind is kind_filter)
        return _tail(events, limit)

    def dispatch_errors(self, *, limit: int | None = None) -> tuple[DispatchError, ...]:
        with self._lock:
            errors = tuple(self._errors)
        return _tail(errors, limit)


def _as_kind(value: ChangeKind | str) -> ChangeKind:
    if isinstance(value, ChangeKind):
        return value
    if not isinstance(value, str):
        raise ValueError(f"change kind must be string/ChangeKind, got {type(value).__name__}")
    try:
        return ChangeKind(value.strip().lower())
    except ValueError as exc:
        allowed = ", ".join(item.value for item in ChangeKind)
        raise ValueError(f"invalid change kind {value!r}; allowed: {allowed}") from exc


def _normalize_prefixes(prefixes: Iterable[str]) -> tuple[str, ...]:
    normalized: list[str] = []
    for prefix in prefixes:
        if not isinstance(prefix, str) or not prefix.strip():
            raise ValueError("path prefixes must be non-empty strings")
        normalized.append(prefix.strip().rstrip("/") or "/")
    return tuple(normalized)


def _callback_name(callback: object) -> str:
    name = getattr(callback, "__qualname__", None) or getattr(callback, "__name__", None)
    if isinstance(name, str) and name:
        return name
    return callback.__class__.__name__


def _tail(items: tuple[Any, ...], limit: int | None) -> tuple[Any, ...]:
    """Newest ``limit`` items, oldest first; ``None`` keeps everything."""

    if limit is None:
        return items
    if isinstance(limit, bool) or not isinstance(limit, int):
        raise ValueError(f"limit must be an integer, got {type(limit).__name__}")
    return items[-limit:] if limit > 0 else ()


__all__ = ["ChangeEventBus", "DispatchError", "Subscriber"]
