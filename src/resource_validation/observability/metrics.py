"""Thread-safe counters and gauges for cache, resolver, and engine activity.

Series are identified by a metric name plus an optional label set. In
snapshots a labelled series is rendered as ``name{key=value,...}`` with labels
sorted by key.
"""

from __future__ import annotations

import json
import math
import threading
from collections.abc import Mapping
from datetime import UTC, datetime
from typing import Final

JSONScalar = str | int | float | bool | None
JSONValue = JSONScalar | list["JSONValue"] | dict[str, "JSONValue"]

_SeriesKey = tuple[str, tuple[tuple[str, str], ...]]

_MAX_NAME_LENGTH: Final[int] = 128
_MAX_LABEL_LENGTH: Final[int] = 256

CACHE_HITS: Final[str] = "model_cache_hits_total"
CACHE_MISSES: Final[str] = "model_cache_misses_total"
RESOLUTIONS: Final[str] = "model_resolutions_total"
MODELS_ACCEPTED: Final[str] = "models_accepted_total"
MODELS_REJECTED: Final[str] = "models_rejected_total"
CACHE_INVALIDATIONS: Final[str] = "model_cache_invalidations_total"
CACHE_INVALIDATIONS_COALESCED: Final[str] = "model_cache_invalidations_coalesced_total"
VALIDATIONS: Final[str] = "validations_total"
CACHED_RESOURCE_TYPES: Final[str] = "model_cache_resource_types"


class MetricsRegistry:
    """In-process metric store shared by one ``ValidationService`` and its parts."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._counters: dict[_SeriesKey, float] = {}
        self._gauges: dict[_SeriesKey, float] = {}
        self._created_at = datetime.now(tz=UTC)

    def inc(
        self,
        name: str,
        amount: float = 1.0,
        *,
        labels: Mapping[str, str] | None = None,
    ) -> None:
        """Add ``amount`` (finite, non-negative) to a counter series."""

        delta = _finite(amount, "amount")
        if delta < 0:
            raise ValueError("counters only go up; amount must be >= 0")
        key = _series(name, labels)
        with self._lock:
            self._counters[key] = self._counters.get(key, 0.0) + delta

    def set_gauge(
        self,
        name: str,
        value: float,
        *,
        labels: Mapping[str, str] | None = None,
    ) -> None:
        key = _series(name, labels)
        reading = _finite(value, "value")
        with self._lock:
            self._gauges[key] = reading

    def get_counter(self, name: str, *, labels: Mapping[str, str] | None = None) -> float:
        key = _series(name, labels)
        with self._lock:
            return self._counters.get(key, 0.0)

    def counter_total(self, name: str) -> float:
        """Sum every label set recorded under ``name``."""

        metric, _ = _series(name, None)
        with self._lock:
            return sum(value for (series, _), value in self._counters.items() if series == metric)

    def get_gauge(self, name: str, *, labels: Mapping[str, str] | None = None) -> float | None:
        key = _series(name, labels)
        with self._lock:
            return self._gauges.get(key)

    def reset(self) -> None:
        with self._lock:
            self._counters = {}
            self._gauges = {}
            self._created_at = datetime.now(tz=UTC)

    def snapshot(self) -> dict[str, JSONValue]:
        with self._lock:
            counters = dict(self._counters)
            gauges = dict(self._gauges)
            created_at = self._created_at
        return {
            "created_at": created_at.isoformat(timespec="seconds").replace("+00:00", "Z"),
            "counters": _render(counters),
            "gauges": _render(gauges),
        }

    def to_json(self, *, indent: int | None = None) -> str:
        separators = (",", ":") if indent is None else None
        return json.dumps(
            self.snapshot(),
            sort_keys=True,
            indent=indent,
            separators=separators,
            ensure_ascii=False,
        )


def _render(series: Mapping[_SeriesKey, float]) -> dict[str, JSONValue]:
    rendered: dict[str, JSONValue] = {}
    for name, labels in sorted(series):
        identifier = name
        if labels:
            identifier += "{" + ",".join(f"{key}={value}" for key, value in labels) + "}"
        rendered[identifier] = series[(name, labels)]
    return rendered


def _series(name: str, labels: Mapping[str, str] | None) -> _SeriesKey:
    if not isinstance(name, str) or not name.strip():
        raise ValueError("metric name must be a non-empty string")
    metric = name.strip()
    if len(metric) > _MAX_NAME_LENGTH:
        raise ValueError(f"metric name longer than {_MAX_NAME_LENGTH} characters: {metric[:32]}...")

    pairs: list[tuple[str, str]] = []
    for key, value in (labels or {}).items():
        if not isinstance(key, str) or not key.strip():
            raise ValueError(f"{metric}: label names must be non-empty strings")
        if not isinstance(value, str) or not value.strip():
            raise ValueError(f"{metric}: label {key!r} needs a non-empty string value")
        if len(value) > _MAX_LABEL_LENGTH:
            raise ValueError(f"{metric}: label {key!r} longer than {_MAX_LABEL_LENGTH} characters")
        pairs.append((key.strip(), value.strip()))
    return metric, tuple(sorted(pairs))


def _finite(value: float, what: str) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValueError(f"{what} must be a number, got {type(value).__name__}")
    if not math.isfinite(value):
        raise ValueError(f"{what} must be finite")
    return float(value)


__all__ = [
    "CACHED_RESOURCE_TYPES",
    "CACHE_HITS",
    "CACHE_INVALIDATIONS",
    "CACHE_INVALIDATIONS_COALESCED",
    "CACHE_MISSES",
    "JSONScalar",
    "JSONValue",
    "MODELS_ACCEPTED",
    "MODELS_REJECTED",
    "RESOLUTIONS",
    "VALIDATIONS",
    "MetricsRegistry",
]
