"""Clear the model cache when stored model definitions change."""

from __future__ import annotations

import threading
from collections.abc import Iterable
from typing import Any

import structlog

from resource_validation.domain.events import ChangeKind, ResourceChangeEvent
from resource_validation.observability.events import ChangeEventBus
from resource_validation.observability.metrics import (
    CACHE_INVALIDATIONS,
    CACHE_INVALIDATIONS_COALESCED,
    CACHED_RESOURCE_TYPES,
    MetricsRegistry,
)
from resource_validation.service.cache import ModelCache
from resource_validation.utils.concurrency import SerialExecutor


class InvalidationListener:
    """Turns change events under the watched prefixes into whole-cache clears.

    At most one clear is queued at a time: an event arriving while a clear is
    still pending is folded into it. Once a queued clear starts running, the
    next event queues a new one, so no change is missed.
    """

    def __init__(
        self,
        cache: ModelCache,
        executor: SerialExecutor,
        *,
        watched_prefixes: Iterable[str],
        logger: Any | None = None,
        metrics: MetricsRegistry | None = None,
    ) -> None:
        prefixes = tuple(prefix.rstrip("/") for prefix in watched_prefixes)
        if not prefixes or any(not prefix for prefix in prefixes):
            raise ValueError("watched_prefixes must be non-empty absolute paths")
        self._cache = cache
        self._executor = executor
        self._prefixes = prefixes
        self._logger = logger if logger is not None else structlog.get_logger(__name__)
        self._metrics = metrics
        self._lock = threading.Lock()
        self._pending = False
        self._bus: ChangeEventBus | None = None
        self._token: int | None = None

    @property
    def watched_prefixes(self) -> tuple[str, ...]:
        return self._prefixes

    @property
    def is_attached(self) -> bool:
        return self._token is not None

    def attach(self, bus: ChangeEventBus) -> None:
        with self._lock:
            if self._bus is bus and self._token is not None:
                return
        self.detach()
        token = bus.subscribe(
            self.handle_event,
            kinds=(ChangeKind.ADDED, ChangeKind.CHANGED, ChangeKind.REMOVED),
            path_prefixes=self._prefixes,
        )
        with self._lock:
            self._bus = bus
            self._token = token
        self._logger.info("invalidation_listener_attached", watched_prefixes=list(self._prefixes))

    def detach(self) -> bool:
        with self._lock:
            bus, token = self._bus, self._token
            self._bus = None
            self._token = None
        if bus is None or token is None:
            return False
        return bus.unsubscribe(token)

    def handle_event(self, event: ResourceChangeEvent) -> bool:
        """Queue one cache clear for ``event``; returns ``False`` when ignored or coalesced."""

        if not any(event.is_under(prefix) for prefix in self._prefixes):
            return False

        with self._lock:
            if self._pending:
                self._coalesced(event)
                return False
            self._pending = True

        if not self._executor.is_running:
            self._logger.debug("invalidation_inline_clear", path=event.path)
            self._run_clear()
            return True

        if self._executor.submit(self._run_clear):
            return True

        # Refused by a full or stopping executor: clear inline.
        self._logger.debug("invalidation_inline_clear", path=event.path, reason="submit_refused")
        self._run_clear()
        return True

    def _run_clear(self) -> None:
        with self._lock:
            self._pending = False
        dropped = self._cache.clear()
        if self._metrics is not None:
            self._metrics.inc(CACHE_INVALIDATIONS)
            self._metrics.set_gauge(CACHED_RESOURCE_TYPES, len(self._cache))
        self._logger.info("model_cache_cleared", dropped_resource_types=dropped)

    def _coalesced(self, event: ResourceChangeEvent) -> None:
        if self._metrics is not None:
            self._metrics.inc(CACHE_INVALIDATIONS_COALESCED)
        self._logger.debug("invalidation_coalesced", path=event.path, kind=event.kind.value)


__all__ = ["InvalidationListener"]
