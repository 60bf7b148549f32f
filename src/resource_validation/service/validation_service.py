"""
resource-validation — validation service facade.

File: src/resource_validation/service/validation_service.py

Purpose
- Wire the resolver, cache, engine, and invalidation listener into the one
  object applications hold on to.

Functional requirements
- ``get_validation_model`` populates the cache lazily on the caller's thread.
  A cached trie answers every lookup for its resource type until the next
  invalidation; a type with no models is re-resolved on every call.
- ``activate``/``deactivate`` start and stop background invalidation and are
  safe to call repeatedly.

Non-functional requirements
- Lookups never take a lock; only invalidation touches the worker thread.
"""

from __future__ import annotations

from collections.abc import Mapping
from pathlib import Path
from typing import Any

import structlog

from resource_validation.config.loader import load_config
from resource_validation.config.schema import assert_valid_config, default_config, merge_config
from resource_validation.domain.events import ResourceChangeEvent
from resource_validation.domain.models import ValidationModel, ValidationResult
from resource_validation.errors import ValidationInputError
from resource_validation.observability.events import ChangeEventBus
from resource_validation.observability.metrics import (
    CACHE_HITS,
    CACHE_MISSES,
    CACHED_RESOURCE_TYPES,
    MetricsRegistry,
)
from resource_validation.repository.base import ModelRepository
from resource_validation.service.cache import ModelCache
from resource_validation.service.engine import RecordValues, ValidationEngine
from resource_validation.service.invalidation import InvalidationListener
from resource_validation.service.resolver import ModelResolver
from resource_validation.utils.concurrency import SerialExecutor
from resource_validation.validators.base import ValidatorRegistry


class ValidationService:
    """Resolve, cache, and apply validation models for one repository.

    When ``config`` is omitted the repository's own search roots are used;
    a supplied config's ``resolver.search_roots`` is authoritative.
    """

    def __init__(
        self,
        repository: ModelRepository,
        *,
        validator_registry: ValidatorRegistry | None = None,
        config: Mapping[str, object] | None = None,
        executor: SerialExecutor | None = None,
        metrics: MetricsRegistry | None = None,
        logger: Any | None = None,
    ) -> None:
        effective = assert_valid_config(merge_config(default_config(), config or {}))
        resolver_cfg = effective["resolver"]
        invalidation_cfg = effective["invalidation"]

        self._config = effective
        self._logger = logger if logger is not None else structlog.get_logger(__name__)
        self._metrics = metrics if metrics is not None else MetricsRegistry()
        self._cache = ModelCache()
        self._resolver = ModelResolver(
            repository,
            validator_registry,
            search_roots=None if config is None else resolver_cfg["search_roots"],
            models_home=resolver_cfg["models_home"],
            model_marker_type=resolver_cfg["model_marker_type"],
            unknown_field_type=resolver_cfg["unknown_field_type"],
            logger=logger,
            metrics=self._metrics,
        )
        self._engine = ValidationEngine(logger=logger, metrics=self._metrics)
        self._executor = (
            executor
            if executor is not None
            else SerialExecutor(queue_size=invalidation_cfg["queue_size"], logger=logger)
        )
        self._listener = InvalidationListener(
            self._cache,
            self._executor,
            watched_prefixes=self._resolver.model_areas,
            logger=logger,
            metrics=self._metrics,
        )
        self._invalidation_enabled: bool = invalidation_cfg["enabled"]
        self._drain_timeout: float = invalidation_cfg["drain_timeout_seconds"]

    @classmethod
    def from_config(
        cls,
        repository: ModelRepository,
        config_path: str | Path | None = None,
        *,
        cli_overrides: Mapping[str, object] | None = None,
        environ: Mapping[str, str] | None = None,
        **kwargs: Any,
    ) -> ValidationService:
        """Build a service from ``validation.toml`` plus env and override layers.

        The ``[observability]`` table is validated here but not applied: the
        service never installs log handlers. Hosts that want the configured
        sinks call ``setup_logging(service.config["observability"])``.
        """

        config = load_config(config_path, cli_overrides=cli_overrides, environ=environ)
        return cls(repository, config=config, **kwargs)

    @property
    def config(self) -> Mapping[str, Any]:
        return self._config

    @property
    def cache(self) -> ModelCache:
        return self._cache

    @property
    def metrics(self) -> MetricsRegistry:
        return self._metrics

    @property
    def resolver(self) -> ModelResolver:
        return self._resolver

    @property
    def executor(self) -> SerialExecutor:
        return self._executor

    @property
    def is_active(self) -> bool:
        return self._listener.is_attached

    def get_validation_model(self, resource_type: str, path: str) -> ValidationModel | None:
        """Return the most specific model for ``resource_type`` at ``path``, if any."""

        if not isinstance(resource_type, str):
            raise ValidationInputError(
                f"resource_type must be a string, got {type(resource_type).__name__}"
            )
        if not isinstance(path, str):
            raise ValidationInputError(f"path must be a string, got {type(path).__name__}")

        trie = self._cache.get(resource_type)
        if trie is not None:
            self._metrics.inc(CACHE_HITS)
            return trie.longest_match(path)

        self._metrics.inc(CACHE_MISSES)
        generation = self._cache.generation
        trie = self._resolver.resolve(resource_type)
        if trie is None:
            return None
        if self._cache.publish(resource_type, trie, generation):
            self._metrics.set_gauge(CACHED_RESOURCE_TYPES, len(self._cache))
        else:
            self._logger.debug("model_cache_publish_discarded", resource_type=resource_type)
        return trie.longest_match(path)

    def validate(self, values: RecordValues, model: ValidationModel) -> ValidationResult:
        return self._engine.validate(values, model)

    def activate(self, bus: ChangeEventBus) -> None:
        if not self._invalidation_enabled:
            self._logger.info("validation_service_invalidation_disabled")
            return
        self._executor.start()
        self._listener.attach(bus)

    def deactivate(self) -> None:
        self._listener.detach()
        self._executor.shutdown(timeout_seconds=self._drain_timeout)

    def handle_event(self, event: ResourceChangeEvent) -> bool:
        return self._listener.handle_event(event)

    def drain(self, *, timeout_seconds: float | None = None) -> bool:
        """Wait for queued invalidations; returns ``False`` on timeout."""

        timeout = self._drain_timeout if timeout_seconds is None else timeout_seconds
        return self._executor.drain(timeout_seconds=timeout)

    def clear_cache(self) -> int:
        return self._cache.clear()


__all__ = ["ValidationService"]
