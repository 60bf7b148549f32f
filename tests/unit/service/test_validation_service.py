"""
resource-validation — unit tests for the validation service facade

File: tests/unit/service/test_validation_service.py

Purpose
- Validate lookup caching, invalidation wiring, and config-driven construction.

What this test file should cover
- A cached trie answers repeated lookups without touching the repository.
- Resource types without models are never cached.
- Repository changes under a model area invalidate the cache.
- ``activate``/``deactivate`` are idempotent; disabled invalidation is a no-op.
"""

from __future__ import annotations

import json
from collections.abc import Iterator, Sequence
from pathlib import Path

import pytest
import structlog

from resource_validation.errors import ValidationInputError
from resource_validation.observability.events import ChangeEventBus
from resource_validation.observability.logging import setup_logging, shutdown_logging
from resource_validation.observability.metrics import CACHE_HITS, CACHE_MISSES
from resource_validation.repository import InMemoryRepository, ResourceHandle
from resource_validation.service import ValidationService

TYPE = "example/type"


class _CountingRepository(InMemoryRepository):
    def __init__(self, *args: object, **kwargs: object) -> None:
        super().__init__(*args, **kwargs)  # type: ignore[arg-type]
        self.queries: list[str] = []

    def query_model_definitions(
        self, marker_type: str, resource_type: str, search_root: str
    ) -> Sequence[ResourceHandle]:
        self.queries.append(search_root)
        return super().query_model_definitions(marker_type, resource_type, search_root)


@pytest.fixture
def bus() -> ChangeEventBus:
    return ChangeEventBus()


@pytest.fixture
def counting(bus: ChangeEventBus) -> _CountingRepository:
    return _CountingRepository(event_bus=bus)


@pytest.fixture
def service(counting: _CountingRepository) -> Iterator[ValidationService]:
    instance = ValidationService(counting)
    yield instance
    instance.deactivate()


def _store_article(store, repository: InMemoryRepository, field_type: str = "string") -> None:
    store(
        repository,
        "/apps/validation/models/article",
        resource_type=TYPE,
        applicable_paths=["/content/articles"],
        fields={"title": {"type": field_type}},
    )


def test_lookup_is_cached_after_first_resolution(
    service: ValidationService, counting: _CountingRepository, store
) -> None:
    _store_article(store, counting)

    first = service.get_validation_model(TYPE, "/content/articles/a")
    queries_after_first = len(counting.queries)
    second = service.get_validation_model(TYPE, "/content/articles/b")

    assert first is not None
    assert second is first
    assert queries_after_first == 2
    assert len(counting.queries) == 2
    assert service.metrics.get_counter(CACHE_MISSES) == 1.0
    assert service.metrics.get_counter(CACHE_HITS) == 1.0
    assert TYPE in service.cache


def test_paths_without_applicable_model_return_none(
    service: ValidationService, counting: _CountingRepository, store
) -> None:
    _store_article(store, counting)

    assert service.get_validation_model(TYPE, "/elsewhere") is None
    assert TYPE in service.cache


def test_resource_types_without_models_are_not_cached(
    service: ValidationService, counting: _CountingRepository
) -> None:
    assert service.get_validation_model("missing/type", "/content") is None
    assert service.get_validation_model("missing/type", "/content") is None

    assert len(counting.queries) == 4
    assert "missing/type" not in service.cache


def test_model_added_later_is_found_without_invalidation(
    service: ValidationService, counting: _CountingRepository, store
) -> None:
    assert service.get_validation_model(TYPE, "/content/articles/a") is None

    _store_article(store, counting)

    assert service.get_validation_model(TYPE, "/content/articles/a") is not None


def test_repository_change_invalidates_cached_models(
    service: ValidationService, counting: _CountingRepository, bus: ChangeEventBus, store
) -> None:
    _store_article(store, counting)
    service.activate(bus)
    before = service.get_validation_model(TYPE, "/content/articles/a")
    assert before is not None and before.fields[0].type_name == "string"

    counting.put_resource("/apps/validation/models/article/fields/title", {"fieldType": "long"})
    assert service.drain(timeout_seconds=2.0)

    after = service.get_validation_model(TYPE, "/content/articles/a")
    assert after is not None
    assert after.fields[0].type_name == "long"


def test_changes_outside_model_areas_keep_the_cache(
    service: ValidationService, counting: _CountingRepository, bus: ChangeEventBus, store
) -> None:
    _store_article(store, counting)
    service.activate(bus)
    service.get_validation_model(TYPE, "/content/articles/a")

    counting.put_resource("/content/articles/a", {"title": "Hello"})
    assert service.drain(timeout_seconds=2.0)

    assert TYPE in service.cache


def test_activate_and_deactivate_are_idempotent(
    service: ValidationService, bus: ChangeEventBus
) -> None:
    service.activate(bus)
    service.activate(bus)

    assert service.is_active
    assert service.executor.is_running
    assert bus.subscriber_count == 1

    service.deactivate()
    service.deactivate()

    assert not service.is_active
    assert not service.executor.is_running
    assert bus.subscriber_count == 0


def test_disabled_invalidation_makes_activate_a_no_op(
    counting: _CountingRepository, bus: ChangeEventBus
) -> None:
    service = ValidationService(counting, config={"invalidation": {"enabled": False}})

    service.activate(bus)

    assert not service.is_active
    assert bus.subscriber_count == 0


def test_clear_cache_forces_re_resolution(
    service: ValidationService, counting: _CountingRepository, store
) -> None:
    _store_article(store, counting)
    service.get_validation_model(TYPE, "/content/articles/a")

    assert service.clear_cache() == 1
    service.get_validation_model(TYPE, "/content/articles/a")

    assert len(counting.queries) == 4


def test_validate_applies_the_resolved_model(
    service: ValidationService, counting: _CountingRepository, store
) -> None:
    _store_article(store, counting, field_type="int")
    model = service.get_validation_model(TYPE, "/content/articles/a")
    assert model is not None

    assert service.validate({"title": "42"}, model).valid
    assert service.validate({"title": "x"}, model).message == (
        "Field title was expected to be of type int"
    )


@pytest.mark.parametrize(("resource_type", "path"), [(None, "/a"), (TYPE, 7)])
def test_lookup_arguments_must_be_strings(
    service: ValidationService, resource_type: object, path: object
) -> None:
    with pytest.raises(ValidationInputError):
        service.get_validation_model(resource_type, path)  # type: ignore[arg-type]


def test_config_search_roots_are_authoritative(store) -> None:
    repository = _CountingRepository()
    store(
        repository,
        "/custom/validation/models/article",
        resource_type=TYPE,
        applicable_paths=["/content"],
        fields={"title": {"type": "string"}},
    )
    service = ValidationService(repository, config={"resolver": {"search_roots": ["/custom"]}})

    assert service.resolver.search_roots == ("/custom",)
    assert service.get_validation_model(TYPE, "/content") is not None
    assert repository.queries == ["/custom/validation/models"]


def test_from_config_reads_toml_and_environment(tmp_path: Path, store) -> None:
    config_path = tmp_path / "validation.toml"
    config_path.write_text(
        '[resolver]\nmodels_home = "rules"\n\n[invalidation]\nqueue_size = 4\n',
        encoding="utf-8",
    )
    repository = _CountingRepository()
    store(
        repository,
        "/libs/rules/article",
        resource_type=TYPE,
        applicable_paths=["/content"],
        fields={"title": {"type": "string"}},
    )

    service = ValidationService.from_config(
        repository,
        config_path,
        environ={"RESVAL_RESOLVER_UNKNOWN_FIELD_TYPE": "skip_type_check"},
    )

    assert service.config["resolver"]["models_home"] == "rules"
    assert service.config["resolver"]["unknown_field_type"] == "skip_type_check"
    assert service.config["invalidation"]["queue_size"] == 4
    assert service.resolver.model_areas == ("/apps/rules", "/libs/rules")
    assert service.get_validation_model(TYPE, "/content/x") is not None


def test_host_applies_observability_table_through_setup_logging(
    tmp_path: Path, bus: ChangeEventBus
) -> None:
    log_dir = tmp_path / "logs"
    config_path = tmp_path / "validation.toml"
    config_path.write_text(
        f'[observability]\nlog_dir = "{log_dir.as_posix()}"\nlog_to_stdout = false\n',
        encoding="utf-8",
    )
    service = ValidationService.from_config(InMemoryRepository(), config_path, environ={})

    handle = setup_logging(service.config["observability"])
    try:
        service.activate(bus)
        service.deactivate()
    finally:
        shutdown_logging(handle)
        structlog.reset_defaults()

    assert handle.log_path == log_dir / "resource-validation.jsonl"
    lines = handle.log_path.read_text(encoding="utf-8").splitlines()
    messages = [json.loads(line)["message"] for line in lines if line]
    assert "invalidation_listener_attached" in messages
