"""Build an ``InMemoryRepository`` from a YAML document of model definitions."""

from __future__ import annotations

from collections.abc import Mapping
from pathlib import Path
from typing import cast

import yaml

from resource_validation.constants import DEFAULT_SEARCH_ROOTS
from resource_validation.observability.events import ChangeEventBus
from resource_validation.repository.base import join_path, normalize_path
from resource_validation.repository.memory import InMemoryRepository

_SEARCH_ROOTS_KEY = "search_roots"
_RESOURCES_KEY = "resources"


def load_yaml_repository(
    source: str | Path,
    *,
    event_bus: ChangeEventBus | None = None,
) -> InMemoryRepository:
    """Load a repository from a YAML file (``Path``) or YAML text (``str``).

    Expected shape::

        search_roots: [/apps, /libs]
        resources:
          /libs/validation/models/model1:
            resourceType: validation/model
            fields:
              title:
                fieldType: string

    Nested mappings become child resources; scalars and lists of scalars
    become properties. The bus is attached only after loading, so the initial
    contents do not emit change events.
    """

    origin, loaded = _read_document(source)
    if loaded is None:
        loaded = {}
    if not isinstance(loaded, Mapping):
        raise ValueError(f"{origin}: expected top-level YAML mapping, got {type(loaded).__name__}")

    unknown = sorted(str(key) for key in loaded if key not in {_SEARCH_ROOTS_KEY, _RESOURCES_KEY})
    if unknown:
        raise ValueError(f"{origin}: unknown top-level keys: {', '.join(unknown)}")

    roots = _parse_search_roots(loaded.get(_SEARCH_ROOTS_KEY), origin)
    repository = InMemoryRepository(roots)

    resources = loaded.get(_RESOURCES_KEY) or {}
    if not isinstance(resources, Mapping):
        raise ValueError(f"{origin}.{_RESOURCES_KEY}: expected mapping")
    for raw_path, body in resources.items():
        if not isinstance(raw_path, str):
            raise ValueError(f"{origin}.{_RESOURCES_KEY}: resource paths must be strings")
        try:
            path = normalize_path(raw_path)
        except ValueError as exc:
            raise ValueError(f"{origin}.{_RESOURCES_KEY}: {exc}") from exc
        _store(repository, path, body, origin)

    repository.attach_event_bus(event_bus)
    return repository


def _read_document(source: str | Path) -> tuple[str, object]:
    if isinstance(source, Path):
        try:
            with source.open("r", encoding="utf-8") as handle:
                return str(source), cast("object", yaml.safe_load(handle))
        except yaml.YAMLError as exc:
            raise ValueError(f"{source}: invalid YAML ({exc})") from exc
    if not isinstance(source, str):
        raise ValueError(f"source must be a Path or YAML text, got {type(source).__name__}")
    try:
        return "<yaml>", cast("object", yaml.safe_load(source))
    except yaml.YAMLError as exc:
        raise ValueError(f"<yaml>: invalid YAML ({exc})") from exc


def _parse_search_roots(raw: object, origin: str) -> tuple[str, ...]:
    if raw is None:
        return DEFAULT_SEARCH_ROOTS
    items = [raw] if isinstance(raw, str) else raw
    if not isinstance(items, list) or not items:
        raise ValueError(f"{origin}.{_SEARCH_ROOTS_KEY}: expected non-empty list of paths")
    roots: list[str] = []
    for index, item in enumerate(items):
        if not isinstance(item, str):
            raise ValueError(f"{origin}.{_SEARCH_ROOTS_KEY}[{index}]: expected string")
        roots.append(normalize_path(item))
    return tuple(roots)


def _store(repository: InMemoryRepository, path: str, body: object, origin: str) -> None:
    if body is None:
        body = {}
    if not isinstance(body, Mapping):
        raise ValueError(f"{origin}:{path}: expected mapping, got {type(body).__name__}")

    properties: dict[str, object] = {}
    children: list[tuple[str, object]] = []
    for key, value in body.items():
        if not isinstance(key, str) or not key or "/" in key:
            raise ValueError(f"{origin}:{path}: invalid name {key!r}")
        if value is None or isinstance(value, Mapping):
            children.append((key, value))
        elif isinstance(value, list):
            properties[key] = tuple(_as_scalar(item, f"{origin}:{path}.{key}") for item in value)
        else:
            properties[key] = _as_scalar(value, f"{origin}:{path}.{key}")

    repository.put_resource(path, properties)
    for name, child in children:
        _store(repository, join_path(path, name), child, origin)


def _as_scalar(value: object, where: str) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (str, int, float)):
        return str(value)
    raise ValueError(f"{where}: expected scalar, got {type(value).__name__}")


__all__ = ["load_yaml_repository"]
