"""Shared helpers for storing model definitions in an in-memory repository."""

from __future__ import annotations

from collections.abc import Callable, Mapping, Sequence

import pytest

from resource_validation.repository import InMemoryRepository

MARKER = "validation/model"

FieldDefinition = Mapping[str, object]
StoreModel = Callable[..., str]


def store_model(
    repository: InMemoryRepository,
    path: str,
    *,
    resource_type: str,
    applicable_paths: Sequence[str],
    fields: Mapping[str, FieldDefinition],
) -> str:
    """Write one model definition plus its ``fields``/``validators`` subtree.

    Each field definition may carry ``type`` (omitted means no ``fieldType`` property)
    and ``validators``, a mapping of validator name to ``validatorArguments``.
    """

    repository.put_resource(
        path,
        {
            "resourceType": MARKER,
            "validatedResourceType": resource_type,
            "applicablePaths": list(applicable_paths),
        },
    )
    repository.put_resource(f"{path}/fields", {})
    for name, definition in fields.items():
        field_properties: dict[str, object] = {}
        if "type" in definition:
            field_properties["fieldType"] = definition["type"]
        repository.put_resource(f"{path}/fields/{name}", field_properties)
        validators = definition.get("validators")
        if isinstance(validators, Mapping):
            for validator_name, arguments in validators.items():
                repository.put_resource(
                    f"{path}/fields/{name}/validators/{validator_name}",
                    {"validatorArguments": list(arguments)},
                )
    return path


@pytest.fixture
def repository() -> InMemoryRepository:
    return InMemoryRepository()


@pytest.fixture
def store() -> StoreModel:
    return store_model
