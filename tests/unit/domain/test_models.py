"""Validation model value objects: argument parsing, field dedupe, results."""

from __future__ import annotations

from collections.abc import Mapping

import pytest

from resource_validation.domain.models import (
    Field,
    ValidationModel,
    ValidationResult,
    ValidatorBinding,
    parse_validator_arguments,
)
from resource_validation.domain.types import FieldType


class _AlwaysTrue:
    def validate(self, value: str, arguments: Mapping[str, str]) -> bool:
        return True


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        (None, {}),
        ("regex=^a$", {"regex": "^a$"}),
        (["min=1", "max=3"], {"min": "1", "max": "3"}),
        (["novalue=", "noequals", "a=b=c", "ok=1"], {"ok": "1"}),
        (["k=1", "k=2"], {"k": "2"}),
        (["=orphan"], {"": "orphan"}),
    ],
)
def test_parse_validator_arguments(raw: object, expected: dict[str, str]) -> None:
    parsed = parse_validator_arguments(raw)  # type: ignore[arg-type]

    assert dict(parsed) == expected
    with pytest.raises(TypeError):
        parsed["new"] = "x"  # type: ignore[index]


def test_binding_arguments_are_read_only() -> None:
    binding = ValidatorBinding(name="always", validator=_AlwaysTrue(), arguments={"a": "1"})

    with pytest.raises(TypeError):
        binding.arguments["a"] = "2"  # type: ignore[index]


def test_field_exposes_validator_mapping_and_type_name() -> None:
    validator = _AlwaysTrue()
    field = Field(
        name="title",
        type=FieldType.STRING,
        bindings=(ValidatorBinding(name="always", validator=validator, arguments={"x": "y"}),),
    )

    assert dict(field.validators[validator]) == {"x": "y"}
    assert field.type_name == "string"
    assert Field(name="loose", type=None).type_name == "<unknown>"
    assert Field(name="loose", type=None).accepts_type("anything")


def test_field_requires_a_name() -> None:
    with pytest.raises(ValueError):
        Field(name="", type=FieldType.STRING)


def test_model_keeps_last_field_per_name() -> None:
    first = Field(name="title", type=FieldType.INT)
    second = Field(name="title", type=FieldType.STRING)
    other = Field(name="body", type=FieldType.STRING)

    model = ValidationModel(
        fields=(first, other, second),
        validated_resource_type="example/type",
        applicable_paths=["/content"],  # type: ignore[arg-type]
    )

    assert model.field_names == ("title", "body")
    assert model.field("title") is second
    assert model.field("missing") is None
    assert model.applicable_paths == ("/content",)


def test_validation_result_factories() -> None:
    assert ValidationResult.success() is ValidationResult.success()
    assert ValidationResult.success() == ValidationResult(message="", valid=True)

    failure = ValidationResult.failure("nope")
    assert failure.valid is False
    assert failure.message == "nope"
