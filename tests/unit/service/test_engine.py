"""
resource-validation — unit tests for the validation engine

File: tests/unit/service/test_engine.py

Purpose
- Validate how a model is applied to a record's property values.

What this test file should cover
- Result messages for each failure kind.
- First-failure short-circuiting across fields, validators, and values.
- Caller misuse surfaces as ``ValidationInputError``.
"""

from __future__ import annotations

from collections.abc import Mapping

import pytest
from hypothesis import given
from hypothesis import strategies as st
from structlog.testing import capture_logs

from resource_validation.domain.models import Field, ValidationModel, ValidatorBinding
from resource_validation.domain.types import FieldType
from resource_validation.errors import ValidationInputError, ValidatorError
from resource_validation.observability.metrics import VALIDATIONS, MetricsRegistry
from resource_validation.service.engine import ValidationEngine
from resource_validation.validators import AlphaCharactersValidator, RegexValidator


class _Recording:
    """Accepts values not listed in ``reject`` and records every call."""

    def __init__(self, reject: tuple[str, ...] = ()) -> None:
        self.reject = reject
        self.calls: list[str] = []

    def validate(self, value: str, arguments: Mapping[str, str]) -> bool:
        self.calls.append(value)
        return value not in self.reject


class _Exploding:
    def validate(self, value: str, arguments: Mapping[str, str]) -> bool:
        raise ValidatorError("service unavailable")


class _Broken:
    def validate(self, value: str, arguments: Mapping[str, str]) -> bool:
        return int(arguments["limit"]) > len(value)


def _model(*fields: Field) -> ValidationModel:
    return ValidationModel(fields=fields, validated_resource_type="example/type")


def test_valid_record_returns_success() -> None:
    model = _model(
        Field(
            name="title",
            type=FieldType.STRING,
            bindings=(ValidatorBinding("alphacharacters", AlphaCharactersValidator()),),
        ),
        Field(name="count", type=FieldType.INT),
    )

    result = ValidationEngine().validate({"title": "Hello", "count": "3", "extra": 5}, model)

    assert result.valid
    assert result.message == ""


@pytest.mark.parametrize("values", [{}, {"title": None}])
def test_missing_field_message(values: dict[str, object]) -> None:
    model = _model(Field(name="title", type=FieldType.STRING))

    result = ValidationEngine().validate(values, model)  # type: ignore[arg-type]

    assert not result.valid
    assert result.message == "Required field title was not found."


def test_type_mismatch_message() -> None:
    model = _model(Field(name="count", type=FieldType.INT))

    result = ValidationEngine().validate({"count": "three"}, model)

    assert result.message == "Field count was expected to be of type int"


def test_validator_rejection_message() -> None:
    model = _model(
        Field(
            name="code",
            type=FieldType.STRING,
            bindings=(ValidatorBinding("regex", RegexValidator(), {"regex": "[0-9]+"}),),
        )
    )

    result = ValidationEngine().validate({"code": "12a"}, model)

    assert result.message == "Field code does not contain a valid value for the regex validator"


def test_validator_error_becomes_invalid_result_and_is_logged() -> None:
    model = _model(
        Field(
            name="code",
            type=FieldType.STRING,
            bindings=(ValidatorBinding("remote", _Exploding()),),
        )
    )

    with capture_logs() as logs:
        result = ValidationEngine().validate({"code": "x"}, model)

    assert not result.valid
    assert result.message == (
        "Field code could not be validated by the remote validator: service unavailable"
    )
    (entry,) = logs
    assert entry["event"] == "validation_engine_validator_error"
    assert entry["validator"] == "remote"


def test_unexpected_validator_failure_becomes_invalid_result_and_is_logged() -> None:
    model = _model(
        Field(
            name="n",
            type=FieldType.STRING,
            bindings=(ValidatorBinding("maxlength", _Broken()),),
        )
    )

    with capture_logs() as logs:
        result = ValidationEngine().validate({"n": "x"}, model)

    assert not result.valid
    assert result.message == "Field n could not be validated by the maxlength validator: KeyError"
    (entry,) = logs
    assert entry["event"] == "validation_engine_validator_failed"
    assert entry["error_type"] == "KeyError"
    assert entry["log_level"] == "error"


@pytest.mark.parametrize("field_type", [FieldType.INT, FieldType.LONG])
def test_very_long_integer_value_is_a_type_mismatch(field_type: FieldType) -> None:
    model = _model(Field(name="n", type=field_type))

    result = ValidationEngine().validate({"n": "1" * 5000}, model)

    assert not result.valid
    assert result.message == f"Field n was expected to be of type {field_type.type_name}"


def test_missing_regex_argument_is_reported_not_raised() -> None:
    model = _model(
        Field(
            name="code",
            type=FieldType.STRING,
            bindings=(ValidatorBinding("regex", RegexValidator()),),
        )
    )

    result = ValidationEngine().validate({"code": "x"}, model)

    assert not result.valid
    assert result.message.startswith("Field code could not be validated by the regex validator")


def test_first_failing_field_stops_evaluation() -> None:
    later = _Recording()
    model = _model(
        Field(name="count", type=FieldType.INT),
        Field(name="title", type=FieldType.STRING, bindings=(ValidatorBinding("later", later),)),
    )

    result = ValidationEngine().validate({"count": "x", "title": "t"}, model)

    assert result.message == "Field count was expected to be of type int"
    assert later.calls == []


def test_every_value_is_type_checked_before_validators_run() -> None:
    recording = _Recording()
    model = _model(
        Field(name="sizes", type=FieldType.INT, bindings=(ValidatorBinding("rec", recording),))
    )

    result = ValidationEngine().validate({"sizes": ["1", "2", "big"]}, model)

    assert result.message == "Field sizes was expected to be of type int"
    assert recording.calls == []


def test_validators_run_in_order_over_all_values_and_stop_at_first_rejection() -> None:
    first = _Recording(reject=("b",))
    second = _Recording()
    model = _model(
        Field(
            name="tags",
            type=FieldType.STRING,
            bindings=(ValidatorBinding("first", first), ValidatorBinding("second", second)),
        )
    )

    result = ValidationEngine().validate({"tags": ("a", "b", "c")}, model)

    assert result.message == "Field tags does not contain a valid value for the first validator"
    assert first.calls == ["a", "b"]
    assert second.calls == []


def test_empty_sequence_passes_type_check_and_validators() -> None:
    recording = _Recording()
    model = _model(
        Field(name="tags", type=FieldType.INT, bindings=(ValidatorBinding("rec", recording),))
    )

    assert ValidationEngine().validate({"tags": []}, model).valid
    assert recording.calls == []


def test_results_are_counted() -> None:
    metrics = MetricsRegistry()
    engine = ValidationEngine(metrics=metrics)
    model = _model(Field(name="count", type=FieldType.INT))

    engine.validate({"count": "1"}, model)
    engine.validate({"count": "x"}, model)
    engine.validate({}, model)

    assert metrics.get_counter(VALIDATIONS, labels={"valid": "true"}) == 1.0
    assert metrics.get_counter(VALIDATIONS, labels={"valid": "false"}) == 2.0


@pytest.mark.parametrize(
    ("values", "model"),
    [
        (None, _model(Field(name="a", type=FieldType.STRING))),
        ({"a": "x"}, None),
        ([("a", "x")], _model(Field(name="a", type=FieldType.STRING))),
        ({"a": "x"}, "not a model"),
        ({"a": 1}, _model(Field(name="a", type=FieldType.STRING))),
        ({"a": b"x"}, _model(Field(name="a", type=FieldType.STRING))),
        ({"a": ["x", 2]}, _model(Field(name="a", type=FieldType.STRING))),
    ],
)
def test_misuse_raises_validation_input_error(values: object, model: object) -> None:
    with pytest.raises(ValidationInputError):
        ValidationEngine().validate(values, model)  # type: ignore[arg-type]


@given(st.lists(st.integers(min_value=-(2**31), max_value=2**31 - 1), max_size=8))
def test_in_range_integers_always_pass_int_fields(numbers: list[int]) -> None:
    model = _model(Field(name="n", type=FieldType.INT))

    result = ValidationEngine().validate({"n": [str(number) for number in numbers]}, model)

    assert result.valid
