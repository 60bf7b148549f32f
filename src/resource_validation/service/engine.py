"""Apply a validation model to a record's property values."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any

import structlog

from resource_validation.domain.models import Field, ValidationModel, ValidationResult
from resource_validation.errors import ValidationInputError, ValidatorError
from resource_validation.observability.metrics import VALIDATIONS, MetricsRegistry

RecordValues = Mapping[str, str | Sequence[str] | None]


class ValidationEngine:
    """Checks fields in model order and stops at the first failure.

    For each field every value is type-checked before any validator runs;
    validators then run in binding order, each over every value.
    """

    def __init__(
        self,
        *,
        logger: Any | None = None,
        metrics: MetricsRegistry | None = None,
    ) -> None:
        self._logger = logger if logger is not None else structlog.get_logger(__name__)
        self._metrics = metrics

    def validate(self, values: RecordValues, model: ValidationModel) -> ValidationResult:
        if values is None:
            raise ValidationInputError("values must not be None")
        if model is None:
            raise ValidationInputError("model must not be None")
        if not isinstance(values, Mapping):
            raise ValidationInputError(
                f"values must be a mapping, got {type(values).__name__}"
            )
        if not isinstance(model, ValidationModel):
            raise ValidationInputError(
                f"model must be a ValidationModel, got {type(model).__name__}"
            )

        result = ValidationResult.success()
        for field in model.fields:
            result = self._check_field(field, values.get(field.name))
            if not result.valid:
                break

        if self._metrics is not None:
            self._metrics.inc(VALIDATIONS, labels={"valid": "true" if result.valid else "false"})
        return result

    def _check_field(self, field: Field, raw: object) -> ValidationResult:
        if raw is None:
            return ValidationResult.failure(f"Required field {field.name} was not found.")

        elements = _as_elements(field.name, raw)
        for element in elements:
            if not field.accepts_type(element):
                return ValidationResult.failure(
                    f"Field {field.name} was expected to be of type {field.type_name}"
                )

        for binding in field.bindings:
            for element in elements:
                try:
                    accepted = binding.validator.validate(element, binding.arguments)
                except ValidatorError as exc:
                    self._logger.warning(
                        "validation_engine_validator_error",
                        field=field.name,
                        validator=binding.name,
                        error=str(exc),
                    )
                    return ValidationResult.failure(
                        f"Field {field.name} could not be validated by the "
                        f"{binding.name} validator: {exc}"
                    )
                except Exception as exc:  # noqa: BLE001
                    self._logger.error(
                        "validation_engine_validator_failed",
                        field=field.name,
                        validator=binding.name,
                        error_type=exc.__class__.__name__,
                        error=str(exc),
                    )
                    return ValidationResult.failure(
                        f"Field {field.name} could not be validated by the "
                        f"{binding.name} validator: {exc.__class__.__name__}"
                    )
                if not accepted:
                    return ValidationResult.failure(
                        f"Field {field.name} does not contain a valid value for the "
                        f"{binding.name} validator"
                    )
        return ValidationResult.success()


def _as_elements(name: str, raw: object) -> tuple[str, ...]:
    if isinstance(raw, str):
        return (raw,)
    if isinstance(raw, Sequence) and not isinstance(raw, (bytes, bytearray)):
        elements = tuple(raw)
        for index, element in enumerate(elements):
            if not isinstance(element, str):
                raise ValidationInputError(
                    f"values[{name!r}][{index}] must be a string, got {type(element).__name__}"
                )
        return elements
    raise ValidationInputError(
        f"values[{name!r}] must be a string or a sequence of strings, got {type(raw).__name__}"
    )


__all__ = ["RecordValues", "ValidationEngine"]
