"""Immutable validation model types: fields, validator bindings, models, and results."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import ClassVar

from resource_validation.domain.types import FieldType
from resource_validation.validators.base import Validator


def parse_validator_arguments(raw: str | Iterable[str] | None) -> Mapping[str, str]:
    """Parse ``key=value`` entries into a read-only mapping.

    Entries that do not split into exactly a key and a non-empty value are
    dropped. A later entry for the same key replaces an earlier one.
    """

    if raw is None:
        return MappingProxyType({})
    entries = (raw,) if isinstance(raw, str) else tuple(raw)
    parsed: dict[str, str] = {}
    for entry in entries:
        if not isinstance(entry, str):
            continue
        parts = entry.split("=")
        if len(parts) != 2 or not parts[1]:
            continue
        parsed[parts[0]] = parts[1]
    return MappingProxyType(parsed)


@dataclass(frozen=True, slots=True)
class ValidatorBinding:
    """A resolved validator plus the arguments it is invoked with."""

    name: str
    validator: Validator
    arguments: Mapping[str, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if not isinstance(self.arguments, MappingProxyType):
            object.__setattr__(self, "arguments", MappingProxyType(dict(self.arguments)))

    def __hash__(self) -> int:
        return hash((self.name, id(self.validator), tuple(sorted(self.arguments.items()))))


@dataclass(frozen=True, slots=True)
class Field:
    """One validated property: its scalar type and its ordered validators.

    ``type`` is ``None`` only for fields whose declared type was unknown and
    whose type check is configured to always pass.
    """

    name: str
    type: FieldType | None
    bindings: tuple[ValidatorBinding, ...] = ()

    def __post_init__(self) -> None:
        if not isinstance(self.name, str) or not self.name:
            raise ValueError("Field.name must be a non-empty string")
        object.__setattr__(self, "bindings", tuple(self.bindings))

    @property
    def type_name(self) -> str:
        return self.type.value if self.type is not None else "<unknown>"

    @property
    def validators(self) -> Mapping[Validator, Mapping[str, str]]:
        return MappingProxyType({binding.validator: binding.arguments for binding in self.bindings})

    def accepts_type(self, raw: str) -> bool:
        if self.type is None:
            return True
        return self.type.is_valid(raw)


@dataclass(frozen=True, slots=True)
class ValidationModel:
    """Field definitions bound to a resource type and the paths they govern."""

    fields: tuple[Field, ...]
    validated_resource_type: str
    applicable_paths: tuple[str, ...] = ()
    source_path: str | None = None

    def __post_init__(self) -> None:
        by_name: dict[str, Field] = {}
        for item in self.fields:
            if not isinstance(item, Field):
                kind = type(item).__name__
                raise ValueError(f"ValidationModel.fields: expected Field, got {kind}")
            by_name[item.name] = item
        object.__setattr__(self, "fields", tuple(by_name.values()))
        object.__setattr__(self, "applicable_paths", tuple(self.applicable_paths))
        if not isinstance(self.validated_resource_type, str):
            raise ValueError("ValidationModel.validated_resource_type must be a string")

    @property
    def field_names(self) -> tuple[str, ...]:
        return tuple(item.name for item in self.fields)

    def field(self, name: str) -> Field | None:
        for item in self.fields:
            if item.name == name:
                return item
        return None


@dataclass(frozen=True, slots=True)
class ValidationResult:
    """Outcome of applying a model to a record; ``message`` is empty on success."""

    message: str
    valid: bool

    SUCCESS: ClassVar[ValidationResult]

    @classmethod
    def success(cls) -> ValidationResult:
        return cls.SUCCESS

    @classmethod
    def failure(cls, message: str) -> ValidationResult:
        return cls(message=message, valid=False)


ValidationResult.SUCCESS = ValidationResult(message="", valid=True)


__all__ = [
    "Field",
    "ValidationModel",
    "ValidationResult",
    "ValidatorBinding",
    "parse_validator_arguments",
]
