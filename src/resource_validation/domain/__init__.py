"""
resource-validation — domain layer

File: src/resource_validation/domain/__init__.py

Purpose
- Domain types shared by the resolver, engine, and cache: FieldType, Field,
  ValidationModel, ValidationResult, and repository change events.

Functional requirements
- Domain objects are immutable once constructed and safe to share across threads.

Non-functional requirements
- Domain layer has no IO side effects.
"""

from resource_validation.domain.events import ChangeKind, ResourceChangeEvent
from resource_validation.domain.models import (
    Field,
    ValidationModel,
    ValidationResult,
    ValidatorBinding,
    parse_validator_arguments,
)
from resource_validation.domain.types import DATE_FORMATS, FieldType

__all__ = [
    "DATE_FORMATS",
    "ChangeKind",
    "Field",
    "FieldType",
    "ResourceChangeEvent",
    "ValidationModel",
    "ValidationResult",
    "ValidatorBinding",
    "parse_validator_arguments",
]
