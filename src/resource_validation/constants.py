"""Stable constants shared across the resolver, repository adapters, and config."""

from __future__ import annotations

from typing import Final

# Property and child names of a persisted model definition.
VALIDATED_RESOURCE_TYPE: Final[str] = "validatedResourceType"
APPLICABLE_PATHS: Final[str] = "applicablePaths"
FIELDS: Final[str] = "fields"
FIELD_TYPE: Final[str] = "fieldType"
VALIDATORS: Final[str] = "validators"
VALIDATOR_ARGUMENTS: Final[str] = "validatorArguments"

# Property carrying the marker type of any stored resource.
RESOURCE_TYPE_PROPERTY: Final[str] = "resourceType"

# Defaults for where and how model definitions are stored.
DEFAULT_MODEL_MARKER_TYPE: Final[str] = "validation/model"
DEFAULT_MODELS_HOME: Final[str] = "validation/models"
DEFAULT_SEARCH_ROOTS: Final[tuple[str, ...]] = ("/apps", "/libs")

# Policies for a field whose declared type name is not recognized.
UNKNOWN_FIELD_TYPE_REJECT_MODEL: Final[str] = "reject_model"
UNKNOWN_FIELD_TYPE_SKIP_CHECK: Final[str] = "skip_type_check"
UNKNOWN_FIELD_TYPE_POLICIES: Final[tuple[str, ...]] = (
    UNKNOWN_FIELD_TYPE_REJECT_MODEL,
    UNKNOWN_FIELD_TYPE_SKIP_CHECK,
)

CONFIG_SCHEMA_VERSION: Final[int] = 1

__all__ = [
    "APPLICABLE_PATHS",
    "CONFIG_SCHEMA_VERSION",
    "DEFAULT_MODELS_HOME",
    "DEFAULT_MODEL_MARKER_TYPE",
    "DEFAULT_SEARCH_ROOTS",
    "FIELDS",
    "FIELD_TYPE",
    "RESOURCE_TYPE_PROPERTY",
    "UNKNOWN_FIELD_TYPE_POLICIES",
    "UNKNOWN_FIELD_TYPE_REJECT_MODEL",
    "UNKNOWN_FIELD_TYPE_SKIP_CHECK",
    "VALIDATED_RESOURCE_TYPE",
    "VALIDATORS",
    "VALIDATOR_ARGUMENTS",
]
