"""
resource-validation — package root

File: src/resource_validation/__init__.py

Purpose
- Resolve declarative validation models stored in a hierarchical repository,
  cache them per resource type in prefix tries, and apply them to records.

What should be included in this file
- Version export and the small public API most callers need.

Functional requirements
- Must not have side effects at import time beyond registering built-in
  validators (no config loading, no logging init).

Key interfaces / contracts
- ``ValidationService`` is the facade; ``ModelRepository`` and ``Validator``
  are the extension points.
"""

from resource_validation.domain import FieldType, ValidationModel, ValidationResult
from resource_validation.errors import (
    RepositoryAccessError,
    ResourceValidationError,
    ValidationInputError,
    ValidatorError,
    ValidatorRegistrationError,
)
from resource_validation.observability import ChangeEventBus, MetricsRegistry
from resource_validation.repository import (
    InMemoryRepository,
    ModelRepository,
    ResourceHandle,
    load_yaml_repository,
)
from resource_validation.service import ValidationService
from resource_validation.validators import (
    DEFAULT_VALIDATOR_REGISTRY,
    Validator,
    ValidatorRegistry,
    register_builtin_validator,
)

__version__ = "0.1.0"

__all__ = [
    "DEFAULT_VALIDATOR_REGISTRY",
    "ChangeEventBus",
    "FieldType",
    "InMemoryRepository",
    "MetricsRegistry",
    "ModelRepository",
    "RepositoryAccessError",
    "ResourceHandle",
    "ResourceValidationError",
    "ValidationInputError",
    "ValidationModel",
    "ValidationResult",
    "ValidationService",
    "Validator",
    "ValidatorError",
    "ValidatorRegistrationError",
    "ValidatorRegistry",
    "__version__",
    "load_yaml_repository",
    "register_builtin_validator",
]
