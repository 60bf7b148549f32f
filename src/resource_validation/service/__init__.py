"""Model resolution, caching, evaluation, and invalidation services."""

from resource_validation.service.cache import ModelCache, ModelTrie
from resource_validation.service.engine import RecordValues, ValidationEngine
from resource_validation.service.invalidation import InvalidationListener
from resource_validation.service.resolver import ModelResolver
from resource_validation.service.validation_service import ValidationService

__all__ = [
    "InvalidationListener",
    "ModelCache",
    "ModelResolver",
    "ModelTrie",
    "RecordValues",
    "ValidationEngine",
    "ValidationService",
]
