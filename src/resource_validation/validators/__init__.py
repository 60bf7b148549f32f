"""Validator plugin surface: protocol, registry, and built-in validators."""

from resource_validation.validators.base import (
    DEFAULT_VALIDATOR_REGISTRY,
    Validator,
    ValidatorRegistration,
    ValidatorRegistry,
    register_builtin_validator,
)
from resource_validation.validators.builtin import AlphaCharactersValidator, RegexValidator

__all__ = [
    "DEFAULT_VALIDATOR_REGISTRY",
    "AlphaCharactersValidator",
    "RegexValidator",
    "Validator",
    "ValidatorRegistration",
    "ValidatorRegistry",
    "register_builtin_validator",
]
