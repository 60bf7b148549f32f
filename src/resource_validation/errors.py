"""Error taxonomy shared by the resolver, engine, registry, and repository adapters."""

from __future__ import annotations


class ResourceValidationError(Exception):
    """Base class for failures raised by this package."""


class ValidatorError(ResourceValidationError):
    """Raised by a validator implementation that cannot evaluate a value.

    The validation engine converts this into an invalid result; it never
    reaches the caller of ``validate``.
    """


class RepositoryAccessError(ResourceValidationError):
    """Raised when model definitions cannot be read from the repository."""


class ValidationInputError(ResourceValidationError, ValueError):
    """Raised on caller misuse of ``validate`` (missing or malformed arguments)."""


class ValidatorRegistrationError(ResourceValidationError, ValueError):
    """Raised when a validator cannot be registered under the requested name."""


__all__ = [
    "RepositoryAccessError",
    "ResourceValidationError",
    "ValidationInputError",
    "ValidatorError",
    "ValidatorRegistrationError",
]
