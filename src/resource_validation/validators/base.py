"""Validator capability protocol and the name-keyed validator registry."""

from __future__ import annotations

import inspect
import threading
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import Literal, Protocol, TypeVar, runtime_checkable

from resource_validation.errors import ValidatorRegistrationError

ValidatorSource = Literal["builtin", "external"]

_MAX_NAME_LENGTH = 128


@runtime_checkable
class Validator(Protocol):
    """Single-value predicate over a raw string and its string arguments.

    Implementations return ``False`` for a value that fails the constraint and
    raise ``ValidatorError`` when the value cannot be evaluated at all (for
    example a required argument is missing).
    """

    def validate(self, value: str, arguments: Mapping[str, str]) -> bool: ...


@dataclass(frozen=True, slots=True)
class ValidatorRegistration:
    name: str
    source: ValidatorSource
    validator: Validator


class ValidatorRegistry:
    """Concurrent name-to-validator registry.

    Plugin loaders call ``register``/``unregister``; the model resolver only
    ever reads through ``lookup_validator``.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._registrations: dict[str, ValidatorRegistration] = {}

    def register(
        self,
        name: str,
        validator: Validator,
        *,
        source: ValidatorSource = "external",
        replace: bool = False,
    ) -> None:
        normalized = _as_validator_name(name)
        if not isinstance(validator, Validator):
            raise ValidatorRegistrationError(
                f"validator {normalized!r} does not implement validate(value, arguments)"
            )
        with self._lock:
            existing = self._registrations.get(normalized)
            if existing is not None and not replace:
                raise ValidatorRegistrationError(
                    f"validator {normalized!r} is already registered by a {existing.source} plugin"
                )
            self._registrations[normalized] = ValidatorRegistration(
                name=normalized, source=source, validator=validator
            )

    def unregister(self, name: str) -> bool:
        """Remove ``name``; returns ``True`` when it was registered."""

        normalized = _as_validator_name(name)
        with self._lock:
            return self._registrations.pop(normalized, None) is not None

    def lookup_validator(self, name: str | None) -> Validator | None:
        if not isinstance(name, str):
            return None
        registration = self._registrations.get(name.strip())
        if registration is None:
            return None
        return registration.validator

    def contains(self, name: str) -> bool:
        return self.lookup_validator(name) is not None

    def names(self) -> tuple[str, ...]:
        with self._lock:
            return tuple(sorted(self._registrations))

    def registrations(self) -> tuple[ValidatorRegistration, ...]:
        with self._lock:
            return tuple(self._registrations[key] for key in sorted(self._registrations))

    def copy(self) -> ValidatorRegistry:
        """Return an independent registry holding the same registrations."""

        clone = ValidatorRegistry()
        with self._lock:
            clone._registrations = dict(self._registrations)
        return clone


ValidatorType = TypeVar("ValidatorType", bound=type)

DEFAULT_VALIDATOR_REGISTRY = ValidatorRegistry()


def register_builtin_validator(
    name: str,
    *,
    registry: ValidatorRegistry | None = None,
) -> Callable[[ValidatorType], ValidatorType]:
    """Class decorator registering one instance of a built-in validator."""

    target = registry if registry is not None else DEFAULT_VALIDATOR_REGISTRY
    normalized = _as_validator_name(name)

    def decorator(validator_cls: ValidatorType) -> ValidatorType:
        _validate_zero_arg_constructor(validator_cls, name=normalized)
        target.register(normalized, validator_cls(), source="builtin")
        return validator_cls

    return decorator


def _as_validator_name(name: object) -> str:
    if not isinstance(name, str):
        raise ValidatorRegistrationError(
            f"validator name must be a string, got {type(name).__name__}"
        )
    normalized = name.strip()
    if not normalized:
        raise ValidatorRegistrationError("validator name must not be empty")
    if len(normalized) > _MAX_NAME_LENGTH:
        raise ValidatorRegistrationError(
            f"validator name must be <= {_MAX_NAME_LENGTH} characters"
        )
    return normalized


def _validate_zero_arg_constructor(validator_cls: type, *, name: str) -> None:
    signature = inspect.signature(validator_cls)
    for parameter in signature.parameters.values():
        if (
            parameter.kind
            in {
                inspect.Parameter.POSITIONAL_ONLY,
                inspect.Parameter.POSITIONAL_OR_KEYWORD,
                inspect.Parameter.KEYWORD_ONLY,
            }
            and parameter.default is inspect.Signature.empty
        ):
            raise ValidatorRegistrationError(
                f"{name!r} validator decorator requires a zero-arg constructor; "
                f"parameter '{parameter.name}' is required"
            )


__all__ = [
    "DEFAULT_VALIDATOR_REGISTRY",
    "Validator",
    "ValidatorRegistration",
    "ValidatorRegistry",
    "ValidatorSource",
    "register_builtin_validator",
]
