"""
resource-validation — configuration schema and validation.

File: src/resource_validation/config/schema.py

Purpose
- Define authoritative configuration defaults and strict validation rules.

What should be included in this file
- Schema versioning and migration guidance.
- Validation rules for required fields, types, enums, and numeric constraints.
- Deterministic deep-merge helpers used by the loader.

Functional requirements
- Validate config payloads and return structured errors (field path + message).
- Reject search roots that overlap, since overlay priority between a root and
  its own descendant is ambiguous.

Non-functional requirements
- Keep rules deterministic and easy to audit.
"""

from __future__ import annotations

import copy
import math
from collections.abc import Callable, Iterable, Mapping, Sequence
from dataclasses import dataclass
from typing import Any, Final, Literal, TypedDict

from resource_validation.constants import (
    CONFIG_SCHEMA_VERSION,
    DEFAULT_MODEL_MARKER_TYPE,
    DEFAULT_MODELS_HOME,
    DEFAULT_SEARCH_ROOTS,
    UNKNOWN_FIELD_TYPE_POLICIES,
    UNKNOWN_FIELD_TYPE_REJECT_MODEL,
)

ConfigSchemaVersion: Final[int] = CONFIG_SCHEMA_VERSION

_LOG_LEVELS: Final[tuple[str, ...]] = ("DEBUG", "INFO", "WARNING", "ERROR")


class MetaConfig(TypedDict):
    schema_version: int


class ResolverConfig(TypedDict):
    search_roots: list[str]
    models_home: str
    model_marker_type: str
    unknown_field_type: Literal["reject_model", "skip_type_check"]


class InvalidationConfig(TypedDict):
    enabled: bool
    queue_size: int
    drain_timeout_seconds: float


class ObservabilityConfig(TypedDict):
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"]
    log_dir: str
    log_to_stdout: bool


class ValidationConfig(TypedDict):
    meta: MetaConfig
    resolver: ResolverConfig
    invalidation: InvalidationConfig
    observability: ObservabilityConfig


DEFAULT_CONFIG: Final[ValidationConfig] = {
    "meta": {
        "schema_version": ConfigSchemaVersion,
    },
    "resolver": {
        "search_roots": list(DEFAULT_SEARCH_ROOTS),
        "models_home": DEFAULT_MODELS_HOME,
        "model_marker_type": DEFAULT_MODEL_MARKER_TYPE,
        "unknown_field_type": UNKNOWN_FIELD_TYPE_REJECT_MODEL,
    },
    "invalidation": {
        "enabled": True,
        "queue_size": 16,
        "drain_timeout_seconds": 2.0,
    },
    "observability": {
        "log_level": "INFO",
        "log_dir": "logs/",
        "log_to_stdout": True,
    },
}


@dataclass(frozen=True, slots=True)
class ConfigValidationIssue:
    """One rejected value, addressed by its dotted path (``resolver.search_roots[1]``)."""

    path: str
    message: str


@dataclass(frozen=True, slots=True)
class ConfigValidationResult:
    """Normalized config when ``issues`` is empty; otherwise ``config`` is ``None``."""

    config: dict[str, Any] | None
    issues: tuple[ConfigValidationIssue, ...]

    @property
    def is_valid(self) -> bool:
        return self.config is not None and not self.issues


class ConfigValidationError(ValueError):
    """Raised by ``assert_valid_config``; ``issues`` holds every problem found."""

    def __init__(self, issues: Sequence[ConfigValidationIssue]) -> None:
        self.issues = tuple(issues)
        lines = [f"- {issue.path}: {issue.message}" for issue in self.issues]
        super().__init__("invalid config:\n" + ("\n".join(lines) or "- <unknown>"))


class _Invalid(Exception):
    """Raised by a field check; carries ``(path suffix, message)`` problems."""

    def __init__(self, *problems: tuple[str, str]) -> None:
        super().__init__(problems)
        self.problems = problems


def _reject(message: str) -> _Invalid:
    return _Invalid(("", message))


FieldCheck = Callable[[object], object]


def default_config() -> ValidationConfig:
    """Fresh deep copy of the built-in defaults."""

    return copy.deepcopy(DEFAULT_CONFIG)


def migration_guidance(found_version: int) -> str:
    if found_version < ConfigSchemaVersion:
        return (
            f"schema version {found_version} is older than supported {ConfigSchemaVersion}; "
            "upgrade validation.toml to the current schema"
        )
    if found_version > ConfigSchemaVersion:
        return (
            f"schema version {found_version} is newer than supported {ConfigSchemaVersion}; "
            "upgrade the resource-validation runtime"
        )
    return "schema version is current"


def merge_config(base: Mapping[str, object], overlay: Mapping[str, object]) -> dict[str, Any]:
    """Deep-merge ``overlay`` onto a copy of ``base``.

    Tables merge key by key; lists and scalars in ``overlay`` replace the base value.
    """

    merged: dict[str, Any] = copy.deepcopy(dict(base))
    for key in sorted(overlay):
        value = overlay[key]
        current = merged.get(key)
        if isinstance(value, Mapping):
            merged[key] = merge_config(current if isinstance(current, Mapping) else {}, value)
        else:
            merged[key] = copy.deepcopy(value)
    return merged


def validate_config(config: Mapping[str, object] | object) -> ConfigValidationResult:
    """Check every section and field; collect all issues instead of stopping at the first."""

    issues: list[ConfigValidationIssue] = []
    if not isinstance(config, Mapping):
        issues.append(
            ConfigValidationIssue("<root>", f"expected object, got {type(config).__name__}")
        )
        return ConfigValidationResult(config=None, issues=tuple(issues))

    normalized = _check_table(config, "", _SECTIONS, issues)
    if issues:
        return ConfigValidationResult(config=None, issues=tuple(issues))
    return ConfigValidationResult(config=normalized, issues=())


def assert_valid_config(config: Mapping[str, object] | object) -> dict[str, Any]:
    """Return the normalized config or raise ``ConfigValidationError``."""

    result = validate_config(config)
    if result.config is None:
        raise ConfigValidationError(result.issues)
    return result.config


def normalize_search_root(root: str) -> str:
    return root.strip().rstrip("/")


def find_overlapping_roots(roots: Iterable[str]) -> tuple[tuple[str, str], ...]:
    """Return ``(ancestor, descendant)`` pairs of roots that contain one another.

    Containment is by whole path segment: ``/apps`` contains ``/apps/x`` but
    not ``/apps2``. A root listed twice overlaps itself.
    """

    normalized = [normalize_search_root(root) for root in roots]
    pairs: list[tuple[str, str]] = []
    for index, first in enumerate(normalized):
        for second in normalized[index + 1 :]:
            shorter, longer = sorted((first, second), key=len)
            if shorter == longer or longer.startswith(shorter + "/"):
                pairs.append((shorter, longer))
    return tuple(pairs)


def _check_table(
    payload: Mapping[object, object],
    path: str,
    schema: Mapping[str, Any],
    issues: list[ConfigValidationIssue],
) -> dict[str, Any]:
    out: dict[str, Any] = {}
    for key in sorted(payload, key=str):
        if not isinstance(key, str):
            message = f"object key must be string, got {type(key).__name__}"
            issues.append(ConfigValidationIssue(path or "<root>", message))
        elif key not in schema:
            issues.append(ConfigValidationIssue(_join(path, key), "unknown field"))
    for key in sorted(schema):
        field_path = _join(path, key)
        if key not in payload:
            issues.append(ConfigValidationIssue(field_path, "missing required field"))
            continue
        value = payload[key]
        rule = schema[key]
        if isinstance(rule, Mapping):
            if not isinstance(value, Mapping):
                message = f"expected object, got {type(value).__name__}"
                issues.append(ConfigValidationIssue(field_path, message))
                continue
            out[key] = _check_table(value, field_path, rule, issues)
            continue
        try:
            out[key] = rule(value)
        except _Invalid as invalid:
            issues.extend(
                ConfigValidationIssue(field_path + suffix, message)
                for suffix, message in invalid.problems
            )
    return out


def _string(value: object) -> str:
    if not isinstance(value, str):
        raise _reject(f"expected string, got {type(value).__name__}")
    stripped = value.strip()
    if not stripped:
        raise _reject("must not be empty")
    return stripped


def _boolean(value: object) -> bool:
    if not isinstance(value, bool):
        raise _reject(f"expected boolean, got {type(value).__name__}")
    return value


def _int_at_least(value: object, minimum: int) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise _reject(f"expected integer, got {type(value).__name__}")
    if value < minimum:
        raise _reject(f"must be >= {minimum}")
    return value


def _integer(minimum: int) -> FieldCheck:
    return lambda value: _int_at_least(value, minimum)


def _number(minimum: float) -> FieldCheck:
    def check(value: object) -> float:
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise _reject(f"expected number, got {type(value).__name__}")
        if not math.isfinite(value):
            raise _reject("must be finite")
        if value < minimum:
            raise _reject(f"must be >= {minimum}")
        return float(value)

    return check


def _choice(allowed: tuple[str, ...], *, upper: bool = False) -> FieldCheck:
    def check(value: object) -> str:
        if upper and isinstance(value, str):
            value = value.upper()
        parsed = _string(value)
        if parsed not in allowed:
            expected = ", ".join(sorted(allowed))
            raise _reject(f"invalid value {parsed!r}; expected one of: {expected}")
        return parsed

    return check


def _schema_version(value: object) -> int:
    version = _int_at_least(value, 1)
    if version != ConfigSchemaVersion:
        raise _reject(migration_guidance(version))
    return version


def _models_home(value: object) -> str:
    home = _string(value).strip("/")
    if not home:
        raise _reject("must name a relative folder")
    return home


def _log_dir(value: object) -> str:
    if not isinstance(value, str):
        raise _reject(f"expected string, got {type(value).__name__}")
    if "\x00" in value:
        raise _reject("must not contain NUL bytes")
    return value.strip()


def _search_roots(value: object) -> list[str]:
    if not isinstance(value, (list, tuple)):
        raise _reject(f"expected list of paths, got {type(value).__name__}")
    if not value:
        raise _reject("must contain at least one search root")

    problems: list[tuple[str, str]] = []
    roots: list[str] = []
    for index, item in enumerate(value):
        try:
            root = normalize_search_root(_string(item))
        except _Invalid as invalid:
            problems.extend((f"[{index}]", message) for _, message in invalid.problems)
            continue
        if not root.startswith("/"):
            problems.append((f"[{index}]", "must be an absolute path"))
            continue
        roots.append(root)
    problems.extend(
        ("", f"search roots {ancestor!r} and {descendant!r} overlap")
        for ancestor, descendant in find_overlapping_roots(roots)
    )
    if problems:
        raise _Invalid(*problems)
    return roots


def _join(path: str, key: str) -> str:
    return f"{path}.{key}" if path else key


_SECTIONS: Final[Mapping[str, Any]] = {
    "meta": {"schema_version": _schema_version},
    "resolver": {
        "search_roots": _search_roots,
        "models_home": _models_home,
        "model_marker_type": _string,
        "unknown_field_type": _choice(UNKNOWN_FIELD_TYPE_POLICIES),
    },
    "invalidation": {
        "enabled": _boolean,
        "queue_size": _integer(1),
        "drain_timeout_seconds": _number(0.0),
    },
    "observability": {
        "log_level": _choice(_LOG_LEVELS, upper=True),
        "log_dir": _log_dir,
        "log_to_stdout": _boolean,
    },
}


__all__ = [
    "DEFAULT_CONFIG",
    "ConfigSchemaVersion",
    "ConfigValidationError",
    "ConfigValidationIssue",
    "ConfigValidationResult",
    "InvalidationConfig",
    "MetaConfig",
    "ObservabilityConfig",
    "ResolverConfig",
    "ValidationConfig",
    "assert_valid_config",
    "default_config",
    "find_overlapping_roots",
    "merge_config",
    "migration_guidance",
    "normalize_search_root",
    "validate_config",
]
