"""
resource-validation config package public API.

File: src/resource_validation/config/__init__.py

Purpose
- Export config loading/validation entrypoints and public error types.

Functional requirements
- Support loading from ``validation.toml`` + ``RESVAL_`` env overrides.
- Fail fast with clear structured validation/load errors.

Non-functional requirements
- Keep import-time surface small and deterministic.
"""

from resource_validation.config.loader import (
    DEFAULT_CONFIG_FILE,
    ENV_PREFIX,
    ConfigLoadError,
    dump_effective_config,
    load_config,
    load_config_file,
)
from resource_validation.config.schema import (
    DEFAULT_CONFIG,
    ConfigSchemaVersion,
    ConfigValidationError,
    ConfigValidationIssue,
    ConfigValidationResult,
    ValidationConfig,
    assert_valid_config,
    default_config,
    find_overlapping_roots,
    merge_config,
    migration_guidance,
    validate_config,
)

__all__ = [
    "DEFAULT_CONFIG",
    "DEFAULT_CONFIG_FILE",
    "ENV_PREFIX",
    "ConfigLoadError",
    "ConfigSchemaVersion",
    "ConfigValidationError",
    "ConfigValidationIssue",
    "ConfigValidationResult",
    "ValidationConfig",
    "assert_valid_config",
    "default_config",
    "dump_effective_config",
    "find_overlapping_roots",
    "load_config",
    "load_config_file",
    "merge_config",
    "migration_guidance",
    "validate_config",
]
