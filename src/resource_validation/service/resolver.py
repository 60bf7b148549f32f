"""
resource-validation — model resolver.

File: src/resource_validation/service/resolver.py

Purpose
- Read every stored model definition for one resource type and assemble
  them into a prefix trie keyed by applicable path.

Functional requirements
- Search roots are consulted in priority order. A definition from a lower
  priority root is dropped when a higher priority root already supplied the
  definition stored at the same root-relative location for one of its paths.
- Definitions with no fields, an unknown field type (under the default
  policy), or an unregistered validator are dropped with a warning.
- Repository read failures yield "no models" for the call; nothing is cached.

Non-functional requirements
- The trie is built locally and returned whole; publication belongs to the cache.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from typing import Any

import structlog

from resource_validation.config.schema import (
    ConfigValidationError,
    ConfigValidationIssue,
    find_overlapping_roots,
    normalize_search_root,
)
from resource_validation.constants import (
    APPLICABLE_PATHS,
    DEFAULT_MODEL_MARKER_TYPE,
    DEFAULT_MODELS_HOME,
    FIELD_TYPE,
    FIELDS,
    UNKNOWN_FIELD_TYPE_POLICIES,
    UNKNOWN_FIELD_TYPE_REJECT_MODEL,
    VALIDATOR_ARGUMENTS,
    VALIDATORS,
)
from resource_validation.domain.models import (
    Field,
    ValidationModel,
    ValidatorBinding,
    parse_validator_arguments,
)
from resource_validation.domain.types import FieldType
from resource_validation.errors import RepositoryAccessError
from resource_validation.observability.metrics import (
    MODELS_ACCEPTED,
    MODELS_REJECTED,
    RESOLUTIONS,
    MetricsRegistry,
)
from resource_validation.repository.base import ModelRepository, ResourceHandle
from resource_validation.service.cache import ModelTrie
from resource_validation.utils.trie import PrefixTrie
from resource_validation.validators.base import DEFAULT_VALIDATOR_REGISTRY, ValidatorRegistry


class _ModelRejectedError(Exception):
    """Internal signal that the definition being assembled must be dropped."""

    def __init__(self, reason: str, **details: object) -> None:
        super().__init__(reason)
        self.reason = reason
        self.details = details


class ModelResolver:
    """Build the model trie for a resource type from repository definitions."""

    def __init__(
        self,
        repository: ModelRepository,
        validator_registry: ValidatorRegistry | None = None,
        *,
        search_roots: Iterable[str] | None = None,
        models_home: str = DEFAULT_MODELS_HOME,
        model_marker_type: str = DEFAULT_MODEL_MARKER_TYPE,
        unknown_field_type: str = UNKNOWN_FIELD_TYPE_REJECT_MODEL,
        logger: Any | None = None,
        metrics: MetricsRegistry | None = None,
    ) -> None:
        roots = tuple(
            normalize_search_root(root)
            for root in (repository.search_roots if search_roots is None else search_roots)
        )
        self._search_roots = _checked_roots(roots)
        self._models_home = models_home.strip().strip("/")
        if not self._models_home:
            raise ConfigValidationError(
                (ConfigValidationIssue("resolver.models_home", "must name a relative folder"),)
            )
        if unknown_field_type not in UNKNOWN_FIELD_TYPE_POLICIES:
            expected = ", ".join(UNKNOWN_FIELD_TYPE_POLICIES)
            raise ConfigValidationError(
                (
                    ConfigValidationIssue(
                        "resolver.unknown_field_type",
                        f"invalid value {unknown_field_type!r}; expected one of: {expected}",
                    ),
                )
            )

        self._repository = repository
        self._registry = (
            validator_registry if validator_registry is not None else DEFAULT_VALIDATOR_REGISTRY
        )
        self._marker = model_marker_type
        self._unknown_field_type = unknown_field_type
        self._logger = logger if logger is not None else structlog.get_logger(__name__)
        self._metrics = metrics

    @property
    def search_roots(self) -> tuple[str, ...]:
        return self._search_roots

    @property
    def models_home(self) -> str:
        return self._models_home

    @property
    def model_areas(self) -> tuple[str, ...]:
        """Repository folders holding model definitions, one per search root."""

        return tuple(f"{root}/{self._models_home}" for root in self._search_roots)

    def resolve(self, resource_type: str) -> ModelTrie | None:
        """Return the trie of accepted models for ``resource_type``, or ``None``."""

        trie: ModelTrie = PrefixTrie()
        accepted = 0
        rejected = 0
        self._count(RESOLUTIONS)
        try:
            for root, area in zip(self._search_roots, self.model_areas, strict=True):
                handles = self._repository.query_model_definitions(
                    self._marker, resource_type, area
                )
                for handle in handles:
                    try:
                        model = self._build_model(handle, resource_type)
                        self._check_not_overridden(model, root, trie)
                    except _ModelRejectedError as rejection:
                        rejected += 1
                        self._count(MODELS_REJECTED, reason=rejection.reason)
                        self._logger.warning(
                            "model_resolver_model_rejected",
                            resource_type=resource_type,
                            source_path=handle.path,
                            reason=rejection.reason,
                            **rejection.details,
                        )
                        continue
                    for path in model.applicable_paths:
                        trie.insert(path, model)
                    accepted += 1
                    self._count(MODELS_ACCEPTED)
        except RepositoryAccessError as exc:
            self._logger.error(
                "model_resolver_repository_error",
                resource_type=resource_type,
                error=str(exc),
            )
            return None

        self._logger.debug(
            "model_resolver_resolved",
            resource_type=resource_type,
            accepted=accepted,
            rejected=rejected,
            entries=len(trie),
        )
        if len(trie) == 0:
            return None
        return trie

    def _build_model(self, handle: ResourceHandle, resource_type: str) -> ValidationModel:
        properties = self._repository.read_properties(handle)
        applicable_paths = _as_strings(properties.get(APPLICABLE_PATHS))

        fields_handle = self._child(handle, FIELDS)
        if fields_handle is None:
            raise _ModelRejectedError("no_fields")
        fields = [self._build_field(field_handle) for field_handle in self._children(fields_handle)]
        if not fields:
            raise _ModelRejectedError("no_fields")

        return ValidationModel(
            fields=tuple(fields),
            validated_resource_type=resource_type,
            applicable_paths=applicable_paths,
            source_path=handle.path,
        )

    def _build_field(self, handle: ResourceHandle) -> Field:
        properties = self._repository.read_properties(handle)
        raw_type = properties.get(FIELD_TYPE)
        field_type = FieldType.get_type(raw_type if isinstance(raw_type, str) else None)
        if field_type is None and self._unknown_field_type == UNKNOWN_FIELD_TYPE_REJECT_MODEL:
            raise _ModelRejectedError(
                "unknown_field_type", field=handle.name, field_type=_describe(raw_type)
            )

        bindings: list[ValidatorBinding] = []
        validators_handle = self._child(handle, VALIDATORS)
        if validators_handle is not None:
            for validator_handle in self._children(validators_handle):
                validator = self._registry.lookup_validator(validator_handle.name)
                if validator is None:
                    raise _ModelRejectedError(
                        "unregistered_validator",
                        field=handle.name,
                        validator=validator_handle.name,
                    )
                validator_properties = self._repository.read_properties(validator_handle)
                raw_arguments = validator_properties.get(VALIDATOR_ARGUMENTS)
                bindings.append(
                    ValidatorBinding(
                        name=validator_handle.name,
                        validator=validator,
                        arguments=parse_validator_arguments(_as_strings(raw_arguments)),
                    )
                )

        return Field(name=handle.name, type=field_type, bindings=tuple(bindings))

    def _check_not_overridden(self, model: ValidationModel, root: str, trie: ModelTrie) -> None:
        relative = _relative_to(model.source_path or "", root)
        if relative is None:
            return
        for other_root in self._search_roots:
            if other_root == root:
                continue
            for path in model.applicable_paths:
                existing = trie.get_element(path).value
                if existing is None or existing.source_path is None:
                    continue
                if _relative_to(existing.source_path, other_root) == relative:
                    raise _ModelRejectedError(
                        "overridden",
                        applicable_path=path,
                        overridden_by=existing.source_path,
                    )

    def _children(self, handle: ResourceHandle) -> Sequence[ResourceHandle]:
        return self._repository.list_children(handle)

    def _child(self, handle: ResourceHandle, name: str) -> ResourceHandle | None:
        for child in self._children(handle):
            if child.name == name:
                return child
        return None

    def _count(self, name: str, **labels: str) -> None:
        if self._metrics is not None:
            self._metrics.inc(name, labels=labels or None)


def _checked_roots(roots: tuple[str, ...]) -> tuple[str, ...]:
    issues: list[ConfigValidationIssue] = []
    if not roots:
        issues.append(ConfigValidationIssue("resolver.search_roots", "must not be empty"))
    for root in roots:
        if not root.startswith("/"):
            issues.append(
                ConfigValidationIssue("resolver.search_roots", f"{root!r} must be absolute")
            )
    for ancestor, descendant in find_overlapping_roots(roots):
        issues.append(
            ConfigValidationIssue(
                "resolver.search_roots",
                f"search roots {ancestor!r} and {descendant!r} overlap",
            )
        )
    if issues:
        raise ConfigValidationError(issues)
    return roots


def _relative_to(path: str, root: str) -> str | None:
    if path.startswith(root + "/"):
        return path[len(root) :]
    return None


def _as_strings(value: object) -> tuple[str, ...]:
    if value is None:
        return ()
    if isinstance(value, str):
        return (value,)
    if isinstance(value, Sequence):
        return tuple(item for item in value if isinstance(item, str))
    return ()


def _describe(value: object) -> str:
    if value is None:
        return "<missing>"
    if isinstance(value, Mapping):
        return "<mapping>"
    return str(value)


__all__ = ["ModelResolver"]
