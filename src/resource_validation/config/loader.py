"""
resource-validation — runtime config loader.

File: src/resource_validation/config/loader.py

Purpose
- Produce the effective configuration from four layers, lowest first:
  built-in defaults, ``validation.toml``, ``RESVAL_*`` environment variables,
  and programmatic/CLI overrides.

Functional requirements
- Every non-``meta`` leaf of the defaults has an environment variable named
  ``RESVAL_<SECTION>_<KEY>``; its value is coerced to the leaf's type and
  list-valued leaves take comma-separated strings.
- The file layer is validated on its own so a broken file is reported against
  the file, before env or override values can mask it.
"""

from __future__ import annotations

import json
import os
import tomllib
from collections.abc import Callable, Iterator, Mapping
from pathlib import Path
from typing import Any, Final

from resource_validation.config.schema import (
    assert_valid_config,
    default_config,
    merge_config,
)

DEFAULT_CONFIG_FILE: Final[str] = "validation.toml"
ENV_PREFIX: Final[str] = "RESVAL_"

_TRUTHY: Final[frozenset[str]] = frozenset({"1", "true", "t", "yes", "y", "on"})
_FALSY: Final[frozenset[str]] = frozenset({"0", "false", "f", "no", "n", "off"})


class ConfigLoadError(ValueError):
    """Raised when a config file cannot be read or an override cannot be coerced."""


def load_config(
    config_path: str | Path | None = None,
    *,
    cli_overrides: Mapping[str, object] | None = None,
    environ: Mapping[str, str] | None = None,
) -> dict[str, Any]:
    """Return the validated effective config.

    Without ``config_path`` the loader looks for ``validation.toml`` in the
    working directory and silently skips it when absent. A named file must
    exist. ``cli_overrides`` keys are dotted paths (``"resolver.models_home"``)
    or section names mapped to partial tables.
    """

    if config_path is None:
        path, required = Path.cwd() / DEFAULT_CONFIG_FILE, False
    else:
        path, required = Path(config_path).expanduser(), True

    config = assert_valid_config(merge_config(default_config(), _read_toml(path, required)))
    env = os.environ if environ is None else environ
    config = merge_config(config, _env_layer(config, env))
    config = merge_config(config, _override_layer(cli_overrides or {}))
    return assert_valid_config(config)


def load_config_file(path: str | Path) -> dict[str, Any]:
    """Load ``path`` plus the process environment; the file must exist."""

    return load_config(path)


def dump_effective_config(config: Mapping[str, object]) -> str:
    """Compact, key-sorted JSON rendering of a config for logs and diffs."""

    return json.dumps(config, sort_keys=True, separators=(",", ":"), ensure_ascii=False)


def _read_toml(path: Path, required: bool) -> dict[str, Any]:
    try:
        raw = path.read_bytes()
    except FileNotFoundError as exc:
        if required:
            raise ConfigLoadError(f"config file not found: {path}") from exc
        return {}
    except OSError as exc:
        raise ConfigLoadError(f"unable to read config file {path}: {exc}") from exc

    try:
        return tomllib.loads(raw.decode("utf-8"))
    except (tomllib.TOMLDecodeError, UnicodeDecodeError) as exc:
        raise ConfigLoadError(f"invalid TOML in {path}: {exc}") from exc


def _env_layer(config: Mapping[str, object], environ: Mapping[str, str]) -> dict[str, Any]:
    layer: dict[str, Any] = {}
    for path, current in _leaves(config):
        if path[0] == "meta":
            continue
        env_name = ENV_PREFIX + "_".join(part.upper() for part in path)
        raw = environ.get(env_name)
        if raw is None:
            continue
        coerce = _coercer_for(current)
        if coerce is None:
            continue
        try:
            value = coerce(raw.strip())
        except ValueError as exc:
            raise ConfigLoadError(f"{env_name} -> {'.'.join(path)}: {exc}") from exc
        _assign(layer, path, value)
    return layer


def _leaves(
    payload: Mapping[str, object], prefix: tuple[str, ...] = ()
) -> Iterator[tuple[tuple[str, ...], object]]:
    for key in sorted(payload):
        value = payload[key]
        if isinstance(value, Mapping):
            yield from _leaves(value, (*prefix, key))
        else:
            yield (*prefix, key), value


def _coercer_for(current: object) -> Callable[[str], object] | None:
    # bool before int: bool is an int subclass.
    if isinstance(current, bool):
        return _to_bool
    if isinstance(current, int):
        return _to_int
    if isinstance(current, float):
        return _to_float
    if isinstance(current, str):
        return str
    if isinstance(current, list):
        return _to_list
    return None


def _to_bool(raw: str) -> bool:
    lowered = raw.lower()
    if lowered in _TRUTHY:
        return True
    if lowered in _FALSY:
        return False
    raise ValueError(f"expected a boolean (true/false/1/0/yes/no/on/off), got {raw!r}")


def _to_int(raw: str) -> int:
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"expected an integer, got {raw!r}") from None


def _to_float(raw: str) -> float:
    try:
        return float(raw)
    except ValueError:
        raise ValueError(f"expected a number, got {raw!r}") from None


def _to_list(raw: str) -> list[str]:
    return [item.strip() for item in raw.split(",") if item.strip()]


def _override_layer(overrides: Mapping[str, object]) -> dict[str, Any]:
    layer: dict[str, Any] = {}
    for key in sorted(overrides):
        path = tuple(part for part in key.split(".") if part)
        if not path:
            raise ConfigLoadError(f"invalid override key {key!r}")
        value = overrides[key]
        if isinstance(value, Mapping):
            nested: dict[str, Any] = {}
            _assign(nested, path, value)
            layer = merge_config(layer, nested)
        else:
            _assign(layer, path, list(value) if isinstance(value, tuple) else value)
    return layer


def _assign(target: dict[str, Any], path: tuple[str, ...], value: object) -> None:
    *parents, leaf = path
    for part in parents:
        child = target.get(part)
        if not isinstance(child, dict):
            child = target[part] = {}
        target = child
    target[leaf] = value


__all__ = [
    "DEFAULT_CONFIG_FILE",
    "ENV_PREFIX",
    "ConfigLoadError",
    "dump_effective_config",
    "load_config",
    "load_config_file",
]
