"""
resource-validation — unit tests for config loader

File: tests/unit/config/test_loader.py

Purpose
- Validate config loading from defaults, TOML, env overrides, and CLI overrides.

What this test file should cover
- Precedence: CLI > env > file > defaults.
- Env var path mapping and type coercion, including comma-separated lists.
- Load errors for missing files, bad TOML, and uncoercible env values.
"""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from resource_validation.config import (
    ConfigLoadError,
    ConfigValidationError,
    dump_effective_config,
    load_config,
)


def _write_config(path: Path, text: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")


def test_loader_precedence_default_file_env_cli(tmp_path: Path) -> None:
    config_path = tmp_path / "validation.toml"
    default_path = tmp_path / "default.toml"
    _write_config(default_path, "")
    _write_config(
        config_path,
        """
[resolver]
models_home = "file/models"
""".strip(),
    )
    env = {"RESVAL_RESOLVER_MODELS_HOME": "env/models"}

    default_loaded = load_config(default_path, environ={})
    file_loaded = load_config(config_path, environ={})
    env_loaded = load_config(config_path, environ=env)
    cli_loaded = load_config(
        config_path,
        environ=env,
        cli_overrides={"resolver.models_home": "cli/models"},
    )

    assert default_loaded["resolver"]["models_home"] == "validation/models"
    assert file_loaded["resolver"]["models_home"] == "file/models"
    assert env_loaded["resolver"]["models_home"] == "env/models"
    assert cli_loaded["resolver"]["models_home"] == "cli/models"


def test_env_coercion_for_each_value_kind(tmp_path: Path) -> None:
    config_path = tmp_path / "validation.toml"
    _write_config(config_path, "")

    loaded = load_config(
        config_path,
        environ={
            "RESVAL_RESOLVER_SEARCH_ROOTS": "/custom, /base/",
            "RESVAL_INVALIDATION_ENABLED": "off",
            "RESVAL_INVALIDATION_QUEUE_SIZE": "4",
            "RESVAL_INVALIDATION_DRAIN_TIMEOUT_SECONDS": "0.5",
            "RESVAL_OBSERVABILITY_LOG_LEVEL": "debug",
        },
    )

    assert loaded["resolver"]["search_roots"] == ["/custom", "/base"]
    assert loaded["invalidation"] == {
        "enabled": False,
        "queue_size": 4,
        "drain_timeout_seconds": 0.5,
    }
    assert loaded["observability"]["log_level"] == "DEBUG"


def test_cli_overrides_accept_nested_mappings_and_tuples(tmp_path: Path) -> None:
    config_path = tmp_path / "validation.toml"
    _write_config(config_path, "")

    loaded = load_config(
        config_path,
        environ={},
        cli_overrides={
            "resolver": {"unknown_field_type": "skip_type_check"},
            "resolver.search_roots": ("/only",),
        },
    )

    assert loaded["resolver"]["unknown_field_type"] == "skip_type_check"
    assert loaded["resolver"]["search_roots"] == ["/only"]


def test_missing_default_file_is_not_an_error(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    monkeypatch.chdir(tmp_path)

    loaded = load_config(environ={})

    assert loaded["meta"]["schema_version"] == 1


def test_missing_explicit_file_raises(tmp_path: Path) -> None:
    with pytest.raises(ConfigLoadError, match="not found"):
        load_config(tmp_path / "absent.toml", environ={})


def test_invalid_toml_raises_load_error(tmp_path: Path) -> None:
    config_path = tmp_path / "validation.toml"
    _write_config(config_path, "[resolver\nmodels_home = 1")

    with pytest.raises(ConfigLoadError, match="invalid TOML"):
        load_config(config_path, environ={})


@pytest.mark.parametrize(
    ("env_name", "raw"),
    [
        ("RESVAL_INVALIDATION_QUEUE_SIZE", "many"),
        ("RESVAL_INVALIDATION_DRAIN_TIMEOUT_SECONDS", "soon"),
        ("RESVAL_INVALIDATION_ENABLED", "maybe"),
    ],
)
def test_uncoercible_env_values_raise(tmp_path: Path, env_name: str, raw: str) -> None:
    config_path = tmp_path / "validation.toml"
    _write_config(config_path, "")

    with pytest.raises(ConfigLoadError, match=env_name):
        load_config(config_path, environ={env_name: raw})


def test_overlapping_roots_from_env_fail_validation(tmp_path: Path) -> None:
    config_path = tmp_path / "validation.toml"
    _write_config(config_path, "")

    with pytest.raises(ConfigValidationError, match="overlap"):
        load_config(config_path, environ={"RESVAL_RESOLVER_SEARCH_ROOTS": "/apps,/apps/sub"})


def test_dump_is_deterministic(tmp_path: Path) -> None:
    config_path = tmp_path / "validation.toml"
    _write_config(config_path, "")

    first = dump_effective_config(load_config(config_path, environ={}))
    second = dump_effective_config(load_config(config_path, environ={}))

    assert first == second
    assert json.loads(first)["resolver"]["search_roots"] == ["/apps", "/libs"]
