"""Validators registered in the default registry at import time."""

from __future__ import annotations

import re
from collections.abc import Mapping
from functools import lru_cache
from typing import Final

from resource_validation.errors import ValidatorError
from resource_validation.validators.base import register_builtin_validator

ALPHA_CHARACTERS: Final[str] = "alphacharacters"
REGEX: Final[str] = "regex"
REGEX_ARGUMENT: Final[str] = "regex"


@register_builtin_validator(ALPHA_CHARACTERS)
class AlphaCharactersValidator:
    """Accepts non-empty values made only of Unicode letters."""

    def validate(self, value: str, arguments: Mapping[str, str]) -> bool:
        return value.isalpha()


@register_builtin_validator(REGEX)
class RegexValidator:
    """Accepts values fully matching the ``regex`` argument."""

    def validate(self, value: str, arguments: Mapping[str, str]) -> bool:
        pattern = arguments.get(REGEX_ARGUMENT)
        if not pattern:
            raise ValidatorError(f"missing required argument {REGEX_ARGUMENT!r}")
        return _compile(pattern).fullmatch(value) is not None


@lru_cache(maxsize=256)
def _compile(pattern: str) -> re.Pattern[str]:
    try:
        return re.compile(pattern)
    except re.error as exc:
        raise ValidatorError(f"invalid regex {pattern!r}: {exc}") from exc


__all__ = [
    "ALPHA_CHARACTERS",
    "REGEX",
    "REGEX_ARGUMENT",
    "AlphaCharactersValidator",
    "RegexValidator",
]
