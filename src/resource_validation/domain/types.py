"""Closed set of scalar field types and their raw-string acceptance rules."""

from __future__ import annotations

import re
from datetime import datetime
from enum import StrEnum
from typing import Final

# Ordered; the first pattern that consumes the whole value wins.
DATE_FORMATS: Final[tuple[str, ...]] = (
    "%a %b %d %Y %H:%M:%S GMT%z",
    "%Y-%m-%dT%H:%M:%S.%f%z",
    "%Y-%m-%dT%H:%M:%S",
    "%Y-%m-%d",
    "%d.%m.%Y %H:%M:%S",
    "%d.%m.%Y",
)

_INTEGER_PATTERN: Final[re.Pattern[str]] = re.compile(r"[+-]?[0-9]+")
_FLOATING_PATTERN: Final[re.Pattern[str]] = re.compile(
    r"[+-]?(?:NaN|Infinity|"
    r"(?:(?:[0-9]+\.?[0-9]*|\.[0-9]+)(?:[eE][+-]?[0-9]+)?"
    r"|0[xX](?:[0-9a-fA-F]+\.?[0-9a-fA-F]*|\.[0-9a-fA-F]+)[pP][+-]?[0-9]+)[fFdD]?)"
)

_INT_RANGE: Final[tuple[int, int]] = (-(2**31), 2**31 - 1)
_LONG_RANGE: Final[tuple[int, int]] = (-(2**63), 2**63 - 1)
_MAX_INTEGER_DIGITS: Final[int] = 19


class FieldType(StrEnum):
    """Declared scalar type of a model field."""

    BOOLEAN = "boolean"
    DATE = "date"
    INT = "int"
    LONG = "long"
    DOUBLE = "double"
    FLOAT = "float"
    CHAR = "char"
    STRING = "string"

    @property
    def type_name(self) -> str:
        return self.value

    def is_valid(self, raw: str) -> bool:
        """Return whether ``raw`` is an acceptable representation of this type."""

        if not isinstance(raw, str):
            return False
        if self is FieldType.BOOLEAN:
            return raw.lower() in ("true", "false")
        if self is FieldType.DATE:
            return _is_date(raw)
        if self is FieldType.INT:
            return _is_integer(raw, _INT_RANGE)
        if self is FieldType.LONG:
            return _is_integer(raw, _LONG_RANGE)
        if self in (FieldType.FLOAT, FieldType.DOUBLE):
            return _FLOATING_PATTERN.fullmatch(raw.strip()) is not None
        if self is FieldType.CHAR:
            return len(raw) == 1
        return True

    @classmethod
    def get_type(cls, name: str | None) -> FieldType | None:
        """Look a type up by its declared name; unknown names give ``None``."""

        if name is None:
            return None
        for candidate in cls:
            if candidate.value == name:
                return candidate
        return None


def _is_integer(raw: str, bounds: tuple[int, int]) -> bool:
    if _INTEGER_PATTERN.fullmatch(raw) is None:
        return False
    digits = raw.lstrip("+-").lstrip("0") or "0"
    # No long has more digits; int() also refuses very long strings.
    if len(digits) > _MAX_INTEGER_DIGITS:
        return False
    value = -int(digits) if raw.startswith("-") else int(digits)
    lower, upper = bounds
    return lower <= value <= upper


def _is_date(raw: str) -> bool:
    for pattern in DATE_FORMATS:
        try:
            datetime.strptime(raw, pattern)
        except ValueError:
            continue
        return True
    return False


__all__ = ["DATE_FORMATS", "FieldType"]
