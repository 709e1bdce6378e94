"""
Type coercion for selected JSON values.

Converts a scalar JSON value to the type declared in a selection rule.
Unlisted source/target combinations return the value unchanged.
"""

import math
import re
from typing import Any

from .exceptions import ConversionError
from .models import JsonKind, kind_of


TRUE_LITERALS = {'1', 't', 'T', 'TRUE', 'true', 'True'}
FALSE_LITERALS = {'0', 'f', 'F', 'FALSE', 'false', 'False'}

INT64_MIN = -(2 ** 63)
INT64_MAX = 2 ** 63 - 1

_INT_PATTERN = re.compile(r'[+-]?[0-9]+')
_FLOAT_PATTERN = re.compile(
    r'[+-]?(?:(?:[0-9]+\.?[0-9]*|\.[0-9]+)(?:[eE][+-]?[0-9]+)?|inf|infinity|nan)',
    re.IGNORECASE,
)


def format_number(value: float) -> str:
    """Render a number the way it would appear in JSON output."""
    if isinstance(value, float) and value.is_integer() and abs(value) < 1e21:
        return str(int(value))
    return repr(value) if isinstance(value, float) else str(value)


def _from_string(value: str, desired_type: str, name: str) -> Any:
    if desired_type == 'int':
        if not _INT_PATTERN.fullmatch(value):
            raise ConversionError(
                f"Unable to convert field '{name}' to type int: invalid syntax {value!r}",
                name, desired_type,
            )
        result = int(value)
        if not INT64_MIN <= result <= INT64_MAX:
            raise ConversionError(
                f"Unable to convert field '{name}' to type int: value out of range {value!r}",
                name, desired_type,
            )
        return result
    if desired_type == 'float':
        if not _FLOAT_PATTERN.fullmatch(value):
            raise ConversionError(
                f"Unable to convert field '{name}' to type float: invalid syntax {value!r}",
                name, desired_type,
            )
        result = float(value)
        if math.isinf(result) and 'inf' not in value.lower():
            raise ConversionError(
                f"Unable to convert field '{name}' to type float: value out of range {value!r}",
                name, desired_type,
            )
        return result
    if desired_type == 'bool':
        if value in TRUE_LITERALS:
            return True
        if value in FALSE_LITERALS:
            return False
        raise ConversionError(
            f"Unable to convert field '{name}' to type bool: invalid syntax {value!r}",
            name, desired_type,
        )
    return value


def _from_bool(value: bool, desired_type: str) -> Any:
    if desired_type == 'string':
        return 'true' if value else 'false'
    if desired_type == 'int':
        return 1 if value else 0
    return value


def _from_number(value: float, desired_type: str, name: str) -> Any:
    if desired_type == 'string':
        return format_number(value)
    if desired_type == 'int':
        if isinstance(value, float) and not math.isfinite(value):
            raise ConversionError(
                f"Unable to convert field '{name}' to type int: {value} is not finite",
                name, desired_type,
            )
        result = int(value)
        if not INT64_MIN <= result <= INT64_MAX:
            raise ConversionError(
                f"Unable to convert field '{name}' to type int: "
                f"value out of range {format_number(value)}",
                name, desired_type,
            )
        return result
    if desired_type == 'float':
        try:
            return float(value)
        except OverflowError:
            raise ConversionError(
                f"Unable to convert field '{name}' to type float: value out of range",
                name, desired_type,
            )
    if desired_type == 'bool':
        if value == 0:
            return False
        if value == 1:
            return True
        raise ConversionError(
            f"Unable to convert field '{name}' to type bool", name, desired_type,
        )
    return value


def convert_type(value: Any, desired_type: str, name: str) -> Any:
    """Convert a JSON scalar to the declared type.

    Args:
        value: Decoded JSON value
        desired_type: One of string, int, float, bool; empty keeps the value
        name: Field name, used in error messages

    Returns:
        The converted value

    Raises:
        ConversionError: If the value cannot be converted, or is not a
            string, boolean or number
    """
    if not desired_type:
        return value

    try:
        kind = kind_of(value)
    except TypeError:
        kind = None

    if kind is JsonKind.STRING:
        return _from_string(value, desired_type, name)
    if kind is JsonKind.BOOL:
        return _from_bool(value, desired_type)
    if kind is JsonKind.NUMBER:
        return _from_number(value, desired_type, name)

    source = kind.value if kind is not None else type(value).__name__
    raise ConversionError(
        f"unknown format '{source}' for field '{name}'", name, desired_type,
    )
