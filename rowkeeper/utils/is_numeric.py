"""Numeric checks mirroring what a SQL driver may hand back for a number."""

import re
from decimal import Decimal

_NUMERIC_STRING = re.compile(r"^\s*[+-]?(\d+(\.\d*)?|\.\d+)([eE][+-]?\d+)?\s*$")
_INTEGER_STRING = re.compile(r"^[+-]?\d+$")


def is_numeric(value) -> bool:
    """True for ints, floats, Decimals and numeric-looking strings (never for bools)."""
    if isinstance(value, bool):
        return False
    if isinstance(value, (int, float, Decimal)):
        return True
    if isinstance(value, bytes):
        value = value.decode(errors="replace")
    if isinstance(value, str):
        return _NUMERIC_STRING.match(value) is not None
    return False


def coerce_identifier(value):
    """Turn an integer-looking id returned by a driver into an int; leave others as-is."""
    if isinstance(value, bool):
        return value
    if isinstance(value, int):
        return value
    if isinstance(value, Decimal) and value == value.to_integral_value():
        return int(value)
    if isinstance(value, str) and _INTEGER_STRING.match(value.strip()):
        return int(value.strip())
    return value


def normalize_key(value):
    """Key used to group rows by a key column, so that ``1`` and ``"1"`` collide."""
    return coerce_identifier(value)
