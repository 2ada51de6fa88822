"""Tests for rowkeeper.utils.is_numeric."""

from decimal import Decimal

import pytest

from rowkeeper.utils.is_numeric import coerce_identifier, is_numeric, normalize_key


@pytest.mark.parametrize("value", [0, 5, -3, 2.5, Decimal("1.10"), "5", " 5 ", "-1.5", ".5", "1e3", "05", b"42"])
def test_numeric_values(value):
    assert is_numeric(value)


@pytest.mark.parametrize("value", [True, False, None, "", "abc", "5a", "1,000", [1], {"a": 1}, "0x1A"])
def test_non_numeric_values(value):
    assert not is_numeric(value)


@pytest.mark.parametrize("value,expected", [
    ("7", 7),
    (" 12 ", 12),
    (7, 7),
    (Decimal("3"), 3),
    (Decimal("3.5"), Decimal("3.5")),
    ("abc", "abc"),
    ("1.5", "1.5"),
    (None, None),
])
def test_coerce_identifier(value, expected):
    assert coerce_identifier(value) == expected
    assert type(coerce_identifier(value)) is type(expected)


def test_normalize_key_makes_int_and_string_keys_collide():
    assert normalize_key("1") == normalize_key(1)
