"""Tests for rowkeeper.utils.get_entity_by_name."""

import pytest

from rowkeeper.utils.get_entity_by_name import get_all_entities, get_entity_by_name
from tests.helpers import Author, Chapter


def test_lookup_by_class_name():
    assert get_entity_by_name("Author") is Author


def test_lookup_by_table_name():
    assert get_entity_by_name("chapters") is Chapter


def test_unknown_name():
    with pytest.raises(ValueError, match="No entity found"):
        get_entity_by_name("Nope")


def test_get_all_entities():
    assert Author in list(get_all_entities())
