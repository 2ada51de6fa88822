"""Tests for rowkeeper.utils.naming."""

import pytest

from rowkeeper.utils.naming import pluralize, snake_case, table_name_for


@pytest.mark.parametrize("name,expected", [
    ("User", "user"),
    ("UserProfile", "user_profile"),
    ("userProfile", "user_profile"),
    ("HTTPRequest", "http_request"),
    ("already_snake", "already_snake"),
])
def test_snake_case(name, expected):
    assert snake_case(name) == expected


@pytest.mark.parametrize("word,expected", [
    ("book", "books"),
    ("category", "categories"),
    ("day", "days"),
    ("box", "boxes"),
    ("status", "statuses"),
    ("match", "matches"),
    ("", ""),
])
def test_pluralize(word, expected):
    assert pluralize(word) == expected


def test_table_name_for():
    assert table_name_for("BlogCategory") == "blog_categories"
