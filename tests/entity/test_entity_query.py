"""Tests for EntityQuery: forwarding to the builder and entity hydration."""

import pytest

from rowkeeper.entity import EntityQuery
from rowkeeper.errors import UnsupportedOperation
from rowkeeper.query import Builder
from tests.helpers import Author, Book


@pytest.fixture(autouse=True)
def _registry(fake_registry):
    yield fake_registry


def test_query_targets_the_entity_table():
    query = Author.query()
    assert isinstance(query, EntityQuery)
    assert isinstance(query.get_query(), Builder)
    assert query.to_sql() == 'select * from "authors"'
    assert isinstance(query.get_model(), Author)


def test_builder_methods_are_forwarded_and_chain():
    query = Author.query().where("age", ">", 18).order_by("name")
    assert isinstance(query, EntityQuery)
    assert query.to_sql() == 'select * from "authors" where "age" > ? order by "name" asc'
    assert query.get_bindings() == [18]


def test_unknown_method():
    with pytest.raises(UnsupportedOperation, match=r"EntityQuery.frobnicate\(\)"):
        Author.query().frobnicate()
    with pytest.raises(AttributeError):
        Author.query().frobnicate


def test_find(fake_connection):
    fake_connection.queue([{"id": 1, "name": "ann"}])
    author = Author.find(1)
    assert fake_connection.calls == [
        ("select", 'select * from "authors" where "authors"."id" = ? limit 1', [1])
    ]
    assert isinstance(author, Author)
    assert author.exists
    assert not author.is_dirty()
    assert author.get("name") == "ann"


def test_find_missing(fake_connection):
    assert Author.find(5) is None


def test_find_many(fake_connection):
    fake_connection.queue([{"id": 1}, {"id": 2}])
    authors = Author.find([1, 2])
    assert fake_connection.calls[0][1] == 'select * from "authors" where "authors"."id" in (?, ?)'
    assert [author.get_key() for author in authors] == [1, 2]
    assert Author.find([]) == []


def test_all_with_columns(fake_connection):
    fake_connection.queue([{"name": "ann"}])
    authors = Author.all(["name"])
    assert fake_connection.calls[0][1] == 'select "name" from "authors"'
    assert authors[0].get("name") == "ann"


def test_scalar_results_pass_through(fake_connection):
    fake_connection.queue([{"aggregate": 3}])
    assert Author.query().count() == 3


def test_make_does_not_persist(fake_connection):
    author = Author.query().make({"name": "ann"})
    assert not author.exists
    assert fake_connection.calls == []


def test_create(fake_connection):
    fake_connection.last_id = 7
    author = Author.query().create({"name": "ann"})
    assert author.exists
    assert author.get_key() == 7


def test_update_adds_updated_at_for_timestamped_entities(fake_connection):
    Book.query().where("id", 1).update({"title": "t"})
    method, sql, bindings = fake_connection.calls[0]
    assert sql == 'update "books" set "title" = ?, "updated_at" = ? where "id" = ?'
    assert bindings[0] == "t"
    assert bindings[2] == 1


def test_delete(fake_connection):
    Author.query().where("age", "<", 18).delete()
    assert fake_connection.calls == [("query", 'delete from "authors" where "age" < ?', [18])]
