"""Shared test helpers: a recording connection and the entities used across tests."""

from typing import Any

from rowkeeper.entity import Entity, relation
from rowkeeper.query import Builder, Grammar, Processor, raw


class RecordingConnection:
    """Connection stand-in: records (method, sql, bindings) and returns queued select results."""

    name = "default"

    def __init__(self, grammar=None, processor=None):
        self.grammar = grammar or Grammar()
        self.processor = processor or Processor()
        self.calls: list[tuple[str, str, list[Any]]] = []
        self.results: list[list[dict[str, Any]]] = []
        self.last_id: Any = None

    def queue(self, *results: list[dict[str, Any]]) -> None:
        self.results.extend(results)

    def _record(self, method: str, sql: str, bindings) -> None:
        self.calls.append((method, sql, list(bindings)))

    def calls_to(self, method: str) -> list[tuple[str, str, list[Any]]]:
        return [call for call in self.calls if call[0] == method]

    def select(self, sql, bindings=()):
        self._record("select", sql, bindings)
        return self.results.pop(0) if self.results else []

    def select_from_write(self, sql, bindings=()):
        self._record("select_from_write", sql, bindings)
        return self.results.pop(0) if self.results else []

    def insert(self, sql, bindings=()):
        self._record("insert", sql, bindings)
        return True

    def query(self, sql, bindings=()):
        self._record("query", sql, bindings)
        return "statement-handle"

    def last_insert_id(self, sequence=None):
        return self.last_id

    def raw(self, value):
        return raw(value)

    def query_builder(self):
        return Builder(connection=self, grammar=self.grammar, processor=self.processor)

    def table(self, name):
        return self.query_builder().from_(name)


SCHEMA = [
    "create table authors (id integer primary key autoincrement, name text, email text, age)",
    "create table books (id integer primary key autoincrement, author_id integer, title text, "
    "created_at text, updated_at text)",
    "create table chapters (id integer primary key autoincrement, book_id integer, title text)",
    "create table profiles (id integer primary key autoincrement, author_id integer, bio text)",
]


class Author(Entity):
    fillable = ["name", "email", "age"]
    hidden = ["email"]

    @relation
    def books(self):
        return self.has_many(Book)

    @relation
    def profile(self):
        return self.has_one(Profile)


class Book(Entity, with_timestamps=True):
    fillable = ["title", "author_id"]

    @relation
    def author(self):
        return self.belongs_to(Author)

    @relation
    def chapters(self):
        return self.has_many(Chapter)


class Chapter(Entity):
    fillable = ["title", "book_id"]


class Profile(Entity):
    fillable = ["bio", "author_id"]
