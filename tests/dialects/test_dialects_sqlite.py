"""Tests for rowkeeper.dialects.sqlite: grammar differences and connect."""

from rowkeeper.dialects import SqliteDialect
from rowkeeper.dialects.sqlite import SqliteGrammar
from rowkeeper.query import Builder
from tests.helpers import RecordingConnection


def builder(table="t"):
    return Builder(grammar=SqliteGrammar()).from_(table)


def test_lock_clause_is_dropped():
    assert builder().lock_for_update().to_sql() == 'select * from "t"'


def test_offset_without_limit():
    assert builder().offset(5).to_sql() == 'select * from "t" limit -1 offset 5'
    assert builder().limit(2).offset(5).to_sql() == 'select * from "t" limit 2 offset 5'


def test_unions_are_wrapped_as_subselects():
    query = builder("a").union(builder("b"))
    assert query.to_sql() == 'select * from (select * from "a") union select * from (select * from "b")'


def test_truncate_resets_the_sequence_first():
    statements = SqliteGrammar().compile_truncate(builder("users"))
    assert list(statements.items()) == [
        ("delete from sqlite_sequence where name = ?", ["users"]),
        ('delete from "users"', []),
    ]


def test_truncate_applies_table_prefix():
    grammar = SqliteGrammar(table_prefix="app_")
    statements = grammar.compile_truncate(Builder(grammar=grammar).from_("users"))
    assert list(statements.values())[0] == ["app_users"]


def test_truncate_skips_the_sequence_reset_without_autoincrement_tables():
    connection = RecordingConnection(grammar=SqliteGrammar())
    connection.queue([{"exists": 0}])
    connection.table("users").truncate()
    assert connection.calls_to("query") == [("query", 'delete from "users"', [])]
    assert "sqlite_sequence" in connection.calls_to("select")[0][1]


def test_truncate_resets_the_sequence_when_it_exists():
    connection = RecordingConnection(grammar=SqliteGrammar())
    connection.queue([{"exists": 1}])
    connection.table("users").truncate()
    assert [call[1] for call in connection.calls_to("query")] == [
        "delete from sqlite_sequence where name = ?",
        'delete from "users"',
    ]


def test_column_listing():
    assert SqliteGrammar().compile_column_listing() == "select name from pragma_table_info(?)"


def test_sqlite_connect_creates_connection(tmp_path):
    d = SqliteDialect()
    url = f"sqlite:///{tmp_path / 'test.db'}"
    conn = d.connect(url)
    conn.execute("SELECT 1")
    assert conn.execute("PRAGMA foreign_keys").fetchone()[0] == 1
    conn.close()


def test_sqlite_connect_in_memory():
    conn = SqliteDialect().connect("sqlite:///:memory:")
    assert conn.execute("SELECT 1").fetchone() == (1,)
    conn.close()
