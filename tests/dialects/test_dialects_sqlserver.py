"""Tests for rowkeeper.dialects.sqlserver: grammar differences."""

from rowkeeper.dialects.sqlserver import SqlserverGrammar
from rowkeeper.query import Builder


def builder(table="users"):
    return Builder(grammar=SqlserverGrammar()).from_(table)


def test_brackets():
    assert builder().where("users.id", 1).to_sql() == "select * from [users] where [users].[id] = ?"


def test_limit_without_offset_uses_top():
    assert builder().limit(10).to_sql() == "select top 10 * from [users]"


def test_offset_fetch():
    assert builder().offset(20).limit(10).to_sql() == (
        "select * from [users] order by (select 0) offset 20 rows fetch next 10 rows only"
    )
    assert builder().order_by("id").offset(5).to_sql() == (
        "select * from [users] order by [id] asc offset 5 rows"
    )


def test_lock_hints():
    assert builder().lock_for_update().to_sql() == "select * from [users] with(rowlock,updlock,holdlock)"
    assert builder().shared_lock().to_sql() == "select * from [users] with(rowlock,holdlock)"


def test_exists():
    assert SqlserverGrammar().compile_exists(builder()) == (
        "select (case when exists(select * from [users]) then 1 else 0 end) as [exists]"
    )


def test_insert_get_id_uses_output():
    grammar = SqlserverGrammar()
    assert grammar.compile_insert_get_id(builder(), {"name": "a"}, None) == (
        "insert into [users] ([name]) output inserted.[id] values (?)"
    )
    assert grammar.compile_insert_get_id(builder(), {}, None) == (
        "insert into [users] output inserted.[id] default values"
    )
