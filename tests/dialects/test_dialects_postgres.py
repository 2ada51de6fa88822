"""Tests for rowkeeper.dialects.postgres: grammar differences and returning ids."""

from rowkeeper.dialects.postgres import PostgresGrammar
from rowkeeper.query import Builder, ReturningProcessor
from tests.helpers import RecordingConnection


def builder(table="users"):
    return Builder(grammar=PostgresGrammar()).from_(table)


def test_markers_and_locks():
    assert builder().where("id", 1).to_sql() == 'select * from "users" where "id" = %s'
    assert builder().lock_for_update().to_sql() == 'select * from "users" for update'
    assert builder().shared_lock().to_sql() == 'select * from "users" for share'


def test_insert_get_id_uses_returning():
    sql = PostgresGrammar().compile_insert_get_id(builder(), {"name": "a"}, None)
    assert sql == 'insert into "users" ("name") values (%s) returning "id"'
    sql = PostgresGrammar().compile_insert_get_id(builder(), {"name": "a"}, "user_id")
    assert sql.endswith('returning "user_id"')


def test_truncate_restarts_identity():
    assert PostgresGrammar().compile_truncate(builder()) == {
        'truncate "users" restart identity cascade': []
    }


def test_returning_processor_reads_the_returned_row():
    connection = RecordingConnection(grammar=PostgresGrammar(), processor=ReturningProcessor())
    connection.queue([{"id": "12"}])
    assert connection.table("users").insert_get_id({"name": "a"}) == 12
    assert connection.calls == [(
        "select_from_write",
        'insert into "users" ("name") values (%s) returning "id"',
        ["a"],
    )]
