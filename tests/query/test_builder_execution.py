"""Tests for rowkeeper.query.builder execution against a recording connection."""

import pytest

from rowkeeper.errors import InvalidAmount, InvalidArgument
from rowkeeper.query import Grammar, raw
from tests.helpers import RecordingConnection


class StampedTruncateGrammar(Grammar):

    def compile_truncate(self, query):
        return {"delete from log where at < now() and t = ?": [raw("now()"), query.from_table]}


class FailingConnection(RecordingConnection):

    def select(self, sql, bindings=()):
        raise RuntimeError("connection lost")


def test_get_runs_select_and_restores_projection(fake_connection):
    fake_connection.queue([{"id": 1}, {"id": 2}])
    query = fake_connection.table("users").where("a", 1)
    assert query.get(["id"]) == [{"id": 1}, {"id": 2}]
    assert fake_connection.calls == [("select", 'select "id" from "users" where "a" = ?', [1])]
    assert query.columns is None


def test_get_keeps_explicit_projection(fake_connection):
    query = fake_connection.table("users").select("name")
    query.get(["id"])
    assert fake_connection.calls[0][1] == 'select "name" from "users"'


def test_get_restores_projection_on_failure():
    connection = FailingConnection()
    query = connection.table("users")
    with pytest.raises(RuntimeError):
        query.get(["id"])
    assert query.columns is None


def test_first_limits_to_one_and_tolerates_no_rows(fake_connection):
    assert fake_connection.table("users").first() is None
    assert fake_connection.calls[0][1] == 'select * from "users" limit 1'
    fake_connection.queue([{"id": 4}])
    assert fake_connection.table("users").first() == {"id": 4}


def test_value(fake_connection):
    fake_connection.queue([{"name": "bob"}])
    assert fake_connection.table("users").value("name") == "bob"
    assert fake_connection.calls[0][1] == 'select "name" from "users" limit 1'


def test_find(fake_connection):
    fake_connection.table("users").find(3)
    assert fake_connection.calls[0] == ("select", 'select * from "users" where "id" = ? limit 1', [3])


def test_exists(fake_connection):
    fake_connection.queue([{"exists": 1}])
    assert fake_connection.table("users").where("a", 1).exists() is True
    assert fake_connection.calls[0] == (
        "select", 'select exists(select * from "users" where "a" = ?) as "exists"', [1]
    )
    assert fake_connection.table("users").exists() is False


def test_count_runs_on_a_copy(fake_connection):
    fake_connection.queue([{"aggregate": 3}])
    query = fake_connection.table("users").where("a", 1)
    assert query.count() == 3
    assert fake_connection.calls[0] == (
        "select", 'select count(*) as aggregate from "users" where "a" = ?', [1]
    )
    assert query.aggregate_value is None
    assert query.to_sql() == 'select * from "users" where "a" = ?'


def test_other_aggregates(fake_connection):
    fake_connection.queue([{"aggregate": 9}], [{"aggregate": 1}], [], [{"aggregate": 2.5}])
    assert fake_connection.table("t").max("score") == 9
    assert fake_connection.table("t").min("score") == 1
    assert fake_connection.table("t").sum("score") == 0
    assert fake_connection.table("t").avg("score") == 2.5
    assert [call[1] for call in fake_connection.calls] == [
        'select max("score") as aggregate from "t"',
        'select min("score") as aggregate from "t"',
        'select sum("score") as aggregate from "t"',
        'select avg("score") as aggregate from "t"',
    ]


def test_aggregate_drops_select_bindings(fake_connection):
    fake_connection.table("t").select_raw("? as x", [1]).where("a", 2).count()
    assert fake_connection.calls[0][2] == [2]


class TestInsert:

    def test_multi_row_insert_sorts_keys_and_concatenates_bindings(self, fake_connection):
        rows = [{"id": 1, "name": "a"}, {"name": "b", "id": 2}]
        assert fake_connection.table("users").insert(rows) is True
        assert fake_connection.calls == [
            ("insert", 'insert into "users" ("id", "name") values (?, ?), (?, ?)', [1, "a", 2, "b"])
        ]

    def test_single_row_insert(self, fake_connection):
        fake_connection.table("users").insert({"name": "a", "age": 3})
        assert fake_connection.calls == [
            ("insert", 'insert into "users" ("name", "age") values (?, ?)', ["a", 3])
        ]

    def test_divergent_keys_are_rejected_by_the_grammar(self, fake_connection):
        with pytest.raises(InvalidArgument):
            fake_connection.table("users").insert([{"a": 1}, {"b": 2}])
        assert fake_connection.calls == []

    def test_empty_insert_is_a_no_op(self, fake_connection):
        assert fake_connection.table("users").insert([]) is True
        assert fake_connection.calls == []

    def test_insert_get_id_coerces_numeric_strings(self, fake_connection):
        fake_connection.last_id = "7"
        assert fake_connection.table("users").insert_get_id({"name": "a"}) == 7
        assert fake_connection.calls == [("insert", 'insert into "users" ("name") values (?)', ["a"])]

    def test_insert_get_id_leaves_other_ids_alone(self, fake_connection):
        fake_connection.last_id = "a1b2"
        assert fake_connection.table("users").insert_get_id({"name": "a"}) == "a1b2"

    def test_raw_values_are_inlined(self, fake_connection):
        fake_connection.table("users").insert({"name": "a", "created_at": fake_connection.raw("now()")})
        assert fake_connection.calls == [
            ("insert", 'insert into "users" ("name", "created_at") values (?, now())', ["a"])
        ]


class TestUpdate:

    def test_set_bindings_precede_filter_bindings(self, fake_connection):
        handle = fake_connection.table("users").where("id", 5).update({"name": "x", "age": 3})
        assert handle == "statement-handle"
        assert fake_connection.calls == [
            ("query", 'update "users" set "name" = ?, "age" = ? where "id" = ?', ["x", 3, 5])
        ]

    def test_update_with_join(self, fake_connection):
        query = fake_connection.table("users").join_where("teams", "teams.kind", "=", "k").where("users.id", 1)
        query.update({"name": "x"})
        assert fake_connection.calls == [(
            "query",
            'update "users" inner join "teams" on "teams"."kind" = ? set "name" = ? where "users"."id" = ?',
            ["k", "x", 1],
        )]

    def test_increment_uses_a_raw_expression(self, fake_connection):
        fake_connection.table("users").where("id", 1).increment("score", 5)
        assert fake_connection.calls == [
            ("query", 'update "users" set "score" = "score" + 5 where "id" = ?', [1])
        ]

    def test_increment_with_extra_columns(self, fake_connection):
        fake_connection.table("users").where("id", 1).increment("score", 2, {"name": "x"})
        assert fake_connection.calls == [
            ("query", 'update "users" set "score" = "score" + 2, "name" = ? where "id" = ?', ["x", 1])
        ]

    def test_decrement(self, fake_connection):
        fake_connection.table("users").decrement("score")
        assert fake_connection.calls == [("query", 'update "users" set "score" = "score" - 1', [])]

    @pytest.mark.parametrize("amount", ["abc", None, [1], True])
    def test_non_numeric_amount_fails_before_touching_the_connection(self, fake_connection, amount):
        with pytest.raises(InvalidAmount):
            fake_connection.table("users").increment("score", amount)
        with pytest.raises(InvalidAmount):
            fake_connection.table("users").decrement("score", amount)
        assert fake_connection.calls == []


class TestDelete:

    def test_delete_with_wheres(self, fake_connection):
        fake_connection.table("users").where("id", 3).delete()
        assert fake_connection.calls == [("query", 'delete from "users" where "id" = ?', [3])]

    def test_delete_by_id(self, fake_connection):
        fake_connection.table("users").delete(4)
        assert fake_connection.calls == [("query", 'delete from "users" where "id" = ?', [4])]

    def test_truncate_runs_every_statement_in_order(self, fake_connection):
        fake_connection.table("users").truncate()
        assert fake_connection.calls == [("query", 'truncate table "users"', [])]

    def test_truncate_drops_raw_expressions_from_bindings(self):
        connection = RecordingConnection(grammar=StampedTruncateGrammar())
        connection.table("users").truncate()
        assert connection.calls == [("query", "delete from log where at < now() and t = ?", ["users"])]
