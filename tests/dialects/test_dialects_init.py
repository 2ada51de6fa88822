"""Tests for rowkeeper.dialects: picking a dialect from a URL scheme."""

import pytest

from rowkeeper.dialects import (
    MysqlDialect,
    PostgresDialect,
    SqliteDialect,
    SqlserverDialect,
    get_dialect_for_scheme,
)
from rowkeeper.dialects.mysql import MysqlGrammar
from rowkeeper.query import Processor, ReturningProcessor


@pytest.mark.parametrize("scheme,expected", [
    ("sqlite", SqliteDialect),
    ("SQLite", SqliteDialect),
    ("mysql", MysqlDialect),
    ("mysql+pymysql", MysqlDialect),
    ("postgresql", PostgresDialect),
    ("postgres", PostgresDialect),
    ("mssql", SqlserverDialect),
    ("sqlserver", SqlserverDialect),
])
def test_get_dialect_for_scheme(scheme, expected):
    assert isinstance(get_dialect_for_scheme(scheme), expected)


def test_unsupported_scheme():
    with pytest.raises(ValueError, match="Unsupported database scheme"):
        get_dialect_for_scheme("oracle")


def test_dialects_make_their_grammar_and_processor():
    dialect = MysqlDialect()
    grammar = dialect.make_grammar("p_")
    assert isinstance(grammar, MysqlGrammar)
    assert grammar.table_prefix == "p_"
    assert type(dialect.make_processor()) is Processor
    assert isinstance(PostgresDialect().make_processor(), ReturningProcessor)
    assert isinstance(SqlserverDialect().make_processor(), ReturningProcessor)
