"""Database dialects: one module per engine (SQLite, MySQL, PostgreSQL, SQL Server)."""

from .base import Dialect
from .sqlite import SqliteDialect, SqliteGrammar
from .mysql import MysqlDialect, MysqlGrammar
from .postgres import PostgresDialect, PostgresGrammar
from .sqlserver import SqlserverDialect, SqlserverGrammar

_DIALECT_CLASSES: tuple[type[Dialect], ...] = (
    SqliteDialect,
    MysqlDialect,
    PostgresDialect,
    SqlserverDialect,
)


def get_dialect_for_scheme(scheme: str) -> Dialect:
    """Return a Dialect instance for the given URL scheme (e.g. 'sqlite', 'mysql')."""
    normalized = (scheme or "").split("+")[0].lower()
    for dialect_cls in _DIALECT_CLASSES:
        if normalized in dialect_cls.SUPPORTED_SCHEMA:
            return dialect_cls()
    raise ValueError(f"Unsupported database scheme: {scheme}")


__all__ = [
    "Dialect",
    "SqliteDialect",
    "SqliteGrammar",
    "MysqlDialect",
    "MysqlGrammar",
    "PostgresDialect",
    "PostgresGrammar",
    "SqlserverDialect",
    "SqlserverGrammar",
    "get_dialect_for_scheme",
]
