"""SQLite dialect."""

import logging
import urllib.parse
from typing import Any, ClassVar

from ..query.grammar import Grammar
from ..query.processor import Processor

from .base import Dialect

logger = logging.getLogger(__name__)

SEQUENCE_TABLE_EXISTS = (
    "select exists (select 1 from sqlite_master where type = 'table' and name = 'sqlite_sequence') as \"exists\""
)


class SqliteGrammar(Grammar):
    """SQLite has no row locks, needs LIMIT before OFFSET and no parentheses around union members."""

    def compile_lock(self, query) -> str:
        return ""

    def compile_offset(self, query) -> str:
        if query.offset_value is None:
            return ""
        prefix = "limit -1 " if query.limit_value is None else ""
        return f"{prefix}offset {int(query.offset_value)}"

    def wrap_union(self, sql: str) -> str:
        return f"select * from ({sql})"

    def compile_truncate(self, query) -> dict[str, list[Any]]:
        """Empty the table; the autoincrement counter is reset first when SQLite keeps one.

        ``sqlite_sequence`` only exists once some table uses AUTOINCREMENT, so a
        builder with a connection asks the database first.
        """
        statements: dict[str, list[Any]] = {}
        if query.connection is None or self._has_sequence_table(query.connection):
            table = self.table_prefix + str(query.from_table)
            statements["delete from sqlite_sequence where name = ?"] = [table]
        statements[f"delete from {self.wrap_table(query.from_table)}"] = []
        return statements

    @staticmethod
    def _has_sequence_table(connection) -> bool:
        rows = connection.select(SEQUENCE_TABLE_EXISTS)
        return bool(rows) and bool(next(iter(rows[0].values())))

    def compile_column_listing(self) -> str:
        return "select name from pragma_table_info(?)"


class SqliteDialect(Dialect):
    """Dialect for SQLite (scheme sqlite)."""

    SUPPORTED_SCHEMA: ClassVar[tuple[str, ...]] = ("sqlite",)
    GRAMMAR: ClassVar[type[Grammar]] = SqliteGrammar
    PROCESSOR: ClassVar[type[Processor]] = Processor

    def connect(self, url: str):
        import sqlite3
        parsed = urllib.parse.urlparse(url)
        path = (parsed.path or "")[1:] or parsed.hostname
        logger.info("Connecting to SQLite database %s", path)
        conn = sqlite3.connect(path)
        conn.execute("PRAGMA foreign_keys = ON")
        return conn
