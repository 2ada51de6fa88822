"""MySQL dialect."""

import urllib.parse
from typing import ClassVar

from ..query.grammar import Grammar
from ..query.processor import Processor

from .base import Dialect


class MysqlGrammar(Grammar):
    """Backtick quoting, ``%s`` markers, ``for update`` / ``lock in share mode``."""

    PARAMETER_MARKER: ClassVar[str] = "%s"
    OPEN_QUOTE: ClassVar[str] = "`"
    CLOSE_QUOTE: ClassVar[str] = "`"

    def compile_lock(self, query) -> str:
        if isinstance(query.lock_value, str):
            return query.lock_value
        if query.lock_value is None:
            return ""
        return "for update" if query.lock_value else "lock in share mode"

    def compile_offset(self, query) -> str:
        if query.offset_value is None:
            return ""
        # MySQL has no OFFSET without LIMIT; use the largest unsigned bigint.
        prefix = "limit 18446744073709551615 " if query.limit_value is None else ""
        return f"{prefix}offset {int(query.offset_value)}"

    def compile_insert(self, query, values) -> str:
        if not values:
            return f"insert into {self.wrap_table(query.from_table)} () values ()"
        return super().compile_insert(query, values)

    def compile_delete(self, query) -> str:
        if not query.joins:
            return super().compile_delete(query)
        table = self.wrap_table(query.from_table)
        return self._concatenate([
            "delete", table, "from", table,
            self.compile_joins(query),
            self.compile_wheres(query),
        ])

    def compile_column_listing(self) -> str:
        return (
            "select column_name from information_schema.columns "
            "where table_schema = database() and table_name = %s"
        )


class MysqlDialect(Dialect):
    """Dialect for MySQL (scheme mysql)."""

    SUPPORTED_SCHEMA: ClassVar[tuple[str, ...]] = ("mysql",)
    GRAMMAR: ClassVar[type[Grammar]] = MysqlGrammar
    PROCESSOR: ClassVar[type[Processor]] = Processor

    def connect(self, url: str):
        import pymysql  # pylint: disable=import-outside-toplevel,import-error
        parsed = urllib.parse.urlparse(url)
        return pymysql.connect(
            host=parsed.hostname,
            user=parsed.username,
            password=parsed.password,
            database=(parsed.path or "")[1:] or None,
            port=parsed.port or 3306,
        )
