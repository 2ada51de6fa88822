"""PostgreSQL dialect."""

import urllib.parse
from typing import Any, ClassVar

from ..query.grammar import Grammar
from ..query.processor import Processor, ReturningProcessor

from .base import Dialect


class PostgresGrammar(Grammar):
    """``%s`` markers, ``returning`` ids, ``for update`` / ``for share``."""

    PARAMETER_MARKER: ClassVar[str] = "%s"

    def compile_lock(self, query) -> str:
        if isinstance(query.lock_value, str):
            return query.lock_value
        if query.lock_value is None:
            return ""
        return "for update" if query.lock_value else "for share"

    def compile_insert_get_id(self, query, values, sequence) -> str:
        sql = self.compile_insert(query, [values] if values else [])
        return f"{sql} returning {self.wrap(sequence or 'id')}"

    def compile_truncate(self, query) -> dict[str, list[Any]]:
        return {f"truncate {self.wrap_table(query.from_table)} restart identity cascade": []}

    def compile_column_listing(self) -> str:
        return (
            "select column_name from information_schema.columns "
            "where table_schema = current_schema() and table_name = %s"
        )


class PostgresDialect(Dialect):
    """Dialect for PostgreSQL (scheme postgresql)."""

    SUPPORTED_SCHEMA: ClassVar[tuple[str, ...]] = ("postgresql", "postgres")
    GRAMMAR: ClassVar[type[Grammar]] = PostgresGrammar
    PROCESSOR: ClassVar[type[Processor]] = ReturningProcessor

    def connect(self, url: str):
        import psycopg2
        parsed = urllib.parse.urlparse(url)
        return psycopg2.connect(
            host=parsed.hostname,
            user=parsed.username,
            password=parsed.password,
            database=(parsed.path or "")[1:] or None,
            port=parsed.port,
        )
