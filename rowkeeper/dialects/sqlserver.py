"""SQL Server dialect."""

import urllib.parse
from typing import ClassVar

from ..query.grammar import Grammar
from ..query.processor import Processor, ReturningProcessor

from .base import Dialect


class SqlserverGrammar(Grammar):
    """Bracket quoting, ``top`` / ``offset ... fetch``, table lock hints, ``output inserted``."""

    OPEN_QUOTE: ClassVar[str] = "["
    CLOSE_QUOTE: ClassVar[str] = "]"

    def compile_columns(self, query) -> str:
        if query.aggregate_value is not None:
            return ""
        select = "select distinct" if query.is_distinct else "select"
        if query.limit_value is not None and query.offset_value is None:
            select += f" top {int(query.limit_value)}"
        return f"{select} {self.columnize(query.columns)}"

    def compile_from(self, query) -> str:
        sql = super().compile_from(query)
        if not sql or query.lock_value is None or isinstance(query.lock_value, str):
            return sql
        hint = "with(rowlock,updlock,holdlock)" if query.lock_value else "with(rowlock,holdlock)"
        return f"{sql} {hint}"

    def compile_orders(self, query) -> str:
        if not query.orders and query.offset_value is not None:
            return "order by (select 0)"
        return super().compile_orders(query)

    def compile_limit(self, query) -> str:
        return ""

    def compile_offset(self, query) -> str:
        if query.offset_value is None:
            return ""
        sql = f"offset {int(query.offset_value)} rows"
        if query.limit_value is not None:
            sql += f" fetch next {int(query.limit_value)} rows only"
        return sql

    def compile_lock(self, query) -> str:
        return query.lock_value if isinstance(query.lock_value, str) else ""

    def compile_exists(self, query) -> str:
        return (
            f"select (case when exists({self.compile_select(query)}) then 1 else 0 end) "
            f"as {self.wrap('exists')}"
        )

    def compile_insert_get_id(self, query, values, sequence) -> str:
        table = self.wrap_table(query.from_table)
        output = f"output inserted.{self.wrap(sequence or 'id')}"
        if not values:
            return f"insert into {table} {output} default values"
        return (
            f"insert into {table} ({self.columnize(values.keys())}) {output} "
            f"values ({self.parameterize(values.values())})"
        )


class SqlserverDialect(Dialect):
    """Dialect for SQL Server (schemes mssql, sqlserver)."""

    SUPPORTED_SCHEMA: ClassVar[tuple[str, ...]] = ("mssql", "sqlserver")
    GRAMMAR: ClassVar[type[Grammar]] = SqlserverGrammar
    PROCESSOR: ClassVar[type[Processor]] = ReturningProcessor

    def connect(self, url: str):
        import pyodbc  # pylint: disable=import-outside-toplevel,import-error
        parsed = urllib.parse.urlparse(url)
        database = (parsed.path or "").lstrip("/") or None
        port = parsed.port or 1433
        server = parsed.hostname or "localhost"
        if port and port != 1433:
            server = f"{server},{port}"
        conn_str = (
            f"DRIVER={{ODBC Driver 17 for SQL Server}};"
            f"SERVER={server};"
            f"DATABASE={database or ''};"
            f"UID={parsed.username or ''};"
            f"PWD={parsed.password or ''}"
        )
        return pyodbc.connect(conn_str)
