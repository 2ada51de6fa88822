"""Connection: the collaborator that executes compiled SQL over a DB-API driver."""

import logging
import time
import urllib.parse
from typing import Any, Iterable, Optional

from .dialects import get_dialect_for_scheme
from .query.expression import Expression, raw as make_raw

logger = logging.getLogger(__name__)


class Connection:
    """A named database connection built from a URL.

    The dialect is picked from the URL scheme; the driver connection itself is
    only opened on first use. Every write is committed right after it runs.
    """

    def __init__(self, url: str, name: str = "default", table_prefix: str = ""):
        self.url = url
        self.name = name
        self.table_prefix = table_prefix
        self.dialect = get_dialect_for_scheme(urllib.parse.urlparse(url).scheme)
        self.grammar = self.dialect.make_grammar(table_prefix)
        self.processor = self.dialect.make_processor()
        self._handle = None
        self._last_insert_id: Any = None
        self._logging_queries = False
        self._query_log: list[dict[str, Any]] = []

    def __repr__(self) -> str:
        return f"Connection(name={self.name!r}, dialect={type(self.dialect).__name__})"

    # driver handle (opened on first call)

    def get_handle(self):
        if self._handle is None:
            logger.info("Opening connection %r (%s)", self.name, type(self.dialect).__name__)
            self._handle = self.dialect.connect(self.url)
        return self._handle

    def disconnect(self) -> None:
        if self._handle is not None:
            logger.info("Closing connection %r", self.name)
            self._handle.close()
            self._handle = None

    # execution

    def _run(self, sql: str, bindings: Iterable[Any], commit: bool = False):
        bindings = list(bindings)
        logger.debug("%s %s", sql, bindings)
        handle = self.get_handle()
        started = time.perf_counter()
        cursor = handle.cursor()
        cursor.execute(sql, bindings)
        if commit:
            handle.commit()
        if self._logging_queries:
            self._query_log.append({
                "query": sql,
                "bindings": bindings,
                "time": round((time.perf_counter() - started) * 1000, 2),
            })
        return cursor

    @staticmethod
    def _fetch_dicts(cursor) -> list[dict[str, Any]]:
        if cursor.description is None:
            return []
        names = [column[0] for column in cursor.description]
        return [dict(zip(names, row)) for row in cursor.fetchall()]

    def select(self, sql: str, bindings: Iterable[Any] = ()) -> list[dict[str, Any]]:
        """Run a select and return its rows as dicts."""
        return self._fetch_dicts(self._run(sql, bindings))

    def select_one(self, sql: str, bindings: Iterable[Any] = ()) -> Optional[dict[str, Any]]:
        rows = self.select(sql, bindings)
        return rows[0] if rows else None

    def select_from_write(self, sql: str, bindings: Iterable[Any] = ()) -> list[dict[str, Any]]:
        """Run a write that returns rows (``returning`` / ``output``), then commit."""
        cursor = self._run(sql, bindings)
        rows = self._fetch_dicts(cursor)
        self.get_handle().commit()
        return rows

    def insert(self, sql: str, bindings: Iterable[Any] = ()) -> bool:
        cursor = self._run(sql, bindings, commit=True)
        self._last_insert_id = getattr(cursor, "lastrowid", None)
        return True

    def query(self, sql: str, bindings: Iterable[Any] = ()):
        """Run a write and return the cursor (its ``rowcount`` tells the affected rows)."""
        return self._run(sql, bindings, commit=True)

    def statement(self, sql: str, bindings: Iterable[Any] = ()) -> bool:
        self._run(sql, bindings, commit=True)
        return True

    def affecting_statement(self, sql: str, bindings: Iterable[Any] = ()) -> int:
        return self._run(sql, bindings, commit=True).rowcount

    def last_insert_id(self, sequence: Optional[str] = None) -> Any:
        return self._last_insert_id

    def raw(self, value: Any) -> Expression:
        return make_raw(value)

    # helpers

    def get_column_listing(self, table: str) -> list[str]:
        sql = self.grammar.compile_column_listing()
        rows = self.select(sql, [self.table_prefix + table])
        return self.processor.process_column_listing(rows)

    def query_builder(self):
        from .query.builder import Builder
        return Builder(connection=self, grammar=self.grammar, processor=self.processor)

    def table(self, name: str):
        """Builder selecting from the given table."""
        return self.query_builder().from_(name)

    # query log

    def enable_query_log(self) -> None:
        self._logging_queries = True

    def disable_query_log(self) -> None:
        self._logging_queries = False

    def get_query_log(self) -> list[dict[str, Any]]:
        return list(self._query_log)

    def flush_query_log(self) -> None:
        self._query_log = []
