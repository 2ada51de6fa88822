"""Fluent query builder.

A :class:`Builder` is a mutable description of one SQL statement: projection,
source, joins, predicates, grouping, ordering, limits, unions and locking.
Every fluent call records the logical clause and, for bound values, appends
them to the matching bucket of the builder's :class:`BindingStore`, so that
predicate order defines binding order.

Compilation is delegated to a Grammar, execution to a Connection and row
post-processing to a Processor; all three are injected.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Iterable, Optional

from pydantic import BaseModel, Field

from ..errors import InvalidAmount, InvalidArgument, InvalidSubquery
from ..utils.is_numeric import is_numeric
from .bindings import BindingStore
from .clauses import (
    Aggregate,
    BasicHaving,
    BasicWhere,
    BetweenWhere,
    ColumnWhere,
    ExistsWhere,
    InSubWhere,
    InWhere,
    NestedWhere,
    NullWhere,
    Order,
    RawHaving,
    RawOrder,
    RawWhere,
    SubWhere,
    Union,
)
from .expression import Expression, is_expression, raw
from .grammar import Grammar
from .processor import Processor

logger = logging.getLogger(__name__)

OPERATORS: tuple[str, ...] = (
    "=", "<", ">", "<=", ">=", "<>", "!=", "<=>",
    "like", "like binary", "not like", "ilike", "not ilike",
    "&", "|", "^", "<<", ">>",
    "rlike", "not rlike", "regexp", "not regexp",
    "~", "~*", "!~", "!~*", "similar to", "not similar to",
    "is", "is not",
)


class _Unset:
    """Marks an argument the caller did not pass (None is a meaningful value)."""

    def __repr__(self) -> str:
        return "<unset>"


_UNSET = _Unset()


def _is_callback(value: Any) -> bool:
    return callable(value) and not isinstance(value, (BaseModel, type, str))


def _flatten_columns(columns: Iterable[Any]) -> list[Any]:
    flat: list[Any] = []
    for column in columns:
        if isinstance(column, (list, tuple)):
            flat.extend(column)
        else:
            flat.append(column)
    return flat


class Builder(BaseModel):
    """Mutable, single-owner representation of one SQL statement.

    Fields are named ``*_value`` where a method of the same name exists
    (``limit()`` writes ``limit_value``).
    """

    model_config = {"arbitrary_types_allowed": True}

    connection: Any = None
    grammar: Any = None
    processor: Any = None

    bindings: BindingStore = Field(default_factory=BindingStore)
    aggregate_value: Optional[Aggregate] = None
    columns: Optional[list[Any]] = None
    is_distinct: bool = False
    from_table: Any = None
    joins: list[Any] = Field(default_factory=list)
    wheres: list[Any] = Field(default_factory=list)
    groups: list[Any] = Field(default_factory=list)
    havings: list[Any] = Field(default_factory=list)
    orders: list[Any] = Field(default_factory=list)
    limit_value: Optional[int] = None
    offset_value: Optional[int] = None
    unions: list[Any] = Field(default_factory=list)
    union_limit_value: Optional[int] = None
    union_offset_value: Optional[int] = None
    union_orders: list[Any] = Field(default_factory=list)
    lock_value: Any = None
    """None: plain read. True: exclusive lock. False: shared lock. str: raw lock clause."""

    def model_post_init(self, __context: Any) -> None:
        if self.grammar is None:
            self.grammar = getattr(self.connection, "grammar", None) or Grammar()
        if self.processor is None:
            self.processor = getattr(self.connection, "processor", None) or Processor()

    # --- projection ---

    def select(self, *columns: Any) -> Builder:
        """Replace the projection (``select("id", "name")`` or ``select(["id", "name"])``)."""
        self.columns = _flatten_columns(columns) or ["*"]
        return self

    def add_select(self, *columns: Any) -> Builder:
        """Append columns to the projection."""
        self.columns = list(self.columns or []) + _flatten_columns(columns)
        return self

    def select_raw(self, expression: str, bindings: Iterable[Any] = ()) -> Builder:
        """Add a raw projection; its bindings go to the ``select`` bucket."""
        self.add_select(Expression(value=expression))
        bindings = list(bindings)
        if bindings:
            self.add_binding(bindings, "select")
        return self

    def select_sub(self, query: Any, alias: str) -> Builder:
        """Add ``(subquery) as alias`` to the projection."""
        sql, bindings = self._create_sub(query)
        return self.select_raw(f"({sql}) as {self.grammar.wrap(alias)}", bindings)

    def distinct(self) -> Builder:
        self.is_distinct = True
        return self

    # --- source ---

    def from_(self, table: Any, alias: Optional[str] = None) -> Builder:
        """Set the source: a table name, or a builder/callable subquery with an alias."""
        if isinstance(table, Builder) or _is_callback(table):
            if alias is None:
                raise InvalidArgument("A subquery used as a source requires an alias")
            return self.from_sub(table, alias)
        self.from_table = f"{table} as {alias}" if alias else table
        return self

    def from_sub(self, query: Any, alias: str) -> Builder:
        sql, bindings = self._create_sub(query)
        return self.from_raw(f"({sql}) as {self.grammar.wrap_table(alias)}", bindings)

    def from_raw(self, expression: str, bindings: Iterable[Any] = ()) -> Builder:
        self.from_table = Expression(value=expression)
        self.add_binding(list(bindings), "from")
        return self

    # --- subqueries ---

    def _create_sub(self, query: Any) -> tuple[str, list[Any]]:
        """Resolve a subquery source into (sql, bindings)."""
        if _is_callback(query):
            callback = query
            query = self.new_builder()
            callback(query)
        return self._parse_sub(query)

    @staticmethod
    def _parse_sub(query: Any) -> tuple[str, list[Any]]:
        if isinstance(query, Builder):
            return query.to_sql(), query.get_bindings()
        if isinstance(query, str):
            return query, []
        raise InvalidSubquery(
            "A subquery must be a query builder instance, a callable, or a string."
        )

    def _resolve_sub_builder(self, query: Any) -> Builder:
        """Like _create_sub, for clauses that keep the builder itself."""
        if _is_callback(query):
            callback = query
            query = self.new_builder()
            callback(query)
        if not isinstance(query, Builder):
            raise InvalidSubquery("A subquery must be a query builder instance or a callable.")
        return query

    # --- joins ---

    def _new_join_clause(self, type: str, table: Any):
        from .join_clause import JoinClause
        return JoinClause(
            type=type,
            table=table,
            connection=self.connection,
            grammar=self.grammar,
            processor=self.processor,
        )

    def join(self, table: Any, first: Any, operator: Any = None, second: Any = None,
             type: str = "inner", where: bool = False) -> Builder:
        """Add a join. ``first`` may be a callable receiving the JoinClause."""
        join = self._new_join_clause(type, table)
        if _is_callback(first):
            first(join)
        elif where:
            if second is None:
                join.where(first, "=", operator)
            else:
                join.where(first, operator, second)
        else:
            join.on(first, operator, second)
        self.joins.append(join)
        self.add_binding(join.get_bindings(), "join")
        return self

    def join_where(self, table: Any, first: Any, operator: Any, second: Any = None,
                   type: str = "inner") -> Builder:
        """Join on ``first operator <bound value>``."""
        return self.join(table, first, operator, second, type=type, where=True)

    def left_join(self, table: Any, first: Any, operator: Any = None, second: Any = None) -> Builder:
        return self.join(table, first, operator, second, type="left")

    def right_join(self, table: Any, first: Any, operator: Any = None, second: Any = None) -> Builder:
        return self.join(table, first, operator, second, type="right")

    def cross_join(self, table: Any, first: Any = None, operator: Any = None, second: Any = None) -> Builder:
        if first is not None:
            return self.join(table, first, operator, second, type="cross")
        self.joins.append(self._new_join_clause("cross", table))
        return self

    # --- where ---

    @staticmethod
    def _check_operator(operator: Any) -> str:
        if not isinstance(operator, str) or operator.lower() not in OPERATORS:
            raise InvalidArgument(f"Illegal operator: {operator!r}")
        return operator

    def where(self, column: Any, operator: Any = _UNSET, value: Any = _UNSET,
              boolean: str = "and") -> Builder:
        """Add a predicate.

        Forms: ``where("votes", ">", 100)``, ``where("name", "John")`` (equality),
        ``where({"name": "John", "votes": 1})``, ``where(lambda q: ...)`` (nested),
        ``where("email", None)`` (is null), ``where("id", "=", subquery)``.
        """
        if isinstance(column, dict):
            return self._add_dict_of_wheres(column, boolean)
        if _is_callback(column) and operator is _UNSET:
            return self.where_nested(column, boolean)
        if value is _UNSET:
            if operator is _UNSET:
                raise InvalidArgument("where() needs a value to compare with")
            value, operator = operator, "="
        operator = self._check_operator(operator)
        if isinstance(value, Builder) or _is_callback(value):
            return self.where_sub(column, operator, value, boolean)
        if value is None:
            if operator.lower() in ("=", "is"):
                return self.where_null(column, boolean)
            if operator.lower() in ("!=", "<>", "is not"):
                return self.where_null(column, boolean, negate=True)
            raise InvalidArgument("Illegal operator and value combination.")
        self.wheres.append(BasicWhere(column=column, operator=operator, value=value, boolean=boolean))
        if not is_expression(value):
            self.add_binding(value, "where")
        return self

    def or_where(self, column: Any, operator: Any = _UNSET, value: Any = _UNSET) -> Builder:
        return self.where(column, operator, value, boolean="or")

    def _add_dict_of_wheres(self, conditions: dict[str, Any], boolean: str) -> Builder:
        def add(query: Builder) -> None:
            for key, value in conditions.items():
                query.where(key, "=", value)
        return self.where_nested(add, boolean)

    def where_column(self, first: Any, operator: Any = None, second: Any = None,
                     boolean: str = "and") -> Builder:
        """Compare two columns (``where_column("updated_at", ">", "created_at")``)."""
        if second is None:
            second, operator = operator, "="
        operator = self._check_operator(operator)
        self.wheres.append(ColumnWhere(first=first, operator=operator, second=second, boolean=boolean))
        return self

    def or_where_column(self, first: Any, operator: Any = None, second: Any = None) -> Builder:
        return self.where_column(first, operator, second, boolean="or")

    def where_raw(self, sql: str, bindings: Iterable[Any] = (), boolean: str = "and") -> Builder:
        self.wheres.append(RawWhere(sql=sql, boolean=boolean))
        self.add_binding(list(bindings), "where")
        return self

    def or_where_raw(self, sql: str, bindings: Iterable[Any] = ()) -> Builder:
        return self.where_raw(sql, bindings, boolean="or")

    def where_in(self, column: Any, values: Any, boolean: str = "and", negate: bool = False) -> Builder:
        """``column in (...)`` from a list of values, a builder or a callable."""
        if isinstance(values, Builder) or _is_callback(values):
            query = self._resolve_sub_builder(values)
            self.wheres.append(InSubWhere(column=column, query=query, boolean=boolean, negate=negate))
            self.add_binding(query.get_bindings(), "where")
            return self
        values = list(values)
        self.wheres.append(InWhere(column=column, values=values, boolean=boolean, negate=negate))
        self.add_binding([value for value in values if not is_expression(value)], "where")
        return self

    def or_where_in(self, column: Any, values: Any) -> Builder:
        return self.where_in(column, values, boolean="or")

    def where_not_in(self, column: Any, values: Any, boolean: str = "and") -> Builder:
        return self.where_in(column, values, boolean=boolean, negate=True)

    def or_where_not_in(self, column: Any, values: Any) -> Builder:
        return self.where_in(column, values, boolean="or", negate=True)

    def where_null(self, columns: Any, boolean: str = "and", negate: bool = False) -> Builder:
        for column in columns if isinstance(columns, (list, tuple)) else [columns]:
            self.wheres.append(NullWhere(column=column, boolean=boolean, negate=negate))
        return self

    def or_where_null(self, columns: Any) -> Builder:
        return self.where_null(columns, boolean="or")

    def where_not_null(self, columns: Any, boolean: str = "and") -> Builder:
        return self.where_null(columns, boolean=boolean, negate=True)

    def or_where_not_null(self, columns: Any) -> Builder:
        return self.where_null(columns, boolean="or", negate=True)

    def where_between(self, column: Any, values: Iterable[Any], boolean: str = "and",
                      negate: bool = False) -> Builder:
        values = list(values)
        if len(values) != 2:
            raise InvalidArgument("where_between() needs exactly two values")
        self.wheres.append(BetweenWhere(column=column, values=values, boolean=boolean, negate=negate))
        self.add_binding([value for value in values if not is_expression(value)], "where")
        return self

    def where_not_between(self, column: Any, values: Iterable[Any], boolean: str = "and") -> Builder:
        return self.where_between(column, values, boolean=boolean, negate=True)

    def where_nested(self, callback: Callable[[Builder], Any], boolean: str = "and") -> Builder:
        """Group the predicates added by callback inside parentheses."""
        query = self.for_nested_where()
        callback(query)
        return self.add_nested_where_query(query, boolean)

    def for_nested_where(self) -> Builder:
        query = self.new_builder()
        query.from_table = self.from_table
        return query

    def add_nested_where_query(self, query: Builder, boolean: str = "and") -> Builder:
        if query.wheres:
            self.wheres.append(NestedWhere(query=query, boolean=boolean))
            self.add_binding(query.get_raw_bindings()["where"], "where")
        return self

    def where_sub(self, column: Any, operator: str, query: Any, boolean: str = "and") -> Builder:
        """``column operator (subquery)``."""
        query = self._resolve_sub_builder(query)
        self.wheres.append(SubWhere(column=column, operator=operator, query=query, boolean=boolean))
        self.add_binding(query.get_bindings(), "where")
        return self

    def where_exists(self, query: Any, boolean: str = "and", negate: bool = False) -> Builder:
        query = self._resolve_sub_builder(query)
        self.wheres.append(ExistsWhere(query=query, boolean=boolean, negate=negate))
        self.add_binding(query.get_bindings(), "where")
        return self

    def or_where_exists(self, query: Any) -> Builder:
        return self.where_exists(query, boolean="or")

    def where_not_exists(self, query: Any, boolean: str = "and") -> Builder:
        return self.where_exists(query, boolean=boolean, negate=True)

    def or_where_not_exists(self, query: Any) -> Builder:
        return self.where_exists(query, boolean="or", negate=True)

    # --- grouping ---

    def group_by(self, *groups: Any) -> Builder:
        self.groups.extend(_flatten_columns(groups))
        return self

    def having(self, column: Any, operator: Any = _UNSET, value: Any = _UNSET,
               boolean: str = "and") -> Builder:
        if value is _UNSET:
            if operator is _UNSET:
                raise InvalidArgument("having() needs a value to compare with")
            value, operator = operator, "="
        operator = self._check_operator(operator)
        self.havings.append(BasicHaving(column=column, operator=operator, value=value, boolean=boolean))
        if not is_expression(value):
            self.add_binding(value, "having")
        return self

    def or_having(self, column: Any, operator: Any = _UNSET, value: Any = _UNSET) -> Builder:
        return self.having(column, operator, value, boolean="or")

    def having_raw(self, sql: str, bindings: Iterable[Any] = (), boolean: str = "and") -> Builder:
        self.havings.append(RawHaving(sql=sql, boolean=boolean))
        self.add_binding(list(bindings), "having")
        return self

    # --- ordering, limits ---

    def _order_target(self) -> list[Any]:
        return self.union_orders if self.unions else self.orders

    def order_by(self, column: Any, direction: str = "asc") -> Builder:
        direction = direction.lower()
        if direction not in ("asc", "desc"):
            raise InvalidArgument('Order direction must be "asc" or "desc".')
        self._order_target().append(Order(column=column, direction=direction))
        return self

    def order_by_desc(self, column: Any) -> Builder:
        return self.order_by(column, "desc")

    def order_by_raw(self, sql: str, bindings: Iterable[Any] = ()) -> Builder:
        self._order_target().append(RawOrder(sql=sql))
        self.add_binding(list(bindings), "union_order" if self.unions else "order")
        return self

    def latest(self, column: str = "created_at") -> Builder:
        return self.order_by(column, "desc")

    def oldest(self, column: str = "created_at") -> Builder:
        return self.order_by(column, "asc")

    def limit(self, value: int) -> Builder:
        """Set LIMIT (of the union result once unions exist); negative values are ignored."""
        if value >= 0:
            if self.unions:
                self.union_limit_value = int(value)
            else:
                self.limit_value = int(value)
        return self

    def offset(self, value: int) -> Builder:
        """Set OFFSET (of the union result once unions exist); clamped to zero."""
        value = max(0, int(value))
        if self.unions:
            self.union_offset_value = value
        else:
            self.offset_value = value
        return self

    def for_page(self, page: int, per_page: int = 15) -> Builder:
        return self.offset((page - 1) * per_page).limit(per_page)

    # --- unions, locks ---

    def union(self, query: Any, all: bool = False) -> Builder:
        """Append a union; the sub-builder's bindings go to the ``union`` bucket."""
        if isinstance(query, str):
            query = Expression(value=query)
        else:
            query = self._resolve_sub_builder(query)
        self.unions.append(Union(query=query, all=all))
        if isinstance(query, Builder):
            self.add_binding(query.get_bindings(), "union")
        return self

    def union_all(self, query: Any) -> Builder:
        return self.union(query, all=True)

    def lock(self, value: Any = True) -> Builder:
        """True: exclusive ("for update"); False: shared; a string is used verbatim."""
        self.lock_value = value
        return self

    def lock_for_update(self) -> Builder:
        return self.lock(True)

    def shared_lock(self) -> Builder:
        return self.lock(False)

    # --- compilation ---

    def to_sql(self) -> str:
        """Compiled SELECT statement, with placeholders."""
        return self.grammar.compile_select(self)

    # --- reads ---

    def get(self, columns: Any = ("*",)) -> list[dict[str, Any]]:
        """Run the select and return processed rows.

        ``columns`` only applies when no projection was set; the projection is
        restored afterwards, also when the query fails.
        """
        original = self.columns
        if original is None:
            self.columns = _flatten_columns([columns])
        try:
            return self.processor.process_select(self, self._run_select())
        finally:
            self.columns = original

    def _run_select(self) -> list[dict[str, Any]]:
        return self.connection.select(self.to_sql(), self.clean_bindings(self.get_bindings()))

    def first(self, columns: Any = ("*",)) -> Optional[dict[str, Any]]:
        """First row, or None when nothing matches."""
        rows = self.limit(1).get(columns)
        return rows[0] if rows else None

    def value(self, column: str) -> Any:
        """Value of a single column in the first row, or None."""
        row = self.first([column])
        if not row:
            return None
        return next(iter(row.values()))

    def find(self, id: Any, columns: Any = ("*",)) -> Optional[dict[str, Any]]:
        return self.where("id", "=", id).first(columns)

    def exists(self) -> bool:
        sql = self.grammar.compile_exists(self)
        rows = self.connection.select(sql, self.clean_bindings(self.get_bindings()))
        if not rows:
            return False
        return bool(next(iter(rows[0].values())))

    def aggregate(self, function: str, columns: Any = ("*",)) -> Any:
        """Run ``function(columns)`` on a copy of this query and return the scalar."""
        columns = _flatten_columns([columns])
        query = self.clone_with(
            columns=None,
            aggregate_value=Aggregate(function=function, columns=columns),
        )
        query.bindings.set("select", [])
        rows = query.get(columns)
        if not rows:
            return None
        return next(iter(rows[0].values()))

    def count(self, columns: Any = "*") -> int:
        return int(self.aggregate("count", columns) or 0)

    def min(self, column: str) -> Any:
        return self.aggregate("min", column)

    def max(self, column: str) -> Any:
        return self.aggregate("max", column)

    def sum(self, column: str) -> Any:
        return self.aggregate("sum", column) or 0

    def avg(self, column: str) -> Any:
        return self.aggregate("avg", column)

    # --- writes ---

    def insert(self, values: Any) -> bool:
        """Insert one row (a mapping) or several rows (a list of mappings).

        Keys of every row in a multi-row insert are sorted so that all rows share
        the same column order; bindings are the rows' values concatenated.
        """
        if not values:
            return True
        if isinstance(values, dict):
            rows = [dict(values)]
        else:
            rows = [dict(sorted(row.items())) for row in values]
        sql = self.grammar.compile_insert(self, rows)
        bindings = self.clean_bindings([value for row in rows for value in row.values()])
        return self.connection.insert(sql, bindings)

    def insert_get_id(self, values: dict[str, Any], sequence: Optional[str] = None) -> Any:
        """Insert one row and return its generated identifier."""
        sql = self.grammar.compile_insert_get_id(self, values, sequence)
        bindings = self.clean_bindings(list(values.values()))
        return self.processor.process_insert_get_id(self, sql, bindings, sequence)

    def update(self, values: dict[str, Any]) -> Any:
        """Update matching rows; returns the connection's statement handle."""
        sql = self.grammar.compile_update(self, values)
        bindings = self.grammar.prepare_bindings_for_update(self.bindings, values)
        return self.connection.query(sql, self.clean_bindings(bindings))

    def increment(self, column: str, amount: Any = 1, extra: Optional[dict[str, Any]] = None) -> Any:
        """``column = column + amount`` (plus the ``extra`` assignments)."""
        if not is_numeric(amount):
            raise InvalidAmount("Non-numeric value passed to increment method.")
        wrapped = self.grammar.wrap(column)
        return self.update({column: self.raw(f"{wrapped} + {amount}"), **(extra or {})})

    def decrement(self, column: str, amount: Any = 1, extra: Optional[dict[str, Any]] = None) -> Any:
        """``column = column - amount`` (plus the ``extra`` assignments)."""
        if not is_numeric(amount):
            raise InvalidAmount("Non-numeric value passed to decrement method.")
        wrapped = self.grammar.wrap(column)
        return self.update({column: self.raw(f"{wrapped} - {amount}"), **(extra or {})})

    def delete(self, id: Any = None) -> Any:
        """Delete matching rows (or the row with the given id)."""
        if id is not None:
            self.where("id", "=", id)
        sql = self.grammar.compile_delete(self)
        bindings = self.grammar.prepare_bindings_for_delete(self.bindings)
        return self.connection.query(sql, self.clean_bindings(bindings))

    def truncate(self) -> None:
        """Run every statement the grammar needs to empty the table, in order."""
        for sql, bindings in self.grammar.compile_truncate(self).items():
            self.connection.query(sql, self.clean_bindings(bindings))

    # --- bindings ---

    def get_bindings(self) -> list[Any]:
        return self.bindings.flatten()

    def get_raw_bindings(self) -> dict[str, list[Any]]:
        return self.bindings.as_dict()

    def set_bindings(self, values: Iterable[Any], kind: str = "where") -> Builder:
        self.bindings.set(kind, values)
        return self

    def add_binding(self, value: Any, kind: str = "where") -> Builder:
        self.bindings.add(kind, value)
        return self

    def merge_bindings(self, query: Builder) -> Builder:
        self.bindings.merge(query.bindings)
        return self

    @staticmethod
    def clean_bindings(bindings: Iterable[Any]) -> list[Any]:
        """Drop raw expressions; they are inlined in the SQL, not bound."""
        return [binding for binding in bindings if not is_expression(binding)]

    # --- misc ---

    def raw(self, value: Any) -> Expression:
        if self.connection is not None and hasattr(self.connection, "raw"):
            return self.connection.raw(value)
        return raw(value)

    def new_builder(self) -> Builder:
        """Fresh builder sharing this one's connection, grammar and processor."""
        return Builder(connection=self.connection, grammar=self.grammar, processor=self.processor)

    def clone_with(self, **changes: Any) -> Builder:
        """Copy of this builder (lists and bindings not shared) with the given overrides."""
        data = {}
        for name in type(self).model_fields:
            value = getattr(self, name)
            data[name] = list(value) if isinstance(value, list) else value
        data["bindings"] = self.bindings.copy_store()
        data.update(changes)
        return type(self)(**data)


__all__ = ["Builder", "OPERATORS"]
