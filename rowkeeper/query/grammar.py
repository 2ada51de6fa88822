"""Base SQL grammar: compiles Builder state into SQL text.

Placeholder emission order follows the binding kinds of
:class:`~rowkeeper.query.bindings.BindingStore` (select, from, join, where,
group_by, having, order, union), so ``builder.get_bindings()`` lines up with
the compiled SQL positionally. Limits and offsets are inlined as integers.

Dialect grammars (see :mod:`rowkeeper.dialects`) override quoting, parameter
markers, locking and the statements that differ between engines.
"""

from __future__ import annotations

import re
from typing import TYPE_CHECKING, Any, ClassVar, Iterable

from pydantic import BaseModel

from ..errors import InvalidArgument
from .bindings import BindingStore
from .clauses import Order, RawOrder
from .expression import Expression, is_expression

if TYPE_CHECKING:
    from .builder import Builder

_ALIAS = re.compile(r"\s+as\s+", re.IGNORECASE)
_LEADING_BOOLEAN = re.compile(r"^(and|or)\s+", re.IGNORECASE)


class Grammar(BaseModel):
    """Dialect-neutral SQL compiler."""

    PARAMETER_MARKER: ClassVar[str] = "?"
    OPEN_QUOTE: ClassVar[str] = '"'
    CLOSE_QUOTE: ClassVar[str] = '"'
    SELECT_COMPONENTS: ClassVar[tuple[str, ...]] = (
        "aggregate",
        "columns",
        "from",
        "joins",
        "wheres",
        "groups",
        "havings",
        "orders",
        "limit",
        "offset",
        "lock",
    )

    table_prefix: str = ""

    # --- wrapping ---

    def wrap_value(self, value: str) -> str:
        """Quote a single identifier segment."""
        if value == "*":
            return value
        escaped = value.replace(self.CLOSE_QUOTE, self.CLOSE_QUOTE * 2)
        return f"{self.OPEN_QUOTE}{escaped}{self.CLOSE_QUOTE}"

    def wrap(self, value: Any, prefix_alias: bool = False) -> str:
        """Quote an identifier: ``users.name`` -> ``"users"."name"``; raw expressions pass through."""
        if isinstance(value, Expression):
            return value.sql
        value = str(value)
        parts = _ALIAS.split(value)
        if len(parts) == 2:
            column, alias = parts
            if prefix_alias:
                alias = self.table_prefix + alias
            return f"{self.wrap(column)} as {self.wrap_value(alias)}"
        segments = value.split(".")
        wrapped = []
        for index, segment in enumerate(segments):
            if index == 0 and len(segments) > 1:
                wrapped.append(self.wrap_table(segment))
            else:
                wrapped.append(self.wrap_value(segment))
        return ".".join(wrapped)

    def wrap_table(self, table: Any) -> str:
        """Quote a table name, applying the table prefix."""
        if isinstance(table, Expression):
            return table.sql
        return self.wrap(self.table_prefix + str(table), prefix_alias=True)

    def columnize(self, columns: Iterable[Any]) -> str:
        return ", ".join(self.wrap(column) for column in columns)

    def parameter(self, value: Any) -> str:
        return value.sql if is_expression(value) else self.PARAMETER_MARKER

    def parameterize(self, values: Iterable[Any]) -> str:
        return ", ".join(self.parameter(value) for value in values)

    @staticmethod
    def _concatenate(segments: Iterable[str]) -> str:
        return " ".join(segment for segment in segments if segment)

    # --- select ---

    def compile_select(self, query: Builder) -> str:
        if query.unions and query.aggregate_value is not None:
            return self.compile_union_aggregate(query)
        original = query.columns
        if query.columns is None:
            query.columns = ["*"]
        try:
            sql = self._concatenate(
                getattr(self, f"compile_{component}")(query)
                for component in self.SELECT_COMPONENTS
            )
        finally:
            query.columns = original
        if query.unions:
            sql = f"{self.wrap_union(sql)} {self.compile_unions(query)}"
        return sql

    def compile_aggregate(self, query: Builder) -> str:
        aggregate = query.aggregate_value
        if aggregate is None:
            return ""
        column = self.columnize(aggregate.columns)
        if query.is_distinct and column != "*":
            column = f"distinct {column}"
        return f"select {aggregate.function}({column}) as aggregate"

    def compile_columns(self, query: Builder) -> str:
        if query.aggregate_value is not None:
            return ""
        select = "select distinct" if query.is_distinct else "select"
        return f"{select} {self.columnize(query.columns)}"

    def compile_from(self, query: Builder) -> str:
        if query.from_table is None:
            return ""
        return f"from {self.wrap_table(query.from_table)}"

    def compile_joins(self, query: Builder) -> str:
        return " ".join(self._compile_join(join) for join in query.joins)

    def _compile_join(self, join: Any) -> str:
        table = self.wrap_table(join.table)
        if not join.wheres:
            return f"{join.type} join {table}"
        return f"{join.type} join {table} on {self._compile_predicates(join.wheres)}"

    def compile_wheres(self, query: Builder) -> str:
        if not query.wheres:
            return ""
        return f"where {self._compile_predicates(query.wheres)}"

    def _compile_predicates(self, wheres: list[Any]) -> str:
        sql = " ".join(
            f"{where.boolean} {getattr(self, f'where_{where.type}')(where)}"
            for where in wheres
        )
        return _LEADING_BOOLEAN.sub("", sql, count=1)

    def where_basic(self, where: Any) -> str:
        return f"{self.wrap(where.column)} {where.operator} {self.parameter(where.value)}"

    def where_column(self, where: Any) -> str:
        return f"{self.wrap(where.first)} {where.operator} {self.wrap(where.second)}"

    def where_in(self, where: Any) -> str:
        if not where.values:
            return "1 = 1" if where.negate else "0 = 1"
        keyword = "not in" if where.negate else "in"
        return f"{self.wrap(where.column)} {keyword} ({self.parameterize(where.values)})"

    def where_in_sub(self, where: Any) -> str:
        keyword = "not in" if where.negate else "in"
        return f"{self.wrap(where.column)} {keyword} ({self.compile_select(where.query)})"

    def where_null(self, where: Any) -> str:
        keyword = "is not null" if where.negate else "is null"
        return f"{self.wrap(where.column)} {keyword}"

    def where_between(self, where: Any) -> str:
        keyword = "not between" if where.negate else "between"
        low, high = where.values
        return f"{self.wrap(where.column)} {keyword} {self.parameter(low)} and {self.parameter(high)}"

    def where_nested(self, where: Any) -> str:
        return f"({self._compile_predicates(where.query.wheres)})"

    def where_sub(self, where: Any) -> str:
        return f"{self.wrap(where.column)} {where.operator} ({self.compile_select(where.query)})"

    def where_exists(self, where: Any) -> str:
        keyword = "not exists" if where.negate else "exists"
        return f"{keyword} ({self.compile_select(where.query)})"

    def where_raw(self, where: Any) -> str:
        return where.sql

    def compile_groups(self, query: Builder) -> str:
        if not query.groups:
            return ""
        return f"group by {self.columnize(query.groups)}"

    def compile_havings(self, query: Builder) -> str:
        if not query.havings:
            return ""
        sql = " ".join(
            f"{having.boolean} {getattr(self, f'having_{having.type}')(having)}"
            for having in query.havings
        )
        return "having " + _LEADING_BOOLEAN.sub("", sql, count=1)

    def having_basic(self, having: Any) -> str:
        return f"{self.wrap(having.column)} {having.operator} {self.parameter(having.value)}"

    def having_raw(self, having: Any) -> str:
        return having.sql

    def compile_orders(self, query: Builder) -> str:
        return self._compile_order_list(query.orders)

    def _compile_order_list(self, orders: list[Any]) -> str:
        if not orders:
            return ""
        compiled = []
        for order in orders:
            if isinstance(order, RawOrder):
                compiled.append(order.sql)
            elif isinstance(order, Order):
                compiled.append(f"{self.wrap(order.column)} {order.direction}")
        return "order by " + ", ".join(compiled)

    def compile_limit(self, query: Builder) -> str:
        if query.limit_value is None:
            return ""
        return f"limit {int(query.limit_value)}"

    def compile_offset(self, query: Builder) -> str:
        if query.offset_value is None:
            return ""
        return f"offset {int(query.offset_value)}"

    def compile_lock(self, query: Builder) -> str:
        if isinstance(query.lock_value, str):
            return query.lock_value
        return ""

    def compile_unions(self, query: Builder) -> str:
        segments = []
        for union in query.unions:
            keyword = "union all" if union.all else "union"
            if isinstance(union.query, Expression):
                sub_sql = union.query.sql
            else:
                sub_sql = self.compile_select(union.query)
            segments.append(f"{keyword} {self.wrap_union(sub_sql)}")
        segments.append(self._compile_order_list(query.union_orders))
        if query.union_limit_value is not None:
            segments.append(f"limit {int(query.union_limit_value)}")
        if query.union_offset_value is not None:
            segments.append(f"offset {int(query.union_offset_value)}")
        return self._concatenate(segments)

    def wrap_union(self, sql: str) -> str:
        return f"({sql})"

    def compile_union_aggregate(self, query: Builder) -> str:
        sql = self.compile_aggregate(query)
        inner = self.compile_select(query.clone_with(aggregate_value=None))
        return f"{sql} from ({inner}) as {self.wrap_table('temp_table')}"

    def compile_exists(self, query: Builder) -> str:
        return f"select exists({self.compile_select(query)}) as {self.wrap('exists')}"

    # --- writes ---

    def compile_insert(self, query: Builder, values: list[dict[str, Any]]) -> str:
        """``insert into t (a, b) values (?, ?), (?, ?)``; every row must share the same keys."""
        table = self.wrap_table(query.from_table)
        if not values:
            return f"insert into {table} default values"
        columns = list(values[0].keys())
        for record in values[1:]:
            if list(record.keys()) != columns:
                raise InvalidArgument("Every row of a multi-row insert must have the same columns")
        parameters = ", ".join(f"({self.parameterize(record.values())})" for record in values)
        return f"insert into {table} ({self.columnize(columns)}) values {parameters}"

    def compile_insert_get_id(self, query: Builder, values: dict[str, Any], sequence: str | None) -> str:
        return self.compile_insert(query, [values] if values else [])

    def compile_update(self, query: Builder, values: dict[str, Any]) -> str:
        columns = ", ".join(f"{self.wrap(key)} = {self.parameter(value)}" for key, value in values.items())
        return self._concatenate([
            "update",
            self.wrap_table(query.from_table),
            self.compile_joins(query),
            "set",
            columns,
            self.compile_wheres(query),
        ])

    def prepare_bindings_for_update(self, bindings: BindingStore, values: dict[str, Any]) -> list[Any]:
        """Join bindings, then the SET values, then the remaining filter bindings."""
        assigned = [value for value in values.values() if not is_expression(value)]
        return bindings.get("join") + assigned + bindings.flatten(exclude=("select", "join"))

    def compile_delete(self, query: Builder) -> str:
        return self._concatenate([
            "delete from",
            self.wrap_table(query.from_table),
            self.compile_wheres(query),
        ])

    def prepare_bindings_for_delete(self, bindings: BindingStore) -> list[Any]:
        return bindings.flatten(exclude=("select",))

    def compile_truncate(self, query: Builder) -> dict[str, list[Any]]:
        """Statements (in execution order) and their bindings."""
        return {f"truncate table {self.wrap_table(query.from_table)}": []}

    def compile_column_listing(self) -> str:
        """Query listing a table's columns; takes the table name as its single binding."""
        return f"select column_name from information_schema.columns where table_name = {self.PARAMETER_MARKER}"


__all__ = ["Grammar"]
