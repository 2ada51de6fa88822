"""Join clause: a builder whose predicates form the ``on`` part of a join."""

from __future__ import annotations

from typing import Any

from .builder import Builder, _is_callback


class JoinClause(Builder):
    """One join of a statement: its kind, target table and predicates.

    ``on()`` compares columns; ``where()`` compares against bound values, which
    the parent builder collects into its ``join`` bucket.
    """

    type: str = "inner"
    table: Any = None

    def on(self, first: Any, operator: Any = None, second: Any = None,
           boolean: str = "and") -> JoinClause:
        if _is_callback(first):
            return self.where_nested(first, boolean)
        return self.where_column(first, operator, second, boolean)

    def or_on(self, first: Any, operator: Any = None, second: Any = None) -> JoinClause:
        return self.on(first, operator, second, boolean="or")

    def for_nested_where(self) -> JoinClause:
        return JoinClause(
            type=self.type,
            table=self.table,
            connection=self.connection,
            grammar=self.grammar,
            processor=self.processor,
        )
