"""Clause records stored on a Builder.

Each record describes one logical piece of a statement; the grammar turns it
into SQL. Where and having records carry the boolean (``and`` / ``or``) that
joins them to the previous predicate, and a ``type`` the grammar dispatches on.
"""

from __future__ import annotations

from typing import Any, ClassVar

from pydantic import BaseModel


class Clause(BaseModel):
    """Base for clause records; subqueries are builders, kept as-is."""

    model_config = {"arbitrary_types_allowed": True}


class Where(Clause):
    type: ClassVar[str] = ""
    boolean: str = "and"


class BasicWhere(Where):
    type: ClassVar[str] = "basic"
    column: Any
    operator: str
    value: Any


class ColumnWhere(Where):
    type: ClassVar[str] = "column"
    first: Any
    operator: str
    second: Any


class InWhere(Where):
    type: ClassVar[str] = "in"
    column: Any
    values: list[Any]
    negate: bool = False


class InSubWhere(Where):
    type: ClassVar[str] = "in_sub"
    column: Any
    query: Any
    negate: bool = False


class NullWhere(Where):
    type: ClassVar[str] = "null"
    column: Any
    negate: bool = False


class BetweenWhere(Where):
    type: ClassVar[str] = "between"
    column: Any
    values: list[Any]
    negate: bool = False


class NestedWhere(Where):
    type: ClassVar[str] = "nested"
    query: Any


class SubWhere(Where):
    type: ClassVar[str] = "sub"
    column: Any
    operator: str
    query: Any


class ExistsWhere(Where):
    type: ClassVar[str] = "exists"
    query: Any
    negate: bool = False


class RawWhere(Where):
    type: ClassVar[str] = "raw"
    sql: str


class Having(Clause):
    type: ClassVar[str] = ""
    boolean: str = "and"


class BasicHaving(Having):
    type: ClassVar[str] = "basic"
    column: Any
    operator: str
    value: Any


class RawHaving(Having):
    type: ClassVar[str] = "raw"
    sql: str


class Order(Clause):
    column: Any
    direction: str = "asc"


class RawOrder(Clause):
    sql: str


class Union(Clause):
    query: Any
    all: bool = False


class Aggregate(Clause):
    function: str
    columns: list[Any]


__all__ = [
    "Where",
    "BasicWhere",
    "ColumnWhere",
    "InWhere",
    "InSubWhere",
    "NullWhere",
    "BetweenWhere",
    "NestedWhere",
    "SubWhere",
    "ExistsWhere",
    "RawWhere",
    "Having",
    "BasicHaving",
    "RawHaving",
    "Order",
    "RawOrder",
    "Union",
    "Aggregate",
]
