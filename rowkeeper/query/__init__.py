"""Query building: bindings, clauses, the fluent Builder, grammar and processor."""

from .expression import Expression, raw
from .bindings import BindingStore, BINDING_KINDS
from .grammar import Grammar
from .processor import Processor, ReturningProcessor
from .builder import Builder, OPERATORS
from .join_clause import JoinClause

__all__ = [
    "Expression",
    "raw",
    "BindingStore",
    "BINDING_KINDS",
    "Grammar",
    "Processor",
    "ReturningProcessor",
    "Builder",
    "OPERATORS",
    "JoinClause",
]
