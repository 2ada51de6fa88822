"""Raw SQL expressions.

An :class:`Expression` marks a string as literal SQL. The grammar inlines it
where a placeholder would otherwise go, and it never reaches the driver as a
bound value.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel


class Expression(BaseModel):
    """Literal SQL fragment (e.g. ``"votes" + 1`` or ``count(*)``)."""

    model_config = {"frozen": True}

    value: Any

    @property
    def sql(self) -> str:
        """SQL text of this expression."""
        return str(self.value)

    def __str__(self) -> str:
        return self.sql


def raw(value: Any) -> Expression:
    """Wrap value as a raw SQL expression."""
    if isinstance(value, Expression):
        return value
    return Expression(value=value)


def is_expression(value: Any) -> bool:
    """True when value is a raw SQL marker rather than a bindable value."""
    return isinstance(value, Expression)
