"""Result processors: post-process select rows and fetch generated ids."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Optional

from pydantic import BaseModel

from ..utils.is_numeric import coerce_identifier

if TYPE_CHECKING:
    from .builder import Builder


class Processor(BaseModel):
    """Default processor: rows pass through, ids come from ``last_insert_id``."""

    def process_select(self, query: Builder, results: list[dict[str, Any]]) -> list[dict[str, Any]]:
        return results

    def process_insert_get_id(self, query: Builder, sql: str, values: list[Any],
                              sequence: Optional[str] = None) -> Any:
        """Run the insert, then read the generated id (integer-looking ids become ints)."""
        query.connection.insert(sql, values)
        return coerce_identifier(query.connection.last_insert_id(sequence))

    def process_column_listing(self, results: list[Any]) -> list[Any]:
        """Column names from the rows of a column listing query."""
        return [
            next(iter(row.values())) if isinstance(row, dict) else row
            for row in results
        ]


class ReturningProcessor(Processor):
    """For engines whose insert statement returns the id as a row (``returning`` / ``output``)."""

    def process_insert_get_id(self, query: Builder, sql: str, values: list[Any],
                              sequence: Optional[str] = None) -> Any:
        rows = query.connection.select_from_write(sql, values)
        if not rows:
            return None
        row = rows[0]
        key = sequence or "id"
        value = row[key] if key in row else next(iter(row.values()))
        return coerce_identifier(value)


__all__ = ["Processor", "ReturningProcessor"]
