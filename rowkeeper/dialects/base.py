"""Base Dialect type: one subclass per engine.

A dialect knows how to open a driver connection for a URL and which Grammar
and Processor compile and post-process that engine's statements.
"""

from abc import ABC, abstractmethod
from typing import Any, ClassVar

from pydantic import BaseModel

from ..query.grammar import Grammar
from ..query.processor import Processor


class Dialect(BaseModel, ABC):
    """Base for database dialects; subclasses implement connect() for a given URL."""

    model_config = {"arbitrary_types_allowed": True}

    SUPPORTED_SCHEMA: ClassVar[tuple[str, ...]] = ()
    """URL schemes this dialect handles (e.g. ('sqlite',), ('mssql', 'sqlserver'))."""

    GRAMMAR: ClassVar[type[Grammar]] = Grammar
    PROCESSOR: ClassVar[type[Processor]] = Processor

    def make_grammar(self, table_prefix: str = "") -> Grammar:
        """Grammar instance for this engine."""
        return self.GRAMMAR(table_prefix=table_prefix)

    def make_processor(self) -> Processor:
        """Processor instance for this engine."""
        return self.PROCESSOR()

    @abstractmethod
    def connect(self, url: str) -> Any:
        """Return a new raw DB-API connection for the given URL.

        The return value is engine-specific (e.g. sqlite3.Connection, pymysql.Connection).
        """
        ...  # pylint: disable=unnecessary-ellipsis
