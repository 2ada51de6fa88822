"""Relation interface shared by every relation kind."""

import threading
from contextlib import contextmanager
from typing import Any, Callable, Iterator, Optional, Union

from ..utils.is_numeric import normalize_key

_state = threading.local()


def constraints_enabled() -> bool:
    return not getattr(_state, "disabled", False)


@contextmanager
def no_constraints() -> Iterator[None]:
    """Build relations without the single-parent constraint (used for eager loading)."""
    previous = getattr(_state, "disabled", False)
    _state.disabled = True
    try:
        yield
    finally:
        _state.disabled = previous


class Relation:
    """A query for the entities related to a parent entity.

    Subclasses implement :meth:`add_constraints` (scope to one parent),
    :meth:`add_eager_constraints` (scope to a batch), :meth:`init_relation`
    (default value on a batch) and :meth:`match` (assign loaded results back to
    the batch). Builder methods not defined here are forwarded to the query.
    """

    def __init__(self, query, parent):
        self.query = query
        self.parent = parent
        self.related = query.get_model()
        if constraints_enabled():
            self.add_constraints()

    def __repr__(self) -> str:
        return f"{type(self).__name__}({type(self.parent).__name__} -> {type(self.related).__name__})"

    def add_constraints(self) -> None:
        raise NotImplementedError

    def add_eager_constraints(self, models: list) -> None:
        raise NotImplementedError

    def init_relation(self, models: list, relation: str) -> list:
        raise NotImplementedError

    def match(self, models: list, results: list, relation: str) -> list:
        raise NotImplementedError

    def get_results(self) -> Any:
        raise NotImplementedError

    def get_eager(self) -> list:
        """Run the (eagerly constrained) query."""
        return self.query.get()

    def get(self, columns: Any = ("*",)) -> list:
        return self.query.get(columns)

    def get_query(self):
        return self.query

    def get_base_query(self):
        return self.query.get_query()

    def get_parent(self):
        return self.parent

    def get_related(self):
        return self.related

    @staticmethod
    def get_keys(models: list, key: Optional[str] = None) -> list:
        """Distinct values of ``key`` (the primary key when None) over ``models``, None excluded."""
        keys, seen = [], set()
        for model in models:
            value = model.get_key() if key is None else model.get(key)
            if value is None or normalize_key(value) in seen:
                continue
            seen.add(normalize_key(value))
            keys.append(value)
        return keys

    def __getattr__(self, name: str):
        if name.startswith("__") or name in ("query", "parent", "related"):
            raise AttributeError(name)
        attribute = getattr(self.query, name)
        if not callable(attribute):
            return attribute

        def forward(*args, **kwargs):
            result = attribute(*args, **kwargs)
            return self if result is self.query else result
        return forward


class SupportsDefault:
    """To-one relations may return a default entity instead of None when nothing matches."""

    with_default_value: Union[bool, dict, Callable, None] = None

    def with_default(self, callback: Union[bool, dict, Callable] = True):
        """``True`` for an empty related entity, a dict of attributes, or a callable filling it."""
        self.with_default_value = callback
        return self

    def new_related_instance_for(self, parent):
        raise NotImplementedError

    def get_default_for(self, parent):
        if not self.with_default_value:
            return None
        instance = self.new_related_instance_for(parent)
        if callable(self.with_default_value):
            return self.with_default_value(instance) or instance
        if isinstance(self.with_default_value, dict):
            instance.force_fill(self.with_default_value)
        return instance
