"""Ordered, typed storage for the positional parameters of one statement."""

from __future__ import annotations

from typing import Any, ClassVar, Iterable

from pydantic import BaseModel, Field

from ..errors import UnknownBindingKind

# Flatten order. Must match the order in which the grammar emits placeholders.
BINDING_KINDS: tuple[str, ...] = (
    "select",
    "from",
    "join",
    "where",
    "group_by",
    "having",
    "order",
    "union",
    "union_order",
)


def _empty_buckets() -> dict[str, list[Any]]:
    return {kind: [] for kind in BINDING_KINDS}


class BindingStore(BaseModel):
    """Binding values partitioned by clause kind.

    Only the kinds in ``KINDS`` are legal; ``flatten()`` concatenates the
    buckets in that order, yielding the parameter list for the compiled SQL.
    """

    model_config = {"arbitrary_types_allowed": True}

    KINDS: ClassVar[tuple[str, ...]] = BINDING_KINDS

    buckets: dict[str, list[Any]] = Field(default_factory=_empty_buckets)

    def _check_kind(self, kind: str) -> None:
        if kind not in self.KINDS:
            raise UnknownBindingKind(kind)

    def set(self, kind: str, values: Iterable[Any]) -> BindingStore:
        """Replace the bucket for kind with values."""
        self._check_kind(kind)
        self.buckets[kind] = list(values)
        return self

    def add(self, kind: str, value: Any) -> BindingStore:
        """Append a single value, or every item of a list/tuple, to the bucket for kind."""
        self._check_kind(kind)
        if isinstance(value, (list, tuple)):
            self.buckets[kind].extend(value)
        else:
            self.buckets[kind].append(value)
        return self

    def get(self, kind: str) -> list[Any]:
        """Return a copy of the bucket for kind."""
        self._check_kind(kind)
        return list(self.buckets[kind])

    def flatten(self, exclude: Iterable[str] = ()) -> list[Any]:
        """All values across buckets in declared order, skipping the kinds in exclude."""
        exclude = set(exclude)
        for kind in exclude:
            self._check_kind(kind)
        values: list[Any] = []
        for kind in self.KINDS:
            if kind not in exclude:
                values.extend(self.buckets[kind])
        return values

    def merge(self, other: BindingStore) -> BindingStore:
        """Append every bucket of other to the matching bucket of this store."""
        for kind in self.KINDS:
            self.buckets[kind].extend(other.buckets.get(kind, ()))
        return self

    def copy_store(self) -> BindingStore:
        """Independent copy (buckets are not shared)."""
        return BindingStore(buckets={kind: list(values) for kind, values in self.buckets.items()})

    def as_dict(self) -> dict[str, list[Any]]:
        """Buckets as a plain dict of lists."""
        return {kind: list(self.buckets[kind]) for kind in self.KINDS}
