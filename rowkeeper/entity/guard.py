"""Mass-assignment policy of an entity type."""

import threading
from contextlib import contextmanager
from typing import Any, Iterator

from pydantic import BaseModel, Field

_state = threading.local()


def is_unguarded() -> bool:
    return getattr(_state, "unguarded", False)


@contextmanager
def unguarded() -> Iterator[None]:
    """Disable mass-assignment protection (for the current thread) inside the block."""
    previous = is_unguarded()
    _state.unguarded = True
    try:
        yield
    finally:
        _state.unguarded = previous


class GuardPolicy(BaseModel):
    """Which keys :meth:`Entity.fill` may set.

    ``guarded == ["*"]`` with no ``fillable`` key is *totally guarded*: every
    mass-assigned key is rejected with an error instead of being skipped.
    """

    fillable: list[str] = Field(default_factory=list)
    guarded: list[str] = Field(default_factory=lambda: ["*"])

    def is_guarded(self, key: str) -> bool:
        return key in self.guarded or self.guarded == ["*"]

    def is_fillable(self, key: str) -> bool:
        if is_unguarded():
            return True
        if key in self.fillable:
            return True
        if self.is_guarded(key):
            return False
        return not self.fillable and not key.startswith("_")

    def totally_guarded(self) -> bool:
        return not self.fillable and self.guarded == ["*"]

    def fillable_from(self, attributes: dict[str, Any]) -> dict[str, Any]:
        """Restrict ``attributes`` to the fillable keys when a fillable list is declared."""
        if self.fillable and not is_unguarded():
            return {key: value for key, value in attributes.items() if key in self.fillable}
        return dict(attributes)
