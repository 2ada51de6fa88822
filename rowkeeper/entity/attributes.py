"""Current and original attribute values of one entity, and dirty detection."""

from typing import Any, Optional

from pydantic import BaseModel, Field

from ..utils.is_numeric import is_numeric

_MISSING = object()


def values_equivalent(current: Any, original: Any) -> bool:
    """Whether ``current`` still counts as the ``original`` value.

    Equal values are equivalent; so are two numeric values (numbers or numeric
    strings) with the same text, which makes ``"5"`` and ``5`` equivalent while
    ``"5"`` and ``"5.0"``, ``"05"`` or the float ``5.0`` are not (``5`` and
    ``5.0`` are equal). A bool never matches a non-bool: ``True`` against ``1``
    is a change.
    """
    if current is original:
        return True
    if isinstance(current, bool) != isinstance(original, bool):
        return False
    if current == original:
        return True
    return is_numeric(current) and is_numeric(original) and str(current) == str(original)


class AttributeTracker(BaseModel):
    """Holds ``attributes`` (current values) and ``original`` (last synced snapshot).

    ``original`` is only ever replaced as a whole, by :meth:`sync_original`.
    """

    model_config = {"arbitrary_types_allowed": True}

    attributes: dict[str, Any] = Field(default_factory=dict)
    original: dict[str, Any] = Field(default_factory=dict)

    def has(self, key: str) -> bool:
        return key in self.attributes

    def get_raw(self, key: str, default: Any = None) -> Any:
        return self.attributes.get(key, default)

    def set_raw(self, key: str, value: Any) -> None:
        self.attributes[key] = value

    def unset(self, key: str) -> None:
        self.attributes.pop(key, None)

    def set_raw_attributes(self, attributes: dict[str, Any], sync: bool = False) -> None:
        self.attributes = dict(attributes)
        if sync:
            self.sync_original()

    def get_original(self, key: Optional[str] = None, default: Any = None) -> Any:
        if key is None:
            return dict(self.original)
        return self.original.get(key, default)

    def sync_original(self) -> None:
        self.original = dict(self.attributes)

    def get_dirty(self) -> dict[str, Any]:
        """Attributes added or changed since the last sync."""
        dirty = {}
        for key, value in self.attributes.items():
            original = self.original.get(key, _MISSING)
            if original is _MISSING or not values_equivalent(value, original):
                dirty[key] = value
        return dirty

    def is_dirty(self, *keys: str) -> bool:
        dirty = self.get_dirty()
        if not keys:
            return bool(dirty)
        return any(key in dirty for key in keys)

    def snapshot(self) -> tuple[dict[str, Any], dict[str, Any]]:
        return dict(self.attributes), dict(self.original)

    def restore(self, snapshot: tuple[dict[str, Any], dict[str, Any]]) -> None:
        self.attributes, self.original = dict(snapshot[0]), dict(snapshot[1])
