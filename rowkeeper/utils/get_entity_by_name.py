"""Resolve an entity class from its name (relations may name their target as a string)."""

from typing import Iterable
from .find_subclass import _get_subclasses, find_subclass


def get_all_entities() -> Iterable[type["Entity"]]:
    """Yield all Entity subclasses in the application."""
    from ..entity import Entity
    yield from _get_subclasses(Entity)


def get_entity_by_name(name: str) -> type["Entity"]:
    """Return the Entity subclass whose __name__ or table name equals name.

    Raises ValueError when nothing matches.
    """
    from ..entity import Entity
    found = find_subclass(Entity, name)
    if found is not None:
        return found
    for cls in get_all_entities():
        if cls._get_table_name() == name:
            return cls
    raise ValueError(f"No entity found with name `{name}`")
