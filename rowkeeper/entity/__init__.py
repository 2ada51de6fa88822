"""Active-record entities."""

from .attributes import AttributeTracker, values_equivalent
from .base import Entity
from .events import EventHooks
from .guard import GuardPolicy, unguarded
from .meta import EntityMeta, relation
from .query import EntityQuery

__all__ = [
    "AttributeTracker",
    "Entity",
    "EntityMeta",
    "EntityQuery",
    "EventHooks",
    "GuardPolicy",
    "relation",
    "unguarded",
    "values_equivalent",
]
