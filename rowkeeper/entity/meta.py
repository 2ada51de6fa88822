"""Metaclass for Entity: class configuration, mutator and relation tables, hooks."""

import re

from ..utils.naming import table_name_for
from .events import EventHooks

_GET_MUTATOR = re.compile(r"^get_(\w+)_attribute$")
_SET_MUTATOR = re.compile(r"^set_(\w+)_attribute$")

_UNSET = object()


def relation(method):
    """Mark an entity method as a relation accessor.

    The method must return a Relation; ``entity.get(name)`` then runs it once
    and caches the result on the entity.
    """
    method.__rowkeeper_relation__ = True
    return method


def _inherited(bases, name, default):
    for base in bases:
        value = getattr(base, name, _UNSET)
        if value is not _UNSET:
            return value
    return default


class EntityMeta(type):
    """Reads the class keywords and builds the per-type lookup tables once.

    Usage::

        class Post(Entity, table="blog_posts", with_timestamps=True):
            ...
    """

    def __new__(mcs, name, bases, namespace,
                table: str = None,
                primary_key=_UNSET,
                incrementing: bool = None,
                connection_name: str = None,
                with_timestamps: bool = None,
                **kwargs):
        result = super().__new__(mcs, name, bases, namespace, **kwargs)
        result._TABLE = table or table_name_for(name)
        result._PRIMARY_KEY = (
            _inherited(bases, "_PRIMARY_KEY", "id") if primary_key is _UNSET else primary_key
        )
        result._INCREMENTING = (
            _inherited(bases, "_INCREMENTING", True) if incrementing is None else incrementing
        )
        result._CONNECTION_NAME = connection_name or _inherited(bases, "_CONNECTION_NAME", None)
        result._WITH_TIMESTAMPS = (
            _inherited(bases, "_WITH_TIMESTAMPS", False) if with_timestamps is None else with_timestamps
        )
        get_mutators, set_mutators, relations = {}, {}, set()
        for attribute in dir(result):
            match = _GET_MUTATOR.match(attribute)
            if match:
                get_mutators[match.group(1)] = attribute
                continue
            match = _SET_MUTATOR.match(attribute)
            if match:
                set_mutators[match.group(1)] = attribute
                continue
            if getattr(getattr(result, attribute, None), "__rowkeeper_relation__", False):
                relations.add(attribute)
        result._GET_MUTATORS = get_mutators
        result._SET_MUTATORS = set_mutators
        result._RELATIONS = frozenset(relations)
        result._hooks = EventHooks()
        return result
