"""rowkeeper: a fluent SQL query builder and an active-record entity layer.

Quick start::

    from rowkeeper import Entity, connect, relation

    connect("sqlite:///app.sqlite3")

    class User(Entity):
        fillable = ["name", "email"]

        @relation
        def posts(self):
            return self.has_many("Post")

    class Post(Entity, with_timestamps=True):
        fillable = ["title", "user_id"]

    user = User.create(name="alice", email="alice@example.com")
    user.posts().create({"title": "hello"})
    users = User.with_("posts").get()
"""

from .connection import Connection
from .entity import Entity, EntityQuery, relation, unguarded
from .errors import (
    ConnectionNotConfigured,
    EntityNotPersisted,
    InvalidAmount,
    InvalidArgument,
    InvalidRelationReturn,
    InvalidSubquery,
    MassAssignmentViolation,
    NoPrimaryKey,
    RowkeeperError,
    UnknownBindingKind,
    UnsupportedOperation,
)
from .query import BindingStore, Builder, Expression, Grammar, JoinClause, Processor, raw
from .registry import Registry, clear_registry, connect, get_registry, set_registry, use_registry
from .relations import BelongsTo, HasMany, HasOne, Relation, no_constraints

__all__ = [
    "BelongsTo",
    "BindingStore",
    "Builder",
    "Connection",
    "ConnectionNotConfigured",
    "Entity",
    "EntityNotPersisted",
    "EntityQuery",
    "Expression",
    "Grammar",
    "HasMany",
    "HasOne",
    "InvalidAmount",
    "InvalidArgument",
    "InvalidRelationReturn",
    "InvalidSubquery",
    "JoinClause",
    "MassAssignmentViolation",
    "NoPrimaryKey",
    "Processor",
    "Registry",
    "Relation",
    "RowkeeperError",
    "UnknownBindingKind",
    "UnsupportedOperation",
    "clear_registry",
    "connect",
    "get_registry",
    "no_constraints",
    "raw",
    "relation",
    "set_registry",
    "unguarded",
    "use_registry",
]
