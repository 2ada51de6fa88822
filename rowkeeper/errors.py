"""Exceptions raised by rowkeeper.

Every error is raised at the call site that detects it and is never retried or
swallowed internally. Driver errors (constraint violations, lost connections)
are not wrapped: they reach the caller unmodified.
"""


class RowkeeperError(Exception):
    """Base class for every error raised by rowkeeper itself."""
    pass


class InvalidArgument(RowkeeperError, ValueError):
    """A call received an argument it cannot work with."""
    pass


class UnknownBindingKind(InvalidArgument):
    """A binding was stored under a clause kind the store does not declare."""

    def __init__(self, kind: str):
        super().__init__(f"Invalid binding type: {kind}")
        self.kind = kind


class InvalidAmount(InvalidArgument):
    """increment()/decrement() received a non-numeric amount."""
    pass


class InvalidSubquery(InvalidArgument):
    """A subquery source is neither a builder, a callable nor a SQL string."""
    pass


class ConnectionNotConfigured(InvalidArgument):
    """No connection was registered under the requested name."""
    pass


class MassAssignmentViolation(RowkeeperError):
    """A guarded attribute was mass-assigned on a totally guarded entity."""

    def __init__(self, key: str, entity: str):
        super().__init__(
            f"Add [{key}] to fillable property to allow mass assignment on [{entity}]"
        )
        self.key = key
        self.entity = entity


class InvalidRelationReturn(RowkeeperError, TypeError):
    """A relation accessor returned something other than a Relation."""
    pass


class NoPrimaryKey(RowkeeperError):
    """The entity type declares no primary key column."""
    pass


class EntityNotPersisted(RowkeeperError):
    """The operation needs a row that exists in storage."""
    pass


class UnsupportedOperation(RowkeeperError, AttributeError):
    """A dynamically forwarded method does not exist on the target."""
    pass
