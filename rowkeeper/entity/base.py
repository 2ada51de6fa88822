"""Entity: active-record base class.

An entity wraps one row. It holds (rather than inherits) its attribute state,
its mass-assignment policy and its type's lifecycle hooks:

* :class:`~rowkeeper.entity.attributes.AttributeTracker` for current/original values,
* :class:`~rowkeeper.entity.guard.GuardPolicy` for ``fill()``,
* :class:`~rowkeeper.entity.events.EventHooks`, one set per entity type.

Class configuration goes through the metaclass keywords::

    class Post(Entity, table="posts", with_timestamps=True):
        fillable = ["title", "body"]

        @relation
        def author(self):
            return self.belongs_to("User")
"""

import datetime
import logging
from typing import Any, Callable, ClassVar, Optional, Union

from ..errors import (
    EntityNotPersisted,
    InvalidRelationReturn,
    MassAssignmentViolation,
    NoPrimaryKey,
)
from ..query.builder import Builder
from ..registry import Registry, get_registry
from ..relations import BelongsTo, HasMany, HasOne, Relation
from ..utils.get_entity_by_name import get_entity_by_name
from ..utils.naming import snake_case
from .attributes import AttributeTracker
from .guard import GuardPolicy
from .meta import EntityMeta
from .query import EntityQuery

logger = logging.getLogger(__name__)


class Entity(metaclass=EntityMeta):
    """Base class for active-record entities."""

    fillable: ClassVar[list[str]] = []
    guarded: ClassVar[list[str]] = ["*"]
    hidden: ClassVar[list[str]] = []

    CREATED_AT: ClassVar[str] = "created_at"
    UPDATED_AT: ClassVar[str] = "updated_at"
    DATE_FORMAT: ClassVar[str] = "%Y-%m-%d %H:%M:%S"

    registry: ClassVar[Optional[Registry]] = None
    """Registry used by this type; the process-wide one when None."""

    def __init__(self, attributes: Optional[dict[str, Any]] = None, **kwargs):
        self._attributes = AttributeTracker()
        self._guard = GuardPolicy(fillable=list(self.fillable), guarded=list(self.guarded))
        self._relations: dict[str, Any] = {}
        self.exists = False
        self.was_recently_created = False
        self.boot_if_not_booted()
        self.fill({**(attributes or {}), **kwargs})

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self._attributes.attributes!r})"

    def __getitem__(self, key: str) -> Any:
        return self.get(key)

    def __setitem__(self, key: str, value: Any) -> None:
        self.set(key, value)

    def __delitem__(self, key: str) -> None:
        self._attributes.unset(key)
        self._relations.pop(key, None)

    def __contains__(self, key: str) -> bool:
        return self._attributes.has(key) or key in self._relations

    # booting and events

    @classmethod
    def get_registry(cls) -> Registry:
        return cls.registry or get_registry()

    def boot_if_not_booted(self) -> None:
        type(self).get_registry().boot(type(self))

    @classmethod
    def boot(cls) -> None:
        """Called once per type and registry, between the ``booting`` and ``booted`` hooks."""

    @classmethod
    def on(cls, event: str, hook: Callable[..., Any]) -> None:
        """Register ``hook`` for ``event`` on this type; it receives the entity (the class for boot events)."""
        cls._hooks.listen(event, hook)

    @classmethod
    def forget_hooks(cls, event: Optional[str] = None) -> None:
        cls._hooks.clear(event)

    @classmethod
    def fire_class_event(cls, event: str) -> bool:
        return cls._hooks.fire(event, cls)

    def fire_event(self, event: str) -> bool:
        return type(self)._hooks.fire(event, self)

    # configuration

    @classmethod
    def _get_table_name(cls) -> str:
        return cls._TABLE

    def get_table(self) -> str:
        return type(self)._TABLE

    def get_key_name(self) -> Optional[str]:
        return type(self)._PRIMARY_KEY

    def get_qualified_key_name(self) -> str:
        return self.qualify_column(self.get_key_name())

    def qualify_column(self, column: str) -> str:
        if "." in column:
            return column
        return f"{self.get_table()}.{column}"

    def get_incrementing(self) -> bool:
        return type(self)._INCREMENTING

    def uses_timestamps(self) -> bool:
        return type(self)._WITH_TIMESTAMPS

    def get_foreign_key(self) -> str:
        """Default name of the column other tables use to point at this entity."""
        return f"{snake_case(type(self).__name__)}_{self.get_key_name()}"

    def get_connection(self):
        return type(self).get_registry().connection(type(self)._CONNECTION_NAME)

    # mass assignment

    def fill(self, attributes: dict[str, Any]) -> "Entity":
        """Set the fillable attributes; a guarded key on a totally guarded entity raises."""
        totally_guarded = self._guard.totally_guarded()
        for key, value in self._guard.fillable_from(attributes).items():
            if self._guard.is_fillable(key):
                self.set(key, value)
            elif totally_guarded:
                raise MassAssignmentViolation(key, type(self).__name__)
        return self

    def force_fill(self, attributes: dict[str, Any]) -> "Entity":
        """Set every attribute, ignoring the mass-assignment policy."""
        for key, value in attributes.items():
            self.set(key, value)
        return self

    def is_fillable(self, key: str) -> bool:
        return self._guard.is_fillable(key)

    def totally_guarded(self) -> bool:
        return self._guard.totally_guarded()

    # attribute access

    def get(self, key: str) -> Any:
        """Attribute (through its get-mutator), else loaded relation, else run the relation accessor."""
        if not key:
            return None
        if self._attributes.has(key) or key in type(self)._GET_MUTATORS:
            return self.get_attribute_value(key)
        if key in self._relations:
            return self._relations[key]
        if key in type(self)._RELATIONS:
            return self.get_relationship_from_method(key)
        return None

    def get_attribute_value(self, key: str) -> Any:
        value = self._attributes.get_raw(key)
        mutator = type(self)._GET_MUTATORS.get(key)
        if mutator is not None:
            return getattr(self, mutator)(value)
        return value

    def get_relationship_from_method(self, method: str) -> Any:
        relation = getattr(self, method)()
        if not isinstance(relation, Relation):
            raise InvalidRelationReturn(
                f"Relationship method {type(self).__name__}.{method}() must return "
                f"a Relation, got {type(relation).__name__}"
            )
        results = relation.get_results()
        self.set_relation(method, results)
        return results

    def get_relation_instance(self, name: str) -> Relation:
        relation = getattr(self, name)()
        if not isinstance(relation, Relation):
            raise InvalidRelationReturn(
                f"Relationship method {type(self).__name__}.{name}() must return "
                f"a Relation, got {type(relation).__name__}"
            )
        return relation

    def set(self, key: str, value: Any) -> "Entity":
        """Set an attribute, through its set-mutator when one exists."""
        mutator = type(self)._SET_MUTATORS.get(key)
        if mutator is not None:
            getattr(self, mutator)(value)
        else:
            self._attributes.set_raw(key, value)
        return self

    def get_raw(self, key: str, default: Any = None) -> Any:
        return self._attributes.get_raw(key, default)

    def set_raw(self, key: str, value: Any) -> "Entity":
        """Set an attribute bypassing mutators (what set-mutators call)."""
        self._attributes.set_raw(key, value)
        return self

    def get_attributes(self) -> dict[str, Any]:
        return dict(self._attributes.attributes)

    def set_raw_attributes(self, attributes: dict[str, Any], sync: bool = False) -> "Entity":
        self._attributes.set_raw_attributes(attributes, sync=sync)
        return self

    def get_key(self) -> Any:
        key_name = self.get_key_name()
        return self.get(key_name) if key_name else None

    def get_original(self, key: Optional[str] = None, default: Any = None) -> Any:
        return self._attributes.get_original(key, default)

    def sync_original(self) -> "Entity":
        self._attributes.sync_original()
        return self

    def get_dirty(self) -> dict[str, Any]:
        return self._attributes.get_dirty()

    def is_dirty(self, *keys: str) -> bool:
        return self._attributes.is_dirty(*keys)

    def is_clean(self, *keys: str) -> bool:
        return not self.is_dirty(*keys)

    # loaded relations

    def set_relation(self, name: str, value: Any) -> "Entity":
        self._relations[name] = value
        return self

    def unset_relation(self, name: str) -> "Entity":
        self._relations.pop(name, None)
        return self

    def get_relation_value(self, name: str) -> Any:
        return self._relations.get(name)

    def relation_loaded(self, name: str) -> bool:
        return name in self._relations

    def get_relations(self) -> dict[str, Any]:
        return dict(self._relations)

    # relation helpers

    @staticmethod
    def _resolve_entity(related: Union[str, type]) -> type:
        return get_entity_by_name(related) if isinstance(related, str) else related

    def has_one(self, related: Union[str, type], foreign_key: Optional[str] = None,
                local_key: Optional[str] = None) -> HasOne:
        instance = self._resolve_entity(related)()
        return HasOne(
            instance.new_query(),
            self,
            foreign_key or self.get_foreign_key(),
            local_key or self.get_key_name(),
        )

    def has_many(self, related: Union[str, type], foreign_key: Optional[str] = None,
                 local_key: Optional[str] = None) -> HasMany:
        instance = self._resolve_entity(related)()
        return HasMany(
            instance.new_query(),
            self,
            foreign_key or self.get_foreign_key(),
            local_key or self.get_key_name(),
        )

    def belongs_to(self, related: Union[str, type], foreign_key: Optional[str] = None,
                   owner_key: Optional[str] = None, relation: Optional[str] = None) -> BelongsTo:
        """Inverse relation; defaults to ``<related>_<key>`` as foreign key on this entity."""
        instance = self._resolve_entity(related)()
        relation = relation or snake_case(type(instance).__name__)
        return BelongsTo(
            instance.new_query(),
            self,
            foreign_key or f"{relation}_{instance.get_key_name()}",
            owner_key or instance.get_key_name(),
            relation,
        )

    # instances

    def new_instance(self, attributes: Optional[dict[str, Any]] = None, exists: bool = False) -> "Entity":
        instance = type(self)(attributes or {})
        instance.exists = exists
        return instance

    def new_from_builder(self, row: dict[str, Any]) -> "Entity":
        """Entity for a row read from storage (persisted, clean); fires ``retrieved``."""
        instance = self.new_instance({}, exists=True)
        instance.set_raw_attributes(dict(row), sync=True)
        instance.fire_event("retrieved")
        return instance

    def hydrate(self, rows: list[dict[str, Any]]) -> list["Entity"]:
        return [self.new_from_builder(row) for row in rows]

    # queries

    def new_base_query_builder(self) -> Builder:
        return self.get_connection().query_builder()

    def new_query(self) -> EntityQuery:
        return EntityQuery(self.new_base_query_builder()).set_model(self)

    @classmethod
    def query(cls) -> EntityQuery:
        return cls().new_query()

    @classmethod
    def all(cls, columns: Any = ("*",)) -> list["Entity"]:
        return cls.query().get(columns)

    @classmethod
    def find(cls, id: Any, columns: Any = ("*",)):
        return cls.query().find(id, columns)

    @classmethod
    def create(cls, attributes: Optional[dict[str, Any]] = None, **kwargs) -> "Entity":
        instance = cls({**(attributes or {}), **kwargs})
        instance.save()
        return instance

    @classmethod
    def with_(cls, *relations: str, **constraints: Callable) -> EntityQuery:
        return cls.query().with_(*relations, **constraints)

    @classmethod
    def destroy(cls, *ids: Any) -> int:
        """Delete the entities with the given keys one by one (hooks fire); returns how many."""
        if len(ids) == 1 and isinstance(ids[0], (list, tuple, set)):
            ids = tuple(ids[0])
        if not ids:
            return 0
        instance = cls()
        count = 0
        for model in instance.new_query().where_in(instance.get_key_name(), list(ids)).get():
            if model.delete():
                count += 1
        return count

    # persistence

    def save(self) -> bool:
        """Insert or update the row; False when a hook vetoed.

        On an exception from the connection, attributes and ``exists`` are
        restored to what they were before the call and the exception propagates.
        """
        if self.fire_event("saving") is False:
            logger.debug("Save of %r vetoed", self)
            return False
        snapshot = self._attributes.snapshot()
        existed = self.exists
        recently_created = self.was_recently_created
        query = self.new_query()
        try:
            if self.exists:
                saved = self._perform_update(query) if self.is_dirty() else True
            else:
                saved = self._perform_insert(query)
        except Exception:
            self._attributes.restore(snapshot)
            self.exists = existed
            self.was_recently_created = recently_created
            raise
        if saved:
            self._finish_save()
        return saved

    def _finish_save(self) -> None:
        self.fire_event("saved")
        self.sync_original()

    def _perform_update(self, query: EntityQuery) -> bool:
        if self.fire_event("updating") is False:
            logger.debug("Update of %r vetoed", self)
            return False
        if self.uses_timestamps():
            self.update_timestamps()
        dirty = self.get_dirty()
        if dirty:
            self._set_keys_for_save_query(query).update(dirty)
            self.fire_event("updated")
        return True

    def _perform_insert(self, query: EntityQuery) -> bool:
        if self.fire_event("creating") is False:
            logger.debug("Insert of %r vetoed", self)
            return False
        if self.uses_timestamps():
            self.update_timestamps()
        attributes = self.get_attributes()
        if self.get_incrementing():
            key_name = self.get_key_name() or "id"
            self.set_raw(key_name, query.insert_get_id(attributes, key_name))
        elif attributes:
            query.insert(attributes)
        self.exists = True
        self.was_recently_created = True
        self.fire_event("created")
        return True

    def _get_key_for_save_query(self) -> Any:
        """Key value as loaded, so that changing the key itself still updates the right row."""
        return self.get_original(self.get_key_name(), self.get_key())

    def _set_keys_for_save_query(self, query: EntityQuery) -> EntityQuery:
        return query.where(self.get_key_name(), "=", self._get_key_for_save_query())

    def update(self, attributes: Optional[dict[str, Any]] = None, **kwargs) -> bool:
        """Fill and save a persisted entity; False when it does not exist."""
        if not self.exists:
            return False
        return self.fill({**(attributes or {}), **kwargs}).save()

    def delete(self) -> Optional[bool]:
        """Delete the row; None when not persisted, False when a hook vetoed."""
        if self.get_key_name() is None:
            raise NoPrimaryKey(f"No primary key defined on entity {type(self).__name__}")
        if not self.exists:
            return None
        if self.fire_event("deleting") is False:
            logger.debug("Delete of %r vetoed", self)
            return False
        self._set_keys_for_save_query(self.new_query()).delete()
        self.exists = False
        self.fire_event("deleted")
        return True

    def delete_or_fail(self) -> bool:
        """Like :meth:`delete`, but deleting an entity that is not persisted raises."""
        if not self.exists:
            raise EntityNotPersisted(f"Cannot delete {type(self).__name__}: it is not persisted")
        return self.delete()

    # timestamps

    def fresh_timestamp(self) -> str:
        return datetime.datetime.now().strftime(self.DATE_FORMAT)

    def update_timestamps(self) -> None:
        now = self.fresh_timestamp()
        if not self.is_dirty(self.UPDATED_AT):
            self.set(self.UPDATED_AT, now)
        if not self.exists and not self.is_dirty(self.CREATED_AT):
            self.set(self.CREATED_AT, now)

    def touch(self) -> bool:
        if not self.uses_timestamps():
            return False
        self.update_timestamps()
        return self.save()

    def add_updated_at_column(self, values: dict[str, Any]) -> dict[str, Any]:
        if not self.uses_timestamps() or self.UPDATED_AT in values:
            return values
        return {**values, self.UPDATED_AT: self.fresh_timestamp()}

    # serialization

    def to_dict(self) -> dict[str, Any]:
        """Attributes (through get-mutators) and loaded relations, minus hidden keys."""
        data = {key: self.get_attribute_value(key) for key in self._attributes.attributes}
        for name, value in self._relations.items():
            if isinstance(value, Entity):
                value = value.to_dict()
            elif isinstance(value, list):
                value = [item.to_dict() if isinstance(item, Entity) else item for item in value]
            data[name] = value
        return {key: value for key, value in data.items() if key not in self.hidden}
