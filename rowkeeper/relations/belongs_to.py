"""Inverse of has-one / has-many: the foreign key is on the parent (child) entity."""

from typing import Any

from ..utils.is_numeric import normalize_key
from .base import Relation, SupportsDefault


class BelongsTo(SupportsDefault, Relation):

    def __init__(self, query, child, foreign_key: str, owner_key: str, relation: str):
        self.foreign_key = foreign_key
        self.owner_key = owner_key
        self.relation = relation
        super().__init__(query, child)

    @property
    def child(self):
        return self.parent

    def get_qualified_owner_key_name(self) -> str:
        return self.related.qualify_column(self.owner_key)

    def add_constraints(self) -> None:
        self.query.where(self.get_qualified_owner_key_name(), "=", self.child.get(self.foreign_key))

    def add_eager_constraints(self, models: list) -> None:
        self.query.where_in(self.get_qualified_owner_key_name(), self.get_keys(models, self.foreign_key))

    def get_results(self):
        if self.child.get(self.foreign_key) is None:
            return self.get_default_for(self.parent)
        return self.query.first() or self.get_default_for(self.parent)

    def init_relation(self, models: list, relation: str) -> list:
        for model in models:
            model.set_relation(relation, self.get_default_for(model))
        return models

    def match(self, models: list, results: list, relation: str) -> list:
        dictionary: dict[Any, Any] = {}
        for result in results:
            dictionary.setdefault(normalize_key(result.get(self.owner_key)), result)
        for model in models:
            key = normalize_key(model.get(self.foreign_key))
            if key in dictionary:
                model.set_relation(relation, dictionary[key])
        return models

    def associate(self, model):
        """Point the child's foreign key at ``model`` (an entity or a bare key value)."""
        is_entity = hasattr(model, "set_relation")
        self.child.set(self.foreign_key, model.get(self.owner_key) if is_entity else model)
        if is_entity:
            self.child.set_relation(self.relation, model)
        else:
            self.child.unset_relation(self.relation)
        return self.child

    def dissociate(self):
        self.child.set(self.foreign_key, None)
        self.child.set_relation(self.relation, None)
        return self.child

    def new_related_instance_for(self, parent):
        return self.related.new_instance()
