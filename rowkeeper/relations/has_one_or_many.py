"""Shared logic of has-one and has-many: the related table holds the foreign key."""

from typing import Any, Iterable, Optional

from ..utils.is_numeric import normalize_key
from .base import Relation


class HasOneOrMany(Relation):

    def __init__(self, query, parent, foreign_key: str, local_key: str):
        self.foreign_key = foreign_key
        self.local_key = local_key
        super().__init__(query, parent)

    def get_foreign_key_name(self) -> str:
        return self.foreign_key.split(".")[-1]

    def get_qualified_foreign_key_name(self) -> str:
        if "." in self.foreign_key:
            return self.foreign_key
        return self.related.qualify_column(self.foreign_key)

    def get_parent_key(self) -> Any:
        return self.parent.get(self.local_key)

    def add_constraints(self) -> None:
        qualified = self.get_qualified_foreign_key_name()
        self.query.where(qualified, "=", self.get_parent_key())
        self.query.where_not_null(qualified)

    def add_eager_constraints(self, models: list) -> None:
        self.query.where_in(self.get_qualified_foreign_key_name(), self.get_keys(models, self.local_key))

    def build_dictionary(self, results: list) -> dict[Any, list]:
        """Group related entities by foreign key value, keeping their order."""
        dictionary: dict[Any, list] = {}
        foreign = self.get_foreign_key_name()
        for result in results:
            dictionary.setdefault(normalize_key(result.get(foreign)), []).append(result)
        return dictionary

    def match_one(self, models: list, results: list, relation: str) -> list:
        """Assign the first related entity per key; later duplicates are discarded."""
        return self._match_one_or_many(models, results, relation, many=False)

    def match_many(self, models: list, results: list, relation: str) -> list:
        return self._match_one_or_many(models, results, relation, many=True)

    def _match_one_or_many(self, models: list, results: list, relation: str, many: bool) -> list:
        dictionary = self.build_dictionary(results)
        for model in models:
            key = normalize_key(model.get(self.local_key))
            if key in dictionary:
                group = dictionary[key]
                model.set_relation(relation, list(group) if many else group[0])
        return models

    # creating related entities

    def set_foreign_attributes_for_create(self, model) -> None:
        model.set(self.get_foreign_key_name(), self.get_parent_key())

    def make(self, attributes: Optional[dict[str, Any]] = None):
        """New related entity with the foreign key set, not saved."""
        instance = self.related.new_instance(attributes or {})
        self.set_foreign_attributes_for_create(instance)
        return instance

    def create(self, attributes: Optional[dict[str, Any]] = None):
        instance = self.make(attributes)
        instance.save()
        return instance

    def create_many(self, records: Iterable[dict[str, Any]]) -> list:
        return [self.create(attributes) for attributes in records]

    def save(self, model):
        """Set the foreign key on ``model`` and save it; returns the model, or False when vetoed."""
        self.set_foreign_attributes_for_create(model)
        return model if model.save() else False

    def save_many(self, models: Iterable) -> list:
        models = list(models)
        for model in models:
            self.save(model)
        return models
