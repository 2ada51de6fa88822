"""EntityQuery: a Builder wrapper that returns entities and eager-loads relations."""

import logging
from typing import Any, Callable, Optional

from ..errors import UnsupportedOperation
from ..query.builder import Builder
from ..relations.base import Relation, no_constraints

logger = logging.getLogger(__name__)


def _no_constraint(query) -> None:
    pass


class EntityQuery:
    """Query over the table of an entity type.

    Builder methods it does not define are forwarded to the wrapped
    :class:`~rowkeeper.query.builder.Builder`; calls returning the builder
    return this wrapper instead so chaining keeps working.
    """

    def __init__(self, query: Builder):
        self.query = query
        self.model = None
        self.eager_load: dict[str, Callable] = {}

    def __repr__(self) -> str:
        name = type(self.model).__name__ if self.model is not None else None
        return f"EntityQuery({name}: {self.query.to_sql()})"

    def set_model(self, model) -> "EntityQuery":
        self.model = model
        self.query.from_(model.get_table())
        return self

    def get_model(self):
        return self.model

    def get_query(self) -> Builder:
        return self.query

    # reads

    def find(self, id: Any, columns: Any = ("*",)):
        """Entity with the given key (or list of entities for a list of keys)."""
        if isinstance(id, (list, tuple, set)):
            return self.find_many(id, columns)
        self.query.where(self.model.get_qualified_key_name(), "=", id)
        return self.first(columns)

    def find_many(self, ids, columns: Any = ("*",)) -> list:
        ids = list(ids)
        if not ids:
            return []
        self.query.where_in(self.model.get_qualified_key_name(), ids)
        return self.get(columns)

    def first(self, columns: Any = ("*",)):
        results = self.limit(1).get(columns)
        return results[0] if results else None

    def get(self, columns: Any = ("*",)) -> list:
        """Run the query, hydrate the rows and eager-load the requested relations."""
        models = self.get_models(columns)
        if models:
            models = self.eager_load_relations(models)
        return models

    def get_models(self, columns: Any = ("*",)) -> list:
        return self.model.hydrate(self.query.get(columns))

    # writes

    def make(self, attributes: Optional[dict[str, Any]] = None):
        return self.model.new_instance(attributes or {})

    def create(self, attributes: Optional[dict[str, Any]] = None):
        instance = self.make(attributes)
        instance.save()
        return instance

    def update(self, values: dict[str, Any]) -> Any:
        return self.query.update(self.model.add_updated_at_column(values))

    def delete(self) -> Any:
        return self.query.delete()

    # eager loading

    def with_(self, *relations: str, **constraints: Callable) -> "EntityQuery":
        """Eager-load relations: ``with_("posts", "posts.comments", author=lambda q: ...)``."""
        requested: dict[str, Callable] = {name: _no_constraint for name in relations}
        requested.update(constraints)
        for name, constraint in requested.items():
            self._add_nested_parents(name)
            self.eager_load[name] = constraint
        return self

    def _add_nested_parents(self, name: str) -> None:
        progress = []
        for segment in name.split(".")[:-1]:
            progress.append(segment)
            self.eager_load.setdefault(".".join(progress), _no_constraint)

    def eager_load_relations(self, models: list) -> list:
        for name, constraint in self.eager_load.items():
            if "." not in name:
                models = self.eager_load_relation(models, name, constraint)
        return models

    def eager_load_relation(self, models: list, name: str, constraint: Callable) -> list:
        """Load one relation for the whole batch with a single query and match it back."""
        relation = self.get_relation(name)
        relation.add_eager_constraints(models)
        constraint(relation)
        models = relation.init_relation(models, name)
        return relation.match(models, relation.get_eager(), name)

    def get_relation(self, name: str) -> Relation:
        """Relation ``name`` of the model, built without its single-parent constraint."""
        if name not in type(self.model)._RELATIONS:
            raise UnsupportedOperation(
                f"Call to undefined relationship [{name}] on entity [{type(self.model).__name__}]"
            )
        with no_constraints():
            relation = self.model.get_relation_instance(name)
        nested = self.relations_nested_under(name)
        if nested:
            relation.get_query().with_(**nested)
        return relation

    def relations_nested_under(self, relation: str) -> dict[str, Callable]:
        prefix = relation + "."
        return {
            name[len(prefix):]: constraint
            for name, constraint in self.eager_load.items()
            if name.startswith(prefix)
        }

    # forwarding

    def __getattr__(self, name: str):
        if name.startswith("__") or name in ("query", "model", "eager_load"):
            raise AttributeError(name)
        try:
            attribute = getattr(self.query, name)
        except AttributeError:
            raise UnsupportedOperation(
                f"Call to undefined method {type(self).__name__}.{name}()"
            ) from None
        if not callable(attribute):
            return attribute

        def forward(*args, **kwargs):
            result = attribute(*args, **kwargs)
            return self if result is self.query else result
        return forward
