"""One-to-one relation, foreign key on the related table."""

from .base import SupportsDefault
from .has_one_or_many import HasOneOrMany


class HasOne(SupportsDefault, HasOneOrMany):

    def get_results(self):
        return self.query.first() or self.get_default_for(self.parent)

    def init_relation(self, models: list, relation: str) -> list:
        for model in models:
            model.set_relation(relation, self.get_default_for(model))
        return models

    def match(self, models: list, results: list, relation: str) -> list:
        return self.match_one(models, results, relation)

    def new_related_instance_for(self, parent):
        instance = self.related.new_instance()
        instance.set(self.get_foreign_key_name(), parent.get(self.local_key))
        return instance
