"""One-to-many relation, foreign key on the related table."""

from .has_one_or_many import HasOneOrMany


class HasMany(HasOneOrMany):

    def get_results(self) -> list:
        return self.query.get()

    def init_relation(self, models: list, relation: str) -> list:
        for model in models:
            model.set_relation(relation, [])
        return models

    def match(self, models: list, results: list, relation: str) -> list:
        return self.match_many(models, results, relation)
