"""Relations between entities: has-one, has-many and belongs-to."""

from .base import Relation, no_constraints
from .has_one_or_many import HasOneOrMany
from .has_one import HasOne
from .has_many import HasMany
from .belongs_to import BelongsTo

__all__ = [
    "Relation",
    "no_constraints",
    "HasOneOrMany",
    "HasOne",
    "HasMany",
    "BelongsTo",
]
