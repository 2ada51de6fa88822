"""Name conversions used for table names, foreign keys and accessor lookup."""

import re

_CAMEL_BOUNDARY = re.compile(r"(?<=[a-z0-9])(?=[A-Z])|(?<=[A-Z])(?=[A-Z][a-z])")


def snake_case(name: str) -> str:
    """Convert ``UserProfile`` / ``userProfile`` to ``user_profile``."""
    return _CAMEL_BOUNDARY.sub("_", name).replace("-", "_").lower()


def pluralize(word: str) -> str:
    """Naive English plural, enough for table names (``category`` -> ``categories``)."""
    if not word:
        return word
    if word.endswith("y") and word[-2:-1] not in ("a", "e", "i", "o", "u"):
        return word[:-1] + "ies"
    if word.endswith(("s", "x", "z", "ch", "sh")):
        return word + "es"
    return word + "s"


def table_name_for(class_name: str) -> str:
    """Default table name for an entity class: snake case, plural."""
    return pluralize(snake_case(class_name))
