"""Registry: named connections and the set of booted entity types.

A registry is an ordinary object that can be passed around explicitly. For
convenience a process-wide one can be installed with :func:`set_registry`
(or :func:`connect`) and torn down with :func:`clear_registry`.
"""

import logging
from contextlib import contextmanager
from typing import Any, Iterator, Optional

from .connection import Connection
from .errors import ConnectionNotConfigured

logger = logging.getLogger(__name__)


class Registry:
    """Resolves connection names to Connection objects and remembers booted entity types."""

    def __init__(self, default_connection: str = "default"):
        self.default_connection = default_connection
        self._configs: dict[str, dict[str, Any]] = {}
        self._connections: dict[str, Connection] = {}
        self._booted: set[type] = set()

    # connections

    def add_connection(self, url: str, name: str = "default", **options) -> None:
        """Register a connection URL under ``name``; it is opened on first use."""
        self.purge(name)
        self._configs[name] = {"url": url, **options}

    def set_connection(self, connection: Any, name: Optional[str] = None) -> None:
        """Register an already built connection object (anything honouring the Connection contract)."""
        name = name or getattr(connection, "name", None) or self.default_connection
        self._connections[name] = connection

    def connection(self, name: Optional[str] = None) -> Connection:
        name = name or self.default_connection
        if name not in self._connections:
            try:
                config = dict(self._configs[name])
            except KeyError as error:
                raise ConnectionNotConfigured(
                    f"No connection configured with name=`{name}`"
                ) from error
            url = config.pop("url")
            self._connections[name] = Connection(url, name=name, **config)
        return self._connections[name]

    def has_connection(self, name: Optional[str] = None) -> bool:
        name = name or self.default_connection
        return name in self._connections or name in self._configs

    def get_connections(self) -> dict[str, Connection]:
        return dict(self._connections)

    def disconnect(self, name: Optional[str] = None) -> None:
        """Close the driver handle of a connection, keeping its configuration."""
        name = name or self.default_connection
        connection = self._connections.get(name)
        if connection is not None and hasattr(connection, "disconnect"):
            connection.disconnect()

    def purge(self, name: Optional[str] = None) -> None:
        """Disconnect and forget the connection object; it is rebuilt on next use."""
        name = name or self.default_connection
        self.disconnect(name)
        self._connections.pop(name, None)

    def close(self) -> None:
        for name in list(self._connections):
            self.purge(name)

    # booted entity types

    def boot(self, entity_cls: type) -> bool:
        """Boot an entity type once for this registry; returns False when already booted."""
        if entity_cls in self._booted:
            return False
        self._booted.add(entity_cls)
        logger.debug("Booting %s", entity_cls.__name__)
        entity_cls.fire_class_event("booting")
        entity_cls.boot()
        entity_cls.fire_class_event("booted")
        return True

    def is_booted(self, entity_cls: type) -> bool:
        return entity_cls in self._booted

    def clear_booted(self) -> None:
        self._booted.clear()


_registry: Optional[Registry] = None


def set_registry(registry: Registry) -> Registry:
    """Install the process-wide registry."""
    global _registry
    _registry = registry
    return registry


def get_registry() -> Registry:
    """Return the process-wide registry, creating an empty one on first use."""
    if _registry is None:
        return set_registry(Registry())
    return _registry


def clear_registry() -> None:
    """Close every connection of the process-wide registry and drop it."""
    global _registry
    if _registry is not None:
        _registry.close()
    _registry = None


@contextmanager
def use_registry(registry: Registry) -> Iterator[Registry]:
    """Temporarily install ``registry`` as the process-wide registry."""
    global _registry
    previous = _registry
    _registry = registry
    try:
        yield registry
    finally:
        _registry = previous


def connect(database_url: str, name: str = "default", **options) -> Registry:
    """Register ``database_url`` under ``name`` on the process-wide registry."""
    registry = get_registry()
    registry.add_connection(database_url, name=name, **options)
    return registry
