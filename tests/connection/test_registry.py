"""Tests for rowkeeper.registry: named connections, booting and the process-wide registry."""

import pytest

from rowkeeper.connection import Connection
from rowkeeper.entity import Entity
from rowkeeper.errors import ConnectionNotConfigured
from rowkeeper.registry import (
    Registry,
    clear_registry,
    connect,
    get_registry,
    set_registry,
    use_registry,
)


def test_unknown_connection_name():
    registry = Registry()
    with pytest.raises(ConnectionNotConfigured, match="nonexistent"):
        registry.connection("nonexistent")
    with pytest.raises(ValueError):
        registry.connection()


def test_connections_are_built_lazily_and_reused():
    registry = Registry()
    registry.add_connection("sqlite:///:memory:", name="main", table_prefix="p_")
    assert registry.get_connections() == {}
    connection = registry.connection("main")
    assert isinstance(connection, Connection)
    assert connection.table_prefix == "p_"
    assert registry.connection("main") is connection
    registry.close()


def test_default_connection_name():
    registry = Registry(default_connection="primary")
    registry.add_connection("sqlite:///:memory:", name="primary")
    assert registry.connection().name == "primary"
    assert registry.has_connection()
    assert not registry.has_connection("other")
    registry.close()


def test_purge_forgets_the_connection_object():
    registry = Registry()
    registry.add_connection("sqlite:///:memory:")
    first = registry.connection()
    first.select("select 1")
    registry.purge()
    assert first._handle is None
    assert registry.connection() is not first
    registry.close()


def test_disconnect_keeps_the_connection_object():
    registry = Registry()
    registry.add_connection("sqlite:///:memory:")
    connection = registry.connection()
    connection.select("select 1")
    registry.disconnect()
    assert registry.connection() is connection
    assert connection._handle is None


def test_process_wide_registry():
    clear_registry()
    created = get_registry()
    assert get_registry() is created
    replacement = set_registry(Registry())
    assert get_registry() is replacement
    clear_registry()
    assert get_registry() is not replacement
    clear_registry()


def test_use_registry_restores_the_previous_one():
    outer = set_registry(Registry())
    inner = Registry()
    with use_registry(inner):
        assert get_registry() is inner
    assert get_registry() is outer
    clear_registry()


def test_connect_registers_on_the_process_wide_registry():
    with use_registry(Registry()) as registry:
        assert connect("sqlite:///:memory:", name="other") is registry
        assert registry.connection("other").name == "other"
        registry.close()


def test_boot_runs_once_per_registry():
    calls = []

    class Booted(Entity):

        @classmethod
        def boot(cls):
            calls.append(("boot", cls))

    Booted.on("booting", lambda cls: calls.append(("booting", cls)))
    Booted.on("booted", lambda cls: calls.append(("booted", cls)))

    registry = Registry()
    with use_registry(registry):
        Booted()
        Booted()
        assert registry.is_booted(Booted)
    assert calls == [("booting", Booted), ("boot", Booted), ("booted", Booted)]

    with use_registry(Registry()):
        Booted()
    assert len(calls) == 6


def test_entity_type_can_carry_its_own_registry():
    registry = Registry()

    class Pinned(Entity):
        pass

    Pinned.registry = registry
    Pinned()
    assert registry.is_booted(Pinned)
