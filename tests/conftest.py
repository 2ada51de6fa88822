import pytest

from rowkeeper.registry import Registry, use_registry
from tests.helpers import SCHEMA, RecordingConnection


@pytest.fixture(scope="function")
def fake_connection():
    """A connection that records every statement instead of running it."""
    return RecordingConnection()


@pytest.fixture(scope="function")
def fake_registry(fake_connection):
    """Process-wide registry whose default connection is the recording fake."""
    registry = Registry()
    registry.set_connection(fake_connection)
    with use_registry(registry):
        yield registry


@pytest.fixture(scope="function")
def setup_db():
    """In-memory SQLite database with the test schema, installed as the process-wide registry."""
    registry = Registry()
    registry.add_connection("sqlite:///:memory:")
    connection = registry.connection()
    for statement in SCHEMA:
        connection.statement(statement)
    with use_registry(registry):
        yield connection
    registry.close()
