"""Shared pytest fixtures for Ghostplay tests."""

import pytest

from ghostplay.database.db import configure_engine, dispose_engine
from ghostplay.database.store import SQLStorage
from ghostplay.progression import BadgeRegistry, ProgressionEngine
from ghostplay.storage import MemoryStorage


@pytest.fixture(autouse=True)
def test_db():
    """Point every test at a fresh in-memory SQLite database."""
    configure_engine("sqlite:///:memory:")
    yield
    dispose_engine()


@pytest.fixture
def sql_storage():
    """SQLStorage with its table created."""
    storage = SQLStorage()
    storage.init_table()
    return storage


@pytest.fixture
def memory_storage():
    return MemoryStorage()


@pytest.fixture(params=["memory", "sql"])
def storage(request):
    """Run the test once per backend."""
    if request.param == "memory":
        return MemoryStorage()
    storage = SQLStorage()
    storage.init_table()
    return storage


@pytest.fixture
def engine(storage):
    """ProgressionEngine over each backend, badges off."""
    return ProgressionEngine(storage)


@pytest.fixture
def badge_engine(memory_storage):
    return ProgressionEngine(memory_storage, badges=BadgeRegistry())
