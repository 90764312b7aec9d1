import pytest

from memory_hole.db import queries as queries_module

from .fakes import FakeSession, FakeStore


@pytest.fixture
def store(monkeypatch):
    """In-memory statement registry installed in place of the SQL one."""
    fake = FakeStore()
    monkeypatch.setattr(queries_module, "queries", fake)
    return fake


@pytest.fixture
def db(store):
    return FakeSession(store)
