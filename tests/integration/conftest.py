"""
PostgreSQL fixtures for the integration suite.

The unit tests run the repositories against an in-memory stand-in for the
statement files, so this suite is the only one that executes the SQL in
``memory_hole/db/sql``. Without Docker it is skipped; set
``REQUIRE_POSTGRES_TESTS=1`` in CI to turn a missing container into
a failure instead.
"""
import os

import pytest
from sqlalchemy.orm import sessionmaker

from memory_hole.db import schema
from tests.integration.availability import unavailable


# Session-wide Postgres test container
@pytest.fixture(scope="session")
def _test_postgres():
    try:
        import testcontainers.postgres as testcontainers
    except ImportError as exc:
        unavailable(f"testcontainers not installed: {exc}")
    image = os.getenv("TEST_POSTGRES_IMAGE", "postgres:16-alpine")
    try:
        container = testcontainers.PostgresContainer(image)
        container.start()
    except Exception as exc:  # Docker missing or not running
        unavailable(f"PostgreSQL container unavailable: {exc}")
    try:
        url = container.get_connection_url()
        os.environ["TEST_DATABASE_URL"] = url
        yield url
    finally:
        container.stop()


@pytest.fixture(scope="session")
def _engine(_test_postgres):
    from memory_hole.db.database import build_engine

    engine = build_engine(_test_postgres)
    schema.create_schema(engine)
    yield engine
    engine.dispose()


@pytest.fixture(scope="session")
def _SessionLocal(_engine):
    # Commits inside the code under test release a savepoint; the outer
    # transaction is rolled back after every test.
    return sessionmaker(autoflush=False, join_transaction_mode="create_savepoint")


# Per-test transactional session (fast cleanup without truncation)
@pytest.fixture
def db(_engine, _SessionLocal):
    connection = _engine.connect()
    trans = connection.begin()
    session = _SessionLocal(bind=connection)
    try:
        yield session
    finally:
        try:
            trans.rollback()
        finally:
            session.close()
            connection.close()
