"""
Database engine, session and transaction management.

Builds the SQLAlchemy engine from environment configuration and exposes
the session dependency plus the ``transaction`` scope used by every
multi-statement operation.
"""
import json
import logging
import os
import uuid
from contextlib import contextmanager
from datetime import date, datetime
from functools import partial

import psycopg2
import psycopg2.extensions
from sqlalchemy import create_engine, event
from sqlalchemy.engine import make_url
from sqlalchemy.orm import Session, sessionmaker

from memory_hole.config import sql_echo_enabled

logger = logging.getLogger(__name__)

_TX_DEPTH_KEY = "memory_hole.transaction_depth"


def _get_database_url() -> str:
    # An explicit test database always wins (set by the integration fixtures)
    if os.getenv("TEST_DATABASE_URL"):
        return os.getenv("TEST_DATABASE_URL")

    if os.getenv("DATABASE_URL"):
        return os.getenv("DATABASE_URL")

    # Otherwise, generate from individual components (all must be set)
    db_user = os.getenv("POSTGRES_USER")
    db_password = os.getenv("POSTGRES_PASSWORD")
    db_host = os.getenv("POSTGRES_HOST")
    db_port = os.getenv("POSTGRES_PORT")
    db_name = os.getenv("POSTGRES_DB")

    if not all([db_user, db_password, db_host, db_port, db_name]):
        missing = []
        if not db_user: missing.append("POSTGRES_USER")
        if not db_password: missing.append("POSTGRES_PASSWORD")
        if not db_host: missing.append("POSTGRES_HOST")
        if not db_port: missing.append("POSTGRES_PORT")
        if not db_name: missing.append("POSTGRES_DB")
        raise ValueError(f"Missing required database environment variables: {', '.join(missing)}")

    return f"postgresql+psycopg2://{db_user}:{db_password}@{db_host}:{db_port}/{db_name}"


def _json_default(value):
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, (set, frozenset)):
        return sorted(value, key=str)
    if isinstance(value, uuid.UUID):
        return str(value)
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


# Serializer used for every JSONB bind parameter
json_dumps = partial(json.dumps, default=_json_default)


# psycopg2 leaves arrays of composite and extension types as array text
RECORD_ARRAY = psycopg2.extensions.new_array_type((2287,), "RECORDARRAY", psycopg2.STRING)

_CITEXT_ARRAY_OID = "SELECT typarray FROM pg_catalog.pg_type WHERE typname = 'citext'"


def register_array_types(dbapi_connection, connection_record=None):
    """Install the array casters for ``record[]`` and ``citext[]`` on a new connection."""
    psycopg2.extensions.register_type(RECORD_ARRAY, dbapi_connection)
    cursor = dbapi_connection.cursor()
    try:
        cursor.execute(_CITEXT_ARRAY_OID)
        row = cursor.fetchone()
    finally:
        cursor.close()
        # Do not leave the lookup's implicit transaction open
        dbapi_connection.rollback()
    if row and row[0]:
        citext_array = psycopg2.extensions.new_array_type((row[0],), "CITEXTARRAY", psycopg2.STRING)
        psycopg2.extensions.register_type(citext_array, dbapi_connection)


def _with_driver(url: str):
    # A bare postgresql:// URL may resolve to a driver other than psycopg2
    parsed = make_url(url)
    if parsed.drivername == "postgresql":
        parsed = parsed.set(drivername="postgresql+psycopg2")
    return parsed


def build_engine(url: str):
    """Create an engine whose JSON parameters go through ``json_dumps``."""
    engine = create_engine(_with_driver(url), json_serializer=json_dumps, echo=sql_echo_enabled(), future=True)
    if engine.dialect.driver == "psycopg2":
        event.listen(engine, "connect", register_array_types)
    return engine


DATABASE_URL = _get_database_url()

# Creating the engine does not open a connection
engine = build_engine(DATABASE_URL)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def get_db():
    """Dependency to get a database session."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@contextmanager
def transaction(db: Session):
    """Run the enclosed statements as one unit of work on ``db``.

    The outermost scope commits on success and rolls back when an exception
    escapes. Scopes opened while another one is active on the same session
    join it, so composed operations stay atomic as a whole.
    """
    depth = db.info.get(_TX_DEPTH_KEY, 0)
    db.info[_TX_DEPTH_KEY] = depth + 1
    if depth:
        try:
            yield db
        finally:
            db.info[_TX_DEPTH_KEY] = depth
        return

    try:
        yield db
        db.commit()
    except Exception as exc:
        logger.warning("Rolling back transaction after %s", type(exc).__name__)
        db.rollback()
        raise
    finally:
        db.info[_TX_DEPTH_KEY] = 0
