import os

# Database settings must exist before memory_hole.db.database is imported;
# creating the engine does not connect, so unit tests never need a server.
_TEST_ENV = {
    "POSTGRES_USER": "testuser",
    "POSTGRES_PASSWORD": "testpass",
    "POSTGRES_HOST": "localhost",
    "POSTGRES_PORT": "5432",
    "POSTGRES_DB": "testdb",
}

if not os.getenv("DATABASE_URL"):
    for _name, _value in _TEST_ENV.items():
        os.environ.setdefault(_name, _value)
