# src/banana/conftest.py
"""
Pytest configuration and shared fixtures.

Tests are co-located with implementation files using the *_test.py suffix.
They run against an in-memory SQLite database injected through the
connection override. PostgreSQL tests run only when
BANANA_TEST_POSTGRES_URL is set.
"""

import os

# Set environment BEFORE importing any app modules
os.environ["BANANA_ENV"] = "test"
os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")

import sqlite3

import pytest

from banana import db

SQLITE_SCHEMA = """
CREATE TABLE widgets (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    name TEXT NOT NULL,
    price REAL NOT NULL DEFAULT 0,
    quantity INTEGER,
    created_at TEXT DEFAULT CURRENT_TIMESTAMP
);

CREATE TABLE tags (
    code TEXT PRIMARY KEY,
    label TEXT
);

CREATE TABLE counters (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    created_at TEXT DEFAULT CURRENT_TIMESTAMP
);
"""

POSTGRES_SCHEMA = """
DROP TABLE IF EXISTS widgets, tags, counters;

CREATE TABLE widgets (
    id SERIAL PRIMARY KEY,
    name TEXT NOT NULL,
    price NUMERIC(10, 2) NOT NULL DEFAULT 0,
    quantity INTEGER,
    created_at TIMESTAMPTZ DEFAULT now()
);

CREATE TABLE tags (
    code TEXT PRIMARY KEY,
    label TEXT
);

CREATE TABLE counters (
    id SERIAL PRIMARY KEY,
    created_at TIMESTAMPTZ DEFAULT now()
);
"""

# =============================================================================
# Database Fixtures
# =============================================================================


@pytest.fixture
def db_connection():
    """
    Provide a fresh in-memory SQLite database with the test schema.

    The connection is installed as the override, so repositories created
    without an explicit connection use it too.
    """
    conn = sqlite3.connect(":memory:")
    conn.executescript(SQLITE_SCHEMA)

    db.set_connection_override(conn)

    yield conn

    db.clear_connection_override()
    conn.close()


@pytest.fixture
def pg_connection():
    """
    Provide a PostgreSQL connection with freshly created test tables.

    Skipped unless BANANA_TEST_POSTGRES_URL points at a scratch database.
    """
    url = os.environ.get("BANANA_TEST_POSTGRES_URL")
    if not url:
        pytest.skip("BANANA_TEST_POSTGRES_URL not set")

    import psycopg

    conn = psycopg.connect(url)
    with conn.cursor() as cur:
        cur.execute(POSTGRES_SCHEMA)
    conn.commit()

    yield conn

    conn.rollback()
    with conn.cursor() as cur:
        cur.execute("DROP TABLE IF EXISTS widgets, tags, counters")
    conn.commit()
    conn.close()


@pytest.fixture
def count_rows(db_connection):
    """Count rows in a table, bypassing the repository."""

    def count(table: str) -> int:
        return db_connection.execute(f"SELECT COUNT(*) FROM {table}").fetchone()[0]

    return count
