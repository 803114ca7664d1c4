"""Database connection manager for SQLite."""

import sqlite3

IN_MEMORY = ":memory:"


def get_connection(db_path: str = IN_MEMORY) -> sqlite3.Connection:
    """Get a database connection with row factory enabled.

    Each registry keeps a single long-lived connection and serializes access
    to it with its own lock, so the connection may be used from any thread.
    """
    conn = sqlite3.connect(db_path, check_same_thread=False, timeout=30)
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA foreign_keys = ON")
    return conn


def init_database(conn: sqlite3.Connection, schema: str) -> None:
    """Initialize the database with schema."""
    conn.executescript(schema)
    conn.commit()
