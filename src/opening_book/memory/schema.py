"""
Database schema for the SQLite book store.

Tables:
    positions - identity (8-byte big-endian) -> encoded PositionStats
    metadata  - key-value store for codec version and hash scheme
"""

SCHEMA = """
CREATE TABLE IF NOT EXISTS positions (
    key BLOB PRIMARY KEY,
    value BLOB NOT NULL
) WITHOUT ROWID;

CREATE TABLE IF NOT EXISTS metadata (
    key TEXT PRIMARY KEY,
    value TEXT
);
"""
