"""
Book memory module - persistent position statistics.

Two store implementations behind the BookStore interface:
- SqliteBookStore: durable, single-file
- InMemoryBookStore: process-local, for tests and embedding

Use `open_store()` / `open_readonly()` or instantiate directly.
"""

from __future__ import annotations

from pathlib import Path

from opening_book.memory.book_store import BookStore, KeyLocks, encode_key, decode_key
from opening_book.memory.sqlite_store import SqliteBookStore
from opening_book.memory.memory_store import InMemoryBookStore
from opening_book.memory.aggregator import BookAggregator


def open_store(db_path: str | Path, **kwargs) -> SqliteBookStore:
    """
    Open (or create) a book database.

    Args:
        db_path: Path to the database file
        **kwargs: Additional arguments (e.g., timeout=60.0)

    Returns:
        Writable SqliteBookStore
    """
    return SqliteBookStore(db_path, **kwargs)


def open_readonly(db_path: str | Path) -> SqliteBookStore:
    """Open an existing book database in read-only mode."""
    return SqliteBookStore(db_path, read_only=True)


__all__ = [
    "BookStore",
    "SqliteBookStore",
    "InMemoryBookStore",
    "BookAggregator",
    "KeyLocks",
    "encode_key",
    "decode_key",
    "open_store",
    "open_readonly",
]
