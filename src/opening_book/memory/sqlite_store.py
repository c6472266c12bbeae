"""
SQLite-backed book store.

Each merge runs inside BEGIN IMMEDIATE ... COMMIT: SQLite admits one write
transaction at a time, so the read-combine-write of a key can never
interleave with another writer, and a crash leaves either the prior record or
the fully merged one. Connections are per thread.
"""

from __future__ import annotations

import logging
import sqlite3
import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Dict, Iterator, List, Mapping, Optional, Tuple

from opening_book.core.codec import decode_stats, encode_stats
from opening_book.core.errors import OpeningBookError, StoreIOError
from opening_book.core.types import PositionIdentity, PositionStats
from opening_book.memory.book_store import BookStore, decode_key, encode_key
from opening_book.memory.schema import SCHEMA

logger = logging.getLogger(__name__)


class SqliteBookStore(BookStore):
    """Durable book store in a single SQLite file."""

    def __init__(self, db_path: str | Path, read_only: bool = False, timeout: float = 30.0):
        self.db_path = Path(db_path).resolve()
        self.read_only = read_only
        self.timeout = timeout
        self._closed = False

        self._local = threading.local()
        self._conns: List[sqlite3.Connection] = []
        self._conns_lock = threading.Lock()

        if not read_only:
            self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self.conn  # open eagerly so a bad path fails here

    # -------------------------------------------------------------------------
    # Connections
    # -------------------------------------------------------------------------

    @property
    def conn(self) -> sqlite3.Connection:
        """The calling thread's connection."""
        if self._closed:
            raise RuntimeError("Store is closed")
        conn = getattr(self._local, "conn", None)
        if conn is None:
            conn = self._connect()
            self._local.conn = conn
            with self._conns_lock:
                self._conns.append(conn)
        return conn

    def _connect(self) -> sqlite3.Connection:
        try:
            if self.read_only:
                conn = sqlite3.connect(
                    f"{self.db_path.as_uri()}?mode=ro",
                    uri=True,
                    timeout=self.timeout,
                    isolation_level=None,
                    check_same_thread=False,
                )
            else:
                conn = sqlite3.connect(
                    str(self.db_path),
                    timeout=self.timeout,
                    isolation_level=None,
                    check_same_thread=False,
                )
                conn.execute("PRAGMA journal_mode=WAL")
                conn.execute("PRAGMA synchronous=NORMAL")
                conn.executescript(SCHEMA)
            conn.execute("PRAGMA cache_size=-65536")
        except sqlite3.Error as e:
            raise StoreIOError(f"Cannot open {self.db_path}: {e}") from e
        return conn

    @contextmanager
    def _transaction(self) -> Iterator[sqlite3.Connection]:
        """Write transaction; rolled back if the body raises."""
        self._check_writable()
        conn = self.conn
        try:
            conn.execute("BEGIN IMMEDIATE")
        except sqlite3.Error as e:
            raise StoreIOError(f"Cannot begin write transaction: {e}") from e

        try:
            yield conn
            conn.execute("COMMIT")
        except BaseException as e:
            try:
                conn.execute("ROLLBACK")
            except sqlite3.Error as rollback_error:
                logger.warning("Rollback failed: %s", rollback_error)
            if isinstance(e, sqlite3.Error):
                raise StoreIOError(f"Write to {self.db_path} failed: {e}") from e
            raise

    # -------------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------------

    def get(self, identity: PositionIdentity) -> Optional[PositionStats]:
        key = encode_key(identity)
        try:
            row = self.conn.execute(
                "SELECT value FROM positions WHERE key=?", (key,)
            ).fetchone()
        except sqlite3.Error as e:
            raise StoreIOError(f"Read from {self.db_path} failed: {e}") from e
        return decode_stats(row[0]) if row else None

    def scan(
        self,
        start: Optional[PositionIdentity] = None,
        stop: Optional[PositionIdentity] = None,
    ) -> Iterator[Tuple[PositionIdentity, PositionStats]]:
        clauses, params = [], []
        if start is not None:
            clauses.append("key >= ?")
            params.append(encode_key(start))
        if stop is not None:
            clauses.append("key < ?")
            params.append(encode_key(stop))
        where = f" WHERE {' AND '.join(clauses)}" if clauses else ""

        try:
            cur = self.conn.execute(
                f"SELECT key, value FROM positions{where} ORDER BY key", params
            )
            for key, value in cur:
                yield decode_key(key), decode_stats(value)
        except sqlite3.Error as e:
            raise StoreIOError(f"Scan of {self.db_path} failed: {e}") from e

    def count(self) -> int:
        try:
            return self.conn.execute("SELECT COUNT(*) FROM positions").fetchone()[0]
        except sqlite3.Error as e:
            raise StoreIOError(f"Read from {self.db_path} failed: {e}") from e

    # -------------------------------------------------------------------------
    # Writes
    # -------------------------------------------------------------------------

    def merge_put(self, identity: PositionIdentity, delta: PositionStats) -> None:
        key = encode_key(identity)
        with self._transaction() as conn:
            self._merge_row(conn, key, delta)

    def merge_many(self, deltas: Mapping[PositionIdentity, PositionStats]) -> int:
        """Merge a whole batch in one transaction."""
        if not deltas:
            return 0
        with self._transaction() as conn:
            for identity in sorted(deltas):
                self._merge_row(conn, encode_key(identity), deltas[identity])
        return len(deltas)

    def _merge_row(self, conn: sqlite3.Connection, key: bytes, delta: PositionStats) -> None:
        row = conn.execute("SELECT value FROM positions WHERE key=?", (key,)).fetchone()
        merged = decode_stats(row[0]).merge(delta) if row else delta.copy()
        conn.execute(
            """INSERT INTO positions (key, value) VALUES (?, ?)
            ON CONFLICT(key) DO UPDATE SET value = excluded.value""",
            (key, encode_stats(merged)),
        )

    # -------------------------------------------------------------------------
    # Metadata
    # -------------------------------------------------------------------------

    def get_metadata(self) -> Dict[str, str]:
        try:
            rows = self.conn.execute("SELECT key, value FROM metadata").fetchall()
        except sqlite3.Error as e:
            raise StoreIOError(f"Read from {self.db_path} failed: {e}") from e
        return dict(rows)

    def ensure_metadata(self, values: Mapping[str, str]) -> None:
        """
        Record `values` on first use; afterwards require them to match.

        Raises OpeningBookError when the book was built with different
        settings (e.g. another hash scheme), since its keys would be
        meaningless to this process.
        """
        existing = self.get_metadata()
        for name, value in values.items():
            if name in existing and existing[name] != str(value):
                raise OpeningBookError(
                    f"{self.db_path} was built with {name}={existing[name]}, "
                    f"not {value}"
                )

        missing = {k: str(v) for k, v in values.items() if k not in existing}
        if not missing or self.read_only:
            return
        with self._transaction() as conn:
            conn.executemany(
                "INSERT OR IGNORE INTO metadata (key, value) VALUES (?, ?)",
                list(missing.items()),
            )

    def get_info(self) -> Dict[str, Any]:
        return {
            **super().get_info(),
            "path": str(self.db_path),
            **self.get_metadata(),
        }

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    def close(self) -> None:
        """Checkpoint the WAL and close every connection."""
        if self._closed:
            return
        self._closed = True

        with self._conns_lock:
            conns, self._conns = self._conns, []
        if conns and not self.read_only:
            try:
                conns[0].execute("PRAGMA wal_checkpoint(TRUNCATE)")
            except sqlite3.Error as e:
                logger.warning("WAL checkpoint failed for %s: %s", self.db_path, e)
        for conn in conns:
            conn.close()
