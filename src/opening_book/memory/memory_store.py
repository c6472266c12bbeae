"""
In-process book store.

Records are kept encoded, exactly as a durable backend would hold them, and
merges are serialized per key with KeyLocks. Nothing survives the process.
"""

from __future__ import annotations

import threading
from contextlib import ExitStack
from typing import Dict, Iterator, Mapping, Optional, Tuple

from opening_book.core.codec import decode_stats, encode_stats
from opening_book.core.types import PositionIdentity, PositionStats
from opening_book.memory.book_store import BookStore, KeyLocks, encode_key


class InMemoryBookStore(BookStore):
    """Dictionary-backed store."""

    def __init__(self):
        self._records: Dict[PositionIdentity, bytes] = {}
        self._locks = KeyLocks()
        self._index_lock = threading.Lock()
        self._closed = False

    def get(self, identity: PositionIdentity) -> Optional[PositionStats]:
        self._check_open()
        encode_key(identity)  # range check
        raw = self._records.get(identity)
        return decode_stats(raw) if raw is not None else None

    def _merged(self, identity: PositionIdentity, delta: PositionStats) -> bytes:
        raw = self._records.get(identity)
        merged = decode_stats(raw).merge(delta) if raw is not None else delta.copy()
        return encode_stats(merged)

    def merge_put(self, identity: PositionIdentity, delta: PositionStats) -> None:
        self._check_open()
        encode_key(identity)
        with self._locks.hold(identity):
            encoded = self._merged(identity, delta)
            with self._index_lock:
                self._records[identity] = encoded

    def merge_many(self, deltas: Mapping[PositionIdentity, PositionStats]) -> int:
        """
        Merge a batch of deltas, all or nothing.

        Every merged record is encoded before any is published, so a corrupt
        record or an out-of-range key leaves the store untouched. Keys are
        locked in ascending order to keep concurrent batches deadlock-free.
        """
        self._check_open()
        self._check_writable()
        keys = sorted(deltas)
        for identity in keys:
            encode_key(identity)

        with ExitStack() as stack:
            for identity in keys:
                stack.enter_context(self._locks.hold(identity))
            staged = {identity: self._merged(identity, deltas[identity]) for identity in keys}
            with self._index_lock:
                self._records.update(staged)
        return len(staged)

    def scan(
        self,
        start: Optional[PositionIdentity] = None,
        stop: Optional[PositionIdentity] = None,
    ) -> Iterator[Tuple[PositionIdentity, PositionStats]]:
        self._check_open()
        with self._index_lock:
            keys = sorted(self._records)
        for identity in keys:
            if start is not None and identity < start:
                continue
            if stop is not None and identity >= stop:
                break
            yield identity, decode_stats(self._records[identity])

    def count(self) -> int:
        self._check_open()
        return len(self._records)

    def _check_open(self) -> None:
        if self._closed:
            raise RuntimeError("Store is closed")

    def close(self) -> None:
        self._closed = True
