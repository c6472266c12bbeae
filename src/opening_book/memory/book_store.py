"""
Base class for persistent book stores.

A store maps a position identity to its PositionStats record and only ever
grows records through merge_put. Subclasses implement the backend-specific
storage; key encoding and per-key locking are shared here.
"""

from __future__ import annotations

import threading
from abc import ABC, abstractmethod
from contextlib import contextmanager
from typing import Any, Dict, Iterator, List, Mapping, Optional, Tuple

from opening_book.core.types import PositionIdentity, PositionStats

KEY_SIZE = 8


def encode_key(identity: PositionIdentity) -> bytes:
    """8-byte big-endian key, so byte order equals numeric order."""
    if not 0 <= identity < 1 << 64:
        raise ValueError(f"identity out of 64-bit range: {identity}")
    return identity.to_bytes(KEY_SIZE, "big")


def decode_key(key: bytes) -> PositionIdentity:
    if len(key) != KEY_SIZE:
        raise ValueError(f"expected {KEY_SIZE}-byte key, got {len(key)}")
    return int.from_bytes(key, "big")


class KeyLocks:
    """
    One lock per key currently in use.

    Locks are created on demand and dropped once no thread holds or waits for
    them, so memory stays bounded by the number of in-flight keys.
    """

    def __init__(self):
        self._guard = threading.Lock()
        self._locks: Dict[Any, List] = {}  # key -> [lock, users]

    @contextmanager
    def hold(self, key: Any) -> Iterator[None]:
        with self._guard:
            entry = self._locks.get(key)
            if entry is None:
                entry = self._locks[key] = [threading.Lock(), 0]
            entry[1] += 1
        try:
            with entry[0]:
                yield
        finally:
            with self._guard:
                entry[1] -= 1
                if entry[1] == 0:
                    del self._locks[key]

    def __len__(self) -> int:
        with self._guard:
            return len(self._locks)


class BookStore(ABC):
    """Abstract durable mapping from position identity to statistics."""

    read_only: bool = False

    # -------------------------------------------------------------------------
    # Abstract Methods (subclasses must implement)
    # -------------------------------------------------------------------------

    @abstractmethod
    def get(self, identity: PositionIdentity) -> Optional[PositionStats]:
        """Return the stored record, or None if the identity was never written."""
        pass

    @abstractmethod
    def merge_put(self, identity: PositionIdentity, delta: PositionStats) -> None:
        """Atomically add `delta` into the record stored for `identity`."""
        pass

    @abstractmethod
    def merge_many(self, deltas: Mapping[PositionIdentity, PositionStats]) -> int:
        """
        Merge a batch of deltas atomically: either every key is written or
        none is. Returns the number of keys written.
        """
        pass

    @abstractmethod
    def scan(
        self,
        start: Optional[PositionIdentity] = None,
        stop: Optional[PositionIdentity] = None,
    ) -> Iterator[Tuple[PositionIdentity, PositionStats]]:
        """Iterate records with start <= identity < stop in ascending order."""
        pass

    @abstractmethod
    def count(self) -> int:
        """Number of stored positions."""
        pass

    @abstractmethod
    def close(self) -> None:
        pass

    # -------------------------------------------------------------------------
    # Shared implementation
    # -------------------------------------------------------------------------

    def get_info(self) -> Dict[str, Any]:
        """Summary statistics."""
        return {"backend": type(self).__name__, "positions": self.count()}

    def _check_writable(self) -> None:
        if self.read_only:
            raise RuntimeError("Cannot merge in read-only mode")

    def __contains__(self, identity: PositionIdentity) -> bool:
        return self.get(identity) is not None

    def __enter__(self):
        return self

    def __exit__(self, *_):
        self.close()
