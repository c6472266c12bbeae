"""
In-memory aggregation of replayed games.

Deltas for a whole batch of games are accumulated here first, so a position
visited by many games in the batch costs a single store round-trip.
"""

from __future__ import annotations

import logging
from typing import Dict, Iterable

from opening_book.core.types import GameOutcome, PositionIdentity, PositionStats, VisitedPair
from opening_book.memory.book_store import BookStore

logger = logging.getLogger(__name__)


class BookAggregator:
    """Accumulates per-position counter deltas until flushed to a store."""

    def __init__(self):
        self._pending: Dict[PositionIdentity, PositionStats] = {}
        self.pending_games = 0

    @property
    def pending_positions(self) -> int:
        return len(self._pending)

    def merge_game(
        self,
        outcome: GameOutcome,
        visited: Iterable[VisitedPair],
    ) -> Dict[PositionIdentity, PositionStats]:
        """
        Fold one game into the working mapping.

        Every visited pair counts once, so a position repeated within the game
        is counted once per occurrence. Returns the working mapping.
        """
        pending = self._pending
        for identity, move in visited:
            stats = pending.get(identity)
            if stats is None:
                stats = pending[identity] = PositionStats()
            stats.record(move, outcome)
        self.pending_games += 1
        return pending

    def drain(self) -> Dict[PositionIdentity, PositionStats]:
        """Hand over the working mapping and start a new one."""
        pending, self._pending = self._pending, {}
        self.pending_games = 0
        return pending

    def flush(self, store: BookStore) -> int:
        """
        Merge all pending deltas into `store`.

        Returns the number of positions written. Stores merge a batch all or
        nothing, so if the store raises no delta has landed and every delta
        stays pending for a retry.
        """
        if not self._pending:
            self.pending_games = 0
            return 0

        written = store.merge_many(self._pending)
        logger.info(
            "Flushed %d positions from %d games", written, self.pending_games
        )
        self.drain()
        return written
