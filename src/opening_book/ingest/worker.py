"""
Worker process logic for parallel ingestion.

Each worker builds its own rules engine once. Every process hashes with the
same fixed Polyglot keys, so workers produce the same identities as the
parent would. Workers receive GameRecord objects and return ReplayResult
objects; they never touch the store.
"""

from __future__ import annotations

from typing import Optional

from opening_book.core.types import GameOutcome
from opening_book.games.chess_rules import ChessRules
from opening_book.ingest.jobs import GameRecord, ReplayResult
from opening_book.ingest.pipeline import GameReplay


# Global worker state (initialized per process)
_worker_replay: Optional[GameReplay] = None


def worker_init(max_plies: Optional[int] = None) -> None:
    """Initialize the replay state for this worker process."""
    global _worker_replay
    _worker_replay = GameReplay(ChessRules(), max_plies)


def replay_game(record: GameRecord) -> ReplayResult:
    """Replay a single game."""
    if _worker_replay is None:
        raise RuntimeError("Worker not initialized")

    replay = _worker_replay
    replay.reset()
    for token in record.tokens:
        if not replay.push(token):
            break

    outcome = GameOutcome.from_result(record.result)
    if replay.aborted:
        return ReplayResult(record.index, outcome, error=str(replay.error))
    return ReplayResult(record.index, outcome, list(replay.visited))
