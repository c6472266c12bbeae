"""
Job data structures for parallel ingestion.

Defines the input (GameRecord) and output (ReplayResult) types exchanged
with worker processes, and the tokenizer handler that produces the jobs.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

from opening_book.core.types import GameOutcome, VisitedPair
from opening_book.games.pgn_tokenizer import GameHandler
from opening_book.ingest.pipeline import filter_reason


@dataclass(frozen=True)
class GameRecord:
    """
    Self-contained replay job.

    Holds the raw move tokens and result tag of one game, so a worker can
    replay it without shared state.
    """
    index: int
    tokens: Tuple[str, ...]
    result: str


@dataclass
class ReplayResult:
    """Outcome and visited pairs of one replayed game, ready to aggregate."""
    index: int
    outcome: GameOutcome
    visited: List[VisitedPair] = field(default_factory=list)
    error: Optional[str] = None

    @property
    def aborted(self) -> bool:
        return self.error is not None


class GameCollector(GameHandler):
    """Tokenizer handler that turns accepted games into GameRecords."""

    def __init__(self, max_plies: Optional[int] = None, min_elo: Optional[int] = None):
        self.max_plies = max_plies
        self.min_elo = min_elo
        self.records: List[GameRecord] = []
        self.games_seen = 0
        self.games_filtered = 0
        self._headers: Dict[str, str] = {}
        self._tokens: List[str] = []
        self._rejected: Optional[str] = None

    def begin_game(self) -> None:
        self._headers = {}
        self._tokens = []
        self._rejected = None

    def header(self, name: str, value: str) -> None:
        self._headers[name] = value

    def end_headers(self) -> bool:
        self._rejected = filter_reason(self._headers, self.min_elo)
        return self._rejected is None

    def move_token(self, token: str) -> bool:
        self._tokens.append(token)
        return self.max_plies is None or len(self._tokens) < self.max_plies

    def end_game(self, result_tag: str) -> None:
        index = self.games_seen
        self.games_seen += 1
        if self._rejected:
            self.games_filtered += 1
            return
        self.records.append(GameRecord(index, tuple(self._tokens), result_tag))

    def take(self) -> List[GameRecord]:
        """Hand over the collected records."""
        records, self.records = self.records, []
        return records
