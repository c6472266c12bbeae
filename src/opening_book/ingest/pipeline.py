"""
Sequential ingestion pipeline.

ReplayHandler receives tokenizer events, replays each game through the rules
engine and hands finished games to the aggregator. The driver functions read
one game at a time and flush the aggregator between games, so handler
callbacks never block on the store.
"""

from __future__ import annotations

import io
import logging
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Dict, List, Mapping, Optional, TextIO

from opening_book.core.errors import IllegalMoveError
from opening_book.core.types import GameOutcome, VisitedPair
from opening_book.games.chess_rules import ChessRules, Position
from opening_book.games.pgn_tokenizer import GameHandler, PgnTokenizer
from opening_book.memory.aggregator import BookAggregator
from opening_book.memory.book_store import BookStore
from opening_book.utils.config import DEFAULT_BATCH_SIZE

logger = logging.getLogger(__name__)

_STANDARD_VARIANTS = {"", "standard", "chess", "from position"}


@dataclass
class IngestStats:
    """Counters reported by an ingestion run."""

    games_seen: int = 0
    games_ingested: int = 0
    games_aborted: int = 0
    games_filtered: int = 0
    positions_written: int = 0

    def add(self, other: "IngestStats") -> "IngestStats":
        for f in fields(self):
            setattr(self, f.name, getattr(self, f.name) + getattr(other, f.name))
        return self

    def summary(self) -> str:
        return (
            f"games={self.games_seen} ingested={self.games_ingested} "
            f"aborted={self.games_aborted} filtered={self.games_filtered} "
            f"positions_written={self.positions_written}"
        )


def filter_reason(headers: Mapping[str, str], min_elo: Optional[int] = None) -> Optional[str]:
    """Why a game should not enter the book, or None to keep it."""
    if "FEN" in headers or headers.get("SetUp") == "1":
        return "custom start position"
    if headers.get("Variant", "").strip().lower() not in _STANDARD_VARIANTS:
        return f"variant {headers['Variant']}"
    if min_elo:
        try:
            white_elo = int(headers.get("WhiteElo", "0"))
            black_elo = int(headers.get("BlackElo", "0"))
        except ValueError:
            white_elo, black_elo = 0, 0
        if white_elo < min_elo or black_elo < min_elo:
            return f"rating below {min_elo}"
    return None


class GameReplay:
    """
    Per-game replay state.

    Holds the current position and the (position, move) pairs visited so far.
    An illegal token aborts the game and discards everything it recorded.
    """

    def __init__(self, rules: ChessRules, max_plies: Optional[int] = None):
        self.rules = rules
        self.max_plies = max_plies
        self._start = rules.initial_position()
        self.reset()

    def reset(self) -> None:
        self.position: Position = self._start
        self.visited: List[VisitedPair] = []
        self.error: Optional[IllegalMoveError] = None

    @property
    def aborted(self) -> bool:
        return self.error is not None

    @property
    def plies(self) -> int:
        return len(self.visited)

    def push(self, token: str) -> bool:
        """Replay one token. Returns False once the game needs no more moves."""
        if self.aborted:
            return False
        if self.max_plies is not None and self.plies >= self.max_plies:
            return False
        try:
            position, uci = self.rules.apply(self.position, token)
        except IllegalMoveError as e:
            self.error = e
            self.visited = []
            return False
        self.visited.append((self.position.key, uci))
        self.position = position
        return self.max_plies is None or self.plies < self.max_plies


class ReplayHandler(GameHandler):
    """Tokenizer handler that replays games into a BookAggregator."""

    def __init__(
        self,
        rules: ChessRules,
        aggregator: BookAggregator,
        max_plies: Optional[int] = None,
        min_elo: Optional[int] = None,
    ):
        self.replay = GameReplay(rules, max_plies)
        self.aggregator = aggregator
        self.min_elo = min_elo
        self.stats = IngestStats()
        self._headers: Dict[str, str] = {}
        self._rejected: Optional[str] = None

    def begin_game(self) -> None:
        self.replay.reset()
        self._headers = {}
        self._rejected = None

    def header(self, name: str, value: str) -> None:
        self._headers[name] = value

    def end_headers(self) -> bool:
        self._rejected = filter_reason(self._headers, self.min_elo)
        return self._rejected is None

    def move_token(self, token: str) -> bool:
        return self.replay.push(token)

    def end_game(self, result_tag: str) -> None:
        self.stats.games_seen += 1
        if self._rejected:
            self.stats.games_filtered += 1
            logger.debug("Filtered game %d: %s", self.stats.games_seen, self._rejected)
            return
        if self.replay.aborted:
            self.stats.games_aborted += 1
            logger.debug("Skipped game %d: %s", self.stats.games_seen, self.replay.error)
            return
        self.aggregator.merge_game(GameOutcome.from_result(result_tag), self.replay.visited)
        self.stats.games_ingested += 1


def open_pgn(path: str | Path) -> TextIO:
    """Open a PGN file as text, replacing undecodable bytes."""
    return open(path, "r", encoding="utf-8", errors="replace")


def ingest_stream(
    stream: TextIO,
    store: BookStore,
    rules: Optional[ChessRules] = None,
    batch_size: int = DEFAULT_BATCH_SIZE,
    max_plies: Optional[int] = None,
    min_elo: Optional[int] = None,
) -> IngestStats:
    """
    Replay every game in `stream` and merge the results into `store`.

    Pending deltas are flushed every `batch_size` games and at the end.
    Illegal moves only cost the game they occur in; store errors propagate.
    """
    aggregator = BookAggregator()
    handler = ReplayHandler(rules or ChessRules(), aggregator, max_plies, min_elo)
    tokenizer = PgnTokenizer(handler)

    while tokenizer.read_game(stream):
        if aggregator.pending_games >= batch_size:
            handler.stats.positions_written += aggregator.flush(store)
    handler.stats.positions_written += aggregator.flush(store)

    logger.info("Ingestion finished: %s", handler.stats.summary())
    return handler.stats


def ingest_text(text: str, store: BookStore, **kwargs) -> IngestStats:
    """Ingest PGN held in a string."""
    return ingest_stream(io.StringIO(text), store, **kwargs)


def ingest_file(path: str | Path, store: BookStore, **kwargs) -> IngestStats:
    """Ingest a PGN file."""
    with open_pgn(path) as stream:
        return ingest_stream(stream, store, **kwargs)
