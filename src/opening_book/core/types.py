"""
Core types and data structures.

This module contains the fundamental types used throughout the opening book:
- GameOutcome: result of a replayed game
- MoveStat: outcome counts for one move played from a position
- PositionStats: per-position record stored in the book
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Dict, List, NamedTuple, Tuple

# Identity of a board state (64-bit Zobrist key)
PositionIdentity = int

# (position identity before the move, UCI notation of the move played)
VisitedPair = Tuple[PositionIdentity, str]


class GameOutcome(Enum):
    WHITE_WIN = auto()
    BLACK_WIN = auto()
    DRAW = auto()
    UNKNOWN = auto()

    @classmethod
    def from_result(cls, tag: str) -> "GameOutcome":
        """Map a PGN result tag ("1-0", "0-1", "1/2-1/2") to an outcome."""
        return _RESULT_TAGS.get(tag.strip(), cls.UNKNOWN)


_RESULT_TAGS = {
    "1-0": GameOutcome.WHITE_WIN,
    "0-1": GameOutcome.BLACK_WIN,
    "1/2-1/2": GameOutcome.DRAW,
}


class MoveStat(NamedTuple):
    """Outcome counts for one move played from a position."""

    move: str
    white_wins: int = 0
    black_wins: int = 0
    draws: int = 0

    @property
    def total(self) -> int:
        return self.white_wins + self.black_wins + self.draws

    def score(self, white_to_move: bool = True) -> float:
        """Expected score for the side to move (draws count one half)."""
        if self.total == 0:
            return 0.5
        wins = self.white_wins if white_to_move else self.black_wins
        return (wins + 0.5 * self.draws) / self.total

    def merged(self, other: "MoveStat") -> "MoveStat":
        if other.move != self.move:
            raise ValueError(f"Cannot merge {other.move!r} into {self.move!r}")
        return MoveStat(
            self.move,
            self.white_wins + other.white_wins,
            self.black_wins + other.black_wins,
            self.draws + other.draws,
        )

    def with_outcome(self, outcome: GameOutcome) -> "MoveStat":
        """Return a copy with the counter for `outcome` incremented."""
        if outcome is GameOutcome.WHITE_WIN:
            return self._replace(white_wins=self.white_wins + 1)
        if outcome is GameOutcome.BLACK_WIN:
            return self._replace(black_wins=self.black_wins + 1)
        if outcome is GameOutcome.DRAW:
            return self._replace(draws=self.draws + 1)
        return self


@dataclass
class PositionStats:
    """
    Aggregate statistics for one position.

    total_games counts every recorded visit of the position, including games
    with an unknown result. Each MoveStat only counts visits with a known
    result, so the move totals can sum to less than total_games.
    """

    total_games: int = 0
    moves: Dict[str, MoveStat] = field(default_factory=dict)

    @classmethod
    def from_moves(cls, total_games: int, moves: List[MoveStat]) -> "PositionStats":
        stats = cls(total_games)
        for m in moves:
            existing = stats.moves.get(m.move)
            stats.moves[m.move] = existing.merged(m) if existing else m
        return stats

    def record(self, move: str, outcome: GameOutcome) -> None:
        """Count one visit of this position followed by `move`."""
        self.total_games += 1
        current = self.moves.get(move) or MoveStat(move)
        self.moves[move] = current.with_outcome(outcome)

    def merge(self, other: "PositionStats") -> "PositionStats":
        """Add `other` into this record in place and return self."""
        self.total_games += other.total_games
        for notation, stat in other.moves.items():
            existing = self.moves.get(notation)
            self.moves[notation] = existing.merged(stat) if existing else stat
        return self

    def copy(self) -> "PositionStats":
        return PositionStats(self.total_games, dict(self.moves))

    def sorted_moves(self) -> List[MoveStat]:
        """Move entries, most played first."""
        return sorted(self.moves.values(), key=lambda m: (-m.total, m.move))

    @property
    def is_empty(self) -> bool:
        return self.total_games == 0 and not self.moves


def combine(a: PositionStats, b: PositionStats) -> PositionStats:
    """Elementwise sum of two records (commutative, associative)."""
    return a.copy().merge(b)
