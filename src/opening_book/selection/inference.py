"""
Book queries for a concrete board.
"""

from __future__ import annotations

import logging
from typing import List, Optional

import chess

from opening_book.core.hashing import ZobristHasher, default_hasher
from opening_book.core.types import MoveStat, PositionStats
from opening_book.memory.book_store import BookStore
from opening_book.utils.config import BOOK_MIN_N

logger = logging.getLogger(__name__)


def lookup(
    store: BookStore,
    board: chess.Board,
    hasher: Optional[ZobristHasher] = None,
) -> Optional[PositionStats]:
    """Stored statistics for `board`, or None if the book never saw it."""
    return store.get((hasher or default_hasher()).hash_board(board))


def move_statistics(
    store: BookStore,
    board: chess.Board,
    min_games: int = 0,
    hasher: Optional[ZobristHasher] = None,
) -> List[MoveStat]:
    """Book moves for `board` with at least `min_games` results, most played first."""
    stats = lookup(store, board, hasher)
    if stats is None:
        return []
    return [m for m in stats.sorted_moves() if m.total >= min_games]


def select_book_move(
    store: BookStore,
    board: chess.Board,
    min_games: int = BOOK_MIN_N,
    hasher: Optional[ZobristHasher] = None,
) -> Optional[chess.Move]:
    """
    Best book move for the side to move.

    Moves are ranked by expected score, ties broken by number of games.
    Entries that are not legal on `board` (a hash collision) are ignored.
    """
    white_to_move = board.turn == chess.WHITE
    best_move: Optional[chess.Move] = None
    best_key = (-1.0, -1)

    for stat in move_statistics(store, board, min_games, hasher):
        try:
            move = chess.Move.from_uci(stat.move)
        except ValueError:
            logger.warning("Malformed book move %r for %s", stat.move, board.fen())
            continue
        if move not in board.legal_moves:
            continue

        key = (stat.score(white_to_move), stat.total)
        if key > best_key:
            best_key = key
            best_move = move

    return best_move
