"""
Chess rules adapter backed by python-chess.

Validates move tokens against a position and produces the resulting
position, carrying the Zobrist identity along incrementally.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Tuple

import chess

from opening_book.core.errors import IllegalMoveError
from opening_book.core.hashing import ZobristHasher, default_hasher


@dataclass(frozen=True)
class Position:
    """A board together with its identity. The board is never mutated."""

    board: chess.Board
    key: int

    @property
    def fen(self) -> str:
        return self.board.fen()


class ChessRules:
    """Standard chess move application."""

    def __init__(self, hasher: Optional[ZobristHasher] = None):
        self.hasher = hasher or default_hasher()

    def initial_position(self, fen: Optional[str] = None) -> Position:
        board = chess.Board(fen) if fen else chess.Board()
        return Position(board, self.hasher.hash_board(board))

    def parse(self, board: chess.Board, token: str) -> chess.Move:
        """Resolve a SAN (or UCI) token to a legal move on `board`."""
        try:
            move = board.parse_san(token)
        except ValueError as san_error:
            try:
                move = board.parse_uci(token)
            except ValueError:
                raise IllegalMoveError(token, board.fen(), str(san_error)) from san_error
        if not move:
            raise IllegalMoveError(token, board.fen(), "null move")
        return move

    def apply(self, position: Position, token: str) -> Tuple[Position, str]:
        """
        Play `token` from `position`.

        Returns (new position, canonical UCI notation).
        Raises IllegalMoveError if the token is not a legal move.
        """
        before = position.board
        move = self.parse(before, token)

        after = before.copy(stack=False)
        after.push(move)
        key = self.hasher.update(position.key, before, move, after)
        return Position(after, key), move.uci()
