"""
Zobrist position hashing with the Polyglot key set.

Each board feature (piece on square, side to move, castling right, capturable
en-passant file) owns a fixed 64-bit key from python-chess's
POLYGLOT_RANDOM_ARRAY; the identity of a position is the XOR of the keys of
its features. Identities therefore equal chess.polyglot.zobrist_hash and are
interchangeable with Polyglot opening books.

Key layout in the 781-entry array:

    64 * kind + square     kind = 2 * (piece_type - 1) + (1 if white)
    768 .. 771             castling K, Q, k, q
    772 + file             en-passant file
    780                    white to move
"""

from __future__ import annotations

from typing import Sequence

import chess
import chess.polyglot

HASH_SCHEME = "polyglot"

_TURN_INDEX = 780


class ZobristHasher:
    """Full and incremental 64-bit hashing of python-chess boards."""

    def __init__(self, array: Sequence[int] = chess.polyglot.POLYGLOT_RANDOM_ARRAY):
        if len(array) < 781:
            raise ValueError(f"need 781 keys, got {len(array)}")
        self.array = array
        self._full = chess.polyglot.ZobristHasher(array)

    # -------------------------------------------------------------------------
    # Feature keys
    # -------------------------------------------------------------------------

    def _piece_key(self, piece: chess.Piece, square: int) -> int:
        kind = (piece.piece_type - 1) * 2 + int(piece.color)
        return self.array[64 * kind + square]

    def _castling_key(self, board: chess.Board) -> int:
        return self._full.hash_castling(board)

    def _ep_key(self, board: chess.Board) -> int:
        # Counts only when a pawn of the side to move stands ready to capture
        return self._full.hash_ep_square(board)

    # -------------------------------------------------------------------------
    # Hashing
    # -------------------------------------------------------------------------

    def hash_board(self, board: chess.Board) -> int:
        """Compute the identity of `board` from scratch."""
        return self._full(board)

    def update(
        self,
        key: int,
        before: chess.Board,
        move: chess.Move,
        after: chess.Board,
    ) -> int:
        """
        Derive the identity of `after` from the identity of `before`.

        `after` must be `before` with `move` pushed. Runs in constant time:
        only the features touched by the move are XORed out and in.
        """
        h = key ^ self.array[_TURN_INDEX]
        h ^= self._castling_key(before) ^ self._castling_key(after)
        h ^= self._ep_key(before) ^ self._ep_key(after)

        piece = before.piece_at(move.from_square)
        if piece is None:
            raise ValueError(f"no piece on {chess.square_name(move.from_square)}")
        h ^= self._piece_key(piece, move.from_square)

        if before.is_castling(move):
            rank = chess.square_rank(move.from_square)
            if before.is_kingside_castling(move):
                king_to, rook_from, rook_to = (chess.square(f, rank) for f in (6, 7, 5))
            else:
                king_to, rook_from, rook_to = (chess.square(f, rank) for f in (2, 0, 3))
            rook = chess.Piece(chess.ROOK, piece.color)
            h ^= self._piece_key(piece, king_to)
            h ^= self._piece_key(rook, rook_from) ^ self._piece_key(rook, rook_to)
            return h

        if before.is_en_passant(move):
            captured_square = move.to_square + (-8 if piece.color == chess.WHITE else 8)
        else:
            captured_square = move.to_square
        captured = before.piece_at(captured_square)
        if captured is not None:
            h ^= self._piece_key(captured, captured_square)

        placed = chess.Piece(move.promotion, piece.color) if move.promotion else piece
        h ^= self._piece_key(placed, move.to_square)
        return h


_default_hasher: ZobristHasher | None = None


def default_hasher() -> ZobristHasher:
    """Process-wide hasher over the Polyglot keys."""
    global _default_hasher
    if _default_hasher is None:
        _default_hasher = ZobristHasher()
    return _default_hasher


def hash_board(board: chess.Board) -> int:
    """Identity of `board` using the default hasher."""
    return default_hasher().hash_board(board)
