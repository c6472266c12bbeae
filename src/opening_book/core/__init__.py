"""
Core module - fundamental types, hashing, record codec and errors.

This module provides the building blocks used throughout the opening book.
"""

from opening_book.core.types import (
    GameOutcome,
    MoveStat,
    PositionStats,
    PositionIdentity,
    VisitedPair,
    combine,
)
from opening_book.core.errors import (
    OpeningBookError,
    IllegalMoveError,
    StoreIOError,
    EncodingError,
)
from opening_book.core.hashing import ZobristHasher, HASH_SCHEME, hash_board, default_hasher
from opening_book.core.codec import CODEC_VERSION, encode_stats, decode_stats

__all__ = [
    # Types
    "GameOutcome",
    "MoveStat",
    "PositionStats",
    "PositionIdentity",
    "VisitedPair",
    "combine",
    # Errors
    "OpeningBookError",
    "IllegalMoveError",
    "StoreIOError",
    "EncodingError",
    # Hashing
    "ZobristHasher",
    "HASH_SCHEME",
    "hash_board",
    "default_hasher",
    # Codec
    "CODEC_VERSION",
    "encode_stats",
    "decode_stats",
]
