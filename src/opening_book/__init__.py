"""
Opening Book - position statistics aggregated from chess game records.

This package replays PGN game collections, identifies every position reached
by its Polyglot Zobrist hash and merges per-move win/draw/loss counters into a
persistent store.

Quick Start:
    import chess

    from opening_book import open_book, build_book, move_statistics

    with open_book("data/book.db") as store:
        build_book(["games.pgn"], store)
        print(move_statistics(store, chess.Board()))

Modules:
    core      - Fundamental types, Zobrist hashing, record codec, errors
    games     - python-chess rules adapter and PGN game reader
    memory    - Book stores (SQLite, in-memory) and the batch aggregator
    ingest    - Sequential pipeline and parallel ingestion runner
    selection - Book queries and move selection
    scripts   - Ingestion throughput benchmark
"""

from opening_book.api import (
    open_book,
    build_book,
    lookup,
    move_statistics,
    select_book_move,
)

from opening_book.core import GameOutcome, MoveStat, PositionStats

__version__ = "1.0.0"

__all__ = [
    # Main API
    "open_book",
    "build_book",
    "lookup",
    "move_statistics",
    "select_book_move",
    # Types
    "GameOutcome",
    "MoveStat",
    "PositionStats",
]
