"""
Public API for building and querying an opening book.

Usage:
    from opening_book import open_book, build_book, move_statistics

    with open_book("data/book.db") as store:
        build_book(["games.pgn"], store)
        for stat in move_statistics(store, chess.Board()):
            print(stat.move, stat.total)
"""

from __future__ import annotations

from pathlib import Path
from typing import Iterable, Optional

from opening_book.ingest import IngestionRunner, IngestStats, ingest_file
from opening_book.memory import SqliteBookStore
from opening_book.memory.book_store import BookStore
from opening_book.selection import lookup, move_statistics, select_book_move
from opening_book.utils.config import BOOK_METADATA, BOOK_PATH, Config, DEFAULT_CONFIG


def open_book(db_path: str | Path = BOOK_PATH, read_only: bool = False) -> SqliteBookStore:
    """
    Open a book database and check it was built with this codec and hasher.

    The returned store is a context manager; closing it checkpoints the WAL.
    """
    store = SqliteBookStore(db_path, read_only=read_only)
    try:
        store.ensure_metadata(BOOK_METADATA)
    except BaseException:
        store.close()
        raise
    return store


def build_book(
    pgn_paths: Iterable[str | Path],
    store: BookStore,
    config: Optional[Config] = None,
) -> IngestStats:
    """
    Ingest PGN files into `store`.

    Parameters
    ----------
    pgn_paths : Iterable[str | Path]
        PGN files, ingested in order.
    store : BookStore
        Destination; records are merged, never overwritten.
    config : Config, optional
        Batch size, worker count and game filters. With more than one worker
        games are replayed in a process pool.
    """
    config = config or DEFAULT_CONFIG
    total = IngestStats()

    if config.parallel:
        with IngestionRunner(
            store,
            num_workers=config.num_workers,
            batch_size=config.batch_size,
            max_plies=config.max_plies,
            min_elo=config.min_elo,
        ) as runner:
            for path in pgn_paths:
                total.add(runner.run_file(path))
        return total

    for path in pgn_paths:
        total.add(ingest_file(
            path,
            store,
            batch_size=config.batch_size,
            max_plies=config.max_plies,
            min_elo=config.min_elo,
        ))
    return total


__all__ = [
    "open_book",
    "build_book",
    "lookup",
    "move_statistics",
    "select_book_move",
]
