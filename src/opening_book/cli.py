"""
Command-line interface for building and querying an opening book.
"""

import argparse
import logging
import sys
from typing import List, Optional

import chess

from opening_book.api import build_book, move_statistics, open_book
from opening_book.core.errors import OpeningBookError
from opening_book.utils.config import BOOK_MIN_N, BOOK_PATH, DEFAULT_BATCH_SIZE, Config


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Build and query a chess opening book from PGN files"
    )
    parser.add_argument(
        "--db",
        default=str(BOOK_PATH),
        help=f"Book database (default: {BOOK_PATH})",
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Log every skipped game",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    ingest = sub.add_parser("ingest", help="Merge PGN files into the book")
    ingest.add_argument("pgn", nargs="+", help="PGN files to ingest")
    ingest.add_argument(
        "--workers", "-w",
        type=int,
        default=1,
        help="Worker processes for replay (default: 1, sequential)",
    )
    ingest.add_argument(
        "--batch-size", "-b",
        type=int,
        default=DEFAULT_BATCH_SIZE,
        help=f"Games per flush (default: {DEFAULT_BATCH_SIZE})",
    )
    ingest.add_argument(
        "--max-plies",
        type=int,
        default=None,
        help="Only record the first N half-moves of each game",
    )
    ingest.add_argument(
        "--min-elo",
        type=int,
        default=None,
        help="Skip games where either player is rated below this",
    )

    query = sub.add_parser("query", help="Show book moves for a position")
    position = query.add_mutually_exclusive_group()
    position.add_argument("--fen", help="Position in FEN (default: start position)")
    position.add_argument(
        "--moves",
        help="Space-separated SAN moves from the start position (e.g. 'e4 e5 Nf3')",
    )
    query.add_argument(
        "--min-games",
        type=int,
        default=0,
        help=f"Hide moves with fewer results (book play uses {BOOK_MIN_N})",
    )

    sub.add_parser("info", help="Show book summary")
    return parser.parse_args(argv)


def board_from_args(args: argparse.Namespace) -> chess.Board:
    """Build the queried board from --fen or --moves."""
    if args.fen:
        return chess.Board(args.fen)
    board = chess.Board()
    for san in (args.moves or "").split():
        board.push_san(san)
    return board


def print_moves(board: chess.Board, args: argparse.Namespace, store) -> None:
    stats = move_statistics(store, board, min_games=args.min_games)
    if not stats:
        print("Position not in book")
        return

    white = board.turn == chess.WHITE
    print(f"{'move':<8}{'games':>8}{'white%':>9}{'draw%':>8}{'black%':>9}{'score':>8}")
    for s in stats:
        n = s.total or 1
        print(
            f"{s.move:<8}{s.total:>8}{100 * s.white_wins / n:>8.1f}%"
            f"{100 * s.draws / n:>7.1f}%{100 * s.black_wins / n:>8.1f}%"
            f"{s.score(white):>8.3f}"
        )


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        if args.command == "ingest":
            config = Config(
                db_path=args.db,
                batch_size=args.batch_size,
                num_workers=args.workers,
                max_plies=args.max_plies,
                min_elo=args.min_elo,
            )
            with open_book(config.db_path) as store:
                stats = build_book(args.pgn, store, config)
                print(f"Done: {stats.summary()} positions_total={store.count()}")

        elif args.command == "query":
            board = board_from_args(args)
            with open_book(args.db, read_only=True) as store:
                print(board.fen())
                print_moves(board, args, store)

        elif args.command == "info":
            with open_book(args.db, read_only=True) as store:
                for key, value in store.get_info().items():
                    print(f"{key}: {value}")

    except (OpeningBookError, ValueError, OSError) as e:
        print(f"error: {e}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
