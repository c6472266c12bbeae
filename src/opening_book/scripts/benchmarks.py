#!/usr/bin/env python3
"""
Ingestion Throughput Benchmark
==============================

Location: src/opening_book/scripts/benchmarks.py

This script times the layers of PGN ingestion separately, so a slowdown can
be pinned on the parser, the rules engine and hasher, or the store.

USAGE
-----
    python -m opening_book.scripts.benchmarks [num_games] [options]

ARGUMENTS
---------
    num_games   Copies of the sample game to ingest (default: 200)

OPTIONS
-------
    --sqlite    Ingest into a temporary SQLite book instead of memory
    --file      Treat the positional argument as a PGN file to benchmark

EXAMPLES
--------
    # 200 copies of Fischer-Spassky 1992, game 29, into memory
    python -m opening_book.scripts.benchmarks

    # 1000 copies into a throwaway SQLite book
    python -m opening_book.scripts.benchmarks 1000 --sqlite

    # A real collection
    python -m opening_book.scripts.benchmarks games.pgn --file --sqlite

OUTPUT
------
One line per stage with elapsed time, games/s and MB/s of PGN text:

1. tokenize     PGN parsing only; every event is discarded
2. replay+hash  Parsing plus rules-engine replay and incremental hashing
3. ingest       Full pipeline: replay, aggregate and flush to the store

| Symptom                      | Likely Cause                               |
|------------------------------|--------------------------------------------|
| tokenize close to replay     | Parser dominates; nothing to gain in rules |
| ingest >> replay (sqlite)    | Batch too small, too many commits          |
| ingest >> replay (memory)    | Record codec or aggregation overhead       |
"""

import io
import sys
import tempfile
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, List, Optional

from opening_book.games.chess_rules import ChessRules
from opening_book.games.pgn_tokenizer import GameHandler, PgnTokenizer
from opening_book.ingest.pipeline import GameReplay, ingest_text
from opening_book.memory.book_store import BookStore
from opening_book.memory.memory_store import InMemoryBookStore
from opening_book.memory.sqlite_store import SqliteBookStore

SAMPLE_GAME = """[Event "F/S Return Match"]
[Site "Belgrade, Serbia JUG"]
[Date "1992.11.04"]
[Round "29"]
[White "Fischer, Robert J."]
[Black "Spassky, Boris V."]
[Result "1/2-1/2"]

1. e4 e5 2. Nf3 Nc6 3. Bb5 a6 {This opening is called the Ruy Lopez.}
4. Ba4 Nf6 5. O-O Be7 6. Re1 b5 7. Bb3 d6 8. c3 O-O 9. h3 Nb8 10. d4 Nbd7
11. c4 c6 12. cxb5 axb5 13. Nc3 Bb7 14. Bg5 b4 15. Nb1 h6 16. Bh4 c5 17. dxe5
Nxe4 18. Bxe7 Qxe7 19. exd6 Qf6 20. Nbd2 Nxd6 21. Nc4 Nxc4 22. Bxc4 Nb6
23. Ne5 Rae8 24. Bxf7+ Rxf7 25. Nxf7 Rxe1+ 26. Qxe1 Kxf7 27. Qe3 Qg5 28. Qxg5
hxg5 29. b3 Ke6 30. a3 Kd6 31. axb4 cxb4 32. Ra5 Nd5 33. f3 Bc8 34. Kf2 Bf5
35. Ra7 g6 36. Ra6+ Kc5 37. Ke1 Nf4 38. g3 Nxh3 39. Kd2 Kb5 40. Rd6 Kc5 41. Ra6
Nf2 42. g4 Bd3 43. Re6 1/2-1/2

"""

DEFAULT_NUM_GAMES = 200


@dataclass
class BenchResult:
    """Timing of one benchmark stage."""
    name: str
    games: int
    num_bytes: int
    elapsed: float

    @property
    def games_per_sec(self) -> float:
        return self.games / self.elapsed if self.elapsed else 0.0

    @property
    def mb_per_sec(self) -> float:
        return self.num_bytes / 1e6 / self.elapsed if self.elapsed else 0.0


class ReplayOnlyHandler(GameHandler):
    """Replays and hashes every game without aggregating anything."""

    def __init__(self, rules: ChessRules):
        self.replay = GameReplay(rules)
        self.plies = 0

    def begin_game(self) -> None:
        self.replay.reset()

    def move_token(self, token: str) -> bool:
        return self.replay.push(token)

    def end_game(self, result_tag: str) -> None:
        self.plies += self.replay.plies


def sample_text(num_games: int) -> str:
    return SAMPLE_GAME * num_games


def _timed(name: str, text: str, run: Callable[[], int]) -> BenchResult:
    start = time.perf_counter()
    games = run()
    elapsed = time.perf_counter() - start
    return BenchResult(name, games, len(text.encode("utf-8")), elapsed)


def bench_tokenize(text: str) -> BenchResult:
    return _timed(
        "tokenize", text,
        lambda: PgnTokenizer(GameHandler()).run(io.StringIO(text)),
    )


def bench_replay(text: str, rules: Optional[ChessRules] = None) -> BenchResult:
    handler = ReplayOnlyHandler(rules or ChessRules())
    return _timed(
        "replay+hash", text,
        lambda: PgnTokenizer(handler).run(io.StringIO(text)),
    )


def bench_ingest(text: str, store: BookStore) -> BenchResult:
    return _timed("ingest", text, lambda: ingest_text(text, store).games_seen)


def run_all(text: str, store: BookStore) -> List[BenchResult]:
    """Run every stage on `text`, ingesting into `store`."""
    return [bench_tokenize(text), bench_replay(text), bench_ingest(text, store)]


def print_results(results: List[BenchResult]) -> None:
    print("\n" + "=" * 64)
    print(f"{'Stage':<14} {'Games':>8} {'Time':>10} {'Games/s':>12} {'MB/s':>10}")
    print("-" * 64)
    for r in results:
        print(
            f"{r.name:<14} "
            f"{r.games:>8} "
            f"{r.elapsed:>9.3f}s "
            f"{r.games_per_sec:>12.1f} "
            f"{r.mb_per_sec:>10.2f}"
        )
    print("=" * 64)


def main(argv: Optional[List[str]] = None) -> int:
    argv = sys.argv[1:] if argv is None else argv

    if "--help" in argv or "-h" in argv:
        print(__doc__)
        return 0

    args = [a for a in argv if not a.startswith("-")]
    flags = [a for a in argv if a.startswith("-")]

    use_sqlite = False
    from_file = False
    for flag in flags:
        if flag == "--sqlite":
            use_sqlite = True
        elif flag == "--file":
            from_file = True
        else:
            print(f"Unknown flag: {flag}")
            print("Use --help for usage information")
            return 1

    if len(args) > 1:
        print(f"Unexpected arguments: {' '.join(args[1:])}")
        return 1

    if from_file:
        if not args:
            print("--file needs a PGN path")
            return 1
        path = Path(args[0])
        text = path.read_text(encoding="utf-8", errors="replace")
        source = str(path)
    else:
        num_games = DEFAULT_NUM_GAMES
        if args:
            if not args[0].isdigit() or int(args[0]) < 1:
                print(f"num_games must be a positive integer, got {args[0]}")
                return 1
            num_games = int(args[0])
        text = sample_text(num_games)
        source = f"{num_games} x sample game"

    print(f"\n{'=' * 64}")
    print(f"Benchmarking: {source} ({len(text) / 1e6:.2f} MB)")
    print(f"Store: {'sqlite' if use_sqlite else 'memory'}")
    print(f"{'=' * 64}")

    if use_sqlite:
        with tempfile.TemporaryDirectory() as tmp:
            with SqliteBookStore(Path(tmp) / "bench.db") as store:
                results = run_all(text, store)
                positions = store.count()
    else:
        with InMemoryBookStore() as store:
            results = run_all(text, store)
            positions = store.count()

    print_results(results)
    print(f"Positions in book: {positions:,}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
