"""
Parallel ingestion runner with wave-based flushing.

Games are tokenized in the parent process and replayed by a pool of worker
processes in waves of batch_size games. Each wave is aggregated and flushed
to the store before the next one starts, so an interrupt loses at most the
wave in flight.
"""

from __future__ import annotations

import atexit
import logging
import multiprocessing as mp
import signal
from multiprocessing.pool import Pool
from pathlib import Path
from typing import List, Optional, TextIO

from opening_book.ingest.jobs import GameCollector, GameRecord
from opening_book.ingest.pipeline import IngestStats, open_pgn
from opening_book.ingest.worker import replay_game, worker_init
from opening_book.games.pgn_tokenizer import PgnTokenizer
from opening_book.memory.aggregator import BookAggregator
from opening_book.memory.book_store import BookStore
from opening_book.utils.config import DEFAULT_BATCH_SIZE, DEFAULT_WORKER_COUNT

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Process cleanup
# ---------------------------------------------------------------------------

_active_runners: List["IngestionRunner"] = []


def _shutdown_all():
    for runner in _active_runners[:]:
        runner.shutdown(force=True)


def _worker_init_wrapper(max_plies: Optional[int]):
    """Workers ignore SIGINT; only the main process handles Ctrl+C."""
    signal.signal(signal.SIGINT, signal.SIG_IGN)
    worker_init(max_plies)


if mp.current_process().name == "MainProcess":
    atexit.register(_shutdown_all)


# ---------------------------------------------------------------------------
# Runner
# ---------------------------------------------------------------------------

class IngestionRunner:
    """
    Replays games in parallel and merges the results into a store.

    Only the parent process aggregates and writes; workers return visited
    pairs. Merge order between games does not matter since merging counters
    is commutative.
    """

    def __init__(
        self,
        store: BookStore,
        num_workers: int = DEFAULT_WORKER_COUNT,
        batch_size: int = DEFAULT_BATCH_SIZE,
        max_plies: Optional[int] = None,
        min_elo: Optional[int] = None,
    ):
        self.store = store
        self.num_workers = num_workers
        self.batch_size = batch_size
        self.max_plies = max_plies
        self.min_elo = min_elo
        self.aggregator = BookAggregator()
        self._pool: Optional[Pool] = None

        _active_runners.append(self)

    def __enter__(self):
        self._ensure_pool()
        return self

    def __exit__(self, exc_type, *_):
        self.shutdown(force=exc_type is not None)

    def _ensure_pool(self) -> Pool:
        if self._pool is None:
            self._pool = Pool(
                processes=self.num_workers,
                initializer=_worker_init_wrapper,
                initargs=(self.max_plies,),
            )
        return self._pool

    def shutdown(self, force: bool = False) -> None:
        if self in _active_runners:
            _active_runners.remove(self)

        if self._pool is None:
            return

        pool, self._pool = self._pool, None
        pool.terminate() if force else pool.close()
        pool.join()

    def run(self, stream: TextIO) -> IngestStats:
        """Ingest every game in `stream`, one wave of batch_size games at a time."""
        pool = self._ensure_pool()
        collector = GameCollector(self.max_plies, self.min_elo)
        tokenizer = PgnTokenizer(collector)
        stats = IngestStats()

        try:
            while tokenizer.read_game(stream):
                if len(collector.records) >= self.batch_size:
                    self._run_wave(pool, collector.take(), stats)
            self._run_wave(pool, collector.take(), stats)

        except KeyboardInterrupt:
            logger.info("Interrupted, completed waves already committed")
            raise

        stats.games_seen = collector.games_seen
        stats.games_filtered = collector.games_filtered
        logger.info("Ingestion finished: %s", stats.summary())
        return stats

    def run_file(self, path: str | Path) -> IngestStats:
        with open_pgn(path) as stream:
            return self.run(stream)

    def _run_wave(self, pool: Pool, records: List[GameRecord], stats: IngestStats) -> None:
        if not records:
            return

        chunksize = max(1, len(records) // (self.num_workers * 4))
        for result in pool.map(replay_game, records, chunksize=chunksize):
            if result.aborted:
                stats.games_aborted += 1
                logger.debug("Skipped game %d: %s", result.index, result.error)
                continue
            self.aggregator.merge_game(result.outcome, result.visited)
            stats.games_ingested += 1

        stats.positions_written += self.aggregator.flush(self.store)
        logger.info(
            "Wave of %d games committed (%d ingested so far)",
            len(records), stats.games_ingested,
        )
