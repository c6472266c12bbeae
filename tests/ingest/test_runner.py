"""
Tests for opening_book.ingest.runner

Tests IngestionRunner for parallel replay against the sequential pipeline.
"""

import io

import pytest

from opening_book.ingest.pipeline import ingest_text
from opening_book.ingest.runner import (
    DEFAULT_WORKER_COUNT,
    IngestionRunner,
    _active_runners,
)
from opening_book.memory.memory_store import InMemoryBookStore


@pytest.fixture(autouse=True)
def cleanup_globals():
    """Ensure the runner registry is clean before and after each test."""
    _active_runners.clear()
    yield
    for runner in _active_runners[:]:
        runner.shutdown(force=True)
    _active_runners.clear()


@pytest.fixture
def sample_games(make_game, fischer_spassky) -> str:
    return (
        make_game("1. e4 e5 2. Nf3 Nc6 3. Bb5", "1-0")
        + make_game("1. Nf3 Nc6 2. e4 e5 3. Bb5", "0-1")
        + make_game("1. d4 d5 2. Qh5", "1-0")
        + make_game("1. c4", "*", Variant="Crazyhouse")
        + make_game("1. d4 Nf6 2. c4 e6", "1/2-1/2")
        + fischer_spassky
    )


class TestDefaultWorkerCount:
    """DEFAULT_WORKER_COUNT tests."""

    def test_positive(self):
        """At least 1 worker."""
        assert DEFAULT_WORKER_COUNT >= 1


class TestGlobalRegistry:
    """Cleanup infrastructure."""

    def test_registers_on_init(self, memory_store):
        runner = IngestionRunner(memory_store, num_workers=1)
        assert runner in _active_runners
        runner.shutdown()

    def test_unregisters_on_shutdown(self, memory_store):
        runner = IngestionRunner(memory_store, num_workers=1)
        runner.shutdown()
        assert runner not in _active_runners

    def test_shutdown_without_pool(self, memory_store):
        """Shutdown before any work is a no-op."""
        runner = IngestionRunner(memory_store, num_workers=1)
        runner.shutdown(force=True)
        assert runner._pool is None


class TestRun:
    """Parallel ingestion results."""

    @pytest.mark.parametrize("num_workers", [1, 2])
    def test_matches_sequential(self, sample_games, num_workers):
        parallel, sequential = InMemoryBookStore(), InMemoryBookStore()
        with IngestionRunner(parallel, num_workers=num_workers, batch_size=2) as runner:
            stats = runner.run(io.StringIO(sample_games))
        expected = ingest_text(sample_games, sequential)

        assert list(parallel.scan()) == list(sequential.scan())
        assert stats.games_seen == expected.games_seen == 6
        assert stats.games_ingested == expected.games_ingested == 4
        assert stats.games_aborted == expected.games_aborted == 1
        assert stats.games_filtered == expected.games_filtered == 1

    def test_max_plies_and_min_elo(self, make_game):
        text = (
            make_game("1. e4 e5 2. Nf3", "1-0", WhiteElo="2600", BlackElo="2550")
            + make_game("1. d4 d5", "0-1", WhiteElo="1000", BlackElo="2550")
        )
        parallel, sequential = InMemoryBookStore(), InMemoryBookStore()
        with IngestionRunner(parallel, num_workers=1, max_plies=2, min_elo=2000) as runner:
            stats = runner.run(io.StringIO(text))
        ingest_text(text, sequential, max_plies=2, min_elo=2000)

        assert list(parallel.scan()) == list(sequential.scan())
        assert parallel.count() == 2
        assert stats.games_filtered == 1

    def test_run_file(self, temp_dir, make_game, sqlite_store):
        path = temp_dir / "games.pgn"
        path.write_text(make_game("1. e4", "1-0") * 4)
        with IngestionRunner(sqlite_store, num_workers=1) as runner:
            stats = runner.run_file(path)
        assert stats.games_ingested == 4
        assert sqlite_store.count() == 1

    def test_waves_flush_incrementally(self, make_game, memory_store):
        text = make_game("1. e4", "1-0") * 5
        with IngestionRunner(memory_store, num_workers=1, batch_size=2) as runner:
            stats = runner.run(io.StringIO(text))
        # waves of 2, 2 and 1 games, each writing the start position
        assert stats.positions_written == 3
        assert runner.aggregator.pending_positions == 0

    def test_empty_stream(self, memory_store):
        with IngestionRunner(memory_store, num_workers=1) as runner:
            stats = runner.run(io.StringIO(""))
        assert stats.games_seen == 0
        assert memory_store.count() == 0
