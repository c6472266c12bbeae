"""
Tests for opening_book.ingest.pipeline

Tests sequential ingestion end to end: PGN text in, merged position
records out.
"""

import chess
import chess.polyglot
import pytest

from opening_book.core.errors import IllegalMoveError
from opening_book.core.hashing import ZobristHasher, hash_board
from opening_book.core.types import MoveStat, PositionStats
from opening_book.games.chess_rules import ChessRules
from opening_book.ingest.pipeline import (
    GameReplay,
    IngestStats,
    filter_reason,
    ingest_file,
    ingest_text,
)
from opening_book.memory.memory_store import InMemoryBookStore

START = hash_board(chess.Board())

REVERSED_KEYS = list(reversed(chess.polyglot.POLYGLOT_RANDOM_ARRAY))


def key_after(*sans: str) -> int:
    board = chess.Board()
    for san in sans:
        board.push_san(san)
    return hash_board(board)


class TestFilterReason:
    """filter_reason tests."""

    def test_plain_game_kept(self):
        assert filter_reason({"Event": "x"}) is None

    def test_fen_rejected(self):
        assert filter_reason({"FEN": "8/8/8/8/8/8/8/8 w - - 0 1"}) is not None

    def test_setup_rejected(self):
        assert filter_reason({"SetUp": "1"}) is not None

    @pytest.mark.parametrize("variant", ["Standard", "chess", ""])
    def test_standard_variant_kept(self, variant):
        assert filter_reason({"Variant": variant}) is None

    def test_other_variant_rejected(self):
        assert "Chess960" in filter_reason({"Variant": "Chess960"})

    def test_min_elo(self):
        headers = {"WhiteElo": "2500", "BlackElo": "1900"}
        assert filter_reason(headers) is None
        assert filter_reason(headers, min_elo=1800) is None
        assert filter_reason(headers, min_elo=2000) is not None

    def test_missing_elo_rejected_when_required(self):
        assert filter_reason({"WhiteElo": "2500"}, min_elo=2000) is not None

    def test_unparseable_elo(self):
        assert filter_reason({"WhiteElo": "?", "BlackElo": "2500"}, min_elo=2000) is not None


class TestGameReplay:
    """GameReplay tests."""

    def test_records_visited_pairs(self, rules):
        replay = GameReplay(rules)
        assert replay.push("e4")
        assert replay.push("e5")
        assert replay.visited == [(START, "e2e4"), (key_after("e4"), "e7e5")]
        assert replay.plies == 2

    def test_illegal_move_aborts(self, rules):
        replay = GameReplay(rules)
        replay.push("e4")
        assert replay.push("e4") is False
        assert replay.aborted
        assert isinstance(replay.error, IllegalMoveError)
        assert replay.visited == []

    def test_no_moves_after_abort(self, rules):
        replay = GameReplay(rules)
        replay.push("Ke2")
        assert replay.push("e4") is False
        assert replay.visited == []

    def test_max_plies(self, rules):
        replay = GameReplay(rules, max_plies=2)
        assert replay.push("e4")
        assert replay.push("e5") is False
        assert replay.push("Nf3") is False
        assert replay.plies == 2
        assert not replay.aborted

    def test_reset(self, rules):
        replay = GameReplay(rules)
        replay.push("Ke2")
        replay.reset()
        assert not replay.aborted
        assert replay.push("d4")


class TestScenarios:
    """End-to-end ingestion into a store."""

    def test_single_move_game(self, store, make_game):
        stats = ingest_text(make_game("1. e4", "1-0"), store)
        assert store.get(START) == PositionStats.from_moves(1, [MoveStat("e2e4", 1, 0, 0)])
        assert store.count() == 1
        assert stats.games_ingested == 1

    def test_second_run_merges(self, store, make_game):
        ingest_text(make_game("1. e4", "1-0"), store)
        ingest_text(make_game("1. e4", "0-1"), store)
        assert store.get(START) == PositionStats.from_moves(2, [MoveStat("e2e4", 1, 1, 0)])

    def test_illegal_game_contributes_nothing(self, store, make_game):
        text = make_game("1. e4 e5 2. Nf3", "1/2-1/2") + make_game("1. d4 d5 2. Qh5", "1-0")
        stats = ingest_text(text, store)

        assert stats.games_seen == 2
        assert stats.games_ingested == 1
        assert stats.games_aborted == 1
        assert store.count() == 3
        assert store.get(START) == PositionStats.from_moves(1, [MoveStat("e2e4", 0, 0, 1)])
        assert store.get(key_after("d4")) is None

    def test_transpositions_share_record(self, store, make_game):
        text = (
            make_game("1. e4 e5 2. Nf3 Nc6 3. Bb5", "1-0")
            + make_game("1. Nf3 Nc6 2. e4 e5 3. Bb5", "0-1")
        )
        ingest_text(text, store)
        key = key_after("e4", "e5", "Nf3", "Nc6")
        assert store.get(key) == PositionStats.from_moves(2, [MoveStat("f1b5", 1, 1, 0)])

    def test_unknown_result(self, store, make_game):
        ingest_text(make_game("1. d4", "*"), store)
        record = store.get(START)
        assert record.total_games == 1
        assert record.moves["d2d4"].total == 0

    def test_full_game(self, store, fischer_spassky):
        stats = ingest_text(fischer_spassky, store)
        assert stats.games_ingested == 1
        assert stats.games_aborted == 0
        assert sum(r.total_games for _, r in store.scan()) == 85
        assert store.get(START).moves["e2e4"].draws == 1

    def test_en_passant_marker(self, store, make_game):
        stats = ingest_text(make_game("1. e4 d5 2. e5 f5 3. exf6 e.p. Nxf6", "1-0"), store)
        assert stats.games_ingested == 1
        assert stats.games_aborted == 0
        assert store.get(key_after("e4", "d5", "e5", "f5")).moves == {"e5f6": MoveStat("e5f6", 1, 0, 0)}
        assert store.get(key_after("e4", "d5", "e5", "f5", "exf6")) is not None

    def test_final_position_not_recorded(self, store, make_game):
        ingest_text(make_game("1. e4 e5", "1-0"), store)
        assert store.get(key_after("e4", "e5")) is None


class TestOptions:
    """Batch size and game filters."""

    def test_max_plies(self, store, make_game):
        stats = ingest_text(make_game("1. e4 e5 2. Nf3 Nc6", "1-0"), store, max_plies=2)
        assert store.count() == 2
        assert stats.games_ingested == 1

    def test_min_elo(self, store, make_game):
        text = (
            make_game("1. e4", "1-0", WhiteElo="2500", BlackElo="2400")
            + make_game("1. d4", "0-1", WhiteElo="1500", BlackElo="2600")
        )
        stats = ingest_text(text, store, min_elo=2000)
        assert stats.games_filtered == 1
        assert set(store.get(START).moves) == {"e2e4"}

    def test_custom_start_filtered(self, store, make_game):
        text = make_game("1. Kd2", "1-0", SetUp="1", FEN="4k3/8/8/8/8/8/8/4K3 w - - 0 1")
        stats = ingest_text(text, store)
        assert stats.games_filtered == 1
        assert store.count() == 0

    @pytest.mark.parametrize("batch_size", [1, 2])
    def test_batch_size_does_not_change_result(self, batch_size, make_game):
        text = (
            make_game("1. e4 e5", "1-0")
            + make_game("1. e4 c5", "0-1")
            + make_game("1. d4 d5", "1/2-1/2")
        )
        batched, whole = InMemoryBookStore(), InMemoryBookStore()
        ingest_text(text, batched, batch_size=batch_size)
        ingest_text(text, whole, batch_size=100)
        assert list(batched.scan()) == list(whole.scan())

    def test_small_batches_flush_more(self, memory_store, make_game):
        text = make_game("1. e4", "1-0") * 3
        stats = ingest_text(text, memory_store, batch_size=1)
        assert stats.positions_written == 3
        assert memory_store.get(START).total_games == 3

    def test_custom_hasher(self, memory_store, make_game):
        rules = ChessRules(ZobristHasher(REVERSED_KEYS))
        ingest_text(make_game("1. e4", "1-0"), memory_store, rules=rules)
        assert memory_store.get(START) is None
        assert memory_store.get(rules.hasher.hash_board(chess.Board())) is not None


class TestIngestFile:
    """ingest_file tests."""

    def test_reads_file(self, temp_dir, memory_store, make_game):
        path = temp_dir / "games.pgn"
        path.write_text(make_game("1. e4", "1-0") + make_game("1. c4", "0-1"))
        stats = ingest_file(path, memory_store)
        assert stats.games_ingested == 2

    def test_invalid_bytes_tolerated(self, temp_dir, memory_store):
        path = temp_dir / "games.pgn"
        path.write_bytes(b'[Event "\xff\xfe"]\n\n1. e4 {caf\xe9} 1-0\n')
        stats = ingest_file(path, memory_store)
        assert stats.games_ingested == 1


class TestIngestStats:
    """IngestStats tests."""

    def test_add(self):
        a = IngestStats(games_seen=2, games_ingested=1, positions_written=5)
        b = IngestStats(games_seen=3, games_aborted=1, games_filtered=1)
        a.add(b)
        assert a == IngestStats(5, 1, 1, 1, 5)

    def test_summary(self):
        assert "games=4" in IngestStats(games_seen=4).summary()
