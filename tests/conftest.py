"""
Shared test fixtures for opening_book tests.

Design principles:
- Backend-agnostic store fixtures where possible
- Clean imports at module level
- Minimal, focused fixtures
"""

import tempfile
from pathlib import Path
from typing import Generator

import pytest

from opening_book.core.hashing import ZobristHasher
from opening_book.core.types import MoveStat, PositionStats
from opening_book.games.chess_rules import ChessRules
from opening_book.memory.book_store import BookStore
from opening_book.memory.memory_store import InMemoryBookStore
from opening_book.memory.sqlite_store import SqliteBookStore


# =============================================================================
# Sample PGN
# =============================================================================

# Fischer - Spassky, Belgrade 1992, game 29
FISCHER_SPASSKY = """[Event "F/S Return Match"]
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

def _make_game(moves: str, result: str = "*", **tags: str) -> str:
    """Build a minimal PGN game."""
    headers = {"Event": "Test", "Result": result, **tags}
    tag_lines = "\n".join(f'[{k} "{v}"]' for k, v in headers.items())
    return f"{tag_lines}\n\n{moves} {result}\n\n"


@pytest.fixture
def make_game():
    """Builder for single-game PGN text."""
    return _make_game


@pytest.fixture
def fischer_spassky() -> str:
    return FISCHER_SPASSKY


# =============================================================================
# Path Fixtures
# =============================================================================

@pytest.fixture
def temp_db_path() -> Generator[Path, None, None]:
    """Temporary database file with cleanup."""
    with tempfile.TemporaryDirectory() as d:
        yield Path(d) / "book.db"


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Temporary directory with cleanup."""
    with tempfile.TemporaryDirectory() as d:
        yield Path(d)


# =============================================================================
# Stats Fixtures
# =============================================================================

@pytest.fixture
def empty_stats() -> PositionStats:
    return PositionStats()


@pytest.fixture
def sample_stats() -> PositionStats:
    return PositionStats.from_moves(10, [
        MoveStat("e2e4", 4, 1, 5),
    ])


@pytest.fixture
def varied_stats() -> PositionStats:
    return PositionStats.from_moves(30, [
        MoveStat("e2e4", 10, 5, 3),
        MoveStat("d2d4", 4, 4, 2),
        MoveStat("g1f3", 0, 1, 0),
    ])


# =============================================================================
# Game Fixtures
# =============================================================================

@pytest.fixture
def hasher() -> ZobristHasher:
    return ZobristHasher()


@pytest.fixture
def rules(hasher: ZobristHasher) -> ChessRules:
    return ChessRules(hasher)


# =============================================================================
# Store Fixtures
# =============================================================================

@pytest.fixture
def sqlite_store(temp_db_path: Path) -> Generator[SqliteBookStore, None, None]:
    """SqliteBookStore instance with temporary database."""
    store = SqliteBookStore(temp_db_path)
    yield store
    store.close()


@pytest.fixture
def memory_store() -> Generator[InMemoryBookStore, None, None]:
    store = InMemoryBookStore()
    yield store
    store.close()


@pytest.fixture(params=["sqlite", "memory"])
def store(request, temp_db_path: Path) -> Generator[BookStore, None, None]:
    """Every store backend in turn."""
    if request.param == "sqlite":
        s: BookStore = SqliteBookStore(temp_db_path)
    else:
        s = InMemoryBookStore()
    yield s
    s.close()
