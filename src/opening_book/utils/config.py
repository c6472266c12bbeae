"""
Configuration and defaults.
"""

import multiprocessing as mp
from pathlib import Path
from typing import Optional

from opening_book.core.codec import CODEC_VERSION
from opening_book.core.hashing import HASH_SCHEME


# ---------------------------------------------------------------------------
# Paths
# ---------------------------------------------------------------------------

PACKAGE_DIR = Path(__file__).parent.parent  # src/opening_book/
DATA_DIR = PACKAGE_DIR / "data"
BOOK_PATH = DATA_DIR / "opening_book.db"


# ---------------------------------------------------------------------------
# Default Settings
# ---------------------------------------------------------------------------

# Games replayed between two flushes of the aggregator
DEFAULT_BATCH_SIZE = 5_000

# Minimum number of games before a book move is trusted
BOOK_MIN_N = 8

DEFAULT_WORKER_COUNT = max(1, mp.cpu_count() - 1)

# Written into every book; a book is only extended with matching values
BOOK_METADATA = {
    "codec_version": str(CODEC_VERSION),
    "hash_scheme": HASH_SCHEME,
}


class Config:
    """Ingestion configuration with sensible defaults."""

    def __init__(
        self,
        db_path: str | Path = BOOK_PATH,
        batch_size: int = DEFAULT_BATCH_SIZE,
        num_workers: int = 1,
        max_plies: Optional[int] = None,
        min_elo: Optional[int] = None,
    ):
        if batch_size < 1:
            raise ValueError(f"batch_size must be positive, got {batch_size}")
        if num_workers < 1:
            raise ValueError(f"num_workers must be positive, got {num_workers}")
        if max_plies is not None and max_plies < 1:
            raise ValueError(f"max_plies must be positive, got {max_plies}")

        self.db_path = Path(db_path)
        self.batch_size = batch_size
        self.num_workers = num_workers
        self.max_plies = max_plies
        self.min_elo = min_elo or None

    @property
    def parallel(self) -> bool:
        return self.num_workers > 1


# Default configuration
DEFAULT_CONFIG = Config()
