"""
Ingestion module - replaying game records into the book.

Provides a sequential pipeline driven by the PGN tokenizer and a parallel
runner that replays games in worker processes.
"""

from opening_book.ingest.pipeline import (
    GameReplay,
    IngestStats,
    ReplayHandler,
    filter_reason,
    ingest_file,
    ingest_stream,
    ingest_text,
)
from opening_book.ingest.jobs import GameCollector, GameRecord, ReplayResult
from opening_book.ingest.runner import IngestionRunner

__all__ = [
    "GameReplay",
    "IngestStats",
    "ReplayHandler",
    "filter_reason",
    "ingest_file",
    "ingest_stream",
    "ingest_text",
    "GameCollector",
    "GameRecord",
    "ReplayResult",
    "IngestionRunner",
]
