"""
Exception hierarchy.

IllegalMoveError is contained per game by the ingestion pipeline.
StoreIOError and EncodingError propagate to whoever called the store.
"""

from __future__ import annotations


class OpeningBookError(Exception):
    """Base class for all opening book errors."""


class IllegalMoveError(OpeningBookError, ValueError):
    """A move token is unparseable or not legal in the given position."""

    def __init__(self, token: str, fen: str, reason: str = ""):
        self.token = token
        self.fen = fen
        self.reason = reason
        message = f"illegal move {token!r} in {fen}"
        if reason:
            message += f": {reason}"
        super().__init__(message)


class StoreIOError(OpeningBookError):
    """Backend failure while reading or writing the store."""


class EncodingError(OpeningBookError, ValueError):
    """A record could not be encoded, or stored bytes are corrupted."""
