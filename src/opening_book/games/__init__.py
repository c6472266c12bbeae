"""
Game collaborators: chess rules and PGN tokenization.
"""

from opening_book.games.chess_rules import ChessRules, Position
from opening_book.games.pgn_tokenizer import GameHandler, PgnTokenizer, RESULT_TAGS

__all__ = [
    "ChessRules",
    "Position",
    "GameHandler",
    "PgnTokenizer",
    "RESULT_TAGS",
]
