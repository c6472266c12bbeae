"""
Selection module - querying the book for move statistics.

Functions:
    lookup           - stored PositionStats for a board
    move_statistics  - book moves for a board, most played first
    select_book_move - best-scoring legal book move for the side to move
"""

from opening_book.selection.inference import lookup, move_statistics, select_book_move

__all__ = [
    "lookup",
    "move_statistics",
    "select_book_move",
]
