"""
PGN game reader.

Runs python-chess's PGN parser with a visitor that forwards a push sequence
of game events to a GameHandler:

    begin_game()
    header(name, value)      once per tag pair
    end_headers()            return False to skip the game's movetext
    move_token(token)        once per mainline move, in order
    end_game(result_tag)

Comments, NAGs, annotation glyphs, move numbers, "e.p." markers and
variations never reach the handler. Legality is the handler's business; the
parser's own board only keeps its SAN resolution in step.
"""

from __future__ import annotations

import functools
import logging
from typing import Dict, Optional, TextIO

import chess
import chess.pgn

logger = logging.getLogger(__name__)

RESULT_TAGS = ("1-0", "0-1", "1/2-1/2", "*")


class GameHandler:
    """Receiver of tokenizer events. Subclasses override what they need."""

    def begin_game(self) -> None:
        pass

    def header(self, name: str, value: str) -> None:
        pass

    def end_headers(self) -> bool:
        """Called once the tag pairs are read. Return False to skip the game."""
        return True

    def move_token(self, token: str) -> bool:
        """Handle one move token. Return False to skip the rest of the game."""
        return True

    def end_game(self, result_tag: str) -> None:
        pass


class HandlerVisitor(chess.pgn.BaseVisitor):
    """Forwards the parser callbacks of one game to a GameHandler."""

    def __init__(self, handler: GameHandler):
        self.handler = handler
        self.headers: Dict[str, str] = {}
        self.terminator: Optional[str] = None
        self.skipping = False

    def begin_game(self) -> None:
        self.handler.begin_game()

    def visit_header(self, tagname: str, tagvalue: str) -> None:
        self.headers[tagname] = tagvalue
        self.handler.header(tagname, tagvalue)

    def end_headers(self):
        if self.handler.end_headers() is False:
            self.skipping = True
            return chess.pgn.SKIP
        return None

    def begin_variation(self):
        return chess.pgn.SKIP

    def begin_parse_san(self, board: chess.Board, san: str):
        return chess.pgn.SKIP if self.skipping else None

    def parse_san(self, board: chess.Board, san: str) -> chess.Move:
        if not self.skipping and self.handler.move_token(san) is False:
            self.skipping = True
        # Raises ValueError on an illegal token; the parser hands it to
        # handle_error and drops the rest of the mainline.
        return board.parse_san(san)

    def handle_error(self, error: Exception) -> None:
        self.skipping = True
        logger.debug("Stopped reading game movetext: %s", error)

    def visit_result(self, result: str) -> None:
        self.terminator = result

    def end_game(self) -> None:
        # A valid Result tag wins over the movetext terminator
        result = self.headers.get("Result")
        if result not in RESULT_TAGS:
            result = self.terminator or "*"
        self.handler.end_game(result)

    def result(self) -> bool:
        return True


class PgnTokenizer:
    """
    Reads games from a text stream and pushes their events to a handler.

    read_game() consumes exactly one game, so drivers can do other work
    (such as flushing to a store) between games rather than inside handler
    callbacks.
    """

    def __init__(self, handler: GameHandler):
        self.handler = handler
        self.games = 0
        self._visitor = functools.partial(HandlerVisitor, handler)

    def read_game(self, handle: TextIO) -> bool:
        """Read the next game from `handle`. Returns False at end of input."""
        if chess.pgn.read_game(handle, Visitor=self._visitor) is None:
            return False
        self.games += 1
        return True

    def run(self, handle: TextIO) -> int:
        """Read every remaining game. Returns the number of games read."""
        while self.read_game(handle):
            pass
        return self.games
