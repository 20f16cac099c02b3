"""
Thin facade over python-chess Board and PGN machinery.

This is the rules engine the rest of the package talks to: legality, side to
move, FEN, termination predicates and piece lookup. Nothing outside this
module touches python-chess board internals, which keeps the game loop and
the bots easy to unit-test.
"""

from __future__ import annotations

from datetime import datetime

import chess
import chess.pgn

from juniorchess.events import Color, GameResult
from juniorchess.history import QUEEN, Move

_PIECE_KINDS = {
    chess.PAWN: "p",
    chess.KNIGHT: "n",
    chess.BISHOP: "b",
    chess.ROOK: "r",
    chess.QUEEN: "q",
    chess.KING: "k",
}


def turn_of(fen: str) -> Color:
    """Side to move encoded in a FEN string."""
    fields = fen.split()
    return "black" if len(fields) > 1 and fields[1] == "b" else "white"


class ChessBoard:
    """Facade over chess.Board + chess.pgn.Game."""

    def __init__(self, fen: str | None = None) -> None:
        self._board = chess.Board(fen) if fen else chess.Board()
        self._game = chess.pgn.Game()
        if fen:
            self._game.setup(self._board)
        self._node: chess.pgn.GameNode = self._game
        self._game.headers["Date"] = datetime.now().strftime("%Y.%m.%d")
        self._game.headers["Event"] = "Junior Chess"

    # ------------------------------------------------------------------ #
    # State queries                                                        #
    # ------------------------------------------------------------------ #

    @property
    def fen(self) -> str:
        return self._board.fen()

    @property
    def turn(self) -> Color:
        return "white" if self._board.turn == chess.WHITE else "black"

    @property
    def fullmove_number(self) -> int:
        return self._board.fullmove_number

    @property
    def is_check(self) -> bool:
        return self._board.is_check()

    @property
    def is_game_over(self) -> bool:
        # Claimable draws (threefold repetition, fifty-move) end the game:
        # nobody is around to claim them in bot play.
        return self._board.is_game_over(claim_draw=True)

    def piece_kind_at(self, square: str) -> str | None:
        """Lower-case piece letter ("p", "n", ... "k") on a square, or None if empty."""
        try:
            piece = self._board.piece_at(chess.parse_square(square))
        except ValueError:
            return None
        return None if piece is None else _PIECE_KINDS[piece.piece_type]

    def has_insufficient_material(self, color: Color) -> bool:
        return self._board.has_insufficient_material(
            chess.WHITE if color == "white" else chess.BLACK
        )

    def ascii(self) -> str:
        return str(self._board)

    # ------------------------------------------------------------------ #
    # Move application                                                    #
    # ------------------------------------------------------------------ #

    def parse_move(self, move_str: str) -> Move | None:
        """
        Parse a human move string in UCI (e2e4, a7a8q) or SAN (e4, Nf3, O-O).

        Returns a Move bound to the current position, or None when the string
        is not a legal move here. A pawn move to the last rank without a piece
        letter (a7a8) promotes to a queen.
        """
        s = move_str.strip()
        try:
            parsed = chess.Move.from_uci(s.lower())
        except (ValueError, chess.InvalidMoveError):
            try:
                parsed = self._board.parse_san(s)
            except (ValueError, chess.InvalidMoveError, chess.IllegalMoveError, chess.AmbiguousMoveError):
                return None
        if parsed not in self._board.legal_moves and not parsed.promotion:
            parsed = chess.Move(parsed.from_square, parsed.to_square, promotion=chess.QUEEN)
        if parsed not in self._board.legal_moves:
            return None
        promotion = chess.piece_symbol(parsed.promotion) if parsed.promotion else None
        return Move.from_uci(parsed.uci()[:4], origin_fen=self.fen, promotion=promotion)

    def _to_chess_move(self, move: Move) -> chess.Move | None:
        try:
            from_square = chess.parse_square(move.source)
            to_square = chess.parse_square(move.target)
        except ValueError:
            return None
        candidate = chess.Move(from_square, to_square)
        if candidate in self._board.legal_moves:
            return candidate
        # Pawn reaching the last rank: honour the requested piece, queen by default.
        letter = (move.promotion or QUEEN).lower()
        if letter not in "nbrq":
            return None
        promoted = chess.Move(from_square, to_square, promotion=chess.Piece.from_symbol(letter).piece_type)
        return promoted if promoted in self._board.legal_moves else None

    def apply_move(self, move: Move) -> str | None:
        """
        Apply a move if it is legal. Returns its SAN string, or None when the
        move was rejected (the board is left untouched).
        """
        parsed = self._to_chess_move(move)
        if parsed is None:
            return None
        san = self._board.san(parsed)
        self._board.push(parsed)
        self._node = self._node.add_variation(parsed)
        return san

    # ------------------------------------------------------------------ #
    # Game-over info                                                      #
    # ------------------------------------------------------------------ #

    def game_over_reason(self) -> str:
        outcome = self._board.outcome(claim_draw=True)
        if outcome is None:
            return "unknown"
        match outcome.termination:
            case chess.Termination.CHECKMATE:
                return "checkmate"
            case chess.Termination.STALEMATE:
                return "stalemate"
            case chess.Termination.THREEFOLD_REPETITION:
                return "threefold_repetition"
            case chess.Termination.FIFTY_MOVES:
                return "fifty_move"
            case chess.Termination.INSUFFICIENT_MATERIAL:
                return "insufficient_material"
            case _:
                return "draw"

    def result(self) -> GameResult:
        outcome = self._board.outcome(claim_draw=True)
        if outcome is None:
            return "*"
        return outcome.result()  # type: ignore[return-value]

    def winner_color(self) -> Color | None:
        outcome = self._board.outcome(claim_draw=True)
        if outcome is None or outcome.winner is None:
            return None
        return "white" if outcome.winner == chess.WHITE else "black"

    # ------------------------------------------------------------------ #
    # PGN                                                                 #
    # ------------------------------------------------------------------ #

    def set_players(self, white_name: str, black_name: str) -> None:
        self._game.headers["White"] = white_name
        self._game.headers["Black"] = black_name

    def set_result(self, result: str) -> None:
        self._game.headers["Result"] = result

    def to_pgn(self) -> str:
        exporter = chess.pgn.StringExporter(headers=True, variations=False, comments=False)
        return self._game.accept(exporter)
