"""
UCI engine line parsing and command building.

parse_line() is pure and total: every input line maps to exactly one
EngineEvent, and anything malformed or uninteresting becomes UNRECOGNIZED
instead of raising.

Example lines:
    info depth 16 seldepth 17 multipv 3 score cp 1236 nodes 51778 ... pv f3g4 g1f2
    info depth 2 seldepth 6 multipv 2 score mate -5 nodes 132 ... pv h2h3 e2e3
    bestmove d1f1 ponder e2e3
    bestmove (none)

Score sign convention (pinned by tests/test_protocol.py):
    Info.score    centipawns / 100, negated when White is to move; mate scores
                  keep the engine's signed ply count. This is the value shown
                  as the live evaluation.
    Info.relative the engine's own side-to-move-relative score, untouched.
                  Move selection and game analysis derive their numbers from it.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from itertools import takewhile
from typing import Literal

from juniorchess.events import Color

ScoreKind = Literal["cp", "mate"]
BoundKind = Literal["upper", "lower"]

NO_MOVE = "(none)"
MATE_PAWNS = 50.0

_UCI_MOVE_RE = re.compile(r"^[a-h][1-8][a-h][1-8][qrbn]?$")


@dataclass(frozen=True)
class Score:
    kind: ScoreKind
    value: float          # pawns for "cp", signed plies to mate for "mate"
    bound: BoundKind | None = None

    def pawns(self) -> float:
        """Comparable pawn value; mates sit beyond any material score."""
        if self.kind == "cp":
            return self.value
        if self.value >= 0:
            return MATE_PAWNS - self.value
        return -(MATE_PAWNS + self.value)

    def from_white(self, turn: Color) -> Score:
        """Convert a side-to-move-relative score to White's point of view."""
        if turn == "white":
            return self
        bound = {"upper": "lower", "lower": "upper"}.get(self.bound) if self.bound else None
        return Score(self.kind, -self.value, bound)  # type: ignore[arg-type]

    def describe(self) -> str:
        if self.kind == "mate":
            return f"Mate in {abs(int(self.value))}"
        return f"{self.value:.2f}"

    def __str__(self) -> str:
        text = f"#{int(self.value)}" if self.kind == "mate" else f"{self.value:.2f}"
        if self.bound == "upper":
            return f"<= {text}"
        if self.bound == "lower":
            return f">= {text}"
        return text


@dataclass(frozen=True)
class FinalMove:
    move: str
    ponder: str | None = None

    @property
    def has_move(self) -> bool:
        return self.move != NO_MOVE


@dataclass(frozen=True)
class Info:
    score: Score                 # display convention, see module docstring
    relative: Score              # as reported by the engine
    move: str | None = None      # first move of the principal variation
    pv: tuple[str, ...] = ()
    depth: int = 0
    multipv: int = 1
    line: str = ""

    @property
    def bound(self) -> BoundKind | None:
        return self.relative.bound


@dataclass(frozen=True)
class Unrecognized:
    line: str = ""


UNRECOGNIZED = Unrecognized()

EngineEvent = FinalMove | Info | Unrecognized


def parse_line(line: str, turn: Color) -> EngineEvent:
    """Classify one engine output line for a position with `turn` to move."""
    tokens = line.split()
    if not tokens:
        return UNRECOGNIZED
    if tokens[0] == "bestmove":
        return _parse_bestmove(tokens)
    if tokens[0] == "info" and "score" in tokens:
        return _parse_info(tokens, turn)
    return UNRECOGNIZED


def _parse_bestmove(tokens: list[str]) -> EngineEvent:
    if len(tokens) < 2:
        return UNRECOGNIZED
    move = tokens[1]
    if move == NO_MOVE:
        return FinalMove(move=NO_MOVE)
    if not _UCI_MOVE_RE.match(move):
        return UNRECOGNIZED
    ponder = None
    if len(tokens) >= 4 and tokens[2] == "ponder" and _UCI_MOVE_RE.match(tokens[3]):
        ponder = tokens[3]
    return FinalMove(move=move, ponder=ponder)


def _parse_info(tokens: list[str], turn: Color) -> EngineEvent:
    i = tokens.index("score")
    try:
        kind = tokens[i + 1]
        raw = int(tokens[i + 2])
    except (IndexError, ValueError):
        return UNRECOGNIZED
    if kind not in ("cp", "mate"):
        return UNRECOGNIZED

    bound: BoundKind | None = None
    if "upperbound" in tokens:
        bound = "upper"
    elif "lowerbound" in tokens:
        bound = "lower"

    if kind == "cp":
        relative = Score("cp", raw / 100, bound)
        shown = -raw if turn == "white" else raw
        score = Score("cp", shown / 100, bound)
    else:
        relative = Score("mate", raw, bound)
        score = relative

    pv: tuple[str, ...] = ()
    if "pv" in tokens:
        pv = tuple(takewhile(_UCI_MOVE_RE.match, tokens[tokens.index("pv") + 1:]))

    return Info(
        score=score,
        relative=relative,
        move=pv[0] if pv else None,
        pv=pv,
        depth=_int_after(tokens, "depth"),
        multipv=_int_after(tokens, "multipv", default=1),
        line=" ".join(tokens),
    )


def _int_after(tokens: list[str], key: str, default: int = 0) -> int:
    try:
        return int(tokens[tokens.index(key) + 1])
    except (ValueError, IndexError):
        return default


# --------------------------------------------------------------------------- #
# Commands                                                                     #
# --------------------------------------------------------------------------- #

def position_command(fen: str) -> str:
    return f"position fen {fen}"


def multipv_command(count: int) -> str:
    return f"setoption name multipv value {count}"


def go_command(depth: int) -> str:
    return f"go depth {depth}"


STOP_COMMAND = "stop"
