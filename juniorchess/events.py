"""
What a running game reports to whoever is watching it.

GameSession.run() yields these; the rich CLI renders them and the tests assert
on them. Every event that follows a clock change carries a ClockReading so a
consumer never has to ask the session for the time.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Literal

Color = Literal["white", "black"]
GameResult = Literal["1-0", "0-1", "1/2-1/2", "*"]
GameOverReason = Literal[
    "checkmate",
    "stalemate",
    "draw",
    "threefold_repetition",
    "fifty_move",
    "insufficient_material",
    "timeout",
    "move_limit",
    "max_retries_exceeded",
    "interrupted",
]


def opposite(color: Color) -> Color:
    return "black" if color == "white" else "white"


@dataclass(frozen=True)
class ClockReading:
    """Both clocks rendered as MM:SS.cc at the moment the event was built."""
    white: str
    black: str


@dataclass(frozen=True)
class GameStartEvent:
    white_name: str
    black_name: str
    starting_fen: str
    clocks: ClockReading
    timestamp: datetime = field(default_factory=datetime.now)


@dataclass(frozen=True)
class TurnStartEvent:
    color: Color
    player_name: str
    move_number: int
    fen: str
    board_ascii: str
    clocks: ClockReading
    move_list: str


@dataclass(frozen=True)
class HintEvent:
    """Engine suggestion for a human on move; best_move is None when the engine had none."""
    color: Color
    best_move: str | None
    evaluation: str


@dataclass(frozen=True)
class MoveRejectedEvent:
    color: Color
    attempted_move: str
    reason: str
    attempt: int


@dataclass(frozen=True)
class MoveAppliedEvent:
    color: Color
    move_uci: str
    move_san: str
    fen_after: str
    move_number: int
    clocks: ClockReading
    gives_check: bool = False
    decision_time_ms: int = 0
    evaluation: str = ""   # live engine evaluation; empty for human moves


@dataclass(frozen=True)
class GameOverEvent:
    result: GameResult
    reason: GameOverReason
    winner_name: str | None
    pgn: str
    total_plies: int
    clocks: ClockReading
    timestamp: datetime = field(default_factory=datetime.now)


GameEvent = (
    GameStartEvent
    | TurnStartEvent
    | HintEvent
    | MoveRejectedEvent
    | MoveAppliedEvent
    | GameOverEvent
)
