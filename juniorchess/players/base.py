"""
Abstract Player interface and the GameState snapshot passed to each player per turn.

GameState contains everything a player needs to make a decision, whether that's
stdin input or an engine search filtered through a bot personality.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass

from juniorchess.events import Color
from juniorchess.history import Move


@dataclass
class MoveResponse:
    """Returned by Player.get_move()."""
    move: str                       # move string to validate (UCI or SAN)
    chosen: Move | None = None      # structured move when the player already built one
    decision_time_ms: int = 0       # thinking time to deduct from the player's clock
    evaluation: str = ""


@dataclass
class GameState:
    """Snapshot of the game at the start of a player's turn."""

    fen: str
    color: Color
    remaining_ms: int

    # Set when the previous attempt this turn was rejected
    previous_error: str | None = None
    attempt: int = 1


class Player(ABC):
    """Abstract base class for all chess players."""

    # Humans get engine hints when the game runs with a MoveAdvisor.
    wants_hints: bool = False

    def __init__(self, name: str) -> None:
        self.name = name

    @abstractmethod
    async def get_move(self, state: GameState) -> MoveResponse:
        """
        Given the current game state, return a MoveResponse.

        The game loop validates the move. An illegal move is rejected and
        get_move() is called again with previous_error set.
        """
        ...

    async def close(self) -> None:
        """Release any resources (engine processes)."""
        pass

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(name={self.name!r})"
