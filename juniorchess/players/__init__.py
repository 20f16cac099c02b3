"""
Player factory.

create_player() is the single entry point for instantiating any Player.
"""

from __future__ import annotations

import random

from juniorchess.bots import BotProfile
from juniorchess.engine import EngineClient
from juniorchess.players.base import Player, GameState, MoveResponse
from juniorchess.players.bot import BotPlayer
from juniorchess.players.human import HumanPlayer

__all__ = [
    "Player",
    "GameState",
    "MoveResponse",
    "BotPlayer",
    "HumanPlayer",
    "create_player",
]


def create_player(
    kind: str,
    display_name: str | None = None,
    profile: BotProfile | None = None,
    client: EngineClient | None = None,
    rng: random.Random | None = None,
    search_timeout: float = 60.0,
) -> Player:
    """
    Instantiate the correct Player.

    "human" needs nothing else; "bot" requires a profile and an engine client.
    """
    match kind:
        case "human":
            return HumanPlayer(name=display_name or "Human")
        case "bot":
            if profile is None or client is None:
                raise ValueError("BotPlayer requires a bot profile and an engine client")
            return BotPlayer(
                profile=profile,
                client=client,
                rng=rng,
                search_timeout=search_timeout,
                name=display_name,
            )
        case _:
            raise ValueError(f"Unknown player kind '{kind}'")
