"""
Best-move hints for a human on move.

The advisor borrows an EngineClient (normally the bot's own, since the bot is
idle while the human thinks) and runs one single-line search per position.
A hint is a convenience: engine failures are logged and yield no hint rather
than disturbing the game.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from juniorchess.engine import EngineClient, EngineError
from juniorchess.events import Color
from juniorchess.protocol import Info

logger = logging.getLogger(__name__)

DEFAULT_HINT_DEPTH = 12


@dataclass(frozen=True)
class Hint:
    best_move: str | None
    evaluation: str


class MoveAdvisor:
    def __init__(self, client: EngineClient, depth: int = DEFAULT_HINT_DEPTH, timeout: float = 10.0) -> None:
        self._client = client
        self._depth = depth
        self._timeout = timeout

    async def suggest(self, fen: str, turn: Color) -> Hint | None:
        self._client.ensure_reader()
        evaluation = ""

        def _on_info(info: Info, _fen: str) -> None:
            nonlocal evaluation
            evaluation = info.score.describe()

        try:
            final = await self._client.search(
                fen, turn, self._depth, on_info=_on_info, multipv=1, timeout=self._timeout,
            )
        except EngineError as exc:
            logger.warning("No hint for %s: %s", fen, exc)
            return None
        return Hint(best_move=final.move if final.has_move else None, evaluation=evaluation)
