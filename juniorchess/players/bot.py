"""
BotPlayer: an engine-backed opponent with a personality.

One turn is one multi-PV engine search:
  1. retarget the candidate aggregator to the current FEN
  2. submit the search, harvesting every `info` line as a candidate
  3. wait (bounded) for `bestmove`
  4. let the BotProfile choose among the candidates

The engine reader task is started on the first move and reused for the whole
game, as is the engine process itself.
"""

from __future__ import annotations

import logging
import random

from juniorchess.bots import BotProfile
from juniorchess.candidates import CandidateAggregator
from juniorchess.engine import EngineClient, EngineError
from juniorchess.history import Move
from juniorchess.players.base import Player, GameState, MoveResponse
from juniorchess.protocol import Info

logger = logging.getLogger(__name__)


class BotPlayer(Player):
    """
    Args:
        profile: Personality used to pick among the engine's candidate lines.
        client: EngineClient for the live-play engine channel.
        rng: Randomness source; pass a seeded random.Random for reproducible games.
        search_timeout: Seconds to wait for `bestmove` before the search counts as failed.
    """

    def __init__(
        self,
        profile: BotProfile,
        client: EngineClient,
        rng: random.Random | None = None,
        search_timeout: float = 60.0,
        name: str | None = None,
    ) -> None:
        super().__init__(name or profile.label)
        self.profile = profile
        self._client = client
        self._rng = rng or random.Random()
        self._search_timeout = search_timeout
        self._candidates = CandidateAggregator()

    @property
    def client(self) -> EngineClient:
        return self._client

    @property
    def candidates(self) -> CandidateAggregator:
        return self._candidates

    async def get_move(self, state: GameState) -> MoveResponse:
        self._client.ensure_reader()
        self._candidates.begin_position(state.fen)
        evaluation = ""

        def _on_info(info: Info, fen: str) -> None:
            nonlocal evaluation
            if info.multipv == 1:
                evaluation = info.score.describe()
            if info.move is None:
                return
            move = Move.from_uci(info.move, origin_fen=fen)
            self._candidates.add_candidate(fen, move, info.relative, info.depth, info.line)

        final = await self._client.search(
            state.fen,
            state.color,
            self.profile.min_depth,
            on_info=_on_info,
            multipv=self.profile.candidate_pool_size,
            timeout=self._search_timeout,
        )
        if not final.has_move:
            raise EngineError(self._client.name, f"engine found no legal move in {state.fen}")

        chosen = self.profile.select_move(self._candidates, final.move, state.remaining_ms, self._rng)
        logger.info(
            "%s plays %s (engine %s, %d candidates, %d ms)",
            self.name, chosen, final.move, len(self._candidates), chosen.decision_time_ms,
        )
        return MoveResponse(
            move=str(chosen),
            chosen=chosen,
            decision_time_ms=chosen.decision_time_ms,
            evaluation=evaluation,
        )

    async def close(self) -> None:
        """Stop the reader task and shut down the engine process."""
        await self._client.close()
