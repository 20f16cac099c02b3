"""
HumanPlayer: reads moves from stdin.

Uses run_in_executor so that the blocking input() call doesn't stall
the asyncio event loop; the clock keeps ticking while the human thinks.
"""

from __future__ import annotations

import asyncio

from juniorchess.players.base import Player, GameState, MoveResponse


class HumanPlayer(Player):
    wants_hints = True

    async def get_move(self, state: GameState) -> MoveResponse:
        retry = f" ({state.previous_error})" if state.previous_error else ""
        prompt = f"\n[{state.color.upper()}] Your move (UCI e2e4 or SAN Nf3){retry}: "
        loop = asyncio.get_running_loop()
        line = await loop.run_in_executor(None, input, prompt)
        return MoveResponse(move=line.strip())
