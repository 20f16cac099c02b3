"""Test doubles shared by the engine, analysis and game tests."""

from __future__ import annotations

import asyncio

from juniorchess.engine import EngineChannel
from juniorchess.players.base import GameState, MoveResponse, Player

STOPPED_BESTMOVE = "bestmove (none)"


class ScriptedChannel(EngineChannel):
    """
    In-memory engine channel.

    Every `go` command pops the next reply script (a list of output lines) and
    queues it for lines()/drain(). With no scripts left the engine stays silent.
    Like a real engine, `stop` during a search that has not answered yet
    produces that search's `bestmove`.
    """

    name = "scripted"

    def __init__(self, replies: list[list[str]] | None = None, repeat: list[str] | None = None) -> None:
        self.sent: list[str] = []
        self._replies = list(replies or [])
        self._repeat = repeat
        self._queue: asyncio.Queue[str | None] = asyncio.Queue()
        self._owes_bestmove = False
        self.closed = False

    def send(self, command: str) -> None:
        self.sent.append(command)
        if command == "stop" and self._owes_bestmove:
            self._owes_bestmove = False
            self._queue.put_nowait(STOPPED_BESTMOVE)
            return
        if not command.startswith("go"):
            return
        if self._replies:
            script = self._replies.pop(0)
        elif self._repeat is not None:
            script = self._repeat
        else:
            script = []
        self._owes_bestmove = not any(line.startswith("bestmove") for line in script)
        for line in script:
            self._queue.put_nowait(line)

    async def lines(self):
        while True:
            line = await self._queue.get()
            if line is None:
                return
            yield line

    def drain(self) -> list[str]:
        """Take every queued line without waiting (for synchronous tests)."""
        out: list[str] = []
        while not self._queue.empty():
            line = self._queue.get_nowait()
            if line is not None:
                out.append(line)
        return out

    def hang_up(self) -> None:
        self._queue.put_nowait(None)

    def positions(self) -> list[str]:
        return [c.removeprefix("position fen ") for c in self.sent if c.startswith("position fen ")]

    async def close(self) -> None:
        self.closed = True


class ScriptedPlayer(Player):
    """Plays the given move strings in order, then repeats the last one."""

    def __init__(self, name: str, moves: list[str], decision_time_ms: int = 0, wants_hints: bool = False) -> None:
        super().__init__(name)
        self.wants_hints = wants_hints
        self._moves = list(moves)
        self._decision_time_ms = decision_time_ms
        self.states: list[GameState] = []

    async def get_move(self, state: GameState) -> MoveResponse:
        self.states.append(state)
        move = self._moves.pop(0) if len(self._moves) > 1 else self._moves[0]
        return MoveResponse(move=move, decision_time_ms=self._decision_time_ms)


class SilentPlayer(Player):
    """Never answers; used to let a clock run out."""

    async def get_move(self, state: GameState) -> MoveResponse:
        await asyncio.sleep(3600)
        raise AssertionError("unreachable")
