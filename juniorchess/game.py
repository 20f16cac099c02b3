"""
Async game loop: one GameSession drives a game from first move to result.

This module is UI-agnostic. It yields typed GameEvent objects and never prints,
and has no Rich/CLI dependencies.

Two independent reactions drive a turn:
  * the clock tick: every TICK_SECONDS the clocks are polled for a fallen flag
  * the player: a human typing or a bot waiting on engine lines
They are composed in _race_clock(); neither blocks the other.

Usage:
    session = GameSession(config, white_player, black_player)
    async for event in session.run(stop_event):
        display_event(event)
    records = await run_analysis(session.history, analysis_client)
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable
from datetime import datetime
from pathlib import Path
from typing import AsyncGenerator, Callable, TypeVar

from juniorchess.advisor import MoveAdvisor
from juniorchess.board import ChessBoard
from juniorchess.clock import ChessClock, GameClocks, monotonic_ms
from juniorchess.config import Config
from juniorchess.engine import EngineError
from juniorchess.events import (
    ClockReading,
    Color,
    GameEvent,
    GameOverEvent,
    GameOverReason,
    GameResult,
    GameStartEvent,
    HintEvent,
    MoveAppliedEvent,
    MoveRejectedEvent,
    TurnStartEvent,
    opposite,
)
from juniorchess.history import HistoryEntry, MoveHistory
from juniorchess.players.base import Player, GameState, MoveResponse

logger = logging.getLogger(__name__)

TICK_SECONDS = 0.123

T = TypeVar("T")


class GameSession:
    """One game: rules engine, both clocks and the move history."""

    def __init__(
        self,
        config: Config,
        white_player: Player,
        black_player: Player,
        start_fen: str | None = None,
        now: Callable[[], float] = monotonic_ms,
        advisor: MoveAdvisor | None = None,
    ) -> None:
        self.config = config
        self.players: dict[Color, Player] = {"white": white_player, "black": black_player}
        fen = start_fen if start_fen is not None else config.game.start_fen
        self.board = ChessBoard(fen)
        self.clocks = GameClocks(
            ChessClock(config.game.white_time.initial_ms, config.game.white_time.increment_ms, now),
            ChessClock(config.game.black_time.initial_ms, config.game.black_time.increment_ms, now),
        )
        self.history = MoveHistory(start_fen=self.board.fen)
        self.advisor = advisor
        self._white_moves = 0

    def reading(self) -> ClockReading:
        return ClockReading(white=self.clocks.white.time_string(), black=self.clocks.black.time_string())

    async def run(self, stop_event: asyncio.Event | None = None) -> AsyncGenerator[GameEvent, None]:
        """
        Play the game to the end, yielding events as it goes.

        Completes on checkmate, stalemate, draw, flag fall, move limit,
        a player running out of attempts, or when stop_event is set.
        """
        board = self.board
        board.set_players(self.players["white"].name, self.players["black"].name)
        self.clocks[board.turn].start()

        yield GameStartEvent(
            white_name=self.players["white"].name,
            black_name=self.players["black"].name,
            starting_fen=board.fen,
            clocks=self.reading(),
        )

        while not board.is_game_over:
            if stop_event and stop_event.is_set():
                yield await self._finish("*", "interrupted", None)
                return

            max_moves = self.config.game.max_moves
            if max_moves and board.turn == "white" and self._white_moves >= max_moves:
                yield await self._finish("*", "move_limit", None)
                return

            color = board.turn
            player = self.players[color]

            yield TurnStartEvent(
                color=color,
                player_name=player.name,
                move_number=board.fullmove_number,
                fen=board.fen,
                board_ascii=board.ascii(),
                clocks=self.reading(),
                move_list=self.history.render(),
            )

            if self.advisor is not None and player.wants_hints:
                hint = await self._race_clock(self.advisor.suggest(board.fen, color), stop_event)
                if hint is not None:
                    yield HintEvent(color=color, best_move=hint.best_move, evaluation=hint.evaluation)

            applied = False
            previous_error: str | None = None

            for attempt in range(1, self.config.game.max_retries + 1):
                state = GameState(
                    fen=board.fen,
                    color=color,
                    remaining_ms=self.clocks[color].remaining_ms(),
                    previous_error=previous_error,
                    attempt=attempt,
                )

                try:
                    response = await self._race_clock(player.get_move(state), stop_event)
                except EngineError as exc:
                    logger.warning("Engine failure for %s: %s", player.name, exc)
                    previous_error = f"Engine error: {exc}"
                    yield MoveRejectedEvent(color=color, attempted_move="", reason=previous_error, attempt=attempt)
                    continue

                if response is None:
                    flagged = self.clocks.poll()
                    if flagged is not None:
                        yield await self._flag_fall(flagged)
                    else:
                        yield await self._finish("*", "interrupted", None)
                    return

                text = response.move.strip()
                move = response.chosen or (board.parse_move(text) if text else None)
                move_number = board.fullmove_number
                san = board.apply_move(move) if move is not None else None
                if san is None:
                    previous_error = f"'{text}' is not a legal move here." if text else "Empty move."
                    yield MoveRejectedEvent(color=color, attempted_move=text, reason=previous_error, attempt=attempt)
                    continue

                self.clocks[color].reduce_by(response.decision_time_ms)
                self.clocks.switch_after_move(color)
                if color == "white":
                    self._white_moves += 1
                self.history.add(
                    HistoryEntry(
                        fen_after=board.fen,
                        move=move,
                        white_ms=self.clocks.white.remaining_ms(),
                        black_ms=self.clocks.black.remaining_ms(),
                    )
                )
                yield self._applied_event(color, move_number, san, response)
                applied = True
                break

            if not applied:
                yield await self._finish(
                    "0-1" if color == "white" else "1-0", "max_retries_exceeded", opposite(color),
                )
                return

            flagged = self.clocks.poll()
            if flagged is not None:
                yield await self._flag_fall(flagged)
                return

        yield await self._finish(board.result(), board.game_over_reason(), board.winner_color())  # type: ignore[arg-type]

    async def _race_clock(self, work: Awaitable[T], stop_event: asyncio.Event | None) -> T | None:
        """
        Await `work` while polling the clocks every tick.

        Returns None (and cancels the work) when a flag falls or stop_event is set first.
        """
        task = asyncio.ensure_future(work)
        try:
            while True:
                done, _ = await asyncio.wait({task}, timeout=TICK_SECONDS)
                if task in done:
                    return task.result()
                if self.clocks.poll() is not None or (stop_event and stop_event.is_set()):
                    return None
        finally:
            if not task.done():
                task.cancel()

    def _applied_event(self, color: Color, move_number: int, san: str, response: MoveResponse) -> MoveAppliedEvent:
        entry = self.history[len(self.history) - 1]
        return MoveAppliedEvent(
            color=color,
            move_uci=str(entry.move),
            move_san=san,
            fen_after=entry.fen_after,
            move_number=move_number,
            clocks=self.reading(),
            gives_check=self.board.is_check,
            decision_time_ms=response.decision_time_ms,
            evaluation=response.evaluation,
        )

    async def _flag_fall(self, flagged: Color) -> GameOverEvent:
        winner = opposite(flagged)
        logger.info("%s ran out of time", flagged)
        if self.board.has_insufficient_material(winner):
            return await self._finish("1/2-1/2", "timeout", None)
        return await self._finish("1-0" if winner == "white" else "0-1", "timeout", winner)

    async def _finish(self, result: GameResult, reason: GameOverReason, winner: Color | None) -> GameOverEvent:
        self.clocks.stop_all()
        self.board.set_result(result)
        pgn = self.board.to_pgn()
        logger.info("Game over: %s (%s) after %d plies", result, reason, len(self.history))
        if self.config.game.save_pgn:
            await _save_pgn(pgn, self.config.pgn_dir_path)
        return GameOverEvent(
            result=result,
            reason=reason,
            winner_name=self.players[winner].name if winner else None,
            pgn=pgn,
            total_plies=len(self.history),
            clocks=self.reading(),
        )


async def _save_pgn(pgn: str, pgn_dir: Path) -> None:
    """Write PGN to a timestamped file, creating the directory if needed."""
    pgn_dir.mkdir(parents=True, exist_ok=True)
    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    pgn_path = pgn_dir / f"game_{timestamp}.pgn"
    loop = asyncio.get_running_loop()
    await loop.run_in_executor(
        None, lambda: pgn_path.write_text(pgn, encoding="utf-8")
    )
