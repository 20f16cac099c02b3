"""
Post-game analysis: replay every position of a finished game through a
dedicated engine, one search at a time.

States: PREPARING -> ANALYZING -> READY. The state machine is synchronous and
purely event driven; run_analysis() is the asyncio driver that pumps the
engine channel until the replay is ready.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from dataclasses import dataclass, replace
from enum import Enum

from juniorchess.board import turn_of
from juniorchess.engine import EngineClient, EngineError, EngineTimeout
from juniorchess.history import HistoryEntry, Move, MoveHistory
from juniorchess.protocol import EngineEvent, FinalMove, Info, Score

logger = logging.getLogger(__name__)

DEFAULT_ANALYSIS_DEPTH = 10


class AnalysisState(Enum):
    PREPARING = "preparing"
    ANALYZING = "analyzing"
    READY = "ready"


@dataclass(frozen=True)
class AnalysisRecord:
    entry: HistoryEntry
    best_move: Move | None           # None when the engine reported no legal move
    best_score: Score | None         # White's point of view
    best_line: tuple[str, ...] = ()
    retrospective_score: Score | None = None   # next ply's best score; None for the last ply

    @property
    def played(self) -> str:
        return str(self.entry.move)

    @property
    def matches_engine(self) -> bool:
        return self.best_move is not None and str(self.best_move) == self.played


class AnalysisReplay:
    """Sequential re-analysis of one game's history on one engine client."""

    def __init__(
        self,
        history: MoveHistory,
        client: EngineClient,
        depth: int = DEFAULT_ANALYSIS_DEPTH,
        on_record: Callable[[int, AnalysisRecord], None] | None = None,
        on_ready: Callable[[], None] | None = None,
    ) -> None:
        self._history = history
        self._client = client
        self._depth = depth
        self._on_record = on_record
        self._on_ready = on_ready
        self.state = AnalysisState.PREPARING
        self.records: list[AnalysisRecord] = []
        self.cursor = 0
        self._score: Score | None = None
        self._line: tuple[str, ...] = ()

    def ready(self) -> bool:
        return self.state is AnalysisState.READY

    def start(self) -> None:
        self.cursor = 0
        self.records = []
        logger.info("Analysing %d plies at depth %d", len(self._history), self._depth)
        if len(self._history) == 0:
            self._finish()
            return
        self.state = AnalysisState.ANALYZING
        self.start_current_ply()

    def start_current_ply(self) -> None:
        fen = self._history[self.cursor].move.origin_fen
        self._score = None
        self._line = ()
        logger.debug("Analysing ply %d: %s", self.cursor + 1, fen)
        self._client.submit(fen, turn_of(fen), self._depth, self._on_event)

    def _on_event(self, event: EngineEvent) -> None:
        if self.state is not AnalysisState.ANALYZING:
            return
        fen = self._history[self.cursor].move.origin_fen
        if isinstance(event, Info):
            # deeper lines arrive later and supersede earlier ones
            self._score = event.relative.from_white(turn_of(fen))
            if event.pv:
                self._line = event.pv
        elif isinstance(event, FinalMove):
            best = Move.from_uci(event.move, origin_fen=fen) if event.has_move else None
            record = AnalysisRecord(
                entry=self._history[self.cursor],
                best_move=best,
                best_score=self._score,
                best_line=self._line,
            )
            self.records.append(record)
            if self._on_record is not None:
                self._on_record(self.cursor, record)
            if self.cursor + 1 < len(self._history):
                self.cursor += 1
                self.start_current_ply()
            else:
                self._finish()

    def _finish(self) -> None:
        for i in range(len(self.records) - 1):
            self.records[i] = replace(self.records[i], retrospective_score=self.records[i + 1].best_score)
        self.state = AnalysisState.READY
        logger.info("Analysis finished: %d records", len(self.records))
        if self._on_ready is not None:
            self._on_ready()


async def run_analysis(
    history: MoveHistory,
    client: EngineClient,
    depth: int = DEFAULT_ANALYSIS_DEPTH,
    timeout: float | None = None,
    on_record: Callable[[int, AnalysisRecord], None] | None = None,
) -> list[AnalysisRecord]:
    """
    Analyse a finished game and return one record per ply.

    Raises:
        EngineTimeout: the whole analysis did not finish within `timeout` seconds.
    """
    finished = asyncio.Event()
    replay = AnalysisReplay(history, client, depth, on_record=on_record, on_ready=finished.set)
    pump = asyncio.create_task(client.pump())
    try:
        replay.start()
        waiter = asyncio.create_task(finished.wait())
        done, _ = await asyncio.wait({waiter, pump}, timeout=timeout, return_when=asyncio.FIRST_COMPLETED)
        if waiter not in done:
            waiter.cancel()
            if pump in done:
                pump.result()
                raise EngineError(client.name, "engine closed during analysis")
            if client.current is not None:
                client.abandon(client.current)
            raise EngineTimeout(client.name, f"analysis stalled at ply {replay.cursor + 1}")
        return replay.records
    finally:
        if not pump.done():
            pump.cancel()
