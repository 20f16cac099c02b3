"""Candidate moves harvested from one multi-PV search, bound to a single position."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from juniorchess.history import Move
from juniorchess.protocol import Score

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CandidateMove:
    move: Move
    score: Score     # side-to-move relative
    depth: int
    raw_line: str


class CandidateAggregator:
    """Collects candidates for the position currently being searched.

    begin_position() retargets the aggregator; candidates reported for any
    other FEN are refused so selection never mixes two positions.
    """

    def __init__(self, fen: str = "") -> None:
        self._fen = fen
        self._moves: list[CandidateMove] = []

    @property
    def fen(self) -> str:
        return self._fen

    def begin_position(self, fen: str) -> None:
        self._fen = fen
        self._moves = []

    def add_candidate(self, fen: str, move: Move, score: Score, depth: int, raw_line: str = "") -> bool:
        if fen != self._fen:
            logger.debug("Dropping candidate %s for stale position %s", move, fen)
            return False
        self._moves.append(CandidateMove(move=move, score=score, depth=depth, raw_line=raw_line))
        return True

    def all(self) -> tuple[CandidateMove, ...]:
        return tuple(self._moves)

    def __len__(self) -> int:
        return len(self._moves)
