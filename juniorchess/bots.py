"""
Bot personalities: turn one multi-PV engine search into a single chosen move.

A BotProfile never asks the engine twice. It looks at the candidate lines the
engine reported while searching, decides how much worse than the best line it
is willing to play, and then picks among the acceptable moves, nudged by an
opening book and by favourite piece kinds. Randomness always comes from the
caller's random.Random so games can be replayed from a seed.
"""

from __future__ import annotations

import logging
import random
from dataclasses import dataclass

from juniorchess.board import ChessBoard
from juniorchess.candidates import CandidateAggregator, CandidateMove
from juniorchess.history import QUEEN, Move

logger = logging.getLogger(__name__)

BASE_DECISION_MS = 5432


@dataclass(frozen=True)
class BotProfile:
    name: str
    symbol: str
    use_engine_top_move: bool = True
    min_depth: int = 20               # also the depth requested from the engine
    candidate_pool_size: int = 3      # multi-PV line count requested per search
    score_decline_per_move: float = 0.0
    max_score_decline: float = 0.0
    acceptable_fraction: float = 1.0  # 1.0 = only the declined threshold, 0.0 = down to the worst line
    opening_book_white: tuple[str, ...] = ()
    opening_book_black: tuple[str, ...] = ()
    preferred_pieces: tuple[str, ...] = ()
    time_aggressiveness: float = 1.0

    @property
    def label(self) -> str:
        return f"{self.symbol} {self.name}"

    def decision_time_ms(self, remaining_ms: int, rng: random.Random) -> int:
        """Roughly constant thinking time, sometimes much quicker when short on time."""
        taken = float(BASE_DECISION_MS)
        if 0 < remaining_ms < taken and rng.random() > self.time_aggressiveness:
            taken *= rng.random()
        return int(taken)

    def select_move(
        self,
        candidates: CandidateAggregator,
        best_move: str,
        remaining_ms: int,
        rng: random.Random,
    ) -> Move:
        fen = candidates.fen
        taken_ms = self.decision_time_ms(remaining_ms, rng)

        def _engine_move() -> Move:
            return Move.from_uci(best_move, origin_fen=fen, decision_time_ms=taken_ms, promotion=QUEEN)

        if self.use_engine_top_move:
            return _engine_move()

        qualified = _latest_per_move(c for c in candidates.all() if c.depth >= self.min_depth)
        if not qualified:
            logger.debug("%s: no candidate at depth >= %d, playing engine move %s", self.name, self.min_depth, best_move)
            return _engine_move()

        board = ChessBoard(fen)
        scores = [c.score.pawns() for c in qualified]
        best_score, worst_score = max(scores), min(scores)

        threshold = best_score - min(board.fullmove_number * self.score_decline_per_move, self.max_score_decline)
        threshold -= (threshold - worst_score) * (1 - self.acceptable_fraction)
        acceptable = [c for c in qualified if c.score.pawns() >= threshold]

        book = self.opening_book_white if board.turn == "white" else self.opening_book_black
        by_uci = {str(c.move): c for c in acceptable}
        for entry in book:
            if entry in by_uci:
                logger.debug("%s: opening book move %s", self.name, entry)
                return by_uci[entry].move.with_decision_time(taken_ms)

        for kind in self.preferred_pieces:
            matches = [c for c in acceptable if board.piece_kind_at(c.move.source) == kind]
            if matches:
                acceptable = matches
                break

        if not acceptable:
            return _engine_move()

        picked = rng.choice(acceptable)
        logger.debug(
            "%s: picked %s (%.2f) from %d acceptable, best %.2f, threshold %.2f",
            self.name, picked.move, picked.score.pawns(), len(acceptable), best_score, threshold,
        )
        return picked.move.with_decision_time(taken_ms)


def _latest_per_move(candidates) -> list[CandidateMove]:
    """Keep only the most recent line per move; deeper lines supersede shallower ones."""
    latest: dict[tuple[str, str, str | None], CandidateMove] = {}
    for candidate in candidates:
        move = candidate.move
        latest[(move.source, move.target, move.promotion)] = candidate
    return list(latest.values())


AVAILABLE_BOTS: tuple[BotProfile, ...] = (
    BotProfile(
        "househorse", "🐎", False, 3, 20, 2.0, 5.0, 0.1,
        opening_book_white=("e2e4", "f2f4"), opening_book_black=("e7e6",), preferred_pieces=("b",),
    ),
    BotProfile("sauropod", "🦕", False, 7, 15, 2.0, 5.0, 0.1, preferred_pieces=("q",)),
    BotProfile("chicken", "🐣", False, 4, 10, 2.0, 5.0, 0.2, preferred_pieces=("n",)),
    BotProfile("fly", "🪰", False, 3, 10, 2.0, 5.0, 0.1, preferred_pieces=("k", "q")),
    BotProfile("horse", "🐴", False, 10, 3, 1.0, 1.0, preferred_pieces=("n",)),
    BotProfile("dragon", "🐉", True, 20, 3, 1.0, 1.0),
    BotProfile("unicorn", "🦄", False, 15, 5, 1.0, 1.0),
    BotProfile("lion", "🦁", False, 16, 4, 0.2, 0.2),
)


def find_bot(key: str) -> BotProfile:
    """Look a bot up by name or symbol."""
    for bot in AVAILABLE_BOTS:
        if key in (bot.name, bot.symbol):
            return bot
    raise KeyError(f"Unknown bot {key!r}; choose one of {', '.join(b.name for b in AVAILABLE_BOTS)}")
