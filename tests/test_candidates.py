import unittest

from juniorchess.candidates import CandidateAggregator
from juniorchess.history import Move
from juniorchess.protocol import Score

FEN_A = "rnbqkbnr/pppppppp/8/8/8/8/PPPPPPPP/RNBQKBNR w KQkq - 0 1"
FEN_B = "rnbqkbnr/pppppppp/8/8/4P3/8/PPPP1PPP/RNBQKBNR b KQkq - 0 1"


class CandidateAggregatorTests(unittest.TestCase):
    def test_candidates_for_a_replaced_position_are_rejected(self) -> None:
        agg = CandidateAggregator()
        agg.begin_position(FEN_A)
        for uci in ("e2e4", "d2d4", "g1f3"):
            self.assertTrue(agg.add_candidate(FEN_A, Move.from_uci(uci, FEN_A), Score("cp", 0.3), 10))
        self.assertEqual(len(agg.all()), 3)

        agg.begin_position(FEN_B)
        accepted = agg.add_candidate(FEN_A, Move.from_uci("c2c4", FEN_A), Score("cp", 0.2), 10)

        self.assertFalse(accepted)
        self.assertEqual(agg.fen, FEN_B)
        self.assertEqual(agg.all(), ())

    def test_all_preserves_arrival_order_and_raw_line(self) -> None:
        agg = CandidateAggregator(FEN_B)
        agg.add_candidate(FEN_B, Move.from_uci("e7e5", FEN_B), Score("cp", 0.1), 4, "line-1")
        agg.add_candidate(FEN_B, Move.from_uci("c7c5", FEN_B), Score("cp", 0.2), 5, "line-2")

        moves = agg.all()
        self.assertEqual([str(c.move) for c in moves], ["e7e5", "c7c5"])
        self.assertEqual(moves[1].raw_line, "line-2")
        self.assertEqual(moves[1].depth, 5)

    def test_snapshot_is_not_affected_by_later_positions(self) -> None:
        agg = CandidateAggregator(FEN_A)
        agg.add_candidate(FEN_A, Move.from_uci("e2e4", FEN_A), Score("cp", 0.3), 10)
        snapshot = agg.all()
        agg.begin_position(FEN_B)
        self.assertEqual(len(snapshot), 1)
        self.assertEqual(len(agg), 0)
