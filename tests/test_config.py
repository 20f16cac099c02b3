import unittest
import uuid
from pathlib import Path

from juniorchess.config import START_POSITIONS, TimeControl, load_config, parse_time_control


class ConfigTests(unittest.TestCase):
    def _write(self, text: str) -> Path:
        path = Path(f".test_config_{uuid.uuid4().hex}.yaml")
        path.write_text(text, encoding="utf-8")
        self.addCleanup(lambda: path.unlink(missing_ok=True))
        return path

    def test_load_full_config(self) -> None:
        path = self._write(
            "game:\n"
            "  computer: white\n"
            "  bot: lion\n"
            "  white_time: '5+3'\n"
            "  black_time: 10\n"
            "  max_moves: 40\n"
            "  seed: 7\n"
            "  save_pgn: false\n"
            "  show_best_move: true\n"
            "engine:\n"
            "  path: /usr/games/stockfish\n"
            "  search_timeout: 30\n"
            "  hint_depth: 8\n"
            "analysis:\n"
            "  depth: 12\n"
            "  timeout: 120\n"
            "logging:\n"
            "  level: debug\n"
        )
        config = load_config(path)
        self.assertEqual(config.game.computer, "white")
        self.assertEqual(config.game.bot, "lion")
        self.assertEqual(config.game.white_time, TimeControl(5, 3))
        self.assertEqual(config.game.black_time.increment_ms, 0)
        self.assertEqual(config.game.max_moves, 40)
        self.assertEqual(config.game.seed, 7)
        self.assertFalse(config.game.save_pgn)
        self.assertEqual(config.engine.path, "/usr/games/stockfish")
        self.assertEqual(config.engine.search_timeout, 30.0)
        self.assertTrue(config.game.show_best_move)
        self.assertEqual(config.engine.hint_depth, 8)
        self.assertEqual(config.analysis.depth, 12)
        self.assertEqual(config.analysis.timeout, 120.0)
        self.assertEqual(config.logging.level, "DEBUG")

    def test_empty_file_gives_defaults(self) -> None:
        config = load_config(self._write(""))
        self.assertEqual(config.game.computer, "black")
        self.assertEqual(config.game.white_time, TimeControl(15, 10))
        self.assertIsNone(config.game.start_fen)
        self.assertTrue(config.analysis.enabled)
        self.assertFalse(config.game.show_best_move)

    def test_start_position_preset(self) -> None:
        config = load_config(self._write("game:\n  start_position: rook\n"))
        self.assertEqual(config.game.start_fen, START_POSITIONS["rook"])

        with self.assertRaises(ValueError):
            load_config(self._write("game:\n  start_position: castle\n"))

    def test_invalid_values(self) -> None:
        bad = [
            "game:\n  computer: martian\n",
            "game:\n  max_retries: 0\n",
            "game:\n  white_time: soon\n",
            "engine:\n  search_timeout: 0\n",
            "engine:\n  hint_depth: 0\n",
            "analysis:\n  depth: 0\n",
            "logging:\n  level: chatty\n",
            "game: [1, 2]\n",
        ]
        for text in bad:
            with self.subTest(text=text):
                with self.assertRaises(ValueError):
                    load_config(self._write(text))

    def test_missing_file(self) -> None:
        with self.assertRaises(FileNotFoundError):
            load_config(f"missing_{uuid.uuid4().hex}.yaml")


class TimeControlTests(unittest.TestCase):
    def test_parse(self) -> None:
        self.assertEqual(parse_time_control("15+10"), TimeControl(15, 10))
        self.assertEqual(parse_time_control(" 3 + 2 "), TimeControl(3, 2))
        self.assertEqual(parse_time_control("0.5+0"), TimeControl(0.5, 0))
        self.assertEqual(parse_time_control(5), TimeControl(5, 0))

    def test_milliseconds_and_label(self) -> None:
        tc = TimeControl(1.5, 2)
        self.assertEqual(tc.initial_ms, 90_000)
        self.assertEqual(tc.increment_ms, 2_000)
        self.assertEqual(str(tc), "1.5+2")
