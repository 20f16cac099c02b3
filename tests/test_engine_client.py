import asyncio
import unittest

from juniorchess.bots import find_bot
from juniorchess.engine import EngineClient, EngineError, EngineTimeout
from juniorchess.players.base import GameState
from juniorchess.players.bot import BotPlayer
from juniorchess.protocol import FinalMove, Info
from tests.fakes import ScriptedChannel

START = "rnbqkbnr/pppppppp/8/8/8/8/PPPPPPPP/RNBQKBNR w KQkq - 0 1"
AFTER_E4 = "rnbqkbnr/pppppppp/8/8/4P3/8/PPPP1PPP/RNBQKBNR b KQkq - 0 1"


class SubmitTests(unittest.TestCase):
    def test_position_then_options_then_go(self) -> None:
        channel = ScriptedChannel()
        client = EngineClient(channel)
        client.submit(START, "white", 12, lambda e: None, multipv=4)
        self.assertEqual(channel.sent, [
            f"position fen {START}",
            "setoption name multipv value 4",
            "go depth 12",
        ])

    def test_without_multipv_no_option_is_sent(self) -> None:
        channel = ScriptedChannel()
        EngineClient(channel).submit(START, "white", 3, lambda e: None)
        self.assertEqual(channel.sent, [f"position fen {START}", "go depth 3"])

    def test_each_submit_gets_a_new_current_request(self) -> None:
        client = EngineClient(ScriptedChannel())
        first = client.submit(START, "white", 3, lambda e: None)
        second = client.submit(AFTER_E4, "black", 3, lambda e: None)
        self.assertIs(client.current, second)
        self.assertGreater(second.request_id, first.request_id)


class FeedTests(unittest.TestCase):
    def setUp(self) -> None:
        self.client = EngineClient(ScriptedChannel())
        self.first: list = []
        self.second: list = []

    def test_lines_reach_the_current_request(self) -> None:
        request = self.client.submit(START, "white", 5, self.first.append)
        self.client.feed("info depth 5 score cp 20 pv e2e4 e7e5")
        self.client.feed("bestmove e2e4 ponder e7e5")

        self.assertIsInstance(self.first[0], Info)
        self.assertEqual(self.first[0].move, "e2e4")
        self.assertEqual(self.first[1], FinalMove("e2e4", "e7e5"))
        self.assertTrue(request.finished)

    def test_superseded_search_output_is_dropped(self) -> None:
        old = self.client.submit(START, "white", 5, self.first.append)
        new = self.client.submit(AFTER_E4, "black", 5, self.second.append)

        # the engine still finishes the old search before starting the new one
        self.client.feed("info depth 5 score cp 20 pv e2e4")
        self.client.feed("bestmove e2e4")
        self.client.feed("info depth 5 score cp -10 pv e7e5")
        self.client.feed("bestmove e7e5")

        self.assertEqual(self.first, [])
        self.assertTrue(old.finished)
        self.assertTrue(new.finished)
        self.assertEqual([type(e) for e in self.second], [Info, FinalMove])
        self.assertEqual(self.second[1].move, "e7e5")

    def test_lines_use_the_turn_of_their_own_search(self) -> None:
        self.client.submit(AFTER_E4, "black", 5, self.second.append)
        self.client.feed("info depth 5 score cp 30 pv e7e5")
        self.assertAlmostEqual(self.second[0].score.value, 0.3)

    def test_abandoned_search_output_is_dropped(self) -> None:
        channel = ScriptedChannel()
        client = EngineClient(channel)
        request = client.submit(START, "white", 3, self.first.append)
        client.abandon(request)
        client.feed("info depth 3 score cp 10 pv e2e4")
        client.feed("bestmove e2e4")
        self.assertEqual(self.first, [])
        self.assertTrue(request.finished)
        self.assertEqual(channel.sent[-1], "stop")

    def test_lines_without_open_search_are_ignored(self) -> None:
        self.client.feed("info depth 5 score cp 20 pv e2e4")
        self.client.feed("bestmove e2e4")
        request = self.client.submit(START, "white", 5, self.first.append)
        self.client.feed("readyok")
        self.assertEqual(self.first, [])
        self.assertFalse(request.finished)


class SearchTests(unittest.IsolatedAsyncioTestCase):
    async def test_search_returns_final_move_and_reports_infos(self) -> None:
        channel = ScriptedChannel(replies=[[
            "info depth 8 multipv 1 score cp 25 pv e2e4 e7e5",
            "info depth 8 multipv 2 score cp 20 pv d2d4",
            "bestmove e2e4",
        ]])
        client = EngineClient(channel)
        pump = asyncio.create_task(client.pump())
        seen: list[tuple[str, str]] = []
        try:
            final = await client.search(START, "white", 8, on_info=lambda i, fen: seen.append((i.move, fen)), timeout=5)
        finally:
            pump.cancel()

        self.assertEqual(final.move, "e2e4")
        self.assertEqual(seen, [("e2e4", START), ("d2d4", START)])

    async def test_silent_engine_times_out(self) -> None:
        client = EngineClient(ScriptedChannel())
        pump = asyncio.create_task(client.pump())
        try:
            with self.assertRaises(EngineTimeout):
                await client.search(START, "white", 8, timeout=0.05)
        finally:
            pump.cancel()

    async def test_closed_channel_fails_pending_search(self) -> None:
        channel = ScriptedChannel()
        client = EngineClient(channel)
        pump = asyncio.create_task(client.pump())
        search = asyncio.create_task(client.search(START, "white", 8, timeout=5))
        await asyncio.sleep(0)
        channel.hang_up()
        with self.assertRaises(EngineError):
            await search
        await pump
        self.assertTrue(client.closed)
        with self.assertRaises(EngineError):
            client.submit(START, "white", 8, lambda e: None)


class RecoveryAfterTimeoutTests(unittest.IsolatedAsyncioTestCase):
    REPLY = ["info depth 20 multipv 1 score cp 30 pv e2e4", "bestmove e2e4"]

    async def test_search_after_a_timeout_gets_its_own_answer(self) -> None:
        channel = ScriptedChannel(replies=[[], self.REPLY])
        client = EngineClient(channel)
        client.ensure_reader()
        try:
            with self.assertRaises(EngineTimeout):
                await client.search(START, "white", 8, timeout=0.05)
            self.assertEqual(channel.sent[-1], "stop")
            final = await client.search(START, "white", 8, timeout=5)
        finally:
            await client.close()
        self.assertEqual(final.move, "e2e4")

    async def test_bot_recovers_once_the_engine_answers_again(self) -> None:
        channel = ScriptedChannel(replies=[[], self.REPLY, self.REPLY])
        bot = BotPlayer(find_bot("dragon"), EngineClient(channel), search_timeout=0.2)
        state = GameState(fen=START, color="white", remaining_ms=60_000)
        try:
            with self.assertRaises(EngineTimeout):
                await bot.get_move(state)
            for _ in range(2):
                response = await bot.get_move(state)
                self.assertEqual(response.move, "e2e4")
        finally:
            await bot.close()
