"""
Junior Chess: entry point.

Wires together:  config → bot selector → engine → players → game loop → CLI display
                 → (optional) post-game analysis on a second engine process

Usage:
    uv run python main.py [--config config.yaml] [--bot lion] [--computer white]
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import logging.handlers
import random
import signal
import sys
from pathlib import Path

from juniorchess.advisor import MoveAdvisor
from juniorchess.analysis import run_analysis
from juniorchess.bots import BotProfile, find_bot
from juniorchess.cli.analysis_display import display_analysis, display_progress
from juniorchess.cli.display import console, display_event
from juniorchess.cli.selector import select_bot
from juniorchess.config import START_POSITIONS, Config, default_config, load_config, validate
from juniorchess.engine import EngineClient, EngineError, UciProcess
from juniorchess.events import Color
from juniorchess.game import GameSession
from juniorchess.players import create_player
from juniorchess.players.base import Player
from juniorchess.players.bot import BotPlayer

logger = logging.getLogger("juniorchess")


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Play chess against a UCI engine with a personality.")
    parser.add_argument("--config", type=Path, default=Path("config.yaml"))
    parser.add_argument("--bot", help="bot name or symbol (default: ask)")
    parser.add_argument("--computer", choices=["white", "black", "none", "random", "both"])
    parser.add_argument("--fen", help="start from this position")
    parser.add_argument("--preset", choices=sorted(START_POSITIONS), help="start from a named endgame")
    parser.add_argument("--max-moves", type=int, help="stop after this many White moves")
    parser.add_argument("--show-eval", action="store_true", help="print the engine evaluation after bot moves")
    parser.add_argument("--show-best-move", action="store_true", help="suggest the engine move while a human is on move")
    parser.add_argument("--no-analysis", action="store_true", help="skip the post-game analysis")
    return parser.parse_args(argv)


def _load(args: argparse.Namespace) -> Config:
    if args.config.exists() or args.config != Path("config.yaml"):
        config = load_config(args.config)
    else:
        config = default_config()
    if args.computer:
        config.game.computer = args.computer
    if args.bot:
        config.game.bot = args.bot
    if args.preset:
        config.game.start_fen = START_POSITIONS[args.preset]
    if args.fen:
        config.game.start_fen = args.fen
    if args.max_moves is not None:
        config.game.max_moves = args.max_moves
    if args.no_analysis:
        config.analysis.enabled = False
    if args.show_best_move:
        config.game.show_best_move = True
    validate(config)
    return config


def _configure_logging(config: Config) -> None:
    log_file = Path(config.logging.file)
    log_file.parent.mkdir(parents=True, exist_ok=True)
    logging.basicConfig(
        level=getattr(logging, config.logging.level),
        format="%(asctime)s  %(levelname)-8s  %(name)s  %(message)s",
        handlers=[
            logging.handlers.RotatingFileHandler(
                log_file, maxBytes=2 * 1024 * 1024, backupCount=3,  # 2 MB × 3 files
                encoding="utf-8",
            ),
        ],
    )


async def _start_engine(config: Config) -> EngineClient:
    channel = await UciProcess(config.engine.path).start()
    return EngineClient(channel)


async def _build_advisor(
    config: Config, players: dict[Color, Player],
) -> tuple[MoveAdvisor | None, EngineClient | None]:
    """
    Hints come from the bot's own engine, idle while the human thinks.

    Returns the advisor and, when no bot was available to lend one, the
    extra engine client that the caller must close.
    """
    if not config.game.show_best_move or not any(p.wants_hints for p in players.values()):
        return None, None
    bots = [p for p in players.values() if isinstance(p, BotPlayer)]
    if bots:
        return MoveAdvisor(bots[0].client, depth=config.engine.hint_depth), None
    try:
        client = await _start_engine(config)
    except EngineError as exc:
        logger.warning("Best-move hints disabled: %s", exc)
        console.print(f"[yellow]No hints:[/] {exc}")
        return None, None
    return MoveAdvisor(client, depth=config.engine.hint_depth), client


async def _main(args: argparse.Namespace, stop_event: asyncio.Event) -> None:
    try:
        config = _load(args)
    except FileNotFoundError as exc:
        console.print(f"[red]Error:[/] {exc}")
        sys.exit(1)
    except ValueError as exc:
        console.print(f"[red]Config error:[/] {exc}")
        sys.exit(1)

    _configure_logging(config)
    rng = random.Random(config.game.seed)

    computer = config.game.computer
    if computer == "random":
        computer = rng.choice(["white", "black"])
    bot_sides: list[Color] = {"white": ["white"], "black": ["black"], "both": ["white", "black"]}.get(computer, [])

    profile: BotProfile | None = None
    if bot_sides:
        try:
            profile = find_bot(config.game.bot) if config.game.bot else select_bot()
        except KeyError as exc:
            console.print(f"[red]Config error:[/] {exc.args[0]}")
            sys.exit(1)

    players: dict[Color, Player] = {}
    try:
        for color in ("white", "black"):
            if color in bot_sides:
                # one engine process per bot: a channel serves one search at a time
                players[color] = create_player(
                    "bot",
                    profile=profile,
                    client=await _start_engine(config),
                    rng=rng,
                    search_timeout=config.engine.search_timeout,
                )
            else:
                players[color] = create_player("human", display_name=f"Human ({color})")
    except EngineError as exc:
        console.print(f"[red]Engine error:[/] {exc}")
        sys.exit(1)

    logger.info(
        "New game: %s vs %s, %s / %s",
        players["white"].name, players["black"].name, config.game.white_time, config.game.black_time,
    )

    advisor, hint_client = await _build_advisor(config, players)
    session = GameSession(config, players["white"], players["black"], advisor=advisor)
    try:
        async for event in session.run(stop_event=stop_event):
            display_event(event, show_evaluation=args.show_eval)
    finally:
        for player in players.values():
            await player.close()
        if hint_client is not None:
            await hint_client.close()

    if not config.analysis.enabled or len(session.history) == 0 or stop_event.is_set():
        return

    console.print("\n[dim]Analysing the game…[/]")
    try:
        client = await _start_engine(config)
    except EngineError as exc:
        console.print(f"[red]Engine error:[/] {exc}")
        return
    try:
        records = await run_analysis(
            session.history,
            client,
            depth=config.analysis.depth,
            timeout=config.analysis.timeout,
            on_record=display_progress,
        )
        display_analysis(records)
    except EngineError as exc:
        logger.error("Analysis failed: %s", exc)
        console.print(f"[red]Analysis failed:[/] {exc}")
    finally:
        await client.close()


def main() -> None:
    args = _parse_args()

    async def _run() -> None:
        stop_event = asyncio.Event()
        loop = asyncio.get_running_loop()

        original_sigint = signal.getsignal(signal.SIGINT)

        def _on_sigint(sig: int, frame: object) -> None:
            # Schedule the event set on the event loop thread (safe on Windows)
            loop.call_soon_threadsafe(stop_event.set)
            # Restore the original handler so a second Ctrl+C force-quits
            signal.signal(signal.SIGINT, original_sigint)

        signal.signal(signal.SIGINT, _on_sigint)
        await _main(args, stop_event)

    asyncio.run(_run())


if __name__ == "__main__":
    main()
