"""
Interactive bot selection at game start.

Displays a numbered table of all bot personalities and prompts the user
to pick one.
"""

from __future__ import annotations

from rich.console import Console
from rich.prompt import IntPrompt
from rich.table import Table

from juniorchess.bots import AVAILABLE_BOTS, BotProfile

console = Console(legacy_windows=False)


def select_bot(bots: tuple[BotProfile, ...] = AVAILABLE_BOTS) -> BotProfile:
    """Display all bots and prompt for one."""
    _print_bot_table(bots)

    choices = [str(i) for i in range(1, len(bots) + 1)]
    index = IntPrompt.ask(
        "\n[bold]Which bot do you want to play?[/]",
        choices=choices,
        show_choices=False,
        default=1,
    )
    bot = bots[index - 1]
    console.print(f"\n  Opponent: [bold]{bot.label}[/]\n")
    return bot


def _print_bot_table(bots: tuple[BotProfile, ...]) -> None:
    table = Table(
        title="Available Bots",
        show_header=True,
        header_style="bold",
        border_style="dim",
        show_lines=False,
    )
    table.add_column("#", style="dim", width=3, justify="right")
    table.add_column("Bot", min_width=14)
    table.add_column("Depth", justify="right")
    table.add_column("Style", style="dim")

    for i, bot in enumerate(bots, 1):
        table.add_row(str(i), bot.label, str(bot.min_depth), _describe(bot))

    console.print()
    console.print(table)


def _describe(bot: BotProfile) -> str:
    if bot.use_engine_top_move:
        return "always the engine's best move"
    parts = [f"accepts {bot.max_score_decline:g} pawns worse"]
    if bot.preferred_pieces:
        parts.append("likes " + "/".join(bot.preferred_pieces))
    if bot.opening_book_white or bot.opening_book_black:
        parts.append("has an opening book")
    return ", ".join(parts)
