"""
Terminal view of a running game.

GameSession knows nothing about terminals; main.py feeds every event it yields
through display_event(). The board is drawn once per turn, flanked by the two
clocks with the opponent's on top, the way a player sitting at White sees it.
"""

from __future__ import annotations

from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from juniorchess.events import (
    ClockReading,
    Color,
    GameEvent,
    GameOverEvent,
    GameStartEvent,
    HintEvent,
    MoveAppliedEvent,
    MoveRejectedEvent,
    TurnStartEvent,
)

console = Console(legacy_windows=False)

_PIECE_SYMBOLS: dict[Color, str] = {"white": "♔", "black": "♚"}
_SIDE_STYLES: dict[Color, str] = {"white": "bold white", "black": "bold bright_black"}
_RESULT_STYLES: dict[str, str] = {
    "1-0": "bold green",
    "0-1": "bold red",
    "1/2-1/2": "bold yellow",
    "*": "dim",
}


def display_event(event: GameEvent, show_evaluation: bool = False) -> None:
    match event:
        case GameStartEvent():
            _announce(event)
        case TurnStartEvent():
            _draw_position(event)
        case HintEvent():
            _hint(event)
        case MoveRejectedEvent():
            _rejected(event)
        case MoveAppliedEvent():
            _played(event, show_evaluation)
        case GameOverEvent():
            _final(event)


def _clock_row(label: str, reading: ClockReading, color: Color) -> str:
    value = reading.white if color == "white" else reading.black
    return f"[dim]{label}[/] [{_SIDE_STYLES[color]}]{value}[/]"


def _announce(event: GameStartEvent) -> None:
    grid = Table.grid(padding=(0, 2))
    grid.add_column(justify="right")
    grid.add_column()
    grid.add_row("[dim]White[/]", f"[bold]{event.white_name}[/]  [dim]{event.clocks.white}[/]")
    grid.add_row("[dim]Black[/]", f"[bold]{event.black_name}[/]  [dim]{event.clocks.black}[/]")
    grid.add_row("[dim]Position[/]", f"[dim]{event.starting_fen}[/]")
    console.print()
    console.print(
        Panel(
            grid,
            title="[bold green] Junior Chess [/]",
            subtitle=f"[dim]{event.timestamp:%Y-%m-%d %H:%M}[/]",
            border_style="green",
            expand=False,
        )
    )


def _draw_position(event: TurnStartEvent) -> None:
    console.print()
    console.print(_clock_row("Black", event.clocks, "black"))
    console.print(
        Panel(
            f"[green]{event.board_ascii}[/]",
            subtitle=f"[dim]{event.fen}[/]",
            border_style="dim",
            padding=(0, 1),
            expand=False,
        )
    )
    console.print(_clock_row("White", event.clocks, "white"))
    if event.move_list:
        console.print(f"[dim]Moves:[/] {event.move_list}")
    console.print(
        f"[dim]{event.move_number}.[/] "
        f"[{_SIDE_STYLES[event.color]}]{_PIECE_SYMBOLS[event.color]}  {event.player_name}[/] to move"
    )


def _hint(event: HintEvent) -> None:
    if event.best_move is None:
        console.print("  [dim]hint: the engine has no move to suggest[/]")
        return
    evaluation = f" [dim]({event.evaluation})[/]" if event.evaluation else ""
    console.print(f"  [magenta]hint:[/] [bold]{event.best_move}[/]{evaluation}")


def _rejected(event: MoveRejectedEvent) -> None:
    shown = f"[yellow]{event.attempted_move}[/] " if event.attempted_move else ""
    console.print(f"  [red]✗[/] {shown}[dim]{event.reason}[/]")


def _played(event: MoveAppliedEvent, show_evaluation: bool) -> None:
    parts = [f"  [green]✓[/] [bold]{event.move_san}[/]"]
    if event.gives_check:
        parts.append("[bold red]check[/]")
    parts.append(f"[dim]{event.move_uci}[/]")
    if event.decision_time_ms:
        parts.append(f"[dim]thought {event.decision_time_ms / 1000:.1f}s[/]")
    if show_evaluation and event.evaluation:
        parts.append(f"[cyan]{event.evaluation}[/]")
    console.print("  ".join(parts))


def _final(event: GameOverEvent) -> None:
    style = _RESULT_STYLES.get(event.result, "white")
    if event.reason == "interrupted":
        verdict = "[yellow]Stopped before the end[/]"
    elif event.reason == "move_limit":
        verdict = "[yellow]Move limit reached[/]"
    elif event.winner_name:
        verdict = f"[bold]{event.winner_name}[/] wins"
    else:
        verdict = "[yellow]Drawn[/]"

    console.print()
    console.print(
        Panel(
            f"[{style}]{event.result}[/] by {event.reason.replace('_', ' ')}\n"
            f"{verdict}\n"
            f"[dim]{event.total_plies} plies · clocks {event.clocks.white} / {event.clocks.black}[/]",
            title="[bold]Game Over[/]",
            border_style=style.replace("bold ", ""),
            expand=False,
        )
    )
    console.print()
    console.rule("[dim]PGN[/]")
    console.print(event.pgn)
    console.rule()
