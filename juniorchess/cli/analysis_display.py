"""Rich table for the post-game analysis records."""

from __future__ import annotations

from rich.console import Console
from rich.table import Table

from juniorchess.analysis import AnalysisRecord
from juniorchess.clock import format_ms

console = Console(legacy_windows=False)


def display_analysis(records: list[AnalysisRecord]) -> None:
    table = Table(
        title="Game Analysis",
        show_header=True,
        header_style="bold",
        border_style="dim",
    )
    table.add_column("Ply", style="dim", justify="right")
    table.add_column("Played")
    table.add_column("Best")
    table.add_column("Score", justify="right")
    table.add_column("After", justify="right")
    table.add_column("White", style="dim", justify="right")
    table.add_column("Black", style="dim", justify="right")
    table.add_column("Line", style="dim")

    for i, record in enumerate(records, 1):
        played_style = "green" if record.matches_engine else "yellow"
        table.add_row(
            str(i),
            f"[{played_style}]{record.played}[/]",
            str(record.best_move) if record.best_move else "-",
            str(record.best_score) if record.best_score is not None else "-",
            str(record.retrospective_score) if record.retrospective_score is not None else "",
            format_ms(record.entry.white_ms),
            format_ms(record.entry.black_ms),
            " ".join(record.best_line[:6]),
        )

    console.print()
    console.print(table)


def display_progress(index: int, record: AnalysisRecord) -> None:
    console.print(f"  [dim]analysed ply {index + 1}: {record.played} (best {record.best_move or '-'})[/]")
