"""
Move values and the append-only move history of a game session.

A Move carries the position it was played from (origin_fen) so that a finished
game can be walked back through the engine position by position.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace

QUEEN = "q"


@dataclass(frozen=True)
class Move:
    source: str
    target: str
    promotion: str | None = None
    origin_fen: str = ""
    decision_time_ms: int = 0

    @classmethod
    def from_uci(
        cls,
        uci: str,
        origin_fen: str = "",
        decision_time_ms: int = 0,
        promotion: str | None = None,
    ) -> Move:
        """Build a Move from a 4-5 character UCI string (promotion letter optional)."""
        if len(uci) not in (4, 5):
            raise ValueError(f"Not a UCI move: {uci!r}")
        return cls(
            source=uci[0:2],
            target=uci[2:4],
            promotion=uci[4] if len(uci) == 5 else promotion,
            origin_fen=origin_fen,
            decision_time_ms=decision_time_ms,
        )

    def with_decision_time(self, decision_time_ms: int) -> Move:
        return replace(self, decision_time_ms=decision_time_ms)

    def __str__(self) -> str:
        return f"{self.source}{self.target}"


@dataclass(frozen=True)
class HistoryEntry:
    fen_after: str
    move: Move
    white_ms: int   # remaining clock times right after the move
    black_ms: int


@dataclass
class MoveHistory:
    """Ordered record of accepted moves; entries are never changed or removed."""

    start_fen: str | None = None
    _entries: list[HistoryEntry] = field(default_factory=list)

    def add(self, entry: HistoryEntry) -> None:
        self._entries.append(entry)

    def __len__(self) -> int:
        return len(self._entries)

    def __getitem__(self, index: int) -> HistoryEntry:
        return self._entries[index]

    def __iter__(self):
        return iter(self._entries)

    @property
    def entries(self) -> tuple[HistoryEntry, ...]:
        return tuple(self._entries)

    def render_pairs(self) -> list[str]:
        """
        Numbered move list, two plies per row: ["1. e2e4 e7e5", "2. g1f3"].

        Numbering follows start_fen; a game that starts with Black to move
        opens with a lone "N... move" row.
        """
        fields = (self.start_fen or "").split()
        number = int(fields[5]) if len(fields) > 5 and fields[5].isdigit() else 1
        plies = [str(e.move) for e in self._entries]
        rows: list[str] = []
        if plies and len(fields) > 1 and fields[1] == "b":
            rows.append(f"{number}... {plies[0]}")
            plies = plies[1:]
            number += 1
        for i in range(0, len(plies), 2):
            rows.append(f"{number + i // 2}. {' '.join(plies[i:i + 2])}")
        return rows

    def render(self) -> str:
        return " ".join(self.render_pairs())
