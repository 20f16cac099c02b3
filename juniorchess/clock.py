"""Chess clock with pause/resume and Fischer-style increment on resume."""

from __future__ import annotations

import time
from collections.abc import Callable

from juniorchess.events import Color, opposite


def monotonic_ms() -> float:
    return time.monotonic() * 1000.0


class ChessClock:
    """One side's countdown.

    Remaining time is computed lazily from the injected millisecond clock on
    every query, so irregular polling never loses accuracy. Increments are
    only granted by resume(), i.e. when it becomes this side's turn again.
    """

    def __init__(
        self,
        timeout_ms: int,
        increment_ms: int = 0,
        now: Callable[[], float] = monotonic_ms,
    ) -> None:
        self._now = now
        self.configured_ms = timeout_ms
        self.increment_ms = increment_ms
        self.remaining = float(timeout_ms)
        self.running = False
        self._started_at = 0.0

    def start(self) -> None:
        if self.running:
            return
        self._started_at = self._now()
        self.running = True

    def stop(self) -> None:
        if not self.running:
            return
        self.remaining = max(0.0, self.remaining - (self._now() - self._started_at))
        self.running = False

    def resume(self, increment_ms: int | None = None) -> None:
        if self.running or self.remaining <= 0:
            return
        self.remaining += self.increment_ms if increment_ms is None else increment_ms
        self._started_at = self._now()
        self.running = True

    def reduce_by(self, ms: float) -> None:
        """Deduct time regardless of running state (e.g. a bot's thinking time)."""
        self.remaining = max(0.0, self.remaining - ms)

    def reset(self, timeout_ms: int | None = None) -> None:
        if timeout_ms is not None:
            self.configured_ms = timeout_ms
        self.remaining = float(self.configured_ms)
        self.running = False
        self._started_at = 0.0

    def remaining_ms(self) -> int:
        if self.running:
            return int(max(0.0, self.remaining - (self._now() - self._started_at)))
        return int(self.remaining)

    def has_expired(self) -> bool:
        return self.remaining_ms() == 0

    def time_string(self) -> str:
        return format_ms(self.remaining_ms())


def format_ms(ms: int) -> str:
    """MM:SS.cc display string."""
    minutes, rest = divmod(max(0, ms), 60_000)
    seconds, millis = divmod(rest, 1000)
    return f"{minutes:02d}:{seconds:02d}.{millis // 10:02d}"


class GameClocks:
    """The pair of clocks for one game, plus the per-tick expiry reaction."""

    def __init__(self, white: ChessClock, black: ChessClock) -> None:
        self.white = white
        self.black = black

    def __getitem__(self, color: Color) -> ChessClock:
        return self.white if color == "white" else self.black

    def switch_after_move(self, mover: Color) -> None:
        self[mover].stop()
        self[opposite(mover)].resume()

    def stop_all(self) -> None:
        self.white.stop()
        self.black.stop()

    def poll(self) -> Color | None:
        """Clock tick: the side whose flag has fallen, if any."""
        for color in ("white", "black"):
            if self[color].has_expired():
                return color
        return None
