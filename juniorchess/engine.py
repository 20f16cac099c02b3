"""
Engine channel transport and search request correlation.

The engine is a line-oriented UCI process. At most one search per channel is
"current"; submitting a new position supersedes the previous one without
sending any cancel command, so lines that still arrive for an older search
must be recognised and dropped here, by the consumer.

Correlation works structurally: every `go` produces exactly one `bestmove`,
so open searches are kept in send order and each incoming line belongs to the
oldest open search. Lines are delivered only when that search is also the
most recently submitted one.

A search that times out is abandoned: the client sends `stop`, which makes
the engine emit the one `bestmove` still owed for it, so the queue of open
searches stays in step with the engine for the next submit.
"""

from __future__ import annotations

import asyncio
import logging
from abc import ABC, abstractmethod
from collections import deque
from collections.abc import Callable
from dataclasses import dataclass
from typing import AsyncIterator

from juniorchess.events import Color
from juniorchess.protocol import (
    STOP_COMMAND,
    EngineEvent,
    FinalMove,
    Info,
    Unrecognized,
    go_command,
    multipv_command,
    parse_line,
    position_command,
)

logger = logging.getLogger(__name__)


class EngineError(Exception):
    """Raised when talking to the engine process fails unrecoverably."""

    def __init__(self, engine: str, message: str, cause: Exception | None = None) -> None:
        self.engine = engine
        self.cause = cause
        super().__init__(f"[{engine}] {message}")


class EngineTimeout(EngineError):
    """The engine did not answer a search within the allowed time."""


class EngineChannel(ABC):
    """Bidirectional text-line channel to an already running engine."""

    name: str = "engine"

    @abstractmethod
    def send(self, command: str) -> None:
        """Queue one command line. Must not block."""
        ...

    @abstractmethod
    def lines(self) -> AsyncIterator[str]:
        """Yield engine output lines until the channel closes."""
        ...

    async def close(self) -> None:
        pass


class UciProcess(EngineChannel):
    """EngineChannel over a local UCI executable (e.g. stockfish on PATH)."""

    def __init__(self, path: str = "stockfish", handshake_timeout: float = 10.0) -> None:
        self.name = path
        self._path = path
        self._handshake_timeout = handshake_timeout
        self._proc: asyncio.subprocess.Process | None = None

    async def start(self) -> UciProcess:
        try:
            self._proc = await asyncio.create_subprocess_exec(
                self._path,
                stdin=asyncio.subprocess.PIPE,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.DEVNULL,
            )
        except OSError as exc:
            raise EngineError(self.name, f"could not start engine: {exc}", exc) from exc

        self.send("uci")
        await self._expect("uciok")
        self.send("isready")
        await self._expect("readyok")
        logger.info("Engine %s ready (pid=%s)", self.name, self._proc.pid)
        return self

    def send(self, command: str) -> None:
        if self._proc is None or self._proc.stdin is None:
            raise EngineError(self.name, "engine not running")
        logger.debug("%s << %s", self.name, command)
        self._proc.stdin.write((command + "\n").encode("utf-8"))

    async def lines(self) -> AsyncIterator[str]:
        if self._proc is None or self._proc.stdout is None:
            raise EngineError(self.name, "engine not running")
        while True:
            raw = await self._proc.stdout.readline()
            if not raw:
                return
            line = raw.decode("utf-8", errors="replace").strip()
            logger.debug("%s >> %s", self.name, line)
            yield line

    async def close(self) -> None:
        if self._proc is None:
            return
        proc, self._proc = self._proc, None
        if proc.returncode is None:
            try:
                proc.stdin.write(b"quit\n")  # type: ignore[union-attr]
                await asyncio.wait_for(proc.wait(), timeout=2.0)
            except (asyncio.TimeoutError, ConnectionError):
                proc.kill()
                await proc.wait()

    async def _expect(self, token: str) -> None:
        assert self._proc is not None and self._proc.stdout is not None
        stdout = self._proc.stdout

        async def _read_until() -> None:
            while True:
                raw = await stdout.readline()
                if not raw:
                    raise EngineError(self.name, f"engine exited before '{token}'")
                if raw.decode("utf-8", errors="replace").strip() == token:
                    return

        try:
            await asyncio.wait_for(_read_until(), timeout=self._handshake_timeout)
        except asyncio.TimeoutError as exc:
            raise EngineTimeout(self.name, f"timeout waiting for '{token}'", exc) from exc


@dataclass(eq=False)
class SearchRequest:
    request_id: int
    fen: str
    turn: Color
    depth: int
    on_event: Callable[[EngineEvent], None]
    on_closed: Callable[[], None] | None = None
    finished: bool = False
    abandoned: bool = False


class EngineClient:
    """Owns one EngineChannel and pairs its output with submitted searches."""

    def __init__(self, channel: EngineChannel) -> None:
        self._channel = channel
        self._open: deque[SearchRequest] = deque()
        self._current: SearchRequest | None = None
        self._next_id = 1
        self._reader: asyncio.Task[None] | None = None
        self.closed = False

    @property
    def name(self) -> str:
        return self._channel.name

    @property
    def current(self) -> SearchRequest | None:
        return self._current

    def submit(
        self,
        fen: str,
        turn: Color,
        depth: int,
        on_event: Callable[[EngineEvent], None],
        multipv: int | None = None,
        on_closed: Callable[[], None] | None = None,
    ) -> SearchRequest:
        """Start a search for `fen`; any older search becomes stale."""
        if self.closed:
            raise EngineError(self.name, "engine channel is closed")
        request = SearchRequest(
            request_id=self._next_id,
            fen=fen,
            turn=turn,
            depth=depth,
            on_event=on_event,
            on_closed=on_closed,
        )
        self._next_id += 1
        self._channel.send(position_command(fen))
        if multipv is not None:
            self._channel.send(multipv_command(multipv))
        self._channel.send(go_command(depth))
        self._open.append(request)
        self._current = request
        return request

    def feed(self, line: str) -> None:
        """React to one engine line. Never raises on protocol noise."""
        if not self._open:
            logger.debug("%s: unmatched line ignored: %s", self.name, line)
            return
        request = self._open[0]
        event = parse_line(line, request.turn)
        if isinstance(event, Unrecognized):
            return
        if isinstance(event, FinalMove):
            self._open.popleft()
            request.finished = True
        if request is not self._current or request.abandoned:
            logger.debug("%s: stale line for request %d dropped", self.name, request.request_id)
            return
        request.on_event(event)

    async def pump(self) -> None:
        """Drain the channel into feed() until it closes."""
        async for line in self._channel.lines():
            self.feed(line)
        self.closed = True
        logger.warning("%s: engine channel closed with %d open search(es)", self.name, len(self._open))
        for request in list(self._open):
            if request.on_closed is not None:
                request.on_closed()
        self._open.clear()

    async def search(
        self,
        fen: str,
        turn: Color,
        depth: int,
        on_info: Callable[[Info, str], None] | None = None,
        multipv: int | None = None,
        timeout: float | None = None,
    ) -> FinalMove:
        """
        Submit a search and wait for its final move.

        on_info receives every Info event together with the FEN it belongs to.

        Raises:
            EngineTimeout: no bestmove within `timeout` seconds.
            EngineError: the channel closed while waiting.
        """
        loop = asyncio.get_running_loop()
        done: asyncio.Future[FinalMove] = loop.create_future()

        def _on_event(event: EngineEvent) -> None:
            if isinstance(event, Info):
                if on_info is not None:
                    on_info(event, fen)
            elif isinstance(event, FinalMove) and not done.done():
                done.set_result(event)

        def _on_closed() -> None:
            if not done.done():
                done.set_exception(EngineError(self.name, "engine closed during search"))

        request = self.submit(fen, turn, depth, _on_event, multipv=multipv, on_closed=_on_closed)
        try:
            return await asyncio.wait_for(done, timeout=timeout)
        except asyncio.TimeoutError as exc:
            self.abandon(request)
            raise EngineTimeout(self.name, f"no bestmove within {timeout}s for {fen}", exc) from exc

    def abandon(self, request: SearchRequest) -> None:
        """Give up on a search; its late output is dropped and the engine is told to stop."""
        if request.finished or request.abandoned:
            return
        request.abandoned = True
        logger.warning("%s: abandoning search %d for %s", self.name, request.request_id, request.fen)
        if not self.closed:
            self._channel.send(STOP_COMMAND)

    def ensure_reader(self) -> None:
        """Run pump() as a background task, started once and shared by every caller."""
        if self._reader is None:
            self._reader = asyncio.create_task(self.pump())

    async def close(self) -> None:
        if self._reader is not None:
            self._reader.cancel()
            try:
                await self._reader
            except (asyncio.CancelledError, EngineError):
                pass
            self._reader = None
        await self._channel.close()
