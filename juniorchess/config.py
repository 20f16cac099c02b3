"""
Configuration loading from config.yaml.

Uses typed dataclasses throughout so the rest of the app gets IDE
completion and type-checker support without touching raw dicts.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Literal

import yaml

ComputerSide = Literal["white", "black", "none", "random", "both"]

# Named starting positions, mostly basic endgames to practise against a bot.
START_POSITIONS: dict[str, str] = {
    "queen": "2k5/8/8/8/8/8/3Q4/4K3 w - - 0 22",
    "rook": "2k5/8/8/8/8/8/3R4/4K3 w - - 0 22",
    "pawn": "2k5/8/8/8/8/8/3P4/4K3 w - - 0 22",
    "bishop_knight": "2k5/8/8/8/8/8/3NB3/4K3 w - - 0 22",
    "two_bishops": "2k5/8/8/8/8/8/3BB3/4K3 w - - 0 22",
    "queen_vs_rook": "2k5/1r6/8/8/8/8/3Q4/4K3 w - - 0 22",
    "rook_pawn_vs_rook": "2k5/3r4/8/8/8/8/3PR3/4K3 w - - 0 22",
}

_TIME_CONTROL_RE = re.compile(r"^\s*(\d+(?:\.\d+)?)\s*\+\s*(\d+(?:\.\d+)?)\s*$")


@dataclass(frozen=True)
class TimeControl:
    minutes: float = 15
    increment_seconds: float = 10

    @property
    def initial_ms(self) -> int:
        return int(self.minutes * 60_000)

    @property
    def increment_ms(self) -> int:
        return int(self.increment_seconds * 1000)

    def __str__(self) -> str:
        return f"{self.minutes:g}+{self.increment_seconds:g}"


def parse_time_control(value: str | int | float) -> TimeControl:
    """Parse "15+10" (minutes + increment seconds); a bare number means no increment."""
    if isinstance(value, (int, float)):
        return TimeControl(float(value), 0)
    match = _TIME_CONTROL_RE.match(str(value))
    if not match:
        raise ValueError(f"time control must look like '15+10', got {value!r}")
    return TimeControl(float(match.group(1)), float(match.group(2)))


@dataclass
class GameConfig:
    computer: ComputerSide = "black"
    bot: str | None = None            # bot name or symbol; None = ask interactively
    white_time: TimeControl = field(default_factory=TimeControl)
    black_time: TimeControl = field(default_factory=TimeControl)
    max_moves: int = 0                # full moves by White before the game stops; 0 = unlimited
    start_fen: str | None = None
    max_retries: int = 3
    save_pgn: bool = True
    pgn_dir: str = "./games"
    seed: int | None = None
    show_best_move: bool = False      # engine hint for a human on move


@dataclass
class EngineConfig:
    path: str = "stockfish"
    search_timeout: float = 60.0      # seconds before a silent engine counts as failed
    hint_depth: int = 12


@dataclass
class AnalysisConfig:
    enabled: bool = True
    depth: int = 10
    timeout: float | None = None      # overall analysis time limit in seconds


@dataclass
class LoggingConfig:
    level: str = "INFO"
    file: str = "./logs/juniorchess.log"


@dataclass
class Config:
    game: GameConfig = field(default_factory=GameConfig)
    engine: EngineConfig = field(default_factory=EngineConfig)
    analysis: AnalysisConfig = field(default_factory=AnalysisConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    @property
    def pgn_dir_path(self) -> Path:
        return Path(self.game.pgn_dir)


def default_config() -> Config:
    return Config()


def load_config(path: str | Path = "config.yaml") -> Config:
    """
    Load and validate config.yaml.

    Raises:
        FileNotFoundError: config.yaml is missing.
        ValueError: fields are invalid.
    """
    cfg_path = Path(path)
    if not cfg_path.exists():
        raise FileNotFoundError(
            f"Config file not found: {cfg_path.resolve()}\n"
            "Copy config.example.yaml to config.yaml and adjust it."
        )

    with cfg_path.open("r", encoding="utf-8") as f:
        raw = yaml.safe_load(f) or {}

    try:
        game_raw = raw.get("game") or {}
        preset = game_raw.get("start_position")
        start_fen = game_raw.get("start_fen") or None
        if preset:
            if preset not in START_POSITIONS:
                raise ValueError(
                    f"game.start_position must be one of {sorted(START_POSITIONS)}, got '{preset}'"
                )
            start_fen = START_POSITIONS[preset]
        seed = game_raw.get("seed")
        bot = game_raw.get("bot")
        game_cfg = GameConfig(
            computer=game_raw.get("computer", "black"),
            bot=str(bot) if bot is not None else None,
            white_time=parse_time_control(game_raw.get("white_time", "15+10")),
            black_time=parse_time_control(game_raw.get("black_time", "15+10")),
            max_moves=int(game_raw.get("max_moves", 0)),
            start_fen=start_fen,
            max_retries=int(game_raw.get("max_retries", 3)),
            save_pgn=bool(game_raw.get("save_pgn", True)),
            pgn_dir=game_raw.get("pgn_dir", "./games"),
            seed=int(seed) if seed is not None else None,
            show_best_move=bool(game_raw.get("show_best_move", False)),
        )

        engine_raw = raw.get("engine") or {}
        engine_cfg = EngineConfig(
            path=str(engine_raw.get("path", "stockfish")),
            search_timeout=float(engine_raw.get("search_timeout", 60.0)),
            hint_depth=int(engine_raw.get("hint_depth", 12)),
        )

        analysis_raw = raw.get("analysis") or {}
        timeout = analysis_raw.get("timeout")
        analysis_cfg = AnalysisConfig(
            enabled=bool(analysis_raw.get("enabled", True)),
            depth=int(analysis_raw.get("depth", 10)),
            timeout=float(timeout) if timeout is not None else None,
        )

        logging_raw = raw.get("logging") or {}
        logging_cfg = LoggingConfig(
            level=str(logging_raw.get("level", "INFO")).upper(),
            file=str(logging_raw.get("file", "./logs/juniorchess.log")),
        )

        config = Config(game=game_cfg, engine=engine_cfg, analysis=analysis_cfg, logging=logging_cfg)
        validate(config)
        return config

    except (KeyError, TypeError, AttributeError) as exc:
        raise ValueError(f"Invalid config.yaml structure: {exc}") from exc


def validate(config: Config) -> None:
    valid_sides = ("white", "black", "none", "random", "both")
    if config.game.computer not in valid_sides:
        raise ValueError(
            f"game.computer must be one of {valid_sides}, got '{config.game.computer}'"
        )
    if config.game.max_retries < 1:
        raise ValueError("game.max_retries must be >= 1")
    if config.game.max_moves < 0:
        raise ValueError("game.max_moves must be >= 0")
    if config.engine.search_timeout <= 0:
        raise ValueError("engine.search_timeout must be > 0")
    if config.engine.hint_depth < 1:
        raise ValueError("engine.hint_depth must be >= 1")
    if config.analysis.depth < 1:
        raise ValueError("analysis.depth must be >= 1")
    if config.logging.level not in ("DEBUG", "INFO", "WARNING", "ERROR"):
        raise ValueError(f"logging.level must be DEBUG/INFO/WARNING/ERROR, got '{config.logging.level}'")
