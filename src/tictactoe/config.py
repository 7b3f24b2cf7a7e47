"""Environment-driven settings for the Tic-Tac-Toe server."""

from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache
from typing import Mapping, Optional
import os

LOG_LEVELS = ("critical", "error", "warning", "info", "debug")


@dataclass(frozen=True)
class Settings:
    host: str = "0.0.0.0"
    port: int = 8000
    log_level: str = "info"
    # Pause before the computer's move is applied.
    ai_delay: float = 0.4
    # Pause before the page starts the next round on its own.
    restart_delay: float = 2.0

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "Settings":
        env = os.environ if environ is None else environ
        log_level = env.get("TICTACTOE_LOG_LEVEL", cls.log_level).strip().lower()
        if log_level not in LOG_LEVELS:
            raise ValueError(
                f"TICTACTOE_LOG_LEVEL must be one of {', '.join(LOG_LEVELS)}, "
                f"got {log_level!r}"
            )
        return cls(
            host=env.get("TICTACTOE_HOST", cls.host),
            port=_number(env, "TICTACTOE_PORT", cls.port, int),
            log_level=log_level,
            ai_delay=_number(env, "TICTACTOE_AI_DELAY", cls.ai_delay, float),
            restart_delay=_number(
                env, "TICTACTOE_RESTART_DELAY", cls.restart_delay, float
            ),
        )


@lru_cache(maxsize=None)
def get_settings() -> Settings:
    """Settings from the process environment, read once on first use."""
    return Settings.from_env()


def _number(env: Mapping[str, str], name: str, default, kind):
    raw = env.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = kind(raw)
    except ValueError as exc:
        raise ValueError(f"{name} must be a number, got {raw!r}") from exc
    if value < 0:
        raise ValueError(f"{name} must not be negative, got {raw!r}")
    return value
