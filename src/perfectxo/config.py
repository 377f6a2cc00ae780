"""Runtime settings read from ``PERFECTXO_*`` environment variables."""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Mapping, Optional, Tuple

PREFIX = "PERFECTXO_"
LOG_LEVELS = ("critical", "error", "warning", "info", "debug")


@dataclass(frozen=True)
class Settings:
    host: str = "0.0.0.0"
    port: int = 8000
    log_level: str = "info"
    # Pause (min, max seconds) before the computer answers, so moves don't snap in.
    ai_think_delay: Tuple[float, float] = (0.3, 0.8)
    # How long the page shows a finished game before clearing it.
    reset_delay_ms: int = 2000

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "Settings":
        env = os.environ if environ is None else environ
        defaults = cls()

        def get(name: str) -> Optional[str]:
            value = env.get(PREFIX + name)
            return value.strip() if value is not None and value.strip() else None

        host = get("HOST") or defaults.host
        port = _parse_int("PORT", get("PORT"), defaults.port)
        if not 0 < port < 65536:
            raise ValueError(f"{PREFIX}PORT must be between 1 and 65535, got {port}")

        log_level = (get("LOG_LEVEL") or defaults.log_level).lower()
        if log_level not in LOG_LEVELS:
            raise ValueError(
                f"{PREFIX}LOG_LEVEL must be one of {', '.join(LOG_LEVELS)}, got {log_level!r}"
            )

        delay = defaults.ai_think_delay
        raw_delay = get("AI_DELAY")
        if raw_delay is not None:
            delay = _parse_delay(raw_delay)

        reset_delay_ms = _parse_int("RESET_DELAY_MS", get("RESET_DELAY_MS"), defaults.reset_delay_ms)
        if reset_delay_ms < 0:
            raise ValueError(f"{PREFIX}RESET_DELAY_MS must not be negative")

        return cls(
            host=host,
            port=port,
            log_level=log_level,
            ai_think_delay=delay,
            reset_delay_ms=reset_delay_ms,
        )


def _parse_int(name: str, raw: Optional[str], default: int) -> int:
    if raw is None:
        return default
    try:
        return int(raw)
    except ValueError as exc:
        raise ValueError(f"{PREFIX}{name} must be an integer, got {raw!r}") from exc


def _parse_delay(raw: str) -> Tuple[float, float]:
    """Accept ``"0.5"`` or ``"0.3,0.8"``."""
    parts = [p.strip() for p in raw.split(",")]
    try:
        values = [float(p) for p in parts]
    except ValueError as exc:
        raise ValueError(f"{PREFIX}AI_DELAY must be numbers, got {raw!r}") from exc
    if len(values) == 1:
        values = values * 2
    if len(values) != 2 or values[0] < 0 or values[1] < values[0]:
        raise ValueError(f"{PREFIX}AI_DELAY must be 'min,max' with 0 <= min <= max, got {raw!r}")
    return values[0], values[1]
