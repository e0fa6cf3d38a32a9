"""Runtime settings read from environment variables."""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass


def _positive_number(env: Mapping[str, str], name: str, default: float) -> float:
    raw = env.get(name, "").strip()
    if not raw:
        return default
    try:
        value = float(raw)
    except ValueError:
        raise ValueError(f"{name} must be a number, got {raw!r}") from None
    if value <= 0:
        raise ValueError(f"{name} must be positive, got {raw!r}")
    return value


def _positive_int(env: Mapping[str, str], name: str, default: int) -> int:
    raw = env.get(name, "").strip()
    if not raw:
        return default
    try:
        value = int(raw)
    except ValueError:
        raise ValueError(f"{name} must be a whole number of seconds, got {raw!r}") from None
    if value < 1:
        raise ValueError(f"{name} must be at least 1, got {raw!r}")
    return value


@dataclass(frozen=True, slots=True)
class Settings:
    """Process configuration.

    - MASSIVE_API_KEY set and non-empty → real exchange rates from Massive
    - REDIS_URL set and non-empty → shared Redis cache, otherwise in-memory
    """

    massive_api_key: str = ""
    redis_url: str = ""
    poll_interval: float = 60.0  # seconds between watch ticks
    cache_ttl: int = 60  # seconds a cached price stays fresh
    log_level: str = "INFO"

    @classmethod
    def from_env(cls, env: Mapping[str, str] | None = None) -> Settings:
        env = os.environ if env is None else env
        return cls(
            massive_api_key=env.get("MASSIVE_API_KEY", "").strip(),
            redis_url=env.get("REDIS_URL", "").strip(),
            poll_interval=_positive_number(env, "PRICE_POLL_INTERVAL", 60.0),
            cache_ttl=_positive_int(env, "PRICE_CACHE_TTL", 60),
            log_level=env.get("LOG_LEVEL", "INFO").strip().upper() or "INFO",
        )
