import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional

from .cache import DEFAULT_TTL
from .sparql import DEFAULT_ENDPOINT, DEFAULT_USER_AGENT


def _float(env: Mapping[str, str], name: str, default: float) -> float:
    raw = env.get(name)
    if raw is None or not raw.strip():
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def _int(env: Mapping[str, str], name: str, default: int) -> int:
    raw = env.get(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError:
        return default


@dataclass(frozen=True)
class Settings:
    endpoint: str = DEFAULT_ENDPOINT
    user_agent: str = DEFAULT_USER_AGENT
    timeout: float = 5.0
    max_retries: int = 2
    backoff: float = 0.3
    cache_ttl: float = DEFAULT_TTL
    cache_db: Optional[Path] = None

    @classmethod
    def from_env(cls, env: Optional[Mapping[str, str]] = None) -> "Settings":
        """Read REGIONEST_* variables; malformed numbers fall back to defaults."""
        if env is None:
            env = os.environ
        cache_db = env.get("REGIONEST_CACHE_DB")
        return cls(
            endpoint=env.get("REGIONEST_SPARQL_ENDPOINT") or DEFAULT_ENDPOINT,
            user_agent=env.get("REGIONEST_USER_AGENT") or DEFAULT_USER_AGENT,
            timeout=_float(env, "REGIONEST_TIMEOUT", 5.0),
            max_retries=max(0, _int(env, "REGIONEST_MAX_RETRIES", 2)),
            backoff=_float(env, "REGIONEST_BACKOFF", 0.3),
            cache_ttl=_float(env, "REGIONEST_CACHE_TTL", DEFAULT_TTL),
            cache_db=Path(cache_db) if cache_db else None,
        )
