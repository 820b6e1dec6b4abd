from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass, field


def _default_pool_size() -> int:
    return os.cpu_count() or 1


def _env_number(environ: Mapping[str, str], name: str, kind, default):
    raw = environ.get(name)
    if raw is None or not raw.strip():
        return default
    try:
        return kind(raw)
    except ValueError:
        raise ValueError(f"{name} must be a {kind.__name__}, got {raw!r}") from None


@dataclass
class StayOpenConfig:
    executable: str = "exiftool"
    default_options: tuple[str, ...] = ("-json",)
    pool_size: int = field(default_factory=_default_pool_size)

    # seconds to wait for exit after the shutdown directive before killing
    stop_timeout: float = 5.0
    chunk_size: int = 65536

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "StayOpenConfig":
        env = os.environ if environ is None else environ
        cfg = cls()
        cfg.executable = env.get("STAYOPEN_EXIFTOOL") or cfg.executable
        if "STAYOPEN_DEFAULT_OPTIONS" in env:
            cfg.default_options = tuple(env["STAYOPEN_DEFAULT_OPTIONS"].split())
        cfg.pool_size = _env_number(env, "STAYOPEN_POOL_SIZE", int, cfg.pool_size)
        cfg.stop_timeout = _env_number(env, "STAYOPEN_STOP_TIMEOUT", float, cfg.stop_timeout)
        return cfg
