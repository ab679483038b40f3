# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Runtime settings from ``BIZREG_*`` environment variables.

CLI flags override env values; see ``cli.py``.
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path

from .errors import ConfigError

_TRUE_VALUES = ("1", "true", "yes")
_FALSE_VALUES = ("0", "false", "no")


def _env_bool(env: Mapping[str, str], key: str, default: bool) -> bool:
    raw = env.get(key, "").strip().lower()
    if raw in _TRUE_VALUES:
        return True
    if raw in _FALSE_VALUES:
        return False
    return default


def _env_int(env: Mapping[str, str], key: str, default: int, *, minimum: int = 0) -> int:
    raw = env.get(key, "").strip()
    if not raw:
        return default
    try:
        value = int(raw)
    except ValueError:
        raise ConfigError(f"{key} must be an integer, got {raw!r}", key=key) from None
    if value < minimum:
        raise ConfigError(f"{key} must be >= {minimum}, got {value}", key=key)
    return value


@dataclass
class Settings:
    log_level: str = "INFO"
    log_json: bool = False
    knowledge_dir: Path | None = None  # None = bundled data
    settle_ms: int = 1000  # wait for dynamic content before capturing
    timeout_ms: int = 30000
    headless: bool = True
    max_pages: int = 100

    @classmethod
    def from_env(cls, env: Mapping[str, str] | None = None) -> Settings:
        env = os.environ if env is None else env
        knowledge = env.get("BIZREG_KNOWLEDGE_DIR", "").strip()
        return cls(
            log_level=env.get("BIZREG_LOG_LEVEL", "").strip().upper() or "INFO",
            log_json=_env_bool(env, "BIZREG_LOG_JSON", False),
            knowledge_dir=Path(knowledge).expanduser() if knowledge else None,
            settle_ms=_env_int(env, "BIZREG_SETTLE_MS", 1000),
            timeout_ms=_env_int(env, "BIZREG_TIMEOUT_MS", 30000, minimum=1),
            headless=_env_bool(env, "BIZREG_HEADLESS", True),
            max_pages=_env_int(env, "BIZREG_MAX_PAGES", 100, minimum=1),
        )
