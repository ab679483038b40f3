# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Logging setup for the CLI and the MCP server.

stdlib ``logging`` calls from every bizreg module are rendered through
structlog: ConsoleRenderer for people, JSONRenderer for ``--json-logs`` /
``BIZREG_LOG_JSON``.  Output always goes to stderr because stdout carries
CLI result JSON and the MCP stdio stream.  ``page_id`` bound by the
detection coordinator shows up on every line logged while classifying.

Chatty dependencies (mcp, playwright, asyncio) are held at WARNING unless
bizreg itself runs at DEBUG.
"""

from __future__ import annotations

import logging
import sys
from typing import IO, Protocol

import structlog

# Dependencies that log per request / per protocol frame at INFO
NOISY_LOGGERS: tuple[str, ...] = ("mcp", "playwright", "asyncio")


class _LogSettings(Protocol):
    log_level: str
    log_json: bool


def resolve_level(level: str | int) -> int:
    """Map a level name or number to a stdlib level; unknown names mean INFO."""
    if isinstance(level, int):
        return level
    value = logging.getLevelName(level.strip().upper())
    return value if isinstance(value, int) else logging.INFO


def _shared_processors() -> list:
    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
    ]


def configure(*, json_output: bool = False, level: str | int = "INFO", stream: IO[str] | None = None) -> None:
    """Route stdlib and structlog output through one stderr handler.

    Safe to call repeatedly; each call replaces the previous handler.
    """
    root_level = resolve_level(level)
    shared = _shared_processors()

    structlog.configure(
        processors=[*shared, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    renderer = structlog.processors.JSONRenderer() if json_output else structlog.dev.ConsoleRenderer()
    handler = logging.StreamHandler(stream or sys.stderr)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            processors=[structlog.stdlib.ProcessorFormatter.remove_processors_meta, renderer],
            foreign_pre_chain=shared,
        )
    )

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(root_level)

    dependency_level = root_level if root_level <= logging.DEBUG else max(root_level, logging.WARNING)
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(dependency_level)


def configure_from_settings(settings: _LogSettings) -> None:
    """Apply ``Settings.log_level`` / ``Settings.log_json``."""
    configure(json_output=settings.log_json, level=settings.log_level)
