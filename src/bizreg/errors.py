# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""bizreg exception hierarchy.

All bizreg-specific errors inherit from BizRegError, allowing callers
to catch the base class for any bizreg failure or specific subclasses
for targeted handling.  The classification engine itself never raises
these; it degrades to low-confidence results instead.
"""

from __future__ import annotations


class BizRegError(Exception):
    """Base exception for all bizreg errors."""


class SnapshotError(BizRegError):
    """Page HTML could not be turned into a PageSnapshot."""


class BrowserError(BizRegError):
    """Browser launch, navigation, or page capture failure."""


class KnowledgeBaseError(BizRegError):
    """Reference data file missing, unreadable, or schema-invalid."""

    def __init__(self, message: str, *, path: str = "") -> None:
        super().__init__(message)
        self.path = path


class ConfigError(BizRegError):
    """Invalid configuration value (env var or CLI flag)."""

    def __init__(self, message: str, *, key: str = "") -> None:
        super().__init__(message)
        self.key = key
