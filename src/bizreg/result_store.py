# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Latest classification result per page (tab), with LRU bound.

Pure Python module — no browser dependencies.

Every write replaces the page's entry wholesale under a lock, so a
reader sees either the most recently completed result or nothing,
never a partially written one.  Results are never merged.
"""

from __future__ import annotations

import logging
import threading
import time
from collections import OrderedDict
from dataclasses import dataclass
from enum import StrEnum

from .classifier import ClassificationResult

logger = logging.getLogger("bizreg.result_store")

DEFAULT_MAX_PAGES = 100


# ---------------------------------------------------------------------------
# Invalidation reasons
# ---------------------------------------------------------------------------


class InvalidationReason(StrEnum):
    """Why a page's result was dropped."""

    NAVIGATION = "navigation"
    PAGE_CLOSED = "page_closed"
    RESET = "reset"


# ---------------------------------------------------------------------------
# Store entry + stats
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class StoreEntry:
    """A stored result with the time it was published."""

    result: ClassificationResult
    stored_at: float  # time.monotonic()


@dataclass
class StoreStats:
    """Counters for store behaviour (hit rate is logged on clear)."""

    hits: int = 0
    misses: int = 0
    writes: int = 0
    evictions: int = 0
    invalidations: int = 0

    @property
    def hit_rate(self) -> float:
        total = self.hits + self.misses
        return self.hits / total if total > 0 else 0.0


# ---------------------------------------------------------------------------
# ResultStore
# ---------------------------------------------------------------------------


class ResultStore:
    """Thread-safe map ``page_id -> latest ClassificationResult``."""

    def __init__(self, max_pages: int = DEFAULT_MAX_PAGES) -> None:
        if max_pages < 1:
            raise ValueError("max_pages must be >= 1")
        self._max_pages = max_pages
        self._entries: OrderedDict[str, StoreEntry] = OrderedDict()
        self._lock = threading.Lock()
        self._stats = StoreStats()

    # -- Write --

    def put(self, page_id: str, result: ClassificationResult) -> None:
        """Publish *result* as the page's current result, replacing any previous one."""
        entry = StoreEntry(result=result, stored_at=time.monotonic())
        with self._lock:
            self._entries[page_id] = entry
            self._entries.move_to_end(page_id)
            self._stats.writes += 1
            while len(self._entries) > self._max_pages:
                evicted, _ = self._entries.popitem(last=False)
                self._stats.evictions += 1
                logger.debug("Result eviction: page=%s", evicted)
        logger.debug(
            "Result stored: page=%s positive=%s confidence=%d",
            page_id,
            result.is_business_registration_form,
            result.confidence_score,
        )

    # -- Read --

    def get(self, page_id: str) -> ClassificationResult | None:
        entry = self.get_entry(page_id)
        return entry.result if entry is not None else None

    def get_entry(self, page_id: str) -> StoreEntry | None:
        with self._lock:
            entry = self._entries.get(page_id)
            if entry is None:
                self._stats.misses += 1
                return None
            self._stats.hits += 1
            self._entries.move_to_end(page_id)
            return entry

    # -- Invalidation --

    def invalidate(self, page_id: str, reason: InvalidationReason) -> bool:
        """Drop the page's result.  Returns True if there was one."""
        with self._lock:
            removed = self._entries.pop(page_id, None) is not None
            if removed:
                self._stats.invalidations += 1
        logger.debug("Result invalidated: page=%s reason=%s removed=%s", page_id, reason.value, removed)
        return removed

    def clear(self) -> int:
        """Drop every page's result.  Returns the number dropped."""
        with self._lock:
            dropped = len(self._entries)
            self._entries.clear()
            self._stats.invalidations += dropped
            logger.debug(
                "Result store cleared: reason=%s dropped=%d writes=%d hit_rate=%.2f",
                InvalidationReason.RESET.value,
                dropped,
                self._stats.writes,
                self._stats.hit_rate,
            )
        return dropped

    # -- Introspection --

    @property
    def stats(self) -> StoreStats:
        return self._stats

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, page_id: object) -> bool:
        with self._lock:
            return page_id in self._entries
