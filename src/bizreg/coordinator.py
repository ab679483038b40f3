# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Host-side request/response contract around the engine.

The host (browser extension background, MCP server, CLI) reports page
lifecycle events; the coordinator classifies on page-ready / recheck and
publishes to the ResultStore.  ``request_classification`` answers with the
latest result or None — it never classifies on its own.
"""

from __future__ import annotations

import logging

import structlog

from . import PageSnapshot
from .classifier import ClassificationEngine, ClassificationResult
from .result_store import InvalidationReason, ResultStore

logger = logging.getLogger(__name__)


class DetectionCoordinator:
    def __init__(self, engine: ClassificationEngine | None = None, store: ResultStore | None = None) -> None:
        self.engine = engine or ClassificationEngine()
        self.store = store or ResultStore()

    def on_page_ready(self, page_id: str, snapshot: PageSnapshot) -> ClassificationResult:
        """Classify a freshly rendered page and publish the result."""
        with structlog.contextvars.bound_contextvars(page_id=page_id):
            result = self.engine.classify(snapshot)
            self.store.put(page_id, result)
        return result

    def recheck(self, page_id: str, snapshot: PageSnapshot) -> ClassificationResult:
        """Explicit re-detect: classify again and replace the stored result."""
        logger.info("Recheck requested for page %s", page_id)
        return self.on_page_ready(page_id, snapshot)

    def request_classification(self, page_id: str) -> ClassificationResult | None:
        return self.store.get(page_id)

    def on_navigation(self, page_id: str) -> None:
        # the old result describes a page that is gone
        self.store.invalidate(page_id, InvalidationReason.NAVIGATION)

    def on_page_closed(self, page_id: str) -> None:
        self.store.invalidate(page_id, InvalidationReason.PAGE_CLOSED)
