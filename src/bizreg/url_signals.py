# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""URL signal — registration intent from the URL string alone.

Pure string matching on the lowercased URL; no parsing, no network.
"""

from __future__ import annotations

import logging

logger = logging.getLogger(__name__)

MAX_SCORE = 100

GOV_MARKER = ".gov"
GOV_BONUS = 25

# Scan order matters: scanning stops once the running total reaches
# _EARLY_EXIT_SCORE, so later terms can be skipped.
BUSINESS_TERMS: tuple[str, ...] = (
    "business",
    "register",
    "registration",
    "license",
    "permit",
    "corporation",
    "llc",
    "entity",
)
TERM_WEIGHT = 5

_EARLY_EXIT_SCORE = 70


class UrlSignalAnalyzer:
    """Scores a URL for business-registration intent (0–100)."""

    def score(self, url: str) -> int:
        if not isinstance(url, str) or not url:
            return 0
        url_lower = url.lower()
        total = 0

        if GOV_MARKER in url_lower:
            total += GOV_BONUS

        for term in BUSINESS_TERMS:
            if term in url_lower:
                total += TERM_WEIGHT
                if total >= _EARLY_EXIT_SCORE:
                    break

        total = max(0, min(total, MAX_SCORE))
        logger.debug("URL score %d for %s", total, url)
        return total
