# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Content signal — entity and registration vocabulary in visible page text.

Matching is exact substring containment on the lowercased text.  No
tokenisation or stemming: "registering your business" does NOT match
"register a business".  Each term counts at most once however often it
repeats, so the score only grows when new distinct terms appear.
"""

from __future__ import annotations

import logging

logger = logging.getLogger(__name__)

MAX_SCORE = 100

ENTITY_TERMS: tuple[str, ...] = (
    "llc",
    "limited liability company",
    "corporation",
    "incorporated",
    "partnership",
    "sole proprietorship",
    "doing business as",
)
ENTITY_WEIGHT = 5

REGISTRATION_PHRASES: tuple[str, ...] = (
    "business registration",
    "register a business",
    "business license",
    "articles of organization",
    "articles of incorporation",
    "business formation",
)
REGISTRATION_WEIGHT = 10


class ContentSignalAnalyzer:
    """Scores visible text for entity / registration vocabulary (0–100)."""

    def matched_terms(self, visible_text: str) -> list[str]:
        """Distinct vocabulary entries present in *visible_text*, in table order."""
        if not isinstance(visible_text, str) or not visible_text:
            return []
        text = visible_text.lower()
        return [t for t in (*ENTITY_TERMS, *REGISTRATION_PHRASES) if t in text]

    def score(self, visible_text: str) -> int:
        matched = self.matched_terms(visible_text)
        total = sum(ENTITY_WEIGHT if t in ENTITY_TERMS else REGISTRATION_WEIGHT for t in matched)
        total = max(0, min(total, MAX_SCORE))
        if matched:
            logger.debug("Content score %d (terms=%s)", total, ",".join(matched))
        return total
