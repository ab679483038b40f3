# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Jurisdiction guess from the URL.

Ordered first-match-wins table of state-domain and name fragments.
Advisory only: a miss returns None and a wrong guess is possible
(e.g. any URL containing "district" resolves to DC).
"""

from __future__ import annotations

import logging

logger = logging.getLogger(__name__)

JURISDICTION_PATTERNS: tuple[tuple[str, tuple[str, ...]], ...] = (
    ("CA", (".ca.gov", "california")),
    ("NY", (".ny.gov", "newyork", "new-york")),
    ("TX", (".tx.gov", "texas")),
    ("FL", (".fl.gov", "florida")),
    ("DE", (".de.gov", "delaware")),
    ("DC", (".dc.gov", "district", "columbia")),
)


class JurisdictionResolver:
    """Infers a two-letter jurisdiction code from a URL."""

    def resolve(self, url: str) -> str | None:
        if not isinstance(url, str) or not url:
            return None
        url_lower = url.lower()
        for code, fragments in JURISDICTION_PATTERNS:
            for fragment in fragments:
                if fragment in url_lower:
                    logger.debug("Jurisdiction %s from fragment %r", code, fragment)
                    return code
        return None

    @property
    def known_codes(self) -> tuple[str, ...]:
        return tuple(code for code, _ in JURISDICTION_PATTERNS)
