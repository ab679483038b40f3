# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Form signal — registration-like structure of the page's fields.

Two parts:
  1. Container  – +20 for a real <form> wrapper, else +10 for a loose
                  group of 3+ fields
  2. Field names – count fields whose name/id/placeholder mention a
                  registration concept; +20 at 3 matches, +20 more at 5
"""

from __future__ import annotations

import logging
from collections.abc import Sequence

from . import FieldDescriptor

logger = logging.getLogger(__name__)

MAX_SCORE = 100

FORM_CONTAINER_BONUS = 20
LOOSE_FIELDS_BONUS = 10
LOOSE_FIELDS_MIN = 3

FIELD_PATTERNS: tuple[str, ...] = (
    "business",
    "company",
    "entity",
    "name",
    "type",
    "owner",
    "address",
    "register",
)

# (minimum matched fields, bonus); bonuses stack
MATCH_TIERS: tuple[tuple[int, int], ...] = (
    (3, 20),
    (5, 20),
)


def field_matches(field: FieldDescriptor) -> bool:
    """True if any of the field's attributes contains any registration pattern."""
    attrs = (
        (field.name or "").lower(),
        (field.id or "").lower(),
        (field.placeholder or "").lower(),
    )
    return any(p in a for a in attrs for p in FIELD_PATTERNS)


class FormSignalAnalyzer:
    """Scores form structure for registration-field patterns (0–100)."""

    def score(self, fields: Sequence[FieldDescriptor], has_form_container: bool) -> int:
        fields = fields or ()
        total = 0

        if has_form_container:
            total += FORM_CONTAINER_BONUS
        elif len(fields) >= LOOSE_FIELDS_MIN:
            total += LOOSE_FIELDS_BONUS

        matched = sum(1 for f in fields if field_matches(f))
        for minimum, bonus in MATCH_TIERS:
            if matched >= minimum:
                total += bonus

        total = max(0, min(total, MAX_SCORE))
        logger.debug("Form score %d (fields=%d matched=%d container=%s)", total, len(fields), matched, has_form_container)
        return total
