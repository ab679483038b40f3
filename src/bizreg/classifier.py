# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Weighted three-signal classifier for business registration forms.

Combines URL, content and form-structure scores with fixed weights
(0.4 / 0.4 / 0.2), rounds half-up, and calls the page a registration
form at a confidence of 60 or more.

The engine is a pure function of its PageSnapshot: it keeps no state
between calls and never writes results anywhere.  Publishing the result
(store, badge, popup) is the caller's job.

Failure policy: an analyzer that raises contributes 0 and classification
continues.  If all three fail, a zero-confidence negative result carrying
an ``error`` marker is returned.  ``classify`` itself does not raise.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from . import PageSnapshot
from .content_signals import ContentSignalAnalyzer
from .form_signals import FormSignalAnalyzer
from .jurisdiction import JurisdictionResolver
from .url_signals import UrlSignalAnalyzer

logger = logging.getLogger(__name__)

URL_WEIGHT = 0.4
CONTENT_WEIGHT = 0.4
FORM_WEIGHT = 0.2

CONFIDENCE_THRESHOLD = 60

ALL_SIGNALS_FAILED = "all signal analyzers failed"


# ---------------------------------------------------------------------------
# Data classes
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class SignalScores:
    """Per-signal scores, each 0–100."""

    url_score: int = 0
    content_score: int = 0
    form_score: int = 0


@dataclass(frozen=True, slots=True)
class ClassificationResult:
    """Verdict for one page; superseded (never merged) by the next call."""

    is_business_registration_form: bool
    confidence_score: int  # 0–100
    jurisdiction: str | None
    url: str
    signals: SignalScores
    error: str | None = None  # set only when every analyzer failed

    def to_dict(self) -> dict[str, Any]:
        """Host wire format (camelCase keys)."""
        data: dict[str, Any] = {
            "isBusinessRegistrationForm": self.is_business_registration_form,
            "confidenceScore": self.confidence_score,
            "jurisdiction": self.jurisdiction,
            "url": self.url,
            "signals": {
                "urlScore": self.signals.url_score,
                "contentScore": self.signals.content_score,
                "formScore": self.signals.form_score,
            },
        }
        if self.error is not None:
            data["error"] = self.error
        return data


# ---------------------------------------------------------------------------
# Scoring helpers
# ---------------------------------------------------------------------------


def weighted_confidence(url_score: int, content_score: int, form_score: int) -> int:
    """Weighted sum rounded half-up and clamped to [0, 100]."""
    total = url_score * URL_WEIGHT + content_score * CONTENT_WEIGHT + form_score * FORM_WEIGHT
    # round() in Python is banker's rounding; confidence uses half-up.
    # The epsilon absorbs float noise such as 0.4 * 25 == 10.000000000000002.
    rounded = math.floor(total + 0.5 + 1e-9)
    return max(0, min(rounded, 100))


def is_positive(confidence_score: int) -> bool:
    return confidence_score >= CONFIDENCE_THRESHOLD


# ---------------------------------------------------------------------------
# Engine
# ---------------------------------------------------------------------------


class ClassificationEngine:
    """Stateless page classifier.  Safe to share across pages and threads."""

    def __init__(
        self,
        url_analyzer: UrlSignalAnalyzer | None = None,
        content_analyzer: ContentSignalAnalyzer | None = None,
        form_analyzer: FormSignalAnalyzer | None = None,
        resolver: JurisdictionResolver | None = None,
    ) -> None:
        self._url = url_analyzer or UrlSignalAnalyzer()
        self._content = content_analyzer or ContentSignalAnalyzer()
        self._form = form_analyzer or FormSignalAnalyzer()
        self._resolver = resolver or JurisdictionResolver()

    def classify(self, snapshot: PageSnapshot) -> ClassificationResult:
        url = getattr(snapshot, "url", "")
        if not isinstance(url, str):
            url = ""

        url_score = self._run_signal("url", lambda: self._url.score(url))
        content_score = self._run_signal("content", lambda: self._content.score(snapshot.visible_text))
        form_score = self._run_signal(
            "form",
            lambda: self._form.score(snapshot.fields, snapshot.has_form_container),
        )

        if url_score is None and content_score is None and form_score is None:
            logger.error("Classification failed for %s: %s", url, ALL_SIGNALS_FAILED)
            return ClassificationResult(
                is_business_registration_form=False,
                confidence_score=0,
                jurisdiction=None,
                url=url,
                signals=SignalScores(),
                error=ALL_SIGNALS_FAILED,
            )

        signals = SignalScores(
            url_score=url_score or 0,
            content_score=content_score or 0,
            form_score=form_score or 0,
        )
        confidence = weighted_confidence(signals.url_score, signals.content_score, signals.form_score)

        try:
            jurisdiction = self._resolver.resolve(url)
        except Exception:
            logger.warning("Jurisdiction resolver failed for %s", url, exc_info=True)
            jurisdiction = None

        result = ClassificationResult(
            is_business_registration_form=is_positive(confidence),
            confidence_score=confidence,
            jurisdiction=jurisdiction,
            url=url,
            signals=signals,
        )
        logger.info(
            "Classified %s: positive=%s confidence=%d url=%d content=%d form=%d jurisdiction=%s",
            url,
            result.is_business_registration_form,
            confidence,
            signals.url_score,
            signals.content_score,
            signals.form_score,
            jurisdiction,
        )
        return result

    @staticmethod
    def _run_signal(name: str, fn: Callable[[], int]) -> int | None:
        """Run one analyzer; None means it raised."""
        try:
            return _clamp_score(fn())
        except Exception:
            logger.warning("%s signal analyzer failed; scoring it as 0", name, exc_info=True)
            return None


def _clamp_score(value: int) -> int:
    return max(0, min(int(value), 100))


_default_engine = ClassificationEngine()


def classify_page(snapshot: PageSnapshot) -> ClassificationResult:
    """Classify with the default analyzers."""
    return _default_engine.classify(snapshot)
