# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Read-only reference data: entity taxonomy and per-state form metadata.

Layout of a knowledge directory::

    entity-types.json        {"llc": {"name": ..., "aliases": [...], "patterns": [...]}, ...}
    states/<code>.json       {"state": "DC", "agency": ..., "forms": [...]}

Consumed by help/UI features, never by the classification engine.
"""

from __future__ import annotations

import json
import logging
import re
from pathlib import Path

from pydantic import BaseModel, Field, ValidationError

from .errors import KnowledgeBaseError

logger = logging.getLogger(__name__)

_STATE_CODE_RE = re.compile(r"[A-Za-z]{2}")


# ---------------------------------------------------------------------------
# Schemas
# ---------------------------------------------------------------------------


class EntityType(BaseModel):
    key: str = ""
    name: str
    aliases: list[str] = Field(default_factory=list)
    patterns: list[str] = Field(default_factory=list)


class FormInfo(BaseModel):
    id: str
    name: str
    url: str = ""
    entity_types: list[str] = Field(default_factory=list)
    description: str = ""


class StateForms(BaseModel):
    state: str = Field(min_length=2, max_length=2)
    name: str = ""
    agency: str = ""
    portal_url: str = ""
    forms: list[FormInfo] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# Loader
# ---------------------------------------------------------------------------


def default_knowledge_dir() -> Path:
    """Bundled data shipped with the package."""
    return Path(__file__).parent / "data"


def _read_json(path: Path) -> object:
    try:
        with open(path, encoding="utf-8") as f:
            return json.load(f)
    except json.JSONDecodeError as e:
        raise KnowledgeBaseError(f"Invalid JSON in {path.name}: {e}", path=str(path)) from e
    except OSError as e:
        raise KnowledgeBaseError(f"Cannot read {path}: {e}", path=str(path)) from e


class KnowledgeBase:
    """Lazy, per-instance cached access to a knowledge directory."""

    def __init__(self, directory: Path | str | None = None) -> None:
        self.directory = Path(directory) if directory is not None else default_knowledge_dir()
        self._entity_types: list[EntityType] | None = None
        self._states: dict[str, StateForms | None] = {}

    def entity_types(self) -> list[EntityType]:
        if self._entity_types is None:
            path = self.directory / "entity-types.json"
            raw = _read_json(path)
            if not isinstance(raw, dict):
                raise KnowledgeBaseError("entity-types.json must be an object", path=str(path))
            try:
                self._entity_types = [EntityType.model_validate({**value, "key": key}) for key, value in raw.items()]
            except (ValidationError, TypeError) as e:
                raise KnowledgeBaseError(f"entity-types.json failed validation: {e}", path=str(path)) from e
            logger.debug("Loaded %d entity types from %s", len(self._entity_types), path)
        return self._entity_types

    def forms_by_state(self, code: str) -> StateForms | None:
        """Form metadata for a two-letter state code, or None if no file exists."""
        if not isinstance(code, str) or not _STATE_CODE_RE.fullmatch(code.strip()):
            raise KnowledgeBaseError(f"Invalid state code: {code!r}")
        code = code.strip().upper()
        if code in self._states:
            return self._states[code]

        path = self.directory / "states" / f"{code.lower()}.json"
        if not path.is_file():
            logger.debug("No form metadata for %s", code)
            self._states[code] = None
            return None

        try:
            forms = StateForms.model_validate(_read_json(path))
        except ValidationError as e:
            raise KnowledgeBaseError(f"{path.name} failed validation: {e}", path=str(path)) from e
        if forms.state.upper() != code:
            raise KnowledgeBaseError(f"{path.name} declares state {forms.state!r}, expected {code}", path=str(path))

        self._states[code] = forms
        logger.debug("Loaded %d forms for %s", len(forms.forms), code)
        return forms
