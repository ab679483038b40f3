# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""bizreg: business registration form detection.

Classifies a web page as a business registration form (or not) from three
independent signals and guesses the US jurisdiction the form belongs to:
- url: registration intent in the URL
- content: entity / registration vocabulary in the visible text
- form: registration-like field structure
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum


class FieldTag(StrEnum):
    """Kind of element a form field was read from."""

    INPUT = "input"
    SELECT = "select"
    TEXTAREA = "textarea"
    CONTENTEDITABLE = "contenteditable"


@dataclass(frozen=True, slots=True)
class FieldDescriptor:
    """A single fillable element on the page."""

    name: str = ""
    id: str = ""
    placeholder: str = ""
    tag: FieldTag = FieldTag.INPUT


@dataclass(frozen=True, slots=True)
class PageSnapshot:
    """Read-only view of one page at classification time."""

    url: str
    visible_text: str = ""
    fields: tuple[FieldDescriptor, ...] = ()
    has_form_container: bool = False  # a <form> wrapper exists

    @property
    def field_count(self) -> int:
        return len(self.fields)
