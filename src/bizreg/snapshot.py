# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""HTML -> PageSnapshot via lxml.

Pipeline:
  1. Parse raw HTML with a recovering lxml parser
  2. Collect fields (input / select / textarea / contenteditable) in document order
  3. Drop non-rendered subtrees (script, style, ...) and read body text
"""

from __future__ import annotations

import logging

import lxml.etree
import lxml.html

from . import FieldDescriptor, FieldTag, PageSnapshot
from .errors import SnapshotError

logger = logging.getLogger(__name__)

# Subtrees whose text never renders
_NON_VISIBLE_TAGS = ("script", "style", "noscript", "template")

_FIELD_TAGS = {
    "input": FieldTag.INPUT,
    "select": FieldTag.SELECT,
    "textarea": FieldTag.TEXTAREA,
}


def _field_tag(el: lxml.html.HtmlElement) -> FieldTag | None:
    tag = _FIELD_TAGS.get(el.tag)
    if tag is not None:
        return tag
    if "contenteditable" not in el.attrib:
        return None
    # a bare attribute (<div contenteditable>) means true
    editable = el.get("contenteditable") or ""
    if editable.strip().lower() != "false":
        return FieldTag.CONTENTEDITABLE
    return None


def _extract_fields(doc: lxml.html.HtmlElement) -> tuple[FieldDescriptor, ...]:
    fields: list[FieldDescriptor] = []
    for el in doc.iter():
        if not isinstance(el.tag, str):  # comments, processing instructions
            continue
        tag = _field_tag(el)
        if tag is None:
            continue
        fields.append(
            FieldDescriptor(
                name=el.get("name", ""),
                id=el.get("id", ""),
                placeholder=el.get("placeholder", ""),
                tag=tag,
            )
        )
    return tuple(fields)


def _visible_text(doc: lxml.html.HtmlElement) -> str:
    for el in list(doc.iter(*_NON_VISIBLE_TAGS)):
        el.drop_tree()
    bodies = doc.xpath("//body")
    root = bodies[0] if bodies else doc
    return " ".join(root.text_content().split())


def snapshot_from_html(url: str, html: str) -> PageSnapshot:
    """Build a PageSnapshot from a page URL and its serialized DOM.

    Empty HTML, or markup with no elements at all, yields an empty
    snapshot (no text, no fields).

    Raises:
        SnapshotError: lxml could not produce a document.
    """
    if not html or not html.strip():
        return PageSnapshot(url=url)

    try:
        parser = lxml.html.HTMLParser(recover=True, encoding="utf-8")
        doc = lxml.html.document_fromstring(html.encode("utf-8"), parser=parser)
    except lxml.etree.ParserError:
        # e.g. comment-only markup: no root element to read
        logger.debug("Snapshot %s: document has no elements", url)
        return PageSnapshot(url=url)
    except Exception as e:
        raise SnapshotError(f"lxml parsing failed: {e}") from e

    fields = _extract_fields(doc)
    has_form = bool(doc.xpath("//form"))
    text = _visible_text(doc)

    logger.debug("Snapshot %s: text=%d chars fields=%d form=%s", url, len(text), len(fields), has_form)
    return PageSnapshot(url=url, visible_text=text, fields=fields, has_form_container=has_form)
