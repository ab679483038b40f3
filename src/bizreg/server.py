# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""bizreg MCP Server.

Exposes business registration form detection via MCP (stdio transport).

Tools:
- classify_html: classify a page from its URL and serialized DOM
- classify_url: load a URL in headless Chromium and classify it
- get_detection_result: latest result for a page id, or null
- forget_page: drop a page's result (navigation / tab closed)
- get_state_forms: form metadata for a two-letter state code

All tools return JSON strings.  Failures come back as ``{"error": ...}``;
all logging goes to stderr.  classify_url calls run one at a time: they
share a single browser page.  The browser is closed when the server
shuts down.
"""

from __future__ import annotations

import asyncio
import atexit
import json
import logging
import signal
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from mcp.server.fastmcp import FastMCP
from mcp.types import ToolAnnotations

from .browser_session import BrowserConfig, BrowserSession
from .config import Settings
from .coordinator import DetectionCoordinator
from .errors import BizRegError
from .knowledge import KnowledgeBase
from .result_store import ResultStore
from .snapshot import snapshot_from_html

logger = logging.getLogger("bizreg.server")

DEFAULT_PAGE_ID = "default"


class ServerState:
    """Browser session plus the locks that serialize access to it."""

    def __init__(self) -> None:
        self.session: BrowserSession | None = None
        self._session_lock: asyncio.Lock = asyncio.Lock()
        # one Page is shared, so navigate + settle + capture must not interleave
        self.tool_lock: asyncio.Lock = asyncio.Lock()
        # Lock ordering: tool_lock -> _session_lock, never the reverse

    async def get_session(self) -> BrowserSession:
        """Get or start the browser session (lock-protected)."""
        async with self._session_lock:
            if self.session is None:
                session = BrowserSession(
                    BrowserConfig(
                        headless=_settings.headless,
                        timeout_ms=_settings.timeout_ms,
                        settle_ms=_settings.settle_ms,
                    )
                )
                await session.start()
                self.session = session
            return self.session

    async def cleanup_session(self) -> None:
        async with self._session_lock:
            if self.session is not None:
                await self.session.stop()
                self.session = None
                logger.info("Browser session stopped")


@asynccontextmanager
async def _lifespan(_server: FastMCP) -> AsyncIterator[None]:
    try:
        yield
    finally:
        await _state.cleanup_session()


mcp = FastMCP(
    name="bizreg",
    instructions=(
        "Detects whether a web page is a US business registration form. "
        "Use classify_url or classify_html to classify a page, then "
        "get_detection_result to read the latest verdict for a page id."
    ),
    lifespan=_lifespan,
)

_settings = Settings()
_coordinator = DetectionCoordinator(store=ResultStore(_settings.max_pages))
_knowledge = KnowledgeBase()
_state = ServerState()


# Patched by tests
async def _get_session() -> BrowserSession:
    return await _state.get_session()


def _error(message: str) -> str:
    return json.dumps({"error": message})


# ── Tools ────────────────────────────────────────────────────────────


@mcp.tool(annotations=ToolAnnotations(readOnlyHint=False, destructiveHint=False, openWorldHint=False))
def classify_html(url: str, html: str, page_id: str = DEFAULT_PAGE_ID) -> str:
    """Classify a page from its URL and HTML and store the result under page_id."""
    try:
        snapshot = snapshot_from_html(url, html)
    except BizRegError as e:
        logger.warning("classify_html failed for %s: %s", url, e)
        return _error(str(e))
    result = _coordinator.on_page_ready(page_id, snapshot)
    return json.dumps(result.to_dict())


@mcp.tool(annotations=ToolAnnotations(readOnlyHint=False, destructiveHint=False, openWorldHint=True))
async def classify_url(url: str, page_id: str = DEFAULT_PAGE_ID) -> str:
    """Load a URL in a headless browser, classify it, and store the result under page_id."""
    async with _state.tool_lock:
        # the page id now points somewhere else; the old verdict is stale even if capture fails
        _coordinator.on_navigation(page_id)
        try:
            session = await _get_session()
            snapshot = await session.snapshot_url(url)
        except BizRegError as e:
            logger.warning("classify_url failed for %s: %s", url, e)
            return _error(str(e))
        result = _coordinator.on_page_ready(page_id, snapshot)
    return json.dumps(result.to_dict())


@mcp.tool(annotations=ToolAnnotations(readOnlyHint=True, openWorldHint=False))
def get_detection_result(page_id: str = DEFAULT_PAGE_ID) -> str:
    """Latest classification result for page_id, or null if none."""
    result = _coordinator.request_classification(page_id)
    return json.dumps(result.to_dict() if result is not None else None)


@mcp.tool(annotations=ToolAnnotations(readOnlyHint=False, destructiveHint=False, openWorldHint=False))
def forget_page(page_id: str = DEFAULT_PAGE_ID) -> str:
    """Drop the stored result for page_id (page closed or navigated away)."""
    _coordinator.on_page_closed(page_id)
    return json.dumps({"page_id": page_id, "forgotten": True})


@mcp.tool(annotations=ToolAnnotations(readOnlyHint=True, openWorldHint=False))
def get_state_forms(state: str) -> str:
    """Form metadata for a two-letter US state code."""
    try:
        forms = _knowledge.forms_by_state(state)
    except BizRegError as e:
        return _error(str(e))
    if forms is None:
        return _error(f"No form metadata for {state.strip().upper()}")
    return forms.model_dump_json()


# ── Entry point ──────────────────────────────────────────────────────


def configure(settings: Settings) -> None:
    """Apply settings before serving (store capacity, browser, knowledge dir)."""
    global _settings, _coordinator, _knowledge, _state  # noqa: PLW0603
    _settings = settings
    _coordinator = DetectionCoordinator(store=ResultStore(settings.max_pages))
    _knowledge = KnowledgeBase(settings.knowledge_dir)
    _state = ServerState()


def _sync_cleanup(*_args) -> None:
    """Best-effort browser shutdown for atexit, when the lifespan did not run."""
    if _state.session is None:
        return
    try:
        loop = asyncio.get_running_loop()
    except RuntimeError:
        loop = None
    try:
        if loop is not None:
            loop.create_task(_state.cleanup_session())
        else:
            asyncio.run(_state.cleanup_session())
    except Exception:
        logger.debug("Browser cleanup at exit failed", exc_info=True)


def _handle_sigterm(signum, _frame) -> None:
    # unwinds mcp.run like Ctrl-C does, so the lifespan closes the browser
    raise SystemExit(128 + signum)


def main(settings: Settings | None = None) -> None:
    """Run the MCP server over stdio."""
    configure(settings or Settings.from_env())
    atexit.register(_sync_cleanup)
    signal.signal(signal.SIGTERM, _handle_sigterm)
    logger.info("Starting bizreg MCP server (stdio, max_pages=%d)", _settings.max_pages)
    mcp.run(transport="stdio")


if __name__ == "__main__":
    from .logging_config import configure_from_settings

    _env_settings = Settings.from_env()
    configure_from_settings(_env_settings)
    main(_env_settings)
