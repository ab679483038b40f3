# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Tests for MCP tool functions (called directly, no transport)."""

from __future__ import annotations

import asyncio
import json
import signal
from unittest.mock import AsyncMock, MagicMock

import pytest

import bizreg.server as srv
from bizreg.browser_session import BrowserConfig, BrowserSession
from bizreg.config import Settings
from bizreg.errors import BrowserError
from tests._snapshot_helpers import DC_LICENSE_HTML, DC_LICENSE_URL, dc_license_snapshot


def _fake_session(snapshot=None, error=None):
    session = MagicMock()
    session.snapshot_url = AsyncMock(return_value=snapshot, side_effect=error)
    return session


class TestClassifyHtml:
    def test_classifies_and_stores(self):
        data = json.loads(srv.classify_html(DC_LICENSE_URL, DC_LICENSE_HTML, page_id="tab-1"))
        assert data["isBusinessRegistrationForm"] is True
        assert data["confidenceScore"] == 60
        assert data["jurisdiction"] == "DC"
        assert json.loads(srv.get_detection_result("tab-1")) == data

    def test_empty_html(self):
        data = json.loads(srv.classify_html("https://example.com/", ""))
        assert data["isBusinessRegistrationForm"] is False
        assert data["signals"] == {"urlScore": 0, "contentScore": 0, "formScore": 0}

    def test_snapshot_error(self, monkeypatch):
        from bizreg.errors import SnapshotError

        def broken(url, html):
            raise SnapshotError("lxml parsing failed: boom")

        monkeypatch.setattr(srv, "snapshot_from_html", broken)
        assert json.loads(srv.classify_html(DC_LICENSE_URL, "<p>")) == {"error": "lxml parsing failed: boom"}
        assert json.loads(srv.get_detection_result()) is None


class TestClassifyUrl:
    @pytest.mark.asyncio
    async def test_live_capture(self, monkeypatch):
        session = _fake_session(snapshot=dc_license_snapshot())
        monkeypatch.setattr(srv, "_get_session", AsyncMock(return_value=session))
        data = json.loads(await srv.classify_url(DC_LICENSE_URL, page_id="tab-2"))
        session.snapshot_url.assert_awaited_once_with(DC_LICENSE_URL)
        assert data["isBusinessRegistrationForm"] is True
        assert json.loads(srv.get_detection_result("tab-2"))["url"] == DC_LICENSE_URL

    @pytest.mark.asyncio
    async def test_capture_failure_clears_stale_result(self, monkeypatch):
        srv.classify_html(DC_LICENSE_URL, DC_LICENSE_HTML, page_id="tab-3")
        session = _fake_session(error=BrowserError("Navigation to https://x.invalid/ failed"))
        monkeypatch.setattr(srv, "_get_session", AsyncMock(return_value=session))
        data = json.loads(await srv.classify_url("https://x.invalid/", page_id="tab-3"))
        assert data == {"error": "Navigation to https://x.invalid/ failed"}
        assert json.loads(srv.get_detection_result("tab-3")) is None


class TestResults:
    def test_unknown_page_is_null(self):
        assert json.loads(srv.get_detection_result("never-seen")) is None

    def test_forget_page(self):
        srv.classify_html(DC_LICENSE_URL, DC_LICENSE_HTML, page_id="tab-4")
        assert json.loads(srv.forget_page("tab-4")) == {"page_id": "tab-4", "forgotten": True}
        assert json.loads(srv.get_detection_result("tab-4")) is None

    def test_pages_are_independent(self):
        srv.classify_html(DC_LICENSE_URL, DC_LICENSE_HTML, page_id="a")
        srv.classify_html("https://example.com/", "<p>hello</p>", page_id="b")
        assert json.loads(srv.get_detection_result("a"))["isBusinessRegistrationForm"] is True
        assert json.loads(srv.get_detection_result("b"))["isBusinessRegistrationForm"] is False

    def test_configure_applies_capacity(self):
        srv.configure(Settings(max_pages=1))
        srv.classify_html(DC_LICENSE_URL, DC_LICENSE_HTML, page_id="first")
        srv.classify_html(DC_LICENSE_URL, DC_LICENSE_HTML, page_id="second")
        assert json.loads(srv.get_detection_result("first")) is None
        assert json.loads(srv.get_detection_result("second")) is not None


class TestStateForms:
    def test_known_state(self):
        data = json.loads(srv.get_state_forms("de"))
        assert data["state"] == "DE"
        assert data["forms"]

    def test_unknown_state(self):
        assert json.loads(srv.get_state_forms("wy")) == {"error": "No form metadata for WY"}

    def test_invalid_code(self):
        assert "Invalid state code" in json.loads(srv.get_state_forms("Delaware"))["error"]


class _FakePage:
    """Minimal Page: goto switches the URL after a short delay."""

    def __init__(self, documents: dict[str, str]) -> None:
        self.url = "about:blank"
        self._documents = documents

    async def goto(self, url, **kwargs):
        await asyncio.sleep(0.01)
        self.url = url

    async def content(self):
        return self._documents[self.url]


class TestConcurrency:
    @pytest.mark.asyncio
    async def test_concurrent_calls_keep_their_own_page(self, monkeypatch):
        page = _FakePage({DC_LICENSE_URL: DC_LICENSE_HTML, "https://example.com/": "<p>hello</p>"})
        session = BrowserSession(BrowserConfig(settle_ms=50))
        session._page = page
        monkeypatch.setattr(srv, "_get_session", AsyncMock(return_value=session))

        first, second = await asyncio.gather(
            srv.classify_url(DC_LICENSE_URL, page_id="tab-a"),
            srv.classify_url("https://example.com/", page_id="tab-b"),
        )

        assert json.loads(first)["jurisdiction"] == "DC"
        assert json.loads(second)["url"] == "https://example.com/"
        stored_a = json.loads(srv.get_detection_result("tab-a"))
        stored_b = json.loads(srv.get_detection_result("tab-b"))
        assert stored_a["url"] == DC_LICENSE_URL
        assert stored_a["isBusinessRegistrationForm"] is True
        assert stored_b["url"] == "https://example.com/"
        assert stored_b["jurisdiction"] is None

    @pytest.mark.asyncio
    async def test_one_browser_for_concurrent_first_calls(self, monkeypatch):
        started = []

        class _SlowSession:
            def __init__(self, config):
                self.config = config

            async def start(self):
                started.append(self)
                await asyncio.sleep(0.01)

        monkeypatch.setattr(srv, "BrowserSession", _SlowSession)
        first, second = await asyncio.gather(srv._state.get_session(), srv._state.get_session())
        assert first is second
        assert len(started) == 1


class TestShutdown:
    @pytest.mark.asyncio
    async def test_lifespan_stops_browser(self):
        session = MagicMock(stop=AsyncMock())
        async with srv._lifespan(srv.mcp):
            srv._state.session = session
        session.stop.assert_awaited_once()
        assert srv._state.session is None

    @pytest.mark.asyncio
    async def test_lifespan_without_browser(self):
        async with srv._lifespan(srv.mcp):
            pass
        assert srv._state.session is None

    def test_exit_cleanup_stops_leftover_browser(self):
        session = MagicMock(stop=AsyncMock())
        srv._state.session = session
        srv._sync_cleanup()
        session.stop.assert_awaited_once()
        assert srv._state.session is None

    def test_exit_cleanup_noop_without_browser(self):
        srv._sync_cleanup()
        assert srv._state.session is None

    def test_main_registers_cleanup(self, monkeypatch):
        registered, handlers, runs = [], {}, []
        monkeypatch.setattr(srv.atexit, "register", registered.append)
        monkeypatch.setattr(srv.signal, "signal", lambda signum, handler: handlers.__setitem__(signum, handler))
        monkeypatch.setattr(srv.mcp, "run", lambda transport: runs.append(transport))

        srv.main(Settings(max_pages=5))

        assert registered == [srv._sync_cleanup]
        assert handlers[signal.SIGTERM] is srv._handle_sigterm
        assert runs == ["stdio"]
        assert srv._coordinator.store._max_pages == 5

    def test_sigterm_exits(self):
        with pytest.raises(SystemExit) as exc_info:
            srv._handle_sigterm(signal.SIGTERM, None)
        assert exc_info.value.code == 128 + signal.SIGTERM


class TestToolAnnotations:
    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        ("name", "read_only"),
        [
            ("classify_html", False),
            ("classify_url", False),
            ("forget_page", False),
            ("get_detection_result", True),
            ("get_state_forms", True),
        ],
    )
    async def test_store_writers_are_not_read_only(self, name, read_only):
        tools = {tool.name: tool for tool in await srv.mcp.list_tools()}
        annotations = tools[name].annotations
        assert annotations.readOnlyHint is read_only
        if not read_only:
            assert annotations.destructiveHint is False
