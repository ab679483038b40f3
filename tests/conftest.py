# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Shared test configuration and fixtures."""

try:
    import bizreg  # noqa: F401
except ImportError:
    raise ImportError("bizreg is not installed. Run: pip install -e '.[dev]'") from None

import pytest


@pytest.fixture(autouse=True)
def _block_real_browser(request, monkeypatch):
    """Safety net: prevent real Chromium launches in unit tests.

    Tests that need a browser should patch ``bizreg.server._get_session`` or
    ``bizreg.browser_session.async_playwright`` explicitly; that patch takes
    priority over this fixture.  Opt out with::

        @pytest.mark.allow_real_browser
    """
    if "allow_real_browser" in request.keywords:
        return

    def _no_real_playwright():
        raise RuntimeError("Test tried to launch a real browser. Patch 'bizreg.browser_session.async_playwright'.")

    async def _no_real_session():
        raise RuntimeError("Test tried to create a real browser session. Patch 'bizreg.server._get_session'.")

    monkeypatch.setattr("bizreg.browser_session.async_playwright", _no_real_playwright)
    monkeypatch.setattr("bizreg.server._get_session", _no_real_session)


@pytest.fixture(autouse=True)
def _reset_server_state():
    """Fresh result store and knowledge base for every test."""
    import bizreg.server as srv
    from bizreg.config import Settings

    srv.configure(Settings())
    yield
    srv.configure(Settings())
