# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Playwright page capture for live classification.

Navigates headless Chromium to a URL, waits for dynamic content to
settle, and turns the rendered DOM into a PageSnapshot.  The settle
delay lives here, not in the engine: the engine only ever sees a
finished snapshot.
"""

from __future__ import annotations

import asyncio
import logging
from contextlib import suppress
from dataclasses import dataclass

from playwright.async_api import (
    Browser,
    BrowserContext,
    Page,
    Playwright,
    async_playwright,
)
from playwright.async_api import Error as PlaywrightError

from . import PageSnapshot
from .errors import BrowserError
from .snapshot import snapshot_from_html

logger = logging.getLogger(__name__)

DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) "
    "AppleWebKit/537.36 (KHTML, like Gecko) "
    "Chrome/120.0.0.0 Safari/537.36"
)


@dataclass
class BrowserConfig:
    """Browser launch configuration."""

    headless: bool = True
    user_agent: str = DEFAULT_USER_AGENT
    timeout_ms: int = 30000
    wait_until: str = "load"
    settle_ms: int = 1000  # quiet period before reading the DOM


def chromium_launch_args() -> list[str]:
    return [
        "--disable-blink-features=AutomationControlled",
        "--disable-extensions",
        "--disable-dev-shm-usage",
        "--disable-gpu",
        "--no-first-run",
        "--disable-sync",
    ]


async def capture_snapshot(page: Page, settle_ms: int = 0) -> PageSnapshot:
    """Wait *settle_ms*, then snapshot the page's current URL and DOM."""
    if settle_ms > 0:
        await asyncio.sleep(settle_ms / 1000)
    try:
        html = await page.content()
    except PlaywrightError as e:
        raise BrowserError(f"Failed to read page content: {e}") from e
    return snapshot_from_html(page.url, html)


class BrowserSession:
    """One headless Chromium page used to capture snapshots."""

    def __init__(self, config: BrowserConfig | None = None):
        self.config = config or BrowserConfig()
        self._playwright: Playwright | None = None
        self._browser: Browser | None = None
        self._context: BrowserContext | None = None
        self._page: Page | None = None

    @property
    def page(self) -> Page:
        if self._page is None:
            raise RuntimeError("Browser session not started. Use async with or call start().")
        return self._page

    async def start(self) -> None:
        """Launch browser and create the page."""
        try:
            self._playwright = await async_playwright().start()
            self._browser = await self._playwright.chromium.launch(
                headless=self.config.headless,
                args=chromium_launch_args(),
            )
            self._context = await self._browser.new_context(
                user_agent=self.config.user_agent,
                accept_downloads=False,
                service_workers="block",
                permissions=[],
            )
            self._page = await self._context.new_page()
        except PlaywrightError as e:
            await self.stop()
            if "executable doesn't exist" in str(e).lower():
                raise BrowserError("Chromium is not installed. Please run: playwright install chromium") from e
            raise BrowserError(f"Browser launch failed: {e}") from e
        logger.info("Browser session started (headless=%s)", self.config.headless)

    async def stop(self) -> None:
        """Close browser and clean up.  Safe to call more than once."""
        if self._context:
            with suppress(Exception):
                await self._context.close()
            self._context = None
        if self._browser:
            with suppress(Exception):
                await self._browser.close()
            self._browser = None
        if self._playwright:
            with suppress(Exception):
                await self._playwright.stop()
            self._playwright = None
        self._page = None

    async def __aenter__(self) -> BrowserSession:
        await self.start()
        return self

    async def __aexit__(self, *args) -> None:
        await self.stop()

    async def snapshot_url(self, url: str) -> PageSnapshot:
        """Navigate to *url* and capture it once it has settled."""
        try:
            await self.page.goto(url, wait_until=self.config.wait_until, timeout=self.config.timeout_ms)
        except PlaywrightError as e:
            raise BrowserError(f"Navigation to {url} failed: {e}") from e
        logger.debug("Navigated to %s", self.page.url)
        return await capture_snapshot(self.page, self.config.settle_ms)
