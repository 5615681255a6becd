# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Shared test configuration and fixtures."""

from __future__ import annotations

try:
    import menumap  # noqa: F401
except ImportError:
    raise ImportError("menumap is not installed. Run: pip install -e '.[dev]'") from None

import pytest

from menumap.crawler import CrawlConfig
from menumap.errors import NavigationError


@pytest.fixture(autouse=True)
def _block_real_browser(request, monkeypatch):
    """Safety net: prevent real Chromium launches in unit tests.

    Tests that need a session should patch ``menumap.engine.create_session``
    or hand a ``FakeSession`` to the crawler directly.
    """
    if "allow_real_session" in request.keywords:
        return

    def _no_real_playwright():
        raise RuntimeError("Test tried to launch a real browser. Use the fake_session fixture.")

    monkeypatch.setattr("menumap.browser_session.async_playwright", _no_real_playwright)


class FakeSession:
    """In-memory stand-in for BrowserSession serving canned HTML per URL."""

    def __init__(
        self,
        pages: dict[str, str],
        failing: set[str] | None = None,
        consent: set[str] | None = None,
        redirects: dict[str, str] | None = None,
    ):
        self.pages = pages
        self.redirects = redirects or {}
        self.failing = failing or set()
        self.consent = consent or set()
        self.current_url = "about:blank"
        self.navigations: list[str] = []
        self.clicked: list[str] = []
        self.evaluated: list[str] = []
        self.scrolls: list[tuple] = []

    async def navigate(self, url: str, timeout_ms: int | None = None) -> None:
        self.navigations.append(url)
        landed = self.redirects.get(url, url)
        if url in self.failing or landed not in self.pages:
            raise NavigationError(f"Timed out after {timeout_ms}ms loading {url}", url=url, timeout_ms=timeout_ms or 0)
        self.current_url = landed

    async def get_page_html(self) -> str:
        return self.pages.get(self.current_url, "")

    async def get_page_url(self) -> str:
        return self.current_url

    async def evaluate(self, script: str, arg=None):
        self.evaluated.append(script)
        return 0

    async def scroll_to(self, x: int = 0, y: int = 0) -> None:
        self.scrolls.append(("to", x, y))

    async def scroll_to_fraction(self, fraction: float) -> None:
        self.scrolls.append(("fraction", fraction))

    async def click_first(self, selector: str, timeout_ms: int = 2000) -> bool:
        if selector in self.consent:
            self.clicked.append(selector)
            return True
        return False


@pytest.fixture
def fake_session_factory():
    return FakeSession


@pytest.fixture
def instant_crawl_config() -> CrawlConfig:
    """CrawlConfig with every settle delay zeroed."""
    return CrawlConfig(
        initial_settle_s=0,
        consent_settle_s=0,
        scroll_settle_s=0,
        page_settle_s=0,
        extract_settle_s=0,
    )
