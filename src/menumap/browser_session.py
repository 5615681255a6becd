# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Playwright browser session management for Menu Map.

One session owns one Chromium process, one context and one page. Callers
use ``create_session`` so that teardown happens on every exit path.
"""

from __future__ import annotations

import logging
import os
import shutil
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager, suppress
from dataclasses import dataclass, field
from typing import Any

from playwright.async_api import (
    Browser,
    BrowserContext,
    Page,
    Playwright,
    async_playwright,
)
from playwright.async_api import Error as PlaywrightError
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from .errors import BrowserError, NavigationError

logger = logging.getLogger(__name__)

DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) "
    "AppleWebKit/537.36 (KHTML, like Gecko) "
    "Chrome/120.0.0.0 Safari/537.36"
)
DEFAULT_TIMEOUT_MS = 30000

_EXECUTABLE_ENV_VARS = ("MENUMAP_CHROMIUM_PATH", "PUPPETEER_EXECUTABLE_PATH")
_EXECUTABLE_NAMES = ("chromium", "chromium-browser")
_FALSY = frozenset({"0", "false", "no", "off"})

# Static JS, arguments cross as JSON
_SCROLL_TO_JS = "([x, y]) => window.scrollTo(x, y)"
_SCROLL_TO_FRACTION_JS = "(f) => window.scrollTo(0, Math.floor(document.body.scrollHeight * f))"


def resolve_executable_path() -> str | None:
    """Chromium binary: env override, then PATH lookup, else None (bundled browser)."""
    for var in _EXECUTABLE_ENV_VARS:
        value = os.environ.get(var, "").strip()
        if value:
            return value
    for name in _EXECUTABLE_NAMES:
        found = shutil.which(name)
        if found:
            return found
    return None


def _env_headless() -> bool:
    return os.environ.get("MENUMAP_HEADLESS", "true").strip().lower() not in _FALSY


@dataclass
class BrowserConfig:
    """Browser launch configuration."""

    headless: bool = True
    viewport_width: int = 1920
    viewport_height: int = 1080
    user_agent: str = DEFAULT_USER_AGENT
    executable_path: str | None = None
    timeout_ms: int = DEFAULT_TIMEOUT_MS
    launch_args: list[str] = field(default_factory=lambda: ["--no-sandbox", "--disable-setuid-sandbox"])

    @classmethod
    def from_env(cls) -> BrowserConfig:
        return cls(headless=_env_headless(), executable_path=resolve_executable_path())


class BrowserSession:
    """Manages a Playwright browser session (single page)."""

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

    async def _launch_browser(self) -> None:
        kwargs: dict[str, Any] = {"headless": self.config.headless, "args": self.config.launch_args}
        if self.config.executable_path:
            kwargs["executable_path"] = self.config.executable_path
        try:
            self._browser = await self._playwright.chromium.launch(**kwargs)
        except PlaywrightError as exc:
            if "executable doesn't exist" in str(exc).lower():
                raise BrowserError(
                    "Chromium is not installed. Run: playwright install chromium, or set MENUMAP_CHROMIUM_PATH"
                ) from exc
            raise BrowserError(f"Chromium failed to launch: {exc}") from exc

    async def start(self) -> None:
        """Launch browser and create the page."""
        self._playwright = await async_playwright().start()
        try:
            await self._launch_browser()
            self._context = await self._browser.new_context(
                viewport={"width": self.config.viewport_width, "height": self.config.viewport_height},
                user_agent=self.config.user_agent,
            )
            self._page = await self._context.new_page()
        except BaseException:
            await self.stop()
            raise
        logger.info(
            "Browser session started (headless=%s, executable=%s)",
            self.config.headless,
            self.config.executable_path or "bundled",
        )

    async def stop(self) -> None:
        """Close browser and clean up. Safe to call on a crashed browser."""
        if self._context:
            with suppress(Exception):
                await self._context.close()
            self._context = None
        self._page = None
        if self._browser:
            with suppress(Exception):
                await self._browser.close()
            self._browser = None
        if self._playwright:
            with suppress(Exception):
                await self._playwright.stop()
            self._playwright = None
        logger.info("Browser session stopped")

    async def __aenter__(self) -> BrowserSession:
        await self.start()
        return self

    async def __aexit__(self, *args) -> None:
        await self.stop()

    async def navigate(self, url: str, timeout_ms: int | None = None) -> None:
        """Navigate and wait for network idle.

        Raises:
            NavigationError: on timeout or network-level failure.
        """
        timeout = timeout_ms or self.config.timeout_ms
        try:
            await self.page.goto(url, wait_until="networkidle", timeout=timeout)
        except PlaywrightTimeoutError as exc:
            raise NavigationError(f"Timed out after {timeout}ms loading {url}", url=url, timeout_ms=timeout) from exc
        except PlaywrightError as exc:
            raise NavigationError(f"Failed to load {url}: {exc}", url=url, timeout_ms=timeout) from exc
        logger.debug("Navigated to %s", url)

    async def get_page_html(self) -> str:
        """Get the current page's full HTML."""
        return await self.page.content()

    async def get_page_url(self) -> str:
        """Get the current page URL."""
        return self.page.url

    async def evaluate(self, script: str, arg: Any = None) -> Any:
        """Run a static script in the page; *arg* is passed as JSON."""
        if arg is None:
            return await self.page.evaluate(script)
        return await self.page.evaluate(script, arg)

    async def scroll_to(self, x: int = 0, y: int = 0) -> None:
        await self.page.evaluate(_SCROLL_TO_JS, [x, y])

    async def scroll_to_fraction(self, fraction: float) -> None:
        """Scroll to *fraction* of the body height (0.5 = middle)."""
        await self.page.evaluate(_SCROLL_TO_FRACTION_JS, fraction)

    async def click_first(self, selector: str, timeout_ms: int = 2000) -> bool:
        """Click the first element matching *selector*. False when none is present."""
        element = await self.page.query_selector(selector)
        if element is None:
            return False
        await element.click(timeout=timeout_ms)
        return True


@asynccontextmanager
async def create_session(
    config: BrowserConfig | None = None,
) -> AsyncGenerator[BrowserSession, None]:
    """Context manager to create and manage a browser session."""
    session = BrowserSession(config or BrowserConfig.from_env())
    await session.start()
    try:
        yield session
    finally:
        await session.stop()
