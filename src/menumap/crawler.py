# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Multi-page menu crawler.

Visits a menu landing page, discovers same-host category links, then visits
each category page in turn and runs the extraction cascade on it. Strictly
sequential; one page at a time through a single ``BrowserSession``.

Flow per crawl:
  navigate base → settle → dismiss consent → nudge scroll → discover links
  → extract base page ("Menu") → for each link: navigate → settle → extract
"""

from __future__ import annotations

import asyncio
import logging
import os
from dataclasses import dataclass
from urllib.parse import urljoin, urlparse

from . import MultiPageMenuItem
from .browser_session import BrowserSession
from .cascade import extract_items_from_html
from .dom import STAMP_IMAGE_SIZES_JS, collapse, parse_document

logger = logging.getLogger(__name__)

DEFAULT_MAX_PAGES = 10
BASE_CATEGORY = "Menu"

CATEGORY_KEYWORDS: tuple[str, ...] = (
    "burger", "burgers", "chicken", "sides", "side", "drinks", "drink",
    "dessert", "desserts", "meals", "meal", "bucket", "buckets", "wrap", "wraps",
    "salad", "salads", "breakfast", "lunch", "dinner", "appetizer", "appetizers",
    "starter", "starters", "main", "mains", "pizza", "pizzas", "pasta",
    "sandwich", "sandwiches", "sharing", "vegan", "vegetarian", "kids",
    "combo", "combos", "value", "new", "whats-new", "special", "specials",
    "rice", "bowls", "twisters", "box", "savers", "classic", "dips",
)  # fmt: skip

# Tried in order; the first one present is clicked
CONSENT_SELECTORS: tuple[str, ...] = (
    '[id*="cookie"] button',
    '[class*="cookie"] button',
    '[id*="consent"] button',
    '[class*="consent"] button',
    'button[aria-label*="Accept"]',
    'button[aria-label*="accept"]',
    '[data-testid*="accept"]',
    "#onetrust-accept-btn-handler",
    ".accept-cookies",
    'button:has-text("Accept")',
)

_MAX_NAME_LENGTH = 50


def _env_max_pages() -> int:
    raw = os.environ.get("MENUMAP_MAX_PAGES", "")
    try:
        return max(0, int(raw))
    except ValueError:
        return DEFAULT_MAX_PAGES


@dataclass
class CrawlConfig:
    """Timeouts (ms) and settle delays (s) for a multi-page crawl."""

    main_timeout_ms: int = 45000
    page_timeout_ms: int = 30000
    initial_settle_s: float = 3.0
    consent_settle_s: float = 1.0
    scroll_settle_s: float = 1.0
    page_settle_s: float = 1.5
    extract_settle_s: float = 0.5
    nudge_scroll_y: int = 500
    max_pages: int = DEFAULT_MAX_PAGES
    consent_selectors: tuple[str, ...] = CONSENT_SELECTORS

    @classmethod
    def from_env(cls) -> CrawlConfig:
        return cls(max_pages=_env_max_pages())


@dataclass(frozen=True, slots=True)
class CategoryLink:
    url: str
    name: str


# ---------------------------------------------------------------------------
# Link discovery
# ---------------------------------------------------------------------------


def _is_sub_path(path: str, base_path: str) -> bool:
    prefix = base_path.rstrip("/") + "/"
    return path.startswith(prefix) and len(path) > len(prefix)


def _matches_keyword(path: str) -> bool:
    lowered = path.lower()
    return any(kw in lowered for kw in CATEGORY_KEYWORDS)


def _humanize_segment(path: str) -> str:
    segments = [s for s in path.split("/") if s]
    last = segments[-1] if segments else ""
    text = last.replace("-", " ").replace("_", " ")
    return text[:1].upper() + text[1:]


def discover_category_links(raw_html: str, base_url: str) -> list[CategoryLink]:
    """Same-host links that look like menu categories, unique by URL, in document order."""
    doc = parse_document(raw_html)
    if doc is None:
        return []
    base = urlparse(base_url)
    links: list[CategoryLink] = []
    seen: set[str] = set()

    for a in doc.iter("a"):
        href = (a.get("href") or "").strip()
        if not href:
            continue
        full_url = urljoin(base_url, href)
        parsed = urlparse(full_url)
        if parsed.scheme not in ("http", "https") or parsed.hostname != base.hostname:
            continue
        path = parsed.path or "/"
        if path == (base.path or "/"):
            continue
        if not _is_sub_path(path, base.path) and not _matches_keyword(path):
            continue

        name = (
            collapse(a.text_content())
            or (a.get("title") or "").strip()
            or (a.get("aria-label") or "").strip()
            or _humanize_segment(path)
        )
        if not name or len(name) >= _MAX_NAME_LENGTH or full_url in seen:
            continue
        seen.add(full_url)
        links.append(CategoryLink(url=full_url, name=name))

    return links


# ---------------------------------------------------------------------------
# Browser steps
# ---------------------------------------------------------------------------


async def dismiss_consent(session: BrowserSession, config: CrawlConfig) -> str | None:
    """Click the first consent button present. Returns the selector clicked, or None.

    Each selector is tried in isolation; failures are logged and never raised.
    """
    for selector in config.consent_selectors:
        try:
            clicked = await session.click_first(selector)
        except Exception:
            logger.debug("Consent selector failed: %s", selector, exc_info=True)
            continue
        if clicked:
            logger.info("Clicked consent button: %s", selector)
            await asyncio.sleep(config.consent_settle_s)
            return selector
    return None


async def extract_current_page(session: BrowserSession, category: str, config: CrawlConfig) -> list[MultiPageMenuItem]:
    """Scroll to mid-page, stamp image sizes, snapshot and run the cascade."""
    await session.scroll_to_fraction(0.5)
    await asyncio.sleep(config.extract_settle_s)
    await session.evaluate(STAMP_IMAGE_SIZES_JS)
    raw_html = await session.get_page_html()
    page_url = await session.get_page_url()
    return extract_items_from_html(raw_html, page_url, category)


async def crawl_menu(
    session: BrowserSession,
    base_url: str,
    max_pages: int | None = None,
    config: CrawlConfig | None = None,
) -> list[MultiPageMenuItem]:
    """Crawl *base_url* and up to *max_pages* category pages.

    Raises:
        NavigationError: when the base page itself cannot be loaded.
    """
    config = config or CrawlConfig()
    limit = config.max_pages if max_pages is None else max_pages

    logger.info("Loading main menu page: %s", base_url)
    await session.navigate(base_url, timeout_ms=config.main_timeout_ms)
    await asyncio.sleep(config.initial_settle_s)

    await dismiss_consent(session, config)

    await session.scroll_to(0, config.nudge_scroll_y)
    await asyncio.sleep(config.scroll_settle_s)

    categories = discover_category_links(await session.get_page_html(), base_url)
    logger.info("Found %d category links", len(categories))
    if categories:
        logger.debug("Categories: %s", ", ".join(c.name for c in categories[:5]))

    items = await extract_current_page(session, BASE_CATEGORY, config)
    visited = {base_url}

    for category in categories[:limit]:
        if category.url in visited:
            continue
        visited.add(category.url)
        try:
            logger.info("Visiting category: %s (%s)", category.name, category.url)
            await session.navigate(category.url, timeout_ms=config.page_timeout_ms)
            await asyncio.sleep(config.page_settle_s)
            page_items = await extract_current_page(session, category.name, config)
        except Exception:
            logger.warning("Error visiting %s", category.url, exc_info=True)
            continue
        logger.info("Found %d items in %s", len(page_items), category.name)
        items.extend(page_items)

    logger.info("Total items extracted: %d from %d pages", len(items), len(visited))
    return items
