# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Live entry points: one browser session per call, torn down on every path.

    detect_site_type(url)                      -> DetectionScores
    extract_catalogue_items(url)               -> list[ExtractedProduct]
    extract_menu_items(url)                    -> list[ExtractedMenuItem]
    extract_menu_items_multi_page(url, n=10)   -> list[MultiPageMenuItem]

``classify_html`` is the offline counterpart of ``detect_site_type`` for a
saved HTML snapshot.
"""

from __future__ import annotations

import logging

from . import DetectionScores, ExtractedMenuItem, ExtractedProduct, MultiPageMenuItem
from .browser_session import BrowserConfig, BrowserSession, create_session
from .crawler import CrawlConfig, crawl_menu
from .extractors import extract_catalogue_from_html, extract_menu_from_html
from .logging_config import log_context
from .scoring import calculate_scores
from .signals import collect_signals

logger = logging.getLogger(__name__)


def classify_html(url: str, raw_html: str, links: list[str] | None = None) -> DetectionScores:
    """Classify a page snapshot without a browser."""
    scores = calculate_scores(collect_signals(url, raw_html, links))
    logger.info(
        "Classified %s as %s (catalogue=%.2f, menu=%.2f)",
        url,
        scores.primary_type,
        scores.score_catalogue,
        scores.score_menu,
    )
    return scores


async def _load(session: BrowserSession, url: str) -> tuple[str, str]:
    """Navigate and return (final_url, html). final_url reflects any redirect."""
    await session.navigate(url)
    return await session.get_page_url(), await session.get_page_html()


async def detect_site_type(url: str, config: BrowserConfig | None = None) -> DetectionScores:
    """Render *url* and classify it.

    Raises:
        NavigationError: page did not load within the timeout.
        BrowserError: Chromium could not be launched.
    """
    with log_context(operation="detect", target=url):
        async with create_session(config) as session:
            page_url, raw_html = await _load(session, url)
        return classify_html(page_url, raw_html)


async def extract_catalogue_items(url: str, config: BrowserConfig | None = None) -> list[ExtractedProduct]:
    with log_context(operation="extract_catalogue", target=url):
        async with create_session(config) as session:
            _, raw_html = await _load(session, url)
        products = extract_catalogue_from_html(raw_html, url)
        logger.info("Extracted %d products from %s", len(products), url)
        return products


async def extract_menu_items(url: str, config: BrowserConfig | None = None) -> list[ExtractedMenuItem]:
    with log_context(operation="extract_menu", target=url):
        async with create_session(config) as session:
            _, raw_html = await _load(session, url)
        items = extract_menu_from_html(raw_html, url)
        logger.info("Extracted %d menu items from %s", len(items), url)
        return items


async def extract_menu_items_multi_page(
    base_url: str,
    max_pages: int | None = None,
    config: BrowserConfig | None = None,
    crawl_config: CrawlConfig | None = None,
) -> list[MultiPageMenuItem]:
    """Crawl a menu landing page and its category pages.

    *max_pages* defaults to ``CrawlConfig.max_pages`` (10, or ``MENUMAP_MAX_PAGES``).
    Category pages that fail are skipped; a base page failure raises.
    """
    crawl_config = crawl_config or CrawlConfig.from_env()
    with log_context(operation="crawl", target=base_url):
        async with create_session(config) as session:
            return await crawl_menu(session, base_url, max_pages, crawl_config)
