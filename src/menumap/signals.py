# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Signal collectors: four independent checks over one rendered page.

Collectors:
  1. Structured data – JSON-LD @type counts (graph walk over known containers)
  2. Platform        – indicator substrings of known shop / ordering / delivery platforms
  3. URL patterns    – catalogue/menu path fragments in the page URL + internal links
  4. DOM heuristics  – product cards, cart phrases, menu headings, dietary markers, price density

Every collector treats missing evidence as zero evidence; none of them raise on
odd markup.
"""

from __future__ import annotations

import logging
from collections import Counter
from dataclasses import dataclass
from typing import Any
from urllib.parse import urlparse

import lxml.html

from . import (
    STRUCTURED_TYPES,
    DetectionSignals,
    DomHeuristicSignal,
    PlatformSignal,
    StructuredDataSignal,
    UrlPatternSignal,
)
from .dom import HEADING_TAGS, PRICE_DENSITY_RE, PRICE_RE, iter_elements, parse_document
from .jsonld import as_list, node_types, parse_jsonld_blocks

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Structured data
# ---------------------------------------------------------------------------

# Properties whose values are walked when counting types
_CONTAINER_KEYS: tuple[str, ...] = ("itemListElement", "hasMenu", "hasMenuSection", "hasMenuItem")

_MAX_WALK_DEPTH = 12


def _count_types(node: Any, counts: Counter, depth: int = 0) -> None:
    if depth > _MAX_WALK_DEPTH or not isinstance(node, dict):
        return
    for t in node_types(node):
        counts[t] += 1
    if "@graph" in node:
        for child in as_list(node["@graph"]):
            _count_types(child, counts, depth + 1)
    for key in _CONTAINER_KEYS:
        for child in as_list(node.get(key)):
            _count_types(child, counts, depth + 1)
            # ListItem wrappers carry the real node under "item"
            if key == "itemListElement" and isinstance(child, dict) and isinstance(child.get("item"), dict):
                _count_types(child["item"], counts, depth + 1)


def collect_structured_data(raw_html: str) -> tuple[StructuredDataSignal, ...]:
    """Count recognised schema.org types across every JSON-LD block."""
    counts: Counter = Counter()
    for node in parse_jsonld_blocks(raw_html):
        _count_types(node, counts)

    return tuple(
        StructuredDataSignal(
            type=t,
            count=counts[t],
            confidence=min(0.9, 0.5 + counts[t] * 0.1),
        )
        for t in STRUCTURED_TYPES
        if counts[t] > 0
    )


# ---------------------------------------------------------------------------
# Platform fingerprints
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class PlatformFingerprint:
    platform: str
    category: str  # ecommerce, food_ordering, delivery
    indicators: tuple[str, ...]


PLATFORM_FINGERPRINTS: tuple[PlatformFingerprint, ...] = (
    # ---- ecommerce ----
    PlatformFingerprint(
        "Shopify", "ecommerce", ("Shopify.shop", "cdn.shopify.com", "shopify-section", "/collections/", "/products/")
    ),
    PlatformFingerprint(
        "WooCommerce", "ecommerce", ("woocommerce", "wc-block", "add_to_cart", "/product-category/", "/product/")
    ),
    PlatformFingerprint("Magento", "ecommerce", ("Magento", "mage/", "/catalog/product/")),
    PlatformFingerprint("Wix Stores", "ecommerce", ("wix-stores", "wixstores", "_api/wix-ecommerce")),
    PlatformFingerprint("Squarespace Commerce", "ecommerce", ("squarespace", "sqsp", "/store/")),
    PlatformFingerprint("BigCommerce", "ecommerce", ("bigcommerce", "/cart.php")),
    PlatformFingerprint("PrestaShop", "ecommerce", ("prestashop", "/modules/")),
    # ---- food_ordering ----
    PlatformFingerprint("Square Online", "food_ordering", ("squareup.com", "square-menu", "weeblysite.com")),
    PlatformFingerprint("GloriaFood", "food_ordering", ("gloriafood", "gloria.food")),
    PlatformFingerprint("Toast", "food_ordering", ("toasttab.com", "toast-menu")),
    PlatformFingerprint("Flipdish", "food_ordering", ("flipdish", "order.flipdish")),
    PlatformFingerprint("ChowNow", "food_ordering", ("chownow", "direct.chownow")),
    PlatformFingerprint("OpenTable", "food_ordering", ("opentable.com", "ot-widget")),
    # ---- delivery ----
    PlatformFingerprint("Deliveroo", "delivery", ("deliveroo.co", "deliveroo.com")),
    PlatformFingerprint("Just Eat", "delivery", ("just-eat", "justeat.co")),
    PlatformFingerprint("Uber Eats", "delivery", ("ubereats.com", "uber.com/eats")),
    PlatformFingerprint("DoorDash", "delivery", ("doordash.com",)),
)


def detect_platform_fingerprints(raw_html: str, url: str) -> tuple[PlatformSignal, ...]:
    """Case-insensitive indicator search over page HTML and URL."""
    html_lower = raw_html.lower()
    url_lower = url.lower()
    signals: list[PlatformSignal] = []
    for fp in PLATFORM_FINGERPRINTS:
        matched = tuple(ind for ind in fp.indicators if ind.lower() in html_lower or ind.lower() in url_lower)
        if matched:
            signals.append(
                PlatformSignal(
                    platform=fp.platform,
                    type=fp.category,
                    confidence=min(0.95, 0.4 + len(matched) * 0.2),
                    indicators=matched,
                )
            )
    return tuple(signals)


# ---------------------------------------------------------------------------
# URL patterns
# ---------------------------------------------------------------------------

CATALOGUE_URL_PATTERNS: tuple[tuple[str, float], ...] = (
    ("/shop", 0.8),
    ("/products", 0.9),
    ("/collections", 0.85),
    ("/category", 0.7),
    ("/store", 0.75),
    ("/catalog", 0.8),
    ("/buy", 0.6),
)

MENU_URL_PATTERNS: tuple[tuple[str, float], ...] = (
    ("/menu", 0.95),
    ("/food", 0.8),
    ("/drinks", 0.8),
    ("/takeaway", 0.85),
    ("/order", 0.7),
    ("/our-menu", 0.95),
    ("/food-menu", 0.95),
)

_PATTERN_TABLES: tuple[tuple[str, tuple[tuple[str, float], ...]], ...] = (
    ("catalogue", CATALOGUE_URL_PATTERNS),
    ("menu", MENU_URL_PATTERNS),
)

MAX_INTERNAL_LINKS = 50
_LINKED_WEIGHT = 0.8


def collect_internal_links(
    doc: lxml.html.HtmlElement | None, page_url: str, limit: int = MAX_INTERNAL_LINKS
) -> list[str]:
    """Raw ``href`` values that are root-relative or mention the page host."""
    if doc is None:
        return []
    host = (urlparse(page_url).hostname or "").lower()
    links: list[str] = []
    for a in doc.iter("a"):
        href = (a.get("href") or "").strip()
        if not href:
            continue
        if href.startswith("/") or (host and host in href.lower()):
            links.append(href)
            if len(links) >= limit:
                break
    return links


def detect_url_patterns(page_url: str, links: list[str] | tuple[str, ...] = ()) -> tuple[UrlPatternSignal, ...]:
    """Direct URL matches at full weight, then linked matches at 0.8× (first per pattern)."""
    signals: list[UrlPatternSignal] = []
    seen: set[tuple[str, str]] = set()
    url_lower = page_url.lower()

    for kind, table in _PATTERN_TABLES:
        for pattern, weight in table:
            if pattern in url_lower:
                signals.append(UrlPatternSignal(pattern=pattern, type=kind, confidence=weight, url=page_url))
                seen.add((pattern, kind))

    for link in links[:MAX_INTERNAL_LINKS]:
        link_lower = link.lower()
        for kind, table in _PATTERN_TABLES:
            for pattern, weight in table:
                if pattern in link_lower and (pattern, kind) not in seen:
                    signals.append(
                        UrlPatternSignal(pattern=pattern, type=kind, confidence=weight * _LINKED_WEIGHT, url=link)
                    )
                    seen.add((pattern, kind))
    return tuple(signals)


# ---------------------------------------------------------------------------
# DOM heuristics
# ---------------------------------------------------------------------------

_PRODUCT_CLASS_HINTS: tuple[str, ...] = ("product", "item-card", "shop-item")
ADD_TO_CART_TEXTS: tuple[str, ...] = ("add to cart", "add to bag", "buy now", "add to basket", "shop now")
MENU_SECTION_TEXTS: tuple[str, ...] = (
    "starters",
    "mains",
    "desserts",
    "drinks",
    "sides",
    "appetizers",
    "entrees",
    "beverages",
)
DIETARY_MARKERS: tuple[str, ...] = (
    "(v)",
    "(vg)",
    "(ve)",
    "(gf)",
    "vegetarian",
    "vegan",
    "gluten-free",
    "gluten free",
)

_MAX_INDICATORS = 5


def detect_dom_heuristics(raw_html: str, doc: lxml.html.HtmlElement | None = None) -> tuple[DomHeuristicSignal, ...]:
    """Count product/menu evidence over every element of the rendered DOM.

    Text checks use each element's full text content, so a phrase nested
    deep in the tree is counted once per enclosing element.
    """
    if doc is None:
        doc = parse_document(raw_html)

    product_count = 0
    product_ind: list[str] = []
    menu_count = 0
    menu_ind: list[str] = []

    if doc is not None:
        for el in iter_elements(doc):
            raw_text = el.text_content()
            text = raw_text.lower()
            class_name = (el.get("class") or "").lower()

            if any(h in class_name for h in _PRODUCT_CLASS_HINTS) and PRICE_RE.search(raw_text):
                product_count += 1
                product_ind.append("product-class-with-price")

            for phrase in ADD_TO_CART_TEXTS:
                if phrase in text:
                    product_count += 1
                    product_ind.append(f"cart-text: {phrase}")

            if el.tag in HEADING_TAGS:
                for section in MENU_SECTION_TEXTS:
                    if section in text:
                        menu_count += 1
                        menu_ind.append(f"menu-section: {section}")

            for marker in DIETARY_MARKERS:
                if marker in text:
                    menu_count += 1
                    menu_ind.append(f"dietary: {marker}")

    body = doc.find("body") if doc is not None else None
    body_html = lxml.html.tostring(body, encoding="unicode") if body is not None else ""
    price_count = len(PRICE_DENSITY_RE.findall(body_html))

    signals: list[DomHeuristicSignal] = []
    if product_count > 0:
        signals.append(
            DomHeuristicSignal(
                type="product_card",
                count=product_count,
                confidence=min(0.85, 0.3 + product_count * 0.05),
                indicators=tuple(product_ind[:_MAX_INDICATORS]),
            )
        )
    if menu_count > 0:
        signals.append(
            DomHeuristicSignal(
                type="menu_item",
                count=menu_count,
                confidence=min(0.85, 0.3 + menu_count * 0.05),
                indicators=tuple(menu_ind[:_MAX_INDICATORS]),
            )
        )
    if price_count > 5:
        signals.append(
            DomHeuristicSignal(
                type="price_grid",
                count=price_count,
                confidence=min(0.7, 0.2 + price_count * 0.02),
                indicators=(f"{price_count} price elements found",),
            )
        )
    return tuple(signals)


# ---------------------------------------------------------------------------
# All collectors
# ---------------------------------------------------------------------------


def collect_signals(page_url: str, raw_html: str, links: list[str] | None = None) -> DetectionSignals:
    """Run all four collectors over one page snapshot.

    Args:
        page_url: final URL of the page (after redirects)
        raw_html: rendered page HTML
        links: internal link hrefs; harvested from *raw_html* when omitted
    """
    doc = parse_document(raw_html)
    if links is None:
        links = collect_internal_links(doc, page_url)

    signals = DetectionSignals(
        structured_data=collect_structured_data(raw_html),
        platform=detect_platform_fingerprints(raw_html, page_url),
        url_patterns=detect_url_patterns(page_url, links),
        dom_heuristics=detect_dom_heuristics(raw_html, doc),
    )
    logger.debug(
        "Signals: structured=%d platform=%d url=%d dom=%d",
        len(signals.structured_data),
        len(signals.platform),
        len(signals.url_patterns),
        len(signals.dom_heuristics),
    )
    return signals
