# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Extraction cascade for a single visited page.

Tiers, in priority order (first tier yielding ≥1 item wins):
  1. structured_data – JSON-LD MenuItem/Product nodes
  2. microdata       – itemprop/itemtype annotated elements
  3. repeating_grid  – list/container whose children share a card signature
  4. image_cards     – sizeable images with a priced text container nearby

Each page gets a fresh ``PageContext`` whose ``seen`` set deduplicates item
names (lowercased) across tiers. The set is never shared between pages: the
same dish may legitimately appear under two categories.
"""

from __future__ import annotations

import logging
import re
from collections import Counter
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

import lxml.html

from . import DEFAULT_CURRENCY, MultiPageMenuItem
from .dom import (
    HEADING_TAGS,
    element_children,
    element_text,
    first_price,
    has_price,
    image_size,
    image_source,
    parse_document,
    resolve_url,
)
from .jsonld import as_list, has_type, image_url, node_currency, node_price, parse_jsonld_blocks, text_or_none

logger = logging.getLogger(__name__)

_MAX_DEPTH = 12

# Names starting with a call-to-action verb are buttons, not items
_GRID_CTA_RE = re.compile(r"^(add|buy|order|view|see)", re.IGNORECASE)
_CARD_CTA_RE = re.compile(r"^(add|buy|order|view|menu|sign|login)", re.IGNORECASE)

_NAME_XPATH = ".//*[self::h1 or self::h2 or self::h3 or self::h4 or self::h5 or self::h6 or self::strong or self::b]"
_CARD_NAME_XPATH = (
    ".//*[self::h1 or self::h2 or self::h3 or self::h4 or self::h5 or self::h6"
    " or self::strong or self::b or @role='heading']"
)
_GRID_CONTAINER_XPATH = "//ul | //ol | //*[@role='list'] | //main | //section | //article"
_MICRODATA_XPATH = "//*[@itemprop='name' or contains(@itemtype, 'Product') or contains(@itemtype, 'MenuItem')]"

_MIN_GRID_CHILDREN = 3
_SIGNATURE_SAMPLE = 5
_MIN_GRID_IMAGE_PX = 50
_MIN_CARD_IMAGE_PX = 80
_CARD_ANCESTOR_LEVELS = 4
_CARD_TEXT_MIN = 10
_CARD_TEXT_MAX = 500
_IMAGE_NOISE_WORDS = ("icon", "logo", "avatar")


@dataclass
class PageContext:
    """Per-visit state handed to every cascade tier."""

    raw_html: str
    doc: lxml.html.HtmlElement | None
    page_url: str
    category: str
    seen: set[str] = field(default_factory=set)

    def is_new(self, name: str) -> bool:
        return name.lower() not in self.seen

    def claim(self, name: str) -> bool:
        """Record *name*; False when it was already taken on this page."""
        key = name.lower()
        if key in self.seen:
            return False
        self.seen.add(key)
        return True

    def item(
        self,
        name: str,
        *,
        price: str | None = None,
        description: str | None = None,
        image: str | None = None,
        category: str | None = None,
        currency: str = DEFAULT_CURRENCY,
    ) -> MultiPageMenuItem:
        return MultiPageMenuItem(
            name=name,
            description=description,
            price=price,
            currency=currency,
            category=category or self.category,
            image_url=image,
            source_url=self.page_url,
        )


Strategy = Callable[[PageContext], list[MultiPageMenuItem]]


# ---------------------------------------------------------------------------
# Tier 1: structured data
# ---------------------------------------------------------------------------


def _walk_structured(node: Any, section: str, ctx: PageContext, out: list[MultiPageMenuItem], depth: int = 0) -> None:
    if depth > _MAX_DEPTH or not isinstance(node, dict):
        return
    if has_type(node, ("MenuItem", "Product")):
        name = text_or_none(node.get("name")) or "Unknown"
        if ctx.claim(name):
            out.append(
                ctx.item(
                    name,
                    description=text_or_none(node.get("description")),
                    price=node_price(node),
                    currency=node_currency(node, DEFAULT_CURRENCY),
                    category=section,
                    image=image_url(node.get("image")),
                )
            )
    node_name = text_or_none(node.get("name"))
    for mi in as_list(node.get("hasMenuItem")):
        _walk_structured(mi, node_name or section, ctx, out, depth + 1)
    for ms in as_list(node.get("hasMenuSection")):
        ms_name = text_or_none(ms.get("name")) if isinstance(ms, dict) else None
        _walk_structured(ms, ms_name or section, ctx, out, depth + 1)
    for el in as_list(node.get("itemListElement")):
        if isinstance(el, dict) and isinstance(el.get("item"), dict):
            el = el["item"]
        _walk_structured(el, section, ctx, out, depth + 1)
    for child in as_list(node.get("@graph")):
        _walk_structured(child, section, ctx, out, depth + 1)


def extract_structured(ctx: PageContext) -> list[MultiPageMenuItem]:
    items: list[MultiPageMenuItem] = []
    for node in parse_jsonld_blocks(ctx.raw_html):
        _walk_structured(node, ctx.category, ctx, items)
    return items


# ---------------------------------------------------------------------------
# Tier 2: microdata
# ---------------------------------------------------------------------------


def _microdata_scope(el: lxml.html.HtmlElement) -> lxml.html.HtmlElement | None:
    scoped = el.xpath("ancestor-or-self::*[@itemscope][1]")
    if scoped:
        return scoped[0]
    parent = el.getparent()
    return parent.getparent() if parent is not None else None


def _microdata_price(scope: lxml.html.HtmlElement) -> str | None:
    price_els = scope.xpath(".//*[@itemprop='price']")
    if not price_els:
        return None
    price_el = price_els[0]
    price = first_price(price_el.text_content())
    if price is None:
        content = (price_el.get("content") or "").strip()
        if re.fullmatch(r"\d+(?:\.\d{1,2})?", content):
            price = content
    return price


def _first_image_url(scope: lxml.html.HtmlElement, page_url: str) -> tuple[lxml.html.HtmlElement | None, str | None]:
    img = next(scope.iter("img"), None)
    if img is None:
        return None, None
    src = image_source(img)
    return img, (resolve_url(src, page_url) if src else None)


def extract_microdata(ctx: PageContext) -> list[MultiPageMenuItem]:
    if ctx.doc is None:
        return []
    items: list[MultiPageMenuItem] = []
    for el in ctx.doc.xpath(_MICRODATA_XPATH):
        # Typed containers with their own name property are handled via that element
        if el.get("itemprop") != "name" and el.xpath(".//*[@itemprop='name']"):
            continue
        name = element_text(el)
        if len(name) < 2 or len(name) > 80 or not ctx.is_new(name):
            continue
        scope = _microdata_scope(el)
        price = _microdata_price(scope) if scope is not None else None
        image = _first_image_url(scope, ctx.page_url)[1] if scope is not None else None
        ctx.claim(name)
        items.append(ctx.item(name, price=price, image=image))
    return items


# ---------------------------------------------------------------------------
# Tier 3: repeating-sibling grid
# ---------------------------------------------------------------------------


def _signature(child: lxml.html.HtmlElement) -> tuple[bool, bool, bool]:
    has_img = next(child.iter("img"), None) is not None
    has_price_text = has_price(child.text_content())
    has_heading = any(el.tag in HEADING_TAGS for el in child.iterdescendants())
    return has_img, has_price_text, has_heading


def _is_grid(children: list[lxml.html.HtmlElement]) -> bool:
    sigs = [_signature(c) for c in children[:_SIGNATURE_SAMPLE]]
    (common, count), *_ = Counter(sigs).most_common(1)
    return count >= 3 and any(common)


def _grid_item(child: lxml.html.HtmlElement, ctx: PageContext) -> MultiPageMenuItem | None:
    headings = child.xpath(_NAME_XPATH)
    if not headings:
        return None
    name = element_text(headings[0])
    if len(name) < 2 or len(name) > 80 or not ctx.is_new(name):
        return None
    if _GRID_CTA_RE.match(name):
        return None

    img, image = _first_image_url(child, ctx.page_url)
    if img is not None:
        width, height = image_size(img)
        if (width is not None and width < _MIN_GRID_IMAGE_PX) or (height is not None and height < _MIN_GRID_IMAGE_PX):
            image = None

    paragraphs = list(child.iter("p"))
    description = (element_text(paragraphs[0]) or None) if paragraphs else None

    ctx.claim(name)
    return ctx.item(name, price=first_price(child.text_content()), description=description, image=image)


def extract_repeating_grid(ctx: PageContext) -> list[MultiPageMenuItem]:
    if ctx.doc is None:
        return []
    items: list[MultiPageMenuItem] = []
    for container in ctx.doc.xpath(_GRID_CONTAINER_XPATH):
        children = element_children(container)
        if len(children) < _MIN_GRID_CHILDREN or not _is_grid(children):
            continue
        for child in children:
            item = _grid_item(child, ctx)
            if item is not None:
                items.append(item)
        if items:
            break
    return items


# ---------------------------------------------------------------------------
# Tier 4: image-adjacent text cards
# ---------------------------------------------------------------------------


def _card_item(img: lxml.html.HtmlElement, ctx: PageContext) -> MultiPageMenuItem | None:
    src = image_source(img)
    if not src or any(w in src.lower() for w in _IMAGE_NOISE_WORDS):
        return None
    width, _height = image_size(img)
    if width is not None and 0 < width < _MIN_CARD_IMAGE_PX:
        return None

    card = img.getparent()
    for _ in range(_CARD_ANCESTOR_LEVELS):
        if card is None:
            break
        text = element_text(card)
        if _CARD_TEXT_MIN < len(text) < _CARD_TEXT_MAX and has_price(text):
            headings = card.xpath(_CARD_NAME_XPATH)
            name = element_text(headings[0]) if headings else ""
            if 2 < len(name) < 80 and ctx.is_new(name) and not _CARD_CTA_RE.match(name):
                ctx.claim(name)
                return ctx.item(name, price=first_price(text), image=resolve_url(src, ctx.page_url))
            return None
        card = card.getparent()
    return None


def extract_image_cards(ctx: PageContext) -> list[MultiPageMenuItem]:
    if ctx.doc is None:
        return []
    items: list[MultiPageMenuItem] = []
    for img in ctx.doc.iter("img"):
        item = _card_item(img, ctx)
        if item is not None:
            items.append(item)
    return items


# ---------------------------------------------------------------------------
# Cascade
# ---------------------------------------------------------------------------

CASCADE: tuple[tuple[str, Strategy], ...] = (
    ("structured_data", extract_structured),
    ("microdata", extract_microdata),
    ("repeating_grid", extract_repeating_grid),
    ("image_cards", extract_image_cards),
)


def run_cascade(ctx: PageContext) -> tuple[str | None, list[MultiPageMenuItem]]:
    """Run tiers in order; return (winning tier name, items) or (None, [])."""
    for tier, strategy in CASCADE:
        items = strategy(ctx)
        if items:
            return tier, items
    return None, []


def extract_items_from_html(raw_html: str, page_url: str, category: str) -> list[MultiPageMenuItem]:
    """Extract items from one page snapshot under *category*."""
    ctx = PageContext(raw_html=raw_html, doc=parse_document(raw_html), page_url=page_url, category=category)
    tier, items = run_cascade(ctx)
    if tier is None:
        logger.info("No items found on %s (%s)", page_url, category)
    else:
        logger.info("Extracted %d items from %s via %s (%s)", len(items), page_url, tier, category)
    return items
