# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""lxml DOM helpers: parsing, text, prices, image sizes, URL resolution.

Pages are analysed as HTML snapshots taken from the renderer. The one piece of
layout information a snapshot lacks (rendered image size) is stamped into the
DOM beforehand by ``STAMP_IMAGE_SIZES_JS``.
"""

from __future__ import annotations

import logging
import re
from urllib.parse import urljoin

import lxml.html
from lxml import etree

logger = logging.getLogger(__name__)

# Currency amount, symbol before or after ("£4.99", "4,99 €")
PRICE_RE = re.compile(r"[£$€]\s*\d+(?:[.,]\d{2})?|\d+(?:[.,]\d{2})?\s*[£$€]")
# Price used by the extraction cascade; group 1 is the bare amount
ITEM_PRICE_RE = re.compile(r"[£$€]\s*(\d+(?:\.\d{2})?)")
# Raw-HTML price density (symbol-first only)
PRICE_DENSITY_RE = re.compile(r"[£$€]\s*\d+(?:[.,]\d{2})?")

HEADING_TAGS = frozenset({"h1", "h2", "h3", "h4", "h5", "h6"})

_WS_RE = re.compile(r"\s+")

# Rendered-size stamp attributes written by STAMP_IMAGE_SIZES_JS
RENDERED_WIDTH_ATTR = "data-menumap-w"
RENDERED_HEIGHT_ATTR = "data-menumap-h"

STAMP_IMAGE_SIZES_JS = """() => {
  const imgs = document.querySelectorAll('img');
  imgs.forEach(img => {
    img.setAttribute('data-menumap-w', String(img.width || 0));
    img.setAttribute('data-menumap-h', String(img.height || 0));
  });
  return imgs.length;
}"""


def parse_document(raw_html: str) -> lxml.html.HtmlElement | None:
    """Parse an HTML snapshot. Returns None for empty or unparseable input."""
    if not raw_html or not raw_html.strip():
        return None
    try:
        return lxml.html.document_fromstring(raw_html)
    except ValueError:
        # str input carrying an XML encoding declaration
        try:
            return lxml.html.document_fromstring(raw_html.encode("utf-8"))
        except (etree.ParserError, ValueError):
            logger.debug("HTML snapshot could not be parsed", exc_info=True)
            return None
    except etree.ParserError:
        logger.debug("HTML snapshot could not be parsed", exc_info=True)
        return None


def iter_elements(root: lxml.html.HtmlElement):
    """Iterate element nodes only (skips comments and processing instructions)."""
    return root.iter(etree.Element)


def element_children(el: lxml.html.HtmlElement) -> list[lxml.html.HtmlElement]:
    return [c for c in el if isinstance(c.tag, str)]


def element_text(el: lxml.html.HtmlElement) -> str:
    """Whitespace-collapsed text content of *el*."""
    return _WS_RE.sub(" ", el.text_content()).strip()


def collapse(text: str) -> str:
    return _WS_RE.sub(" ", text).strip()


def has_price(text: str) -> bool:
    return ITEM_PRICE_RE.search(text) is not None


def first_price(text: str) -> str | None:
    m = ITEM_PRICE_RE.search(text)
    return m.group(1) if m else None


def _int_attr(el: lxml.html.HtmlElement, name: str) -> int | None:
    raw = (el.get(name) or "").strip().lower().removesuffix("px")
    try:
        return int(float(raw))
    except ValueError:
        return None


def image_size(img: lxml.html.HtmlElement) -> tuple[int | None, int | None]:
    """Rendered (width, height) when stamped, else the HTML attributes, else None."""
    width = _int_attr(img, RENDERED_WIDTH_ATTR)
    height = _int_attr(img, RENDERED_HEIGHT_ATTR)
    if width is None:
        width = _int_attr(img, "width")
    if height is None:
        height = _int_attr(img, "height")
    return width, height


def image_source(img: lxml.html.HtmlElement) -> str:
    return (img.get("src") or img.get("data-src") or "").strip()


def resolve_url(url: str, page_url: str) -> str:
    """Resolve a relative URL against the page; absolute http(s) URLs pass through."""
    if not url or url.startswith(("http://", "https://")):
        return url
    if not page_url:
        return url
    return urljoin(page_url, url)
