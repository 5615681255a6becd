# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""JSON-LD parsing helpers shared by the classifier and the extractors.

Every consumer re-parses the raw HTML itself: the classifier and the
extractors never share parsed state.
"""

from __future__ import annotations

import json
import logging
import re
from typing import Any

logger = logging.getLogger(__name__)

_JSONLD_RE = re.compile(
    r'<script[^>]*type\s*=\s*["\']application/ld\+json["\'][^>]*>(.*?)</script>',
    re.DOTALL | re.IGNORECASE,
)

_SCHEMA_PREFIXES = ("https://schema.org/", "http://schema.org/")

_MAX_URL_LENGTH = 2048


def parse_jsonld_blocks(raw_html: str) -> list[Any]:
    """Parse every application/ld+json block. Malformed blocks are skipped.

    Top-level arrays are flattened so callers see one entry per root node.
    """
    nodes: list[Any] = []
    for m in _JSONLD_RE.finditer(raw_html):
        text = m.group(1).strip()
        if not text:
            continue
        try:
            data = json.loads(text)
        except (json.JSONDecodeError, TypeError, ValueError):
            logger.debug("Skipping malformed JSON-LD block (%d chars)", len(text))
            continue
        if isinstance(data, list):
            nodes.extend(data)
        else:
            nodes.append(data)
    return nodes


def as_list(value: Any) -> list[Any]:
    """Normalize a single-or-many JSON-LD property value to a list."""
    if value is None:
        return []
    return value if isinstance(value, list) else [value]


def node_types(node: Any) -> list[str]:
    """Return the @type values of a node (list-valued @type supported)."""
    if not isinstance(node, dict):
        return []
    t = node.get("@type")
    return [x for x in as_list(t) if isinstance(x, str)]


def has_type(node: Any, type_names: tuple[str, ...]) -> bool:
    return any(t in type_names for t in node_types(node))


def strip_schema_prefix(value: str) -> str:
    """``https://schema.org/VeganDiet`` → ``VeganDiet``."""
    for prefix in _SCHEMA_PREFIXES:
        if value.startswith(prefix):
            return value[len(prefix) :]
    return value


def format_price(value: Any) -> str | None:
    """Stringify a price the way it appeared: 9.99 → "9.99", 10.0 → "10", "" → None."""
    if value is None or isinstance(value, (bool, dict, list)):
        return None
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value).strip() or None


def first_offer(offers: Any) -> dict:
    """Handle offers polymorphism: Offer, [Offer], AggregateOffer."""
    if isinstance(offers, list):
        offers = next((o for o in offers if isinstance(o, dict)), {})
    return offers if isinstance(offers, dict) else {}


def offer_price(offer: dict) -> Any:
    if "AggregateOffer" in node_types(offer):
        low = offer.get("lowPrice")
        return low if low not in (None, "") else offer.get("price")
    return offer.get("price")


def node_price(node: dict) -> str | None:
    """Price from ``offers`` first, then the node's own ``price``."""
    price = offer_price(first_offer(node.get("offers")))
    if price in (None, ""):
        price = node.get("price")
    return format_price(price)


def node_currency(node: dict, default: str | None) -> str | None:
    cur = first_offer(node.get("offers")).get("priceCurrency") or node.get("priceCurrency")
    return str(cur).strip() if cur else default


def image_url(value: Any) -> str | None:
    """Extract an image URL from a string, list, or ImageObject."""
    if isinstance(value, list):
        value = value[0] if value else None
    if isinstance(value, dict):
        u = value.get("url")
        value = u if u is not None else value.get("contentUrl")
    if not isinstance(value, str) or not value.strip() or len(value) > _MAX_URL_LENGTH:
        return None
    return value.strip()


def text_or_none(value: Any) -> str | None:
    if value is None:
        return None
    if isinstance(value, dict):
        value = value.get("name")
    if isinstance(value, list):
        value = value[0] if value else None
    if not isinstance(value, (str, int, float)):
        return None
    text = str(value).strip()
    return text or None
