# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Single-page structured extractors: JSON-LD → flat catalogue / menu records.

Both extractors re-parse the page's JSON-LD on their own and return an empty
list when nothing matches. Missing optional fields degrade to None or a
default (currency "GBP", availability "available", section "Menu").
"""

from __future__ import annotations

import logging
from typing import Any

from . import DEFAULT_CURRENCY, ExtractedMenuItem, ExtractedProduct
from .jsonld import (
    as_list,
    first_offer,
    has_type,
    image_url,
    node_currency,
    node_price,
    parse_jsonld_blocks,
    strip_schema_prefix,
    text_or_none,
)

logger = logging.getLogger(__name__)

_MAX_DEPTH = 12

# ---------------------------------------------------------------------------
# Catalogue
# ---------------------------------------------------------------------------

_PRODUCT_TYPES = ("Product", "IndividualProduct", "ProductModel", "Offer")

_AVAILABILITY_MAP: dict[str, str] = {
    "InStock": "available",
    "InStoreOnly": "available",
    "OnlineOnly": "available",
    "PreOrder": "available",
    "PreSale": "available",
    "BackOrder": "limited",
    "LimitedAvailability": "limited",
    "OutOfStock": "unavailable",
    "SoldOut": "unavailable",
    "Discontinued": "unavailable",
}


def _availability(node: dict) -> str:
    raw = first_offer(node.get("offers")).get("availability") or node.get("availability")
    if not isinstance(raw, str) or not raw.strip():
        return "available"
    return _AVAILABILITY_MAP.get(strip_schema_prefix(raw.strip()), "available")


def _product_tags(node: dict) -> list[dict[str, str]]:
    tags: list[dict[str, str]] = []
    brand = text_or_none(node.get("brand"))
    if brand:
        tags.append({"key": "brand", "value": brand})
    sku = text_or_none(node.get("sku"))
    if sku:
        tags.append({"key": "sku", "value": sku})
    return tags


def _product_variants(node: dict) -> list[str]:
    names: list[str] = []
    for variant in as_list(node.get("hasVariant")):
        name = text_or_none(variant)
        if name and name not in names:
            names.append(name)
    return names


def _to_product(node: dict, source_url: str) -> ExtractedProduct:
    offer = first_offer(node.get("offers"))
    return ExtractedProduct(
        title=text_or_none(node.get("name")) or "Unknown Product",
        description=text_or_none(node.get("description")),
        price=node_price(node),
        currency=node_currency(node, DEFAULT_CURRENCY),
        category=text_or_none(node.get("category")),
        image_url=image_url(node.get("image")) or image_url(offer.get("image")),
        availability=_availability(node),
        variants=_product_variants(node),
        source_url=source_url,
        tags=_product_tags(node),
    )


def _walk_catalogue(node: Any, out: list[ExtractedProduct], source_url: str, depth: int = 0) -> None:
    if depth > _MAX_DEPTH or not isinstance(node, dict):
        return
    if has_type(node, _PRODUCT_TYPES):
        out.append(_to_product(node, source_url))
    for child in as_list(node.get("@graph")):
        _walk_catalogue(child, out, source_url, depth + 1)
    for el in as_list(node.get("itemListElement")):
        if isinstance(el, dict) and isinstance(el.get("item"), dict):
            el = el["item"]
        _walk_catalogue(el, out, source_url, depth + 1)


def extract_catalogue_from_html(raw_html: str, source_url: str) -> list[ExtractedProduct]:
    """Walk JSON-LD for Product/Offer nodes and ItemList wrappers."""
    products: list[ExtractedProduct] = []
    for node in parse_jsonld_blocks(raw_html):
        _walk_catalogue(node, products, source_url)
    logger.debug("Catalogue extraction: %d products from %s", len(products), source_url)
    return products


# ---------------------------------------------------------------------------
# Menu
# ---------------------------------------------------------------------------

DEFAULT_SECTION = "Menu"


def _dietary_tags(node: dict) -> list[str]:
    return [strip_schema_prefix(d.strip()) for d in as_list(node.get("suitableForDiet")) if isinstance(d, str)]


def _menu_options(node: dict) -> list[str]:
    options: list[str] = []
    for add_on in as_list(node.get("menuAddOn")):
        if has_type(add_on, ("MenuSection",)):
            options.extend(n for mi in as_list(add_on.get("hasMenuItem")) if (n := text_or_none(mi)))
        elif name := text_or_none(add_on):
            options.append(name)
    return options


def _to_menu_item(node: dict, section: str, source_url: str) -> ExtractedMenuItem:
    return ExtractedMenuItem(
        name=text_or_none(node.get("name")) or "Unknown Item",
        description=text_or_none(node.get("description")),
        price=node_price(node),
        currency=node_currency(node, DEFAULT_CURRENCY),
        section=section,
        dietary_tags=_dietary_tags(node),
        options=_menu_options(node),
        source_url=source_url,
    )


def _walk_menu(
    node: Any,
    out: list[ExtractedMenuItem],
    source_url: str,
    section: str = DEFAULT_SECTION,
    depth: int = 0,
) -> None:
    if depth > _MAX_DEPTH or not isinstance(node, dict):
        return

    if has_type(node, ("MenuItem",)):
        out.append(_to_menu_item(node, section, source_url))

    if has_type(node, ("MenuSection",)):
        section_name = text_or_none(node.get("name")) or section
        for item in as_list(node.get("hasMenuItem")):
            _walk_menu(item, out, source_url, section_name, depth + 1)
        for sub in as_list(node.get("hasMenuSection")):
            _walk_menu(sub, out, source_url, section_name, depth + 1)

    if has_type(node, ("Menu",)):
        for sec in as_list(node.get("hasMenuSection")):
            _walk_menu(sec, out, source_url, DEFAULT_SECTION, depth + 1)
        for item in as_list(node.get("hasMenuItem")):
            _walk_menu(item, out, source_url, DEFAULT_SECTION, depth + 1)

    for menu in as_list(node.get("hasMenu")):
        _walk_menu(menu, out, source_url, DEFAULT_SECTION, depth + 1)

    for child in as_list(node.get("@graph")):
        _walk_menu(child, out, source_url, section, depth + 1)


def extract_menu_from_html(raw_html: str, source_url: str) -> list[ExtractedMenuItem]:
    """Walk Menu → hasMenuSection → hasMenuItem chains (and bare hasMenu pointers)."""
    items: list[ExtractedMenuItem] = []
    for node in parse_jsonld_blocks(raw_html):
        _walk_menu(node, items, source_url)
    logger.debug("Menu extraction: %d items from %s", len(items), source_url)
    return items
