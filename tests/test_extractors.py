# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Tests for single-page JSON-LD catalogue and menu extractors."""

from __future__ import annotations

import json

import pytest

from menumap.extractors import extract_catalogue_from_html, extract_menu_from_html


def _page(*blocks) -> str:
    scripts = "".join(f'<script type="application/ld+json">{json.dumps(b)}</script>' for b in blocks)
    return f"<html><head>{scripts}</head><body><h1>Shop</h1></body></html>"


# ---------------------------------------------------------------------------
# Catalogue
# ---------------------------------------------------------------------------


class TestCatalogue:
    def test_red_mug(self):
        html = _page(
            {
                "@context": "https://schema.org",
                "@type": "Product",
                "name": "Red Mug",
                "image": "https://cdn.example.com/red-mug.jpg",
                "offers": {
                    "@type": "Offer",
                    "price": "9.99",
                    "priceCurrency": "GBP",
                    "availability": "https://schema.org/InStock",
                },
            }
        )
        (product,) = extract_catalogue_from_html(html, "https://example.com/shop/mugs")
        assert product.title == "Red Mug"
        assert product.price == "9.99"
        assert product.currency == "GBP"
        assert product.availability == "available"
        assert product.image_url == "https://cdn.example.com/red-mug.jpg"
        assert product.source_url == "https://example.com/shop/mugs"

    @pytest.mark.parametrize(
        "availability,expected",
        [
            ("https://schema.org/InStock", "available"),
            ("http://schema.org/PreOrder", "available"),
            ("https://schema.org/LimitedAvailability", "limited"),
            ("BackOrder", "limited"),
            ("https://schema.org/OutOfStock", "unavailable"),
            ("https://schema.org/Discontinued", "unavailable"),
            (None, "available"),
        ],
    )
    def test_availability_mapping(self, availability, expected):
        offer = {"price": 5}
        if availability is not None:
            offer["availability"] = availability
        html = _page({"@type": "Product", "name": "X", "offers": offer})
        (product,) = extract_catalogue_from_html(html, "https://example.com/p")
        assert product.availability == expected

    def test_defaults_when_fields_missing(self):
        (product,) = extract_catalogue_from_html(_page({"@type": "Product"}), "https://example.com/p")
        assert product.title == "Unknown Product"
        assert product.price is None
        assert product.currency == "GBP"
        assert product.description is None
        assert product.image_url is None

    def test_item_list_and_graph(self):
        html = _page(
            {
                "@context": "https://schema.org",
                "@graph": [
                    {
                        "@type": "ItemList",
                        "itemListElement": [
                            {"@type": "ListItem", "position": 1, "item": {"@type": "Product", "name": "A"}},
                            {"@type": "Product", "name": "B"},
                        ],
                    }
                ],
            }
        )
        titles = [p.title for p in extract_catalogue_from_html(html, "https://example.com/c")]
        assert titles == ["A", "B"]

    def test_offer_list_and_aggregate(self):
        html = _page(
            {"@type": "Product", "name": "Listed", "offers": [{"price": 12.0, "priceCurrency": "EUR"}]},
            {"@type": "Product", "name": "Range", "offers": {"@type": "AggregateOffer", "lowPrice": "4.50"}},
        )
        listed, ranged = extract_catalogue_from_html(html, "https://example.com/c")
        assert (listed.price, listed.currency) == ("12", "EUR")
        assert ranged.price == "4.50"

    def test_image_object_and_list(self):
        html = _page(
            {"@type": "Product", "name": "Obj", "image": {"@type": "ImageObject", "url": "https://i/1.jpg"}},
            {"@type": "Product", "name": "Arr", "image": ["https://i/2.jpg", "https://i/3.jpg"]},
        )
        obj, arr = extract_catalogue_from_html(html, "https://example.com/c")
        assert obj.image_url == "https://i/1.jpg"
        assert arr.image_url == "https://i/2.jpg"

    def test_brand_sku_and_variants(self):
        html = _page(
            {
                "@type": "Product",
                "name": "Tee",
                "brand": {"@type": "Brand", "name": "Acme"},
                "sku": "T-100",
                "category": "Clothing",
                "hasVariant": [{"@type": "Product", "name": "Tee S"}, {"@type": "Product", "name": "Tee M"}],
            }
        )
        (product,) = extract_catalogue_from_html(html, "https://example.com/c")
        assert product.tags == [{"key": "brand", "value": "Acme"}, {"key": "sku", "value": "T-100"}]
        assert product.variants == ["Tee S", "Tee M"]
        assert product.category == "Clothing"

    def test_malformed_block_ignored(self):
        html = '<script type="application/ld+json">{"@type": "Product",</script>' + _page(
            {"@type": "Product", "name": "Ok"}
        )
        assert [p.title for p in extract_catalogue_from_html(html, "https://example.com/c")] == ["Ok"]

    def test_no_structured_data(self):
        assert extract_catalogue_from_html("<html><body>£9.99</body></html>", "https://example.com/") == []


# ---------------------------------------------------------------------------
# Menu
# ---------------------------------------------------------------------------

_RESTAURANT = {
    "@context": "https://schema.org",
    "@type": "Restaurant",
    "name": "Bistro",
    "hasMenu": {
        "@type": "Menu",
        "name": "Dinner",
        "hasMenuSection": [
            {
                "@type": "MenuSection",
                "name": "Starters",
                "hasMenuItem": [
                    {
                        "@type": "MenuItem",
                        "name": "Soup",
                        "description": "Tomato and basil",
                        "offers": {"@type": "Offer", "price": "5.50", "priceCurrency": "GBP"},
                        "suitableForDiet": ["https://schema.org/VegetarianDiet", "https://schema.org/GlutenFreeDiet"],
                    },
                    {"@type": "MenuItem", "name": "Bread"},
                ],
            },
            {
                "@type": "MenuSection",
                "name": "Mains",
                "hasMenuItem": {
                    "@type": "MenuItem",
                    "name": "Steak",
                    "offers": {"price": 24},
                    "menuAddOn": [{"@type": "MenuItem", "name": "Peppercorn sauce"}],
                },
            },
        ],
    },
}


class TestMenu:
    def test_sections_tracked(self):
        items = extract_menu_from_html(_page(_RESTAURANT), "https://bistro.example/menu")
        assert [(i.name, i.section) for i in items] == [
            ("Soup", "Starters"),
            ("Bread", "Starters"),
            ("Steak", "Mains"),
        ]

    def test_item_fields(self):
        soup, bread, steak = extract_menu_from_html(_page(_RESTAURANT), "https://bistro.example/menu")
        assert soup.price == "5.50"
        assert soup.currency == "GBP"
        assert soup.description == "Tomato and basil"
        assert soup.dietary_tags == ["VegetarianDiet", "GlutenFreeDiet"]
        assert soup.source_url == "https://bistro.example/menu"
        assert bread.price is None
        assert steak.price == "24"
        assert steak.options == ["Peppercorn sauce"]

    def test_bare_menu_items_default_section(self):
        html = _page({"@type": "Menu", "hasMenuItem": [{"@type": "MenuItem", "name": "Chips"}]})
        (item,) = extract_menu_from_html(html, "https://x/menu")
        assert item.section == "Menu"

    def test_unnamed_section_inherits(self):
        html = _page(
            {
                "@type": "Menu",
                "hasMenuSection": {"@type": "MenuSection", "hasMenuItem": {"@type": "MenuItem", "name": "Tea"}},
            }
        )
        (item,) = extract_menu_from_html(html, "https://x/menu")
        assert item.section == "Menu"

    def test_nested_sections(self):
        html = _page(
            {
                "@type": "Menu",
                "hasMenuSection": {
                    "@type": "MenuSection",
                    "name": "Drinks",
                    "hasMenuSection": {
                        "@type": "MenuSection",
                        "name": "Hot",
                        "hasMenuItem": {"@type": "MenuItem", "name": "Coffee"},
                    },
                },
            }
        )
        (item,) = extract_menu_from_html(html, "https://x/menu")
        assert item.section == "Hot"

    def test_catalogue_page_has_no_menu_items(self):
        html = _page({"@type": "Product", "name": "Red Mug"})
        assert extract_menu_from_html(html, "https://example.com/shop/mugs") == []
