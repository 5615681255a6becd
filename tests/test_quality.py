# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Tests for the extraction quality gate."""

from __future__ import annotations

from menumap import MultiPageMenuItem
from menumap.quality import validate_extraction_quality


def _item(name: str = "Dish", price: str | None = "5.00", image: str | None = "https://i/x.jpg") -> MultiPageMenuItem:
    return MultiPageMenuItem(name=name, price=price, image_url=image, source_url="https://eat.example/menu")


class TestValidateExtractionQuality:
    def test_perfect(self):
        report = validate_extraction_quality([_item(f"Dish {i}") for i in range(5)])
        assert report.score == 100
        assert report.passed is True
        assert report.issues == ()

    def test_empty(self):
        report = validate_extraction_quality([])
        assert report.score == 0
        assert report.passed is False
        assert report.item_count == 0
        assert "no items" in report.issues[0]

    def test_too_few_items_fails_even_with_high_score(self):
        report = validate_extraction_quality([_item("A1"), _item("B2")], min_items=5)
        assert report.score == 76
        assert report.passed is False
        assert any("only 2 items" in issue for issue in report.issues)

    def test_missing_prices_and_images(self):
        items = [_item(f"Dish {i}", price=None, image=None) for i in range(10)]
        report = validate_extraction_quality(items)
        assert report.score == 55
        assert report.passed is False
        assert report.priced_ratio == 0.0
        assert report.imaged_ratio == 0.0

    def test_placeholder_and_cta_names(self):
        items = [_item("Unknown"), _item("Add to basket"), _item("Fries"), _item("Cola")]
        report = validate_extraction_quality(items, min_items=4)
        assert report.score == round(40 + 30 + 15 + 15 * 0.5)
        assert any("button-like" in issue for issue in report.issues)

    def test_threshold_boundary(self):
        # 40 + 30 * 0.5 + 15 * 0 + 15 = 70
        items = [_item(f"Dish {i}", price="1.00" if i % 2 else None, image=None) for i in range(6)]
        report = validate_extraction_quality(items)
        assert report.score == 70
        assert report.passed is True
