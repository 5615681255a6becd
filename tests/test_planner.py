# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Tests for the extraction planner."""

from __future__ import annotations

import pytest

from menumap import (
    DetectionScores,
    DetectionSignals,
    DomHeuristicSignal,
    PlatformSignal,
    StructuredDataSignal,
    UrlPatternSignal,
)
from menumap.planner import (
    NO_SIGNALS_RATIONALE,
    build_rationale,
    derive_extraction_plan,
    estimate_items,
)
from menumap.scoring import calculate_scores


def _scores(primary: str, cat: float, menu: float, signals: DetectionSignals | None = None) -> DetectionScores:
    return DetectionScores(
        score_catalogue=cat,
        score_menu=menu,
        confidence=max(cat, menu),
        primary_type=primary,
        signals=signals or DetectionSignals(),
    )


class TestPriority:
    def test_hybrid_tie_is_catalogue_first(self):
        plan = derive_extraction_plan(_scores("hybrid", 0.65, 0.65))
        assert plan.type == "hybrid"
        assert plan.priority == "catalogue_first"

    def test_hybrid_menu_ahead(self):
        assert derive_extraction_plan(_scores("hybrid", 0.62, 0.7)).priority == "menu_first"

    @pytest.mark.parametrize("primary", ["catalogue", "menu", "none"])
    def test_non_hybrid_is_parallel(self, primary):
        assert derive_extraction_plan(_scores(primary, 0.5, 0.1)).priority == "parallel"

    def test_confidence_copied(self):
        assert derive_extraction_plan(_scores("menu", 0.1, 0.72)).confidence == 0.72


class TestEstimate:
    def test_zero_signals_floor(self):
        plan = derive_extraction_plan(calculate_scores(DetectionSignals()))
        assert plan.type == "none"
        assert plan.estimated_items == 10
        assert plan.rationale == NO_SIGNALS_RATIONALE

    def test_structured_totals(self):
        signals = DetectionSignals(
            structured_data=(
                StructuredDataSignal("Product", 18, 0.9),
                StructuredDataSignal("MenuItem", 7, 0.9),
                StructuredDataSignal("Offer", 40, 0.9),
            ),
            dom_heuristics=(DomHeuristicSignal("product_card", 90, 0.85),),
        )
        assert estimate_items(_scores("hybrid", 0.7, 0.7, signals)) == 25

    def test_dom_fallback(self):
        signals = DetectionSignals(
            dom_heuristics=(
                DomHeuristicSignal("product_card", 14, 0.85),
                DomHeuristicSignal("menu_item", 22, 0.85),
                DomHeuristicSignal("price_grid", 80, 0.7),
            )
        )
        assert estimate_items(_scores("menu", 0.3, 0.5, signals)) == 22

    def test_small_counts_floored(self):
        signals = DetectionSignals(structured_data=(StructuredDataSignal("Product", 3, 0.8),))
        assert estimate_items(_scores("catalogue", 0.4, 0.0, signals)) == 10


class TestRationale:
    def test_all_parts_in_order(self):
        signals = DetectionSignals(
            structured_data=(StructuredDataSignal("Product", 6, 0.9), StructuredDataSignal("ItemList", 1, 0.6)),
            platform=(PlatformSignal("Shopify", "ecommerce", 0.8),),
            url_patterns=(UrlPatternSignal("/shop", "catalogue", 0.8, "https://x/shop"),),
        )
        assert build_rationale(_scores("catalogue", 0.7, 0.0, signals)) == (
            "Structured data: Product(6), ItemList(1); Platforms: Shopify; URL patterns: /shop"
        )

    def test_dom_only_has_no_rationale_parts(self):
        signals = DetectionSignals(dom_heuristics=(DomHeuristicSignal("menu_item", 4, 0.5),))
        assert build_rationale(_scores("menu", 0.0, 0.3, signals)) == NO_SIGNALS_RATIONALE


class TestDeterminism:
    def test_same_input_same_plan(self):
        signals = DetectionSignals(
            structured_data=(StructuredDataSignal("Product", 6, 0.9),),
            url_patterns=(UrlPatternSignal("/menu", "menu", 0.95, "https://x/menu"),),
        )
        scores = calculate_scores(signals)
        assert derive_extraction_plan(scores) == derive_extraction_plan(scores)
