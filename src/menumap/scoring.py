# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Score fusion: signal lists → raw catalogue/menu scores → classification.

Raw scores accumulate with fixed per-category multipliers, are squashed by
``raw / (raw + 2.0)`` (1.0 → ~0.5, 3.0 → ~0.9, never reaching 1.0), and the
primary type is decided on both normalized and raw scores so that compression
near the top does not hide a clear raw dominance.
"""

from __future__ import annotations

from . import DetectionScores, DetectionSignals

# ---------------------------------------------------------------------------
# Multipliers
# ---------------------------------------------------------------------------

_CATALOGUE_STRUCTURED_TYPES = frozenset({"Product", "Offer", "ItemList"})
_MENU_STRUCTURED_TYPES = frozenset({"Restaurant", "FoodEstablishment", "Menu", "MenuItem"})
_STRUCTURED_BOOST_COUNT = 5  # count above this → ×1.5
_STRUCTURED_BOOST = 1.5

_PLATFORM_WEIGHTS: dict[str, tuple[str, float]] = {
    "ecommerce": ("catalogue", 1.2),
    "food_ordering": ("menu", 1.2),
    "delivery": ("menu", 0.5),
}

_URL_PATTERN_WEIGHT = 0.8
_DOM_CARD_WEIGHT = 0.7
_PRICE_GRID_BOOST = 0.3  # flat, added to both sides

# ---------------------------------------------------------------------------
# Thresholds (empirical; preserved as-is)
# ---------------------------------------------------------------------------

CONFIDENCE_CEILING = 0.99
NORMALIZATION_DENOMINATOR = 2.0
TYPE_THRESHOLD = 0.3
HYBRID_THRESHOLD = 0.6
DOMINANCE_RATIO = 1.3


def normalize_score(raw: float) -> float:
    """Diminishing-returns squash into [0, 0.99]."""
    if raw <= 0:
        return 0.0
    return min(CONFIDENCE_CEILING, raw / (raw + NORMALIZATION_DENOMINATOR))


def raw_scores(signals: DetectionSignals) -> tuple[float, float]:
    """Accumulate (raw_catalogue, raw_menu) from every signal category."""
    catalogue = 0.0
    menu = 0.0

    for sd in signals.structured_data:
        boost = _STRUCTURED_BOOST if sd.count > _STRUCTURED_BOOST_COUNT else 1.0
        if sd.type in _CATALOGUE_STRUCTURED_TYPES:
            catalogue += sd.confidence * boost
        if sd.type in _MENU_STRUCTURED_TYPES:
            menu += sd.confidence * boost

    for ps in signals.platform:
        target, weight = _PLATFORM_WEIGHTS.get(ps.type, ("", 0.0))
        if target == "catalogue":
            catalogue += ps.confidence * weight
        elif target == "menu":
            menu += ps.confidence * weight

    for us in signals.url_patterns:
        if us.type == "catalogue":
            catalogue += us.confidence * _URL_PATTERN_WEIGHT
        elif us.type == "menu":
            menu += us.confidence * _URL_PATTERN_WEIGHT

    for ds in signals.dom_heuristics:
        if ds.type == "product_card":
            catalogue += ds.confidence * _DOM_CARD_WEIGHT
        elif ds.type == "menu_item":
            menu += ds.confidence * _DOM_CARD_WEIGHT
        elif ds.type == "price_grid":
            catalogue += _PRICE_GRID_BOOST
            menu += _PRICE_GRID_BOOST

    return catalogue, menu


def decide_primary_type(score_catalogue: float, score_menu: float, raw_catalogue: float, raw_menu: float) -> str:
    """Ordered decision: hybrid → catalogue dominance → menu dominance → larger raw → none."""
    if score_catalogue > HYBRID_THRESHOLD and score_menu > HYBRID_THRESHOLD:
        return "hybrid"
    if score_catalogue > TYPE_THRESHOLD and raw_catalogue > raw_menu * DOMINANCE_RATIO:
        return "catalogue"
    if score_menu > TYPE_THRESHOLD and raw_menu > raw_catalogue * DOMINANCE_RATIO:
        return "menu"
    if score_catalogue > TYPE_THRESHOLD or score_menu > TYPE_THRESHOLD:
        return "catalogue" if raw_catalogue > raw_menu else "menu"
    return "none"


def calculate_scores(signals: DetectionSignals) -> DetectionScores:
    """Fuse all signals into a DetectionScores classification."""
    raw_catalogue, raw_menu = raw_scores(signals)
    score_catalogue = normalize_score(raw_catalogue)
    score_menu = normalize_score(raw_menu)

    return DetectionScores(
        score_catalogue=score_catalogue,
        score_menu=score_menu,
        confidence=max(score_catalogue, score_menu),
        primary_type=decide_primary_type(score_catalogue, score_menu, raw_catalogue, raw_menu),
        signals=signals,
        raw_catalogue=raw_catalogue,
        raw_menu=raw_menu,
    )
