# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Extraction planner: classification → actionable ExtractionPlan (pure, no I/O)."""

from __future__ import annotations

from . import DetectionScores, ExtractionPlan

MIN_ESTIMATED_ITEMS = 10
NO_SIGNALS_RATIONALE = "No strong signals detected"

_ITEM_STRUCTURED_TYPES = frozenset({"Product", "MenuItem"})
_ITEM_DOM_TYPES = frozenset({"product_card", "menu_item"})


def estimate_items(scores: DetectionScores) -> int:
    """Structured Product/MenuItem totals when present, else the largest DOM card count; floor 10."""
    signals = scores.signals
    structured = sum(s.count for s in signals.structured_data if s.type in _ITEM_STRUCTURED_TYPES)
    if structured > 0:
        estimate = structured
    else:
        estimate = max((s.count for s in signals.dom_heuristics if s.type in _ITEM_DOM_TYPES), default=0)
    return max(MIN_ESTIMATED_ITEMS, estimate)


def build_rationale(scores: DetectionScores) -> str:
    signals = scores.signals
    parts: list[str] = []
    if signals.structured_data:
        parts.append("Structured data: " + ", ".join(f"{s.type}({s.count})" for s in signals.structured_data))
    if signals.platform:
        parts.append("Platforms: " + ", ".join(s.platform for s in signals.platform))
    if signals.url_patterns:
        parts.append("URL patterns: " + ", ".join(s.pattern for s in signals.url_patterns))
    return "; ".join(parts) or NO_SIGNALS_RATIONALE


def derive_extraction_plan(scores: DetectionScores) -> ExtractionPlan:
    if scores.primary_type == "hybrid":
        priority = "catalogue_first" if scores.score_catalogue >= scores.score_menu else "menu_first"
    else:
        priority = "parallel"

    return ExtractionPlan(
        type=scores.primary_type,
        priority=priority,
        confidence=scores.confidence,
        rationale=build_rationale(scores),
        estimated_items=estimate_items(scores),
    )
