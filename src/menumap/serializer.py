# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""JSON serialization for detection and extraction results.

Keys are camelCase to match the wire format consumed by the web client
(``scoreCatalogue``, ``primaryType``, ``imageUrl``, ...).
"""

from __future__ import annotations

import json
from collections.abc import Sequence
from typing import Any

from . import (
    DetectionScores,
    DetectionSignals,
    ExtractedMenuItem,
    ExtractedProduct,
    ExtractionPlan,
    MultiPageMenuItem,
    QualityReport,
)


def signals_to_dict(signals: DetectionSignals) -> dict[str, Any]:
    return {
        "structuredData": [
            {"type": s.type, "count": s.count, "confidence": s.confidence, "source": s.source}
            for s in signals.structured_data
        ],
        "platform": [
            {"platform": s.platform, "type": s.type, "confidence": s.confidence, "indicators": list(s.indicators)}
            for s in signals.platform
        ],
        "urlPatterns": [
            {"pattern": s.pattern, "type": s.type, "confidence": s.confidence, "url": s.url}
            for s in signals.url_patterns
        ],
        "domHeuristics": [
            {"type": s.type, "count": s.count, "confidence": s.confidence, "indicators": list(s.indicators)}
            for s in signals.dom_heuristics
        ],
    }


def scores_to_dict(scores: DetectionScores) -> dict[str, Any]:
    return {
        "scoreCatalogue": round(scores.score_catalogue, 4),
        "scoreMenu": round(scores.score_menu, 4),
        "confidence": round(scores.confidence, 4),
        "primaryType": scores.primary_type,
        "signals": signals_to_dict(scores.signals),
    }


def plan_to_dict(plan: ExtractionPlan) -> dict[str, Any]:
    return {
        "type": plan.type,
        "priority": plan.priority,
        "confidence": round(plan.confidence, 4),
        "rationale": plan.rationale,
        "estimatedItems": plan.estimated_items,
    }


def product_to_dict(p: ExtractedProduct) -> dict[str, Any]:
    return {
        "title": p.title,
        "description": p.description,
        "price": p.price,
        "currency": p.currency,
        "category": p.category,
        "imageUrl": p.image_url,
        "availability": p.availability,
        "variants": list(p.variants),
        "sourceUrl": p.source_url,
        **({"tags": [dict(t) for t in p.tags]} if p.tags else {}),
    }


def menu_item_to_dict(m: ExtractedMenuItem) -> dict[str, Any]:
    return {
        "name": m.name,
        "description": m.description,
        "price": m.price,
        "currency": m.currency,
        "section": m.section,
        "dietaryTags": list(m.dietary_tags),
        "options": list(m.options),
        "sourceUrl": m.source_url,
    }


def multi_page_item_to_dict(m: MultiPageMenuItem) -> dict[str, Any]:
    return {
        "name": m.name,
        "description": m.description,
        "price": m.price,
        "currency": m.currency,
        "category": m.category,
        "imageUrl": m.image_url,
        "sourceUrl": m.source_url,
    }


def quality_to_dict(q: QualityReport) -> dict[str, Any]:
    return {
        "score": q.score,
        "passed": q.passed,
        "itemCount": q.item_count,
        "pricedRatio": q.priced_ratio,
        "imagedRatio": q.imaged_ratio,
        "issues": list(q.issues),
    }


_CONVERTERS: tuple[tuple[type, Any], ...] = (
    (DetectionScores, scores_to_dict),
    (DetectionSignals, signals_to_dict),
    (ExtractionPlan, plan_to_dict),
    (ExtractedProduct, product_to_dict),
    (ExtractedMenuItem, menu_item_to_dict),
    (MultiPageMenuItem, multi_page_item_to_dict),
    (QualityReport, quality_to_dict),
)


def to_dict(obj: Any) -> Any:
    """Convert a result record (or a sequence / dict of them) to plain JSON data."""
    for cls, convert in _CONVERTERS:
        if isinstance(obj, cls):
            return convert(obj)
    if isinstance(obj, dict):
        return {k: to_dict(v) for k, v in obj.items()}
    if isinstance(obj, Sequence) and not isinstance(obj, str):
        return [to_dict(o) for o in obj]
    return obj


def to_json(obj: Any, indent: int = 2) -> str:
    """Serialize a result record to a JSON string."""
    return json.dumps(to_dict(obj), ensure_ascii=False, indent=indent)
