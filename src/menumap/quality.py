# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Extraction quality gate for multi-page crawl results.

Score (0-100) weights:
  40  item count relative to ``min_items`` (capped)
  30  share of items with a price
  15  share of items with an image
  15  share of items with a clean name (not a placeholder or CTA text)
"""

from __future__ import annotations

import re
from collections.abc import Sequence

from . import MultiPageMenuItem, QualityReport

PASS_SCORE = 60
DEFAULT_MIN_ITEMS = 5

_COUNT_WEIGHT = 40
_PRICE_WEIGHT = 30
_IMAGE_WEIGHT = 15
_NAME_WEIGHT = 15

_PLACEHOLDER_RE = re.compile(r"^unknown\b", re.IGNORECASE)
_CTA_RE = re.compile(r"^(add|buy|order|view|see|menu|sign|login)\b", re.IGNORECASE)


def _clean_name(name: str) -> bool:
    name = name.strip()
    return bool(name) and not _PLACEHOLDER_RE.match(name) and not _CTA_RE.match(name)


def validate_extraction_quality(
    items: Sequence[MultiPageMenuItem], min_items: int = DEFAULT_MIN_ITEMS
) -> QualityReport:
    count = len(items)
    if count == 0:
        return QualityReport(
            score=0,
            passed=False,
            item_count=0,
            priced_ratio=0.0,
            imaged_ratio=0.0,
            issues=(f"no items extracted (expected at least {min_items})",),
        )

    priced = sum(1 for i in items if i.price) / count
    imaged = sum(1 for i in items if i.image_url) / count
    clean = sum(1 for i in items if _clean_name(i.name)) / count
    coverage = min(1.0, count / min_items) if min_items > 0 else 1.0

    score = round(_COUNT_WEIGHT * coverage + _PRICE_WEIGHT * priced + _IMAGE_WEIGHT * imaged + _NAME_WEIGHT * clean)

    issues: list[str] = []
    if count < min_items:
        issues.append(f"only {count} items extracted (expected at least {min_items})")
    if priced < 1.0:
        issues.append(f"{count - round(priced * count)} items without a price")
    if imaged < 1.0:
        issues.append(f"{count - round(imaged * count)} items without an image")
    if clean < 1.0:
        issues.append(f"{count - round(clean * count)} items with placeholder or button-like names")

    return QualityReport(
        score=score,
        passed=count >= min_items and score >= PASS_SCORE,
        item_count=count,
        priced_ratio=round(priced, 3),
        imaged_ratio=round(imaged, 3),
        issues=tuple(issues),
    )
