# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Menu Map: catalogue / food-menu detection and item extraction for live web pages.

Classifies a rendered page as a product catalogue, a food menu, a hybrid of
both, or neither, and extracts flat item records from it:
- signals: structured data, platform fingerprints, URL patterns, DOM heuristics
- scores: fused catalogue/menu confidences + primary type
- items: products or menu entries recovered via a fallback cascade
"""

from __future__ import annotations

from dataclasses import dataclass, field

# Type vocabularies (kept as plain strings on the records)
STRUCTURED_TYPES: tuple[str, ...] = (
    "Product",
    "Offer",
    "ItemList",
    "Restaurant",
    "FoodEstablishment",
    "Menu",
    "MenuItem",
    "Organization",
    "LocalBusiness",
)
PRIMARY_TYPES: tuple[str, ...] = ("catalogue", "menu", "hybrid", "none")
PRIORITIES: tuple[str, ...] = ("catalogue_first", "menu_first", "parallel")
AVAILABILITIES: tuple[str, ...] = ("available", "limited", "unavailable")

DEFAULT_CURRENCY = "GBP"


# ---------------------------------------------------------------------------
# Signals
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class StructuredDataSignal:
    """One schema.org type found across the page's JSON-LD blocks."""

    type: str  # one of STRUCTURED_TYPES
    count: int
    confidence: float
    source: str = "json-ld"


@dataclass(frozen=True, slots=True)
class PlatformSignal:
    """A known e-commerce / ordering / delivery platform fingerprint hit."""

    platform: str
    type: str  # ecommerce, food_ordering, delivery
    confidence: float
    indicators: tuple[str, ...] = ()


@dataclass(frozen=True, slots=True)
class UrlPatternSignal:
    """A catalogue or menu path pattern seen in the page URL or its links."""

    pattern: str
    type: str  # catalogue, menu
    confidence: float
    url: str


@dataclass(frozen=True, slots=True)
class DomHeuristicSignal:
    """Aggregated DOM evidence (product cards, menu sections, price density)."""

    type: str  # product_card, menu_item, price_grid, category_nav
    count: int
    confidence: float
    indicators: tuple[str, ...] = ()


@dataclass(frozen=True, slots=True)
class DetectionSignals:
    """All signals collected during a single page visit."""

    structured_data: tuple[StructuredDataSignal, ...] = ()
    platform: tuple[PlatformSignal, ...] = ()
    url_patterns: tuple[UrlPatternSignal, ...] = ()
    dom_heuristics: tuple[DomHeuristicSignal, ...] = ()

    @property
    def is_empty(self) -> bool:
        return not (self.structured_data or self.platform or self.url_patterns or self.dom_heuristics)


@dataclass(frozen=True, slots=True)
class DetectionScores:
    """Classification result: normalized scores + primary type."""

    score_catalogue: float  # 0.0–0.99
    score_menu: float  # 0.0–0.99
    confidence: float  # max(score_catalogue, score_menu)
    primary_type: str  # catalogue, menu, hybrid, none
    signals: DetectionSignals
    raw_catalogue: float = 0.0
    raw_menu: float = 0.0


@dataclass(frozen=True, slots=True)
class ExtractionPlan:
    """What to extract, in which order, and why."""

    type: str
    priority: str  # catalogue_first, menu_first, parallel
    confidence: float
    rationale: str
    estimated_items: int


# ---------------------------------------------------------------------------
# Extracted items
# ---------------------------------------------------------------------------


@dataclass
class ExtractedProduct:
    """A catalogue product recovered from structured data."""

    title: str
    description: str | None = None
    price: str | None = None
    currency: str = DEFAULT_CURRENCY
    category: str | None = None
    image_url: str | None = None
    availability: str = "available"
    variants: list[str] = field(default_factory=list)
    source_url: str | None = None
    tags: list[dict[str, str]] = field(default_factory=list)  # [{"key": ..., "value": ...}]


@dataclass
class ExtractedMenuItem:
    """A single-page menu entry recovered from structured data."""

    name: str
    description: str | None = None
    price: str | None = None
    currency: str = DEFAULT_CURRENCY
    section: str = "Menu"
    dietary_tags: list[str] = field(default_factory=list)
    options: list[str] = field(default_factory=list)
    source_url: str | None = None


@dataclass
class MultiPageMenuItem:
    """A menu entry recovered by the multi-page crawler's cascade."""

    name: str
    description: str | None = None
    price: str | None = None
    currency: str = DEFAULT_CURRENCY
    category: str = "Menu"
    image_url: str | None = None
    source_url: str = ""


@dataclass(frozen=True, slots=True)
class QualityReport:
    """Heuristic quality verdict for a crawl's output."""

    score: int  # 0–100
    passed: bool
    item_count: int
    priced_ratio: float
    imaged_ratio: float
    issues: tuple[str, ...] = ()
