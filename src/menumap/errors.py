# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Menu Map exception hierarchy.

All engine errors inherit from MenuMapError. Absence of matchable content is
never an error; only renderer infrastructure problems raise.
"""

from __future__ import annotations


class MenuMapError(Exception):
    """Base exception for all Menu Map errors."""


class BrowserError(MenuMapError):
    """Browser launch or interaction failure."""


class NavigationError(BrowserError):
    """Navigation timed out or failed at the network level."""

    def __init__(self, message: str, *, url: str = "", timeout_ms: int = 0) -> None:
        super().__init__(message)
        self.url = url
        self.timeout_ms = timeout_ms
