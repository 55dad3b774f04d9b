"""
Constants for progress statistics.
"""

from __future__ import annotations

from typing import Final

from aves.srs.constants import REGIME_LEARNING, REGIME_MATURE, REGIME_NEW


REGIMES: Final[tuple[str, ...]] = (REGIME_NEW, REGIME_LEARNING, REGIME_MATURE)

REGIME_LABELS: Final[dict[str, str]] = {
    REGIME_NEW: "New",
    REGIME_LEARNING: "Learning",
    REGIME_MATURE: "Mature",
}

BAND_MASTERED: Final[str] = "mastered"
BAND_LEARNING: Final[str] = "learning"
BAND_UNSTARTED: Final[str] = "unstarted"
