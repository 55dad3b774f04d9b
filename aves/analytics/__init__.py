"""
Progress analytics exports.
"""

from aves.analytics.constants import REGIME_LABELS
from aves.analytics.metrics import daily_accuracy, mastery_bands
from aves.analytics.service import build_progress_snapshot
from aves.analytics.types import MasteryBands, ProgressStats

__all__ = [
    "REGIME_LABELS",
    "daily_accuracy",
    "mastery_bands",
    "build_progress_snapshot",
    "MasteryBands",
    "ProgressStats",
]
