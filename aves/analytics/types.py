"""
Types for progress snapshots.
"""

from __future__ import annotations

from dataclasses import dataclass, field

import pandas as pd


@dataclass(frozen=True)
class MasteryBands:
    """
    Term counts by mastery band plus scheduling pressure.
    """
    mastered: int
    learning: int
    unstarted: int
    average_mastery: float
    due: int
    overdue: int


@dataclass(frozen=True)
class ProgressStats:
    """
    Session or lifetime statistics recomputed from the result log and term states.
    """
    total_attempts: int
    correct_count: int
    accuracy: float
    current_streak: int
    longest_streak: int
    regime_histogram: dict[str, int]
    mastery: MasteryBands
    daily_accuracy: pd.Series = field(default_factory=lambda: pd.Series(dtype="float64"))
