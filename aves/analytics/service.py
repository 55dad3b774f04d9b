"""
Service layer to assemble progress snapshots.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Iterable, Optional, Sequence

from aves.analytics.metrics import (
    compute_regime_histogram,
    compute_streaks,
    compute_totals,
    daily_accuracy,
    mastery_bands,
)
from aves.analytics.types import ProgressStats
from aves.schemas import ExerciseResult
from aves.srs.review_state import TermReviewState


def build_progress_snapshot(
    results: Sequence[ExerciseResult],
    states: Iterable[TermReviewState],
    as_of: Optional[datetime] = None,
) -> ProgressStats:
    """
    Fold a result log and a term-state table into one ProgressStats.
    """
    as_of = as_of or datetime.now(timezone.utc)
    states = list(states)
    total, correct, accuracy = compute_totals(results)
    current_streak, longest_streak = compute_streaks(results)

    return ProgressStats(
        total_attempts=total,
        correct_count=correct,
        accuracy=accuracy,
        current_streak=current_streak,
        longest_streak=longest_streak,
        regime_histogram=compute_regime_histogram(states),
        mastery=mastery_bands(states, as_of),
        daily_accuracy=daily_accuracy(results),
    )
