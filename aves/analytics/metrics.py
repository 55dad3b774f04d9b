"""
Metric computations for progress statistics.
"""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import Iterable, Sequence

import pandas as pd

from aves.analytics.constants import REGIMES
from aves.analytics.types import MasteryBands
from aves.schemas import ExerciseResult
from aves.srs.constants import MASTERED_THRESHOLD
from aves.srs.review_state import TermReviewState, classify_regime


OVERDUE_AFTER = timedelta(days=1)


def compute_totals(results: Sequence[ExerciseResult]) -> tuple[int, int, float]:
    """
    Total attempts, correct count and accuracy (0 when there are no results).
    """
    total = len(results)
    correct = sum(1 for r in results if r.correct)
    return total, correct, (correct / total if total else 0.0)


def compute_streaks(results: Sequence[ExerciseResult]) -> tuple[int, int]:
    """
    Current (trailing) and longest runs of correct results, in log order.
    """
    current = longest = 0
    for result in results:
        current = current + 1 if result.correct else 0
        longest = max(longest, current)
    return current, longest


def compute_regime_histogram(states: Iterable[TermReviewState]) -> dict[str, int]:
    histogram = {regime: 0 for regime in REGIMES}
    for state in states:
        histogram[classify_regime(state)] += 1
    return histogram


def mastery_bands(states: Iterable[TermReviewState], as_of: datetime) -> MasteryBands:
    """
    Count mastered (>= 80), learning (1-79) and unstarted (0) terms, plus
    how many are due and how many are more than a day overdue.
    """
    states = list(states)
    scores = [s.mastery_score for s in states]
    return MasteryBands(
        mastered=sum(1 for m in scores if m >= MASTERED_THRESHOLD),
        learning=sum(1 for m in scores if 0 < m < MASTERED_THRESHOLD),
        unstarted=sum(1 for m in scores if m == 0),
        average_mastery=(sum(scores) / len(scores)) if scores else 0.0,
        due=sum(1 for s in states if s.is_due(as_of)),
        overdue=sum(1 for s in states if s.is_due(as_of) and s.overdue_by(as_of) > OVERDUE_AFTER),
    )


def results_to_frame(results: Sequence[ExerciseResult]) -> pd.DataFrame:
    """
    Result log as a DataFrame with UTC timestamps and a day_utc column.
    """
    if not results:
        return pd.DataFrame(columns=["completed_at", "day_utc", "exercise_type", "correct", "score"])

    df = pd.DataFrame(
        {
            "completed_at": [r.completed_at for r in results],
            "exercise_type": [r.exercise_type for r in results],
            "correct": [r.correct for r in results],
            "score": [r.score for r in results],
        }
    )
    df["completed_at"] = pd.to_datetime(df["completed_at"], utc=True)
    df["day_utc"] = df["completed_at"].dt.floor("D")
    return df


def daily_accuracy(results: Sequence[ExerciseResult]) -> pd.Series:
    """
    Accuracy per UTC day over a dense day index; days without results are NaN.
    """
    df = results_to_frame(results)
    if df.empty:
        return pd.Series(dtype="float64")

    day_index = pd.date_range(start=df["day_utc"].min(), end=df["day_utc"].max(), freq="D")
    daily = df.groupby("day_utc")["correct"].mean().astype("float64")
    return daily.reindex(day_index)
