"""
Review State - Per-term SM-2 State

Defines the review state held for each (learner, annotation) pair and the
qualitative regime derived from it.

Key fields:
- repetitions: consecutive successful reviews since the last lapse
- ease_factor: interval multiplier, never below 1.3
- interval_days: current spacing between reviews
- mastery_score: 0-100 heuristic, independent of the interval math
"""

from __future__ import annotations
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional

from aves.srs.constants import (
    INITIAL_EASE,
    MATURE_INTERVAL_DAYS,
    REGIME_LEARNING,
    REGIME_MATURE,
    REGIME_NEW,
)


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Treat naive datetimes as UTC; aware ones pass through."""
    if value is None or value.tzinfo is not None:
        return value
    return value.replace(tzinfo=timezone.utc)


@dataclass
class TermReviewState:
    """
    Review state for one term of one learner.

    Invariant after any review: next_review_at = last_reviewed_at + interval_days.
    """
    user_id: str
    annotation_id: str

    # SM-2 parameters
    repetitions: int = 0
    ease_factor: float = INITIAL_EASE
    interval_days: int = 0

    # Scheduling
    next_review_at: Optional[datetime] = None
    last_reviewed_at: Optional[datetime] = None
    first_seen_at: Optional[datetime] = None

    # Counters
    times_correct: int = 0
    times_incorrect: int = 0
    current_streak: int = 0
    longest_streak: int = 0

    # Pedagogy heuristic (0-100)
    mastery_score: int = 0

    @property
    def total_reviews(self) -> int:
        return self.times_correct + self.times_incorrect

    def is_due(self, as_of: datetime) -> bool:
        return self.next_review_at is not None and self.next_review_at <= as_utc(as_of)

    def overdue_by(self, as_of: datetime) -> timedelta:
        """How far past its review time the term is (negative if not yet due)."""
        if self.next_review_at is None:
            return timedelta(0)
        return as_utc(as_of) - self.next_review_at


def initialize_term_state(
    user_id: str,
    annotation_id: str,
    timestamp: Optional[datetime] = None,
) -> TermReviewState:
    """
    Initialize state for a term the learner has never seen.

    A fresh term is due immediately: next_review_at is its first-seen time.

    Args:
        user_id: Learner identifier
        annotation_id: Annotation the term comes from
        timestamp: First exposure time (defaults to now)

    Returns:
        New TermReviewState with repetitions=0, ease=2.5, interval=0, mastery=0
    """
    if timestamp is None:
        timestamp = datetime.now(timezone.utc)

    return TermReviewState(
        user_id=user_id,
        annotation_id=annotation_id,
        next_review_at=timestamp,
        first_seen_at=timestamp,
    )


def mark_term_discovered(
    states: dict[str, TermReviewState],
    user_id: str,
    annotation_id: str,
    timestamp: Optional[datetime] = None,
) -> TermReviewState:
    """Register first exposure to a term without reviewing it. Existing state is kept."""
    state = states.get(annotation_id)
    if state is None:
        state = initialize_term_state(user_id, annotation_id, timestamp)
        states[annotation_id] = state
    return state


def classify_regime(state: TermReviewState) -> str:
    """
    Qualitative regime: "new" before the first successful repetition,
    "mature" once the interval reaches 21 days, otherwise "learning".
    """
    if state.repetitions == 0:
        return REGIME_NEW
    if state.interval_days >= MATURE_INTERVAL_DAYS:
        return REGIME_MATURE
    return REGIME_LEARNING
