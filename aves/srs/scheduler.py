"""
Scheduler - SM-2 Review Logic

Pure review-state updates (no database calls).

Main workflow:
1. Load or initialize the term's state (caller's responsibility, or
   record_review for an in-memory table)
2. Validate the quality rating
3. Apply the SM-2 transition and the mastery heuristic
4. Return the updated state + event data dict

Database I/O is handled by the database module.
"""

from __future__ import annotations
import logging
from datetime import datetime, timedelta, timezone
from typing import Iterable, Optional, Tuple

from aves.errors import InvalidQualityError
from aves.srs import sm2
from aves.srs.constants import MAX_QUALITY, MIN_QUALITY
from aves.srs.review_state import TermReviewState, initialize_term_state

logger = logging.getLogger(__name__)


def validate_quality(quality) -> int:
    """
    Return quality as an int, rejecting anything outside 0-5.

    Raises:
        InvalidQualityError: For out-of-range, boolean or non-integer values
    """
    if isinstance(quality, bool) or not isinstance(quality, int):
        raise InvalidQualityError(quality)
    if not MIN_QUALITY <= quality <= MAX_QUALITY:
        raise InvalidQualityError(quality)
    return int(quality)


def process_review(
    state: TermReviewState,
    quality: int,
    timestamp: Optional[datetime] = None,
) -> Tuple[TermReviewState, dict]:
    """
    Process a review and return the updated state + event data.

    The state is updated in place. No database calls.

    Args:
        state: TermReviewState to update (may be fresh)
        quality: Recall quality 0-5 (SRSQuality or int)
        timestamp: Review timestamp (defaults to now)

    Returns:
        Tuple of (updated_state, event_data_dict)
        event_data_dict is ready to pass to database.log_review_events()

    Raises:
        InvalidQualityError: If quality is not an integer in 0-5
    """
    quality = validate_quality(quality)
    if timestamp is None:
        timestamp = datetime.now(timezone.utc)

    # Save state before update (for logging)
    repetitions_before = state.repetitions
    ease_before = state.ease_factor
    interval_before = state.interval_days
    mastery_before = state.mastery_score

    repetitions, ease, interval = sm2.apply_sm2_update(
        state.repetitions, state.ease_factor, state.interval_days, quality
    )
    state.repetitions = repetitions
    state.ease_factor = ease
    state.interval_days = interval
    state.last_reviewed_at = timestamp
    state.next_review_at = timestamp + timedelta(days=interval)
    state.mastery_score = sm2.update_mastery(state.mastery_score, quality)
    if state.first_seen_at is None:
        state.first_seen_at = timestamp

    if sm2.is_lapse(quality):
        state.times_incorrect += 1
        state.current_streak = 0
    else:
        state.times_correct += 1
        state.current_streak += 1
        state.longest_streak = max(state.longest_streak, state.current_streak)

    event_data = {
        "user_id": state.user_id,
        "annotation_id": state.annotation_id,
        "timestamp": timestamp,
        "quality": quality,
        "exercise_type": None,  # Set by caller if known
        "latency_ms": None,  # Set by caller if known
        "repetitions_before": repetitions_before,
        "ease_before": ease_before,
        "interval_before": interval_before,
        "mastery_before": mastery_before,
        "repetitions_after": state.repetitions,
        "ease_after": state.ease_factor,
        "interval_after": state.interval_days,
        "mastery_after": state.mastery_score,
    }

    logger.info(
        "Reviewed %s for %s: q=%d interval %d->%d ease %.2f->%.2f mastery %d->%d",
        state.annotation_id, state.user_id, quality,
        interval_before, state.interval_days, ease_before, state.ease_factor,
        mastery_before, state.mastery_score,
    )
    return state, event_data


def record_review(
    states: dict[str, TermReviewState],
    user_id: str,
    annotation_id: str,
    quality: int,
    timestamp: Optional[datetime] = None,
) -> Tuple[TermReviewState, dict]:
    """
    Review a term in an in-memory state table keyed by annotation id,
    initializing the term first if the learner has never seen it.
    """
    quality = validate_quality(quality)
    if timestamp is None:
        timestamp = datetime.now(timezone.utc)

    state = states.get(annotation_id)
    if state is None:
        state = initialize_term_state(user_id, annotation_id, timestamp)
        states[annotation_id] = state
    return process_review(state, quality, timestamp)


def get_due_terms(states: Iterable[TermReviewState], as_of: Optional[datetime] = None) -> list[TermReviewState]:
    """
    Terms whose next review is at or before `as_of`.

    Ordered most overdue first; ties go to the lowest mastery score.
    """
    if as_of is None:
        as_of = datetime.now(timezone.utc)

    due = [s for s in states if s.is_due(as_of)]
    return sorted(due, key=lambda s: (-s.overdue_by(as_of).total_seconds(), s.mastery_score))
