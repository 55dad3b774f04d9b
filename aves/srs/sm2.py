"""
SM-2 Updates

Pure functions for the ease, interval and mastery updates applied on each
review. No state is mutated here; the scheduler composes these.

Key principles:
- Ease moves on every review, lapses included, and never drops below 1.3
- A lapse restarts the interval ladder at 1 day
- Mastery is a separate bounded accumulator, not derived from the interval
"""

from __future__ import annotations
import math

from aves.srs.constants import (
    FIRST_INTERVAL_DAYS,
    LAPSE_INTERVAL_DAYS,
    MASTERY_GAIN,
    MASTERY_LOSS,
    MAX_MASTERY,
    MAX_QUALITY,
    MIN_EASE,
    MIN_MASTERY,
    PASSING_QUALITY,
    SECOND_INTERVAL_DAYS,
)


def is_lapse(quality: int) -> bool:
    return quality < PASSING_QUALITY


def update_ease(ease_factor: float, quality: int) -> float:
    """
    Update the ease factor from a 0-5 quality rating.

    Formula:
        EF' = EF + (0.1 - (5 - q) * (0.08 + (5 - q) * 0.02))

    q=5 adds 0.1, q=4 leaves ease unchanged, q=3 subtracts 0.14 and
    q=0 subtracts 0.8, always clamped at the 1.3 floor.

    Args:
        ease_factor: Current ease factor
        quality: Review quality (0-5)

    Returns:
        New ease factor (>= 1.3)
    """
    miss = MAX_QUALITY - quality
    new_ease = ease_factor + (0.1 - miss * (0.08 + miss * 0.02))
    return max(MIN_EASE, new_ease)


def round_half_up(value: float) -> int:
    """Round .5 away from zero for positive values (round() would round to even)."""
    return int(math.floor(value + 0.5))


def next_interval(repetitions: int, previous_interval: int, ease_factor: float) -> int:
    """
    Interval for a successful review.

    Args:
        repetitions: Repetition count after this review (>= 1)
        previous_interval: Interval before this review, in days
        ease_factor: Ease factor before this review's update

    Returns:
        New interval in days: 1, then 6, then previous * ease rounded
    """
    if repetitions <= 1:
        return FIRST_INTERVAL_DAYS
    if repetitions == 2:
        return SECOND_INTERVAL_DAYS
    return round_half_up(previous_interval * ease_factor)


def update_mastery(mastery_score: int, quality: int) -> int:
    """+8 per successful review, -15 per lapse, bounded to 0..100."""
    if is_lapse(quality):
        return max(MIN_MASTERY, mastery_score - MASTERY_LOSS)
    return min(MAX_MASTERY, mastery_score + MASTERY_GAIN)


def apply_sm2_update(
    repetitions: int,
    ease_factor: float,
    interval_days: int,
    quality: int,
) -> tuple[int, float, int]:
    """
    Apply one SM-2 transition.

    Args:
        repetitions: Current repetition count
        ease_factor: Current ease factor
        interval_days: Current interval in days
        quality: Review quality (0-5)

    Returns:
        Tuple of (new_repetitions, new_ease_factor, new_interval_days)
    """
    if is_lapse(quality):
        new_repetitions = 0
        new_interval = LAPSE_INTERVAL_DAYS
    else:
        new_repetitions = repetitions + 1
        new_interval = next_interval(new_repetitions, interval_days, ease_factor)

    return new_repetitions, update_ease(ease_factor, quality), new_interval
