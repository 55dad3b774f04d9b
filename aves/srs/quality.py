"""
Map graded exercise results onto SM-2 quality ratings.
"""

from __future__ import annotations

from aves.schemas import ExerciseResult, ExerciseType
from aves.srs.constants import (
    FAST_RESPONSE_MS,
    GOOD_SCORE,
    HIGH_MATCH_RATE,
    MEDIUM_MATCH_RATE,
    NORMAL_RESPONSE_MS,
    SRSQuality,
)

# Exercises that grade several terms at once; quality is capped by match rate
MULTI_TERM_TYPES = frozenset({
    ExerciseType.TERM_MATCHING.value,
    ExerciseType.CATEGORY_SORTING.value,
})


def _base_quality(result: ExerciseResult) -> SRSQuality:
    elapsed = result.elapsed_ms

    if not result.correct:
        if result.score > 0:
            return SRSQuality.NEAR_MISS
        if elapsed is not None and elapsed < FAST_RESPONSE_MS:
            return SRSQuality.INCORRECT
        return SRSQuality.BLACKOUT

    if result.hints_used > 0:
        return SRSQuality.HARD
    if result.score < 1:
        return SRSQuality.GOOD if result.score >= GOOD_SCORE else SRSQuality.HARD
    if elapsed is None:
        return SRSQuality.GOOD
    if elapsed < FAST_RESPONSE_MS:
        return SRSQuality.PERFECT
    if elapsed < NORMAL_RESPONSE_MS:
        return SRSQuality.GOOD
    return SRSQuality.HARD


def _match_rate_cap(result: ExerciseResult) -> SRSQuality:
    meta = result.metadata
    if meta.total_pairs:
        rate = (meta.matched_pairs or 0) / meta.total_pairs
    elif meta.total_terms:
        rate = (meta.categories_correct or 0) / meta.total_terms
    else:
        return SRSQuality.PERFECT

    if rate >= 1:
        return SRSQuality.PERFECT
    if rate >= HIGH_MATCH_RATE:
        return SRSQuality.GOOD
    if rate >= MEDIUM_MATCH_RATE:
        return SRSQuality.HARD
    return SRSQuality.NEAR_MISS


def quality_from_result(result: ExerciseResult) -> SRSQuality:
    """
    Rate a graded result 0-5 for the scheduler.

    Wrong answers rate 0-2 (2 when partially right, 1 when answered fast),
    correct answers 3-5 by speed, hints and partial score.
    """
    quality = _base_quality(result)
    if result.exercise_type in MULTI_TERM_TYPES:
        quality = min(quality, _match_rate_cap(result))
    return SRSQuality(quality)
