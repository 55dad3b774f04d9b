"""
Answer Validator

Grades a submission against the answer key embedded in the exercise itself.

check_answer() is the boolean contract used on untrusted input: it never
raises, and anything malformed, stale or unknown grades as False. grade()
is the richer path used by the session: it returns an ExerciseResult with
partial credit and per-type metadata, and rejects malformed answer shapes.
"""

from __future__ import annotations

import logging
import math
import random
from datetime import datetime, timezone
from typing import Any, NamedTuple, Optional, Union

from pydantic import ValidationError

from aves.errors import InvalidSubmissionError
from aves.exercises.catalog import DEFAULT_CATALOG, ExerciseCatalog
from aves.schemas import (
    AnnotationSequencingExercise,
    AudioRecognitionExercise,
    BoundingBox,
    BoundingBoxDrawingExercise,
    CategorySortingExercise,
    ComparativeAnalysisExercise,
    ContextualFillExercise,
    CulturalContextExercise,
    Exercise,
    ExerciseBase,
    ExerciseResult,
    ExerciseSubmission,
    Point,
    ResultMetadata,
    SentenceBuildingExercise,
    SpatialIdentificationExercise,
    TermMatchingExercise,
    VisualDiscriminationExercise,
    VisualIdentificationExercise,
    exercise_from_payload,
    parse_submission,
)

logger = logging.getLogger(__name__)


class Verdict(NamedTuple):
    correct: bool
    score: float
    metadata: ResultMetadata


def _expect(answer: Any, kind: Union[type, tuple], exercise: Exercise) -> None:
    # bool is an int subclass but never a valid index
    if isinstance(answer, bool) or not isinstance(answer, kind):
        raise InvalidSubmissionError(
            f"{exercise.type} expects {getattr(kind, '__name__', kind)}, got {type(answer).__name__}"
        )


def _expect_str_list(answer: Any, exercise: Exercise) -> list[str]:
    _expect(answer, list, exercise)
    if not all(isinstance(item, str) for item in answer):
        raise InvalidSubmissionError(f"{exercise.type} expects a list of strings")
    return answer


def _expect_str_mapping(answer: Any, exercise: Exercise) -> dict[str, str]:
    _expect(answer, dict, exercise)
    if not all(isinstance(k, str) and isinstance(v, str) for k, v in answer.items()):
        raise InvalidSubmissionError(f"{exercise.type} expects a mapping of strings")
    return answer


def _all_or_nothing(correct: bool) -> Verdict:
    return Verdict(correct, 1.0 if correct else 0.0, ResultMetadata())


def _positional(expected: list[str], answer: list[str]) -> Verdict:
    positions = sum(1 for got, want in zip(answer, expected) if got == want)
    return Verdict(
        answer == expected,
        positions / len(expected) if expected else 0.0,
        ResultMetadata(correct_positions=positions),
    )


def _evaluate(exercise: Exercise, answer: Any) -> Verdict:
    """
    Dispatch on the exercise variant.

    Raises:
        InvalidSubmissionError: If the answer has the wrong shape for the type
    """
    if isinstance(exercise, VisualIdentificationExercise):
        _expect(answer, str, exercise)
        return _all_or_nothing(answer == exercise.answer_key.target_part)

    if isinstance(exercise, ContextualFillExercise):
        _expect(answer, str, exercise)
        return _all_or_nothing(answer == exercise.answer_key.correct_answer)

    if isinstance(exercise, (VisualDiscriminationExercise, AudioRecognitionExercise,
                             ComparativeAnalysisExercise)):
        _expect(answer, str, exercise)
        return _all_or_nothing(answer == exercise.answer_key.correct_option_id)

    if isinstance(exercise, CulturalContextExercise):
        _expect(answer, (int, float), exercise)
        return _all_or_nothing(answer == exercise.answer_key.correct_index)

    if isinstance(exercise, TermMatchingExercise):
        pairs = _expect_str_mapping(answer, exercise)
        expected = exercise.answer_key.correct_pairs
        matched = sum(1 for pair in expected if pairs.get(pair.spanish) == pair.english)
        return Verdict(
            matched == len(expected),
            matched / len(expected) if expected else 0.0,
            ResultMetadata(matched_pairs=matched, total_pairs=len(expected)),
        )

    if isinstance(exercise, (SentenceBuildingExercise, AnnotationSequencingExercise)):
        return _positional(exercise.answer_key.correct_order, _expect_str_list(answer, exercise))

    if isinstance(exercise, CategorySortingExercise):
        placed = _expect_str_mapping(answer, exercise)
        expected = exercise.answer_key.assignments
        right = sum(1 for term_id, category in expected.items() if placed.get(term_id) == category)
        return Verdict(
            right == len(expected),
            right / len(expected) if expected else 0.0,
            ResultMetadata(categories_correct=right, total_terms=len(expected)),
        )

    if isinstance(exercise, SpatialIdentificationExercise):
        _expect(answer, Point, exercise)
        center = exercise.answer_key.target_box.center
        tolerance = exercise.answer_key.tolerance
        distance = math.hypot(answer.x - center.x, answer.y - center.y)
        within = distance <= tolerance
        return Verdict(
            within,
            math.exp(-distance / tolerance) if within else 0.0,
            ResultMetadata(click_distance=round(distance, 4)),
        )

    if isinstance(exercise, BoundingBoxDrawingExercise):
        _expect(answer, BoundingBox, exercise)
        overlap = exercise.answer_key.target_box.iou(answer)
        return Verdict(
            overlap >= exercise.answer_key.min_overlap,
            min(1.0, overlap),
            ResultMetadata(iou=round(overlap, 4)),
        )

    raise InvalidSubmissionError(f"Unsupported exercise type: {getattr(exercise, 'type', None)!r}")


def check_answer(exercise: Union[Exercise, dict], submission: Union[ExerciseSubmission, dict]) -> bool:
    """
    True only when the submission answers this exercise correctly.

    Accepts raw payload dicts as well as models; anything else (None, a JSON
    list body) is False. Unknown exercise types, mismatched exercise ids and
    malformed answers all return False.

    Answer encodings per type: an option id for the option-picking types,
    the Spanish term for contextual fill, the body-part key for visual
    identification, a list of words or annotation ids for ordering types,
    an option index for cultural context, a Point or BoundingBox for spatial
    types, and a mapping for term matching (Spanish term -> English term,
    not a list of pair objects)
    and category sorting (annotation id -> category).
    """
    try:
        if isinstance(exercise, dict):
            exercise = exercise_from_payload(exercise)
        if isinstance(submission, dict):
            submission = parse_submission(submission)
        if not isinstance(exercise, ExerciseBase) or not isinstance(submission, ExerciseSubmission):
            logger.debug("Rejected submission of unsupported kind: %s", type(submission).__name__)
            return False
        if submission.exercise_id != exercise.id:
            return False
        return _evaluate(exercise, submission.answer).correct
    except (ValidationError, InvalidSubmissionError) as exc:
        logger.debug("Rejected submission: %s", exc)
        return False


def _correct_answer_text(exercise: Exercise) -> str:
    if isinstance(exercise, VisualIdentificationExercise):
        return exercise.target_term
    if isinstance(exercise, ContextualFillExercise):
        return exercise.answer_key.correct_answer
    if isinstance(exercise, (VisualDiscriminationExercise, AudioRecognitionExercise,
                             ComparativeAnalysisExercise)):
        wanted = exercise.answer_key.correct_option_id
        return next((o.text for o in exercise.options if o.id == wanted), wanted)
    if isinstance(exercise, CulturalContextExercise):
        return exercise.options[exercise.answer_key.correct_index]
    if isinstance(exercise, SentenceBuildingExercise):
        return " ".join(exercise.answer_key.correct_order)
    if isinstance(exercise, SpatialIdentificationExercise):
        return exercise.target_term
    if isinstance(exercise, BoundingBoxDrawingExercise):
        return exercise.target_term
    return ""


def _feedback(exercise: Exercise, verdict: Verdict, rng: random.Random, catalog: ExerciseCatalog) -> str:
    if verdict.correct:
        return rng.choice(catalog.positive_feedback)

    meta = verdict.metadata
    if meta.matched_pairs is not None:
        return f"¡Casi! {meta.matched_pairs} de {meta.total_pairs} pares correctos. Keep practicing!"
    if meta.categories_correct is not None:
        return f"{meta.categories_correct} de {meta.total_terms} términos en su categoría. Try again!"
    if meta.correct_positions is not None and isinstance(exercise, AnnotationSequencingExercise):
        return "Revisa el orden de arriba a abajo. Check the top-to-bottom order."
    if meta.iou is not None:
        return f"El recuadro cubre {meta.iou:.0%} de {exercise.target_term}. Try to fit it closer."

    answer = _correct_answer_text(exercise)
    if answer:
        return f"No exactamente. The correct answer is: {answer}"
    return "No exactamente. Try again!"


def grade(
    exercise: Exercise,
    submission: ExerciseSubmission,
    elapsed_ms: Optional[int] = None,
    attempts: int = 1,
    hints_used: int = 0,
    rng: Optional[random.Random] = None,
    now: Optional[datetime] = None,
    catalog: ExerciseCatalog = DEFAULT_CATALOG,
) -> ExerciseResult:
    """
    Score a submission with partial credit.

    Args:
        exercise: The exercise as issued
        submission: Learner answer for that exercise
        elapsed_ms: Time taken to answer, if measured
        attempts: Attempt counter (1 on first try)
        hints_used: Hints revealed before answering
        rng: Random source for feedback phrasing
        now: Completion timestamp (defaults to current UTC time)
        catalog: Source of the feedback phrases

    Returns:
        ExerciseResult whose `correct` always agrees with check_answer()

    Raises:
        InvalidSubmissionError: If the submission targets another exercise or
            the answer shape doesn't fit the exercise type
    """
    if submission.exercise_id != exercise.id:
        raise InvalidSubmissionError(
            f"Submission for {submission.exercise_id!r} graded against {exercise.id!r}"
        )

    verdict = _evaluate(exercise, submission.answer)
    return ExerciseResult(
        exercise_id=exercise.id,
        exercise_type=exercise.type,
        annotation_id=exercise.annotation_id,
        correct=verdict.correct,
        score=max(0.0, min(1.0, verdict.score)),
        elapsed_ms=elapsed_ms,
        attempts=attempts,
        hints_used=hints_used,
        feedback=_feedback(exercise, verdict, rng or random.Random(), catalog),
        metadata=verdict.metadata,
        completed_at=now or datetime.now(timezone.utc),
    )
