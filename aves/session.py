"""
Learner session lifecycle.

One LearnerSession per learner: it owns the type selector, the generator,
the term-state table, the issued-exercise cache and the result log.

Not safe for concurrent use; callers serialize requests for the same learner.
"""

from __future__ import annotations

import logging
import random
from datetime import datetime, timezone
from typing import Callable, Iterable, Optional, Union

from sqlalchemy.orm import Session

from aves.analytics import ProgressStats, build_progress_snapshot
from aves.annotation_pool import AnnotationPool
from aves.errors import NoExerciseAvailableError, UnknownExerciseError
from aves.exercises import constants
from aves.exercises.catalog import DEFAULT_CATALOG, ExerciseCatalog
from aves.exercises.generator import ExerciseGenerator
from aves.exercises.selector import ExerciseTypeSelector
from aves.exercises.validator import grade
from aves.schemas import Exercise, ExerciseResult, ExerciseSubmission, ExerciseType, parse_submission
from aves.settings import get_default_user_id
from aves.srs import database
from aves.srs.quality import quality_from_result
from aves.srs.review_state import TermReviewState, mark_term_discovered
from aves.srs.scheduler import get_due_terms, record_review

logger = logging.getLogger(__name__)

DEFAULT_LEVEL_WINDOW = 10


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class LearnerSession:
    """
    Facade over generation, grading and scheduling for one learner.

    Every `level_window` results, the window's accuracy is fed to the selector
    to move the proficiency level.
    """

    def __init__(
        self,
        pool: AnnotationPool,
        user_id: Optional[str] = None,
        rng: Optional[random.Random] = None,
        catalog: ExerciseCatalog = DEFAULT_CATALOG,
        level: int = constants.MIN_LEVEL,
        level_window: int = DEFAULT_LEVEL_WINDOW,
        term_states: Optional[dict[str, TermReviewState]] = None,
        clock: Callable[[], datetime] = _utcnow,
    ):
        if level_window < 1:
            raise ValueError("level_window must be at least 1")

        self.user_id = user_id or get_default_user_id()
        self.rng = rng or random.Random()
        self.clock = clock
        self.selector = ExerciseTypeSelector(rng=self.rng, catalog=catalog, level=level)
        self.generator = ExerciseGenerator(pool, self.selector, self.rng, catalog, clock)
        self.level_window = level_window
        self.term_states: dict[str, TermReviewState] = dict(term_states or {})
        self.results: list[ExerciseResult] = []
        self.review_events: list[dict] = []
        self._issued: dict[str, Exercise] = {}
        self._window: list[bool] = []

    @classmethod
    def from_history(
        cls,
        pool: AnnotationPool,
        results: Iterable[ExerciseResult] = (),
        term_states: Optional[dict[str, TermReviewState]] = None,
        **kwargs,
    ) -> "LearnerSession":
        """
        Rebuild a session from persisted results and term states.

        Results are replayed in order so the proficiency level ends where the
        learner left it; the partial trailing window carries over.
        """
        session = cls(pool, term_states=term_states, **kwargs)
        for result in results:
            session.results.append(result)
            session._track_level(result.correct)
        logger.info(
            "Restored session for %s: %d results, %d terms, level %d",
            session.user_id, len(session.results), len(session.term_states), session.level,
        )
        return session

    @property
    def level(self) -> int:
        return self.selector.level

    # ---- Generation ----

    def next_exercise(self, exercise_type: Optional[Union[ExerciseType, str]] = None) -> Exercise:
        """
        Generate the next exercise, adaptively or of a requested type.

        Raises:
            NoExerciseAvailableError: If nothing could be synthesized
        """
        if exercise_type is None:
            exercise = self.generator.next_exercise()
        else:
            exercise = self.generator.generate(exercise_type)
            if exercise is None:
                raise NoExerciseAvailableError(
                    f"Annotation pool cannot support {getattr(exercise_type, 'value', exercise_type)}"
                )

        self._issued[exercise.id] = exercise
        if exercise.annotation_id:
            mark_term_discovered(self.term_states, self.user_id, exercise.annotation_id, exercise.created_at)
        return exercise

    # ---- Grading ----

    def submit_answer(
        self,
        submission: Union[ExerciseSubmission, dict],
        elapsed_ms: Optional[int] = None,
        attempts: int = 1,
        hints_used: int = 0,
        now: Optional[datetime] = None,
    ) -> ExerciseResult:
        """
        Grade a submission, update the target term's review state and
        record the result.

        Args:
            submission: ExerciseSubmission or its raw payload
            elapsed_ms: Time taken to answer
            attempts: Attempt counter
            hints_used: Hints revealed before answering
            now: Review timestamp (defaults to the session clock)

        Returns:
            The graded ExerciseResult

        Raises:
            InvalidSubmissionError: If the payload or answer shape is malformed
            UnknownExerciseError: If the exercise was never issued or already graded
        """
        if isinstance(submission, dict):
            submission = parse_submission(submission)

        exercise = self._issued.get(submission.exercise_id)
        if exercise is None:
            raise UnknownExerciseError(submission.exercise_id)

        result = grade(
            exercise,
            submission,
            elapsed_ms=elapsed_ms,
            attempts=attempts,
            hints_used=hints_used,
            rng=self.rng,
            now=now or self.clock(),
            catalog=self.generator.catalog,
        )
        del self._issued[exercise.id]

        if exercise.annotation_id:
            _, event_data = record_review(
                self.term_states,
                self.user_id,
                exercise.annotation_id,
                quality_from_result(result),
                result.completed_at,
            )
            event_data["exercise_type"] = result.exercise_type
            event_data["latency_ms"] = elapsed_ms
            self.review_events.append(event_data)

        self.results.append(result)
        self._track_level(result.correct)
        return result

    def _track_level(self, correct: bool):
        self._window.append(correct)
        if len(self._window) >= self.level_window:
            self.selector.update_level(sum(self._window), len(self._window))
            self._window.clear()

    # ---- Progress ----

    def due_terms(self, as_of: Optional[datetime] = None) -> list[TermReviewState]:
        return get_due_terms(self.term_states.values(), as_of or self.clock())

    def progress(self, as_of: Optional[datetime] = None) -> ProgressStats:
        return build_progress_snapshot(self.results, self.term_states.values(), as_of or self.clock())

    # ---- Persistence ----

    def flush(self, db_session: Session):
        """
        Save all term states and pending review events in the given session.
        """
        database.save_term_states(db_session, list(self.term_states.values()))
        database.log_review_events(db_session, self.review_events)
        logger.info("Flushed %d review events for %s", len(self.review_events), self.user_id)
        self.review_events = []
