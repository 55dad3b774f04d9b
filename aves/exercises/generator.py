"""
Adaptive Exercise Generator

Combines the type selector with the synthesizers: pick a type, try to build
it from the pool, and reselect when the pool can't support that type.
"""

from __future__ import annotations

import logging
import random
from datetime import datetime, timezone
from typing import Callable, Optional

from aves.annotation_pool import AnnotationPool
from aves.errors import NoExerciseAvailableError
from aves.exercises.catalog import DEFAULT_CATALOG, ExerciseCatalog
from aves.exercises.selector import ExerciseTypeSelector
from aves.exercises.synthesizers import SynthesisContext, synthesize
from aves.schemas import Exercise, ExerciseType

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ExerciseGenerator:
    """
    Generates exercises for one learner from a fixed annotation pool.

    Types that fail to synthesize stay in the selector's history and are
    excluded from the remaining picks of the same request.
    """

    def __init__(
        self,
        pool: AnnotationPool,
        selector: Optional[ExerciseTypeSelector] = None,
        rng: Optional[random.Random] = None,
        catalog: ExerciseCatalog = DEFAULT_CATALOG,
        clock: Callable[[], datetime] = _utcnow,
    ):
        self.pool = pool
        self.rng = rng or random.Random()
        self.catalog = catalog
        self.selector = selector or ExerciseTypeSelector(rng=self.rng, catalog=catalog)
        self.clock = clock

    def _context(self) -> SynthesisContext:
        return SynthesisContext(
            pool=self.pool,
            rng=self.rng,
            catalog=self.catalog,
            level=self.selector.level,
            now=self.clock(),
        )

    def generate(self, exercise_type: ExerciseType | str) -> Optional[Exercise]:
        """Build one exercise of a specific type, or None if the pool can't."""
        return synthesize(exercise_type, self._context())

    def next_exercise(self) -> Exercise:
        """
        Select a type and synthesize it, reselecting on shortfall.

        Returns:
            A fully populated exercise

        Raises:
            NoExerciseAvailableError: If no candidate type could be built
                within twice the size of the level's candidate set
        """
        max_attempts = 2 * len(self.catalog.types_for_level(self.selector.level))
        tried: list[str] = []
        for _ in range(max_attempts):
            exercise_type = self.selector.select_next(exclude=tried)
            exercise = self.generate(exercise_type)
            if exercise is not None:
                return exercise
            tried.append(exercise_type)

        logger.warning(
            "No exercise available at level %d after %d attempts (%s)",
            self.selector.level, max_attempts, ", ".join(tried),
        )
        raise NoExerciseAvailableError(
            f"Annotation pool of {len(self.pool)} cannot support any level "
            f"{self.selector.level} exercise type"
        )
