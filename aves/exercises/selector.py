"""
Exercise Type Selector

Picks the next exercise type from a level-keyed candidate table while
avoiding the two most recently chosen types.

Level adjustment is a simple hysteresis controller on window accuracy
(>80% raises, <50% lowers), not an item-response model.
"""

from __future__ import annotations

import logging
import random
from collections import deque
from typing import Iterable, Optional

from aves.exercises import constants
from aves.exercises.catalog import DEFAULT_CATALOG, ExerciseCatalog

logger = logging.getLogger(__name__)


class ExerciseTypeSelector:
    """
    Owns one learner's proficiency level and recent-type history.

    Not safe for concurrent mutation; callers serialize requests per learner.
    """

    def __init__(
        self,
        rng: Optional[random.Random] = None,
        catalog: ExerciseCatalog = DEFAULT_CATALOG,
        level: int = constants.MIN_LEVEL,
        history_size: int = constants.HISTORY_SIZE,
    ):
        self.rng = rng or random.Random()
        self.catalog = catalog
        self._level = self._clamp(level)
        self._history: deque[str] = deque(maxlen=history_size)

    @staticmethod
    def _clamp(level: int) -> int:
        return max(constants.MIN_LEVEL, min(constants.MAX_LEVEL, level))

    @property
    def level(self) -> int:
        return self._level

    @property
    def history(self) -> tuple[str, ...]:
        return tuple(self._history)

    def candidates(self, exclude: Iterable[str] = ()) -> tuple[str, ...]:
        """
        Types eligible right now: the level's set minus recent history,
        or the full level set if filtering would leave nothing.

        `exclude` (types that just failed to synthesize) is dropped the same
        way and is likewise ignored when it would empty the set.
        """
        level_types = self.catalog.types_for_level(self._level)
        excluded = set(exclude)
        fresh = tuple(t for t in level_types if t not in excluded)
        available = tuple(t for t in fresh if t not in self._history)
        return available or fresh or level_types

    def select_next(self, exclude: Iterable[str] = ()) -> str:
        """
        Choose the next exercise type and record it in history.

        Args:
            exclude: Types to skip on this pick if any alternative remains

        Returns:
            Exercise type tag
        """
        choices = self.candidates(exclude)
        chosen = self.rng.choice(choices)
        self._history.append(chosen)
        logger.debug("Selected %s at level %d from %s", chosen, self._level, choices)
        return chosen

    def update_level(self, correct: int, total: int) -> int:
        """
        Move the level one step based on accuracy = correct / total.

        A total of zero is a no-op.

        Args:
            correct: Number of correct results in the window
            total: Number of results in the window

        Returns:
            The (possibly unchanged) level
        """
        if total <= 0:
            return self._level

        accuracy = correct / total
        previous = self._level
        if accuracy > constants.RAISE_LEVEL_ACCURACY and self._level < constants.MAX_LEVEL:
            self._level += 1
        elif accuracy < constants.LOWER_LEVEL_ACCURACY and self._level > constants.MIN_LEVEL:
            self._level -= 1

        if self._level != previous:
            logger.info("Proficiency level %d -> %d (accuracy %.2f)", previous, self._level, accuracy)
        return self._level
