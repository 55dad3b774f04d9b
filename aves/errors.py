"""
Typed failures raised by the exercise engine.

Synthesis shortfalls are not errors: synthesizers return None and the
generator reselects a type.
"""


class AvesError(Exception):
    """Base class for engine errors."""


class EmptyPoolError(AvesError):
    """An annotation pool was constructed from zero annotations."""


class InvalidQualityError(AvesError, ValueError):
    """A review quality rating outside 0-5."""

    def __init__(self, quality):
        self.quality = quality
        super().__init__(f"quality must be an integer between 0 and 5, got {quality!r}")


class InvalidSubmissionError(AvesError, ValueError):
    """A submitted answer whose shape does not match the exercise type."""


class NoExerciseAvailableError(AvesError):
    """Every selected exercise type failed to synthesize within the retry budget."""


class UnknownExerciseError(AvesError, KeyError):
    """A submission references an exercise this session never issued."""
