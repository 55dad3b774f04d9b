"""
Adaptive exercise generation.

Quick start:
    import random
    from aves.annotation_pool import AnnotationPool
    from aves.exercises import ExerciseGenerator, check_answer

    generator = ExerciseGenerator(AnnotationPool(annotations), rng=random.Random(7))
    exercise = generator.next_exercise()
"""

from aves.exercises.catalog import DEFAULT_CATALOG, ExerciseCatalog
from aves.exercises.generator import ExerciseGenerator
from aves.exercises.selector import ExerciseTypeSelector
from aves.exercises.synthesizers import SYNTHESIZERS, SynthesisContext, click_tolerance, synthesize
from aves.exercises.validator import check_answer, grade

__all__ = [
    "DEFAULT_CATALOG",
    "ExerciseCatalog",
    "ExerciseGenerator",
    "ExerciseTypeSelector",
    "SYNTHESIZERS",
    "SynthesisContext",
    "click_tolerance",
    "synthesize",
    "check_answer",
    "grade",
]
