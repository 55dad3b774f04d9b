"""Adaptive Spanish bird-vocabulary exercises with SM-2 review scheduling."""

from aves.annotation_pool import AnnotationPool
from aves.session import LearnerSession

__version__ = "0.1.0"

__all__ = [
    "AnnotationPool",
    "LearnerSession",
]
