"""
Read-only view over the annotations available to one exercise session.
"""

from __future__ import annotations

from typing import Iterable, Optional, Sequence

from aves.errors import EmptyPoolError
from aves.schemas import Annotation, AnnotationCategory


class AnnotationPool:
    """
    Fixed in-memory annotation collection with filtered and grouped lookups.

    The pool never mutates its annotations; every query returns a fresh tuple.
    """

    def __init__(self, annotations: Iterable[Annotation]):
        self._annotations: tuple[Annotation, ...] = tuple(annotations)
        if not self._annotations:
            raise EmptyPoolError("An annotation pool needs at least one annotation")
        self._by_id = {a.id: a for a in self._annotations}

    def __len__(self) -> int:
        return len(self._annotations)

    def __iter__(self):
        return iter(self._annotations)

    @property
    def annotations(self) -> tuple[Annotation, ...]:
        return self._annotations

    def get(self, annotation_id: str) -> Optional[Annotation]:
        return self._by_id.get(annotation_id)

    def by_type(self, category: AnnotationCategory | str) -> tuple[Annotation, ...]:
        """All annotations in a category (empty when none match)."""
        wanted = AnnotationCategory(category).value
        return tuple(a for a in self._annotations if a.category == wanted)

    def by_difficulty(self, level: int) -> tuple[Annotation, ...]:
        """Annotations with exactly this difficulty level."""
        return tuple(a for a in self._annotations if a.difficulty_level == level)

    def with_pronunciation(self) -> tuple[Annotation, ...]:
        return tuple(a for a in self._annotations if a.pronunciation)

    def grouped_by_type(self) -> dict[str, tuple[Annotation, ...]]:
        """
        Map category -> annotations, preserving first-seen category order.
        """
        groups: dict[str, list[Annotation]] = {}
        for annotation in self._annotations:
            groups.setdefault(annotation.category, []).append(annotation)
        return {category: tuple(items) for category, items in groups.items()}

    def grouped_by_image(self) -> dict[str, tuple[Annotation, ...]]:
        groups: dict[str, list[Annotation]] = {}
        for annotation in self._annotations:
            groups.setdefault(annotation.image_id, []).append(annotation)
        return {image_id: tuple(items) for image_id, items in groups.items()}


def difficulty_or_full(pool: AnnotationPool, level: int, minimum: int) -> Sequence[Annotation]:
    """
    Annotations at `level`, or the whole pool if fewer than `minimum` match.

    `level` is compared directly against the 1-5 difficulty scale.
    """
    filtered = pool.by_difficulty(level)
    if len(filtered) >= minimum:
        return filtered
    return pool.annotations
