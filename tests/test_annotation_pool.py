"""Tests for the read-only annotation pool."""

import pytest

from aves.annotation_pool import AnnotationPool, difficulty_or_full
from aves.errors import EmptyPoolError
from aves.schemas import AnnotationCategory


class TestAnnotationPool:

    def test_empty_pool_rejected(self):
        with pytest.raises(EmptyPoolError):
            AnnotationPool([])

    def test_len_and_iter(self, bird_pool, bird_annotations):
        assert len(bird_pool) == len(bird_annotations)
        assert [a.id for a in bird_pool] == [a.id for a in bird_annotations]

    def test_get(self, bird_pool):
        assert bird_pool.get("a3").spanish_term == "la cola"
        assert bird_pool.get("missing") is None

    def test_by_type_accepts_enum_or_value(self, bird_pool):
        by_enum = bird_pool.by_type(AnnotationCategory.COLOR)
        by_value = bird_pool.by_type("color")
        assert [a.id for a in by_enum] == ["a6", "a7", "a8"]
        assert by_enum == by_value

    def test_by_type_empty_when_no_match(self, bird_pool):
        assert bird_pool.by_type("habitat") == ()

    def test_by_difficulty_exact(self, bird_pool):
        assert [a.id for a in bird_pool.by_difficulty(2)] == ["a5"]
        assert bird_pool.by_difficulty(4) == ()

    def test_with_pronunciation(self, bird_pool):
        assert [a.id for a in bird_pool.with_pronunciation()] == ["a1", "a2", "a3", "a4", "a5"]

    def test_grouped_by_type_keeps_first_seen_order(self, bird_pool):
        groups = bird_pool.grouped_by_type()
        assert list(groups) == ["anatomical", "color", "behavioral"]
        assert len(groups["anatomical"]) == 5

    def test_grouped_by_image(self, bird_pool):
        groups = bird_pool.grouped_by_image()
        assert [a.id for a in groups["img-1"]] == ["a1", "a2", "a3", "a4"]
        assert set(groups) == {"img-1", "img-2", "img-3", "img-4"}


class TestDifficultyFallback:

    def test_uses_filtered_when_enough(self, bird_pool):
        assert len(difficulty_or_full(bird_pool, 1, 4)) == 8

    def test_falls_back_to_full_pool(self, bird_pool):
        assert len(difficulty_or_full(bird_pool, 2, 4)) == len(bird_pool)
