"""
Tests for exercise synthesis and the adaptive generator.

Tests cover:
- Per-type construction rules and minimum pool sizes
- Answer keys consistent with the presented options
- Seeded determinism
- Bounded reselection in the generator
"""

import dataclasses
import random

import pytest

from aves.annotation_pool import AnnotationPool
from aves.errors import NoExerciseAvailableError
from aves.exercises import synthesizers as synth
from aves.exercises.catalog import DEFAULT_CATALOG
from aves.exercises.generator import ExerciseGenerator
from aves.exercises.selector import ExerciseTypeSelector
from aves.exercises.synthesizers import SYNTHESIZERS, SynthesisContext, click_tolerance, synthesize
from aves.exercises.validator import check_answer
from aves.schemas import ExerciseSubmission, exercise_to_payload
from tests.conftest import make_annotation


def ctx(pool, seed=42, level=1, now=None):
    return SynthesisContext(pool=pool, rng=random.Random(seed), level=level, now=now)


def assert_key_consistent(exercise):
    """The correct answer must be among what the learner is shown."""
    key = exercise.answer_key
    if exercise.type in ("visual_discrimination", "audio_recognition", "comparative_analysis"):
        assert key.correct_option_id in {o.id for o in exercise.options}
        assert len({o.id for o in exercise.options}) == len(exercise.options)
    elif exercise.type == "contextual_fill":
        assert key.correct_answer in exercise.options
        assert len(set(exercise.options)) == len(exercise.options)
    elif exercise.type == "cultural_context":
        assert 0 <= key.correct_index < len(exercise.options)
    elif exercise.type == "term_matching":
        assert {p.spanish for p in key.correct_pairs} == set(exercise.spanish_terms)
        assert {p.english for p in key.correct_pairs} == set(exercise.english_terms)
    elif exercise.type == "sentence_building":
        assert sorted(key.correct_order) == sorted(exercise.scrambled_words)
    elif exercise.type == "annotation_sequencing":
        assert set(key.correct_order) == {item.id for item in exercise.items}
    elif exercise.type == "category_sorting":
        assert set(key.assignments) == {t.id for t in exercise.terms}
        assert set(key.assignments.values()) <= {c.id for c in exercise.categories}


class TestRecognitionSynthesizers:

    def test_visual_identification_maps_body_part(self, four_part_pool):
        exercise = synth.synthesize_visual_identification(ctx(four_part_pool))
        expected = {"el pico": "beak", "la cola": "tail"}
        assert exercise.answer_key.target_part == expected.get(exercise.target_term, "beak")
        assert exercise.annotation_id in {"p1", "p2", "p3", "p4"}

    def test_visual_identification_unknown_term_falls_back_to_beak(self):
        pool = AnnotationPool([make_annotation("c", "la cresta", "crest")])
        exercise = synth.synthesize_visual_identification(ctx(pool))
        assert exercise.answer_key.target_part == "beak"

    def test_visual_identification_needs_anatomical(self):
        pool = AnnotationPool([make_annotation("c", "rojo", "red", category="color")])
        assert synth.synthesize_visual_identification(ctx(pool)) is None

    def test_visual_discrimination_offers_four_options(self, four_part_pool):
        exercise = synth.synthesize_visual_discrimination(ctx(four_part_pool))
        assert len(exercise.options) == 4
        assert {o.id for o in exercise.options} == {"p1", "p2", "p3", "p4"}
        assert exercise.answer_key.correct_option_id == exercise.annotation_id

    def test_visual_discrimination_carries_idiom_note(self, four_part_pool):
        exercise = synth.synthesize_visual_discrimination(ctx(four_part_pool))
        if exercise.target_term == "el pico":
            assert "Cerrar el pico" in exercise.cultural_note
        else:
            assert exercise.cultural_note == "Spanish has many bird-related expressions"

    def test_visual_discrimination_idiom_from_catalog(self, four_part_pool):
        idioms = {a.spanish_term: f"dicho {a.id}" for a in four_part_pool.annotations}
        catalog = dataclasses.replace(DEFAULT_CATALOG, idiom_by_term=idioms)
        context = SynthesisContext(pool=four_part_pool, rng=random.Random(3), catalog=catalog)
        exercise = synth.synthesize_visual_discrimination(context)
        assert exercise.cultural_note == f"dicho {exercise.annotation_id}"

    def test_visual_discrimination_matches_level_to_difficulty(self):
        easy = [make_annotation(f"d2-{i}", f"fácil {i}", f"easy {i}", difficulty=2) for i in range(4)]
        hard = [make_annotation(f"d4-{i}", f"difícil {i}", f"hard {i}", difficulty=4) for i in range(4)]
        pool = AnnotationPool(easy + hard)
        for seed in range(5):
            exercise = synth.synthesize_visual_discrimination(ctx(pool, seed=seed, level=2))
            assert {o.id for o in exercise.options} == {a.id for a in easy}

        # no difficulty-3 annotations, so level 3 draws from the whole pool
        exercise = synth.synthesize_visual_discrimination(ctx(pool, level=3))
        assert len(exercise.options) == 4

    def test_visual_discrimination_needs_four(self):
        pool = AnnotationPool([make_annotation(f"x{i}", f"term {i}", f"word {i}") for i in range(3)])
        assert synth.synthesize_visual_discrimination(ctx(pool)) is None

    def test_audio_recognition_needs_four_pronunciations(self, four_part_pool):
        assert synth.synthesize_audio_recognition(ctx(four_part_pool)) is None

    def test_audio_recognition_uses_only_voiced_annotations(self, bird_pool):
        exercise = synth.synthesize_audio_recognition(ctx(bird_pool))
        voiced = {a.id for a in bird_pool.with_pronunciation()}
        assert {o.id for o in exercise.options} <= voiced
        assert exercise.audio_text == bird_pool.get(exercise.answer_key.correct_option_id).spanish_term


class TestProductionSynthesizers:

    def test_term_matching_uses_all_four(self, four_part_pool):
        exercise = synth.synthesize_term_matching(ctx(four_part_pool))
        pairs = {(p.spanish, p.english) for p in exercise.answer_key.correct_pairs}
        assert pairs == {("el pico", "beak"), ("el ala", "wing"), ("la cola", "tail"), ("la pata", "leg")}

    def test_term_matching_check_answer(self, four_part_pool):
        exercise = synth.synthesize_term_matching(ctx(four_part_pool))
        reordered = {"la pata": "leg", "el pico": "beak", "la cola": "tail", "el ala": "wing"}
        missing = {"el pico": "beak", "la cola": "tail", "el ala": "wing"}

        assert check_answer(exercise, ExerciseSubmission(exercise_id=exercise.id, answer=reordered))
        assert not check_answer(exercise, ExerciseSubmission(exercise_id=exercise.id, answer=missing))

    def test_term_matching_needs_four_in_one_category(self):
        pool = AnnotationPool([
            make_annotation("a", "el pico", "beak"),
            make_annotation("b", "la cola", "tail"),
            make_annotation("c", "rojo", "red", category="color"),
            make_annotation("d", "azul", "blue", category="color"),
        ])
        assert synth.synthesize_term_matching(ctx(pool)) is None

    def test_contextual_fill_distractors_share_category(self, bird_pool):
        exercise = synth.synthesize_contextual_fill(ctx(bird_pool))
        anatomical_terms = {a.spanish_term for a in bird_pool.by_type("anatomical")}
        assert set(exercise.options) <= anatomical_terms
        assert len(exercise.options) == 4
        assert "___" in exercise.sentence

    def test_contextual_fill_needs_three_peers(self):
        pool = AnnotationPool([
            make_annotation("a", "el pico", "beak"),
            make_annotation("b", "la cola", "tail"),
            make_annotation("c", "el ala", "wing"),
        ])
        assert synth.synthesize_contextual_fill(ctx(pool)) is None

    @pytest.mark.parametrize("seed", range(8))
    def test_sentence_building_scrambles(self, seed):
        pool = AnnotationPool([make_annotation("a", "el pico", "beak")])
        exercise = synth.synthesize_sentence_building(ctx(pool, seed=seed))
        order = exercise.answer_key.correct_order
        assert "pájaro" in order
        assert "el pico" in order
        assert exercise.scrambled_words != order
        assert sorted(exercise.scrambled_words) == sorted(order)

    def test_cultural_context_is_static_trivia(self, four_part_pool):
        exercise = synth.synthesize_cultural_context(ctx(four_part_pool))
        assert exercise.annotation_id is None
        assert len(exercise.options) == 4
        assert exercise.prompt.startswith("¿")


class TestSpatialAndAnalyticSynthesizers:

    @pytest.mark.parametrize("difficulty,tolerance", [(1, 0.25), (3, 0.15), (5, 0.05)])
    def test_click_tolerance_shrinks_with_difficulty(self, difficulty, tolerance):
        assert click_tolerance(difficulty) == pytest.approx(tolerance)

    def test_spatial_identification_targets_annotation_box(self, four_part_pool):
        exercise = synth.synthesize_spatial_identification(ctx(four_part_pool))
        target = four_part_pool.get(exercise.annotation_id)
        assert exercise.answer_key.target_box == target.bounding_box
        assert exercise.answer_key.tolerance == pytest.approx(0.25)

    def test_bounding_box_drawing_requires_half_overlap(self, four_part_pool):
        exercise = synth.synthesize_bounding_box_drawing(ctx(four_part_pool))
        assert exercise.answer_key.min_overlap == 0.5

    def test_comparative_prefers_color(self, bird_pool):
        exercise = synth.synthesize_comparative_analysis(ctx(bird_pool))
        assert exercise.compare_feature == "color"
        assert {o.id for o in exercise.options} == {"img-2", "img-3", "img-4"}

    def test_comparative_prompt_from_catalog(self, bird_pool):
        catalog = dataclasses.replace(DEFAULT_CATALOG, comparison_prompts={"color": "Busca {term}"})
        context = SynthesisContext(pool=bird_pool, rng=random.Random(42), catalog=catalog)
        exercise = synth.synthesize_comparative_analysis(context)
        assert exercise.prompt in {"Busca rojo", "Busca amarillo", "Busca azul"}

    def test_comparative_needs_three_images(self, four_part_pool):
        assert synth.synthesize_comparative_analysis(ctx(four_part_pool)) is None

    def test_sequencing_orders_top_to_bottom(self, bird_pool):
        exercise = synth.synthesize_annotation_sequencing(ctx(bird_pool))
        assert exercise.image_id == "img-1"
        assert exercise.answer_key.correct_order == ["a1", "a2", "a3", "a4"]

    def test_sequencing_needs_four_on_one_image(self, bird_annotations):
        pool = AnnotationPool(bird_annotations[3:])
        assert synth.synthesize_annotation_sequencing(ctx(pool)) is None

    def test_category_sorting_caps_size(self, bird_pool):
        exercise = synth.synthesize_category_sorting(ctx(bird_pool))
        assert [c.id for c in exercise.categories] == ["anatomical", "color"]
        assert len(exercise.terms) == 6
        assert exercise.categories[0].label == "Anatómico"

    def test_category_sorting_needs_two_categories(self, four_part_pool):
        assert synth.synthesize_category_sorting(ctx(four_part_pool)) is None


class TestSynthesisProperties:

    @pytest.mark.parametrize("exercise_type", sorted(SYNTHESIZERS))
    @pytest.mark.parametrize("seed", range(5))
    def test_answer_key_consistent(self, exercise_type, seed, bird_pool, now):
        exercise = synthesize(exercise_type, ctx(bird_pool, seed=seed, now=now))
        assert exercise is not None
        assert exercise.type == exercise_type
        assert_key_consistent(exercise)

    @pytest.mark.parametrize("exercise_type", sorted(SYNTHESIZERS))
    def test_seeded_synthesis_is_deterministic(self, exercise_type, bird_pool, now):
        first = synthesize(exercise_type, ctx(bird_pool, seed=9, now=now))
        second = synthesize(exercise_type, ctx(bird_pool, seed=9, now=now))
        assert exercise_to_payload(first) == exercise_to_payload(second)

    def test_exercise_id_format(self, bird_pool, now):
        exercise = synthesize("visual_identification", ctx(bird_pool, now=now))
        prefix, millis, suffix = exercise.id.rsplit("_", 2)
        assert prefix == "visual_identification"
        assert int(millis) == int(now.timestamp() * 1000)
        assert len(suffix) == 7

    def test_unknown_type_yields_none(self, bird_pool):
        assert synthesize("interpretive_dance", ctx(bird_pool)) is None


class TestExerciseGenerator:

    def test_level_one_scenario(self, four_part_pool, rng):
        generator = ExerciseGenerator(four_part_pool, rng=rng)
        for _ in range(10):
            exercise = generator.next_exercise()
            assert exercise.type in ("visual_identification", "visual_discrimination")

    def test_reselects_when_type_unsupported(self, rng):
        # Only visual identification is possible with a single anatomical term
        pool = AnnotationPool([make_annotation("a", "el pico", "beak")])
        generator = ExerciseGenerator(pool, rng=rng)
        for _ in range(5):
            assert generator.next_exercise().type == "visual_identification"

    def test_raises_when_nothing_fits(self, rng):
        pool = AnnotationPool([make_annotation("c", "rojo", "red", category="color")])
        generator = ExerciseGenerator(pool, rng=rng)
        with pytest.raises(NoExerciseAvailableError):
            generator.next_exercise()

    def test_level_three_works_with_one_annotation(self, rng):
        pool = AnnotationPool([make_annotation("c", "rojo", "red", category="color")])
        selector = ExerciseTypeSelector(rng=rng, level=3)
        generator = ExerciseGenerator(pool, selector=selector, rng=rng)
        assert generator.next_exercise().type in ("sentence_building", "cultural_context")

    def test_generate_specific_type(self, bird_pool, rng, now):
        generator = ExerciseGenerator(bird_pool, rng=rng, clock=lambda: now)
        exercise = generator.generate("category_sorting")
        assert exercise.type == "category_sorting"
        assert exercise.created_at == now
