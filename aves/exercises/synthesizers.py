"""
Exercise Synthesizers

One routine per exercise type. Each builds a self-contained exercise from the
annotation pool, or returns None when the pool cannot support that type; the
caller treats None as "reselect a type", never as a failure.

All shuffling and sampling goes through the injected random source so option
sets are reproducible under a fixed seed.
"""

from __future__ import annotations

import logging
import random
import string
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, Optional, Sequence

from aves.annotation_pool import AnnotationPool, difficulty_or_full
from aves.exercises import constants
from aves.exercises.catalog import DEFAULT_CATALOG, ExerciseCatalog
from aves.schemas import (
    Annotation,
    AnnotationCategory,
    AnnotationSequencingExercise,
    AudioRecognitionExercise,
    BoundingBoxDrawingExercise,
    BoxKey,
    CategoryKey,
    CategorySortingExercise,
    ClickKey,
    ComparativeAnalysisExercise,
    ContextualFillExercise,
    CulturalContextExercise,
    Exercise,
    ExerciseOption,
    ExerciseType,
    IndexKey,
    OptionKey,
    OrderKey,
    PairsKey,
    SentenceBuildingExercise,
    SortingCategory,
    SpatialIdentificationExercise,
    TargetPartKey,
    TermKey,
    TermMatchingExercise,
    TermPair,
    VisualDiscriminationExercise,
    VisualIdentificationExercise,
)

logger = logging.getLogger(__name__)

_ID_ALPHABET = string.ascii_lowercase + string.digits


@dataclass
class SynthesisContext:
    """Everything a synthesizer may read."""
    pool: AnnotationPool
    rng: random.Random
    catalog: ExerciseCatalog = DEFAULT_CATALOG
    level: int = constants.MIN_LEVEL
    now: Optional[datetime] = None

    def timestamp(self) -> datetime:
        return self.now or datetime.now(timezone.utc)

    def new_id(self, exercise_type: str) -> str:
        """Creation time in ms plus a random suffix."""
        millis = int(self.timestamp().timestamp() * 1000)
        suffix = "".join(self.rng.choices(_ID_ALPHABET, k=7))
        return f"{exercise_type}_{millis}_{suffix}"

    def shuffled(self, items: Sequence) -> list:
        copy = list(items)
        self.rng.shuffle(copy)
        return copy


def _option(annotation: Annotation) -> ExerciseOption:
    return ExerciseOption(
        id=annotation.id,
        text=annotation.spanish_term,
        hint=annotation.english_term,
        image_id=annotation.image_id,
    )


def _distinct_terms(annotations: Sequence[Annotation], exclude: Annotation) -> list[Annotation]:
    """Annotations whose Spanish term differs from `exclude` and from each other."""
    seen = {exclude.spanish_term}
    result = []
    for annotation in annotations:
        if annotation.id == exclude.id or annotation.spanish_term in seen:
            continue
        seen.add(annotation.spanish_term)
        result.append(annotation)
    return result


# ---- Recognition ----

def synthesize_visual_identification(ctx: SynthesisContext) -> Optional[VisualIdentificationExercise]:
    anatomical = ctx.pool.by_type(AnnotationCategory.ANATOMICAL)
    if not anatomical:
        return None

    target = ctx.rng.choice(anatomical)
    return VisualIdentificationExercise(
        id=ctx.new_id(ExerciseType.VISUAL_IDENTIFICATION.value),
        instructions="Click on the bird part",
        prompt=target.spanish_term,
        annotation_id=target.id,
        created_at=ctx.timestamp(),
        image_id=target.image_id,
        target_term=target.spanish_term,
        pronunciation=target.pronunciation,
        tip=f"Remember: {target.spanish_term} means {target.english_term} in English",
        answer_key=TargetPartKey(target_part=ctx.catalog.body_part_for(target.spanish_term)),
    )


def synthesize_visual_discrimination(ctx: SynthesisContext) -> Optional[VisualDiscriminationExercise]:
    """
    Target plus three distractors, preferring annotations at the learner's
    level and falling back to the whole pool.

    Proficiency level N selects annotations of difficulty N, so levels 1-3
    draw on the three easiest difficulties; difficulty 4-5 annotations only
    appear through the full-pool fallback.
    """
    candidates = difficulty_or_full(ctx.pool, ctx.level, constants.OPTION_COUNT)
    shuffled = ctx.shuffled(candidates)
    if not shuffled:
        return None

    correct = shuffled[0]
    distractors = _distinct_terms(shuffled[1:], correct)[:constants.OPTION_COUNT - 1]
    if len(distractors) < constants.OPTION_COUNT - 1:
        return None

    options = ctx.shuffled([_option(a) for a in [correct, *distractors]])
    return VisualDiscriminationExercise(
        id=ctx.new_id(ExerciseType.VISUAL_DISCRIMINATION.value),
        instructions=f'Select the image that shows: "{correct.spanish_term}"',
        prompt=correct.spanish_term,
        annotation_id=correct.id,
        created_at=ctx.timestamp(),
        target_term=correct.spanish_term,
        options=options,
        cultural_note=ctx.catalog.idiom_for(correct.spanish_term),
        answer_key=OptionKey(correct_option_id=correct.id),
    )


def synthesize_audio_recognition(ctx: SynthesisContext) -> Optional[AudioRecognitionExercise]:
    voiced = ctx.pool.with_pronunciation()
    if len(voiced) < constants.OPTION_COUNT:
        return None

    correct = ctx.rng.choice(voiced)
    others = _distinct_terms(ctx.shuffled(voiced), correct)
    if len(others) < constants.OPTION_COUNT - 1:
        return None

    options = ctx.shuffled([_option(a) for a in [correct, *others[:constants.OPTION_COUNT - 1]]])
    return AudioRecognitionExercise(
        id=ctx.new_id(ExerciseType.AUDIO_RECOGNITION.value),
        instructions="Which word do you hear?",
        prompt="Listen and select the correct word",
        annotation_id=correct.id,
        created_at=ctx.timestamp(),
        audio_text=correct.spanish_term,
        pronunciation=correct.pronunciation,
        options=options,
        answer_key=OptionKey(correct_option_id=correct.id),
    )


# ---- Production ----

def synthesize_term_matching(ctx: SynthesisContext) -> Optional[TermMatchingExercise]:
    """Four Spanish/English pairs drawn from one category."""
    groups = ctx.pool.grouped_by_type()
    eligible = [c for c, items in groups.items() if len(items) >= constants.TERM_MATCHING_SIZE]
    if not eligible:
        return None

    category = ctx.rng.choice(eligible)
    selected = groups[category][:constants.TERM_MATCHING_SIZE]
    return TermMatchingExercise(
        id=ctx.new_id(ExerciseType.TERM_MATCHING.value),
        instructions=f"Match {category} vocabulary",
        prompt="Match Spanish and English terms",
        annotation_id=selected[0].id,
        created_at=ctx.timestamp(),
        category=category,
        spanish_terms=[a.spanish_term for a in selected],
        english_terms=ctx.shuffled([a.english_term for a in selected]),
        answer_key=PairsKey(correct_pairs=[
            TermPair(spanish=a.spanish_term, english=a.english_term) for a in selected
        ]),
    )


def synthesize_contextual_fill(ctx: SynthesisContext) -> Optional[ContextualFillExercise]:
    """
    Cloze sentence whose three distractors share the answer's category.
    """
    groups = ctx.pool.grouped_by_type()
    targets = []
    for items in groups.values():
        for annotation in items:
            if len(_distinct_terms(items, annotation)) >= constants.OPTION_COUNT - 1:
                targets.append(annotation)
    if not targets:
        return None

    correct = ctx.rng.choice(targets)
    peers = _distinct_terms(groups[correct.category], correct)
    distractors = ctx.rng.sample(peers, constants.OPTION_COUNT - 1)
    sentence = ctx.rng.choice(ctx.catalog.context_sentences)

    return ContextualFillExercise(
        id=ctx.new_id(ExerciseType.CONTEXTUAL_FILL.value),
        instructions="Complete the sentence",
        prompt=sentence.text,
        annotation_id=correct.id,
        created_at=ctx.timestamp(),
        sentence=sentence.text,
        context=sentence.context,
        grammar_note=sentence.grammar,
        options=ctx.shuffled([a.spanish_term for a in [correct, *distractors]]),
        answer_key=TermKey(correct_answer=correct.spanish_term),
    )


def synthesize_sentence_building(ctx: SynthesisContext) -> Optional[SentenceBuildingExercise]:
    annotation = ctx.rng.choice(ctx.pool.annotations)
    term = annotation.spanish_term
    plural = term.lower().startswith(("los ", "las "))

    if ctx.rng.random() < 0.5:
        adjective = ctx.rng.choice(sorted(ctx.catalog.adjectives))
        words = ["El", constants.BIRD_WORD, "tiene", term, adjective]
        translation = f"The bird has {ctx.catalog.adjectives[adjective]} {annotation.english_term}"
        template = "El [BIRD] tiene [FEATURE] [ADJECTIVE]"
    else:
        color = ctx.rng.choice(sorted(ctx.catalog.colors))
        words = [term, "del", constants.BIRD_WORD, "son" if plural else "es", color]
        translation = f"The {annotation.english_term} of the bird is {ctx.catalog.colors[color]}"
        template = "[FEATURE] del [BIRD] es [COLOR]"

    scrambled = ctx.shuffled(words)
    if scrambled == words:
        scrambled = scrambled[1:] + scrambled[:1]

    return SentenceBuildingExercise(
        id=ctx.new_id(ExerciseType.SENTENCE_BUILDING.value),
        instructions="Arrange the words to form a correct sentence",
        prompt="Build a sentence",
        annotation_id=annotation.id,
        created_at=ctx.timestamp(),
        scrambled_words=scrambled,
        translation=translation,
        template=template,
        answer_key=OrderKey(correct_order=words),
    )


def synthesize_cultural_context(ctx: SynthesisContext) -> Optional[CulturalContextExercise]:
    if not ctx.catalog.cultural_items:
        return None

    item = ctx.rng.choice(ctx.catalog.cultural_items)
    return CulturalContextExercise(
        id=ctx.new_id(ExerciseType.CULTURAL_CONTEXT.value),
        instructions="Answer the cultural question",
        prompt=item.question,
        created_at=ctx.timestamp(),
        options=list(item.options),
        explanation=item.explanation,
        cultural_note=item.cultural,
        answer_key=IndexKey(correct_index=item.correct),
    )


# ---- Spatial ----

def click_tolerance(difficulty_level: int) -> float:
    """Allowed click distance from the box centre: 0.25 at level 1 down to 0.05 at 5."""
    return round(constants.BASE_CLICK_TOLERANCE - difficulty_level * constants.TOLERANCE_STEP, 4)


def synthesize_spatial_identification(ctx: SynthesisContext) -> Optional[SpatialIdentificationExercise]:
    target = ctx.rng.choice(ctx.pool.annotations)
    return SpatialIdentificationExercise(
        id=ctx.new_id(ExerciseType.SPATIAL_IDENTIFICATION.value),
        instructions=f"Encuentra y haz clic en {target.spanish_term} del pájaro",
        prompt=f"Haz clic en {target.spanish_term}",
        annotation_id=target.id,
        created_at=ctx.timestamp(),
        image_id=target.image_id,
        target_term=target.spanish_term,
        answer_key=ClickKey(
            target_box=target.bounding_box,
            tolerance=click_tolerance(target.difficulty_level),
        ),
    )


def synthesize_bounding_box_drawing(ctx: SynthesisContext) -> Optional[BoundingBoxDrawingExercise]:
    target = ctx.rng.choice(ctx.pool.annotations)
    return BoundingBoxDrawingExercise(
        id=ctx.new_id(ExerciseType.BOUNDING_BOX_DRAWING.value),
        instructions=f"Dibuja un recuadro alrededor de {target.spanish_term}",
        prompt=target.spanish_term,
        annotation_id=target.id,
        created_at=ctx.timestamp(),
        image_id=target.image_id,
        target_term=target.spanish_term,
        answer_key=BoxKey(target_box=target.bounding_box, min_overlap=constants.MIN_BOX_OVERLAP),
    )


# ---- Analytic ----

def _one_per_image(annotations: Sequence[Annotation]) -> list[Annotation]:
    seen_images: set[str] = set()
    seen_terms: set[str] = set()
    result = []
    for annotation in annotations:
        if annotation.image_id in seen_images or annotation.spanish_term in seen_terms:
            continue
        seen_images.add(annotation.image_id)
        seen_terms.add(annotation.spanish_term)
        result.append(annotation)
    return result


def synthesize_comparative_analysis(ctx: SynthesisContext) -> Optional[ComparativeAnalysisExercise]:
    """
    Three images, each showing a different term; the learner picks the one
    showing the target. Color comparisons are preferred, then anatomy.
    """
    preferences = (
        (AnnotationCategory.COLOR.value, ctx.pool.by_type(AnnotationCategory.COLOR)),
        (AnnotationCategory.ANATOMICAL.value, ctx.pool.by_type(AnnotationCategory.ANATOMICAL)),
        (None, ctx.pool.annotations),
    )
    for feature, candidates in preferences:
        selected = _one_per_image(ctx.shuffled(candidates))[:constants.COMPARATIVE_SIZE]
        if len(selected) == constants.COMPARATIVE_SIZE:
            break
    else:
        return None

    target = selected[0]
    feature = feature or target.category
    prompt_template = ctx.catalog.comparison_prompt_for(feature)
    options = [
        ExerciseOption(id=a.image_id, text=a.spanish_term, hint=a.english_term, image_id=a.image_id)
        for a in selected
    ]
    return ComparativeAnalysisExercise(
        id=ctx.new_id(ExerciseType.COMPARATIVE_ANALYSIS.value),
        instructions="Selecciona la imagen que mejor coincide con la descripción",
        prompt=prompt_template.format(term=target.spanish_term),
        annotation_id=target.id,
        created_at=ctx.timestamp(),
        compare_feature=feature,
        options=ctx.shuffled(options),
        explanation=f"{target.spanish_term} se refiere a {target.english_term}",
        answer_key=OptionKey(correct_option_id=target.image_id),
    )


def synthesize_annotation_sequencing(ctx: SynthesisContext) -> Optional[AnnotationSequencingExercise]:
    """Order parts of one image from top to bottom."""
    best: list[Annotation] = []
    for items in ctx.pool.grouped_by_image().values():
        distinct_rows: dict[float, Annotation] = {}
        for annotation in items:
            distinct_rows.setdefault(annotation.bounding_box.top_left.y, annotation)
        if len(distinct_rows) > len(best):
            best = list(distinct_rows.values())
    if len(best) < constants.SEQUENCING_MIN:
        return None

    selected = best[:constants.SEQUENCING_MAX]
    ordered = sorted(selected, key=lambda a: a.bounding_box.top_left.y)
    return AnnotationSequencingExercise(
        id=ctx.new_id(ExerciseType.ANNOTATION_SEQUENCING.value),
        instructions="Arrastra los términos para ordenarlos de arriba a abajo en el pájaro",
        prompt="Ordena estas partes del pájaro de arriba a abajo",
        annotation_id=ordered[0].id,
        created_at=ctx.timestamp(),
        image_id=selected[0].image_id,
        items=ctx.shuffled([_option(a) for a in selected]),
        answer_key=OrderKey(correct_order=[a.id for a in ordered]),
    )


def synthesize_category_sorting(ctx: SynthesisContext) -> Optional[CategorySortingExercise]:
    viable = [
        (category, items)
        for category, items in ctx.pool.grouped_by_type().items()
        if len(items) >= constants.SORTING_MIN_PER_CATEGORY
    ]
    if len(viable) < constants.SORTING_MIN_CATEGORIES:
        return None

    selected = viable[:constants.SORTING_MAX_CATEGORIES]
    assignments: dict[str, str] = {}
    terms: list[ExerciseOption] = []
    for category, items in selected:
        for annotation in items[:constants.SORTING_MAX_PER_CATEGORY]:
            assignments[annotation.id] = category
            terms.append(_option(annotation))

    return CategorySortingExercise(
        id=ctx.new_id(ExerciseType.CATEGORY_SORTING.value),
        instructions="Arrastra cada término a su categoría correcta",
        prompt="Agrupa estos términos por categoría",
        created_at=ctx.timestamp(),
        terms=ctx.shuffled(terms),
        categories=[
            SortingCategory(id=category, label=ctx.catalog.category_labels.get(category, category))
            for category, _ in selected
        ],
        answer_key=CategoryKey(assignments=assignments),
    )


SYNTHESIZERS: dict[str, Callable[[SynthesisContext], Optional[Exercise]]] = {
    ExerciseType.VISUAL_IDENTIFICATION.value: synthesize_visual_identification,
    ExerciseType.VISUAL_DISCRIMINATION.value: synthesize_visual_discrimination,
    ExerciseType.AUDIO_RECOGNITION.value: synthesize_audio_recognition,
    ExerciseType.TERM_MATCHING.value: synthesize_term_matching,
    ExerciseType.CONTEXTUAL_FILL.value: synthesize_contextual_fill,
    ExerciseType.SENTENCE_BUILDING.value: synthesize_sentence_building,
    ExerciseType.CULTURAL_CONTEXT.value: synthesize_cultural_context,
    ExerciseType.SPATIAL_IDENTIFICATION.value: synthesize_spatial_identification,
    ExerciseType.BOUNDING_BOX_DRAWING.value: synthesize_bounding_box_drawing,
    ExerciseType.COMPARATIVE_ANALYSIS.value: synthesize_comparative_analysis,
    ExerciseType.ANNOTATION_SEQUENCING.value: synthesize_annotation_sequencing,
    ExerciseType.CATEGORY_SORTING.value: synthesize_category_sorting,
}


def synthesize(exercise_type: str, ctx: SynthesisContext) -> Optional[Exercise]:
    """
    Build an exercise of the given type, or None if the pool can't support it
    (unknown types also yield None).
    """
    synthesizer = SYNTHESIZERS.get(getattr(exercise_type, "value", exercise_type))
    if synthesizer is None:
        logger.debug("No synthesizer for exercise type %r", exercise_type)
        return None

    exercise = synthesizer(ctx)
    if exercise is None:
        logger.debug("Pool of %d annotations cannot support %s", len(ctx.pool), exercise_type)
    return exercise
