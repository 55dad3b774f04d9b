"""
Pydantic models for bird-vocabulary annotations and generated exercises.

Annotations arrive read-only from the content pipeline. Exercises are a
discriminated union on ``type``; every variant embeds a typed answer key so it
can be graded from its own payload, with no lookup back into the pool.
"""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Annotated, Literal, Optional, Union

from pydantic import (
    BaseModel,
    Field,
    StrictFloat,
    StrictInt,
    StrictStr,
    TypeAdapter,
    ValidationError,
    field_validator,
    model_validator,
)

from aves.errors import InvalidSubmissionError


class AnnotationCategory(str, Enum):
    """What aspect of the bird an annotation teaches."""
    ANATOMICAL = "anatomical"
    BEHAVIORAL = "behavioral"
    COLOR = "color"
    PATTERN = "pattern"
    HABITAT = "habitat"


class ExerciseType(str, Enum):
    """Exercise type tags."""
    VISUAL_IDENTIFICATION = "visual_identification"
    VISUAL_DISCRIMINATION = "visual_discrimination"
    AUDIO_RECOGNITION = "audio_recognition"
    TERM_MATCHING = "term_matching"
    CONTEXTUAL_FILL = "contextual_fill"
    SENTENCE_BUILDING = "sentence_building"
    CULTURAL_CONTEXT = "cultural_context"

    # Spatial variants
    SPATIAL_IDENTIFICATION = "spatial_identification"
    BOUNDING_BOX_DRAWING = "bounding_box_drawing"

    # Analytic variants
    COMPARATIVE_ANALYSIS = "comparative_analysis"
    ANNOTATION_SEQUENCING = "annotation_sequencing"
    CATEGORY_SORTING = "category_sorting"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


# ---- Geometry ----

class Point(BaseModel):
    """A normalized image coordinate."""
    x: float = Field(..., ge=0.0, le=1.0)
    y: float = Field(..., ge=0.0, le=1.0)

    class Config:
        frozen = True


class BoundingBox(BaseModel):
    """Normalized rectangle; bottom_right must exceed top_left on both axes."""
    top_left: Point
    bottom_right: Point
    shape: Optional[str] = Field(default=None, description="Optional outline hint, e.g. 'ellipse'")

    class Config:
        frozen = True

    @model_validator(mode="after")
    def _check_corners(self) -> "BoundingBox":
        if self.bottom_right.x <= self.top_left.x or self.bottom_right.y <= self.top_left.y:
            raise ValueError("bottom_right must be strictly greater than top_left in both axes")
        return self

    @property
    def width(self) -> float:
        return self.bottom_right.x - self.top_left.x

    @property
    def height(self) -> float:
        return self.bottom_right.y - self.top_left.y

    @property
    def area(self) -> float:
        return self.width * self.height

    @property
    def center(self) -> Point:
        return Point(
            x=self.top_left.x + self.width / 2,
            y=self.top_left.y + self.height / 2,
        )

    def iou(self, other: "BoundingBox") -> float:
        """Intersection over union with another box (0 when disjoint)."""
        left = max(self.top_left.x, other.top_left.x)
        top = max(self.top_left.y, other.top_left.y)
        right = min(self.bottom_right.x, other.bottom_right.x)
        bottom = min(self.bottom_right.y, other.bottom_right.y)
        if right <= left or bottom <= top:
            return 0.0
        intersection = (right - left) * (bottom - top)
        return intersection / (self.area + other.area - intersection)


# ---- Annotation ----

class Annotation(BaseModel):
    """
    A single teachable unit tied to a region of a bird image.

    Consumed read-only by the exercise engine.
    """
    id: str = Field(..., min_length=1)
    image_id: str = Field(..., min_length=1)
    bounding_box: BoundingBox
    category: AnnotationCategory
    spanish_term: str = Field(..., description="Spanish vocabulary term, e.g. 'el pico'")
    english_term: str = Field(..., description="English translation, e.g. 'beak'")
    pronunciation: Optional[str] = Field(default=None, description="Pronunciation guide, e.g. 'el PEE-koh'")
    difficulty_level: int = Field(default=1, ge=1, le=5)
    is_visible: bool = True
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        use_enum_values = True
        frozen = True

    @field_validator("spanish_term", "english_term")
    @classmethod
    def _non_empty(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("term must not be empty")
        return value


# ---- Answer keys (one closed shape per exercise kind) ----

class TargetPartKey(BaseModel):
    target_part: str


class OptionKey(BaseModel):
    correct_option_id: str


class TermPair(BaseModel):
    spanish: str
    english: str


class PairsKey(BaseModel):
    correct_pairs: list[TermPair]


class TermKey(BaseModel):
    correct_answer: str


class OrderKey(BaseModel):
    correct_order: list[str]


class IndexKey(BaseModel):
    correct_index: int


class ClickKey(BaseModel):
    target_box: BoundingBox
    tolerance: float = Field(..., gt=0.0)


class BoxKey(BaseModel):
    target_box: BoundingBox
    min_overlap: float = Field(..., gt=0.0, le=1.0)


class CategoryKey(BaseModel):
    assignments: dict[str, str] = Field(..., description="term id -> category id")


# ---- Exercise payloads ----

class ExerciseOption(BaseModel):
    """A selectable option; id is what the learner submits."""
    id: str
    text: str
    hint: Optional[str] = None
    image_id: Optional[str] = None


class SortingCategory(BaseModel):
    id: str
    label: str


class ExerciseBase(BaseModel):
    id: str
    instructions: str
    prompt: str = ""
    annotation_id: Optional[str] = Field(default=None, description="Source annotation, if any")
    created_at: datetime = Field(default_factory=_utcnow)


class VisualIdentificationExercise(ExerciseBase):
    type: Literal["visual_identification"] = "visual_identification"
    image_id: str
    target_term: str
    pronunciation: Optional[str] = None
    tip: str = ""
    answer_key: TargetPartKey


class VisualDiscriminationExercise(ExerciseBase):
    type: Literal["visual_discrimination"] = "visual_discrimination"
    target_term: str
    options: list[ExerciseOption]
    cultural_note: str = ""
    answer_key: OptionKey


class AudioRecognitionExercise(ExerciseBase):
    type: Literal["audio_recognition"] = "audio_recognition"
    audio_text: str
    pronunciation: Optional[str] = None
    options: list[ExerciseOption]
    answer_key: OptionKey


class TermMatchingExercise(ExerciseBase):
    type: Literal["term_matching"] = "term_matching"
    category: str
    spanish_terms: list[str]
    english_terms: list[str]
    answer_key: PairsKey


class ContextualFillExercise(ExerciseBase):
    type: Literal["contextual_fill"] = "contextual_fill"
    sentence: str
    context: str = ""
    grammar_note: str = ""
    options: list[str]
    answer_key: TermKey


class SentenceBuildingExercise(ExerciseBase):
    type: Literal["sentence_building"] = "sentence_building"
    scrambled_words: list[str]
    translation: str
    template: str
    answer_key: OrderKey


class CulturalContextExercise(ExerciseBase):
    type: Literal["cultural_context"] = "cultural_context"
    options: list[str]
    explanation: str = ""
    cultural_note: str = ""
    answer_key: IndexKey


class SpatialIdentificationExercise(ExerciseBase):
    type: Literal["spatial_identification"] = "spatial_identification"
    image_id: str
    target_term: str
    answer_key: ClickKey


class BoundingBoxDrawingExercise(ExerciseBase):
    type: Literal["bounding_box_drawing"] = "bounding_box_drawing"
    image_id: str
    target_term: str
    answer_key: BoxKey


class ComparativeAnalysisExercise(ExerciseBase):
    type: Literal["comparative_analysis"] = "comparative_analysis"
    compare_feature: str
    options: list[ExerciseOption]
    explanation: str = ""
    answer_key: OptionKey


class AnnotationSequencingExercise(ExerciseBase):
    type: Literal["annotation_sequencing"] = "annotation_sequencing"
    image_id: str
    sequence_type: str = "spatial_vertical"
    items: list[ExerciseOption]
    answer_key: OrderKey


class CategorySortingExercise(ExerciseBase):
    type: Literal["category_sorting"] = "category_sorting"
    terms: list[ExerciseOption]
    categories: list[SortingCategory]
    answer_key: CategoryKey


Exercise = Annotated[
    Union[
        VisualIdentificationExercise,
        VisualDiscriminationExercise,
        AudioRecognitionExercise,
        TermMatchingExercise,
        ContextualFillExercise,
        SentenceBuildingExercise,
        CulturalContextExercise,
        SpatialIdentificationExercise,
        BoundingBoxDrawingExercise,
        ComparativeAnalysisExercise,
        AnnotationSequencingExercise,
        CategorySortingExercise,
    ],
    Field(discriminator="type"),
]

EXERCISE_ADAPTER: TypeAdapter = TypeAdapter(Exercise)


def exercise_to_payload(exercise: Exercise) -> dict:
    """Serialize an exercise to a JSON-compatible tagged dict."""
    return exercise.model_dump(mode="json")


def exercise_from_payload(payload: dict) -> Exercise:
    """Rebuild an exercise from its transport payload."""
    return EXERCISE_ADAPTER.validate_python(payload)


# ---- Submissions and results ----

AnswerValue = Union[
    StrictInt,
    StrictFloat,
    StrictStr,
    list[StrictStr],
    dict[str, StrictStr],
    Point,
    BoundingBox,
]


class ExerciseSubmission(BaseModel):
    """A learner's answer tagged to an exercise id."""
    exercise_id: str
    answer: AnswerValue


def parse_submission(payload: dict) -> ExerciseSubmission:
    """
    Validate a raw submission payload.

    Raises:
        InvalidSubmissionError: If the payload does not match any answer shape
    """
    try:
        return ExerciseSubmission.model_validate(payload)
    except ValidationError as exc:
        raise InvalidSubmissionError(f"Malformed submission: {exc.error_count()} error(s)") from exc


class ResultMetadata(BaseModel):
    """Per-type grading details."""
    click_distance: Optional[float] = None
    iou: Optional[float] = None
    matched_pairs: Optional[int] = None
    total_pairs: Optional[int] = None
    correct_positions: Optional[int] = None
    categories_correct: Optional[int] = None
    total_terms: Optional[int] = None


class ExerciseResult(BaseModel):
    """Outcome of grading one submission."""
    exercise_id: str
    exercise_type: ExerciseType
    annotation_id: Optional[str] = None
    correct: bool
    score: float = Field(..., ge=0.0, le=1.0)
    elapsed_ms: Optional[int] = Field(default=None, ge=0)
    attempts: int = Field(default=1, ge=1)
    hints_used: int = Field(default=0, ge=0)
    feedback: str = ""
    metadata: ResultMetadata = Field(default_factory=ResultMetadata)
    completed_at: datetime = Field(default_factory=_utcnow)

    class Config:
        use_enum_values = True
