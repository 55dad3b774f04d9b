"""Shared fixtures: annotation factories, pools, seeded randomness and a fixed clock."""

import random
from datetime import datetime, timezone

import pytest

from aves.annotation_pool import AnnotationPool
from aves.schemas import Annotation

NOW = datetime(2024, 3, 1, 12, 0, tzinfo=timezone.utc)


def make_annotation(
    annotation_id,
    spanish,
    english,
    category="anatomical",
    image_id="img-1",
    top=0.1,
    left=0.1,
    size=0.1,
    pronunciation=None,
    difficulty=1,
    is_visible=True,
):
    return Annotation(
        id=annotation_id,
        image_id=image_id,
        bounding_box={
            "top_left": {"x": left, "y": top},
            "bottom_right": {"x": left + size, "y": top + size},
        },
        category=category,
        spanish_term=spanish,
        english_term=english,
        pronunciation=pronunciation,
        difficulty_level=difficulty,
        is_visible=is_visible,
    )


@pytest.fixture
def annotation_factory():
    return make_annotation


@pytest.fixture
def rng():
    return random.Random(42)


@pytest.fixture
def now():
    return NOW


@pytest.fixture
def bird_annotations():
    """Five anatomical parts, three colors on separate images and one behavior."""
    return [
        make_annotation("a1", "el pico", "beak", top=0.10, pronunciation="el PEE-koh"),
        make_annotation("a2", "las alas", "wings", top=0.30, pronunciation="lahs AH-lahs"),
        make_annotation("a3", "la cola", "tail", top=0.50, pronunciation="lah KOH-lah"),
        make_annotation("a4", "las patas", "legs", top=0.70, pronunciation="lahs PAH-tahs"),
        make_annotation("a5", "los ojos", "eyes", image_id="img-2", top=0.05,
                        pronunciation="lohs OH-hohs", difficulty=2),
        make_annotation("a6", "rojo", "red", category="color", image_id="img-2", top=0.40),
        make_annotation("a7", "amarillo", "yellow", category="color", image_id="img-3", top=0.20),
        make_annotation("a8", "azul", "blue", category="color", image_id="img-4", top=0.30),
        make_annotation("a9", "volar", "flying", category="behavioral", image_id="img-3", top=0.60),
    ]


@pytest.fixture
def bird_pool(bird_annotations):
    return AnnotationPool(bird_annotations)


@pytest.fixture
def four_part_pool():
    """The pico / ala / cola / pata pool: four anatomical terms on one image."""
    return AnnotationPool([
        make_annotation("p1", "el pico", "beak", top=0.10),
        make_annotation("p2", "el ala", "wing", top=0.30),
        make_annotation("p3", "la cola", "tail", top=0.50),
        make_annotation("p4", "la pata", "leg", top=0.70),
    ])
