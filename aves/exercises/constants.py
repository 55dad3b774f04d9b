"""
Static pedagogical tables for exercise selection and synthesis.

Everything here is immutable; sessions receive these tables through an
ExerciseCatalog rather than reading module globals directly.
"""

from __future__ import annotations

from dataclasses import dataclass
from types import MappingProxyType
from typing import Final, Mapping

from aves.schemas import ExerciseType


# ---- Proficiency levels ----

MIN_LEVEL: Final[int] = 1
MAX_LEVEL: Final[int] = 3
HISTORY_SIZE: Final[int] = 2  # Recent types excluded from the next pick

RAISE_LEVEL_ACCURACY: Final[float] = 0.8  # Strictly above -> level up
LOWER_LEVEL_ACCURACY: Final[float] = 0.5  # Strictly below -> level down

TYPES_BY_LEVEL: Final[Mapping[int, tuple[str, ...]]] = MappingProxyType({
    1: (
        ExerciseType.VISUAL_IDENTIFICATION.value,
        ExerciseType.VISUAL_DISCRIMINATION.value,
    ),
    2: (
        ExerciseType.TERM_MATCHING.value,
        ExerciseType.AUDIO_RECOGNITION.value,
        ExerciseType.CONTEXTUAL_FILL.value,
    ),
    3: (
        ExerciseType.SENTENCE_BUILDING.value,
        ExerciseType.CULTURAL_CONTEXT.value,
    ),
})


# ---- Synthesis minimums ----

OPTION_COUNT: Final[int] = 4          # Correct answer + 3 distractors
TERM_MATCHING_SIZE: Final[int] = 4
COMPARATIVE_SIZE: Final[int] = 3
SEQUENCING_MIN: Final[int] = 4
SEQUENCING_MAX: Final[int] = 5
SORTING_MIN_CATEGORIES: Final[int] = 2
SORTING_MIN_PER_CATEGORY: Final[int] = 2
SORTING_MAX_CATEGORIES: Final[int] = 3
SORTING_MAX_PER_CATEGORY: Final[int] = 3

# Spatial grading: tolerance shrinks as difficulty grows (1 -> 0.25, 5 -> 0.05)
BASE_CLICK_TOLERANCE: Final[float] = 0.30
TOLERANCE_STEP: Final[float] = 0.05
MIN_BOX_OVERLAP: Final[float] = 0.5


# ---- Visual identification ----

DEFAULT_BODY_PART: Final[str] = "beak"

BODY_PART_BY_TERM: Final[Mapping[str, str]] = MappingProxyType({
    "el pico": "beak",
    "las patas": "legs",
    "las alas": "wings",
    "las garras": "talons",
    "los ojos": "eyes",
    "el cuello": "neck",
    "las plumas": "feathers",
    "la cola": "tail",
    "el pecho": "breast",
})

IDIOM_BY_TERM: Final[Mapping[str, str]] = MappingProxyType({
    "el pico": 'Expression: "Cerrar el pico" means to be quiet',
    "las patas": 'Saying: "Meter la pata" means to make a mistake',
    "las alas": 'Phrase: "Dar alas" means to encourage someone',
    "los ojos": 'Expression: "Vista de águila" means sharp vision',
})
DEFAULT_IDIOM: Final[str] = "Spanish has many bird-related expressions"


# ---- Contextual fill ----

@dataclass(frozen=True)
class ContextSentence:
    text: str  # Contains exactly one "___"
    context: str
    grammar: str


CONTEXT_SENTENCES: Final[tuple[ContextSentence, ...]] = (
    ContextSentence("El ___ del pájaro es muy característico.", "describing features", "Noun-adjective agreement"),
    ContextSentence("Mira cómo el pájaro usa su ___ para comer.", "observing behavior", 'Possessive "su" (his/her/its)'),
    ContextSentence("Los ___ son importantes para identificar esta especie.", "scientific identification", "Plural forms"),
    ContextSentence("Este pájaro tiene un ___ muy hermoso.", "aesthetic observation", "Indefinite article + noun"),
    ContextSentence("¿Has visto el ___ de ese pájaro?", "asking questions", 'Question formation with "¿Has visto...?"'),
    ContextSentence("El ___ ayuda al pájaro a volar mejor.", "explaining function", "Verb + infinitive construction"),
    ContextSentence("Sin su ___, el pájaro no podría sobrevivir.", "expressing necessity", 'Conditional tense + "podría"'),
    ContextSentence("Me gusta observar el ___ cuando el pájaro descansa.", "personal preference", '"Me gusta" + infinitive'),
    ContextSentence("Podemos identificar el pájaro por su ___.", "identification method", '"Por" indicating means/method'),
    ContextSentence("Los científicos miden el ___ para estudiar la salud del pájaro.", "scientific research", "Third person plural verb form"),
)


# ---- Sentence building ----

BIRD_WORD: Final[str] = "pájaro"

ADJECTIVES: Final[Mapping[str, str]] = MappingProxyType({
    "grande": "large",
    "pequeño": "small",
    "largo": "long",
    "corto": "short",
    "fuerte": "strong",
    "delicado": "delicate",
})

COLORS: Final[Mapping[str, str]] = MappingProxyType({
    "rojo": "red",
    "azul": "blue",
    "verde": "green",
    "amarillo": "yellow",
    "negro": "black",
    "blanco": "white",
    "gris": "gray",
    "marrón": "brown",
})


# ---- Cultural context ----

@dataclass(frozen=True)
class CulturalItem:
    question: str
    options: tuple[str, ...]
    correct: int
    explanation: str
    cultural: str


CULTURAL_ITEMS: Final[tuple[CulturalItem, ...]] = (
    CulturalItem(
        "¿Por qué los flamencos son rosados?",
        ("Por su dieta de camarones", "Por el sol", "Por el agua salada", "Por sus genes"),
        0,
        "Flamingos get their pink color from carotenoids in the shrimp and algae they eat.",
        "In Spanish culture, flamingos symbolize grace and beauty.",
    ),
    CulturalItem(
        "¿Dónde anidan las cigüeñas en España?",
        ("En los árboles", "En los campanarios de las iglesias", "En las cuevas", "En el suelo"),
        1,
        "Storks traditionally nest on church bell towers in Spain.",
        "Stork nests on churches are considered good luck in Spanish villages.",
    ),
    CulturalItem(
        "¿Cuál es el ave nacional de España?",
        ("El águila imperial ibérica", "El gorrión", "La paloma", "El buitre"),
        0,
        "The Spanish Imperial Eagle is a critically endangered species endemic to Spain.",
        "This majestic bird represents Spanish pride in conservation efforts.",
    ),
    CulturalItem(
        "¿Por qué migran muchas aves a España en invierno?",
        ("Por el clima templado mediterráneo", "Por las montañas", "Por las playas", "Por las ciudades grandes"),
        0,
        "Spain's mild Mediterranean climate provides ideal winter conditions for migratory birds.",
        "The Strait of Gibraltar is one of the world's most important bird migration routes.",
    ),
    CulturalItem(
        "¿Qué significa cuando un búho canta cerca de tu casa?",
        ("Mala suerte según tradiciones antiguas", "Buena suerte", "Va a llover", "Alguien va a visitarte"),
        0,
        "In Spanish folklore, owl calls near homes were traditionally considered omens.",
        "Modern Spain celebrates owls for pest control and ecological importance.",
    ),
    CulturalItem(
        "¿Cuál es la función principal del pico del colibrí?",
        ("Alcanzar el néctar de las flores", "Defenderse de predadores", "Construir nidos", "Atraer pareja"),
        0,
        "Hummingbird beaks are specially adapted to reach nectar deep inside flowers.",
        "Though rare in Spain, hummingbirds are studied for biomimicry in Spanish engineering.",
    ),
    CulturalItem(
        "¿Por qué los loros pueden imitar la voz humana?",
        (
            "Tienen un órgano vocal especial llamado siringe",
            "Tienen cuerdas vocales como humanos",
            "Usan el pico para hacer sonidos",
            "Es un instinto natural",
        ),
        0,
        "Parrots have a unique vocal organ called the syrinx that allows complex sound production.",
        "Talking parrots have been popular pets in Spanish households for centuries.",
    ),
    CulturalItem(
        "¿Cuál es el ave más pequeña del mundo?",
        ("El colibrí zunzuncito", "El gorrión", "El petirrojo", "El canario"),
        0,
        "The Bee Hummingbird (zunzuncito) is the world's smallest bird at about 5 cm long.",
        "Spanish scientists study miniaturization through hummingbird anatomy.",
    ),
    CulturalItem(
        "¿Qué ave es símbolo de paz en la cultura española?",
        ("La paloma blanca", "El águila", "El gorrión", "La golondrina"),
        0,
        "The white dove has been a universal symbol of peace, prominently used in Spanish art.",
        "Picasso's dove became an iconic peace symbol, deeply rooted in Spanish culture.",
    ),
    CulturalItem(
        "¿Por qué las aves tienen plumas y no pelo?",
        (
            "Las plumas son mejores para volar y aislamiento",
            "Las plumas son más bonitas",
            "El pelo es muy pesado",
            "Las aves son reptiles",
        ),
        0,
        "Feathers provide insulation, waterproofing, and the aerodynamic properties needed for flight.",
        "Spanish textile designers study feather structure for innovative materials.",
    ),
)


# ---- Analytic variants ----

CATEGORY_LABELS: Final[Mapping[str, str]] = MappingProxyType({
    "anatomical": "Anatómico",
    "behavioral": "Comportamiento",
    "color": "Color",
    "pattern": "Patrón",
    "habitat": "Hábitat",
})

COMPARISON_PROMPTS: Final[Mapping[str, str]] = MappingProxyType({
    "color": "¿Qué pájaro muestra {term}?",
    "anatomical": "¿Qué pájaro tiene {term} más prominente?",
    "pattern": "¿Qué pájaro muestra el patrón de {term}?",
})
DEFAULT_COMPARISON_PROMPT: Final[str] = "¿Qué imagen muestra {term}?"


# ---- Feedback ----

POSITIVE_FEEDBACK: Final[tuple[str, ...]] = (
    "¡Excelente! Excellent work!",
    "¡Muy bien! Very good!",
    "¡Perfecto! Perfect!",
    "¡Fantástico! Fantastic!",
    "¡Increíble! Amazing!",
)
