"""
Immutable configuration bundle injected into selectors and synthesizers.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Mapping

from aves.exercises import constants


@dataclass(frozen=True)
class ExerciseCatalog:
    """
    Static tables one learner session generates exercises from.

    Swap a field (e.g. a shorter trivia table in tests) with
    dataclasses.replace(DEFAULT_CATALOG, ...).
    """
    types_by_level: Mapping[int, tuple[str, ...]] = field(default_factory=lambda: constants.TYPES_BY_LEVEL)
    body_part_by_term: Mapping[str, str] = field(default_factory=lambda: constants.BODY_PART_BY_TERM)
    default_body_part: str = constants.DEFAULT_BODY_PART
    idiom_by_term: Mapping[str, str] = field(default_factory=lambda: constants.IDIOM_BY_TERM)
    default_idiom: str = constants.DEFAULT_IDIOM
    context_sentences: tuple[constants.ContextSentence, ...] = constants.CONTEXT_SENTENCES
    adjectives: Mapping[str, str] = field(default_factory=lambda: constants.ADJECTIVES)
    colors: Mapping[str, str] = field(default_factory=lambda: constants.COLORS)
    cultural_items: tuple[constants.CulturalItem, ...] = constants.CULTURAL_ITEMS
    category_labels: Mapping[str, str] = field(default_factory=lambda: constants.CATEGORY_LABELS)
    comparison_prompts: Mapping[str, str] = field(default_factory=lambda: constants.COMPARISON_PROMPTS)
    default_comparison_prompt: str = constants.DEFAULT_COMPARISON_PROMPT
    positive_feedback: tuple[str, ...] = constants.POSITIVE_FEEDBACK

    def types_for_level(self, level: int) -> tuple[str, ...]:
        """Candidate types for a level, clamping out-of-range levels."""
        levels = sorted(self.types_by_level)
        clamped = max(levels[0], min(levels[-1], level))
        return self.types_by_level[clamped]

    def body_part_for(self, spanish_term: str) -> str:
        return self.body_part_by_term.get(spanish_term.lower(), self.default_body_part)

    def idiom_for(self, spanish_term: str) -> str:
        return self.idiom_by_term.get(spanish_term.lower(), self.default_idiom)

    def comparison_prompt_for(self, feature: str) -> str:
        return self.comparison_prompts.get(feature, self.default_comparison_prompt)


DEFAULT_CATALOG = ExerciseCatalog()
