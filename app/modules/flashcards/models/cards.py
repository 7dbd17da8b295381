"""Pydantic models for generated study cards and decks.

Cards travel over the wire in camelCase (``isQuiz``, ``quizOptions``...) to
match what the generation provider and the rendering layer exchange; Python
code uses the snake_case attribute names.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Annotated, Any, Literal, Union

from pydantic import (
    BaseModel,
    ConfigDict,
    Discriminator,
    Field,
    Tag,
    model_validator,
)
from pydantic.alias_generators import to_camel


class DifficultyLevel(str, Enum):
    BEGINNER = "beginner"
    INTERMEDIATE = "intermediate"
    ADVANCED = "advanced"

    @property
    def rank(self) -> int:
        return _DIFFICULTY_RANK[self]


_DIFFICULTY_RANK = {
    DifficultyLevel.BEGINNER: 0,
    DifficultyLevel.INTERMEDIATE: 1,
    DifficultyLevel.ADVANCED: 2,
}


class DifficultyMode(str, Enum):
    """Difficulty selector; ``auto`` means infer it from the source text."""

    AUTO = "auto"
    BEGINNER = "beginner"
    INTERMEDIATE = "intermediate"
    ADVANCED = "advanced"

    def resolve(self, inferred: DifficultyLevel) -> DifficultyLevel:
        if self is DifficultyMode.AUTO:
            return inferred
        return DifficultyLevel(self.value)


class Vibe(str, Enum):
    KID = "kid"
    STUDENT = "student"
    PRO = "pro"


class SourceOrigin(str, Enum):
    PASTED = "pasted"
    URL = "url"


class SourceText(BaseModel):
    content: str
    origin: SourceOrigin = SourceOrigin.PASTED


class _CardBase(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: str
    hook: str
    meat: str
    category: str
    difficulty: DifficultyLevel


class ConceptCard(_CardBase):
    """Explains one idea: headline hook, core explanation, plain restatement."""

    is_quiz: Literal[False] = False
    simplified: str | None = None


class QuizCard(_CardBase):
    """Closing multiple-choice check for a deck."""

    is_quiz: Literal[True] = True
    hook: str = "Quick Check"
    meat: str = "Test your understanding of this deck."
    category: str = "Quiz"
    quiz_question: str
    quiz_options: list[str]
    quiz_answer: int

    @model_validator(mode="after")
    def _answer_in_range(self) -> "QuizCard":
        if len(self.quiz_options) < 2:
            raise ValueError("quiz card needs at least two options")
        if not 0 <= self.quiz_answer < len(self.quiz_options):
            raise ValueError(
                f"quizAnswer {self.quiz_answer} is not an index into "
                f"{len(self.quiz_options)} options"
            )
        return self


def _card_kind(value: Any) -> str:
    if isinstance(value, dict):
        flag = value.get("isQuiz", value.get("is_quiz", False))
    else:
        flag = getattr(value, "is_quiz", False)
    return "quiz" if flag is True else "concept"


Card = Annotated[
    Union[
        Annotated[ConceptCard, Tag("concept")],
        Annotated[QuizCard, Tag("quiz")],
    ],
    Discriminator(_card_kind),
]


class DeckDraft(BaseModel):
    """A generated deck, not yet persisted (no id, no timestamps)."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    title: str
    description: str
    vibe: Vibe
    difficulty: DifficultyLevel
    cards: list[Card] = Field(default_factory=list)

    @property
    def quiz(self) -> QuizCard | None:
        if self.cards and isinstance(self.cards[-1], QuizCard):
            return self.cards[-1]
        return None


class DeckRecord(DeckDraft):
    """A deck as stored for one owner."""

    id: str
    owner_id: str
    created_at: datetime | None = None
    updated_at: datetime | None = None
