"""Models produced by document analysis and prompt composition."""

from __future__ import annotations

from pydantic import BaseModel, Field

from app.modules.flashcards.models.cards import DifficultyLevel, Vibe


class SectionHint(BaseModel):
    """Short preview of one paragraph-delimited section of the source."""

    index: int
    label: str
    preview: str

    def render(self) -> str:
        return f"{self.label}: {self.preview}"


class DocumentAnalysis(BaseModel):
    word_count: int
    sentence_count: int
    avg_word_length: float
    avg_sentence_length: float
    complexity_score: float
    sections: list[SectionHint] = Field(default_factory=list)
    inferred_difficulty: DifficultyLevel
    card_target: int


class PromptSpec(BaseModel):
    """Everything one generation call needs; lives for a single request."""

    system_prompt: str
    user_message: str
    card_count: int
    target_difficulty: DifficultyLevel
    vibe: Vibe
    section_hints: list[SectionHint] = Field(default_factory=list)
