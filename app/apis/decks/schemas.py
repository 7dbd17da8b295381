from __future__ import annotations

from pydantic import BaseModel, Field

from app.core.db.schemas.decks import CompletionAction
from app.modules.flashcards.models.analysis import DocumentAnalysis
from app.modules.flashcards.models.cards import (
    DeckDraft,
    DeckRecord,
    DifficultyMode,
    Vibe,
)


class GenerateDeckRequest(BaseModel):
    text: str = Field(..., description="Pasted source text")
    vibe: Vibe = Vibe.STUDENT
    difficulty: DifficultyMode = DifficultyMode.AUTO
    save: bool = True


class ImportUrlRequest(BaseModel):
    url: str = Field(..., description="Page to import the source text from")
    vibe: Vibe = Vibe.STUDENT
    difficulty: DifficultyMode = DifficultyMode.AUTO
    save: bool = True


class AnalysisSummary(BaseModel):
    word_count: int
    section_count: int
    complexity_score: float
    inferred_difficulty: str
    card_target: int

    @classmethod
    def from_analysis(cls, analysis: DocumentAnalysis) -> "AnalysisSummary":
        return cls(
            word_count=analysis.word_count,
            section_count=len(analysis.sections),
            complexity_score=analysis.complexity_score,
            inferred_difficulty=analysis.inferred_difficulty.value,
            card_target=analysis.card_target,
        )


class GenerateDeckResponse(BaseModel):
    success: bool
    message: str
    stage: str
    failed_stage: str | None = None
    deck: DeckDraft | None = None
    deck_id: str | None = None
    saved: bool = False
    analysis: AnalysisSummary | None = None


class DeckSummary(BaseModel):
    id: str
    title: str
    description: str
    vibe: str
    difficulty: str
    card_count: int
    created_at: str | None = None

    @classmethod
    def from_record(cls, record: DeckRecord) -> "DeckSummary":
        return cls(
            id=record.id,
            title=record.title,
            description=record.description,
            vibe=record.vibe.value,
            difficulty=record.difficulty.value,
            card_count=len(record.cards),
            created_at=record.created_at.isoformat() if record.created_at else None,
        )


class RenameDeckRequest(BaseModel):
    title: str = Field(..., min_length=1, max_length=200)


class CompletionRequest(BaseModel):
    action: CompletionAction
