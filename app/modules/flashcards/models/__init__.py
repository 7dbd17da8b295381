from .cards import (
    Card,
    ConceptCard,
    DeckDraft,
    DeckRecord,
    DifficultyLevel,
    DifficultyMode,
    QuizCard,
    SourceOrigin,
    SourceText,
    Vibe,
)
from .analysis import DocumentAnalysis, PromptSpec, SectionHint

__all__ = [
    "Card",
    "ConceptCard",
    "DeckDraft",
    "DeckRecord",
    "DifficultyLevel",
    "DifficultyMode",
    "QuizCard",
    "SourceOrigin",
    "SourceText",
    "Vibe",
    "DocumentAnalysis",
    "PromptSpec",
    "SectionHint",
]
