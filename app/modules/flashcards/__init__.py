"""Flashcards module exports."""

from .models.cards import (
    Card,
    ConceptCard,
    DeckDraft,
    DifficultyLevel,
    DifficultyMode,
    QuizCard,
    SourceOrigin,
    SourceText,
    Vibe,
)
from .errors import (
    DeckValidationError,
    FetchError,
    FlashcardsError,
    GenerationError,
    InputError,
)
from .generator import GenerationClient
from .main import DeckGenerator, GenerationOutcome, PipelineStage

__all__ = [
    "Card",
    "ConceptCard",
    "DeckDraft",
    "DifficultyLevel",
    "DifficultyMode",
    "QuizCard",
    "SourceOrigin",
    "SourceText",
    "Vibe",
    "DeckValidationError",
    "FetchError",
    "FlashcardsError",
    "GenerationError",
    "InputError",
    "GenerationClient",
    "DeckGenerator",
    "GenerationOutcome",
    "PipelineStage",
]
