"""Wrap validated cards into a deck value ready for persistence."""

from __future__ import annotations

from app.modules.flashcards.models.cards import (
    Card,
    DeckDraft,
    DifficultyLevel,
    Vibe,
)

TITLE_WORDS = 6
FALLBACK_TITLE = "Untitled Deck"


def derive_title(source_text: str, cards: list[Card]) -> str:
    words = (source_text or "").split()
    if words:
        title = " ".join(words[:TITLE_WORDS])
        return title + "..." if len(words) > TITLE_WORDS else title
    if cards and cards[0].hook.strip():
        return cards[0].hook.strip()
    return FALLBACK_TITLE


def assemble(
    source_text: str,
    cards: list[Card],
    *,
    vibe: Vibe,
    difficulty: DifficultyLevel,
) -> DeckDraft:
    return DeckDraft(
        title=derive_title(source_text, cards),
        description=f"Generated from text with {vibe.value} vibe",
        vibe=vibe,
        difficulty=difficulty,
        cards=list(cards),
    )
