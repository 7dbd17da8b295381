"""
Unit tests for prompt composition.
"""

import pytest

from app.modules.flashcards.analyzer import build_section_hints
from app.modules.flashcards.models.cards import DifficultyLevel, Vibe
from app.modules.flashcards.prompts import VIBE_DIRECTIVES, compose


@pytest.fixture
def hints():
    return build_section_hints(["Light reactions happen first.", "Then the Calvin cycle."])


def test_count_and_order_are_in_system_prompt(hints):
    spec = compose("source", Vibe.STUDENT, 6, DifficultyLevel.INTERMEDIATE, hints)
    assert spec.card_count == 6
    assert "EXACTLY 6 cards" in spec.system_prompt
    assert "Cards 1 to 5 are concept cards" in spec.system_prompt
    assert "The LAST card (card 6) is always the quiz" in spec.system_prompt


def test_difficulty_center_of_gravity(hints):
    spec = compose("source", Vibe.PRO, 6, DifficultyLevel.ADVANCED, hints)
    assert "Use advanced as the center of gravity" in spec.system_prompt
    assert spec.target_difficulty is DifficultyLevel.ADVANCED


@pytest.mark.parametrize("vibe", list(Vibe))
def test_vibe_directive_is_used(vibe, hints):
    spec = compose("source", vibe, 6, DifficultyLevel.BEGINNER, hints)
    assert VIBE_DIRECTIVES[vibe] in spec.system_prompt
    assert spec.vibe is vibe


def test_schema_demands_wrapped_json(hints):
    spec = compose("source", Vibe.KID, 6, DifficultyLevel.BEGINNER, hints)
    assert '{"cards": [...]}' in spec.system_prompt
    assert "quizAnswer" in spec.system_prompt


def test_user_message_has_source_and_coverage(hints):
    spec = compose("Plants make sugar.", Vibe.STUDENT, 6, DifficultyLevel.BEGINNER, hints)
    assert spec.user_message.startswith("Source text:\nPlants make sugar.")
    assert "Section 1: Light reactions happen first." in spec.user_message
    assert "Section 2: Then the Calvin cycle." in spec.user_message
    assert "merge adjacent sections" in spec.user_message
    assert spec.user_message.endswith("Remember: exactly 6 cards, quiz card last.")


def test_no_coverage_block_without_sections():
    spec = compose("text", Vibe.STUDENT, 6, DifficultyLevel.BEGINNER, [])
    assert "Coverage targets" not in spec.user_message
    assert spec.section_hints == []
