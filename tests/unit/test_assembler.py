"""
Unit tests for deck assembly.
"""

from app.modules.flashcards.assembler import assemble, derive_title
from app.modules.flashcards.generator import validate_cards
from app.modules.flashcards.models.cards import DifficultyLevel, QuizCard, Vibe


def test_title_from_first_six_words():
    assert derive_title("Plants use light energy to make sugar.", []) == (
        "Plants use light energy to make..."
    )


def test_short_source_title_has_no_ellipsis():
    assert derive_title("Photosynthesis basics", []) == "Photosynthesis basics"


def test_title_falls_back_to_first_hook(cards_payload):
    cards = validate_cards(cards_payload(1), DifficultyLevel.BEGINNER)
    assert derive_title("   ", cards) == "Idea 1"
    assert derive_title("", []) == "Untitled Deck"


def test_assemble_keeps_order_and_metadata(cards_payload):
    cards = validate_cards(cards_payload(5), DifficultyLevel.INTERMEDIATE)
    deck = assemble(
        "Plants use light energy to make sugar from carbon dioxide.",
        cards,
        vibe=Vibe.KID,
        difficulty=DifficultyLevel.INTERMEDIATE,
    )
    assert deck.description == "Generated from text with kid vibe"
    assert deck.vibe is Vibe.KID
    assert [c.id for c in deck.cards] == ["c1", "c2", "c3", "c4", "c5", "q6"]
    assert isinstance(deck.quiz, QuizCard)
    assert deck.quiz.quiz_answer < len(deck.quiz.quiz_options)


def test_deck_serializes_camel_case(cards_payload):
    cards = validate_cards(cards_payload(1), DifficultyLevel.BEGINNER)
    deck = assemble("x", cards, vibe=Vibe.PRO, difficulty=DifficultyLevel.BEGINNER)
    dumped = deck.model_dump(mode="json", by_alias=True)
    assert dumped["cards"][-1]["isQuiz"] is True
    assert dumped["cards"][-1]["quizOptions"] == ["Salt", "Sugar", "Oil", "Iron"]
    assert dumped["cards"][0]["isQuiz"] is False
