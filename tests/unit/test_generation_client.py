"""
Unit tests for response parsing and the pydantic-ai generation client.

Provider calls are driven by pydantic-ai's FunctionModel; nothing leaves the
process.
"""

import json

import pytest
from pydantic_ai.messages import ModelMessage, ModelResponse
from pydantic_ai.models.function import AgentInfo, FunctionModel

from app.modules.flashcards.errors import DeckValidationError, GenerationError
from app.modules.flashcards.generator import (
    BareArray,
    GenerationClient,
    Unrecognized,
    WrappedCards,
    classify_payload,
    enforce_deck_shape,
    extract_card_payloads,
    parse_response,
    validate_cards,
)
from app.modules.flashcards.models.cards import (
    ConceptCard,
    DifficultyLevel,
    QuizCard,
    Vibe,
)
from app.modules.flashcards.prompts import compose


@pytest.fixture
def spec():
    return compose("Plants make sugar.", Vibe.STUDENT, 6, DifficultyLevel.INTERMEDIATE, [])


class TestClassifyPayload:
    """Tests for recognizing the provider's response shape."""

    def test_wrapped_object(self, cards_payload):
        payload = classify_payload(json.dumps({"cards": cards_payload(2)}))
        assert isinstance(payload, WrappedCards)
        assert len(payload.items) == 3

    def test_bare_array(self, cards_payload):
        payload = classify_payload(json.dumps(cards_payload(2)))
        assert isinstance(payload, BareArray)
        assert len(payload.items) == 3

    def test_code_fences_are_stripped(self, cards_payload):
        raw = "```json\n" + json.dumps({"cards": cards_payload(1)}) + "\n```"
        assert isinstance(classify_payload(raw), WrappedCards)

    @pytest.mark.parametrize(
        "raw",
        ["not json at all", '{"cards": [', '{"deck": []}', '"just a string"', "42", ""],
    )
    def test_unrecognized(self, raw):
        assert isinstance(classify_payload(raw), Unrecognized)

    def test_extract_tolerates_all_shapes(self, cards_payload):
        items = cards_payload(2)
        assert extract_card_payloads(json.dumps({"cards": items})) == items
        assert extract_card_payloads(json.dumps(items)) == items
        assert extract_card_payloads("{oops") == []


class TestValidateCards:
    """Tests for per-card validation and coercion."""

    def test_valid_cards(self, cards_payload):
        cards = validate_cards(cards_payload(2), DifficultyLevel.BEGINNER)
        assert [type(c) for c in cards] == [ConceptCard, ConceptCard, QuizCard]
        assert cards[-1].quiz_options[cards[-1].quiz_answer] == "Sugar"

    def test_missing_and_numeric_ids(self, cards_payload):
        items = cards_payload(2)
        del items[0]["id"]
        items[1]["id"] = 7
        cards = validate_cards(items, DifficultyLevel.BEGINNER)
        assert cards[0].id == "card-1"
        assert cards[1].id == "7"

    def test_unknown_difficulty_falls_back(self, cards_payload):
        items = cards_payload(1, difficulty="expert")
        cards = validate_cards(items, DifficultyLevel.ADVANCED)
        assert cards[0].difficulty is DifficultyLevel.ADVANCED

    def test_string_answer_index_and_flag(self, cards_payload):
        items = cards_payload(0)
        items[0]["quizAnswer"] = "2"
        items[0]["isQuiz"] = "true"
        (card,) = validate_cards(items, DifficultyLevel.BEGINNER)
        assert isinstance(card, QuizCard)
        assert card.quiz_answer == 2

    def test_snake_case_flag_is_accepted(self, cards_payload):
        items = cards_payload(0)
        items[0]["is_quiz"] = items[0].pop("isQuiz")
        (card,) = validate_cards(items, DifficultyLevel.BEGINNER)
        assert isinstance(card, QuizCard)

    def test_invalid_cards_are_dropped(self, cards_payload):
        items = cards_payload(2)
        items[-1]["quizAnswer"] = 9
        del items[0]["meat"]
        items.insert(0, "not a card")
        cards = validate_cards(items, DifficultyLevel.BEGINNER)
        assert [c.id for c in cards] == ["c2"]

    def test_single_option_quiz_is_dropped(self, cards_payload):
        items = cards_payload(0)
        items[0]["quizOptions"] = ["Only", "  "]
        items[0]["quizAnswer"] = 0
        assert validate_cards(items, DifficultyLevel.BEGINNER) == []


class TestEnforceDeckShape:
    """Tests for count trimming and quiz placement."""

    def _cards(self, items):
        return validate_cards(items, DifficultyLevel.INTERMEDIATE)

    def test_extra_concepts_are_trimmed(self, cards_payload):
        cards = enforce_deck_shape(self._cards(cards_payload(9)), 6)
        assert len(cards) == 6
        assert [c.id for c in cards[:5]] == ["c1", "c2", "c3", "c4", "c5"]
        assert isinstance(cards[-1], QuizCard)

    def test_quiz_moves_to_the_end(self, cards_payload):
        items = cards_payload(3)
        items.insert(0, items.pop())
        cards = enforce_deck_shape(self._cards(items), 6)
        assert isinstance(cards[-1], QuizCard)
        assert sum(isinstance(c, QuizCard) for c in cards) == 1

    def test_last_of_several_quizzes_is_kept(self, cards_payload):
        items = cards_payload(2)
        first_quiz = dict(items[-1], id="q-early")
        items.insert(1, first_quiz)
        cards = enforce_deck_shape(self._cards(items), 6)
        assert cards[-1].id == "q3"
        assert all(not c.is_quiz for c in cards[:-1])

    def test_fewer_cards_are_kept(self, cards_payload):
        cards = enforce_deck_shape(self._cards(cards_payload(2)), 6)
        assert len(cards) == 3

    def test_missing_quiz_is_rejected(self, cards_payload):
        with pytest.raises(DeckValidationError):
            enforce_deck_shape(self._cards(cards_payload(4, quiz=False)), 6)

    def test_empty_is_rejected(self):
        with pytest.raises(DeckValidationError):
            enforce_deck_shape([], 6)

    def test_repeated_ids_are_rekeyed(self, cards_payload):
        items = [dict(item, id="1") for item in cards_payload(5)]
        cards = enforce_deck_shape(self._cards(items), 6)
        assert [c.id for c in cards] == ["1", "card-2", "card-3", "card-4", "card-5", "card-6"]
        assert isinstance(cards[-1], QuizCard)

    def test_rekey_skips_ids_already_taken(self, cards_payload):
        items = cards_payload(3)
        items[0]["id"] = "card-2"
        items[1]["id"] = "card-2"
        cards = enforce_deck_shape(self._cards(items), 6)
        ids = [c.id for c in cards]
        assert ids[:2] == ["card-2", "card-2-2"]
        assert len(set(ids)) == len(ids)


class TestParseResponse:
    def test_malformed_json_raises(self, spec):
        with pytest.raises(GenerationError):
            parse_response("Sure! Here are your cards:", spec)

    def test_bare_array_is_accepted(self, spec, cards_payload):
        cards = parse_response(json.dumps(cards_payload(5)), spec)
        assert len(cards) == 6
        assert cards[-1].is_quiz


class TestGenerationClient:
    """Tests for the pydantic-ai backed client."""

    @pytest.mark.asyncio
    async def test_generate_sends_prompts_and_parses(self, spec, cards_payload, recording_model):
        model = recording_model({"cards": cards_payload(5)})
        client = GenerationClient(model.model)

        cards = await client.generate(spec)

        assert len(cards) == 6
        assert isinstance(cards[-1], QuizCard)
        assert model.user_prompts == [spec.user_message]
        assert model.system_prompts == [spec.system_prompt]

    @pytest.mark.asyncio
    async def test_complete_returns_raw_text(self, spec, recording_model):
        client = GenerationClient(recording_model("not json").model)
        assert await client.complete(spec) == "not json"

    @pytest.mark.asyncio
    async def test_provider_failure_becomes_generation_error(self, spec):
        def boom(messages: list[ModelMessage], info: AgentInfo) -> ModelResponse:
            raise RuntimeError("provider unavailable")

        client = GenerationClient(FunctionModel(boom))
        with pytest.raises(GenerationError) as exc:
            await client.complete(spec)
        assert "provider unavailable" in exc.value.detail
        assert exc.value.message == "Failed to generate deck"
