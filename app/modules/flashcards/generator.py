"""Deck generation client using pydantic-ai.

The agent is asked for plain text and the JSON is parsed here rather than
through pydantic-ai structured output: providers disagree on whether they
wrap the card array in an object, and we accept both shapes. Provider imports
are kept lazy to avoid import-time errors when credentials or optional SDKs
are missing.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Union

from pydantic import TypeAdapter, ValidationError
from pydantic_ai import Agent
from pydantic_ai.settings import ModelSettings

from app.core.config import settings
from app.core.logging import get_logger
from app.modules.flashcards.errors import DeckValidationError, GenerationError
from app.modules.flashcards.models.analysis import PromptSpec
from app.modules.flashcards.models.cards import (
    Card,
    ConceptCard,
    DifficultyLevel,
    QuizCard,
)

logger = get_logger(__name__)

OPENROUTER_BASE_URL = "https://openrouter.ai/api/v1"


def _build_groq_model():
    """Build Groq model for pydantic-ai (lazy import)."""
    from pydantic_ai.models.groq import GroqModel
    from pydantic_ai.providers.groq import GroqProvider

    if not settings.groq_api_key:
        raise RuntimeError("Groq API key not configured. Set GROQ_API_KEY in your environment.")
    provider = GroqProvider(api_key=settings.groq_api_key)
    return GroqModel(settings.groq_model, provider=provider)


def _build_google_model():
    """Build Google Gemini model for pydantic-ai (lazy import)."""
    from pydantic_ai.models.google import GoogleModel
    from pydantic_ai.providers.google import GoogleProvider

    provider = GoogleProvider(api_key=settings.gemini_api_key)
    return GoogleModel(settings.gemini_model, provider=provider)


def _build_openrouter_model():
    """Build OpenRouter model via OpenAI-compatible provider (lazy import)."""
    from pydantic_ai.models.openai import OpenAIChatModel
    from pydantic_ai.providers.openai import OpenAIProvider

    if not settings.openrouter_api_key:
        raise RuntimeError(
            "OpenRouter API key not configured. Set OPENROUTER_API_KEY in your environment."
        )

    provider = OpenAIProvider(
        api_key=settings.openrouter_api_key,
        base_url=OPENROUTER_BASE_URL,
    )
    return OpenAIChatModel(settings.openrouter_model, provider=provider)


def build_model_by_settings():
    provider = (settings.model_provider or "groq").lower()
    if provider == "openrouter":
        return _build_openrouter_model()
    if provider == "google":
        return _build_google_model()
    return _build_groq_model()


# Shapes a provider response can take


@dataclass(frozen=True)
class WrappedCards:
    """``{"cards": [...]}``"""

    items: list[Any]


@dataclass(frozen=True)
class BareArray:
    """``[...]``"""

    items: list[Any]


@dataclass(frozen=True)
class Unrecognized:
    reason: str


ProviderPayload = Union[WrappedCards, BareArray, Unrecognized]


def _strip_code_fences(text: str) -> str:
    cleaned = text.strip()
    if cleaned.startswith("```"):
        parts = cleaned.split("\n", 1)
        cleaned = parts[1] if len(parts) > 1 else ""
        cleaned = cleaned.rsplit("```", 1)[0].strip()
    return cleaned


def classify_payload(raw: str) -> ProviderPayload:
    try:
        parsed = json.loads(_strip_code_fences(raw or ""))
    except json.JSONDecodeError as e:
        return Unrecognized(reason=f"response is not JSON: {e}")

    match parsed:
        case {"cards": list() as items}:
            return WrappedCards(items=items)
        case list() as items:
            return BareArray(items=items)
        case dict():
            return Unrecognized(reason=f"object without a cards array (keys: {sorted(parsed)})")
        case _:
            return Unrecognized(reason=f"unexpected JSON type {type(parsed).__name__}")


def extract_card_payloads(raw: str) -> list[Any]:
    """Return the raw card list, or ``[]`` when the response shape is unknown."""
    payload = classify_payload(raw)
    match payload:
        case WrappedCards(items=items) | BareArray(items=items):
            return items
        case Unrecognized(reason=reason):
            logger.warning("Unrecognized generation payload: %s", reason)
            return []


_CARD_ADAPTER: TypeAdapter[Card] = TypeAdapter(Card)
_DIFFICULTIES = {d.value for d in DifficultyLevel}


def _coerce_item(item: dict, position: int, fallback: DifficultyLevel) -> dict:
    data = dict(item)
    if data.get("id") in (None, ""):
        data["id"] = f"card-{position}"
    else:
        data["id"] = str(data["id"])

    if "is_quiz" in data and "isQuiz" not in data:
        data["isQuiz"] = data.pop("is_quiz")
    data["isQuiz"] = data.get("isQuiz") in (True, "true", "True", 1)

    difficulty = str(data.get("difficulty") or "").strip().lower()
    data["difficulty"] = difficulty if difficulty in _DIFFICULTIES else fallback.value

    if data["isQuiz"]:
        data.setdefault("category", "Quiz")
        options = data.get("quizOptions")
        if isinstance(options, list):
            data["quizOptions"] = [str(o).strip() for o in options if str(o).strip()]
        answer = data.get("quizAnswer")
        if isinstance(answer, str) and answer.strip().isdigit():
            data["quizAnswer"] = int(answer)
    else:
        data.setdefault("category", "General")
        if not data.get("simplified"):
            data["simplified"] = None
    return data


def validate_cards(items: list[Any], fallback: DifficultyLevel) -> list[Card]:
    """Validate raw items into cards, dropping the ones that do not fit."""
    cards: list[Card] = []
    for position, item in enumerate(items, start=1):
        if not isinstance(item, dict):
            logger.warning("Dropping card %d: not an object", position)
            continue
        try:
            cards.append(_CARD_ADAPTER.validate_python(_coerce_item(item, position, fallback)))
        except ValidationError as e:
            logger.warning("Dropping card %d: %s", position, e.errors()[0].get("msg"))
    return cards


def _unique_ids(cards: list[Card]) -> list[Card]:
    """Re-key repeated card ids as ``card-{position}`` so every id is unique."""
    seen: set[str] = set()
    out: list[Card] = []
    for position, card in enumerate(cards, start=1):
        if card.id in seen:
            new_id = f"card-{position}"
            suffix = 1
            while new_id in seen:
                suffix += 1
                new_id = f"card-{position}-{suffix}"
            logger.info("Duplicate card id %r re-keyed as %r", card.id, new_id)
            card = card.model_copy(update={"id": new_id})
        seen.add(card.id)
        out.append(card)
    return out


def enforce_deck_shape(cards: list[Card], card_count: int) -> list[Card]:
    """Order cards so exactly one quiz card closes the deck.

    Concept cards keep their order and are capped at ``card_count - 1``; when
    the provider returned several quiz cards only the last one is kept. Card
    ids are made unique within the deck.
    """
    concepts = [c for c in cards if isinstance(c, ConceptCard)]
    quizzes = [c for c in cards if isinstance(c, QuizCard)]
    if not concepts and not quizzes:
        raise DeckValidationError(detail="no usable cards in provider response")
    if not quizzes:
        raise DeckValidationError(detail="provider response has no valid quiz card")
    if len(quizzes) > 1:
        logger.info("Provider returned %d quiz cards; keeping the last", len(quizzes))
    return _unique_ids(concepts[: max(card_count - 1, 0)] + [quizzes[-1]])


def parse_response(raw: str, spec: PromptSpec) -> list[Card]:
    """Turn the provider's raw text into a validated, correctly ordered card list."""
    payload = classify_payload(raw)
    match payload:
        case WrappedCards(items=items) | BareArray(items=items):
            logger.info(
                "Provider returned %d raw cards (%s)", len(items), type(payload).__name__
            )
        case Unrecognized(reason=reason):
            logger.error("Unreadable generation response: %s", reason)
            raise GenerationError(detail=reason)
    cards = validate_cards(items, spec.target_difficulty)
    return enforce_deck_shape(cards, spec.card_count)


class GenerationClient:
    """Single-call client around a pydantic-ai agent.

    Example:
        client = GenerationClient()
        cards = await client.generate(spec)

    A pydantic-ai model can be injected; otherwise one is built from settings
    on every call.
    """

    def __init__(
        self,
        model=None,
        *,
        temperature: float | None = None,
        timeout: float | None = None,
    ) -> None:
        self._model = model
        self.temperature = (
            settings.generation_temperature if temperature is None else temperature
        )
        self.timeout = settings.generation_timeout_seconds if timeout is None else timeout

    def _agent(self, spec: PromptSpec) -> Agent[None, str]:
        model = self._model if self._model is not None else build_model_by_settings()
        return Agent[None, str](
            model=model,
            output_type=str,
            system_prompt=spec.system_prompt,
            model_settings=ModelSettings(temperature=self.temperature, timeout=self.timeout),
        )

    async def complete(self, spec: PromptSpec) -> str:
        """Send the prompt and return the provider's raw text."""
        try:
            agent = self._agent(spec)
            res = await agent.run(spec.user_message)
        except Exception as e:  # noqa: BLE001
            logger.error("Generation provider call failed: %s", e)
            raise GenerationError(detail=str(e)) from e
        return res.output

    async def generate(self, spec: PromptSpec) -> list[Card]:
        """Generate, parse and validate the cards for ``spec``."""
        raw = await self.complete(spec)
        return parse_response(raw, spec)
