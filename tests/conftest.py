"""Pytest configuration and shared fixtures."""

import json
import os

# Settings are read at import time, so the environment must be in place first.
os.environ.setdefault("JWT_SECRET", "test-secret")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite://")
os.environ.setdefault("MODE", "test")
os.environ.setdefault("GROQ_API_KEY", "test-groq-key")

import pytest
import pytest_asyncio
from pydantic_ai.messages import ModelMessage, ModelResponse, TextPart, UserPromptPart
from pydantic_ai.models.function import AgentInfo, FunctionModel
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

import app.core.db.schemas  # noqa: F401
from app.core.db.base import Base
from app.modules.flashcards.models.cards import DeckDraft, DifficultyLevel, Vibe


PHOTOSYNTHESIS_SENTENCE = "Plants use light energy to make sugar from carbon dioxide."


@pytest.fixture
def photosynthesis_text():
    """Three paragraphs of 16 ten-word sentences each (480 words)."""
    paragraph = " ".join([PHOTOSYNTHESIS_SENTENCE] * 16)
    return "\n\n".join([paragraph] * 3)


def _concept(i, difficulty="intermediate"):
    return {
        "id": f"c{i}",
        "isQuiz": False,
        "hook": f"Idea {i}",
        "meat": f"Explanation of idea {i}.",
        "simplified": f"Idea {i} in one line.",
        "category": "Biology",
        "difficulty": difficulty,
    }


def _quiz(i, answer=1):
    return {
        "id": f"q{i}",
        "isQuiz": True,
        "hook": "Quick Check",
        "meat": "Test your understanding.",
        "quizQuestion": "What do plants make from carbon dioxide?",
        "quizOptions": ["Salt", "Sugar", "Oil", "Iron"],
        "quizAnswer": answer,
        "category": "Quiz",
        "difficulty": "intermediate",
    }


@pytest.fixture
def cards_payload():
    """Factory for raw provider card lists: ``concepts`` concept cards then one quiz."""

    def _build(concepts=5, *, quiz=True, difficulty="intermediate"):
        items = [_concept(i, difficulty) for i in range(1, concepts + 1)]
        if quiz:
            items.append(_quiz(concepts + 1))
        return items

    return _build


@pytest.fixture
def sample_deck(cards_payload):
    return DeckDraft.model_validate(
        {
            "title": "Plants use light energy to make...",
            "description": "Generated from text with student vibe",
            "vibe": Vibe.STUDENT,
            "difficulty": DifficultyLevel.INTERMEDIATE,
            "cards": cards_payload(3),
        }
    )


class RecordingModel:
    """FunctionModel wrapper that replies with fixed text and keeps the prompts it saw."""

    def __init__(self, reply):
        self.reply = reply
        self.user_prompts = []
        self.system_prompts = []
        self.model = FunctionModel(self._respond)

    def _respond(self, messages: list[ModelMessage], info: AgentInfo) -> ModelResponse:
        for message in messages:
            for part in getattr(message, "parts", []):
                if isinstance(part, UserPromptPart):
                    self.user_prompts.append(part.content)
                elif part.part_kind == "system-prompt":
                    self.system_prompts.append(part.content)
        return ModelResponse(parts=[TextPart(self.reply)])


@pytest.fixture
def recording_model():
    """Factory: ``recording_model(reply)`` where reply is text or a JSON-able value."""

    def _build(reply):
        text = reply if isinstance(reply, str) else json.dumps(reply)
        return RecordingModel(text)

    return _build


@pytest_asyncio.fixture
async def engine():
    eng = create_async_engine("sqlite+aiosqlite://", poolclass=StaticPool)
    async with eng.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield eng
    await eng.dispose()


@pytest_asyncio.fixture
async def session_maker(engine):
    return async_sessionmaker(engine, expire_on_commit=False)


@pytest_asyncio.fixture
async def session(session_maker):
    async with session_maker() as s:
        yield s
