"""Deck generator service class.

Runs one generation attempt end to end:

    idle -> normalizing -> analyzing -> composing -> awaiting_generation
         -> validating -> assembled | failed

Every stage failure is turned into a ``GenerationOutcome`` with
``success=False`` and a user-facing message; no partial deck is returned.
Instances hold no per-request state, so one generator can serve concurrent
requests.
"""

from __future__ import annotations

import asyncio
import uuid
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import AnalyzerSettings, settings
from app.core.logging import PipelineLogAdapter, get_pipeline_logger
from app.modules.flashcards.analyzer import analyze
from app.modules.flashcards.assembler import assemble
from app.modules.flashcards.errors import (
    FlashcardsError,
    GenerationError,
    InputError,
)
from app.modules.flashcards.generator import GenerationClient, parse_response
from app.modules.flashcards.importer import fetch_url_text
from app.modules.flashcards.models.analysis import DocumentAnalysis, PromptSpec
from app.modules.flashcards.models.cards import (
    DeckDraft,
    DifficultyMode,
    SourceOrigin,
    SourceText,
    Vibe,
)
from app.modules.flashcards.normalizer import normalize, prepare_pasted
from app.modules.flashcards.prompts import compose


class PipelineStage(str, Enum):
    IDLE = "idle"
    NORMALIZING = "normalizing"
    ANALYZING = "analyzing"
    COMPOSING = "composing"
    AWAITING_GENERATION = "awaiting_generation"
    VALIDATING = "validating"
    ASSEMBLED = "assembled"
    FAILED = "failed"


@dataclass
class GenerationOutcome:
    success: bool
    stage: PipelineStage
    message: str
    deck: Optional[DeckDraft] = None
    analysis: Optional[DocumentAnalysis] = None
    error: Optional[FlashcardsError] = None
    failed_stage: Optional[PipelineStage] = None
    saved: bool = False
    deck_id: Optional[str] = None


class DeckGenerator:
    """High-level service for turning text into a study deck.

    Example (async):
        svc = DeckGenerator()
        outcome = await svc.generate(SourceText(content=text), vibe=Vibe.STUDENT)

    Example (sync):
        outcome = DeckGenerator().generate_sync(SourceText(content=text))

    Example (with database):
        outcome = await svc.generate_with_db(session, owner_id, source)
    """

    def __init__(
        self,
        client: Optional[GenerationClient] = None,
        *,
        analyzer_settings: Optional[AnalyzerSettings] = None,
        max_attempts: Optional[int] = None,
        timeout: Optional[float] = None,
    ) -> None:
        self.client = client or GenerationClient()
        self.analyzer_settings = analyzer_settings
        self.max_attempts = max(
            1, int(settings.generation_max_attempts if max_attempts is None else max_attempts)
        )
        self.timeout = settings.generation_timeout_seconds if timeout is None else timeout

    async def _call_provider(self, spec: PromptSpec, log: PipelineLogAdapter) -> str:
        """One provider round trip with timeout and a small bounded retry."""
        last_error: Optional[GenerationError] = None
        for attempt in range(1, self.max_attempts + 1):
            try:
                return await asyncio.wait_for(self.client.complete(spec), self.timeout)
            except asyncio.TimeoutError as e:
                last_error = GenerationError(detail=f"timed out after {self.timeout}s")
                last_error.__cause__ = e
            except GenerationError as e:
                last_error = e
            log.warning(
                "Generation attempt %d/%d failed: %s",
                attempt,
                self.max_attempts,
                last_error.detail,
            )
        raise last_error or GenerationError(detail="no generation attempts configured")

    async def generate(
        self,
        source: SourceText,
        *,
        vibe: Vibe = Vibe.STUDENT,
        difficulty: DifficultyMode = DifficultyMode.AUTO,
        owner_id: str = "-",
    ) -> GenerationOutcome:
        """Run the pipeline once and return a uniform outcome."""
        log = get_pipeline_logger(__name__, request_id=uuid.uuid4().hex[:8], owner=owner_id)
        stage = PipelineStage.IDLE
        analysis: Optional[DocumentAnalysis] = None

        def enter(next_stage: PipelineStage) -> PipelineStage:
            log.set_stage(next_stage.value)
            log.info("Entering %s", next_stage.value)
            return next_stage

        try:
            stage = enter(PipelineStage.NORMALIZING)
            if source.origin is SourceOrigin.URL:
                text = normalize(source.content)
            else:
                text = prepare_pasted(source.content)
            if not text:
                raise InputError()

            stage = enter(PipelineStage.ANALYZING)
            analysis = analyze(text, self.analyzer_settings)
            target = difficulty.resolve(analysis.inferred_difficulty)
            log.info(
                "words=%d sections=%d score=%.2f difficulty=%s cards=%d",
                analysis.word_count,
                len(analysis.sections),
                analysis.complexity_score,
                target.value,
                analysis.card_target,
            )

            stage = enter(PipelineStage.COMPOSING)
            spec = compose(text, vibe, analysis.card_target, target, analysis.sections)

            stage = enter(PipelineStage.AWAITING_GENERATION)
            raw = await self._call_provider(spec, log)

            stage = enter(PipelineStage.VALIDATING)
            cards = parse_response(raw, spec)

            deck = assemble(text, cards, vibe=vibe, difficulty=target)
            enter(PipelineStage.ASSEMBLED)
            return GenerationOutcome(
                success=True,
                stage=PipelineStage.ASSEMBLED,
                message=f"Generated {len(deck.cards)} cards",
                deck=deck,
                analysis=analysis,
            )
        except FlashcardsError as e:
            log.error("Generation failed at %s: %s (%s)", stage.value, e.message, e.detail)
            return self._failed(stage, e, analysis)
        except Exception as e:  # noqa: BLE001
            log.exception("Unexpected error at %s", stage.value)
            return self._failed(stage, GenerationError(detail=str(e)), analysis)

    @staticmethod
    def _failed(
        stage: PipelineStage,
        error: FlashcardsError,
        analysis: Optional[DocumentAnalysis],
    ) -> GenerationOutcome:
        return GenerationOutcome(
            success=False,
            stage=PipelineStage.FAILED,
            message=error.message,
            analysis=analysis,
            error=error,
            failed_stage=stage,
        )

    async def generate_from_url(
        self,
        url: str,
        *,
        vibe: Vibe = Vibe.STUDENT,
        difficulty: DifficultyMode = DifficultyMode.AUTO,
        owner_id: str = "-",
    ) -> GenerationOutcome:
        """Import ``url`` and generate a deck from its text."""
        try:
            text = await fetch_url_text(url)
        except FlashcardsError as e:
            return self._failed(PipelineStage.IDLE, e, None)
        return await self.generate(
            SourceText(content=text, origin=SourceOrigin.URL),
            vibe=vibe,
            difficulty=difficulty,
            owner_id=owner_id,
        )

    async def persist(
        self, session: AsyncSession, owner_id: str, outcome: GenerationOutcome
    ) -> GenerationOutcome:
        """Save a successful outcome's deck; a failed save keeps the deck in memory."""
        from app.core.db_services import DeckStore

        if not outcome.success or outcome.deck is None:
            return outcome
        record = await DeckStore(session).save_deck(owner_id, outcome.deck)
        if record is None:
            outcome.saved = False
            return outcome
        outcome.saved = True
        outcome.deck_id = record.id
        return outcome

    async def generate_with_db(
        self,
        session: AsyncSession,
        owner_id: str,
        source: SourceText,
        *,
        vibe: Vibe = Vibe.STUDENT,
        difficulty: DifficultyMode = DifficultyMode.AUTO,
    ) -> GenerationOutcome:
        outcome = await self.generate(
            source, vibe=vibe, difficulty=difficulty, owner_id=owner_id
        )
        return await self.persist(session, owner_id, outcome)

    def generate_sync(
        self,
        source: SourceText,
        *,
        vibe: Vibe = Vibe.STUDENT,
        difficulty: DifficultyMode = DifficultyMode.AUTO,
    ) -> GenerationOutcome:
        return asyncio.run(self.generate(source, vibe=vibe, difficulty=difficulty))
