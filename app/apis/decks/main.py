from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Response, status
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from app.apis.deps import UserIdentity, get_deck_generator, resolve_identity
from app.core.config import settings
from app.core.db.base import get_session
from app.core.db_services import DeckStore
from app.modules.flashcards.errors import (
    DeckValidationError,
    FetchError,
    GenerationError,
    InputError,
)
from app.modules.flashcards.main import DeckGenerator, GenerationOutcome
from app.modules.flashcards.models.cards import DeckRecord, SourceOrigin, SourceText
from app.modules.progress.models import DeckProgress
from .schemas import (
    AnalysisSummary,
    CompletionRequest,
    DeckSummary,
    GenerateDeckRequest,
    GenerateDeckResponse,
    ImportUrlRequest,
    RenameDeckRequest,
)


router = APIRouter()

Identity = Annotated[UserIdentity, Depends(resolve_identity)]
Generator = Annotated[DeckGenerator, Depends(get_deck_generator)]

PREFIX = f"/{settings.app.version}/decks"


def _failure_status(outcome: GenerationOutcome) -> int:
    match outcome.error:
        case InputError() | DeckValidationError():
            return status.HTTP_422_UNPROCESSABLE_ENTITY
        case FetchError() | GenerationError():
            return status.HTTP_502_BAD_GATEWAY
        case _:
            return status.HTTP_500_INTERNAL_SERVER_ERROR


def _outcome_response(outcome: GenerationOutcome) -> GenerateDeckResponse | JSONResponse:
    body = GenerateDeckResponse(
        success=outcome.success,
        message=outcome.message,
        stage=outcome.stage.value,
        failed_stage=outcome.failed_stage.value if outcome.failed_stage else None,
        deck=outcome.deck,
        deck_id=outcome.deck_id,
        saved=outcome.saved,
        analysis=AnalysisSummary.from_analysis(outcome.analysis) if outcome.analysis else None,
    )
    if outcome.success:
        return body
    return JSONResponse(
        status_code=_failure_status(outcome),
        content=body.model_dump(mode="json", by_alias=True),
    )


@router.post(
    f"{PREFIX}/generate",
    response_model=GenerateDeckResponse,
    status_code=status.HTTP_201_CREATED,
    tags=["decks"],
)
async def generate_deck(
    req: GenerateDeckRequest,
    identity: Identity,
    generator: Generator,
    session: AsyncSession = Depends(get_session),
):
    outcome = await generator.generate(
        SourceText(content=req.text, origin=SourceOrigin.PASTED),
        vibe=req.vibe,
        difficulty=req.difficulty,
        owner_id=identity.owner_id,
    )
    if req.save:
        outcome = await generator.persist(session, identity.owner_id, outcome)
    return _outcome_response(outcome)


@router.post(
    f"{PREFIX}/import-url",
    response_model=GenerateDeckResponse,
    status_code=status.HTTP_201_CREATED,
    tags=["decks"],
)
async def import_url_deck(
    req: ImportUrlRequest,
    identity: Identity,
    generator: Generator,
    session: AsyncSession = Depends(get_session),
):
    outcome = await generator.generate_from_url(
        req.url,
        vibe=req.vibe,
        difficulty=req.difficulty,
        owner_id=identity.owner_id,
    )
    if req.save:
        outcome = await generator.persist(session, identity.owner_id, outcome)
    return _outcome_response(outcome)


@router.get(PREFIX, response_model=list[DeckSummary], tags=["decks"])
async def list_decks(
    identity: Identity,
    session: AsyncSession = Depends(get_session),
) -> list[DeckSummary]:
    records = await DeckStore(session).get_user_decks(identity.owner_id)
    return [DeckSummary.from_record(r) for r in records]


@router.get(f"{PREFIX}/{{deck_id}}", response_model=DeckRecord, tags=["decks"])
async def get_deck(
    deck_id: str,
    identity: Identity,
    session: AsyncSession = Depends(get_session),
) -> DeckRecord:
    record = await DeckStore(session).get_deck(deck_id, identity.owner_id)
    if not record:
        raise HTTPException(status_code=404, detail="Deck not found")
    return record


@router.patch(f"{PREFIX}/{{deck_id}}", response_model=DeckSummary, tags=["decks"])
async def rename_deck(
    deck_id: str,
    req: RenameDeckRequest,
    identity: Identity,
    session: AsyncSession = Depends(get_session),
) -> DeckSummary:
    store = DeckStore(session)
    if not await store.update_deck_title(deck_id, identity.owner_id, req.title):
        raise HTTPException(status_code=404, detail="Deck not found")
    record = await store.get_deck(deck_id, identity.owner_id)
    if record is None:
        raise HTTPException(status_code=404, detail="Deck not found")
    return DeckSummary.from_record(record)


@router.delete(
    f"{PREFIX}/{{deck_id}}",
    status_code=status.HTTP_204_NO_CONTENT,
    tags=["decks"],
)
async def delete_deck(
    deck_id: str,
    identity: Identity,
    session: AsyncSession = Depends(get_session),
) -> Response:
    if not await DeckStore(session).delete_deck(deck_id, identity.owner_id):
        raise HTTPException(status_code=404, detail="Deck not found")
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post(
    f"{PREFIX}/{{deck_id}}/cards/{{card_id}}/completion",
    response_model=DeckProgress,
    tags=["decks"],
)
async def record_completion(
    deck_id: str,
    card_id: str,
    req: CompletionRequest,
    identity: Identity,
    session: AsyncSession = Depends(get_session),
) -> DeckProgress:
    store = DeckStore(session)
    ok = await store.record_card_completion(identity.owner_id, deck_id, card_id, req.action)
    if not ok:
        raise HTTPException(status_code=404, detail="Deck or card not found")
    progress = await store.get_deck_progress(identity.owner_id, deck_id)
    if progress is None:
        raise HTTPException(status_code=404, detail="Deck not found")
    return progress


@router.get(
    f"{PREFIX}/{{deck_id}}/progress",
    response_model=DeckProgress,
    tags=["decks"],
)
async def get_deck_progress(
    deck_id: str,
    identity: Identity,
    session: AsyncSession = Depends(get_session),
) -> DeckProgress:
    progress = await DeckStore(session).get_deck_progress(identity.owner_id, deck_id)
    if not progress:
        raise HTTPException(status_code=404, detail="Deck not found")
    return progress
