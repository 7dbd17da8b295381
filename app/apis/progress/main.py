from __future__ import annotations

import uuid
from datetime import date
from typing import Annotated, Optional

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.apis.deps import (
    Authenticated,
    UserIdentity,
    guest_owner_id,
    require_account,
    resolve_identity,
)
from app.core.config import settings
from app.core.db.base import get_session
from app.core.db_services import DeckStore
from app.modules.progress.badges import build_user_stats, evaluate_badges
from app.modules.progress.models import Badge, UserStatsView
from .schemas import (
    ClaimGuestRequest,
    ClaimGuestResponse,
    StudySessionRequest,
    StudySessionResponse,
)


router = APIRouter()

Identity = Annotated[UserIdentity, Depends(resolve_identity)]
Account = Annotated[Authenticated, Depends(require_account)]


@router.get(
    f"/{settings.app.version}/stamina",
    response_model=Optional[UserStatsView],
    tags=["progress"],
)
async def get_stamina(
    identity: Identity,
    session: AsyncSession = Depends(get_session),
) -> Optional[UserStatsView]:
    store = DeckStore(session)
    if await store.get_user_stamina(identity.owner_id) is None:
        return None
    today = date.today()
    snapshot = await store.get_progress_snapshot(identity.owner_id, today=today)
    return build_user_stats(snapshot, today)


@router.post(
    f"/{settings.app.version}/stamina/session",
    response_model=StudySessionResponse,
    tags=["progress"],
)
async def record_study_session(
    req: StudySessionRequest,
    identity: Identity,
    session: AsyncSession = Depends(get_session),
) -> StudySessionResponse:
    store = DeckStore(session)
    before = {
        b.id
        for b in evaluate_badges(await store.get_progress_snapshot(identity.owner_id))
        if b.unlocked
    }
    stats = await store.update_user_stamina(
        identity.owner_id,
        req.cards_completed,
        req.words_learned,
        req.minutes_spent,
    )
    after = evaluate_badges(await store.get_progress_snapshot(identity.owner_id))
    return StudySessionResponse(
        stats=stats,
        newly_unlocked=[b.id for b in after if b.unlocked and b.id not in before],
    )


@router.get(
    f"/{settings.app.version}/stamina/badges",
    response_model=list[Badge],
    tags=["progress"],
)
async def get_badges(
    identity: Identity,
    session: AsyncSession = Depends(get_session),
) -> list[Badge]:
    snapshot = await DeckStore(session).get_progress_snapshot(identity.owner_id)
    return evaluate_badges(snapshot)


@router.post(
    f"/{settings.app.version}/identity/claim-guest",
    response_model=ClaimGuestResponse,
    status_code=status.HTTP_200_OK,
    tags=["identity"],
)
async def claim_guest(
    req: ClaimGuestRequest,
    account: Account,
    session: AsyncSession = Depends(get_session),
) -> ClaimGuestResponse:
    try:
        guest_id = str(uuid.UUID(req.guest_id.strip()))
    except ValueError:
        raise HTTPException(status_code=400, detail="guest_id must be a UUID")

    store = DeckStore(session)
    moved = await store.claim_guest_data(guest_owner_id(guest_id), account.owner_id)
    return ClaimGuestResponse(
        account_id=account.account_id,
        decks_moved=moved,
        stats=await store.get_user_stamina(account.owner_id),
    )
