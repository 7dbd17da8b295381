from typing import Optional

from pydantic import BaseModel, Field

from app.modules.progress.models import StaminaStats


class StudySessionRequest(BaseModel):
    cards_completed: int = Field(0, ge=0)
    words_learned: int = Field(0, ge=0)
    minutes_spent: int = Field(0, ge=0)


class StudySessionResponse(BaseModel):
    stats: StaminaStats
    newly_unlocked: list[int] = Field(default_factory=list)


class ClaimGuestRequest(BaseModel):
    guest_id: str = Field(..., description="Local id the guest studied under")


class ClaimGuestResponse(BaseModel):
    account_id: str
    decks_moved: int
    stats: Optional[StaminaStats] = None
