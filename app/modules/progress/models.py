"""Pydantic models for study progress, streaks and badges."""

from __future__ import annotations

from datetime import date

from pydantic import BaseModel


class StaminaStats(BaseModel):
    """Aggregate study statistics for one owner."""

    owner_id: str
    total_cards_completed: int = 0
    total_words_learned: int = 0
    total_minutes_spent: int = 0
    current_streak: int = 0
    longest_streak: int = 0
    last_activity_date: date | None = None


class DeckProgress(BaseModel):
    deck_id: str
    cards_total: int
    cards_completed: int
    cards_skipped: int
    last_reviewed_at: str | None = None


class ProgressSnapshot(BaseModel):
    """Stats plus the completion-derived counts the badges need."""

    stats: StaminaStats
    advanced_cards_learned: int = 0
    decks_completed: int = 0
    cards_this_week: int = 0
    active_days_this_week: int = 0


class UserStatsView(BaseModel):
    total_cards_completed: int
    total_words_learned: int
    current_streak: int
    longest_streak: int
    consistency_percentage: int
    this_week_cards: int
    total_time_spent: str


class Badge(BaseModel):
    id: int
    name: str
    description: str
    icon: str
    unlocked: bool
