"""Progress module exports."""

from .models import (
    Badge,
    DeckProgress,
    ProgressSnapshot,
    StaminaStats,
    UserStatsView,
)
from .badges import advance_streak, build_user_stats, evaluate_badges

__all__ = [
    "Badge",
    "DeckProgress",
    "ProgressSnapshot",
    "StaminaStats",
    "UserStatsView",
    "advance_streak",
    "build_user_stats",
    "evaluate_badges",
]
