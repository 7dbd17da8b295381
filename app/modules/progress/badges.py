"""Streak arithmetic, dashboard stats and badge rules."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, timedelta
from typing import Callable

from app.modules.progress.models import (
    Badge,
    ProgressSnapshot,
    StaminaStats,
    UserStatsView,
)


def advance_streak(
    current: int, longest: int, last_activity: date | None, today: date
) -> tuple[int, int]:
    """Return ``(current, longest)`` after studying on ``today``."""
    if last_activity == today:
        current = max(current, 1)
    elif last_activity is not None and last_activity == today - timedelta(days=1):
        current += 1
    else:
        current = 1
    return current, max(longest, current)


def live_streak(stats: StaminaStats, today: date) -> int:
    """Current streak as of ``today``; broken if the last activity is older than yesterday."""
    if stats.last_activity_date is None:
        return 0
    if stats.last_activity_date < today - timedelta(days=1):
        return 0
    return stats.current_streak


def format_minutes(minutes: int) -> str:
    hours, mins = divmod(max(minutes, 0), 60)
    if hours:
        return f"{hours}h {mins}m"
    return f"{mins}m"


def build_user_stats(snapshot: ProgressSnapshot, today: date) -> UserStatsView:
    stats = snapshot.stats
    return UserStatsView(
        total_cards_completed=stats.total_cards_completed,
        total_words_learned=stats.total_words_learned,
        current_streak=live_streak(stats, today),
        longest_streak=stats.longest_streak,
        consistency_percentage=round(min(snapshot.active_days_this_week, 7) / 7 * 100),
        this_week_cards=snapshot.cards_this_week,
        total_time_spent=format_minutes(stats.total_minutes_spent),
    )


@dataclass(frozen=True)
class BadgeRule:
    id: int
    name: str
    description: str
    icon: str
    check: Callable[[ProgressSnapshot], bool]


BADGE_RULES: tuple[BadgeRule, ...] = (
    BadgeRule(1, "3 Day Streak", "Learn for 3 days in a row", "🔥",
              lambda s: s.stats.longest_streak >= 3),
    BadgeRule(2, "1,000 Words Conquered", "Master 1000 vocabulary words", "📚",
              lambda s: s.stats.total_words_learned >= 1000),
    BadgeRule(3, "Complexity Master", "Complete 10 advanced cards", "🎓",
              lambda s: s.advanced_cards_learned >= 10),
    BadgeRule(4, "10 Decks Completed", "Finish 10 complete decks", "🏆",
              lambda s: s.decks_completed >= 10),
    BadgeRule(5, "100 Hour Scholar", "Read for 100 total hours", "⏰",
              lambda s: s.stats.total_minutes_spent >= 100 * 60),
    BadgeRule(6, "Perfect Week", "Learn every day for a week", "✨",
              lambda s: s.stats.longest_streak >= 7),
)


def evaluate_badges(snapshot: ProgressSnapshot) -> list[Badge]:
    return [
        Badge(
            id=rule.id,
            name=rule.name,
            description=rule.description,
            icon=rule.icon,
            unlocked=rule.check(snapshot),
        )
        for rule in BADGE_RULES
    ]
