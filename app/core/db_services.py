"""Database service for decks, card completions and study statistics.

``DeckStore`` is the persistence capability the generation pipeline hands its
decks to. Owners are opaque strings (an account id or a guest's local id);
every query is scoped by owner.
"""

from __future__ import annotations

from datetime import date, datetime, timedelta
from typing import Optional

from sqlalchemy import delete, func, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.core.db.schemas.decks import (
    CardCompletion,
    CompletionAction,
    Deck,
    DeckCard,
    UserStamina,
)
from app.core.logging import get_logger
from app.modules.flashcards.models.cards import (
    Card,
    ConceptCard,
    DeckDraft,
    DeckRecord,
    DifficultyLevel,
    QuizCard,
    Vibe,
)
from app.modules.progress.badges import advance_streak
from app.modules.progress.models import DeckProgress, ProgressSnapshot, StaminaStats

logger = get_logger(__name__)


def _card_to_row(card: Card, index: int) -> DeckCard:
    row = DeckCard(
        card_key=card.id,
        order_index=index,
        is_quiz=card.is_quiz,
        hook=card.hook,
        meat=card.meat,
        category=card.category,
        difficulty=card.difficulty.value,
    )
    if isinstance(card, QuizCard):
        row.quiz_question = card.quiz_question
        row.quiz_options = list(card.quiz_options)
        row.quiz_answer = card.quiz_answer
    else:
        row.simplified = card.simplified
    return row


def _row_to_card(row: DeckCard) -> Card:
    if row.is_quiz:
        return QuizCard(
            id=row.card_key,
            hook=row.hook,
            meat=row.meat,
            category=row.category,
            difficulty=DifficultyLevel(row.difficulty),
            quiz_question=row.quiz_question or "",
            quiz_options=list(row.quiz_options or []),
            quiz_answer=row.quiz_answer or 0,
        )
    return ConceptCard(
        id=row.card_key,
        hook=row.hook,
        meat=row.meat,
        simplified=row.simplified,
        category=row.category,
        difficulty=DifficultyLevel(row.difficulty),
    )


def _deck_to_record(deck: Deck) -> DeckRecord:
    return DeckRecord(
        id=deck.id,
        owner_id=deck.owner_id,
        title=deck.title,
        description=deck.description,
        vibe=Vibe(deck.vibe),
        difficulty=DifficultyLevel(deck.difficulty),
        cards=[_row_to_card(c) for c in deck.cards],
        created_at=deck.created_at,
        updated_at=deck.updated_at,
    )


def _stamina_to_stats(row: UserStamina) -> StaminaStats:
    return StaminaStats(
        owner_id=row.owner_id,
        total_cards_completed=row.total_cards_completed,
        total_words_learned=row.total_words_learned,
        total_minutes_spent=row.total_minutes_spent,
        current_streak=row.current_streak,
        longest_streak=row.longest_streak,
        last_activity_date=row.last_activity_date,
    )


class DeckStore:
    """Service for storing decks and study progress in the database."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def _load_deck(self, deck_id: str, owner_id: str) -> Optional[Deck]:
        result = await self.session.execute(
            select(Deck)
            .options(selectinload(Deck.cards))
            .where(Deck.id == deck_id, Deck.owner_id == owner_id)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    # Decks

    async def save_deck(self, owner_id: str, draft: DeckDraft) -> Optional[DeckRecord]:
        """Persist a generated deck; returns None (and logs) if the write fails."""
        try:
            db_deck = Deck(
                owner_id=owner_id,
                title=draft.title,
                description=draft.description,
                vibe=draft.vibe.value,
                difficulty=draft.difficulty.value,
            )
            self.session.add(db_deck)
            await self.session.flush()

            for index, card in enumerate(draft.cards):
                row = _card_to_row(card, index)
                row.deck_id = db_deck.id
                self.session.add(row)

            await self.session.commit()
        except SQLAlchemyError as e:
            await self.session.rollback()
            logger.error("Saving deck for %s failed: %s", owner_id, e)
            return None

        deck = await self._load_deck(db_deck.id, owner_id)
        return _deck_to_record(deck) if deck else None

    async def get_user_decks(self, owner_id: str) -> list[DeckRecord]:
        rows = await self.session.execute(
            select(Deck)
            .options(selectinload(Deck.cards))
            .where(Deck.owner_id == owner_id)
            .order_by(Deck.created_at.desc())
            .execution_options(populate_existing=True)
        )
        return [_deck_to_record(d) for d in rows.scalars().all()]

    async def get_deck(self, deck_id: str, owner_id: str) -> Optional[DeckRecord]:
        deck = await self._load_deck(deck_id, owner_id)
        return _deck_to_record(deck) if deck else None

    async def delete_deck(self, deck_id: str, owner_id: str) -> bool:
        deck = await self._load_deck(deck_id, owner_id)
        if not deck:
            return False
        await self.session.execute(
            delete(CardCompletion).where(CardCompletion.deck_id == deck_id)
        )
        await self.session.delete(deck)
        await self.session.commit()
        return True

    async def update_deck_title(self, deck_id: str, owner_id: str, title: str) -> bool:
        clean = (title or "").strip()
        if not clean:
            return False
        deck = await self._load_deck(deck_id, owner_id)
        if not deck:
            return False
        deck.title = clean
        await self.session.commit()
        return True

    # Completions

    async def record_card_completion(
        self,
        owner_id: str,
        deck_id: str,
        card_id: str,
        action: CompletionAction,
        *,
        at: Optional[datetime] = None,
    ) -> bool:
        """Record a learned/skipped swipe; False if the deck or card is unknown."""
        deck = await self._load_deck(deck_id, owner_id)
        if not deck or card_id not in {c.card_key for c in deck.cards}:
            return False
        self.session.add(
            CardCompletion(
                owner_id=owner_id,
                deck_id=deck_id,
                card_key=card_id,
                action=action,
                completed_at=at or datetime.now(),
            )
        )
        await self.session.commit()
        return True

    async def get_deck_progress(self, owner_id: str, deck_id: str) -> Optional[DeckProgress]:
        deck = await self._load_deck(deck_id, owner_id)
        if not deck:
            return None
        rows = await self.session.execute(
            select(CardCompletion).where(
                CardCompletion.deck_id == deck_id, CardCompletion.owner_id == owner_id
            )
        )
        completions = rows.scalars().all()
        learned = {c.card_key for c in completions if c.action is CompletionAction.LEARNED}
        skipped = {
            c.card_key for c in completions if c.action is CompletionAction.SKIPPED
        } - learned
        last = max((c.completed_at for c in completions), default=None)
        return DeckProgress(
            deck_id=deck_id,
            cards_total=len(deck.cards),
            cards_completed=len(learned),
            cards_skipped=len(skipped),
            last_reviewed_at=last.isoformat() if last else None,
        )

    # Stamina

    async def _get_stamina_row(self, owner_id: str) -> Optional[UserStamina]:
        result = await self.session.execute(
            select(UserStamina).where(UserStamina.owner_id == owner_id)
        )
        return result.scalar_one_or_none()

    async def get_user_stamina(self, owner_id: str) -> Optional[StaminaStats]:
        row = await self._get_stamina_row(owner_id)
        return _stamina_to_stats(row) if row else None

    async def update_user_stamina(
        self,
        owner_id: str,
        cards_completed: int,
        words_learned: int,
        minutes_spent: int,
        *,
        today: Optional[date] = None,
    ) -> StaminaStats:
        """Add one study session's counts to the totals and advance the streak."""
        day = today or date.today()
        row = await self._get_stamina_row(owner_id)
        if row is None:
            row = UserStamina(
                owner_id=owner_id,
                total_cards_completed=0,
                total_words_learned=0,
                total_minutes_spent=0,
                current_streak=0,
                longest_streak=0,
            )
            self.session.add(row)

        row.total_cards_completed += max(cards_completed, 0)
        row.total_words_learned += max(words_learned, 0)
        row.total_minutes_spent += max(minutes_spent, 0)
        row.current_streak, row.longest_streak = advance_streak(
            row.current_streak, row.longest_streak, row.last_activity_date, day
        )
        row.last_activity_date = day
        await self.session.commit()
        await self.session.refresh(row)
        return _stamina_to_stats(row)

    async def get_progress_snapshot(
        self, owner_id: str, *, today: Optional[date] = None
    ) -> ProgressSnapshot:
        day = today or date.today()
        stats = await self.get_user_stamina(owner_id) or StaminaStats(owner_id=owner_id)

        learned_rows = await self.session.execute(
            select(CardCompletion.deck_id, CardCompletion.card_key, DeckCard.difficulty)
            .join(
                DeckCard,
                (DeckCard.deck_id == CardCompletion.deck_id)
                & (DeckCard.card_key == CardCompletion.card_key),
            )
            .where(
                CardCompletion.owner_id == owner_id,
                CardCompletion.action == CompletionAction.LEARNED,
            )
            .distinct()
        )
        learned = learned_rows.all()
        advanced = sum(1 for r in learned if r.difficulty == DifficultyLevel.ADVANCED.value)

        learned_per_deck: dict[str, int] = {}
        for r in learned:
            learned_per_deck[r.deck_id] = learned_per_deck.get(r.deck_id, 0) + 1
        size_rows = await self.session.execute(
            select(DeckCard.deck_id, func.count(DeckCard.id))
            .join(Deck, Deck.id == DeckCard.deck_id)
            .where(Deck.owner_id == owner_id)
            .group_by(DeckCard.deck_id)
        )
        decks_completed = sum(
            1
            for deck_id, size in size_rows.all()
            if size and learned_per_deck.get(deck_id, 0) >= size
        )

        week_start = datetime.combine(day - timedelta(days=6), datetime.min.time())
        recent_rows = await self.session.execute(
            select(CardCompletion.completed_at).where(
                CardCompletion.owner_id == owner_id,
                CardCompletion.action == CompletionAction.LEARNED,
                CardCompletion.completed_at >= week_start,
            )
        )
        recent = [ts for (ts,) in recent_rows.all()]

        return ProgressSnapshot(
            stats=stats,
            advanced_cards_learned=advanced,
            decks_completed=decks_completed,
            cards_this_week=len(recent),
            active_days_this_week=len({ts.date() for ts in recent}),
        )

    # Identity

    async def claim_guest_data(self, guest_id: str, account_id: str) -> int:
        """Move a guest's decks, completions and stats to an account.

        Both arguments are owner ids as stored, i.e. already namespaced.

        Returns the number of decks moved.
        """
        if guest_id == account_id:
            return 0
        moved = await self.session.execute(
            update(Deck).where(Deck.owner_id == guest_id).values(owner_id=account_id)
        )
        await self.session.execute(
            update(CardCompletion)
            .where(CardCompletion.owner_id == guest_id)
            .values(owner_id=account_id)
        )

        guest = await self._get_stamina_row(guest_id)
        if guest is not None:
            account = await self._get_stamina_row(account_id)
            if account is None:
                account = UserStamina(
                    owner_id=account_id,
                    total_cards_completed=guest.total_cards_completed,
                    total_words_learned=guest.total_words_learned,
                    total_minutes_spent=guest.total_minutes_spent,
                    current_streak=guest.current_streak,
                    longest_streak=guest.longest_streak,
                    last_activity_date=guest.last_activity_date,
                )
                self.session.add(account)
            else:
                account.total_cards_completed += guest.total_cards_completed
                account.total_words_learned += guest.total_words_learned
                account.total_minutes_spent += guest.total_minutes_spent
                account.longest_streak = max(account.longest_streak, guest.longest_streak)
                if guest.last_activity_date and (
                    account.last_activity_date is None
                    or guest.last_activity_date > account.last_activity_date
                ):
                    account.current_streak = guest.current_streak
                    account.last_activity_date = guest.last_activity_date
            await self.session.delete(guest)

        await self.session.commit()
        logger.info("Promoted guest %s to account %s", guest_id, account_id)
        return moved.rowcount or 0
