from __future__ import annotations

import enum
import uuid
from datetime import date, datetime
from typing import Optional

from sqlalchemy import (
    JSON,
    Boolean,
    Date,
    DateTime,
    Enum,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.core.db.base import Base


class CompletionAction(enum.Enum):
    LEARNED = "learned"
    SKIPPED = "skipped"


class Deck(Base):
    __tablename__ = "decks"

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    # Namespaced owner id: "acct:<account id>" or "guest:<local uuid>"
    owner_id: Mapped[str] = mapped_column(String, nullable=False, index=True)
    title: Mapped[str] = mapped_column(String, nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    vibe: Mapped[str] = mapped_column(String(16), nullable=False)
    difficulty: Mapped[str] = mapped_column(String(16), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime,
        nullable=False,
        server_default=func.now(),
        index=True,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime,
        nullable=False,
        server_default=func.now(),
        onupdate=func.now(),
    )

    cards: Mapped[list["DeckCard"]] = relationship(
        "DeckCard",
        back_populates="deck",
        cascade="all, delete-orphan",
        order_by="DeckCard.order_index",
    )
    completions: Mapped[list["CardCompletion"]] = relationship(
        "CardCompletion",
        back_populates="deck",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )


class DeckCard(Base):
    __tablename__ = "deck_cards"
    __table_args__ = (
        UniqueConstraint("deck_id", "order_index", name="uq_deck_card_order"),
        UniqueConstraint("deck_id", "card_key", name="uq_deck_card_key"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    deck_id: Mapped[str] = mapped_column(
        ForeignKey("decks.id", ondelete="CASCADE"), nullable=False, index=True
    )
    # Identifier assigned at generation time
    card_key: Mapped[str] = mapped_column(String, nullable=False)
    order_index: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    is_quiz: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    hook: Mapped[str] = mapped_column(Text, nullable=False)
    meat: Mapped[str] = mapped_column(Text, nullable=False)
    simplified: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    category: Mapped[str] = mapped_column(String, nullable=False)
    difficulty: Mapped[str] = mapped_column(String(16), nullable=False)
    quiz_question: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    quiz_options: Mapped[Optional[list[str]]] = mapped_column(JSON, nullable=True)
    quiz_answer: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)

    deck: Mapped["Deck"] = relationship("Deck", back_populates="cards")


class CardCompletion(Base):
    __tablename__ = "card_completions"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    owner_id: Mapped[str] = mapped_column(String, nullable=False, index=True)
    deck_id: Mapped[str] = mapped_column(
        ForeignKey("decks.id", ondelete="CASCADE"), nullable=False, index=True
    )
    card_key: Mapped[str] = mapped_column(String, nullable=False)
    action: Mapped[CompletionAction] = mapped_column(
        Enum(CompletionAction), nullable=False
    )
    completed_at: Mapped[datetime] = mapped_column(
        DateTime,
        nullable=False,
        server_default=func.now(),
        index=True,
    )

    deck: Mapped["Deck"] = relationship("Deck", back_populates="completions")


class UserStamina(Base):
    __tablename__ = "user_stamina"

    owner_id: Mapped[str] = mapped_column(String, primary_key=True)
    total_cards_completed: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    total_words_learned: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    total_minutes_spent: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    current_streak: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    longest_streak: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    last_activity_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime,
        nullable=False,
        server_default=func.now(),
        onupdate=func.now(),
    )


__all__ = [
    "CompletionAction",
    "Deck",
    "DeckCard",
    "CardCompletion",
    "UserStamina",
]
