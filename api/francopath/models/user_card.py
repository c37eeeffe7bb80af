"""
UserCard model.
"""
from sqlmodel import SQLModel, Field, Relationship
from sqlalchemy import UniqueConstraint
from typing import Optional, List
from datetime import datetime

from francopath.models.enums import CardStatus
from francopath.utils.time_utils import utc_now


class UserCard(SQLModel, table=True):
    """UserCard table - SM-2 scheduling state for one user/word pair."""
    __tablename__ = "user_card"
    __table_args__ = (
        UniqueConstraint("user_id", "word_id", name="uq_user_card_user_word"),
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="user.id", index=True)
    word_id: int = Field(foreign_key="word.id")
    ease_factor: float = Field(default=2.5)  # Never below 1.3
    interval_days: int = Field(default=0)
    repetition: int = Field(default=0)  # Consecutive correct answers since last lapse
    next_review: datetime = Field(default_factory=utc_now, index=True)
    last_review: Optional[datetime] = None
    times_seen: int = Field(default=0)
    times_correct: int = Field(default=0)
    times_wrong: int = Field(default=0)
    status: str = Field(default=CardStatus.NEW.value)
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)

    # Relationships
    user: "User" = Relationship(back_populates="user_cards")
    word: "Word" = Relationship(back_populates="user_cards")
    reviews: List["CardReview"] = Relationship(back_populates="user_card")
