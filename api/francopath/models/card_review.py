"""
CardReview model.
"""
from sqlmodel import SQLModel, Field, Relationship
from typing import Optional
from datetime import datetime

from francopath.utils.time_utils import utc_now


class CardReview(SQLModel, table=True):
    """CardReview table - one row per answer event on a card."""
    __tablename__ = "card_review"

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="user.id", index=True)
    user_card_id: int = Field(foreign_key="user_card.id")
    study_session_id: Optional[int] = Field(default=None, foreign_key="study_session.id")
    action: str  # 'rate' or 'burn'
    quality: Optional[int] = None  # 1-5 for 'rate', null for 'burn'
    reviewed_at: datetime = Field(default_factory=utc_now)

    # Relationships
    user_card: "UserCard" = Relationship(back_populates="reviews")
    study_session: Optional["StudySession"] = Relationship(back_populates="reviews")
