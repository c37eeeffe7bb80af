"""
StudySession model.
"""
from sqlmodel import SQLModel, Field, Relationship
from typing import Optional, List
from datetime import datetime

from francopath.utils.time_utils import utc_now


class StudySession(SQLModel, table=True):
    """StudySession table - one sitting through a study queue."""
    __tablename__ = "study_session"

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="user.id", index=True)
    session_type: str = Field(default="review")
    started_at: datetime = Field(default_factory=utc_now)
    ended_at: Optional[datetime] = None
    cards_reviewed: int = Field(default=0)
    cards_correct: int = Field(default=0)
    cards_burned: int = Field(default=0)
    new_cards_seen: int = Field(default=0)
    duration_seconds: Optional[int] = None

    # Relationships
    user: "User" = Relationship(back_populates="study_sessions")
    reviews: List["CardReview"] = Relationship(back_populates="study_session")
