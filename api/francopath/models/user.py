"""
User model.
"""
from sqlmodel import SQLModel, Field, Relationship
from typing import Optional, List
from datetime import datetime

from francopath.utils.time_utils import utc_now


class User(SQLModel, table=True):
    """User table - learner profile fields the study core needs."""
    __tablename__ = "user"

    id: Optional[int] = Field(default=None, primary_key=True)
    name: str
    email: Optional[str] = Field(default=None, unique=True, index=True)
    current_level: str = Field(default="A1")  # CEFR level from placement
    daily_goal: Optional[int] = Field(default=None)  # Cards per day, clamped when used
    session_limit: Optional[int] = Field(default=None)  # None = daily goal, 999 = unlimited
    created_at: datetime = Field(default_factory=utc_now)

    # Relationships
    user_cards: List["UserCard"] = Relationship(back_populates="user")
    study_sessions: List["StudySession"] = Relationship(back_populates="user")
