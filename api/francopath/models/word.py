"""
Word model.
"""
from sqlmodel import SQLModel, Field, Relationship
from typing import Optional, List
from datetime import datetime

from francopath.utils.time_utils import utc_now


class Word(SQLModel, table=True):
    """Word table - vocabulary entries with level and category metadata."""
    __tablename__ = "word"

    id: Optional[int] = Field(default=None, primary_key=True)
    french: str
    english: str
    part_of_speech: Optional[str] = None
    gender: Optional[str] = None
    cefr_level: str = Field(index=True)  # A0..C2
    category: str  # Topic keyword matched by focus/avoid tags
    subcategory: Optional[str] = None
    example_sentence: Optional[str] = None
    created_at: datetime = Field(default_factory=utc_now)

    # Relationships
    user_cards: List["UserCard"] = Relationship(back_populates="word")
