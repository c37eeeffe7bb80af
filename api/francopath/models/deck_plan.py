"""
DeckPlanRecord model.
"""
from sqlmodel import SQLModel, Field
from sqlalchemy import UniqueConstraint, Column, Text
from typing import Optional
from datetime import datetime

from francopath.utils.time_utils import utc_now


class DeckPlanRecord(SQLModel, table=True):
    """DeckPlanRecord table - today's cached deck plan per user.

    plan_date is the calendar date in the reference timezone; one row per
    (user_id, plan_date), last write wins.
    """
    __tablename__ = "deck_plan"
    __table_args__ = (
        UniqueConstraint("user_id", "plan_date", name="uq_deck_plan_user_date"),
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="user.id", index=True)
    plan_date: str = Field(max_length=10)  # YYYY-MM-DD
    content: str = Field(sa_column=Column(Text, nullable=False))  # Serialized deck plan JSON
    fallback: bool = Field(default=False)
    tokens_used: int = Field(default=0)
    created_at: datetime = Field(default_factory=utc_now)
