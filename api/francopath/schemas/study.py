"""
Study queue and study session schemas.
"""
from pydantic import BaseModel, Field
from typing import List, Optional
from datetime import datetime

from francopath.schemas.deck_plan import DeckPlan


class StudyWordResponse(BaseModel):
    """Word shown on a study card."""
    id: int
    french: str
    english: str
    part_of_speech: Optional[str] = None
    gender: Optional[str] = None
    cefr_level: str
    category: str
    subcategory: Optional[str] = None
    example_sentence: Optional[str] = None

    class Config:
        from_attributes = True


class StudyCardResponse(BaseModel):
    """One card in the study queue."""
    id: int
    word_id: int
    kind: str  # 'review' or 'new'
    ease_factor: float
    interval_days: int
    repetition: int
    next_review: datetime
    times_seen: int
    times_correct: int
    times_wrong: int
    status: str
    word: StudyWordResponse


class StudyQueueResponse(BaseModel):
    """Today's study queue."""
    user_id: int
    plan_date: str
    plan: DeckPlan
    deck_plan_summary: str
    plan_cached: bool
    plan_fallback: bool
    daily_goal: int
    session_limit: Optional[int] = None  # None = unlimited
    review_quota: int
    new_quota: int
    review_count: int
    new_count: int
    cards: List[StudyCardResponse]
    message: Optional[str] = None  # Set when there is nothing to study


class StartStudySessionRequest(BaseModel):
    """Request to open a study session."""
    user_id: int = Field(..., description="User ID")
    session_type: str = Field("review", description="Kind of session, e.g. 'review'")


class FinishStudySessionRequest(BaseModel):
    """Aggregate counts reported when a study session ends."""
    user_id: int = Field(..., description="User ID")
    cards_reviewed: int = Field(..., ge=0, description="Cards answered or burned")
    cards_correct: int = Field(..., ge=0, description="Cards answered correctly")
    cards_burned: int = Field(0, ge=0, description="Cards burned during the session")
    new_cards_seen: int = Field(0, ge=0, description="New cards seen during the session")

    class Config:
        json_schema_extra = {
            "example": {
                "user_id": 1,
                "cards_reviewed": 20,
                "cards_correct": 16,
                "cards_burned": 1,
                "new_cards_seen": 6
            }
        }


class StudySessionResponse(BaseModel):
    """Study session record."""
    id: int
    user_id: int
    session_type: str
    started_at: datetime
    ended_at: Optional[datetime] = None
    cards_reviewed: int
    cards_correct: int
    cards_burned: int
    new_cards_seen: int
    duration_seconds: Optional[int] = None

    class Config:
        from_attributes = True
