"""
Card schemas.
"""
from pydantic import BaseModel, Field
from typing import List, Optional
from datetime import datetime


class UserCardResponse(BaseModel):
    """Scheduling state of a user's card."""
    id: int
    user_id: int
    word_id: int
    ease_factor: float
    interval_days: int
    repetition: int
    next_review: datetime
    last_review: Optional[datetime] = None
    times_seen: int
    times_correct: int
    times_wrong: int
    status: str

    class Config:
        from_attributes = True


class ReviewCardRequest(BaseModel):
    """Request to record a rated answer on a card."""
    user_id: int = Field(..., description="User ID")
    quality: int = Field(..., description="Rating: 1=forgot, 2=hard, 3=okay, 4=good, 5=easy")
    study_session_id: Optional[int] = Field(None, description="Study session the answer belongs to")

    class Config:
        json_schema_extra = {
            "example": {
                "user_id": 1,
                "quality": 4,
                "study_session_id": 12
            }
        }


class ReviewCardResponse(BaseModel):
    """Response after recording a rated answer."""
    card: UserCardResponse
    quality: int
    is_correct: bool
    auto_burned: bool


class CardActionRequest(BaseModel):
    """Request for burn / revive actions."""
    user_id: int = Field(..., description="User ID")
    study_session_id: Optional[int] = Field(None, description="Study session the action belongs to")


class AssignWordsRequest(BaseModel):
    """Request to assign words to a user as new cards."""
    user_id: int = Field(..., description="User ID")
    word_ids: List[int] = Field(..., min_length=1, description="Word IDs to assign")

    class Config:
        json_schema_extra = {
            "example": {
                "user_id": 1,
                "word_ids": [10, 11, 12]
            }
        }


class AssignWordsResponse(BaseModel):
    """Response from word assignment."""
    message: str
    created_count: int
    cards: List[UserCardResponse]


class VerificationResult(BaseModel):
    """Outcome of a mastery-verification question for one card."""
    card_id: int
    passed: bool


class VerifyCardsRequest(BaseModel):
    """Request to apply mastery-verification results."""
    user_id: int = Field(..., description="User ID")
    results: List[VerificationResult] = Field(..., description="Per-card verification outcomes")

    class Config:
        json_schema_extra = {
            "example": {
                "user_id": 1,
                "results": [
                    {"card_id": 5, "passed": True},
                    {"card_id": 6, "passed": False}
                ]
            }
        }


class VerifyCardsResponse(BaseModel):
    """Response from mastery verification."""
    demoted: int
    confirmed: int
    message: str


class ResetProgressResponse(BaseModel):
    """Response from a progress reset."""
    message: str
    card_reviews_deleted: int
    user_cards_deleted: int
    study_sessions_deleted: int
    deck_plans_deleted: int
