"""
Card endpoints: answers, burn / revive, assignment, verification and reset.
"""
from fastapi import APIRouter, Depends, status
from sqlmodel import Session
import logging

from francopath.core.clock import Clock, get_clock
from francopath.core.config import settings
from francopath.core.database import get_session
from francopath.schemas.card import (
    UserCardResponse,
    ReviewCardRequest,
    ReviewCardResponse,
    CardActionRequest,
    AssignWordsRequest,
    AssignWordsResponse,
    VerifyCardsRequest,
    VerifyCardsResponse,
    ResetProgressResponse,
)
from francopath.services.sm2_service import AutoBurnThresholds
from francopath.services.study_service import get_user
from francopath.services.review_service import (
    record_review,
    burn_card,
    revive_card,
    assign_words,
    demote_cards,
    reset_progress,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/cards", tags=["cards"])


def get_auto_burn_thresholds() -> AutoBurnThresholds:
    """Dependency for the configured auto-burn thresholds."""
    return AutoBurnThresholds(
        min_ease=settings.auto_burn_min_ease,
        min_interval_days=settings.auto_burn_min_interval_days,
        min_times_correct=settings.auto_burn_min_times_correct,
    )


@router.post("/{user_card_id}/review", response_model=ReviewCardResponse)
async def review_card(
    user_card_id: int,
    request: ReviewCardRequest,
    session: Session = Depends(get_session),
    clock: Clock = Depends(get_clock),
    thresholds: AutoBurnThresholds = Depends(get_auto_burn_thresholds),
):
    """
    Record a rated answer (quality 1-5) on a card and reschedule it.

    Returns 400 for a quality outside 1-5 and 409 for a burned card.
    """
    outcome = record_review(
        session,
        user_id=request.user_id,
        user_card_id=user_card_id,
        quality=request.quality,
        now=clock.now(),
        thresholds=thresholds,
        study_session_id=request.study_session_id,
    )
    return ReviewCardResponse(
        card=UserCardResponse.model_validate(outcome.card),
        quality=outcome.quality,
        is_correct=outcome.is_correct,
        auto_burned=outcome.auto_burned,
    )


@router.post("/{user_card_id}/burn", response_model=UserCardResponse)
async def burn(
    user_card_id: int,
    request: CardActionRequest,
    session: Session = Depends(get_session),
    clock: Clock = Depends(get_clock),
):
    """Retire a card from rotation without rating it."""
    card = burn_card(
        session,
        user_id=request.user_id,
        user_card_id=user_card_id,
        now=clock.now(),
        study_session_id=request.study_session_id,
    )
    return UserCardResponse.model_validate(card)


@router.post("/{user_card_id}/revive", response_model=UserCardResponse)
async def revive(
    user_card_id: int,
    request: CardActionRequest,
    session: Session = Depends(get_session),
    clock: Clock = Depends(get_clock),
):
    """Bring a burned card back as a learning card due now."""
    card = revive_card(session, user_id=request.user_id, user_card_id=user_card_id, now=clock.now())
    return UserCardResponse.model_validate(card)


@router.post("/assign", response_model=AssignWordsResponse, status_code=status.HTTP_201_CREATED)
async def assign(
    request: AssignWordsRequest,
    session: Session = Depends(get_session),
    clock: Clock = Depends(get_clock),
):
    """Assign words to a user as new cards (already assigned words are skipped)."""
    get_user(session, request.user_id)
    created = assign_words(session, request.user_id, request.word_ids, clock.now())
    return AssignWordsResponse(
        message=f"Assigned {len(created)} new card(s)",
        created_count=len(created),
        cards=[UserCardResponse.model_validate(card) for card in created],
    )


@router.post("/verify", response_model=VerifyCardsResponse)
async def verify(
    request: VerifyCardsRequest,
    session: Session = Depends(get_session),
    clock: Clock = Depends(get_clock),
):
    """
    Apply mastery-verification results.

    Failed cards are sent back to learning and are due immediately.
    """
    get_user(session, request.user_id)
    counts = demote_cards(
        session,
        request.user_id,
        [(result.card_id, result.passed) for result in request.results],
        clock.now(),
    )
    return VerifyCardsResponse(
        demoted=counts['demoted'],
        confirmed=counts['confirmed'],
        message=f"{counts['confirmed']} confirmed, {counts['demoted']} sent back for review",
    )


@router.delete("/progress", response_model=ResetProgressResponse)
async def reset(
    user_id: int,
    session: Session = Depends(get_session),
):
    """Delete all cards, reviews, study sessions and cached plans of a user."""
    get_user(session, user_id)
    counts = reset_progress(session, user_id)
    return ResetProgressResponse(message="All progress reset", **counts)
