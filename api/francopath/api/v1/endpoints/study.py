"""
Study endpoints: today's deck plan, today's queue and study sessions.
"""
from fastapi import APIRouter, Depends, Query, status
from sqlmodel import Session
import logging

from francopath.core.clock import Clock, get_clock
from francopath.core.database import get_session
from francopath.schemas.deck_plan import DeckPlanResponse
from francopath.schemas.study import (
    StudyQueueResponse,
    StudyCardResponse,
    StudyWordResponse,
    StartStudySessionRequest,
    FinishStudySessionRequest,
    StudySessionResponse,
)
from francopath.services.deck_plan_service import get_accuracy_by_level, resolve_plan
from francopath.services.plan_advisor import PlanAdvisor, get_plan_advisor
from francopath.services.queue_service import REVIEW, NEW
from francopath.services.study_service import (
    build_study_queue,
    get_user,
    start_study_session,
    finish_study_session,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/study", tags=["study"])

NOTHING_TO_STUDY = "Nothing to study right now. Come back when more cards are due."


@router.get("/plan", response_model=DeckPlanResponse)
def get_todays_plan(
    user_id: int,
    session: Session = Depends(get_session),
    advisor: PlanAdvisor = Depends(get_plan_advisor),
    clock: Clock = Depends(get_clock),
):
    """
    Get today's deck plan for a user.

    Returns the cached plan if one was made today; otherwise asks the plan
    advisor and caches the result. Falls back to the default plan whenever
    the advisor fails, so this endpoint does not fail on advisor errors.
    """
    user = get_user(session, user_id)
    resolution = resolve_plan(
        session,
        user_id=user.id,
        current_level=user.current_level,
        accuracy_by_level=get_accuracy_by_level(session, user.id),
        advisor=advisor,
        clock=clock,
    )
    return DeckPlanResponse(
        user_id=user.id,
        plan_date=resolution.plan_date,
        plan=resolution.plan,
        summary=resolution.plan.summary(),
        cached=resolution.cached,
        fallback=resolution.fallback,
    )


@router.get("/queue", response_model=StudyQueueResponse)
def get_study_queue(
    user_id: int,
    shuffle: bool = Query(False, description="Shuffle presentation order"),
    session: Session = Depends(get_session),
    advisor: PlanAdvisor = Depends(get_plan_advisor),
    clock: Clock = Depends(get_clock),
):
    """
    Get today's study queue for a user.

    Review cards come first, then new cards, unless shuffle is set. An empty
    card list is a valid answer meaning there is nothing to study.
    """
    queue = build_study_queue(session, user_id, advisor=advisor, clock=clock, shuffle=shuffle)
    selection = queue.selection
    review_ids = {candidate.card_id for candidate in selection.review}

    cards = []
    for candidate in selection.cards:
        card = queue.cards_by_id[candidate.card_id]
        cards.append(StudyCardResponse(
            id=card.id,
            word_id=card.word_id,
            kind=REVIEW if candidate.card_id in review_ids else NEW,
            ease_factor=card.ease_factor,
            interval_days=card.interval_days,
            repetition=card.repetition,
            next_review=card.next_review,
            times_seen=card.times_seen,
            times_correct=card.times_correct,
            times_wrong=card.times_wrong,
            status=card.status,
            word=StudyWordResponse.model_validate(card.word),
        ))

    plan = queue.resolution.plan
    return StudyQueueResponse(
        user_id=user_id,
        plan_date=queue.resolution.plan_date,
        plan=plan,
        deck_plan_summary=f"Today: {plan.summary()}",
        plan_cached=queue.resolution.cached,
        plan_fallback=queue.resolution.fallback,
        daily_goal=queue.daily_goal,
        session_limit=queue.session_limit,
        review_quota=selection.review_quota,
        new_quota=selection.new_quota,
        review_count=len(selection.review),
        new_count=len(selection.new),
        cards=cards,
        message=NOTHING_TO_STUDY if selection.is_empty else None,
    )


@router.post("/sessions", response_model=StudySessionResponse, status_code=status.HTTP_201_CREATED)
async def start_session(
    request: StartStudySessionRequest,
    session: Session = Depends(get_session),
    clock: Clock = Depends(get_clock),
):
    """Open a study session."""
    study_session = start_study_session(session, request.user_id, clock.now(), request.session_type)
    return StudySessionResponse.model_validate(study_session)


@router.post("/sessions/{study_session_id}/finish", response_model=StudySessionResponse)
async def finish_session(
    study_session_id: int,
    request: FinishStudySessionRequest,
    session: Session = Depends(get_session),
    clock: Clock = Depends(get_clock),
):
    """
    Close a study session with the counts the client collected.

    Streak and daily activity bookkeeping happen elsewhere.
    """
    study_session = finish_study_session(
        session,
        user_id=request.user_id,
        study_session_id=study_session_id,
        cards_reviewed=request.cards_reviewed,
        cards_correct=request.cards_correct,
        now=clock.now(),
        cards_burned=request.cards_burned,
        new_cards_seen=request.new_cards_seen,
    )
    return StudySessionResponse.model_validate(study_session)
