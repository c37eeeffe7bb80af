"""
Study service: loads candidates, resolves the plan and builds the study queue;
tracks study session records.
"""
# pyright: reportAttributeAccessIssue=false
import logging
import random
from dataclasses import dataclass
from datetime import datetime
from typing import Collection, Dict, List, Optional

from sqlmodel import Session, select

from francopath.core.clock import Clock
from francopath.core.config import settings
from francopath.core.exceptions import ConflictError, NotFoundError, ValidationError
from francopath.models.enums import LevelFilterPolicy
from francopath.models.models import CardStatus, StudySession, User, UserCard, Word
from francopath.services.deck_plan_service import PlanResolution, get_accuracy_by_level, resolve_plan
from francopath.services.plan_advisor import PlanAdvisor
from francopath.services.queue_service import (
    QueueCandidate,
    QueueSelection,
    allowed_levels,
    resolve_daily_goal,
    resolve_session_limit,
    select_queue,
)

logger = logging.getLogger(__name__)

CANDIDATE_MULTIPLIER = 4  # Candidates loaded per queue slot


@dataclass
class StudyQueue:
    """Everything the study screen needs."""
    user_id: int
    resolution: PlanResolution
    selection: QueueSelection
    cards_by_id: Dict[int, UserCard]
    daily_goal: int
    session_limit: Optional[int]


def get_user(session: Session, user_id: int) -> User:
    user = session.get(User, user_id)
    if not user:
        raise NotFoundError(f"User with id {user_id} not found")
    return user


def to_candidate(card: UserCard, word: Word) -> QueueCandidate:
    """Convert a stored card + word row to a queue candidate."""
    return QueueCandidate(
        card_id=card.id,
        word_id=card.word_id,
        level=word.cefr_level,
        category=word.category or "",
        subcategory=word.subcategory,
        next_review=card.next_review,
        created_at=card.created_at,
    )


def load_due_cards(
    session: Session,
    user_id: int,
    now: datetime,
    limit: int,
    levels: Optional[Collection[str]] = None,
) -> List[tuple]:
    """
    Seen, unburned cards whose next_review has passed, oldest due first.

    Args:
        levels: Word levels to keep (None keeps every level), applied before the limit
    """
    statement = (
        select(UserCard, Word)
        .join(Word, Word.id == UserCard.word_id)
        .where(
            UserCard.user_id == user_id,
            UserCard.next_review <= now,
            UserCard.times_seen > 0,
            UserCard.status != CardStatus.BURNED.value,
        )
    )
    if levels is not None:
        statement = statement.where(Word.cefr_level.in_(list(levels)))  # type: ignore
    return session.exec(
        statement.order_by(UserCard.next_review, UserCard.word_id).limit(limit)  # type: ignore
    ).all()


def load_new_cards(
    session: Session,
    user_id: int,
    limit: int,
    levels: Optional[Collection[str]] = None,
) -> List[tuple]:
    """Never-seen, unburned cards, oldest assignment first (optionally level-filtered)."""
    statement = (
        select(UserCard, Word)
        .join(Word, Word.id == UserCard.word_id)
        .where(
            UserCard.user_id == user_id,
            UserCard.times_seen == 0,
            UserCard.status != CardStatus.BURNED.value,
        )
    )
    if levels is not None:
        statement = statement.where(Word.cefr_level.in_(list(levels)))  # type: ignore
    return session.exec(
        statement.order_by(UserCard.created_at, UserCard.word_id).limit(limit)  # type: ignore
    ).all()


def build_study_queue(
    session: Session,
    user_id: int,
    advisor: PlanAdvisor,
    clock: Clock,
    policy: Optional[LevelFilterPolicy] = None,
    shuffle: bool = False,
    rng: Optional[random.Random] = None,
) -> StudyQueue:
    """
    Build today's study queue for a user.

    Args:
        session: Database session
        user_id: The user ID
        advisor: Plan advisor used when no plan is cached for today
        clock: Reference clock
        policy: Level filter policy (defaults to settings.level_filter_policy)
        shuffle: Shuffle presentation order
        rng: Random generator for shuffling

    Returns:
        StudyQueue with plan resolution, selection and the underlying cards
    """
    user = get_user(session, user_id)
    if policy is None:
        policy = LevelFilterPolicy(settings.level_filter_policy)

    daily_goal = resolve_daily_goal(user.daily_goal)
    session_limit = resolve_session_limit(user.session_limit, daily_goal)
    now = clock.now()

    accuracy_by_level = get_accuracy_by_level(session, user_id)
    resolution = resolve_plan(
        session,
        user_id=user_id,
        current_level=user.current_level,
        accuracy_by_level=accuracy_by_level,
        advisor=advisor,
        clock=clock,
    )

    candidate_limit = (
        session_limit * CANDIDATE_MULTIPLIER
        if session_limit is not None
        else settings.max_daily_goal * 20
    )
    # Level filter runs in SQL, before the candidate limit
    levels = allowed_levels(resolution.plan, policy)
    due_rows = load_due_cards(session, user_id, now, candidate_limit, levels)
    new_rows = load_new_cards(session, user_id, candidate_limit, levels)

    cards_by_id: Dict[int, UserCard] = {}
    for card, _ in list(due_rows) + list(new_rows):
        cards_by_id[card.id] = card

    selection = select_queue(
        due_cards=[to_candidate(card, word) for card, word in due_rows],
        new_cards=[to_candidate(card, word) for card, word in new_rows],
        plan=resolution.plan,
        daily_goal=daily_goal,
        session_limit=session_limit,
        policy=policy,
        shuffle=shuffle,
        rng=rng,
    )

    if selection.is_empty:
        logger.info(f"Nothing to study for user {user_id} today")

    return StudyQueue(
        user_id=user_id,
        resolution=resolution,
        selection=selection,
        cards_by_id=cards_by_id,
        daily_goal=daily_goal,
        session_limit=session_limit,
    )


def start_study_session(
    session: Session,
    user_id: int,
    now: datetime,
    session_type: str = "review",
) -> StudySession:
    """Open a study session record for a user."""
    get_user(session, user_id)
    study_session = StudySession(user_id=user_id, session_type=session_type, started_at=now)
    session.add(study_session)
    session.commit()
    session.refresh(study_session)
    logger.info(f"Started study session {study_session.id} for user {user_id}")
    return study_session


def finish_study_session(
    session: Session,
    user_id: int,
    study_session_id: int,
    cards_reviewed: int,
    cards_correct: int,
    now: datetime,
    cards_burned: int = 0,
    new_cards_seen: int = 0,
) -> StudySession:
    """
    Close a study session with the aggregate counts reported by the client.

    Raises:
        NotFoundError: If the session is not the user's
        ConflictError: If the session was already finished
        ValidationError: If the counts are inconsistent
    """
    study_session = session.get(StudySession, study_session_id)
    if not study_session or study_session.user_id != user_id:
        raise NotFoundError(f"Study session with id {study_session_id} not found for user {user_id}")
    if study_session.ended_at is not None:
        raise ConflictError(f"Study session {study_session_id} is already finished")
    if cards_correct > cards_reviewed:
        raise ValidationError("cards_correct cannot exceed cards_reviewed")
    if cards_burned > cards_reviewed:
        raise ValidationError("cards_burned cannot exceed cards_reviewed")

    study_session.ended_at = now
    study_session.cards_reviewed = cards_reviewed
    study_session.cards_correct = cards_correct
    study_session.cards_burned = cards_burned
    study_session.new_cards_seen = new_cards_seen
    study_session.duration_seconds = max(0, int((now - study_session.started_at).total_seconds()))
    session.add(study_session)
    session.commit()
    session.refresh(study_session)

    logger.info(
        f"Finished study session {study_session.id} for user {user_id}: "
        f"{cards_correct}/{cards_reviewed} correct, {cards_burned} burned, "
        f"{study_session.duration_seconds}s"
    )
    return study_session
