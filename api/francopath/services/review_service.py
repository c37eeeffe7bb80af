"""
Review service: applies answers and lifecycle actions to stored cards.
"""
# pyright: reportAttributeAccessIssue=false
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Dict, List, Optional, Sequence, Tuple

from sqlmodel import Session, select

from francopath.core.exceptions import ConflictError, NotFoundError
from francopath.models.models import (
    CardReview,
    CardStatus,
    DeckPlanRecord,
    ReviewAction,
    StudySession,
    UserCard,
    Word,
)
from francopath.services.sm2_service import (
    AutoBurnThresholds,
    SchedulingState,
    schedule,
    should_auto_burn,
    validate_quality,
)

logger = logging.getLogger(__name__)

DEFAULT_EASE_FACTOR = 2.5


@dataclass
class ReviewOutcome:
    """Result of recording one rated answer."""
    card: UserCard
    quality: int
    is_correct: bool
    auto_burned: bool


def get_user_card(session: Session, user_id: int, user_card_id: int) -> UserCard:
    """
    Load a card owned by the user.

    Raises:
        NotFoundError: If the card does not exist or belongs to another user
    """
    card = session.get(UserCard, user_card_id)
    if not card or card.user_id != user_id:
        raise NotFoundError(f"Card with id {user_card_id} not found for user {user_id}")
    return card


def _check_study_session(session: Session, user_id: int, study_session_id: Optional[int]) -> None:
    if study_session_id is None:
        return
    study_session = session.get(StudySession, study_session_id)
    if not study_session or study_session.user_id != user_id:
        raise NotFoundError(f"Study session with id {study_session_id} not found for user {user_id}")
    if study_session.ended_at is not None:
        raise ConflictError(f"Study session {study_session_id} is already finished")


def record_review(
    session: Session,
    user_id: int,
    user_card_id: int,
    quality: int,
    now: datetime,
    thresholds: AutoBurnThresholds = AutoBurnThresholds(),
    study_session_id: Optional[int] = None,
) -> ReviewOutcome:
    """
    Record a rated answer on a card.

    This function:
    - Rejects ratings outside 1-5
    - Runs the SM-2 scheduler on the stored state
    - Forces status 'burned' when the auto-burn thresholds are met
    - Increments times_seen and times_correct / times_wrong
    - Writes the full new state and a card_review row

    Args:
        session: Database session
        user_id: The user ID
        user_card_id: The card being answered
        quality: Rating 1-5
        now: Reference time of the answer
        thresholds: Auto-burn tunables
        study_session_id: Optional study session the answer belongs to

    Returns:
        ReviewOutcome with the updated card

    Raises:
        InvalidInputError: If quality is out of range
        NotFoundError: If the card is not the user's
        ConflictError: If the card is burned
    """
    quality = validate_quality(quality)
    card = get_user_card(session, user_id, user_card_id)
    _check_study_session(session, user_id, study_session_id)

    if card.status == CardStatus.BURNED.value:
        raise ConflictError(f"Card {user_card_id} is burned; revive it before reviewing")

    result = schedule(
        SchedulingState(
            ease_factor=card.ease_factor,
            interval_days=card.interval_days,
            repetition=card.repetition,
            next_review=card.next_review,
            last_review=card.last_review,
        ),
        quality,
        now,
    )

    # times_correct before this answer decides auto-burn
    auto_burned = should_auto_burn(result, card.times_correct, thresholds)
    status = CardStatus.BURNED if auto_burned else result.status

    card.ease_factor = result.ease_factor
    card.interval_days = result.interval_days
    card.repetition = result.repetition
    card.next_review = result.next_review
    card.last_review = result.last_review
    card.times_seen += 1
    if result.is_correct:
        card.times_correct += 1
    else:
        card.times_wrong += 1
    card.status = status.value
    card.updated_at = now
    session.add(card)

    session.add(CardReview(
        user_id=user_id,
        user_card_id=card.id,
        study_session_id=study_session_id,
        action=ReviewAction.RATE.value,
        quality=quality,
        reviewed_at=now,
    ))
    session.commit()
    session.refresh(card)

    logger.info(
        f"Reviewed card {card.id} for user {user_id}: quality={quality}, "
        f"interval={card.interval_days}d, ease={card.ease_factor:.2f}, status={card.status}"
        + (" (auto-burned)" if auto_burned else "")
    )
    return ReviewOutcome(card=card, quality=quality, is_correct=result.is_correct, auto_burned=auto_burned)


def burn_card(
    session: Session,
    user_id: int,
    user_card_id: int,
    now: datetime,
    study_session_id: Optional[int] = None,
) -> UserCard:
    """
    Retire a card from rotation by hand (the learner found it too easy).

    Bypasses the scheduler; only the status changes.
    """
    card = get_user_card(session, user_id, user_card_id)
    _check_study_session(session, user_id, study_session_id)
    card.status = CardStatus.BURNED.value
    card.updated_at = now
    session.add(card)
    session.add(CardReview(
        user_id=user_id,
        user_card_id=card.id,
        study_session_id=study_session_id,
        action=ReviewAction.BURN.value,
        quality=None,
        reviewed_at=now,
    ))
    session.commit()
    session.refresh(card)
    logger.info(f"Burned card {card.id} for user {user_id}")
    return card


def _send_back_to_learning(card: UserCard, now: datetime) -> None:
    card.status = CardStatus.LEARNING.value
    card.repetition = 0
    card.interval_days = 1
    card.next_review = now
    card.updated_at = now


def revive_card(session: Session, user_id: int, user_card_id: int, now: datetime) -> UserCard:
    """
    Bring a burned card back into rotation as a learning card due now.

    Raises:
        ConflictError: If the card is not burned
    """
    card = get_user_card(session, user_id, user_card_id)
    if card.status != CardStatus.BURNED.value:
        raise ConflictError(f"Card {user_card_id} is not burned (status={card.status})")
    _send_back_to_learning(card, now)
    session.add(card)
    session.commit()
    session.refresh(card)
    logger.info(f"Revived card {card.id} for user {user_id}")
    return card


def demote_cards(
    session: Session,
    user_id: int,
    results: Sequence[Tuple[int, bool]],
    now: datetime,
) -> Dict[str, int]:
    """
    Apply mastery-verification results.

    Cards that failed verification go back to learning, due now. Cards that
    passed are left untouched. Unknown card ids and other users' cards are
    skipped and not counted.

    Args:
        session: Database session
        user_id: The user ID
        results: (user_card_id, passed) pairs
        now: Reference time

    Returns:
        Dict with 'demoted' and 'confirmed' counts
    """
    demoted = 0
    confirmed = 0

    for user_card_id, passed in results:
        card = session.get(UserCard, user_card_id)
        if not card or card.user_id != user_id:
            logger.warning(f"Skipping verification result for unknown card {user_card_id} (user {user_id})")
            continue
        if passed:
            confirmed += 1
            continue
        _send_back_to_learning(card, now)
        session.add(card)
        demoted += 1

    session.commit()
    logger.info(f"Verification for user {user_id}: {confirmed} confirmed, {demoted} demoted")
    return {'demoted': demoted, 'confirmed': confirmed}


def assign_words(
    session: Session,
    user_id: int,
    word_ids: Sequence[int],
    now: datetime,
) -> List[UserCard]:
    """
    Create scheduling state (status 'new') for words the user does not have yet.

    Args:
        session: Database session
        user_id: The user ID
        word_ids: Words to assign
        now: Reference time (new cards are due immediately)

    Returns:
        The newly created cards (already assigned words are skipped)

    Raises:
        NotFoundError: If any word id does not exist
    """
    unique_ids = list(dict.fromkeys(word_ids))
    if not unique_ids:
        return []

    found_ids = set(session.exec(
        select(Word.id).where(Word.id.in_(unique_ids))  # type: ignore
    ).all())
    missing = [word_id for word_id in unique_ids if word_id not in found_ids]
    if missing:
        raise NotFoundError(f"Words not found: {missing}")

    existing_ids = set(session.exec(
        select(UserCard.word_id).where(
            UserCard.user_id == user_id,
            UserCard.word_id.in_(unique_ids)  # type: ignore
        )
    ).all())

    created: List[UserCard] = []
    for word_id in unique_ids:
        if word_id in existing_ids:
            continue
        card = UserCard(
            user_id=user_id,
            word_id=word_id,
            ease_factor=DEFAULT_EASE_FACTOR,
            interval_days=0,
            repetition=0,
            next_review=now,
            status=CardStatus.NEW.value,
            created_at=now,
            updated_at=now,
        )
        session.add(card)
        created.append(card)

    session.commit()
    for card in created:
        session.refresh(card)

    logger.info(f"Assigned {len(created)} new card(s) to user {user_id} ({len(existing_ids)} already assigned)")
    return created


def reset_progress(session: Session, user_id: int) -> Dict[str, int]:
    """
    Delete all study progress for a user.

    Deletes in foreign-key order:
    1. All CardReviews (they reference cards and study sessions)
    2. All UserCards
    3. All StudySessions
    4. All cached DeckPlans

    Returns:
        Dict with counts of deleted rows per table
    """
    reviews = session.exec(select(CardReview).where(CardReview.user_id == user_id)).all()
    for review in reviews:
        session.delete(review)

    cards = session.exec(select(UserCard).where(UserCard.user_id == user_id)).all()
    for card in cards:
        session.delete(card)

    study_sessions = session.exec(select(StudySession).where(StudySession.user_id == user_id)).all()
    for study_session in study_sessions:
        session.delete(study_session)

    plans = session.exec(select(DeckPlanRecord).where(DeckPlanRecord.user_id == user_id)).all()
    for plan in plans:
        session.delete(plan)

    session.commit()

    counts = {
        'card_reviews_deleted': len(reviews),
        'user_cards_deleted': len(cards),
        'study_sessions_deleted': len(study_sessions),
        'deck_plans_deleted': len(plans),
    }
    logger.info(f"Reset progress for user {user_id}: {counts}")
    return counts
