"""
Deck plan service: validation, default plan, per-day cache and resolution.

resolve_plan() never raises. Whatever goes wrong (bad cache row, advisor down,
advisor answering nonsense, cache write failing) the caller still gets a
usable plan, degrading to the default plan.
"""
# pyright: reportAttributeAccessIssue=false
import json
import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlmodel import Session, select

from francopath.core.clock import Clock
from francopath.core.config import settings
from francopath.core.exceptions import AdvisoryUnavailableError
from francopath.models.models import DeckPlanRecord, UserCard, Word
from francopath.schemas.deck_plan import DeckPlan, LevelBand, Mix, normalize_level, one_level_below
from francopath.services.plan_advisor import PlanAdvisor, PlanAdvisorRequest

logger = logging.getLogger(__name__)

FALLBACK_SUPPORT_CAP_PCT = 20
FALLBACK_REVIEW_PCT = 70
FALLBACK_NEW_PCT = 30
FALLBACK_RATIONALE = "Fallback plan"


@dataclass
class PlanResolution:
    """Outcome of resolving today's plan for a user."""
    plan: DeckPlan
    plan_date: str
    cached: bool
    fallback: bool
    tokens_used: int = 0


def validate_deck_plan(value: Any) -> Optional[DeckPlan]:
    """
    Validate an untrusted deck plan.

    Args:
        value: Decoded JSON object, or a JSON string / bytes

    Returns:
        The validated DeckPlan, or None if the value is malformed, misses
        required fields or has out-of-range numbers
    """
    if isinstance(value, (str, bytes, bytearray)):
        try:
            value = json.loads(value)
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            logger.warning(f"Rejected deck plan: not valid JSON ({e})")
            return None

    if not isinstance(value, dict):
        logger.warning(f"Rejected deck plan: expected an object, got {type(value).__name__}")
        return None

    try:
        return DeckPlan.model_validate(value)
    except PydanticValidationError as e:
        logger.warning(f"Rejected deck plan: {e.error_count()} error(s): {e.errors()[:3]}")
        return None


def serialize_deck_plan(plan: DeckPlan) -> str:
    """Serialize a plan to its camelCase JSON form (absent fields omitted)."""
    return plan.model_dump_json(by_alias=True, exclude_none=True)


def get_fallback_plan(
    current_level: str,
    level_accuracy: Optional[int],
    support_accuracy_threshold: int = settings.support_accuracy_threshold,
) -> DeckPlan:
    """
    Build the default plan used when no valid plan is cached or generated.

    Args:
        current_level: Learner's current level (normalized to a plan level)
        level_accuracy: Recent accuracy percent at that level, or None
        support_accuracy_threshold: Accuracy below which a support level is added

    Returns:
        DeckPlan targeting the current level, 70/30 review/new, 20% support cap
    """
    primary = normalize_level(current_level)
    should_support = level_accuracy is not None and level_accuracy < support_accuracy_threshold

    return DeckPlan(
        target_level=primary,
        level_band=LevelBand(
            primary=primary,
            support=one_level_below(primary) if should_support else None,
            support_cap_pct=FALLBACK_SUPPORT_CAP_PCT,
        ),
        mix=Mix(review_pct=FALLBACK_REVIEW_PCT, new_pct=FALLBACK_NEW_PCT),
        rationale=FALLBACK_RATIONALE,
    )


def get_accuracy_by_level(
    session: Session,
    user_id: int,
    limit: int = settings.performance_sample_size,
) -> Dict[str, int]:
    """
    Recent accuracy percent per word level.

    Uses the most recently updated cards of the user; cards never seen are
    ignored.

    Args:
        session: Database session
        user_id: The user ID
        limit: Number of most recently updated cards to sample

    Returns:
        Dict mapping CEFR level to round(correct / seen * 100)
    """
    rows = session.exec(
        select(UserCard.times_seen, UserCard.times_correct, Word.cefr_level)
        .join(Word, Word.id == UserCard.word_id)
        .where(UserCard.user_id == user_id)
        .order_by(UserCard.updated_at.desc(), UserCard.id.desc())  # type: ignore
        .limit(limit)
    ).all()

    by_level: Dict[str, Dict[str, int]] = {}
    for times_seen, times_correct, cefr_level in rows:
        seen = times_seen or 0
        if seen <= 0 or not cefr_level:
            continue
        stats = by_level.setdefault(cefr_level, {"seen": 0, "correct": 0})
        stats["seen"] += seen
        stats["correct"] += times_correct or 0

    return {
        level: int(stats["correct"] * 100 / stats["seen"] + 0.5)
        for level, stats in by_level.items()
        if stats["seen"] > 0
    }


def get_cached_plan(session: Session, user_id: int, plan_date: str) -> Optional[DeckPlan]:
    """Return today's cached plan if one exists and still validates."""
    record = session.exec(
        select(DeckPlanRecord)
        .where(DeckPlanRecord.user_id == user_id, DeckPlanRecord.plan_date == plan_date)
        .order_by(DeckPlanRecord.created_at.desc())  # type: ignore
    ).first()
    if not record:
        return None

    plan = validate_deck_plan(record.content)
    if plan is None:
        logger.warning(f"Cached deck plan {record.id} for user {user_id} on {plan_date} is invalid, regenerating")
    return plan


def _write_plan_record(
    session: Session,
    user_id: int,
    plan_date: str,
    content: str,
    fallback: bool,
    tokens_used: int,
    clock: Clock,
) -> None:
    record = session.exec(
        select(DeckPlanRecord)
        .where(DeckPlanRecord.user_id == user_id, DeckPlanRecord.plan_date == plan_date)
    ).first()
    if record is None:
        record = DeckPlanRecord(user_id=user_id, plan_date=plan_date)
    record.content = content
    record.fallback = fallback
    record.tokens_used = tokens_used
    record.created_at = clock.now()
    session.add(record)
    session.commit()


def save_plan(
    session: Session,
    user_id: int,
    plan_date: str,
    plan: DeckPlan,
    fallback: bool,
    tokens_used: int,
    clock: Clock,
) -> bool:
    """
    Persist today's plan, last write wins.

    A concurrent request may insert the same (user, day) row between our read
    and our insert; the unique constraint then fails and we overwrite instead.

    Returns:
        True if the plan was stored, False if the write failed (logged)
    """
    content = serialize_deck_plan(plan)
    try:
        try:
            _write_plan_record(session, user_id, plan_date, content, fallback, tokens_used, clock)
        except IntegrityError:
            session.rollback()
            logger.info(f"Deck plan for user {user_id} on {plan_date} was written concurrently, overwriting")
            _write_plan_record(session, user_id, plan_date, content, fallback, tokens_used, clock)
    except SQLAlchemyError as e:
        session.rollback()
        logger.warning(f"Failed to cache deck plan for user {user_id} on {plan_date}: {str(e)}")
        return False
    return True


def resolve_plan(
    session: Session,
    user_id: int,
    current_level: str,
    accuracy_by_level: Dict[str, int],
    advisor: PlanAdvisor,
    clock: Clock,
) -> PlanResolution:
    """
    Return today's deck plan for a user.

    1. Reuse today's cached plan if it validates (cached=True)
    2. Otherwise ask the advisor and validate its proposal
    3. If the advisor fails or proposes an invalid plan, use the default plan (fallback=True)
    4. Persist whichever plan was produced as today's cached plan

    Args:
        session: Database session
        user_id: The user ID
        current_level: Learner's current CEFR level
        accuracy_by_level: Recent accuracy percent per level
        advisor: Plan advisor
        clock: Reference clock (defines "today")

    Returns:
        PlanResolution with the plan and cached/fallback flags
    """
    plan_date = clock.today_key()

    try:
        cached_plan = get_cached_plan(session, user_id, plan_date)
    except SQLAlchemyError as e:
        session.rollback()
        logger.warning(f"Failed to read cached deck plan for user {user_id}: {str(e)}")
        cached_plan = None

    if cached_plan is not None:
        logger.info(f"Using cached deck plan for user {user_id} on {plan_date}")
        return PlanResolution(plan=cached_plan, plan_date=plan_date, cached=True, fallback=False)

    primary = normalize_level(current_level)
    level_accuracy = accuracy_by_level.get(primary)

    plan: Optional[DeckPlan] = None
    tokens_used = 0
    try:
        proposal = advisor.propose(PlanAdvisorRequest(
            user_id=user_id,
            current_level=primary,
            level_accuracy=level_accuracy,
            accuracy_by_level=accuracy_by_level,
        ))
        tokens_used = proposal.tokens_used
        plan = validate_deck_plan(proposal.payload)
    except AdvisoryUnavailableError as e:
        logger.warning(f"Plan advisor unavailable for user {user_id}: {str(e)}")
    except Exception:
        # A broken advisor must not break the study session
        logger.exception(f"Plan advisor crashed for user {user_id}")

    fallback = plan is None
    if plan is None:
        plan = get_fallback_plan(primary, level_accuracy)

    save_plan(session, user_id, plan_date, plan, fallback, tokens_used, clock)

    logger.info(
        f"Resolved deck plan for user {user_id} on {plan_date}: "
        f"{'fallback' if fallback else 'generated'} ({plan.summary()})"
    )
    return PlanResolution(
        plan=plan,
        plan_date=plan_date,
        cached=False,
        fallback=fallback,
        tokens_used=tokens_used,
    )
