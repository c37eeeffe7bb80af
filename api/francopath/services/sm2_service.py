"""
SM-2 spaced repetition scheduler.

Quality ratings:
1 = Forgot completely (blackout)
2 = Hard (wrong but recognized after seeing answer)
3 = Okay (correct but with difficulty)
4 = Good (correct with some hesitation)
5 = Easy (instant recall)

The scheduler itself is pure: it never raises and never touches the database.
Callers reject out-of-range ratings with validate_quality() first.
"""
import math
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional

from francopath.core.exceptions import InvalidInputError
from francopath.models.enums import CardStatus

MIN_EASE_FACTOR = 1.3
MAX_INTERVAL_DAYS = 180
MIN_QUALITY = 1
MAX_QUALITY = 5
CORRECT_THRESHOLD = 3  # quality >= 3 counts as a correct answer

# Status thresholds
MASTERED_MIN_REPETITION = 5
MASTERED_MIN_EASE = 2.0
REVIEW_MIN_INTERVAL_DAYS = 7


@dataclass(frozen=True)
class SchedulingState:
    """Scheduling fields of a card that the scheduler reads."""
    ease_factor: float
    interval_days: int
    repetition: int
    next_review: datetime
    last_review: Optional[datetime] = None


@dataclass(frozen=True)
class ScheduleResult:
    """Updated scheduling fields plus the derived lifecycle status."""
    ease_factor: float
    interval_days: int
    repetition: int
    next_review: datetime
    last_review: datetime
    is_correct: bool
    status: CardStatus


@dataclass(frozen=True)
class AutoBurnThresholds:
    """Empirical limits past which a correctly answered card leaves rotation."""
    min_ease: float = 3.0
    min_interval_days: int = 60
    min_times_correct: int = 4


def round_half_up(value: float) -> int:
    """Round to the nearest integer with .5 going up (not banker's rounding)."""
    return int(math.floor(value + 0.5))


def validate_quality(quality) -> int:
    """
    Reject quality ratings the scheduler does not accept.

    Args:
        quality: Rating submitted by the learner

    Returns:
        The rating as an int

    Raises:
        InvalidInputError: If quality is not an integer in [1, 5]
    """
    if isinstance(quality, bool) or not isinstance(quality, int):
        raise InvalidInputError(f"quality must be an integer between 1 and 5. Got: {quality!r}")
    if quality < MIN_QUALITY or quality > MAX_QUALITY:
        raise InvalidInputError(f"quality must be between 1 and 5. Got: {quality}")
    return quality


def update_ease_factor(ease_factor: float, quality: int) -> float:
    """Classic SM-2 ease adjustment, floored at 1.3."""
    miss = MAX_QUALITY - quality
    return max(MIN_EASE_FACTOR, ease_factor + (0.1 - miss * (0.08 + miss * 0.02)))


def derive_status(repetition: int, ease_factor: float, interval_days: int) -> CardStatus:
    """Lifecycle status implied by the scheduling fields."""
    if repetition == 0:
        return CardStatus.LEARNING
    if repetition >= MASTERED_MIN_REPETITION and ease_factor >= MASTERED_MIN_EASE:
        return CardStatus.MASTERED
    if interval_days >= REVIEW_MIN_INTERVAL_DAYS:
        return CardStatus.REVIEW
    return CardStatus.LEARNING


def schedule(state: SchedulingState, quality: int, now: datetime) -> ScheduleResult:
    """
    Apply one answer to a card's scheduling state.

    Args:
        state: Current scheduling state
        quality: Rating 1-5 (already validated by the caller)
        now: Reference time of the answer

    Returns:
        ScheduleResult with new interval, repetition, ease factor, dates and status
    """
    is_correct = quality >= CORRECT_THRESHOLD
    interval_days = state.interval_days
    repetition = state.repetition

    if is_correct:
        if repetition == 0:
            interval_days = 1
        elif repetition == 1:
            interval_days = 3
        else:
            # Grow with the ease factor from before this answer
            interval_days = round_half_up(interval_days * state.ease_factor)
        repetition += 1
    else:
        repetition = 0
        interval_days = 1

    ease_factor = update_ease_factor(state.ease_factor, quality)
    interval_days = min(interval_days, MAX_INTERVAL_DAYS)

    return ScheduleResult(
        ease_factor=ease_factor,
        interval_days=interval_days,
        repetition=repetition,
        next_review=now + timedelta(days=interval_days),
        last_review=now,
        is_correct=is_correct,
        status=derive_status(repetition, ease_factor, interval_days),
    )


def should_auto_burn(
    result: ScheduleResult,
    times_correct: int,
    thresholds: AutoBurnThresholds = AutoBurnThresholds(),
) -> bool:
    """
    Decide whether a freshly scheduled card is retired from rotation.

    Args:
        result: Output of schedule() for this answer
        times_correct: Card's correct-answer count before this answer
        thresholds: Auto-burn tunables

    Returns:
        True if the card should be forced to status 'burned'
    """
    return (
        result.is_correct
        and result.ease_factor > thresholds.min_ease
        and result.interval_days > thresholds.min_interval_days
        and times_correct >= thresholds.min_times_correct
    )
