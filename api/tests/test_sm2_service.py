# tests/test_sm2_service.py
from datetime import datetime, timedelta

import pytest

from francopath.core.exceptions import InvalidInputError
from francopath.models.enums import CardStatus
from francopath.services.sm2_service import (
    AutoBurnThresholds,
    SchedulingState,
    derive_status,
    round_half_up,
    schedule,
    should_auto_burn,
    update_ease_factor,
    validate_quality,
)

T0 = datetime(2026, 3, 10, 15, 0, 0)


def state(ease_factor=2.5, interval_days=0, repetition=0):
    return SchedulingState(
        ease_factor=ease_factor,
        interval_days=interval_days,
        repetition=repetition,
        next_review=T0,
    )


def test_first_correct_answer_schedules_one_day():
    """First correct answer: interval=1, repetition=1."""
    result = schedule(state(), 4, T0)
    assert result.interval_days == 1
    assert result.repetition == 1
    assert result.ease_factor == pytest.approx(2.5)
    assert result.next_review == T0 + timedelta(days=1)
    assert result.last_review == T0
    assert result.is_correct
    assert result.status == CardStatus.LEARNING


def test_second_correct_answer_schedules_three_days():
    result = schedule(state(interval_days=1, repetition=1), 4, T0)
    assert result.interval_days == 3
    assert result.repetition == 2


def test_later_correct_answer_grows_with_previous_ease():
    """interval = round(6 * 2.5) = 15, ease unchanged at quality 4, status review."""
    result = schedule(state(interval_days=6, repetition=2), 4, T0)
    assert result.interval_days == 15
    assert result.repetition == 3
    assert result.ease_factor == pytest.approx(2.5)
    assert result.status == CardStatus.REVIEW


def test_half_interval_rounds_up():
    result = schedule(state(interval_days=3, repetition=2), 3, T0)
    # round(3 * 2.5) = round(7.5) = 8, computed with the ease from before the answer
    assert result.interval_days == 8


def test_quality_one_resets_and_lowers_ease():
    result = schedule(state(ease_factor=2.5, interval_days=30, repetition=4), 1, T0)
    assert result.repetition == 0
    assert result.interval_days == 1
    assert result.status == CardStatus.LEARNING
    assert not result.is_correct
    assert result.ease_factor == pytest.approx(2.5 - 0.54)


def test_quality_two_counts_as_incorrect():
    result = schedule(state(interval_days=10, repetition=3), 2, T0)
    assert not result.is_correct
    assert result.repetition == 0
    assert result.interval_days == 1


def test_quality_three_counts_as_correct():
    result = schedule(state(), 3, T0)
    assert result.is_correct
    assert result.repetition == 1


def test_ease_factor_never_below_minimum():
    """Ease factor never drops below 1.3."""
    result = schedule(state(ease_factor=1.3), 1, T0)
    assert result.ease_factor == pytest.approx(1.3)
    assert update_ease_factor(1.35, 1) == pytest.approx(1.3)


def test_easy_answer_raises_ease():
    assert update_ease_factor(2.5, 5) == pytest.approx(2.6)


def test_interval_capped_at_180_days():
    result = schedule(state(ease_factor=2.5, interval_days=100, repetition=5), 5, T0)
    assert result.interval_days == 180
    assert result.next_review == T0 + timedelta(days=180)


def test_mastered_after_five_repetitions_with_good_ease():
    result = schedule(state(ease_factor=2.5, interval_days=20, repetition=4), 4, T0)
    assert result.repetition == 5
    assert result.status == CardStatus.MASTERED


def test_interval_non_decreasing_across_correct_answers():
    current = state()
    previous_interval = 0
    for quality in [3, 4, 5, 3, 4, 5, 3, 3]:
        result = schedule(current, quality, T0)
        assert result.interval_days >= previous_interval
        assert result.ease_factor >= 1.3
        previous_interval = result.interval_days
        current = SchedulingState(
            ease_factor=result.ease_factor,
            interval_days=result.interval_days,
            repetition=result.repetition,
            next_review=result.next_review,
            last_review=result.last_review,
        )


def test_derive_status_rules():
    assert derive_status(0, 2.5, 1) == CardStatus.LEARNING
    assert derive_status(5, 2.0, 1) == CardStatus.MASTERED
    assert derive_status(5, 1.9, 10) == CardStatus.REVIEW
    assert derive_status(2, 2.5, 6) == CardStatus.LEARNING
    assert derive_status(2, 2.5, 7) == CardStatus.REVIEW


def test_round_half_up():
    assert round_half_up(2.5) == 3
    assert round_half_up(7.5) == 8
    assert round_half_up(7.49) == 7


@pytest.mark.parametrize("quality", [0, 6, -1, True, "3", 3.0, None])
def test_validate_quality_rejects_out_of_range(quality):
    with pytest.raises(InvalidInputError):
        validate_quality(quality)


def test_validate_quality_accepts_range():
    assert [validate_quality(q) for q in range(1, 6)] == [1, 2, 3, 4, 5]


def test_auto_burn_needs_every_threshold():
    result = schedule(state(ease_factor=3.0, interval_days=30, repetition=5), 5, T0)
    assert result.interval_days == 90
    assert result.ease_factor == pytest.approx(3.1)
    assert should_auto_burn(result, times_correct=4)
    assert not should_auto_burn(result, times_correct=3)


def test_auto_burn_never_on_incorrect_answer():
    result = schedule(state(ease_factor=3.5, interval_days=100, repetition=6), 2, T0)
    assert not should_auto_burn(result, times_correct=10)


def test_auto_burn_thresholds_are_tunable():
    result = schedule(state(ease_factor=2.5, interval_days=20, repetition=3), 5, T0)
    assert not should_auto_burn(result, times_correct=5)
    loose = AutoBurnThresholds(min_ease=2.0, min_interval_days=30, min_times_correct=1)
    assert should_auto_burn(result, times_correct=5, thresholds=loose)
