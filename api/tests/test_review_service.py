# tests/test_review_service.py
from datetime import timedelta

import pytest
from sqlmodel import select

from conftest import NOW
from francopath.core.exceptions import ConflictError, InvalidInputError, NotFoundError
from francopath.models.models import CardReview, CardStatus, DeckPlanRecord, StudySession, UserCard
from francopath.services.deck_plan_service import get_fallback_plan, save_plan
from francopath.services.review_service import (
    assign_words,
    burn_card,
    demote_cards,
    record_review,
    reset_progress,
    revive_card,
)


def reviews_for(session, card_id):
    return session.exec(select(CardReview).where(CardReview.user_card_id == card_id)).all()


def test_record_review_updates_card_and_logs_answer(session, make_user, make_card):
    user = make_user()
    card = make_card(user)

    outcome = record_review(session, user.id, card.id, 4, NOW)

    assert outcome.is_correct
    assert not outcome.auto_burned
    assert outcome.card.interval_days == 1
    assert outcome.card.repetition == 1
    assert outcome.card.next_review == NOW + timedelta(days=1)
    assert outcome.card.last_review == NOW
    assert outcome.card.times_seen == 1
    assert outcome.card.times_correct == 1
    assert outcome.card.times_wrong == 0
    assert outcome.card.status == CardStatus.LEARNING.value

    rows = reviews_for(session, card.id)
    assert len(rows) == 1
    assert rows[0].action == "rate"
    assert rows[0].quality == 4


def test_wrong_answer_counts_and_resets(session, make_user, make_card):
    user = make_user()
    card = make_card(user, interval_days=15, repetition=3, times_seen=3, times_correct=3,
                     status=CardStatus.REVIEW.value)

    outcome = record_review(session, user.id, card.id, 1, NOW)

    assert not outcome.is_correct
    assert outcome.card.repetition == 0
    assert outcome.card.interval_days == 1
    assert outcome.card.times_wrong == 1
    assert outcome.card.times_seen == 4
    assert outcome.card.status == CardStatus.LEARNING.value


def test_out_of_range_quality_changes_nothing(session, make_user, make_card):
    user = make_user()
    card = make_card(user)

    with pytest.raises(InvalidInputError):
        record_review(session, user.id, card.id, 6, NOW)

    session.refresh(card)
    assert card.times_seen == 0
    assert reviews_for(session, card.id) == []


def test_auto_burn_on_strong_card(session, make_user, make_card):
    user = make_user()
    card = make_card(user, ease_factor=3.0, interval_days=30, repetition=5,
                     times_seen=5, times_correct=4, status=CardStatus.MASTERED.value)

    outcome = record_review(session, user.id, card.id, 5, NOW)

    assert outcome.auto_burned
    assert outcome.card.status == CardStatus.BURNED.value
    assert outcome.card.interval_days == 90


def test_burned_card_cannot_be_reviewed(session, make_user, make_card):
    user = make_user()
    card = make_card(user, status=CardStatus.BURNED.value)

    with pytest.raises(ConflictError):
        record_review(session, user.id, card.id, 4, NOW)


def test_other_users_card_is_not_found(session, make_user, make_card):
    owner = make_user()
    stranger = make_user(name="Stranger", email="s@example.com")
    card = make_card(owner)

    with pytest.raises(NotFoundError):
        record_review(session, stranger.id, card.id, 4, NOW)
    with pytest.raises(NotFoundError):
        record_review(session, owner.id, 9999, 4, NOW)


def test_unknown_study_session_is_not_found(session, make_user, make_card):
    user = make_user()
    card = make_card(user)
    with pytest.raises(NotFoundError):
        record_review(session, user.id, card.id, 4, NOW, study_session_id=123)


def test_burn_then_revive(session, make_user, make_card):
    user = make_user()
    card = make_card(user, interval_days=20, repetition=4, times_seen=4, status=CardStatus.REVIEW.value)

    burned = burn_card(session, user.id, card.id, NOW)
    assert burned.status == CardStatus.BURNED.value
    assert burned.interval_days == 20
    assert [r.action for r in reviews_for(session, card.id)] == ["burn"]
    assert reviews_for(session, card.id)[0].quality is None

    later = NOW + timedelta(days=3)
    revived = revive_card(session, user.id, card.id, later)
    assert revived.status == CardStatus.LEARNING.value
    assert revived.repetition == 0
    assert revived.interval_days == 1
    assert revived.next_review == later


def test_revive_requires_burned_card(session, make_user, make_card):
    user = make_user()
    card = make_card(user)
    with pytest.raises(ConflictError):
        revive_card(session, user.id, card.id, NOW)


def test_demote_failed_verifications(session, make_user, make_card):
    user = make_user()
    failed = make_card(user, interval_days=40, repetition=6, times_seen=6, status=CardStatus.MASTERED.value)
    passed = make_card(user, interval_days=40, repetition=6, times_seen=6, status=CardStatus.MASTERED.value)

    counts = demote_cards(session, user.id, [(failed.id, False), (passed.id, True), (9999, False)], NOW)

    assert counts == {"demoted": 1, "confirmed": 1}
    session.refresh(failed)
    session.refresh(passed)
    assert failed.status == CardStatus.LEARNING.value
    assert failed.repetition == 0
    assert failed.interval_days == 1
    assert failed.next_review == NOW
    assert passed.status == CardStatus.MASTERED.value


def test_assign_words_skips_existing(session, make_user, make_word, make_card):
    user = make_user()
    existing = make_word()
    make_card(user, existing)
    fresh = [make_word(), make_word()]

    created = assign_words(session, user.id, [existing.id, fresh[0].id, fresh[1].id, fresh[0].id], NOW)

    assert sorted(card.word_id for card in created) == sorted(word.id for word in fresh)
    for card in created:
        assert card.status == CardStatus.NEW.value
        assert card.ease_factor == pytest.approx(2.5)
        assert card.times_seen == 0
        assert card.next_review == NOW


def test_assign_unknown_word_is_rejected(session, make_user, make_word):
    user = make_user()
    word = make_word()
    with pytest.raises(NotFoundError):
        assign_words(session, user.id, [word.id, 4242], NOW)
    assert session.exec(select(UserCard)).all() == []


def test_reset_progress_deletes_everything_for_user(session, make_user, make_card, clock):
    user = make_user()
    other = make_user(name="Other", email="o@example.com")
    card = make_card(user)
    other_card = make_card(other)

    study_session = StudySession(user_id=user.id, started_at=NOW)
    session.add(study_session)
    session.commit()
    record_review(session, user.id, card.id, 4, NOW, study_session_id=study_session.id)
    record_review(session, other.id, other_card.id, 4, NOW)
    save_plan(session, user.id, "2026-03-10", get_fallback_plan("B1", None), True, 0, clock)

    counts = reset_progress(session, user.id)

    assert counts == {
        "card_reviews_deleted": 1,
        "user_cards_deleted": 1,
        "study_sessions_deleted": 1,
        "deck_plans_deleted": 1,
    }
    assert session.exec(select(UserCard).where(UserCard.user_id == user.id)).all() == []
    assert session.exec(select(DeckPlanRecord)).all() == []
    assert len(session.exec(select(UserCard)).all()) == 1
    assert len(session.exec(select(CardReview)).all()) == 1


def test_demote_ignores_unknown_and_foreign_cards(session, make_user, make_card):
    user = make_user()
    other = make_user(name="Other", email="other@example.com")
    own = make_card(user, times_seen=6, status=CardStatus.MASTERED.value)
    foreign = make_card(other, times_seen=6, status=CardStatus.MASTERED.value)

    counts = demote_cards(
        session,
        user.id,
        [(own.id, True), (foreign.id, True), (foreign.id, False), (4242, True)],
        NOW,
    )

    assert counts == {"demoted": 0, "confirmed": 1}
    session.refresh(foreign)
    assert foreign.status == CardStatus.MASTERED.value


def test_finished_study_session_rejects_answers(session, make_user, make_card):
    user = make_user()
    card = make_card(user)
    study_session = StudySession(user_id=user.id, started_at=NOW, ended_at=NOW + timedelta(minutes=10))
    session.add(study_session)
    session.commit()

    with pytest.raises(ConflictError):
        record_review(session, user.id, card.id, 4, NOW, study_session_id=study_session.id)
    with pytest.raises(ConflictError):
        burn_card(session, user.id, card.id, NOW, study_session_id=study_session.id)

    session.refresh(card)
    assert card.times_seen == 0
    assert card.status == CardStatus.NEW.value
