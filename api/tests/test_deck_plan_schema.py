# tests/test_deck_plan_schema.py
import copy
import json

import pytest

from francopath.schemas.deck_plan import DeckPlan, normalize_level, one_level_below
from francopath.services.deck_plan_service import (
    get_fallback_plan,
    serialize_deck_plan,
    validate_deck_plan,
)
from conftest import VALID_PLAN


def plan_with(**changes):
    payload = copy.deepcopy(VALID_PLAN)
    payload.update(changes)
    return payload


def test_valid_plan_is_accepted():
    plan = validate_deck_plan(VALID_PLAN)
    assert isinstance(plan, DeckPlan)
    assert plan.target_level == "B1"
    assert plan.level_band.support == "A2"
    assert plan.level_band.support_cap_pct == 20
    assert plan.mix.review_pct == 70
    assert plan.difficulty_bias == "balanced"
    assert plan.summary() == "B1 + A2 support · 70/30 review/new"


def test_mix_must_sum_to_100():
    """reviewPct 70 + newPct 31 = 101 is rejected."""
    assert validate_deck_plan(plan_with(mix={"reviewPct": 70, "newPct": 31})) is None


@pytest.mark.parametrize("band", [
    {"primary": "B1", "support": "A1", "supportCapPct": 20},
    {"primary": "B1", "support": "B2", "supportCapPct": 20},
    {"primary": "A1", "support": "A0", "supportCapPct": 20},
    {"primary": "B1", "support": "A2", "supportCapPct": 51},
    {"primary": "B1", "support": "A2", "supportCapPct": -1},
    {"primary": "Z9", "supportCapPct": 20},
    {"primary": "B1", "support": "A2"},
])
def test_invalid_level_band_is_rejected(band):
    assert validate_deck_plan(plan_with(levelBand=band)) is None


def test_support_is_optional():
    plan = validate_deck_plan(plan_with(levelBand={"primary": "A1", "support": "", "supportCapPct": 0}))
    assert plan is not None
    assert plan.level_band.support is None
    assert plan.summary() == "A1 · 70/30 review/new"


@pytest.mark.parametrize("rationale", ["", "   ", None, 12])
def test_rationale_required(rationale):
    assert validate_deck_plan(plan_with(rationale=rationale)) is None


def test_missing_required_field_is_rejected():
    payload = copy.deepcopy(VALID_PLAN)
    del payload["mix"]
    assert validate_deck_plan(payload) is None


def test_unknown_difficulty_bias_is_rejected():
    assert validate_deck_plan(plan_with(difficultyBias="extreme")) is None
    assert validate_deck_plan(plan_with(difficultyBias="")).difficulty_bias is None


def test_tags_are_sanitized():
    plan = validate_deck_plan(plan_with(focusTags=["  food ", "", 7, "verbs"], avoidTags=[]))
    assert plan.focus_tags == ["food", "verbs"]
    assert plan.avoid_tags is None
    assert validate_deck_plan(plan_with(focusTags="food")).focus_tags is None


def test_json_text_is_accepted():
    assert validate_deck_plan(json.dumps(VALID_PLAN)) is not None
    assert validate_deck_plan(json.dumps(VALID_PLAN).encode("utf-8")) is not None


@pytest.mark.parametrize("value", ["{not json", "[]", [VALID_PLAN], 42, None])
def test_non_object_is_rejected(value):
    assert validate_deck_plan(value) is None


def test_serialized_plan_is_camel_case_without_nulls():
    plan = validate_deck_plan(plan_with(avoidTags=None))
    data = json.loads(serialize_deck_plan(plan))
    assert data["targetLevel"] == "B1"
    assert data["levelBand"] == {"primary": "B1", "support": "A2", "supportCapPct": 20}
    assert data["mix"] == {"reviewPct": 70, "newPct": 30}
    assert "avoidTags" not in data
    assert validate_deck_plan(serialize_deck_plan(plan)) == plan


def test_one_level_below():
    assert one_level_below("B1") == "A2"
    assert one_level_below("C2") == "C1"
    assert one_level_below("A1") is None
    assert one_level_below("A0") is None


def test_normalize_level():
    assert normalize_level("B2") == "B2"
    assert normalize_level("A0") == "A1"
    assert normalize_level(None) == "A1"
    assert normalize_level("beginner") == "A1"


def test_fallback_plan_adds_support_when_struggling():
    plan = get_fallback_plan("B1", 65)
    assert plan.target_level == "B1"
    assert plan.level_band.primary == "B1"
    assert plan.level_band.support == "A2"
    assert plan.level_band.support_cap_pct == 20
    assert (plan.mix.review_pct, plan.mix.new_pct) == (70, 30)
    assert plan.rationale == "Fallback plan"


@pytest.mark.parametrize("accuracy", [70, 95, None])
def test_fallback_plan_without_support(accuracy):
    assert get_fallback_plan("B1", accuracy).level_band.support is None


def test_fallback_plan_for_beginner():
    plan = get_fallback_plan("A0", 10)
    assert plan.level_band.primary == "A1"
    assert plan.level_band.support is None
