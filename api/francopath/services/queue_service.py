"""
Study queue selection.

Turns due cards and unseen cards into today's queue according to a deck plan:

1. Split the daily goal into a review quota and a new-card quota
2. Keep only cards whose level the level filter policy allows
3. Sort by focus tags first, avoid tags last, then chronologically, then by word id
4. Fill each quota from the primary level, then backfill from support levels
   up to the plan's support cap
5. Concatenate review + new picks and truncate to the session limit
6. Optionally shuffle the final presentation order

Everything here is pure; loading candidates from the database happens in
study_service.
"""
import logging
import math
import random
from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional, Sequence, Set, Tuple

from francopath.core.config import settings
from francopath.models.enums import LevelFilterPolicy
from francopath.schemas.deck_plan import DeckPlan

logger = logging.getLogger(__name__)

REVIEW = "review"
NEW = "new"


@dataclass(frozen=True)
class QueueCandidate:
    """A user card as the queue selector sees it."""
    card_id: int
    word_id: int
    level: str
    category: str
    next_review: datetime
    created_at: datetime
    subcategory: Optional[str] = None


@dataclass
class QueueSelection:
    """Result of select_queue()."""
    cards: List[QueueCandidate]
    review: List[QueueCandidate] = field(default_factory=list)
    new: List[QueueCandidate] = field(default_factory=list)
    review_quota: int = 0
    new_quota: int = 0

    @property
    def is_empty(self) -> bool:
        return not self.cards


def _clamp(value, minimum: int, maximum: int, default: int) -> int:
    try:
        parsed = float(value)
    except (TypeError, ValueError):
        return default
    if not math.isfinite(parsed):
        return default
    return max(minimum, min(maximum, int(parsed)))


def resolve_daily_goal(value) -> int:
    """Clamp a stored daily goal to the allowed range (default when unset)."""
    return _clamp(value, settings.min_daily_goal, settings.max_daily_goal, settings.default_daily_goal)


def resolve_session_limit(value, daily_goal: int) -> Optional[int]:
    """
    Resolve the session-size limit.

    Args:
        value: Stored session limit (None, the unlimited sentinel, or a number)
        daily_goal: Resolved daily goal

    Returns:
        None for unlimited, the daily goal when unset, otherwise the clamped limit
    """
    if value == settings.unlimited_session_sentinel:
        return None
    if value is None:
        return daily_goal
    return _clamp(value, settings.min_daily_goal, settings.max_daily_goal, settings.default_session_limit)


def compute_quotas(daily_goal: int, review_pct: int) -> Tuple[int, int]:
    """
    Split the daily goal into (review_quota, new_quota).

    review_quota = min(goal, round(goal * reviewPct / 100)) with .5 rounding up;
    new_quota takes the rest.
    """
    if daily_goal <= 0:
        return 0, 0
    review_quota = min(daily_goal, (daily_goal * review_pct + 50) // 100)
    return review_quota, max(0, daily_goal - review_quota)


def matches_tags(candidate: QueueCandidate, tags: Sequence[str]) -> bool:
    """Case-insensitive substring match of any tag against category/subcategory."""
    category = (candidate.category or "").lower()
    subcategory = (candidate.subcategory or "").lower()
    for tag in tags:
        normalized = tag.lower()
        if normalized in category or normalized in subcategory:
            return True
    return False


def sort_candidates(cards: Sequence[QueueCandidate], kind: str, plan: DeckPlan) -> List[QueueCandidate]:
    """
    Order candidates by priority.

    Focus-tag matches first, avoid-tag matches last, then next_review
    (review) or created_at (new) ascending, then word id and card id so the
    order is deterministic.
    """
    focus_tags = plan.focus_tags or []
    avoid_tags = plan.avoid_tags or []

    def sort_key(card: QueueCandidate):
        focus = bool(focus_tags) and matches_tags(card, focus_tags)
        avoid = bool(avoid_tags) and matches_tags(card, avoid_tags)
        moment = card.next_review if kind == REVIEW else card.created_at
        return (not focus, avoid, moment, card.word_id, card.card_id)

    return sorted(cards, key=sort_key)


def allowed_levels(plan: DeckPlan, policy: LevelFilterPolicy) -> Optional[Set[str]]:
    """Levels a candidate may have under the policy; None means no filter."""
    if policy == LevelFilterPolicy.OPEN:
        return None
    levels = {plan.level_band.primary}
    if policy == LevelFilterPolicy.BAND and plan.level_band.support:
        levels.add(plan.level_band.support)
    return levels


def filter_by_level(
    cards: Sequence[QueueCandidate],
    plan: DeckPlan,
    policy: LevelFilterPolicy,
) -> List[QueueCandidate]:
    levels = allowed_levels(plan, policy)
    if levels is None:
        return list(cards)
    return [card for card in cards if card.level in levels]


def _is_support_card(card: QueueCandidate, plan: DeckPlan, policy: LevelFilterPolicy) -> bool:
    if policy == LevelFilterPolicy.STRICT:
        return False
    if policy == LevelFilterPolicy.OPEN:
        return card.level != plan.level_band.primary
    return plan.level_band.support is not None and card.level == plan.level_band.support


def pick_with_support_cap(
    cards: Sequence[QueueCandidate],
    quota: int,
    plan: DeckPlan,
    kind: str,
    policy: LevelFilterPolicy = LevelFilterPolicy.BAND,
) -> List[QueueCandidate]:
    """
    Fill a quota from the primary level first, then backfill from support.

    Support-level picks never exceed floor(quota * supportCapPct / 100).

    Args:
        cards: Candidates for this quota
        quota: Number of slots to fill
        plan: Today's deck plan
        kind: REVIEW or NEW (selects the chronological sort field)
        policy: Level filter policy

    Returns:
        Primary picks followed by support picks, each in priority order
    """
    if quota <= 0:
        return []

    primary_level = plan.level_band.primary
    max_support = (quota * plan.level_band.support_cap_pct) // 100

    ordered = sort_candidates(cards, kind, plan)
    primary = [card for card in ordered if card.level == primary_level][:quota]

    if len(primary) >= quota or max_support <= 0:
        return primary

    support_needed = min(max_support, quota - len(primary))
    picked_ids = {card.card_id for card in primary}
    support = [
        card for card in ordered
        if card.card_id not in picked_ids and _is_support_card(card, plan, policy)
    ][:support_needed]

    return primary + support


def select_queue(
    due_cards: Sequence[QueueCandidate],
    new_cards: Sequence[QueueCandidate],
    plan: DeckPlan,
    daily_goal: int,
    session_limit: Optional[int] = None,
    policy: LevelFilterPolicy = LevelFilterPolicy.BAND,
    shuffle: bool = False,
    rng: Optional[random.Random] = None,
) -> QueueSelection:
    """
    Compose today's study queue.

    Args:
        due_cards: Seen cards whose next_review has passed
        new_cards: Cards never seen
        plan: Today's deck plan
        daily_goal: Target number of cards for the day
        session_limit: Optional cap on the final queue size (defaults to daily_goal)
        policy: Level filter policy
        shuffle: Shuffle the final presentation order (after all quota/cap arithmetic)
        rng: Random generator used for shuffling

    Returns:
        QueueSelection; an empty queue means there is nothing to study
    """
    review_quota, new_quota = compute_quotas(daily_goal, plan.mix.review_pct)

    eligible_due = filter_by_level(due_cards, plan, policy)
    picked_review = pick_with_support_cap(eligible_due, review_quota, plan, REVIEW, policy)

    picked_review_ids = {card.card_id for card in picked_review}
    eligible_new = [
        card for card in filter_by_level(new_cards, plan, policy)
        if card.card_id not in picked_review_ids
    ]
    picked_new = pick_with_support_cap(eligible_new, new_quota, plan, NEW, policy)

    limit = daily_goal if session_limit is None else min(session_limit, daily_goal)
    limit = max(0, limit)
    cards = (picked_review + picked_new)[:limit]
    review = cards[:len(picked_review)]
    new = cards[len(review):]

    if shuffle and cards:
        cards = list(cards)
        (rng or random.Random()).shuffle(cards)

    logger.info(
        f"Selected queue: {len(review)}/{review_quota} review, {len(new)}/{new_quota} new "
        f"from {len(due_cards)} due and {len(new_cards)} unseen candidates"
    )
    return QueueSelection(
        cards=cards,
        review=review,
        new=new,
        review_quota=review_quota,
        new_quota=new_quota,
    )
