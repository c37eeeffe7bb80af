"""
Model enums.
"""
from enum import Enum


class CardStatus(str, Enum):
    """Lifecycle status of a user's card."""
    NEW = "new"
    LEARNING = "learning"
    REVIEW = "review"
    MASTERED = "mastered"
    BURNED = "burned"


class CEFRLevel(str, Enum):
    """CEFR language proficiency levels a word can be tagged with."""
    A0 = "A0"
    A1 = "A1"
    A2 = "A2"
    B1 = "B1"
    B2 = "B2"
    C1 = "C1"
    C2 = "C2"


class ReviewAction(str, Enum):
    """Kind of answer event recorded for a card."""
    RATE = "rate"
    BURN = "burn"


class DifficultyBias(str, Enum):
    """Optional difficulty hint carried by a deck plan."""
    EASY = "easy"
    BALANCED = "balanced"
    HARD = "hard"


class LevelFilterPolicy(str, Enum):
    """Which word levels a study queue may draw from.

    band   - plan primary level plus the plan's support level
    strict - plan primary level only
    open   - any level; non-primary cards count against the support cap
    """
    BAND = "band"
    STRICT = "strict"
    OPEN = "open"


# Ordered levels a deck plan may target
PLAN_LEVELS = ["A1", "A2", "B1", "B2", "C1", "C2"]
