"""
Deck plan schemas.

A deck plan decides, once per user per calendar day, which CEFR level band the
study queue draws from and how the daily goal splits between review and new
cards. Plans come from the advisory LLM or the cache as untrusted JSON and are
only used after validating against these models.
"""
from pydantic import BaseModel, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel
from typing import Optional, List, Any

from francopath.models.enums import PLAN_LEVELS, DifficultyBias


def one_level_below(level: str) -> Optional[str]:
    """
    Return the plan level immediately below `level`.

    Args:
        level: A plan level (A1..C2)

    Returns:
        The previous level in PLAN_LEVELS, or None for A1 / unknown levels
    """
    if level not in PLAN_LEVELS:
        return None
    index = PLAN_LEVELS.index(level)
    if index <= 0:
        return None
    return PLAN_LEVELS[index - 1]


def normalize_level(level: Optional[str]) -> str:
    """Map a learner level onto a plan level (A0 and unknown values become A1)."""
    if level in PLAN_LEVELS:
        return level
    return "A1"


def _check_plan_level(v: Any) -> str:
    if not isinstance(v, str) or v not in PLAN_LEVELS:
        raise ValueError(f"level must be one of: {', '.join(PLAN_LEVELS)}. Got: {v}")
    return v


class _CamelModel(BaseModel):
    class Config:
        alias_generator = to_camel
        populate_by_name = True


class LevelBand(_CamelModel):
    """Primary level plus an optional support level one below it."""
    primary: str
    support: Optional[str] = None
    support_cap_pct: int = Field(..., ge=0, le=50)

    @field_validator('primary')
    @classmethod
    def validate_primary(cls, v):
        return _check_plan_level(v)

    @field_validator('support', mode='before')
    @classmethod
    def validate_support(cls, v):
        """Validate support level if provided (empty string means absent)."""
        if v is None or v == "":
            return None
        return _check_plan_level(v)

    @model_validator(mode='after')
    def validate_support_is_one_below(self):
        if self.support is not None and one_level_below(self.primary) != self.support:
            raise ValueError(
                f"support level must be exactly one below primary {self.primary}. Got: {self.support}"
            )
        return self


class Mix(_CamelModel):
    """Review/new split of the daily goal, in percent."""
    review_pct: int = Field(..., ge=0, le=100)
    new_pct: int = Field(..., ge=0, le=100)

    @model_validator(mode='after')
    def validate_sum(self):
        if self.review_pct + self.new_pct != 100:
            raise ValueError(
                f"reviewPct + newPct must equal 100. Got: {self.review_pct} + {self.new_pct}"
            )
        return self


class DeckPlan(_CamelModel):
    """Validated deck plan."""
    target_level: str
    level_band: LevelBand
    mix: Mix
    focus_tags: Optional[List[str]] = None
    avoid_tags: Optional[List[str]] = None
    difficulty_bias: Optional[DifficultyBias] = None
    rationale: str

    @field_validator('target_level')
    @classmethod
    def validate_target_level(cls, v):
        return _check_plan_level(v)

    @field_validator('focus_tags', 'avoid_tags', mode='before')
    @classmethod
    def sanitize_tags(cls, v):
        """Keep trimmed non-empty strings; anything else collapses to None."""
        if not isinstance(v, list):
            return None
        tags = [entry.strip() for entry in v if isinstance(entry, str) and entry.strip()]
        return tags or None

    @field_validator('difficulty_bias', mode='before')
    @classmethod
    def validate_difficulty_bias(cls, v):
        if v is None or v == "":
            return None
        if v not in [bias.value for bias in DifficultyBias]:
            raise ValueError(f"difficultyBias must be one of: easy, balanced, hard, or null. Got: {v}")
        return v

    @field_validator('rationale', mode='before')
    @classmethod
    def validate_rationale(cls, v):
        """Validate rationale is a non-empty string."""
        if not isinstance(v, str) or not v.strip():
            raise ValueError("rationale cannot be missing or empty")
        return v.strip()

    def summary(self) -> str:
        """Short human-readable description, e.g. 'B1 + A2 support · 70/30 review/new'."""
        band = self.level_band.primary
        if self.level_band.support:
            band += f" + {self.level_band.support} support"
        return f"{band} · {self.mix.review_pct}/{self.mix.new_pct} review/new"

    class Config:
        alias_generator = to_camel
        populate_by_name = True
        use_enum_values = True
        json_schema_extra = {
            "example": {
                "targetLevel": "B1",
                "levelBand": {"primary": "B1", "support": "A2", "supportCapPct": 20},
                "mix": {"reviewPct": 70, "newPct": 30},
                "focusTags": ["travel"],
                "avoidTags": ["grammar"],
                "difficultyBias": "balanced",
                "rationale": "Accuracy at B1 is steady; keep reviews high and add light A2 support."
            }
        }


class DeckPlanResponse(BaseModel):
    """Response for today's deck plan."""
    user_id: int
    plan_date: str
    plan: DeckPlan
    summary: str
    cached: bool
    fallback: bool
