"""
Service for generating LLM prompts.
"""
import json
from typing import Dict, Optional

from francopath.models.enums import PLAN_LEVELS


def generate_deck_plan_system_instruction() -> str:
    """
    Generate the system instruction for deck plan generation.
    This is the same for every learner and describes the plan contract.

    Returns:
        The system instruction string
    """
    levels = ", ".join(PLAN_LEVELS)
    return f"""You are a study planner for a French vocabulary trainer preparing learners for the TCF/TEF exams.
Each day you decide how today's flashcard deck is composed for one learner.

A deck plan chooses:
1. A target level and a level band:
   - primary: the level cards are drawn from first
   - support: OPTIONAL level exactly one below primary, used as filler when the learner struggles
   - supportCapPct: integer 0-50, the most a quota may be filled from the support level
2. A mix between review cards (due for spaced repetition) and new cards:
   - reviewPct and newPct are integers that MUST add up to exactly 100
3. Optional focusTags / avoidTags: short category keywords (e.g. "food", "travel", "verbs")
4. Optional difficultyBias: easy | balanced | hard
5. A short rationale explaining the choice (REQUIRED, cannot be empty)

Rules:
1. Levels must be one of: {levels}
2. Only add a support level when accuracy at the primary level is weak (below about 70%)
3. Low accuracy means more review and fewer new cards; high accuracy allows more new cards
4. Always return valid JSON only, no markdown, no explanations outside the JSON"""


def generate_deck_plan_prompt(
    current_level: str,
    level_accuracy: Optional[int],
    accuracy_by_level: Dict[str, int],
) -> str:
    """
    Generate the user prompt for one learner's deck plan.

    Args:
        current_level: Learner's current plan level (A1..C2)
        level_accuracy: Recent accuracy percent at the current level, or None if unknown
        accuracy_by_level: Recent accuracy percent per word level

    Returns:
        The user prompt string
    """
    accuracy_text = f"{level_accuracy}%" if level_accuracy is not None else "unknown (not enough reviews yet)"
    breakdown = json.dumps(accuracy_by_level, sort_keys=True) if accuracy_by_level else "{}"

    prompt = f"""Plan today's deck for this learner:
- Current level: {current_level}
- Recent accuracy at {current_level}: {accuracy_text}
- Recent accuracy by level (percent): {breakdown}

Return ONLY valid JSON in this exact format (no markdown, no explanations):
{{
  "targetLevel": "{current_level}",
  "levelBand": {{
    "primary": "string (one of {', '.join(PLAN_LEVELS)})",
    "support": "string or null (exactly one level below primary)",
    "supportCapPct": "integer 0-50"
  }},
  "mix": {{
    "reviewPct": "integer",
    "newPct": "integer (reviewPct + newPct = 100)"
  }},
  "focusTags": ["string"],
  "avoidTags": ["string"],
  "difficultyBias": "easy | balanced | hard",
  "rationale": "string (REQUIRED - one or two sentences)"
}}"""

    return prompt


def generate_deck_plan_prompts(
    current_level: str,
    level_accuracy: Optional[int],
    accuracy_by_level: Dict[str, int],
) -> tuple[str, str]:
    """
    Generate both system instruction and user prompt for deck plan generation.

    Returns:
        Tuple of (system_instruction, user_prompt)
    """
    return (
        generate_deck_plan_system_instruction(),
        generate_deck_plan_prompt(current_level, level_accuracy, accuracy_by_level),
    )
