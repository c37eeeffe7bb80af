"""
Advisory LLM client that proposes daily deck plans.

The advisor only fetches and decodes a JSON proposal. Validating the proposal
against the deck plan schema is the deck plan service's job.
"""
import json
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Protocol

import requests

from francopath.core.config import settings
from francopath.core.exceptions import AdvisoryUnavailableError
from francopath.services.prompt_service import generate_deck_plan_prompts

logger = logging.getLogger(__name__)

ANTHROPIC_VERSION = "2023-06-01"


@dataclass
class PlanAdvisorRequest:
    """What the advisor knows about the learner."""
    user_id: int
    current_level: str
    level_accuracy: Optional[int]
    accuracy_by_level: Dict[str, int] = field(default_factory=dict)


@dataclass
class AdvisorProposal:
    """Decoded JSON payload returned by the advisor, not yet validated."""
    payload: Any
    tokens_used: int = 0
    model_name: Optional[str] = None


class PlanAdvisor(Protocol):
    def propose(self, request: PlanAdvisorRequest) -> AdvisorProposal:
        """Return a plan proposal or raise AdvisoryUnavailableError."""
        ...


def extract_json_text(text: str) -> str:
    """
    Strip markdown code fences the LLM may wrap its JSON in.

    Args:
        text: Raw text from the LLM

    Returns:
        Text with a leading ```/```json line and trailing ``` removed
    """
    text = text.strip()
    if text.startswith('```'):
        lines = text.split('\n')
        text = '\n'.join(lines[1:])
        text = text.strip()
        if text.endswith('```'):
            text = text[:-3]
    return text.strip()


class AnthropicPlanAdvisor:
    """PlanAdvisor backed by the Anthropic Messages HTTP API."""

    def __init__(
        self,
        api_key: str = settings.anthropic_api_key,
        model_name: str = settings.advisor_model,
        base_url: str = settings.advisor_base_url,
        max_tokens: int = settings.advisor_max_tokens,
        timeout: float = settings.advisor_timeout_seconds,
    ):
        self.api_key = api_key
        self.model_name = model_name
        self.base_url = base_url
        self.max_tokens = max_tokens
        self.timeout = timeout

    def propose(self, request: PlanAdvisorRequest) -> AdvisorProposal:
        """
        Ask the LLM for a deck plan.

        Args:
            request: Learner level and accuracy summary

        Returns:
            AdvisorProposal with the decoded JSON payload and token usage

        Raises:
            AdvisoryUnavailableError: If the key is missing, the request fails or
                times out, or the response is empty or not JSON
        """
        if not self.api_key:
            raise AdvisoryUnavailableError("Anthropic API key not configured")

        system_instruction, prompt = generate_deck_plan_prompts(
            current_level=request.current_level,
            level_accuracy=request.level_accuracy,
            accuracy_by_level=request.accuracy_by_level,
        )

        payload = {
            "model": self.model_name,
            "max_tokens": self.max_tokens,
            "system": system_instruction,
            "messages": [{"role": "user", "content": prompt}],
        }

        try:
            response = requests.post(
                self.base_url,
                json=payload,
                headers={
                    "Content-Type": "application/json",
                    "x-api-key": self.api_key,
                    "anthropic-version": ANTHROPIC_VERSION,
                },
                timeout=self.timeout,
            )
            response.raise_for_status()
            data = response.json()
        except requests.exceptions.RequestException as e:
            error_msg = f"Plan advisor request failed: {str(e)}"
            if getattr(e, 'response', None) is not None:
                error_msg += f" - Status: {e.response.status_code}"
            logger.error(error_msg)
            raise AdvisoryUnavailableError(error_msg) from e

        if not isinstance(data, dict):
            raise AdvisoryUnavailableError("Plan advisor response is not a JSON object")

        usage = data.get('usage', {}) or {}
        tokens_used = int(usage.get('input_tokens', 0) or 0) + int(usage.get('output_tokens', 0) or 0)

        text = ""
        for block in data.get('content', []) or []:
            if isinstance(block, dict) and block.get('type') == 'text':
                text = (block.get('text') or '').strip()
                break
        if not text:
            raise AdvisoryUnavailableError("Plan advisor returned empty response")

        text = extract_json_text(text)
        try:
            parsed = json.loads(text)
        except json.JSONDecodeError as e:
            logger.error(f"Failed to parse plan advisor JSON response: {e}")
            logger.error(f"Response text: {text[:500]}")
            raise AdvisoryUnavailableError(f"Plan advisor returned invalid JSON: {str(e)}") from e

        logger.info(
            f"Plan advisor answered for user {request.user_id} "
            f"(model={self.model_name}, tokens={tokens_used})"
        )
        return AdvisorProposal(payload=parsed, tokens_used=tokens_used, model_name=self.model_name)


def get_plan_advisor() -> PlanAdvisor:
    """Dependency for getting the configured plan advisor."""
    return AnthropicPlanAdvisor()
