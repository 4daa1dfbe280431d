"""
Token usage accounting for one user-turn. Cost is an estimate from litellm's
pricing table; failures to price a model never fail the turn.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass

import litellm

from .types import Usage

logger = logging.getLogger(__name__)


def cache_rate_for(usage: Usage | None) -> float:
    """Fraction of prompt tokens served from the provider's prompt cache."""
    if usage is None or not usage.prompt_tokens:
        return 0.0
    return usage.cached_tokens / usage.prompt_tokens


def estimate_cost(usage: Usage, litellm_model: str) -> float:
    try:
        prompt_cost, completion_cost = litellm.cost_per_token(
            model=litellm_model,
            prompt_tokens=usage.prompt_tokens,
            completion_tokens=usage.completion_tokens,
        )
        return float(prompt_cost) + float(completion_cost)
    except Exception as e:
        logger.warning(f"Could not compute LLM cost for model {litellm_model} (may not be in pricing table): {e}")
        return 0.0


@dataclass
class UsageTotals:
    input_tokens: int = 0
    output_tokens: int = 0
    cached_tokens: int = 0
    rounds_with_usage: int = 0
    cost_usd: float = 0.0

    def add(self, usage: Usage | None, litellm_model: str | None = None) -> None:
        """Accumulate one round. A reply without usage is counted as nothing."""
        if usage is None:
            return
        self.input_tokens += usage.prompt_tokens
        self.output_tokens += usage.completion_tokens
        self.cached_tokens += usage.cached_tokens
        self.rounds_with_usage += 1
        if litellm_model:
            self.cost_usd += estimate_cost(usage, litellm_model)

    @property
    def cache_rate(self) -> float:
        if self.input_tokens <= 0:
            return 0.0
        return self.cached_tokens / self.input_tokens
