"""
Telemetry hooks for the chat loop. The loop reports what happens; observers
decide how to present it (console, logs, nothing).
"""
from __future__ import annotations

import logging
from typing import Any

from ..llm.types import Usage
from ..llm.usage import UsageTotals

logger = logging.getLogger(__name__)


class ChatObserver:
    """No-op base; override the hooks you need."""

    def on_round_start(self, round_number: int) -> None:
        pass

    def on_usage(self, usage: Usage, cache_rate: float) -> None:
        pass

    def on_tool_start(self, name: str, arguments: dict[str, Any]) -> None:
        pass

    def on_tool_end(self, name: str, elapsed: float, result: str) -> None:
        pass

    def on_tool_denied(self, name: str, target: str) -> None:
        pass

    def on_tool_error(self, name: str, message: str) -> None:
        """Unknown tool or undecodable arguments; nothing was executed."""
        pass

    def on_done(self, rounds: int, elapsed: float, totals: UsageTotals) -> None:
        pass

    def on_exhausted(self, rounds: int, elapsed: float, totals: UsageTotals) -> None:
        pass


class LoggingObserver(ChatObserver):
    def on_round_start(self, round_number: int) -> None:
        logger.debug(f"Round {round_number}")

    def on_usage(self, usage: Usage, cache_rate: float) -> None:
        logger.info(
            f"Usage: {usage.prompt_tokens} in, {usage.completion_tokens} out, {cache_rate:.0%} cached"
        )

    def on_tool_start(self, name: str, arguments: dict[str, Any]) -> None:
        logger.info(f"Tool {name} called")

    def on_tool_end(self, name: str, elapsed: float, result: str) -> None:
        logger.info(f"Tool {name} finished in {elapsed:.2f}s ({len(result)} chars)")

    def on_tool_denied(self, name: str, target: str) -> None:
        logger.info(f"Tool {name} denied for {target}")

    def on_tool_error(self, name: str, message: str) -> None:
        logger.warning(f"Tool {name} not executed: {message}")

    def on_done(self, rounds: int, elapsed: float, totals: UsageTotals) -> None:
        logger.info(
            f"Done in {rounds} rounds ({elapsed:.1f}s): {totals.input_tokens} in, "
            f"{totals.output_tokens} out, {totals.cache_rate:.0%} cached, ${totals.cost_usd:.4f}"
        )

    def on_exhausted(self, rounds: int, elapsed: float, totals: UsageTotals) -> None:
        logger.warning(f"Iteration ceiling reached after {rounds} rounds ({elapsed:.1f}s)")
