"""
Approval gate for side-effecting tools. The check is synchronous: the whole
chat loop waits for the operator's answer. Anything but an explicit "y" refuses.
"""
from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Callable, Mapping

logger = logging.getLogger(__name__)

PREVIEW_CHARS = 300
TRUNCATION_MARKER = "..."
AFFIRMATIVE = "y"


@dataclass(frozen=True)
class ApprovalPreview:
    tool_name: str
    target: str
    size_kb: float
    preview: str
    truncated: bool

    @property
    def headline(self) -> str:
        return f"{self.tool_name.upper()} -> {self.target} ({self.size_kb:.1f}KB)"

    @property
    def body(self) -> str:
        return self.preview + (TRUNCATION_MARKER if self.truncated else "")


def approval_target(arguments: Mapping[str, Any]) -> str:
    return str(arguments.get("path") or "unknown")


def build_preview(tool_name: str, arguments: Mapping[str, Any]) -> ApprovalPreview:
    content = str(arguments.get("content") or "")
    return ApprovalPreview(
        tool_name=tool_name,
        target=approval_target(arguments),
        size_kb=len(content) / 1024,
        preview=content[:PREVIEW_CHARS].replace("\n", "\\n"),
        truncated=len(content) > PREVIEW_CHARS,
    )


def is_affirmative(answer: str | None) -> bool:
    return answer is not None and answer.strip().lower() == AFFIRMATIVE


class ApprovalGate(ABC):
    @abstractmethod
    def approve(self, tool_name: str, arguments: Mapping[str, Any]) -> bool:
        """Block until a decision is made. True only on explicit approval."""


class StaticApprovalGate(ApprovalGate):
    """Fixed answer, for headless runs."""

    def __init__(self, answer: bool = False) -> None:
        self.answer = answer

    def approve(self, tool_name: str, arguments: Mapping[str, Any]) -> bool:
        logger.info(f"{'Approved' if self.answer else 'Refused'} {tool_name} -> {approval_target(arguments)} (static)")
        return self.answer


class PromptApprovalGate(ApprovalGate):
    """
    Shows the preview through `show` and reads the answer through `ask`.
    EOF or interrupt while waiting counts as refusal.
    """

    def __init__(self, ask: Callable[[str], str], show: Callable[[ApprovalPreview], None] | None = None) -> None:
        self._ask = ask
        self._show = show

    def approve(self, tool_name: str, arguments: Mapping[str, Any]) -> bool:
        preview = build_preview(tool_name, arguments)
        if self._show is not None:
            self._show(preview)
        try:
            answer = self._ask("Approve? (y/n): ")
        except (EOFError, KeyboardInterrupt):
            answer = None
        approved = is_affirmative(answer)
        logger.info(f"{'Approved' if approved else 'Refused'} {preview.headline}")
        return approved
