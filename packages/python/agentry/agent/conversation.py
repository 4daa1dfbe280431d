"""
The conversation transcript owned by one chat session. Append-only: messages
are never removed or rewritten, and exactly one system message leads it.
"""
from __future__ import annotations

import logging

from ..llm.types import (
    ASSISTANT_ROLE,
    SYSTEM_ROLE,
    TOOL_ROLE,
    USER_ROLE,
    ChatMessage,
)

logger = logging.getLogger(__name__)


class Conversation:
    def __init__(self, system_prompt: str) -> None:
        self._messages: list[ChatMessage] = [ChatMessage(role=SYSTEM_ROLE, content=system_prompt)]

    @property
    def messages(self) -> tuple[ChatMessage, ...]:
        return tuple(self._messages)

    def __len__(self) -> int:
        return len(self._messages)

    def append(self, message: ChatMessage) -> None:
        if message.role == SYSTEM_ROLE:
            raise ValueError("Conversation already has its system message")
        self._messages.append(message)

    def add_user(self, content: str) -> None:
        self.append(ChatMessage(role=USER_ROLE, content=content))

    def add_assistant(self, message: ChatMessage) -> None:
        if message.role != ASSISTANT_ROLE:
            raise ValueError(f"Expected an assistant message, got {message.role}")
        self.append(message)

    def add_tool_result(self, tool_call_id: str, content: str) -> None:
        self.append(ChatMessage(role=TOOL_ROLE, tool_call_id=tool_call_id, content=content))
