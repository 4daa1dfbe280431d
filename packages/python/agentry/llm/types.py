"""
Pydantic models for the OpenAI-compatible chat completion wire format.
Conversation messages are stored as ChatMessage and serialized with to_api().
"""
from __future__ import annotations

import json
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

SYSTEM_ROLE = "system"
USER_ROLE = "user"
ASSISTANT_ROLE = "assistant"
TOOL_ROLE = "tool"
Role = Literal["system", "user", "assistant", "tool"]


class FunctionCall(BaseModel):
    model_config = ConfigDict(extra="ignore")

    name: str
    # Usually JSON text; some backends send an object or null. Decoded by the loop before dispatch
    arguments: str | dict[str, Any] | None = ""

    def to_api(self) -> dict:
        arguments = self.arguments
        if not isinstance(arguments, str):
            arguments = json.dumps(arguments if arguments is not None else {})
        return {"name": self.name, "arguments": arguments}


class ToolCall(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: str
    type: Literal["function"] = "function"
    function: FunctionCall

    @property
    def name(self) -> str:
        return self.function.name

    def to_api(self) -> dict:
        return {"id": self.id, "type": self.type, "function": self.function.to_api()}


class ChatMessage(BaseModel):
    """One turn in the conversation transcript."""

    model_config = ConfigDict(extra="ignore")

    role: Role
    content: str | None = None
    tool_calls: list[ToolCall] | None = None
    tool_call_id: str | None = None

    def to_api(self) -> dict:
        """Wire form: absent fields dropped, content kept (null) on assistant tool requests."""
        msg: dict = {"role": self.role, "content": self.content}
        if self.tool_calls:
            msg["tool_calls"] = [tc.to_api() for tc in self.tool_calls]
        if self.tool_call_id is not None:
            msg["tool_call_id"] = self.tool_call_id
        return msg


class PromptTokensDetails(BaseModel):
    model_config = ConfigDict(extra="ignore")

    cached_tokens: int | None = None


class Usage(BaseModel):
    model_config = ConfigDict(extra="ignore")

    prompt_tokens: int = 0
    completion_tokens: int = 0
    total_tokens: int = 0
    # DeepSeek reports cache hits here
    prompt_cache_hit_tokens: int | None = None
    # OpenAI reports them here
    prompt_tokens_details: PromptTokensDetails | None = None

    @property
    def cached_tokens(self) -> int:
        if self.prompt_cache_hit_tokens:
            return self.prompt_cache_hit_tokens
        if self.prompt_tokens_details and self.prompt_tokens_details.cached_tokens:
            return self.prompt_tokens_details.cached_tokens
        return 0


class Choice(BaseModel):
    model_config = ConfigDict(extra="ignore")

    message: ChatMessage
    finish_reason: str | None = None


class ChatResponse(BaseModel):
    model_config = ConfigDict(extra="ignore")

    choices: list[Choice] = Field(default_factory=list)
    usage: Usage | None = None


class Reply(BaseModel):
    """Parsed result of one completion call."""

    message: ChatMessage
    finish_reason: str | None = None
    usage: Usage | None = None
