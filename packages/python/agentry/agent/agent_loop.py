"""
Core agent loop: LLM call -> tool_calls -> (approval) -> execute -> loop, until the
model answers without tool calls or the iteration ceiling is reached.
One ChatSession owns one conversation; chat() handles one user message per call.
"""
from __future__ import annotations

import json
import logging
import time
from dataclasses import dataclass, field
from typing import Any, Iterable, Protocol, Sequence

from ..common.env import get_bool_env, get_int_env
from ..common.id import create_id
from ..llm.errors import CompletionError
from ..llm.types import ChatMessage, Reply, ToolCall
from ..llm.usage import UsageTotals, cache_rate_for
from .approval import ApprovalGate, StaticApprovalGate, approval_target
from .conversation import Conversation
from .observer import ChatObserver, LoggingObserver
from .tool_registry import ToolRegistry, default_registry, unknown_tool_result

logger = logging.getLogger(__name__)

MAX_ITERATIONS = 25
EXHAUSTED_TEXT = "Reached max iterations."
NO_RESPONSE_TEXT = "No response"

STATUS_DONE = "done"
STATUS_EXHAUSTED = "exhausted"
STATUS_ABORTED = "aborted"


class Completer(Protocol):
    async def complete(self, messages: Sequence[ChatMessage], tools: list[dict[str, Any]] | None = None) -> Reply:
        ...


@dataclass
class TurnResult:
    text: str
    status: str
    rounds: int
    usage: UsageTotals = field(default_factory=UsageTotals)
    elapsed: float = 0.0
    tool_executions: int = 0


def decode_arguments(raw: str | dict | None) -> dict[str, Any]:
    """Decode the model's JSON argument text. Raises ValueError when it is not a JSON object."""
    if raw is None:
        return {}
    if isinstance(raw, dict):
        return raw
    if not raw.strip():
        return {}
    try:
        decoded = json.loads(raw)
    except json.JSONDecodeError as e:
        raise ValueError(str(e)) from e
    if not isinstance(decoded, dict):
        raise ValueError(f"expected a JSON object, got {type(decoded).__name__}")
    return decoded


def _litellm_model(client: Any) -> str | None:
    model = getattr(getattr(client, "provider", None), "litellm_model", None)
    return model if isinstance(model, str) else None


class ChatSession:
    def __init__(
        self,
        client: Completer,
        system_prompt: str,
        registry: ToolRegistry | None = None,
        *,
        max_iterations: int | None = None,
        approval_gate: ApprovalGate | None = None,
        approval_tools: Iterable[str] | None = None,
        auto_approve: bool | None = None,
        auto_approved_tools: Iterable[str] | None = None,
        observer: ChatObserver | None = None,
        context: dict | None = None,
    ) -> None:
        self.session_id = create_id()
        self.client = client
        self.registry = registry if registry is not None else default_registry()
        self.max_iterations = (
            max_iterations if max_iterations is not None
            else get_int_env("AGENTRY_MAX_ITERATIONS", MAX_ITERATIONS)
        )
        if self.max_iterations < 1:
            raise ValueError(f"max_iterations must be at least 1, got {self.max_iterations}")
        # No gate given: refuse gated tools
        self.approval_gate = approval_gate if approval_gate is not None else StaticApprovalGate(False)
        self.approval_tools = (
            frozenset(approval_tools) if approval_tools is not None else self.registry.side_effect_tools()
        )
        self.auto_approve = get_bool_env("AGENTRY_AUTO_APPROVE") if auto_approve is None else auto_approve
        self.auto_approved_tools = frozenset(auto_approved_tools or ())
        self.observer = observer if observer is not None else LoggingObserver()
        self.context = {"session_id": self.session_id, **(context or {})}
        self.conversation = Conversation(system_prompt)
        self.tool_declarations = self.registry.declarations()
        self.last_turn: TurnResult | None = None
        logger.info(
            f"Chat session {self.session_id} started with {len(self.tool_declarations)} tools, "
            f"max_iterations={self.max_iterations}"
        )

    def _tool_auto_approved(self, name: str) -> bool:
        """True if this tool runs without asking (not gated, or auto-approved)."""
        if name not in self.approval_tools:
            return True
        if self.auto_approve:
            return True
        return name in self.auto_approved_tools

    async def _dispatch(self, tool_call: ToolCall) -> bool:
        """
        Produce exactly one tool-role message for tool_call.
        Returns True if the handler was executed.
        """
        name = tool_call.function.name
        try:
            args = decode_arguments(tool_call.function.arguments)
        except ValueError as e:
            content = f"Error: Invalid JSON arguments for {name}: {e}"
            self.observer.on_tool_error(name, content)
            self.conversation.add_tool_result(tool_call.id, content)
            return False

        if not self.registry.has_tool(name):
            content = unknown_tool_result(name)
            self.observer.on_tool_error(name, content)
            self.conversation.add_tool_result(tool_call.id, content)
            return False

        if not self._tool_auto_approved(name) and not self.approval_gate.approve(name, args):
            target = approval_target(args)
            self.observer.on_tool_denied(name, target)
            self.conversation.add_tool_result(tool_call.id, f"User denied {name} to: {target}")
            return False

        self.observer.on_tool_start(name, args)
        tool_start = time.perf_counter()
        result = await self.registry.execute(name, args, self.context)
        self.observer.on_tool_end(name, time.perf_counter() - tool_start, result)
        self.conversation.add_tool_result(tool_call.id, result)
        return True

    async def chat(self, user_message: str) -> str:
        """
        Handle one user message. Returns the final answer, or EXHAUSTED_TEXT when the
        ceiling is hit. CompletionError propagates; the conversation keeps every
        message appended before the failure.
        """
        self.conversation.add_user(user_message)
        totals = UsageTotals()
        litellm_model = _litellm_model(self.client)
        start_time = time.perf_counter()
        executions = 0
        rounds = 0

        try:
            for i in range(self.max_iterations):
                rounds = i + 1
                self.observer.on_round_start(rounds)

                reply = await self.client.complete(self.conversation.messages, self.tool_declarations)

                if reply.usage is not None:
                    totals.add(reply.usage, litellm_model)
                    self.observer.on_usage(reply.usage, cache_rate_for(reply.usage))

                message = reply.message
                self.conversation.add_assistant(message)

                if message.tool_calls:
                    for tool_call in message.tool_calls:
                        if await self._dispatch(tool_call):
                            executions += 1
                    continue

                answer = message.content or NO_RESPONSE_TEXT
                elapsed = time.perf_counter() - start_time
                self.last_turn = TurnResult(answer, STATUS_DONE, rounds, totals, elapsed, executions)
                self.observer.on_done(rounds, elapsed, totals)
                return answer
        except CompletionError as e:
            elapsed = time.perf_counter() - start_time
            self.last_turn = TurnResult("", STATUS_ABORTED, rounds, totals, elapsed, executions)
            logger.error(f"Chat session {self.session_id} aborted in round {rounds}: {e}")
            raise

        elapsed = time.perf_counter() - start_time
        self.last_turn = TurnResult(EXHAUSTED_TEXT, STATUS_EXHAUSTED, rounds, totals, elapsed, executions)
        self.observer.on_exhausted(rounds, elapsed, totals)
        return EXHAUSTED_TEXT


def create_chat(
    client: Completer,
    system_prompt: str,
    registry: ToolRegistry | None = None,
    max_iterations: int | None = None,
    **kwargs: Any,
):
    """Start a session and return its chat coroutine function. max_iterations defaults to AGENTRY_MAX_ITERATIONS."""
    return ChatSession(client, system_prompt, registry, max_iterations=max_iterations, **kwargs).chat
