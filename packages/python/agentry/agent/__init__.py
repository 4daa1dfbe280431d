# Chat agent: loop, conversation, tool registry, approval gate, profiles, system prompt.
# Used by agentry.cli (interactive REPL).

from .agent_loop import (
    ChatSession,
    TurnResult,
    create_chat,
    decode_arguments,
    MAX_ITERATIONS,
    EXHAUSTED_TEXT,
    NO_RESPONSE_TEXT,
)
from .approval import ApprovalGate, PromptApprovalGate, StaticApprovalGate, build_preview
from .conversation import Conversation
from .factory import create_chat_for_agent
from .observer import ChatObserver, LoggingObserver
from .profiles import AGENTS, AgentProfile, UnknownAgentError, get_agent
from .system_prompt import build_system_prompt
from .tool_registry import (
    APPROVAL_TOOLS,
    TOOL_DEFINITIONS,
    ToolRegistry,
    ToolSpec,
    default_registry,
)

__all__ = [
    "ChatSession",
    "TurnResult",
    "create_chat",
    "decode_arguments",
    "MAX_ITERATIONS",
    "EXHAUSTED_TEXT",
    "NO_RESPONSE_TEXT",
    "ApprovalGate",
    "PromptApprovalGate",
    "StaticApprovalGate",
    "build_preview",
    "Conversation",
    "create_chat_for_agent",
    "ChatObserver",
    "LoggingObserver",
    "AGENTS",
    "AgentProfile",
    "UnknownAgentError",
    "get_agent",
    "build_system_prompt",
    "APPROVAL_TOOLS",
    "TOOL_DEFINITIONS",
    "ToolRegistry",
    "ToolSpec",
    "default_registry",
]
