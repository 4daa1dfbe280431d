"""Wires an agent profile to a ChatSession: client, composed prompt, tool subset."""
from __future__ import annotations

import logging
from typing import Any

from ..common.env import get_data_dir
from ..llm.llm import CompletionClient
from .agent_loop import ChatSession, Completer
from .profiles import get_agent
from .system_prompt import build_system_prompt, load_reference
from .tool_registry import ToolRegistry, default_registry
from .tools.memory_tools import load_memory

logger = logging.getLogger(__name__)


def create_chat_for_agent(
    agent_key: str,
    *,
    client: Completer | None = None,
    registry: ToolRegistry | None = None,
    memory: str | None = None,
    reference: str | None = None,
    **session_kwargs: Any,
) -> ChatSession:
    """
    Build a session for a profile. memory/reference default to the memory file and
    AGENTRY_REFERENCE_FILE; pass strings to override.
    """
    profile = get_agent(agent_key)
    data_dir = get_data_dir()
    if memory is None:
        memory = load_memory(data_dir)
    if reference is None:
        reference = load_reference()

    base = registry if registry is not None else default_registry()
    tools = base if profile.tools is None else base.subset(profile.tools)
    session_client = client if client is not None else CompletionClient(profile.provider)

    context = dict(session_kwargs.pop("context", None) or {})
    context.setdefault("data_dir", str(data_dir))
    context.setdefault("agent", profile.key)

    logger.info(f"Creating {profile.name} on {profile.provider_key} with tools {tools.names}")
    return ChatSession(
        session_client,
        build_system_prompt(profile.key, memory, reference),
        tools,
        context=context,
        **session_kwargs,
    )
