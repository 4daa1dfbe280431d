"""
Agent profiles: which provider, base prompt and tool subset each agent gets.
The table is built once and never mutated.
"""
from __future__ import annotations

from dataclasses import dataclass
from types import MappingProxyType
from typing import Mapping

from ..llm.providers import Provider, get_provider


class UnknownAgentError(KeyError):
    pass


FILE_TOOLS = ("read_file", "write_file", "append_file", "list_files", "calculator")
RESEARCH_TOOLS = (
    "think",
    "web_search",
    "fetch_url",
    "save_research",
    "get_research",
    "search_history",
    "calculator",
    "read_file",
    "save_memory",
)
MINIMAL_TOOLS = ("think", "calculator")


@dataclass(frozen=True)
class AgentProfile:
    key: str
    name: str
    provider_key: str
    description: str
    # None means every registered tool
    tools: tuple[str, ...] | None

    @property
    def provider(self) -> Provider:
        return get_provider(self.provider_key)


def _build_agents() -> Mapping[str, AgentProfile]:
    agents = {
        "research": AgentProfile(
            key="research",
            name="Research Agent",
            provider_key="deepseek",
            description="Research and information gathering",
            tools=RESEARCH_TOOLS,
        ),
        "code": AgentProfile(
            key="code",
            name="Code Agent",
            provider_key="minimax",
            description="Building websites and coding",
            tools=FILE_TOOLS,
        ),
        "reasoning": AgentProfile(
            key="reasoning",
            name="Reasoning Agent",
            provider_key="deepseek",
            description="Analysis and deep thinking",
            tools=MINIMAL_TOOLS,
        ),
        "general": AgentProfile(
            key="general",
            name="General Agent",
            provider_key="deepseek",
            description="General purpose assistant",
            tools=None,
        ),
    }
    return MappingProxyType(agents)


AGENTS: Mapping[str, AgentProfile] = _build_agents()


def get_agent(agent_key: str) -> AgentProfile:
    try:
        return AGENTS[agent_key]
    except KeyError:
        raise UnknownAgentError(f"Unknown agent {agent_key!r}; expected one of {sorted(AGENTS)}") from None
