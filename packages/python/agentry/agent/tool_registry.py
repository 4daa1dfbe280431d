"""
OpenAI-compatible tool declarations and dispatch for the chat agent.
TOOL_DEFINITIONS is sent to the LLM; ToolRegistry.execute runs the chosen tool with (context, params).
"""
from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Awaitable, Callable, Iterable, Mapping

from jsonschema import Draft7Validator

from . import tools as agent_tools

logger = logging.getLogger(__name__)

ToolHandler = Callable[[dict, dict], Awaitable[Any]]

# Side-effecting tools: require human approval before each execution.
APPROVAL_TOOLS: frozenset[str] = frozenset({
    "write_file",
    "append_file",
})


def is_side_effect_tool(name: str) -> bool:
    return name in APPROVAL_TOOLS


def unknown_tool_result(name: str) -> str:
    return f'Error: Unknown tool "{name}"'


def _json_serial_default(obj: Any) -> Any:
    """Convert non-JSON-serializable values for tool result payloads."""
    if isinstance(obj, datetime):
        return obj.isoformat()
    if isinstance(obj, date) and not isinstance(obj, datetime):
        return obj.isoformat()
    raise TypeError(f"Object of type {type(obj).__name__!r} is not JSON serializable")


def result_to_text(result: Any) -> str:
    """Tool results re-enter the conversation as text; structured results are JSON-encoded."""
    if isinstance(result, str):
        return result
    if result is None:
        return ""
    return json.dumps(result, default=_json_serial_default)


def _function(name: str, description: str, properties: dict, required: list[str] | None = None) -> dict[str, Any]:
    parameters: dict[str, Any] = {"type": "object", "properties": properties}
    if required:
        parameters["required"] = required
    return {
        "type": "function",
        "function": {"name": name, "description": description, "parameters": parameters},
    }


# OpenAI function-calling format: list of {"type": "function", "function": {"name", "description", "parameters"}}
TOOL_DEFINITIONS: list[dict[str, Any]] = [
    # Reasoning
    _function(
        "think",
        "Think step by step before acting: classify the request, plan which tools to use, and decide when you are done. Nothing is executed.",
        {"thought": {"type": "string", "description": "Your reasoning or plan"}},
        ["thought"],
    ),
    _function(
        "calculator",
        "Evaluate an arithmetic expression. Supports + - * / // % ** and sqrt, log, log10, exp, sin, cos, tan, floor, ceil, abs, round, min, max, pi, e.",
        {"expression": {"type": "string", "description": "Expression to evaluate, e.g. (3.5 * 12) / sqrt(2)"}},
        ["expression"],
    ),
    # Web
    _function(
        "web_search",
        "Search the web for current information. Use this when you need up-to-date facts, news, or data.",
        {"query": {"type": "string", "description": "The search query"}},
        ["query"],
    ),
    _function(
        "fetch_url",
        "Fetch a web page and return its readable text. Use when search snippets are not enough.",
        {"url": {"type": "string", "description": "Absolute http(s) URL"}},
        ["url"],
    ),
    # Files
    _function(
        "read_file",
        "Read the contents of a local file.",
        {"path": {"type": "string", "description": "The file path to read"}},
        ["path"],
    ),
    _function(
        "write_file",
        "Create or overwrite a local file. Save user files under local/. Requires user approval.",
        {
            "path": {"type": "string", "description": "Destination path, e.g. local/index.html"},
            "content": {"type": "string", "description": "Full file content"},
        },
        ["path", "content"],
    ),
    _function(
        "append_file",
        "Append content to a local file, creating it if needed. Requires user approval.",
        {
            "path": {"type": "string", "description": "File path to append to"},
            "content": {"type": "string", "description": "Content to append"},
        },
        ["path", "content"],
    ),
    _function(
        "list_files",
        "List the entries of a local directory.",
        {"path": {"type": "string", "description": "Directory path (default: current directory)"}},
    ),
    # Memory
    _function(
        "save_memory",
        "Save a note to long-term memory that persists across sessions. Save the user's exact words when asked to remember something.",
        {"note": {"type": "string", "description": "The note to remember"}},
        ["note"],
    ),
    _function(
        "save_research",
        "Save a research finding under a topic for later sessions.",
        {
            "topic": {"type": "string", "description": "Short topic name"},
            "content": {"type": "string", "description": "Finding to save, with sources"},
        },
        ["topic", "content"],
    ),
    _function(
        "get_research",
        "Get previously saved research for a topic.",
        {"topic": {"type": "string", "description": "Topic name used when saving"}},
        ["topic"],
    ),
    _function(
        "search_history",
        "Keyword search over previously saved research.",
        {"query": {"type": "string", "description": "Keywords to look for"}},
        ["query"],
    ),
]

# Map tool name -> async fn(context, params)
_TOOL_HANDLERS: dict[str, ToolHandler] = {
    "think": agent_tools.think,
    "calculator": agent_tools.calculator,
    "web_search": agent_tools.web_search,
    "fetch_url": agent_tools.fetch_url,
    "read_file": agent_tools.read_file,
    "write_file": agent_tools.write_file,
    "append_file": agent_tools.append_file,
    "list_files": agent_tools.list_files,
    "save_memory": agent_tools.save_memory,
    "save_research": agent_tools.save_research,
    "get_research": agent_tools.get_research,
    "search_history": agent_tools.search_history,
}


@dataclass(frozen=True)
class ToolSpec:
    name: str
    description: str
    parameters: dict[str, Any]
    handler: ToolHandler

    @property
    def side_effect(self) -> bool:
        return is_side_effect_tool(self.name)

    def declaration(self) -> dict[str, Any]:
        return {
            "type": "function",
            "function": {"name": self.name, "description": self.description, "parameters": self.parameters},
        }


class ToolRegistry:
    """
    Name -> executable tool plus its declaration. Pure lookup and dispatch;
    handler failures come back as text, never as exceptions.
    """

    def __init__(self, specs: Iterable[ToolSpec] = ()) -> None:
        self._specs: dict[str, ToolSpec] = {}
        for spec in specs:
            self.register(spec)

    def register(self, spec: ToolSpec) -> None:
        if spec.name in self._specs:
            logger.warning(f"Tool {spec.name} registered twice; keeping the last definition")
        self._specs[spec.name] = spec

    def has_tool(self, name: str) -> bool:
        return name in self._specs

    @property
    def names(self) -> list[str]:
        return list(self._specs)

    def side_effect_tools(self) -> frozenset[str]:
        """Names of registered tools that need approval before running."""
        return frozenset(name for name, spec in self._specs.items() if spec.side_effect)

    def declarations(self) -> list[dict[str, Any]]:
        return [spec.declaration() for spec in self._specs.values()]

    def declarations_for(self, subset: Iterable[str]) -> list[dict[str, Any]]:
        wanted = set(subset)
        return [spec.declaration() for name, spec in self._specs.items() if name in wanted]

    def subset(self, names: Iterable[str]) -> ToolRegistry:
        """Restricted view holding only the named tools, in registry order."""
        wanted = set(names)
        missing = wanted - set(self._specs)
        if missing:
            logger.warning(f"Ignoring unknown tools in subset: {sorted(missing)}")
        return ToolRegistry(spec for name, spec in self._specs.items() if name in wanted)

    def validation_error(self, name: str, params: Mapping[str, Any]) -> str | None:
        """First schema violation of params against the tool's declared parameters, if any."""
        validator = Draft7Validator(self._specs[name].parameters)
        errors = sorted(validator.iter_errors(dict(params)), key=lambda e: list(e.path))
        if not errors:
            return None
        err = errors[0]
        where = ".".join(str(p) for p in err.path)
        return f"{where}: {err.message}" if where else err.message

    async def execute(self, name: str, arguments: Mapping[str, Any], context: dict | None = None) -> str:
        """
        Execute a tool by name with already-decoded arguments. Returns text for the LLM.
        """
        spec = self._specs.get(name)
        if spec is None:
            return unknown_tool_result(name)
        if arguments is not None and not isinstance(arguments, Mapping):
            return f"Error: Invalid arguments for {name}: expected a JSON object"
        params = dict(arguments or {})
        problem = self.validation_error(name, params)
        if problem:
            return f"Error: Invalid arguments for {name}: {problem}"
        try:
            result = await spec.handler(context if context is not None else {}, params)
            return result_to_text(result)
        except Exception as e:
            logger.exception("Tool %s failed", name)
            return f"Error: {name} failed: {e}"


def _default_specs() -> list[ToolSpec]:
    specs = []
    for definition in TOOL_DEFINITIONS:
        fn = definition["function"]
        specs.append(ToolSpec(
            name=fn["name"],
            description=fn["description"],
            parameters=fn["parameters"],
            handler=_TOOL_HANDLERS[fn["name"]],
        ))
    return specs


def default_registry() -> ToolRegistry:
    """Registry holding every built-in tool."""
    return ToolRegistry(_default_specs())
