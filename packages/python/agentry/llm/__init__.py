# Completion Client, provider table, wire types and usage accounting.

from .errors import CompletionError, sanitize_error_text
from .llm import CompletionClient, build_request_body, parse_reply, get_temperature
from .providers import Provider, get_llm_providers, get_provider, get_full_url, get_auth_headers
from .types import ChatMessage, ToolCall, FunctionCall, Usage, Reply
from .usage import UsageTotals, cache_rate_for, estimate_cost

__all__ = [
    "CompletionError",
    "sanitize_error_text",
    "CompletionClient",
    "build_request_body",
    "parse_reply",
    "get_temperature",
    "Provider",
    "get_llm_providers",
    "get_provider",
    "get_full_url",
    "get_auth_headers",
    "ChatMessage",
    "ToolCall",
    "FunctionCall",
    "Usage",
    "Reply",
    "UsageTotals",
    "cache_rate_for",
    "estimate_cost",
]
