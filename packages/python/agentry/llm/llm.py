"""
Completion Client: one POST to an OpenAI-compatible /chat/completions endpoint
per call, with the conversation and tool declarations. No retries at this layer.
"""
from __future__ import annotations

import json
import logging
from typing import Any, Sequence

import httpx
from pydantic import ValidationError

from ..common.env import get_float_env
from .errors import CompletionError, sanitize_error_text
from .providers import Provider, get_auth_headers, get_full_url
from .types import ChatMessage, ChatResponse, Reply

logger = logging.getLogger(__name__)

DEFAULT_TEMPERATURE = 0.3
DEFAULT_TIMEOUT_SECS = 120.0


def get_temperature() -> float:
    """Low, fixed sampling temperature; overridable with AGENTRY_TEMPERATURE."""
    return get_float_env("AGENTRY_TEMPERATURE", DEFAULT_TEMPERATURE)


def build_request_body(
    model: str,
    messages: Sequence[ChatMessage],
    tools: list[dict[str, Any]] | None,
    temperature: float,
) -> dict[str, Any]:
    body: dict[str, Any] = {
        "model": model,
        "messages": [m.to_api() for m in messages],
        "temperature": temperature,
    }
    # Some endpoints reject an empty tools array
    if tools:
        body["tools"] = tools
        body["tool_choice"] = "auto"
    return body


def parse_reply(payload: Any) -> Reply:
    """Parse a decoded response body. Raises CompletionError when there is no choice."""
    try:
        response = ChatResponse.model_validate(payload)
    except ValidationError as e:
        raise CompletionError(f"Malformed response from LLM: {e}") from e
    if not response.choices:
        raise CompletionError("No response from LLM")
    choice = response.choices[0]
    return Reply(message=choice.message, finish_reason=choice.finish_reason, usage=response.usage)


class CompletionClient:
    """Stateless client bound to one provider."""

    def __init__(
        self,
        provider: Provider,
        temperature: float | None = None,
        timeout: float | None = None,
    ) -> None:
        self.provider = provider
        self.temperature = get_temperature() if temperature is None else temperature
        self.timeout = get_float_env("AGENTRY_LLM_TIMEOUT_SECS", DEFAULT_TIMEOUT_SECS) if timeout is None else timeout

    @property
    def model(self) -> str:
        return self.provider.model

    async def complete(
        self,
        messages: Sequence[ChatMessage],
        tools: list[dict[str, Any]] | None = None,
    ) -> Reply:
        """
        Send the full conversation and tool declarations; return the parsed reply.
        Raises CompletionError on transport failure, non-2xx status or a reply without choices.
        """
        url = get_full_url(self.provider)
        headers = get_auth_headers(self.provider)
        body = build_request_body(self.provider.model, messages, tools, self.temperature)

        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                resp = await client.post(url, content=json.dumps(body).encode("utf-8"), headers=headers)
        except httpx.HTTPError as e:
            detail = sanitize_error_text(f"{type(e).__name__}: {e}")
            logger.error(f"Completion request to {self.provider.display_name} failed: {detail}")
            raise CompletionError(f"API request failed: {detail}") from e

        if not 200 <= resp.status_code <= 299:
            sanitized = sanitize_error_text(resp.text)
            logger.error(f"{self.provider.display_name} returned {resp.status_code}: {sanitized}")
            raise CompletionError(
                f"API error ({resp.status_code}): {sanitized}",
                status_code=resp.status_code,
                body=sanitized,
            )

        try:
            payload = resp.json()
        except ValueError as e:
            raise CompletionError(
                f"API returned invalid JSON ({resp.status_code}): {sanitize_error_text(resp.text)}",
                status_code=resp.status_code,
            ) from e

        return parse_reply(payload)
