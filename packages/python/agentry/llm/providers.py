"""
Static table of OpenAI-compatible completion endpoints.
Credentials are read from the environment at call time, never stored in the table.
"""
from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from types import MappingProxyType
from typing import Mapping

from .errors import CompletionError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Provider:
    key: str
    display_name: str
    base_url: str
    model: str
    token_env: str
    # Prefix used for litellm pricing lookups
    litellm_provider: str

    @property
    def litellm_model(self) -> str:
        return f"{self.litellm_provider}/{self.model}"


def _model_override(key: str, default: str) -> str:
    return os.getenv(f"{key.upper()}_MODEL", default)


def get_llm_providers() -> Mapping[str, Provider]:
    """
    Get the LLM providers. Model names may be overridden with <KEY>_MODEL.
    """
    providers = {
        "deepseek": Provider(
            key="deepseek",
            display_name="DeepSeek",
            base_url="https://api.deepseek.com",
            model=_model_override("deepseek", "deepseek-chat"),
            token_env="DEEPSEEK_API_KEY",
            litellm_provider="deepseek",
        ),
        "minimax": Provider(
            key="minimax",
            display_name="MiniMax",
            base_url="https://api.minimax.io/v1",
            model=_model_override("minimax", "MiniMax-M1"),
            token_env="MINIMAX_API_KEY",
            litellm_provider="minimax",
        ),
        "openai": Provider(
            key="openai",
            display_name="OpenAI",
            base_url="https://api.openai.com/v1",
            model=_model_override("openai", "gpt-4o-mini"),
            token_env="OPENAI_API_KEY",
            litellm_provider="openai",
        ),
    }
    return MappingProxyType(providers)


def get_provider(key: str) -> Provider:
    providers = get_llm_providers()
    if key not in providers:
        raise KeyError(f"Unknown provider {key!r}; expected one of {sorted(providers)}")
    return providers[key]


def get_full_url(provider: Provider) -> str:
    return f"{provider.base_url.rstrip('/')}/chat/completions"


def get_auth_headers(provider: Provider) -> dict[str, str]:
    token = os.getenv(provider.token_env, "").strip()
    if not token:
        raise CompletionError(f"No API key for {provider.display_name}: set {provider.token_env}")
    return {
        "Content-Type": "application/json",
        "Authorization": f"Bearer {token}",
    }
