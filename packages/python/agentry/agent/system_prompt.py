"""
Builds the system message for a chat session: the profile's base prompt plus
optional memory and verified-reference sections.
"""
from __future__ import annotations

import logging
import os
from pathlib import Path

from . import prompts

logger = logging.getLogger(__name__)

BASE_PROMPTS: dict[str, str] = {
    "research": prompts.RESEARCH_PROMPT,
    "code": prompts.CODE_PROMPT,
    "reasoning": prompts.REASONING_PROMPT,
    "general": prompts.GENERAL_PROMPT,
}


def build_system_prompt(agent_key: str, memory: str = "", reference: str = "") -> str:
    """
    Base prompt, then "Your Memory" when memory is non-blank, then
    "Verified API Reference" when reference is non-blank.
    """
    parts = [BASE_PROMPTS[agent_key]]
    if memory.strip():
        parts.append(f"\n## Your Memory (from previous sessions)\n{memory.strip()}\n")
    if reference.strip():
        parts.append(
            "\n## Verified API Reference\n"
            "The following APIs are confirmed to exist in this project's runtime. "
            "When suggesting code, use only these APIs.\n"
            f"{reference.strip()}\n"
        )
    return "".join(parts)


def load_reference() -> str:
    """Contents of AGENTRY_REFERENCE_FILE, or empty when unset or unreadable."""
    path = os.getenv("AGENTRY_REFERENCE_FILE")
    if not path:
        return ""
    try:
        return Path(path).read_text(encoding="utf-8")
    except OSError as e:
        logger.warning("Failed to read reference file %s: %s", path, e)
        return ""
