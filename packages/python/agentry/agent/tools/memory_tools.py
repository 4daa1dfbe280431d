"""
Persistent memory and research log, stored under the data directory
(AGENTRY_DATA_DIR, or context["data_dir"] when the session provides one).
memory.md is appended to and injected into the system prompt at session start;
research.jsonl holds one saved finding per line.
"""
from __future__ import annotations

import json
import logging
from datetime import datetime, UTC
from pathlib import Path

from ...common.env import get_data_dir

logger = logging.getLogger(__name__)

MEMORY_FILENAME = "memory.md"
RESEARCH_FILENAME = "research.jsonl"
MAX_SEARCH_RESULTS = 10


def _data_dir(context: dict | None) -> Path:
    if context and context.get("data_dir"):
        path = Path(context["data_dir"])
        path.mkdir(parents=True, exist_ok=True)
        return path
    return get_data_dir()


def load_memory(data_dir: Path | None = None) -> str:
    """Memory file contents, or an empty string when nothing was saved yet."""
    path = (data_dir or get_data_dir()) / MEMORY_FILENAME
    if not path.exists():
        return ""
    return path.read_text(encoding="utf-8")


async def save_memory(context: dict, params: dict) -> str:
    """Appends a note to long-term memory, verbatim."""
    note = (params.get("note") or "").strip()
    if not note:
        return "Error: note is required"
    path = _data_dir(context) / MEMORY_FILENAME
    stamp = datetime.now(UTC).strftime("%Y-%m-%d")
    with path.open("a", encoding="utf-8") as f:
        f.write(f"- [{stamp}] {note}\n")
    return f"Saved to memory: {note}"


def _read_research(path: Path) -> list[dict]:
    if not path.exists():
        return []
    entries = []
    for line in path.read_text(encoding="utf-8").splitlines():
        if not line.strip():
            continue
        try:
            entries.append(json.loads(line))
        except json.JSONDecodeError:
            logger.warning(f"Skipping corrupt research line in {path}")
    return entries


async def save_research(context: dict, params: dict) -> str:
    """Saves a research finding under a topic."""
    topic = (params.get("topic") or "").strip()
    content = params.get("content") or ""
    if not topic or not content:
        return "Error: topic and content are required"
    entry = {"topic": topic, "content": content, "saved_at": datetime.now(UTC).isoformat()}
    path = _data_dir(context) / RESEARCH_FILENAME
    with path.open("a", encoding="utf-8") as f:
        f.write(json.dumps(entry, ensure_ascii=False) + "\n")
    return f"Saved research on '{topic}'"


async def get_research(context: dict, params: dict) -> str:
    """Returns all saved findings whose topic matches exactly (case-insensitive)."""
    topic = (params.get("topic") or "").strip().lower()
    if not topic:
        return "Error: topic is required"
    entries = _read_research(_data_dir(context) / RESEARCH_FILENAME)
    matches = [e for e in entries if e.get("topic", "").lower() == topic]
    if not matches:
        return f"No saved research on '{params.get('topic')}'"
    return "\n\n".join(f"[{e.get('saved_at', '')}] {e.get('content', '')}" for e in matches)


async def search_history(context: dict, params: dict) -> str:
    """Keyword search over saved research topics and content, newest first."""
    query = (params.get("query") or "").strip().lower()
    if not query:
        return "Error: query is required"
    entries = _read_research(_data_dir(context) / RESEARCH_FILENAME)
    hits = [
        e for e in reversed(entries)
        if query in e.get("topic", "").lower() or query in e.get("content", "").lower()
    ]
    if not hits:
        return f"No past research matches '{params.get('query')}'"
    lines = []
    for e in hits[:MAX_SEARCH_RESULTS]:
        snippet = e.get("content", "")[:300]
        lines.append(f"Topic: {e.get('topic', '')}\nSaved: {e.get('saved_at', '')}\n{snippet}")
    return "\n\n".join(lines)
