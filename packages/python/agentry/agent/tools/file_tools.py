"""
Local file tools. Paths are used as given (relative to the working directory);
write and append are side-effecting and gated by the approval step in the loop.
"""
from __future__ import annotations

import logging
from pathlib import Path

logger = logging.getLogger(__name__)

LIST_MAX_ENTRIES = 200


async def read_file(context: dict, params: dict) -> str:
    """Returns the text of a local file."""
    path = params.get("path")
    if not path:
        return "Error: path is required"
    try:
        return Path(path).read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        return f"Error reading file: {e}"


async def write_file(context: dict, params: dict) -> str:
    """Creates or overwrites a file, creating parent directories."""
    path = params.get("path")
    if not path:
        return "Error: path is required"
    content = params.get("content") or ""
    target = Path(path)
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_text(content, encoding="utf-8")
    logger.info(f"Wrote {len(content)} chars to {target}")
    return f"Wrote {len(content)} characters to {path}"


async def append_file(context: dict, params: dict) -> str:
    """Appends to a file, creating it if needed."""
    path = params.get("path")
    if not path:
        return "Error: path is required"
    content = params.get("content") or ""
    target = Path(path)
    target.parent.mkdir(parents=True, exist_ok=True)
    with target.open("a", encoding="utf-8") as f:
        f.write(content)
    logger.info(f"Appended {len(content)} chars to {target}")
    return f"Appended {len(content)} characters to {path}"


async def list_files(context: dict, params: dict) -> str:
    """Lists a directory (non-recursive); directories carry a trailing slash."""
    path = Path(params.get("path") or ".")
    if not path.exists():
        return f"Error: {path} does not exist"
    if not path.is_dir():
        return f"Error: {path} is not a directory"
    entries = sorted(path.iterdir(), key=lambda p: (not p.is_dir(), p.name))
    lines = [f"{p.name}/" if p.is_dir() else p.name for p in entries[:LIST_MAX_ENTRIES]]
    if len(entries) > LIST_MAX_ENTRIES:
        lines.append(f"... ({len(entries) - LIST_MAX_ENTRIES} more)")
    return "\n".join(lines) if lines else f"{path} is empty"
