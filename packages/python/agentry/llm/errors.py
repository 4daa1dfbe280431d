"""
Completion failures and redaction of credential-shaped text.
Anything derived from a remote error body goes through sanitize_error_text
before it is logged or raised.
"""
from __future__ import annotations

import re

MAX_ERROR_CHARS = 500

_REDACTIONS: list[tuple[re.Pattern, str]] = [
    (re.compile(r"(?<![A-Za-z0-9])sk-[A-Za-z0-9_-]+"), "sk-***"),
    (re.compile(r'"api_key"\s*:\s*"[^"]*"'), '"api_key": "***"'),
    (re.compile(r"AIzaSy[a-zA-Z0-9_-]+"), "AIzaSy***"),
    (re.compile(r"(?i)bearer\s+[a-zA-Z0-9._~+/=-]+"), "Bearer ***"),
]


def sanitize_error_text(text: str, limit: int = MAX_ERROR_CHARS) -> str:
    """Redact API keys and bearer tokens, then truncate to limit characters."""
    out = text or ""
    for pattern, replacement in _REDACTIONS:
        out = pattern.sub(replacement, out)
    return out[:limit]


class CompletionError(RuntimeError):
    """A completion call failed; aborts the current user-turn."""

    def __init__(self, message: str, status_code: int | None = None, body: str = ""):
        self.status_code = status_code
        self.body = sanitize_error_text(body)
        super().__init__(sanitize_error_text(message))
