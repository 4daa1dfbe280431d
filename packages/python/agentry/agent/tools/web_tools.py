"""
Network tools: Tavily web search and a plain URL fetch.
Both apply their own timeouts and return text for the model.
"""
from __future__ import annotations

import logging
import os
import re

import httpx

from ...common.env import get_float_env

logger = logging.getLogger(__name__)

TAVILY_SEARCH_URL = "https://api.tavily.com/search"
FETCH_MAX_CHARS = 12000

_SCRIPT_RE = re.compile(r"<(script|style)[^>]*>.*?</\1>", re.DOTALL | re.IGNORECASE)
_TAG_RE = re.compile(r"<[^>]+>")
_BLANK_RE = re.compile(r"\n\s*\n+")


def format_search_results(data: dict) -> str:
    """Summary line plus title/url/snippet for each result."""
    output = ""
    if data.get("answer"):
        output += f"Summary: {data['answer']}\n\n"
    for result in data.get("results") or []:
        output += f"Title: {result.get('title', '')}\n"
        output += f"URL: {result.get('url', '')}\n"
        output += f"{result.get('content', '')}\n\n"
    return output or "No results found."


async def web_search(context: dict, params: dict) -> str:
    """Searches the web with Tavily."""
    query = params.get("query")
    if not query:
        return "Error: query is required"
    api_key = os.getenv("TAVILY_API_KEY")
    if not api_key:
        return "Error: TAVILY_API_KEY not set in .env"

    timeout_s = get_float_env("AGENTRY_TOOL_TIMEOUT_SECS", 30.0)
    async with httpx.AsyncClient(timeout=timeout_s) as client:
        resp = await client.post(
            TAVILY_SEARCH_URL,
            json={"api_key": api_key, "query": query, "max_results": 5, "include_answer": True},
        )
    if not 200 <= resp.status_code <= 299:
        logger.warning(f"Search error {resp.status_code} for query {query!r}")
        return f"Search error ({resp.status_code}): {resp.text[:500]}"
    return format_search_results(resp.json())


def html_to_text(html: str) -> str:
    text = _SCRIPT_RE.sub("", html)
    text = _TAG_RE.sub("", text)
    return _BLANK_RE.sub("\n\n", text).strip()


async def fetch_url(context: dict, params: dict) -> str:
    """Fetches a URL and returns its readable text, capped at FETCH_MAX_CHARS."""
    url = params.get("url") or ""
    if not url.startswith(("http://", "https://")):
        return "Error: URL must start with http:// or https://"

    timeout_s = get_float_env("AGENTRY_TOOL_TIMEOUT_SECS", 30.0)
    try:
        async with httpx.AsyncClient(timeout=timeout_s, follow_redirects=True) as client:
            resp = await client.get(url, headers={"User-Agent": "agentry/0.1"})
    except httpx.HTTPError as e:
        return f"Fetch error: {type(e).__name__}: {e}"
    if not 200 <= resp.status_code <= 299:
        return f"HTTP Error {resp.status_code} fetching {url}"

    content_type = resp.headers.get("content-type", "")
    body = html_to_text(resp.text) if "html" in content_type else resp.text
    if len(body) > FETCH_MAX_CHARS:
        body = body[:FETCH_MAX_CHARS] + f"\n... [truncated, {len(body)} total chars]"
    return body
