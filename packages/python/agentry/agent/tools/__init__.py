# Agent tool implementations (reasoning, web, files, memory).
# Each module exports async functions that take (context, params) and return text.

from .reasoning_tools import think, calculator
from .web_tools import web_search, fetch_url
from .file_tools import read_file, write_file, append_file, list_files
from .memory_tools import (
    save_memory,
    load_memory,
    save_research,
    get_research,
    search_history,
)

__all__ = [
    "think",
    "calculator",
    "web_search",
    "fetch_url",
    "read_file",
    "write_file",
    "append_file",
    "list_files",
    "save_memory",
    "load_memory",
    "save_research",
    "get_research",
    "search_history",
]
