"""Environment and logging setup, called once by entry points."""

import logging
import os
from pathlib import Path

from dotenv import load_dotenv

DEFAULT_LOG_FILE = "log/agentry.log"


def setup_logging(log_file: str | None = None, level: str | None = None, interactive: bool = False) -> None:
    """
    Log to a file, and to stderr unless running the interactive REPL
    (stderr output would interleave with the chat transcript).
    """
    log_path = Path(log_file or os.getenv("AGENTRY_LOG_FILE", DEFAULT_LOG_FILE))
    log_path.parent.mkdir(parents=True, exist_ok=True)

    handlers: list[logging.Handler] = [
        logging.FileHandler(log_path, mode="a", encoding="utf-8"),
    ]
    if not interactive:
        handlers.append(logging.StreamHandler())

    level_name = (level or os.getenv("AGENTRY_LOG_LEVEL", "INFO")).upper()
    logging.basicConfig(
        level=getattr(logging, level_name, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        handlers=handlers,
        force=True,
    )

    # Suppress noisy third-party logs
    for name in ("httpx", "httpcore", "LiteLLM", "litellm"):
        logging.getLogger(name).setLevel(logging.WARNING)

    logging.getLogger(__name__).info(f"Logging to {log_path.absolute()}")


def setup(interactive: bool = False) -> None:
    """Read the .env file into the environment, then configure logging."""
    load_dotenv()
    setup_logging(interactive=interactive)
