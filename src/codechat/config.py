"""Platform-aware path resolution and runtime settings."""

import logging
import os
import sys
from pathlib import Path

logger = logging.getLogger(__name__)

DEFAULT_LANGUAGE = "javascript"
DEFAULT_GITHUB_API = "https://api.github.com"


def get_data_dir() -> Path:
    """Return the directory that holds codechat's local data."""
    if sys.platform == "darwin":
        return Path.home() / "Library" / "Application Support" / "codechat"
    elif sys.platform == "win32":
        return Path(os.environ.get("APPDATA", "")) / "codechat"
    else:  # Linux
        return Path.home() / ".local" / "share" / "codechat"


def get_db_path() -> Path:
    """Return the path to the SQLite session database."""
    env = os.environ.get("CODECHAT_DB_PATH")
    if env:
        return Path(env)

    return get_data_dir() / "codechat.db"


def get_github_api_url() -> str:
    """Return the base URL of the repository-hosting API."""
    return os.environ.get("CODECHAT_GITHUB_API", DEFAULT_GITHUB_API).rstrip("/")


def get_http_timeout() -> float | None:
    """Return the outbound HTTP timeout in seconds, or None for no timeout."""
    env = os.environ.get("CODECHAT_HTTP_TIMEOUT")
    if not env:
        return None
    try:
        return float(env)
    except ValueError:
        logger.warning("Ignoring invalid CODECHAT_HTTP_TIMEOUT %r", env)
        return None
