"""Session store backends and a factory for the configured one."""

from pathlib import Path

from ..store import SessionStore
from .sqlite import SQLiteSessionStore


def get_store(path: Path | None = None) -> SessionStore:
    """Return an initialized store for `path` (defaults to the configured database)."""
    store = SQLiteSessionStore(path)
    store.initialize()
    return store
