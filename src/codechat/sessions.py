"""Session creation and chat flows on top of a SessionStore."""

import logging
from collections.abc import Sequence
from typing import Optional

from .config import DEFAULT_LANGUAGE
from .core import LocalFile, Message, MessageType, RepoSnapshot
from .resolver import resolve_content
from .sources.github import GitHubSource
from .store import SessionStore
from .title import derive_title

logger = logging.getLogger(__name__)

ASSISTANT_REPLY = "I'll help you with that code. Here's what I suggest..."


def create_session(
    store: SessionStore,
    code: str,
    language: Optional[str] = None,
    initial_message: Optional[str] = None,
    external_repo: Optional[RepoSnapshot] = None,
) -> str:
    """Persist a new session for already resolved code and return its id.

    The title is derived here, once. A USER seed message is stored only for a
    non-empty `initial_message`. Raises PersistenceError if the write fails.
    """
    code = code or ""
    language = language or DEFAULT_LANGUAGE
    title = derive_title(code, language)

    session = store.create_session(
        code=code,
        language=language,
        title=title,
        external_repo=external_repo,
        initial_message=initial_message or None,
    )
    return session.id


async def submit(
    store: SessionStore,
    text: str,
    files: Sequence[LocalFile] = (),
    repo_ref: Optional[str] = None,
    source: Optional[GitHubSource] = None,
) -> Optional[str]:
    """Resolve a prompt with its attachments and create a session from it.

    Returns the new session id, or None when there was nothing to submit.
    """
    resolved = await resolve_content(text, files, repo_ref, source)
    if resolved is None:
        logger.debug("Nothing to submit")
        return None

    return create_session(
        store,
        code=resolved.code,
        language=resolved.language,
        initial_message=resolved.display_message,
        external_repo=resolved.external_repo,
    )


def add_message(store: SessionStore, session_id: str, content: str, type: str | MessageType) -> Message:
    """Append a message; `type` is parsed case-insensitively."""
    if not isinstance(type, MessageType):
        type = MessageType.parse(type)
    return store.add_message(session_id, content, type)


def send_chat_message(store: SessionStore, session_id: str, content: str) -> list[Message]:
    """Record a user message and the assistant's placeholder reply."""
    if not content or not content.strip():
        raise ValueError("Message content is empty")

    user = store.add_message(session_id, content, MessageType.USER)
    assistant = store.add_message(session_id, ASSISTANT_REPLY, MessageType.ASSISTANT)
    return [user, assistant]
