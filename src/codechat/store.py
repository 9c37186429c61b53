"""Abstract base class for session stores."""

from abc import ABC, abstractmethod
from typing import Optional

from .core import Message, MessageType, RepoSnapshot, Session


class SessionStore(ABC):
    """Persistence for sessions and their append-only chat messages.

    Implementations must create a session and its seed message atomically
    and raise PersistenceError when the underlying storage fails.
    """

    name: str

    @abstractmethod
    def initialize(self) -> None:
        """Create the storage schema if it does not exist yet."""
        ...

    @abstractmethod
    def create_session(
        self,
        code: str,
        language: str,
        title: str,
        external_repo: Optional[RepoSnapshot] = None,
        initial_message: Optional[str] = None,
    ) -> Session:
        """Create a session with an optional USER seed message in one write."""
        ...

    @abstractmethod
    def get_session(self, session_id: str) -> Session:
        """Return a session with its messages, oldest first."""
        ...

    @abstractmethod
    def list_sessions(self) -> list[Session]:
        """Return all sessions, most recently updated first."""
        ...

    @abstractmethod
    def update_session(
        self,
        session_id: str,
        code: Optional[str] = None,
        language: Optional[str] = None,
    ) -> Session:
        """Apply a partial code/language edit and bump updated_at."""
        ...

    @abstractmethod
    def add_message(self, session_id: str, content: str, type: MessageType) -> Message:
        """Append a message to a session."""
        ...

    @abstractmethod
    def delete_session(self, session_id: str) -> None:
        """Delete a session and its messages."""
        ...
