"""Core data models for codechat."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional


class MessageType(str, Enum):
    """Author of a chat message."""

    USER = "USER"
    ASSISTANT = "ASSISTANT"

    @classmethod
    def parse(cls, value: str) -> "MessageType":
        """Parse a message type case-insensitively ("user" -> USER)."""
        try:
            return cls(value.strip().upper())
        except (AttributeError, ValueError):
            raise ValueError(f"Unknown message type: {value!r}") from None


@dataclass
class FetchedFile:
    """A file pulled from an external repository listing."""

    name: str
    path: str
    content: str
    size: int  # as reported by the listing, never checked against content
    type: str = "file"  # "file" | "dir"
    language: str = "javascript"


@dataclass
class RepoSnapshot:
    """Point-in-time copy of an external repository's metadata and files."""

    name: str
    full_name: str  # e.g. "octocat/hello-world"
    description: str = "No description available"
    stars: int = 0
    language: str = "Unknown"
    files: list[FetchedFile] = field(default_factory=list)


@dataclass
class LocalFile:
    """A file attached by the user from their machine."""

    name: str
    size: int
    data: bytes


@dataclass
class Message:
    """A single message within a session's chat history."""

    id: str
    session_id: str
    content: str
    type: MessageType
    timestamp: datetime


@dataclass
class Session:
    """A code buffer, its language and its chat history."""

    id: str
    code: str
    language: str
    title: Optional[str]
    created_at: datetime
    updated_at: datetime
    external_repo: Optional[RepoSnapshot] = None
    messages: list[Message] = field(default_factory=list)
