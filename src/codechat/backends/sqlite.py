"""SQLite session store.

Sessions and messages are mapped with SQLAlchemy; messages belong to their
session and are removed with it. The external repository snapshot is kept
as a JSON column since it is written once and never queried into.
"""

import logging
import uuid
from dataclasses import asdict
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from sqlalchemy import JSON, DateTime, ForeignKey, Integer, String, Text, create_engine, event, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship, selectinload, sessionmaker
from sqlalchemy.types import TypeDecorator

from ..config import DEFAULT_LANGUAGE, get_db_path
from ..core import FetchedFile, Message, MessageType, RepoSnapshot, Session
from ..errors import PersistenceError, SessionNotFoundError
from ..store import SessionStore

logger = logging.getLogger(__name__)


class UTCDateTime(TypeDecorator):
    """DateTime stored naive in UTC and loaded back as an aware UTC value."""

    impl = DateTime
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is not None:
            value = value.astimezone(timezone.utc).replace(tzinfo=None)
        return value

    def process_result_value(self, value, dialect):
        if value is not None:
            value = value.replace(tzinfo=timezone.utc)
        return value


class Base(DeclarativeBase):
    pass


class SessionRow(Base):
    __tablename__ = "sessions"

    id: Mapped[str] = mapped_column(String(32), primary_key=True)
    code: Mapped[str] = mapped_column(Text, default="")
    language: Mapped[str] = mapped_column(String(64), default=DEFAULT_LANGUAGE)
    title: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    external_repo: Mapped[Optional[dict]] = mapped_column(JSON, nullable=True)
    created_at: Mapped[datetime] = mapped_column(UTCDateTime)
    updated_at: Mapped[datetime] = mapped_column(UTCDateTime, index=True)

    messages: Mapped[list["MessageRow"]] = relationship(
        back_populates="session",
        cascade="all, delete-orphan",
        order_by="[MessageRow.timestamp, MessageRow.seq]",
    )


class MessageRow(Base):
    __tablename__ = "messages"

    # Insertion order, used to break timestamp ties
    seq: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    id: Mapped[str] = mapped_column(String(32), unique=True)
    session_id: Mapped[str] = mapped_column(ForeignKey("sessions.id", ondelete="CASCADE"), index=True)
    content: Mapped[str] = mapped_column(Text)
    type: Mapped[str] = mapped_column(String(16))  # USER | ASSISTANT
    timestamp: Mapped[datetime] = mapped_column(UTCDateTime)

    session: Mapped[SessionRow] = relationship(back_populates="messages")


def _enable_foreign_keys(dbapi_connection, connection_record):
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys = ON")
    cursor.close()


class SQLiteSessionStore(SessionStore):
    """Session store backed by a single SQLite file."""

    name = "sqlite"

    def __init__(self, path: Path | None = None):
        self.path = Path(path) if path is not None else get_db_path()
        self.engine = create_engine(f"sqlite:///{self.path}")
        event.listen(self.engine, "connect", _enable_foreign_keys)
        self._sessions = sessionmaker(self.engine, expire_on_commit=False)

    def initialize(self) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        try:
            Base.metadata.create_all(self.engine)
        except SQLAlchemyError as e:
            raise PersistenceError("initialize", str(e)) from e

    def create_session(
        self,
        code: str,
        language: str,
        title: str,
        external_repo: Optional[RepoSnapshot] = None,
        initial_message: Optional[str] = None,
    ) -> Session:
        now = _now()
        row = SessionRow(
            id=uuid.uuid4().hex,
            code=code,
            language=language or DEFAULT_LANGUAGE,
            title=title,
            external_repo=asdict(external_repo) if external_repo else None,
            created_at=now,
            updated_at=now,
        )
        if initial_message:
            row.messages.append(
                MessageRow(id=uuid.uuid4().hex, content=initial_message, type=MessageType.USER.value, timestamp=now)
            )

        try:
            with self._sessions.begin() as db:
                db.add(row)
        except SQLAlchemyError as e:
            logger.error("Failed to create session: %s", e)
            raise PersistenceError("create_session", str(e)) from e

        logger.info("Created session %s (%s)", row.id, title)
        return self.get_session(row.id)

    def get_session(self, session_id: str) -> Session:
        try:
            with self._sessions() as db:
                row = db.get(SessionRow, session_id, options=[selectinload(SessionRow.messages)])
                if row is None:
                    raise SessionNotFoundError(session_id)
                return _to_session(row)
        except SQLAlchemyError as e:
            raise PersistenceError("get_session", str(e)) from e

    def list_sessions(self) -> list[Session]:
        query = (
            select(SessionRow)
            .options(selectinload(SessionRow.messages))
            .order_by(SessionRow.updated_at.desc())
        )
        try:
            with self._sessions() as db:
                return [_to_session(row) for row in db.scalars(query)]
        except SQLAlchemyError as e:
            raise PersistenceError("list_sessions", str(e)) from e

    def update_session(
        self,
        session_id: str,
        code: Optional[str] = None,
        language: Optional[str] = None,
    ) -> Session:
        try:
            with self._sessions.begin() as db:
                row = db.get(SessionRow, session_id)
                if row is None:
                    raise SessionNotFoundError(session_id)
                if code is not None:
                    row.code = code
                if language:
                    row.language = language
                # updated_at never moves backwards, even if the clock does
                row.updated_at = max(_now(), row.updated_at)
        except SQLAlchemyError as e:
            logger.error("Failed to update session %s: %s", session_id, e)
            raise PersistenceError("update_session", str(e)) from e

        return self.get_session(session_id)

    def add_message(self, session_id: str, content: str, type: MessageType) -> Message:
        row = MessageRow(id=uuid.uuid4().hex, session_id=session_id, content=content, type=type.value, timestamp=_now())
        try:
            with self._sessions.begin() as db:
                if db.get(SessionRow, session_id) is None:
                    raise SessionNotFoundError(session_id)
                db.add(row)
        except SQLAlchemyError as e:
            logger.error("Failed to add message to %s: %s", session_id, e)
            raise PersistenceError("add_message", str(e)) from e

        return _to_message(row)

    def delete_session(self, session_id: str) -> None:
        try:
            with self._sessions.begin() as db:
                row = db.get(SessionRow, session_id)
                if row is None:
                    raise SessionNotFoundError(session_id)
                db.delete(row)
        except SQLAlchemyError as e:
            raise PersistenceError("delete_session", str(e)) from e

        logger.info("Deleted session %s", session_id)


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _repo_from_dict(data: dict | None) -> Optional[RepoSnapshot]:
    if not data:
        return None
    data = dict(data)
    files = [FetchedFile(**f) for f in data.pop("files", [])]
    return RepoSnapshot(files=files, **data)


def _to_message(row: MessageRow) -> Message:
    return Message(
        id=row.id,
        session_id=row.session_id,
        content=row.content,
        type=MessageType(row.type),
        timestamp=row.timestamp,
    )


def _to_session(row: SessionRow) -> Session:
    return Session(
        id=row.id,
        code=row.code,
        language=row.language,
        title=row.title,
        created_at=row.created_at,
        updated_at=row.updated_at,
        external_repo=_repo_from_dict(row.external_repo),
        messages=[_to_message(m) for m in row.messages],
    )
