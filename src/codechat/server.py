"""FastAPI web server for codechat."""

import logging
from typing import Optional

from fastapi import FastAPI, File, Form, HTTPException, Query, UploadFile
from fastapi.responses import Response
from pydantic import BaseModel

from . import __version__
from .backends import get_store
from .core import FetchedFile, LocalFile, RepoSnapshot
from .errors import InvalidReferenceError, NotFoundError, PersistenceError, RepositoryError
from .export import download_filename, message_to_dict, repo_to_dict, session_to_dict, session_to_json, session_to_markdown
from .sessions import add_message, create_session, send_chat_message, submit
from .sources.github import GitHubSource
from .store import SessionStore

logger = logging.getLogger(__name__)

app = FastAPI(title="codechat", version=__version__)

# Store and repository source (populated on first request)
_store: SessionStore | None = None
_github: GitHubSource | None = None


def _get_store() -> SessionStore:
    """Lazily initialize and cache the session store."""
    global _store
    if _store is None:
        _store = get_store()
        logger.info("Using %s session store", _store.name)
    return _store


def _get_github() -> GitHubSource:
    """Lazily initialize and cache the repository source."""
    global _github
    if _github is None:
        _github = GitHubSource()
    return _github


# ── Request bodies ───────────────────────────────────────────────


class FileIn(BaseModel):
    name: str
    path: str = ""
    content: str = ""
    size: int = 0
    type: str = "file"
    language: Optional[str] = None


class RepoIn(BaseModel):
    name: str
    fullName: str
    description: Optional[str] = None
    stars: int = 0
    language: Optional[str] = None
    files: list[FileIn] = []

    def to_snapshot(self) -> RepoSnapshot:
        return RepoSnapshot(
            name=self.name,
            full_name=self.fullName,
            description=self.description or "No description available",
            stars=self.stars,
            language=self.language or "Unknown",
            files=[
                FetchedFile(
                    name=f.name,
                    path=f.path or f.name,
                    content=f.content,
                    size=f.size,
                    type=f.type,
                    language=f.language or "javascript",
                )
                for f in self.files
            ],
        )


class SessionCreate(BaseModel):
    code: str = ""
    language: Optional[str] = None
    initialMessage: Optional[str] = None
    githubRepo: Optional[RepoIn] = None


class SessionUpdate(BaseModel):
    code: Optional[str] = None
    language: Optional[str] = None


class MessageCreate(BaseModel):
    content: str
    type: str


class ChatMessage(BaseModel):
    content: str


# ── Routes ───────────────────────────────────────────────────────


@app.post("/api/sessions")
async def post_session(body: SessionCreate):
    """Create a session from already resolved code."""
    store = _get_store()
    try:
        session_id = create_session(
            store,
            code=body.code,
            language=body.language,
            initial_message=body.initialMessage,
            external_repo=body.githubRepo.to_snapshot() if body.githubRepo else None,
        )
        session = store.get_session(session_id)
    except PersistenceError as e:
        logger.error("Error creating session: %s", e)
        raise HTTPException(status_code=500, detail="Failed to create session")

    return {"session": session_to_dict(session)}


@app.get("/api/sessions")
async def get_sessions():
    """Return all sessions, most recently updated first."""
    try:
        sessions = _get_store().list_sessions()
    except PersistenceError as e:
        logger.error("Error fetching sessions: %s", e)
        raise HTTPException(status_code=500, detail="Failed to fetch sessions")

    return {"sessions": [session_to_dict(s) for s in sessions]}


@app.get("/api/sessions/{session_id}")
async def get_session(session_id: str):
    """Return one session with its messages."""
    try:
        session = _get_store().get_session(session_id)
    except NotFoundError:
        raise HTTPException(status_code=404, detail="Session not found")
    except PersistenceError as e:
        logger.error("Error fetching session %s: %s", session_id, e)
        raise HTTPException(status_code=500, detail="Failed to fetch session")

    return {"session": session_to_dict(session)}


@app.put("/api/sessions/{session_id}")
async def put_session(session_id: str, body: SessionUpdate):
    """Save code/language edits from the editor."""
    try:
        session = _get_store().update_session(session_id, code=body.code, language=body.language)
    except NotFoundError:
        raise HTTPException(status_code=404, detail="Session not found")
    except PersistenceError as e:
        logger.error("Error updating session %s: %s", session_id, e)
        raise HTTPException(status_code=500, detail="Failed to update session")

    return {"session": session_to_dict(session)}


@app.post("/api/sessions/{session_id}/messages")
async def post_message(session_id: str, body: MessageCreate):
    """Append a single message to a session."""
    try:
        message = add_message(_get_store(), session_id, body.content, body.type)
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e))
    except NotFoundError:
        raise HTTPException(status_code=404, detail="Session not found")
    except PersistenceError as e:
        logger.error("Error creating message for %s: %s", session_id, e)
        raise HTTPException(status_code=500, detail="Failed to create message")

    return {"message": message_to_dict(message)}


@app.post("/api/sessions/{session_id}/chat")
async def post_chat(session_id: str, body: ChatMessage):
    """Send a chat message and receive the assistant's reply."""
    try:
        messages = send_chat_message(_get_store(), session_id, body.content)
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e))
    except NotFoundError:
        raise HTTPException(status_code=404, detail="Session not found")
    except PersistenceError as e:
        logger.error("Error sending message to %s: %s", session_id, e)
        raise HTTPException(status_code=500, detail="Failed to send message")

    return {"messages": [message_to_dict(m) for m in messages]}


@app.get("/api/sessions/{session_id}/download")
async def download_code(session_id: str):
    """Download the session's current code buffer."""
    try:
        session = _get_store().get_session(session_id)
    except NotFoundError:
        raise HTTPException(status_code=404, detail="Session not found")
    except PersistenceError as e:
        logger.error("Error fetching session %s for download: %s", session_id, e)
        raise HTTPException(status_code=500, detail="Failed to fetch session")

    filename = download_filename(session.language)
    return Response(
        content=session.code,
        media_type="text/plain",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@app.get("/api/sessions/{session_id}/export")
async def export_session(
    session_id: str,
    format: str = Query("md", description="Export format: md or json"),
):
    """Export a session as Markdown or JSON."""
    try:
        session = _get_store().get_session(session_id)
    except NotFoundError:
        raise HTTPException(status_code=404, detail="Session not found")
    except PersistenceError as e:
        logger.error("Error fetching session %s for export: %s", session_id, e)
        raise HTTPException(status_code=500, detail="Failed to fetch session")

    title = session.title or "session"
    safe_title = "".join(c if c.isalnum() or c in "-_ " else "" for c in title)[:50] or "session"

    if format == "json":
        content = session_to_json(session)
        return Response(
            content=content,
            media_type="application/json",
            headers={"Content-Disposition": f'attachment; filename="{safe_title}.json"'},
        )
    else:
        content = session_to_markdown(session)
        return Response(
            content=content,
            media_type="text/markdown",
            headers={"Content-Disposition": f'attachment; filename="{safe_title}.md"'},
        )


@app.post("/api/submit")
async def post_submit(
    text: str = Form(""),
    repo: Optional[str] = Form(None),
    files: Optional[list[UploadFile]] = File(None),
):
    """Resolve a prompt with attachments and create a session from it."""
    local_files = []
    for upload in files or []:
        data = await upload.read()
        local_files.append(LocalFile(name=upload.filename or "untitled", size=len(data), data=data))

    store = _get_store()
    try:
        session_id = await submit(store, text, local_files, repo, _get_github())
        if session_id is None:
            raise HTTPException(status_code=400, detail="Nothing to submit")
        session = store.get_session(session_id)
    except PersistenceError as e:
        logger.error("Error saving session: %s", e)
        raise HTTPException(status_code=500, detail="Failed to create session")

    return {"session": session_to_dict(session)}


@app.get("/api/repos")
async def get_repo(url: str = Query(..., description="Repository URL, e.g. https://github.com/owner/repo")):
    """Preview a repository before attaching it to a prompt."""
    try:
        snapshot = await _get_github().fetch_repository(url)
    except InvalidReferenceError:
        raise HTTPException(status_code=400, detail="Invalid GitHub URL")
    except NotFoundError:
        raise HTTPException(status_code=404, detail="Repository not found")
    except RepositoryError as e:
        logger.warning("Error fetching repository %s: %s", url, e)
        raise HTTPException(status_code=502, detail="Failed to fetch repository")

    return {"repo": repo_to_dict(snapshot)}
