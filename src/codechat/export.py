"""Export sessions: code downloads and Markdown/JSON transcripts."""

import json

from .core import Session
from .languages import extension_for


def download_filename(language: str) -> str:
    """Name of the file offered when downloading a session's code."""
    return f"code.{extension_for(language)}"


def session_to_markdown(session: Session) -> str:
    """Export a session, its code and its chat as clean Markdown."""
    lines = [f"# {session.title or 'Untitled Session'}", ""]

    lines.append(f"**Language:** {session.language}")
    if session.external_repo:
        lines.append(f"**Repository:** {session.external_repo.full_name}")
    lines.append(f"**Created:** {session.created_at.isoformat()}")
    lines.append(f"**Updated:** {session.updated_at.isoformat()}")
    lines.append(f"**Messages:** {len(session.messages)}")
    lines.extend(["", f"```{session.language}", session.code, "```", "", "---", ""])

    for msg in session.messages:
        role_label = msg.type.value.capitalize()
        ts = f" ({msg.timestamp.strftime('%Y-%m-%d %H:%M')})"
        lines.append(f"## {role_label}{ts}")
        lines.append("")
        lines.append(msg.content)
        lines.extend(["", "---", ""])

    return "\n".join(lines)


def session_to_dict(session: Session) -> dict:
    """Convert a Session to the JSON shape used by the API."""
    repo = session.external_repo
    return {
        "id": session.id,
        "code": session.code,
        "language": session.language,
        "title": session.title,
        "createdAt": session.created_at.isoformat(),
        "updatedAt": session.updated_at.isoformat(),
        "githubRepo": repo_to_dict(repo) if repo else None,
        "messages": [message_to_dict(m) for m in session.messages],
    }


def repo_to_dict(repo) -> dict:
    """Convert a RepoSnapshot to its camelCase JSON shape."""
    return {
        "name": repo.name,
        "fullName": repo.full_name,
        "description": repo.description,
        "stars": repo.stars,
        "language": repo.language,
        "files": [
            {
                "name": f.name,
                "path": f.path,
                "content": f.content,
                "size": f.size,
                "type": f.type,
                "language": f.language,
            }
            for f in repo.files
        ],
    }


def message_to_dict(msg) -> dict:
    """Convert a Message to a JSON-serializable dict."""
    return {
        "id": msg.id,
        "sessionId": msg.session_id,
        "content": msg.content,
        "type": msg.type.value,
        "timestamp": msg.timestamp.isoformat(),
    }


def session_to_json(session: Session) -> str:
    """Export a session and its messages as structured JSON."""
    return json.dumps({"session": session_to_dict(session)}, indent=2, ensure_ascii=False)
