"""Tests for the FastAPI server."""

import json
from unittest.mock import patch

import pytest
from httpx import ASGITransport, AsyncClient

import codechat.server as srv
from codechat.errors import PersistenceError
from codechat.server import app
from codechat.sessions import ASSISTANT_REPLY


@pytest.fixture(autouse=True)
def wired_server(store, github_source):
    """Point the server at the test store and fake GitHub."""
    srv._store = store
    srv._github = github_source
    yield
    srv._store = None
    srv._github = None


async def _create(client, **body):
    resp = await client.post("/api/sessions", json=body)
    assert resp.status_code == 200
    return resp.json()["session"]


@pytest.mark.asyncio
async def test_create_session():
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        session = await _create(client, code="function add(a, b) { return a + b; }", initialMessage="add numbers")
        assert session["language"] == "javascript"
        assert session["title"] == "add"
        assert session["githubRepo"] is None
        assert [m["type"] for m in session["messages"]] == ["USER"]
        assert session["messages"][0]["content"] == "add numbers"


@pytest.mark.asyncio
async def test_create_session_with_repo():
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        session = await _create(
            client,
            code="print('hi')",
            language="python",
            githubRepo={
                "name": "hello-world",
                "fullName": "octocat/hello-world",
                "files": [{"name": "main.py", "path": "main.py", "content": "print('hi')", "size": 11, "type": "file", "language": "python"}],
            },
        )
        repo = session["githubRepo"]
        assert repo["fullName"] == "octocat/hello-world"
        assert repo["description"] == "No description available"
        assert repo["files"][0]["name"] == "main.py"


@pytest.mark.asyncio
async def test_create_session_persistence_failure(store):
    with patch.object(store, "create_session", side_effect=PersistenceError("create_session", "locked")):
        transport = ASGITransport(app=app)
        async with AsyncClient(transport=transport, base_url="http://test") as client:
            resp = await client.post("/api/sessions", json={"code": "x"})
            assert resp.status_code == 500
            assert resp.json()["detail"] == "Failed to create session"


@pytest.mark.asyncio
async def test_list_sessions_newest_first():
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        first = await _create(client, code="first")
        second = await _create(client, code="second")
        await client.put(f"/api/sessions/{first['id']}", json={"code": "first edited"})

        resp = await client.get("/api/sessions")
        assert resp.status_code == 200
        ids = [s["id"] for s in resp.json()["sessions"]]
        assert ids == [first["id"], second["id"]]


@pytest.mark.asyncio
async def test_get_session_not_found():
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        resp = await client.get("/api/sessions/nonexistent")
        assert resp.status_code == 404


@pytest.mark.asyncio
async def test_update_session_keeps_title():
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        session = await _create(client, code="alpha beta gamma")
        resp = await client.put(f"/api/sessions/{session['id']}", json={"code": "zeta", "language": "python"})
        assert resp.status_code == 200
        updated = resp.json()["session"]
        assert updated["code"] == "zeta"
        assert updated["language"] == "python"
        assert updated["title"] == "alpha beta gamma"
        assert updated["updatedAt"] >= session["updatedAt"]


@pytest.mark.asyncio
async def test_update_unknown_session():
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        resp = await client.put("/api/sessions/missing", json={"code": "x"})
        assert resp.status_code == 404


@pytest.mark.asyncio
async def test_post_message():
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        session = await _create(client, code="x")
        resp = await client.post(f"/api/sessions/{session['id']}/messages", json={"content": "hello", "type": "user"})
        assert resp.status_code == 200
        assert resp.json()["message"]["type"] == "USER"

        resp = await client.post(f"/api/sessions/{session['id']}/messages", json={"content": "hello", "type": "robot"})
        assert resp.status_code == 422

        resp = await client.post("/api/sessions/missing/messages", json={"content": "hello", "type": "USER"})
        assert resp.status_code == 404


@pytest.mark.asyncio
async def test_chat_returns_placeholder_reply():
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        session = await _create(client, code="x", initialMessage="start")
        resp = await client.post(f"/api/sessions/{session['id']}/chat", json={"content": "optimize it"})
        assert resp.status_code == 200
        messages = resp.json()["messages"]
        assert [(m["type"], m["content"]) for m in messages] == [
            ("USER", "optimize it"),
            ("ASSISTANT", ASSISTANT_REPLY),
        ]

        resp = await client.get(f"/api/sessions/{session['id']}")
        assert len(resp.json()["session"]["messages"]) == 3


@pytest.mark.asyncio
async def test_download_code():
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        session = await _create(client, code="print('hi')", language="python")
        resp = await client.get(f"/api/sessions/{session['id']}/download")
        assert resp.status_code == 200
        assert resp.text == "print('hi')"
        assert 'filename="code.py"' in resp.headers["content-disposition"]


@pytest.mark.asyncio
async def test_export_endpoints():
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        session = await _create(client, code="render dashboard widgets", initialMessage="hi")

        resp = await client.get(f"/api/sessions/{session['id']}/export?format=md")
        assert resp.status_code == 200
        assert "text/markdown" in resp.headers.get("content-type", "")
        assert 'filename="render dashboard widgets.md"' in resp.headers["content-disposition"]

        resp = await client.get(f"/api/sessions/{session['id']}/export?format=json")
        assert resp.status_code == 200
        assert "application/json" in resp.headers.get("content-type", "")
        data = json.loads(resp.text)
        assert data["session"]["id"] == session["id"]


@pytest.mark.asyncio
async def test_download_and_export_persistence_failure(store):
    with patch.object(store, "get_session", side_effect=PersistenceError("get_session", "disk I/O error")):
        transport = ASGITransport(app=app)
        async with AsyncClient(transport=transport, base_url="http://test") as client:
            resp = await client.get("/api/sessions/abc/download")
            assert resp.status_code == 500
            assert resp.json()["detail"] == "Failed to fetch session"

            resp = await client.get("/api/sessions/abc/export?format=json")
            assert resp.status_code == 500
            assert resp.json()["detail"] == "Failed to fetch session"


@pytest.mark.asyncio
async def test_submit_text_only():
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        resp = await client.post("/api/submit", data={"text": "hello"})
        assert resp.status_code == 200
        session = resp.json()["session"]
        assert session["code"] == "hello"
        assert session["language"] == "javascript"


@pytest.mark.asyncio
async def test_submit_with_file():
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        resp = await client.post(
            "/api/submit",
            data={"text": "hello"},
            files=[
                ("files", ("util.py", b"def helper():\n    return 1\n", "text/x-python")),
                ("files", ("other.rs", b"fn main() {}", "text/plain")),
            ],
        )
        assert resp.status_code == 200
        session = resp.json()["session"]
        assert session["code"].startswith("// User Input: hello\n\n// File: util.py\n")
        assert session["language"] == "python"


@pytest.mark.asyncio
async def test_submit_with_repo():
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        resp = await client.post("/api/submit", data={"text": "", "repo": "https://github.com/octocat/hello-world"})
        assert resp.status_code == 200
        session = resp.json()["session"]
        assert session["githubRepo"]["fullName"] == "octocat/hello-world"
        assert session["messages"][0]["content"] == "Opened GitHub repository: octocat/hello-world"


@pytest.mark.asyncio
async def test_submit_nothing(store):
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        resp = await client.post("/api/submit", data={"text": "   "})
        assert resp.status_code == 400
    assert store.list_sessions() == []


@pytest.mark.asyncio
async def test_repo_preview():
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        resp = await client.get("/api/repos", params={"url": "https://github.com/octocat/hello-world"})
        assert resp.status_code == 200
        repo = resp.json()["repo"]
        assert repo["stars"] == 42
        assert [f["name"] for f in repo["files"]] == ["main.py", "README.md", "app.ts"]

        resp = await client.get("/api/repos", params={"url": "not a url"})
        assert resp.status_code == 400

        resp = await client.get("/api/repos", params={"url": "https://github.com/octocat/missing"})
        assert resp.status_code == 404
