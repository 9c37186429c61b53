"""Shared test fixtures for codechat."""

import pytest

from codechat.backends import get_store
from tests.github_fake import FakeGitHub


@pytest.fixture
def store(tmp_path):
    """A fresh SQLite session store in a temporary directory."""
    return get_store(tmp_path / "codechat.db")


@pytest.fixture
def fake_github():
    """A fake GitHub with one small repository, octocat/hello-world."""
    gh = FakeGitHub()
    gh.add_repo(
        "octocat/hello-world",
        {
            "main.py": "def greet(name):\n    print(f'hello {name}')\n",
            "README.md": "# Hello World\n",
            "app.ts": "export const answer = 42;\n",
        },
        dirs=("docs",),
    )
    return gh


@pytest.fixture
def github_source(fake_github):
    """A GitHubSource wired to the fake GitHub."""
    return fake_github.source()
