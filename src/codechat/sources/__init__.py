"""Content sources a new session can be seeded from."""

from .github import GitHubSource, parse_repo_reference
from .local import read_local_file

__all__ = ["GitHubSource", "parse_repo_reference", "read_local_file"]
