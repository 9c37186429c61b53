"""Pick and shape the initial code for a new session.

A session is seeded from exactly one source, in priority order: a resolved
external repository, the first attached local file, or the raw prompt text.
The source is chosen once by `select_content` and then rendered by
`compose`.
"""

import logging
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Optional, Union

from .config import DEFAULT_LANGUAGE
from .core import FetchedFile, LocalFile, RepoSnapshot
from .errors import FileReadError, RepositoryError
from .languages import detect_language
from .sources.github import GitHubSource
from .sources.local import read_local_file

logger = logging.getLogger(__name__)


@dataclass
class RepoContent:
    repo: RepoSnapshot

    @property
    def primary(self) -> FetchedFile:
        return self.repo.files[0]


@dataclass
class LocalFileContent:
    file: LocalFile


@dataclass
class TextContent:
    pass


ContentSource = Union[RepoContent, LocalFileContent, TextContent]


@dataclass
class ResolvedContent:
    """What a new session is created from."""

    code: str
    language: str
    display_message: str
    external_repo: Optional[RepoSnapshot] = None


def has_content(text: str, files: Sequence[LocalFile], repo: Optional[RepoSnapshot]) -> bool:
    """Return True if there is anything to create a session from."""
    return bool(text.strip()) or len(files) > 0 or repo is not None


def select_content(files: Sequence[LocalFile], repo: Optional[RepoSnapshot]) -> ContentSource:
    """Choose the single source a session's code comes from."""
    if repo is not None and repo.files:
        return RepoContent(repo)
    if files:
        return LocalFileContent(files[0])
    return TextContent()


def _with_prompt(text: str, header: str, content: str) -> str:
    if not text.strip():
        return content
    return f"// User Input: {text}\n\n{header}\n{content}"


def compose(text: str, source: ContentSource) -> tuple[str, str]:
    """Render the chosen source into (code, language)."""
    if isinstance(source, RepoContent):
        primary = source.primary
        header = f"// GitHub Repository: {source.repo.full_name}\n// File: {primary.name}"
        return _with_prompt(text, header, primary.content), primary.language or DEFAULT_LANGUAGE

    if isinstance(source, LocalFileContent):
        try:
            content = read_local_file(source.file)
        except FileReadError as e:
            logger.warning("Falling back to prompt text: %s", e)
            return text, DEFAULT_LANGUAGE
        return _with_prompt(text, f"// File: {source.file.name}", content), detect_language(source.file.name)

    return text, DEFAULT_LANGUAGE


def display_message(text: str, files: Sequence[LocalFile], repo: Optional[RepoSnapshot]) -> str:
    """The first chat message shown for a new session."""
    if text.strip():
        return text
    if repo is not None:
        return f"Opened GitHub repository: {repo.full_name}"
    return f"Opened file: {files[0].name if files else 'Unknown'}"


async def fetch_repo(source: GitHubSource, reference: Optional[str]) -> Optional[RepoSnapshot]:
    """Resolve a repository reference, or return None if it cannot be resolved."""
    if not reference or not reference.strip():
        return None
    try:
        return await source.fetch_repository(reference.strip())
    except RepositoryError as e:
        logger.warning("Repository not resolved: %s", e)
        return None


async def resolve_content(
    text: str,
    files: Sequence[LocalFile] = (),
    repo_ref: Optional[str] = None,
    source: Optional[GitHubSource] = None,
) -> Optional[ResolvedContent]:
    """Resolve prompt text, attachments and a repository reference into session content.

    Returns None when there is nothing to submit. Repository and file read
    failures degrade to the next source instead of raising.
    """
    repo = None
    if repo_ref:
        repo = await fetch_repo(source or GitHubSource(), repo_ref)

    return resolve_with_repo(text, files, repo)


def resolve_with_repo(
    text: str,
    files: Sequence[LocalFile] = (),
    repo: Optional[RepoSnapshot] = None,
) -> Optional[ResolvedContent]:
    """Like `resolve_content`, for an already fetched (or absent) repository."""
    if not has_content(text, files, repo):
        return None

    code, language = compose(text, select_content(files, repo))
    return ResolvedContent(
        code=code,
        language=language,
        display_message=display_message(text, files, repo),
        external_repo=repo,
    )
