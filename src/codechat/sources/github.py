"""GitHub repository source.

Resolves a public repository reference into a RepoSnapshot using the
unauthenticated REST API: repository metadata, the top-level contents
listing, and the raw content of up to MAX_FILES files fetched concurrently.
"""

import asyncio
import logging
import re
from dataclasses import dataclass

import httpx

from ..config import get_github_api_url, get_http_timeout
from ..core import FetchedFile, RepoSnapshot
from ..errors import InvalidReferenceError, RepositoryError, RepositoryNotFoundError
from ..languages import detect_language

logger = logging.getLogger(__name__)

MAX_FILES = 10

_REFERENCE = re.compile(r"github\.com/([^/]+)/([^/]+)")


def parse_repo_reference(reference: str) -> tuple[str, str]:
    """Extract (owner, repo) from a reference such as https://github.com/owner/repo.git."""
    match = _REFERENCE.search(reference)
    if not match:
        raise InvalidReferenceError(reference)
    owner, repo = match.groups()
    return owner, re.sub(r"\.git$", "", repo)


@dataclass
class FileFetchResult:
    """Outcome of fetching one listed file: either `file` or `error` is set."""

    path: str
    file: FetchedFile | None = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.file is not None


class GitHubSource:
    """Fetches repository snapshots from the GitHub REST API."""

    def __init__(
        self,
        base_url: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.base_url = base_url or get_github_api_url()
        self.timeout = timeout if timeout is not None else get_http_timeout()
        self._transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self.base_url,
            timeout=self.timeout,
            transport=self._transport,
            headers={"Accept": "application/vnd.github+json"},
            follow_redirects=True,
        )

    async def fetch_repository(self, reference: str) -> RepoSnapshot:
        """Resolve `reference` into a snapshot of the repository and its first files."""
        owner, repo = parse_repo_reference(reference)

        async with self._client() as client:
            try:
                repo_response = await client.get(f"/repos/{owner}/{repo}")
            except httpx.HTTPError as e:
                raise RepositoryError(reference, f"Failed to fetch repository: {e}") from e
            if not repo_response.is_success:
                raise RepositoryNotFoundError(reference, repo_response.status_code)
            try:
                repo_data = repo_response.json()
            except ValueError as e:
                raise RepositoryError(reference, "Malformed repository metadata") from e

            try:
                contents_response = await client.get(f"/repos/{owner}/{repo}/contents")
            except httpx.HTTPError as e:
                raise RepositoryError(reference, f"Failed to fetch contents: {e}") from e
            if not contents_response.is_success:
                raise RepositoryError(
                    reference,
                    "Failed to fetch contents",
                    extra_info={"status": str(contents_response.status_code)},
                )
            try:
                listing = contents_response.json()
            except ValueError as e:
                raise RepositoryError(reference, "Malformed contents listing") from e
            if not isinstance(listing, list):
                raise RepositoryError(reference, "Contents listing is not a directory")

            entries = [item for item in listing if isinstance(item, dict) and item.get("type") == "file"][:MAX_FILES]
            results = await asyncio.gather(*(self._fetch_file(client, item) for item in entries))

        files = []
        for result in results:
            if result.ok:
                files.append(result.file)
            else:
                logger.debug("Skipping %s from %s: %s", result.path, reference, result.error)

        logger.info("Fetched %s/%s with %d of %d files", owner, repo, len(files), len(entries))

        return RepoSnapshot(
            name=repo_data.get("name") or repo,
            full_name=repo_data.get("full_name") or f"{owner}/{repo}",
            description=repo_data.get("description") or "No description available",
            stars=repo_data.get("stargazers_count") or 0,
            language=repo_data.get("language") or "Unknown",
            files=files,
        )

    async def _fetch_file(self, client: httpx.AsyncClient, item: dict) -> FileFetchResult:
        name = item.get("name", "")
        path = item.get("path", name)
        url = item.get("download_url")
        if not url:
            return FileFetchResult(path=path, error="no download_url")

        try:
            response = await client.get(url)
            response.raise_for_status()
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            return FileFetchResult(path=path, error=str(e))

        return FileFetchResult(
            path=path,
            file=FetchedFile(
                name=name,
                path=path,
                content=response.text,
                size=item.get("size", 0),
                type="file",
                language=detect_language(name),
            ),
        )
