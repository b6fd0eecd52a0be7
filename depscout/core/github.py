"""GitHub repositories as a manifest source.

A public (or token-accessible) repository is searched at its root for the
manifests depscout understands, each one is downloaded, and the contents go
through :class:`~depscout.core.analyzer.PackageAnalyzer` like a local file.

Requests use the shared :class:`~depscout.utils.http.HTTPClient` and the
usual retry policy, except that rate-limit refusals are never retried: they
only clear when GitHub's window resets.

Typical usage::

    repository = parse_github_repository("https://github.com/pallets/flask")

    async with GitHubClient.from_environment() as github, RegistryService() as registry:
        analysis = await analyze_repository(github, PackageAnalyzer(registry), repository)
"""

from __future__ import annotations

import os
import re
import asyncio
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

import httpx

from depscout.core.analyzer import PackageAnalyzer
from depscout.exceptions import GitHubError, NetworkError, ValidationError
from depscout.models import AnalysisResult
from depscout.utils.http import HTTPClient, parse_json_object
from depscout.utils.logger import get_logger
from depscout.utils.retry import (
    STANDARD,
    RetryPolicy,
    SleepFunc,
    is_retryable_error,
    retry_with_backoff,
)
from depscout.constants import (
    DEFAULT_TIMEOUT,
    GITHUB_ACCEPT,
    GITHUB_API_BASE,
    GITHUB_MANIFEST_FILES,
    GITHUB_TOKEN_ENV,
)

logger = get_logger("github")

URL_REQUIRED = "URL is required"
INVALID_URL = "Invalid GitHub URL. Use format: https://github.com/owner/repo"
INVALID_OWNER = "Invalid repository owner name"
INVALID_REPOSITORY = "Invalid repository name"
REPOSITORY_NOT_FOUND = "Repository not found or not public"
NO_MANIFESTS_FOUND = (
    "No dependency files found (package.json, requirements.txt, pubspec.yaml)"
)
DOWNLOAD_FAILED = "Failed to download file content"
RATE_LIMIT_EXCEEDED = "GitHub API rate limit exceeded. Please try again later"
CONNECTION_FAILED = (
    "Network error: Unable to connect to GitHub. Please check your internet connection"
)

_URL_PATTERNS = (
    re.compile(r"^https?://github\.com/([^/]+)/([^/]+)(?:/.*)?$"),
    re.compile(r"^github\.com/([^/]+)/([^/]+)(?:/.*)?$"),
    re.compile(r"^([^/\s]+)/([^/\s]+)$"),
)
_VALID_NAME = re.compile(r"^[a-zA-Z0-9._-]+$")


# ---------------------------------------------------------------------------
# Repository references
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class GitHubRepository:
    """An ``owner/name`` pair on github.com."""

    owner: str
    name: str

    @property
    def url(self) -> str:
        return f"https://github.com/{self.owner}/{self.name}"

    @property
    def api_url(self) -> str:
        return f"{GITHUB_API_BASE}/repos/{self.owner}/{self.name}"

    def __str__(self) -> str:
        return f"{self.owner}/{self.name}"


def parse_github_repository(text: Optional[str]) -> GitHubRepository:
    """Read a repository reference typed by a user.

    Accepts ``https://github.com/owner/repo`` (deeper paths such as
    ``/tree/main`` are ignored), ``github.com/owner/repo`` and plain
    ``owner/repo``. A trailing slash or ``.git`` suffix is dropped.

    Raises:
        ValidationError: The reference is empty, malformed, or names an
            owner or repository GitHub would not allow.
    """
    if not text or not text.strip():
        raise ValidationError(URL_REQUIRED, field="repository")

    cleaned = re.sub(r"\.git$", "", text.strip().rstrip("/"))

    for pattern in _URL_PATTERNS:
        match = pattern.match(cleaned)
        if match:
            owner = match.group(1).strip()
            name = re.sub(r"\.git$", "", match.group(2)).strip()
            break
    else:
        raise ValidationError(INVALID_URL, field="repository")

    if not _VALID_NAME.match(owner):
        raise ValidationError(INVALID_OWNER, field="repository")
    if not _VALID_NAME.match(name):
        raise ValidationError(INVALID_REPOSITORY, field="repository")

    return GitHubRepository(owner=owner, name=name)


@dataclass(frozen=True)
class DependencyFile:
    """A manifest found at a repository's root."""

    name: str
    path: str
    download_url: str
    size: int = 0


@dataclass
class RepositoryAnalysis:
    """Per-manifest results for one repository, in search order."""

    repository: GitHubRepository
    manifests: List[Tuple[DependencyFile, AnalysisResult]] = field(default_factory=list)


# ---------------------------------------------------------------------------
# Error mapping
# ---------------------------------------------------------------------------


def is_rate_limited(
    status: int,
    github_message: Optional[str] = None,
    remaining: Optional[str] = None,
) -> bool:
    """GitHub signals rate limits with 429, or with 403 plus a zero quota."""
    if status == 429:
        return True
    if status != 403:
        return False
    return remaining == "0" or "rate limit" in (github_message or "").lower()


def describe_github_failure(
    status: int,
    github_message: Optional[str] = None,
    remaining: Optional[str] = None,
) -> str:
    """Phrase a failed GitHub API response for the user.

    Args:
        status: HTTP status of the response.
        github_message: The ``message`` field of GitHub's error body.
        remaining: The ``X-RateLimit-Remaining`` header.
    """
    if is_rate_limited(status, github_message, remaining):
        return RATE_LIMIT_EXCEEDED
    if status == 401:
        return "GitHub authentication failed. Please check your token and try again"
    if status == 403:
        return "Access denied. This may be a private repository or you need authentication"
    if status == 404:
        return "Repository not found. Please check the URL and try again"
    if status == 422:
        return f"GitHub API error: {github_message or 'Invalid request parameters'}"
    if status in (500, 502, 503):
        return "GitHub is temporarily unavailable. Please try again later"

    base = f"Failed to access GitHub repository (HTTP {status})"
    return f"{base}: {github_message}" if github_message else f"{base}. Please try again"


def _error_body(response: httpx.Response) -> Dict[str, Any]:
    try:
        body = response.json()
    except ValueError:
        return {}
    return body if isinstance(body, dict) else {}


def error_from_response(response: httpx.Response, url: str) -> GitHubError:
    """Build the :class:`GitHubError` for a non-2xx API response."""
    body = _error_body(response)
    message = body.get("message")
    github_message = message if isinstance(message, str) and message else None
    documentation = body.get("documentation_url")
    remaining = response.headers.get("x-ratelimit-remaining")

    return GitHubError(
        describe_github_failure(response.status_code, github_message, remaining),
        url=url,
        status_code=response.status_code,
        response_body=response.text,
        rate_limited=is_rate_limited(response.status_code, github_message, remaining),
        documentation_url=documentation if isinstance(documentation, str) else None,
    )


def _should_retry(error: BaseException, attempt: int) -> bool:
    if getattr(error, "rate_limited", False):
        return False
    return is_retryable_error(error, attempt)


# ---------------------------------------------------------------------------
# Client
# ---------------------------------------------------------------------------


class GitHubClient:
    """Read-only access to repository contents through the GitHub REST API.

    Args:
        token: Personal access token; unauthenticated requests get a much
            lower rate limit and cannot see private repositories.
        http_client: Shared HTTP client. One is created (and closed with this
            client) when omitted.
        timeout: Seconds per request for a created HTTP client.
        retry_policy: Retry configuration; rate-limit errors are never retried.
        sleep: Awaitable sleep used between retries.
    """

    def __init__(
        self,
        *,
        token: Optional[str] = None,
        http_client: Optional[HTTPClient] = None,
        timeout: float = DEFAULT_TIMEOUT,
        retry_policy: RetryPolicy = STANDARD,
        sleep: SleepFunc = asyncio.sleep,
    ) -> None:
        self.token = token
        self._owns_http_client = http_client is None
        self.http_client = http_client or HTTPClient(timeout=timeout)
        self.retry_policy = retry_policy.with_overrides(should_retry=_should_retry)
        self.rate_limit_remaining: Optional[int] = None
        self._sleep = sleep

    @classmethod
    def from_environment(cls, **kwargs: Any) -> "GitHubClient":
        """Create a client using the token in ``$GITHUB_TOKEN``, if set."""
        token = os.environ.get(GITHUB_TOKEN_ENV) or None
        logger.debug("GitHub token %s", "found" if token else "not set; unauthenticated")
        return cls(token=token, **kwargs)

    async def __aenter__(self) -> "GitHubClient":
        return self

    async def __aexit__(self, exc_type: Any, exc: Any, tb: Any) -> None:
        await self.close()

    async def close(self) -> None:
        if self._owns_http_client:
            await self.http_client.close()

    def _api_headers(self) -> Dict[str, str]:
        headers = {"Accept": GITHUB_ACCEPT}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        return headers

    async def _request(self, url: str, **kwargs: Any) -> httpx.Response:
        """Retried GET returning a 2xx response.

        Raises:
            GitHubError: GitHub answered with an error status, or could not
                be reached at all.
            RequestTimeoutError: GitHub did not answer in time.
        """

        async def fetch() -> httpx.Response:
            response = await self.http_client.get(url, **kwargs)
            self._record_rate_limit(response)
            if response.is_success:
                return response
            raise error_from_response(response, url)

        try:
            return await retry_with_backoff(
                fetch,
                self.retry_policy,
                on_retry=lambda exc, attempt, delay: logger.warning(
                    "Retrying GitHub request %s (attempt %d) in %.2fs: %s",
                    url,
                    attempt,
                    delay,
                    exc,
                ),
                sleep=self._sleep,
            )
        except httpx.TransportError as exc:
            raise GitHubError(CONNECTION_FAILED, url=url) from exc

    def _record_rate_limit(self, response: httpx.Response) -> None:
        remaining = response.headers.get("x-ratelimit-remaining")
        if remaining is None or not remaining.isdigit():
            return
        self.rate_limit_remaining = int(remaining)
        logger.debug(
            "GitHub rate limit: %s of %s requests left",
            remaining,
            response.headers.get("x-ratelimit-limit", "?"),
        )

    async def validate_repository(self, repository: GitHubRepository) -> bool:
        """Whether ``repository`` exists and is visible with the current token.

        Raises:
            GitHubError: Any failure other than not-found or access denied,
                rate limits included.
        """
        try:
            await self._request(repository.api_url, headers=self._api_headers())
        except GitHubError as exc:
            if exc.status_code == 404 or (exc.status_code == 403 and not exc.rate_limited):
                logger.info("Repository %s is not accessible: %s", repository, exc.message)
                return False
            raise
        return True

    async def search_dependency_files(
        self, repository: GitHubRepository
    ) -> List[DependencyFile]:
        """Look for each supported manifest at the repository root.

        Missing files are skipped; any other failure propagates.
        """
        found: List[DependencyFile] = []

        for file_name in GITHUB_MANIFEST_FILES:
            url = f"{repository.api_url}/contents/{file_name}"
            try:
                response = await self._request(url, headers=self._api_headers())
            except GitHubError as exc:
                if exc.status_code != 404:
                    raise
                logger.debug("%s has no %s", repository, file_name)
                continue

            try:
                entry = parse_json_object(response, url)
            except NetworkError:
                # A directory listing comes back as an array
                logger.debug("%s in %s is not a file", file_name, repository)
                continue

            download_url = entry.get("download_url")
            if entry.get("type") != "file" or not isinstance(download_url, str) or not download_url:
                continue

            size = entry.get("size")
            found.append(
                DependencyFile(
                    name=str(entry.get("name") or file_name),
                    path=str(entry.get("path") or file_name),
                    download_url=download_url,
                    size=size if isinstance(size, int) else 0,
                )
            )
            logger.info("Found %s in %s", file_name, repository)

        return found

    async def download_file_content(self, file: DependencyFile) -> str:
        """Fetch the raw text of ``file``.

        Raises:
            GitHubError: The download failed; rate-limit errors keep their
                own message.
        """
        try:
            response = await self._request(file.download_url)
        except GitHubError as exc:
            if exc.rate_limited or exc.status_code is None:
                raise
            raise GitHubError(
                DOWNLOAD_FAILED, url=file.download_url, status_code=exc.status_code
            ) from exc
        return response.text


async def analyze_repository(
    github: GitHubClient,
    analyzer: PackageAnalyzer,
    repository: GitHubRepository,
) -> RepositoryAnalysis:
    """Analyze every supported manifest at the root of ``repository``.

    Raises:
        GitHubError: The repository is missing or private (404), or GitHub
            failed a request.
        ValidationError: The repository holds no supported manifest.
        ParseError: A downloaded manifest cannot be parsed.
    """
    if not await github.validate_repository(repository):
        raise GitHubError(REPOSITORY_NOT_FOUND, url=repository.url, status_code=404)

    files = await github.search_dependency_files(repository)
    if not files:
        raise ValidationError(NO_MANIFESTS_FOUND, field="repository")

    analysis = RepositoryAnalysis(repository)
    for dependency_file in files:
        content = await github.download_file_content(dependency_file)
        result = await analyzer.analyze(content, dependency_file.name)
        analysis.manifests.append((dependency_file, result))

    return analysis
