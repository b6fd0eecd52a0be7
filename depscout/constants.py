"""
Centralized constants for depscout.

This module defines immutable configuration values used across depscout,
including registry endpoints, HTTP and retry defaults, cache sizing,
input validation limits, and logging formats. All values are intended to
be treated as read-only.
"""

from typing import Final, FrozenSet, Mapping, Sequence

# ---------------------------------------------------------------------------
# Project metadata
# ---------------------------------------------------------------------------

#: HTTP User-Agent template used for outbound requests.
USER_AGENT_TEMPLATE: Final[str] = "depscout/{version}"

# ---------------------------------------------------------------------------
# Registry endpoints
# ---------------------------------------------------------------------------

#: npm registry package document.
NPM_REGISTRY_API: Final[str] = "https://registry.npmjs.org/{package}"

#: PyPI JSON API.
PYPI_JSON_API: Final[str] = "https://pypi.org/pypi/{package}/json"

#: pub.dev package API.
PUB_DEV_API: Final[str] = "https://pub.dev/api/packages/{package}"

#: Human-facing registry pages, keyed by package manager.
REGISTRY_PAGE_URLS: Final[Mapping[str, str]] = {
    "npm": "https://www.npmjs.com/package/{package}",
    "pip": "https://pypi.org/project/{package}/",
    "pub": "https://pub.dev/packages/{package}",
}

# ---------------------------------------------------------------------------
# HTTP configuration
# ---------------------------------------------------------------------------

#: Default per-request timeout in seconds.
DEFAULT_TIMEOUT: Final[float] = 10.0

#: Maximum number of registry calls in flight for one analysis batch.
DEFAULT_MAX_CONCURRENCY: Final[int] = 10

# ---------------------------------------------------------------------------
# GitHub repositories
# ---------------------------------------------------------------------------

#: GitHub REST API root.
GITHUB_API_BASE: Final[str] = "https://api.github.com"

#: Media type requested from the GitHub REST API.
GITHUB_ACCEPT: Final[str] = "application/vnd.github.v3+json"

#: Environment variable holding an optional GitHub token.
GITHUB_TOKEN_ENV: Final[str] = "GITHUB_TOKEN"

#: Manifests looked up at the root of a repository, in search order.
GITHUB_MANIFEST_FILES: Final[Sequence[str]] = (
    "package.json",
    "requirements.txt",
    "pubspec.yaml",
)

# ---------------------------------------------------------------------------
# Retry configuration (delays in seconds)
# ---------------------------------------------------------------------------

DEFAULT_MAX_ATTEMPTS: Final[int] = 3
DEFAULT_INITIAL_DELAY: Final[float] = 1.0
DEFAULT_MAX_DELAY: Final[float] = 10.0
DEFAULT_BACKOFF_FACTOR: Final[float] = 2.0

#: Upper bound of the random jitter, as a fraction of the computed delay.
JITTER_RATIO: Final[float] = 0.25

#: HTTP status codes worth retrying.
RETRYABLE_STATUS_CODES: Final[FrozenSet[int]] = frozenset(
    {408, 429, 500, 502, 503, 504}
)

# ---------------------------------------------------------------------------
# Cache configuration (durations in seconds)
# ---------------------------------------------------------------------------

DEFAULT_CACHE_MAX_SIZE: Final[int] = 500
DEFAULT_CACHE_TTL: Final[float] = 5 * 60
DEFAULT_CACHE_ERROR_TTL: Final[float] = 2 * 60
DEFAULT_CACHE_CLEANUP_INTERVAL: Final[float] = 60

# ---------------------------------------------------------------------------
# Manifest handling
# ---------------------------------------------------------------------------

#: Placeholder used when a registry could not report a version.
UNKNOWN_VERSION: Final[str] = "unknown"

#: Version assigned to unpinned pip requirements.
LATEST_VERSION: Final[str] = "latest"

#: Version assigned to pub dependencies declared without a constraint.
ANY_VERSION: Final[str] = "any"

#: Pip operators, in matching priority.
PIP_VERSION_OPERATORS: Final[Sequence[str]] = (
    "==",
    ">=",
    "<=",
    "~=",
    "!=",
    ">",
    "<",
)

#: Requirement prefixes that point at VCS or URL sources.
PIP_URL_PREFIXES: Final[Sequence[str]] = (
    "git+",
    "hg+",
    "svn+",
    "bzr+",
    "http://",
    "https://",
    "file://",
)

# ---------------------------------------------------------------------------
# Input validation
# ---------------------------------------------------------------------------

#: Maximum accepted manifest size, in characters.
MAX_CONTENT_SIZE: Final[int] = 5 * 1024 * 1024

#: Maximum accepted file name length.
MAX_FILENAME_LENGTH: Final[int] = 255

#: File name extensions accepted by the analyzer.
ALLOWED_EXTENSIONS: Final[Sequence[str]] = (".json", ".txt", ".yaml", ".yml")

#: Maximum allowed file size (in bytes) when reading manifests from disk.
MAX_FILE_SIZE: Final[int] = 10 * 1024 * 1024  # 10 MB

# ---------------------------------------------------------------------------
# Update defaults
# ---------------------------------------------------------------------------

DEFAULT_UPDATE_MAJOR: Final[bool] = False
DEFAULT_UPDATE_MINOR: Final[bool] = True
DEFAULT_UPDATE_PATCH: Final[bool] = True

# ---------------------------------------------------------------------------
# Logging configuration
# ---------------------------------------------------------------------------

#: Timestamp format for verbose logging.
LOG_DATE_FORMAT: Final[str] = "%Y-%m-%d %H:%M:%S"

#: Default log format (non-verbose).
LOG_DEFAULT_FORMAT: Final[str] = "%(levelname)s: %(message)s"

#: Verbose log format including timestamp and logger name.
LOG_VERBOSE_FORMAT: Final[str] = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
