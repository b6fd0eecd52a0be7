"""Registry clients for npm, PyPI and pub.dev.

Each client answers one question, the latest published version of a
package, and adapts its registry's JSON schema to
:class:`~depscout.models.PackageVersionInfo`. Lookups go through the
shared :class:`~depscout.core.cache.PackageCache` and are retried with
backoff on transient failures. Failures never propagate: they come back
as a result carrying ``error`` and are cached with the shorter error TTL.

:class:`RegistryService` dispatches by package manager and runs batches
of lookups under a concurrency bound while preserving input order.

Typical usage::

    async with RegistryService(cache=PackageCache()) as registry:
        results = await registry.get_multiple_packages_info(
            [PackageQuery("lodash", PackageManager.NPM),
             PackageQuery("django", PackageManager.PIP)]
        )
"""

from __future__ import annotations

import asyncio
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional, Sequence, Union

import httpx

from depscout.core.cache import PackageCache
from depscout.utils.logger import get_logger
from depscout.utils.http import HTTPClient, parse_json_object
from depscout.utils.retry import STANDARD, RetryPolicy, SleepFunc, retry_with_backoff
from depscout.exceptions import DepScoutError, NetworkError, RegistryError
from depscout.models import PackageManager, PackageQuery, PackageVersionInfo
from depscout.constants import (
    DEFAULT_MAX_CONCURRENCY,
    DEFAULT_TIMEOUT,
    NPM_REGISTRY_API,
    PUB_DEV_API,
    PYPI_JSON_API,
    UNKNOWN_VERSION,
)

logger = get_logger("registry")

PACKAGE_NOT_FOUND = "Package not found"
UNSUPPORTED_MANAGER = "Unsupported package manager"


def _error_message(error: BaseException) -> str:
    if isinstance(error, DepScoutError):
        return error.message
    return str(error) or error.__class__.__name__


def _text(value: Any) -> Optional[str]:
    """Return ``value`` if it is a non-empty string, else ``None``."""
    return value if isinstance(value, str) and value else None


def _mapping(value: Any) -> Dict[str, Any]:
    return value if isinstance(value, dict) else {}


# ---------------------------------------------------------------------------
# Per-registry clients
# ---------------------------------------------------------------------------


class BaseRegistryClient(ABC):
    """Cached, retried lookup of the latest version on one registry.

    Args:
        http_client: Shared HTTP client.
        cache: Shared lookup cache.
        retry_policy: Retry configuration for each lookup.
        sleep: Awaitable sleep used between retries.
    """

    manager: PackageManager
    url_template: str

    def __init__(
        self,
        http_client: HTTPClient,
        cache: PackageCache,
        retry_policy: RetryPolicy = STANDARD,
        sleep: SleepFunc = asyncio.sleep,
    ) -> None:
        self.http_client = http_client
        self.cache = cache
        self.retry_policy = retry_policy
        self._sleep = sleep

    def package_url(self, name: str) -> str:
        return self.url_template.format(package=name)

    async def get_package_info(self, name: str) -> PackageVersionInfo:
        """Return the latest version information for ``name``.

        Never raises for registry or network failures; the returned
        result carries ``error`` instead.
        """
        cached = self.cache.get(name, self.manager.value)
        if cached is not None:
            logger.debug("Cache hit for %s:%s", self.manager.value, name)
            return cached

        url = self.package_url(name)

        try:
            response = await retry_with_backoff(
                lambda: self._fetch(name, url),
                self.retry_policy,
                on_retry=lambda exc, attempt, delay: logger.warning(
                    "Retrying %s lookup for %s (attempt %d) in %.2fs: %s",
                    self.manager.value,
                    name,
                    attempt,
                    delay,
                    _error_message(exc),
                ),
                sleep=self._sleep,
            )

            if response.status_code == 404:
                result = PackageVersionInfo(
                    name=name, latest_version=UNKNOWN_VERSION, error=PACKAGE_NOT_FOUND
                )
            else:
                result = self.extract_info(name, parse_json_object(response, url))

        except Exception as exc:
            message = _error_message(exc)
            logger.warning(
                "Failed to fetch %s package %s: %s", self.manager.value, name, message
            )
            result = PackageVersionInfo(
                name=name, latest_version=UNKNOWN_VERSION, error=message
            )

        self.cache.set(name, self.manager.value, result)
        return result

    async def _fetch(self, name: str, url: str) -> httpx.Response:
        """One attempt; raises for statuses the retry predicate should see."""
        response = await self.http_client.get(url)

        if response.is_success or response.status_code == 404:
            return response

        raise RegistryError(
            f"HTTP error! status: {response.status_code}",
            url=url,
            status_code=response.status_code,
            package_name=name,
            manager=self.manager.value,
        )

    @abstractmethod
    def extract_info(self, name: str, data: Dict[str, Any]) -> PackageVersionInfo:
        """Translate a registry document into :class:`PackageVersionInfo`.

        Raises:
            NetworkError: The document lacks a latest version.
        """

    def _missing_version(self, name: str) -> NetworkError:
        return NetworkError(
            f"Invalid registry response: no latest version for {name}",
            url=self.package_url(name),
        )


class NpmRegistryClient(BaseRegistryClient):
    """npm registry (``registry.npmjs.org``)."""

    manager = PackageManager.NPM
    url_template = NPM_REGISTRY_API

    def extract_info(self, name: str, data: Dict[str, Any]) -> PackageVersionInfo:
        latest = _text(_mapping(data.get("dist-tags")).get("latest"))
        if latest is None:
            raise self._missing_version(name)

        repository = data.get("repository")
        repository_url = (
            _text(repository)
            if isinstance(repository, str)
            else _text(_mapping(repository).get("url"))
        )

        return PackageVersionInfo(
            name=name,
            latest_version=latest,
            description=_text(data.get("description")),
            homepage=_text(data.get("homepage")) or repository_url,
        )


class PyPIRegistryClient(BaseRegistryClient):
    """PyPI JSON API (``pypi.org/pypi/<name>/json``)."""

    manager = PackageManager.PIP
    url_template = PYPI_JSON_API

    def extract_info(self, name: str, data: Dict[str, Any]) -> PackageVersionInfo:
        info = _mapping(data.get("info"))
        latest = _text(info.get("version"))
        if latest is None:
            raise self._missing_version(name)

        project_urls = _mapping(info.get("project_urls"))

        return PackageVersionInfo(
            name=name,
            latest_version=latest,
            description=_text(info.get("summary")),
            homepage=_text(info.get("home_page")) or _text(project_urls.get("Homepage")),
        )


class PubDevRegistryClient(BaseRegistryClient):
    """pub.dev API (``pub.dev/api/packages/<name>``)."""

    manager = PackageManager.PUB
    url_template = PUB_DEV_API

    def extract_info(self, name: str, data: Dict[str, Any]) -> PackageVersionInfo:
        latest_entry = _mapping(data.get("latest"))
        latest = _text(latest_entry.get("version"))
        if latest is None:
            raise self._missing_version(name)

        pubspec = _mapping(latest_entry.get("pubspec"))

        return PackageVersionInfo(
            name=name,
            latest_version=latest,
            description=_text(pubspec.get("description")),
            homepage=_text(pubspec.get("homepage")) or _text(pubspec.get("repository")),
        )


# ---------------------------------------------------------------------------
# Dispatch and batching
# ---------------------------------------------------------------------------


class RegistryService:
    """Dispatches lookups to the right registry and bounds batch concurrency.

    Acts as an async context manager owning the HTTP client (unless one is
    injected) and the cache's background sweep.

    Args:
        cache: Shared lookup cache. A fresh one is created if omitted.
        http_client: HTTP client to use; the service closes it only if it
            created it.
        retry_policy: Retry configuration for each lookup.
        max_concurrency: Maximum lookups in flight within one batch.
        timeout: Per-request timeout for an internally created client.
        sleep: Awaitable sleep used between retries.
        sweep_cache: Start the cache's periodic cleanup on enter.

    Example::

        >>> async with RegistryService() as registry:
        ...     info = await registry.get_package_info("requests", "pip")
        ...     info.latest_version
        '2.32.3'
    """

    CLIENT_CLASSES = (NpmRegistryClient, PyPIRegistryClient, PubDevRegistryClient)

    def __init__(
        self,
        *,
        cache: Optional[PackageCache] = None,
        http_client: Optional[HTTPClient] = None,
        retry_policy: RetryPolicy = STANDARD,
        max_concurrency: int = DEFAULT_MAX_CONCURRENCY,
        timeout: float = DEFAULT_TIMEOUT,
        sleep: SleepFunc = asyncio.sleep,
        sweep_cache: bool = True,
    ) -> None:
        if max_concurrency < 1:
            raise ValueError("max_concurrency must be at least 1")

        self._owns_http_client = http_client is None
        self.http_client = http_client if http_client is not None else HTTPClient(timeout=timeout)
        self.cache = cache if cache is not None else PackageCache()
        self.max_concurrency = max_concurrency
        self.sweep_cache = sweep_cache

        self.clients: Dict[PackageManager, BaseRegistryClient] = {
            client_cls.manager: client_cls(
                self.http_client, self.cache, retry_policy=retry_policy, sleep=sleep
            )
            for client_cls in self.CLIENT_CLASSES
        }

    async def __aenter__(self) -> "RegistryService":
        if self.sweep_cache:
            self.cache.start_cleanup()
        return self

    async def __aexit__(self, exc_type: Any, exc: Any, tb: Any) -> None:
        await self.close()

    async def close(self) -> None:
        """Stop the cache sweep and release the HTTP client if owned."""
        await self.cache.stop_cleanup()
        if self._owns_http_client:
            await self.http_client.close()

    async def get_package_info(
        self, name: str, manager: Union[PackageManager, str]
    ) -> PackageVersionInfo:
        """Look up ``name`` on the registry for ``manager``."""
        try:
            client = self.clients[PackageManager(manager)]
        except (ValueError, KeyError):
            logger.warning("Unsupported package manager %r for %s", manager, name)
            return PackageVersionInfo(
                name=name, latest_version=UNKNOWN_VERSION, error=UNSUPPORTED_MANAGER
            )

        return await client.get_package_info(name)

    async def get_multiple_packages_info(
        self, queries: Sequence[PackageQuery]
    ) -> List[PackageVersionInfo]:
        """Run many lookups with at most ``max_concurrency`` in flight.

        Returns:
            One result per query, in query order.
        """
        semaphore = asyncio.Semaphore(self.max_concurrency)

        async def _bounded(query: PackageQuery) -> PackageVersionInfo:
            async with semaphore:
                return await self.get_package_info(query.name, query.manager)

        logger.debug(
            "Fetching %d package(s) with concurrency %d", len(queries), self.max_concurrency
        )
        results = await asyncio.gather(*(_bounded(query) for query in queries))
        return list(results)
