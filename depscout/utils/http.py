"""
Registry transport for depscout.

:class:`HTTPClient` wraps one :class:`httpx.AsyncClient` (HTTP/2 when talking
to real registries) and performs exactly one round-trip per call. Retrying
is :mod:`depscout.utils.retry`'s job and bounding concurrency is
:mod:`depscout.core.registry`'s, so neither happens here.
"""

from __future__ import annotations

import asyncio

import httpx
from typing import Any, Dict, Optional, cast

from depscout.utils.logger import get_logger
from depscout.__version__ import __version__
from depscout.exceptions import NetworkError, RequestTimeoutError
from depscout.constants import DEFAULT_TIMEOUT, USER_AGENT_TEMPLATE

logger = get_logger("http")

_QUOTES = "\"'"


class HTTPClient:
    """Single-shot JSON GETs against package registries.

    The underlying connection pool is opened on first use and released by
    :meth:`close` or by leaving an ``async with`` block.

    Args:
        timeout: Seconds allowed per request; a request running longer is
            abandoned with :class:`RequestTimeoutError`.
        verify_ssl: Verify registry certificates.
        user_agent: Overrides ``depscout/<version>``.
        transport: Replacement httpx transport, such as
            ``httpx.MockTransport``. HTTP/2 is only negotiated without one.

    Example:
        >>> async with HTTPClient(timeout=5) as client:
        ...     info = await client.get_json("https://registry.npmjs.org/react")
    """

    def __init__(
        self,
        *,
        timeout: float = DEFAULT_TIMEOUT,
        verify_ssl: bool = True,
        user_agent: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.timeout = timeout
        self.verify_ssl = verify_ssl
        self.transport = transport
        self.user_agent = user_agent or USER_AGENT_TEMPLATE.format(version=__version__)

        self._client: Optional[httpx.AsyncClient] = None

    async def __aenter__(self) -> "HTTPClient":
        self._session()
        return self

    async def __aexit__(self, exc_type: Any, exc: Any, tb: Any) -> None:
        await self.close()

    def _session(self) -> httpx.AsyncClient:
        if self._client is None:
            transport_options: Dict[str, Any] = (
                {"transport": self.transport} if self.transport is not None else {"http2": True}
            )
            self._client = httpx.AsyncClient(
                headers={"User-Agent": self.user_agent, "Accept": "application/json"},
                timeout=httpx.Timeout(self.timeout),
                verify=self.verify_ssl,
                follow_redirects=True,
                **transport_options,
            )
        return self._client

    async def close(self) -> None:
        """Release pooled connections. Safe to call more than once."""
        client, self._client = self._client, None
        if client is not None:
            await client.aclose()

    async def get(self, url: str, **kwargs: Any) -> httpx.Response:
        """Send one GET and return the response whatever its status.

        Surrounding whitespace and quotes are stripped from ``url``.

        Raises:
            RequestTimeoutError: The whole request, body included, took longer
                than ``timeout``.
            httpx.TransportError: The connection failed.
        """
        target = url.strip().strip(_QUOTES)
        try:
            response = await asyncio.wait_for(
                self._session().get(target, **kwargs), timeout=self.timeout
            )
        except (httpx.TimeoutException, asyncio.TimeoutError) as exc:
            logger.warning("No response from %s within %ss", target, self.timeout)
            raise RequestTimeoutError(url=target) from exc

        logger.debug("GET %s -> %d", target, response.status_code)
        return response

    async def get_json(self, url: str, **kwargs: Any) -> Dict[str, Any]:
        """GET ``url`` and return its body as a JSON object.

        Raises:
            NetworkError: Non-2xx status or a body that is not a JSON object.
        """
        response = await self.get(url, **kwargs)
        if response.is_success:
            return parse_json_object(response, url)

        raise NetworkError(
            f"HTTP error! status: {response.status_code}",
            url=url,
            status_code=response.status_code,
        )


def parse_json_object(response: httpx.Response, url: str) -> Dict[str, Any]:
    """Decode ``response`` as a JSON object or raise :class:`NetworkError`."""
    try:
        payload = response.json()
    except ValueError as exc:
        raise NetworkError(
            f"Invalid JSON response from {url}", url=url, response_body=response.text
        ) from exc

    if isinstance(payload, dict):
        return cast(Dict[str, Any], payload)

    raise NetworkError(
        f"Expected JSON object from {url}", url=url, response_body=response.text
    )
