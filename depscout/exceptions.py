"""
Errors raised by depscout.

Everything derives from :class:`DepScoutError`, which carries a message plus a
``details`` mapping of whatever context was known when the error was raised
(the manifest line, the registry URL, the config option and so on). ``str()``
renders both, which is what the CLI prints.

``http_status`` is the response code a server wrapping
:class:`~depscout.core.analyzer.PackageAnalyzer` should answer with: 400 for bad input, 413 for oversized manifests, 502 for
registry failures, 504 for registry timeouts and 500 for the rest.
"""

from __future__ import annotations

from typing import Any, Dict, Mapping, MutableMapping, Optional

_RESPONSE_PREVIEW_LENGTH = 200


def _details(**values: Any) -> Dict[str, Any]:
    """Keep the supplied values, in keyword order."""
    return {key: value for key, value in values.items() if value is not None}


def _truncate(text: str, max_length: int = _RESPONSE_PREVIEW_LENGTH) -> str:
    return text if len(text) <= max_length else f"{text[:max_length]}..."


class DepScoutError(Exception):
    """Base class of every depscout error.

    Args:
        message: What went wrong, for humans.
        details: Structured context; copied, so callers may reuse the mapping.
    """

    __slots__ = ("message", "details")

    http_status: int = 500

    def __init__(self, message: str, details: Optional[Mapping[str, Any]] = None) -> None:
        super().__init__(message)
        self.message: str = message
        self.details: MutableMapping[str, Any] = dict(details or {})

    def __str__(self) -> str:
        if self.details:
            context = ", ".join(f"{key}={value}" for key, value in self.details.items())
            return f"{self.message} ({context})"
        return self.message

    def __repr__(self) -> str:
        return f"{type(self).__name__}(message={self.message!r}, details={dict(self.details)!r})"


# ---------------------------------------------------------------------------
# Request input
# ---------------------------------------------------------------------------


class ValidationError(DepScoutError):
    """An analysis request is missing a field or carries an unusable one."""

    __slots__ = ("field",)

    http_status = 400

    def __init__(self, message: str, *, field: Optional[str] = None) -> None:
        super().__init__(message, _details(field=field))
        self.field = field


class ContentTooLargeError(ValidationError):
    """Manifest content is larger than ``MAX_CONTENT_SIZE``."""

    __slots__ = ()

    http_status = 413


# ---------------------------------------------------------------------------
# Manifests
# ---------------------------------------------------------------------------


class ParseError(DepScoutError):
    """A manifest could not be read as the kind it claims to be.

    Args:
        message: Error description.
        kind: ``npm``, ``pip`` or ``pub``.
        line_number: 1-based line of the failure, when known.
        line_content: That line's text.
    """

    __slots__ = ("kind", "line_number", "line_content")

    http_status = 400

    def __init__(
        self,
        message: str,
        *,
        kind: Optional[str] = None,
        line_number: Optional[int] = None,
        line_content: Optional[str] = None,
    ) -> None:
        super().__init__(message, _details(kind=kind, line=line_number, content=line_content))
        self.kind = kind
        self.line_number = line_number
        self.line_content = line_content


class UnsupportedFileTypeError(ParseError):
    """The file name and content match no supported manifest kind."""

    __slots__ = ()


# ---------------------------------------------------------------------------
# Registries
# ---------------------------------------------------------------------------


class NetworkError(DepScoutError):
    """A registry request failed in transport or returned a non-2xx status.

    Only the first 200 characters of ``response_body`` go into ``details``;
    the attribute keeps the whole body.
    """

    __slots__ = ("url", "status_code", "response_body")

    http_status = 502

    def __init__(
        self,
        message: str,
        *,
        url: Optional[str] = None,
        status_code: Optional[int] = None,
        response_body: Optional[str] = None,
    ) -> None:
        preview = _truncate(response_body) if response_body is not None else None
        super().__init__(message, _details(url=url, status_code=status_code, response=preview))
        self.url = url
        self.status_code = status_code
        self.response_body = response_body


class RequestTimeoutError(NetworkError):
    """A registry request ran past its timeout. These are never retried."""

    __slots__ = ()

    http_status = 504

    def __init__(self, message: str = "Request timeout", **kwargs: Any) -> None:
        super().__init__(message, **kwargs)


class RegistryError(NetworkError):
    """A registry answered, but not with usable data for ``package_name``."""

    __slots__ = ("package_name", "manager")

    def __init__(
        self,
        message: str,
        *,
        package_name: Optional[str] = None,
        manager: Optional[str] = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(message, **kwargs)
        self.details.update(_details(package=package_name, manager=manager))
        self.package_name = package_name
        self.manager = manager


class GitHubError(NetworkError):
    """The GitHub API refused or failed a repository request.

    ``message`` is already phrased for the user (see
    :func:`depscout.core.github.describe_github_failure`).

    Args:
        message: Error description.
        rate_limited: The failure was GitHub's API rate limit.
        documentation_url: Link GitHub attached to the error, if any.
        **kwargs: Additional arguments forwarded to ``NetworkError``.
    """

    __slots__ = ("rate_limited", "documentation_url")

    def __init__(
        self,
        message: str,
        *,
        rate_limited: bool = False,
        documentation_url: Optional[str] = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(message, **kwargs)
        self.details.update(_details(documentation=documentation_url))
        self.rate_limited = rate_limited
        self.documentation_url = documentation_url


# ---------------------------------------------------------------------------
# Local environment
# ---------------------------------------------------------------------------


class ConfigError(DepScoutError):
    """``depscout.toml`` or ``[tool.depscout]`` is unreadable or invalid.

    Args:
        message: Error description.
        config_path: File the settings came from.
        option: Setting that was rejected.
    """

    __slots__ = ("config_path", "option")

    def __init__(
        self,
        message: str,
        *,
        config_path: Optional[str] = None,
        option: Optional[str] = None,
    ) -> None:
        super().__init__(message, _details(path=config_path, option=option))
        self.config_path = config_path
        self.option = option


class FileOperationError(DepScoutError):
    """Reading, writing or backing up a manifest failed."""

    __slots__ = ("file_path", "operation", "original_error")

    def __init__(
        self,
        message: str,
        *,
        file_path: Optional[str] = None,
        operation: Optional[str] = None,
        original_error: Optional[BaseException] = None,
    ) -> None:
        cause = str(original_error) if original_error is not None else None
        super().__init__(
            message, _details(path=file_path, operation=operation, original_error=cause)
        )
        self.file_path = file_path
        self.operation = operation
        self.original_error = original_error
