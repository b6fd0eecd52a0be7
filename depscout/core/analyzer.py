"""Analysis orchestration: manifest text in, classified packages out.

:class:`PackageAnalyzer` validates the request, detects and parses the
manifest, looks up every dependency through a
:class:`~depscout.core.registry.RegistryService`, classifies each one with
:func:`~depscout.utils.version_utils.compare_versions` and aggregates the
counts.

Only request validation and parsing can fail the whole analysis. Registry
problems are reported per package, so a manifest whose every lookup fails
still produces a full result with every package in the ``errors`` bucket.
"""

from __future__ import annotations

from typing import Any, List, Optional

from depscout.core.parsers import detect_file_type
from depscout.core.registry import RegistryService
from depscout.utils.logger import get_logger
from depscout.utils.version_utils import compare_versions
from depscout.exceptions import ContentTooLargeError, ValidationError
from depscout.constants import ALLOWED_EXTENSIONS, MAX_CONTENT_SIZE, MAX_FILENAME_LENGTH
from depscout.models import (
    AnalysisResult,
    AnalysisSummary,
    PackageInfo,
    PackageManager,
    PackageQuery,
    PackageStatus,
    PackageVersionInfo,
)

logger = get_logger("analyzer")


# ---------------------------------------------------------------------------
# Request validation
# ---------------------------------------------------------------------------


def sanitize_file_name(file_name: str) -> str:
    """Drop path separators and surrounding whitespace from a file name.

    Example::

        >>> sanitize_file_name("../app/package.json")
        '..apppackage.json'
    """
    return file_name.replace("/", "").replace("\\", "").strip()


def validate_request(content: Any, file_name: Any = None) -> Optional[str]:
    """Check an analysis request before any parsing happens.

    Args:
        content: Manifest text.
        file_name: Optional file name supplied with the content.

    Returns:
        The sanitized file name, or ``None`` if none was given or nothing
        remains after sanitizing.

    Raises:
        ValidationError: Content is missing or empty, or the file name is
            invalid or has an unsupported extension.
        ContentTooLargeError: Content exceeds the maximum size.
    """
    if not isinstance(content, str) or not content:
        raise ValidationError("Valid content is required", field="content")

    if len(content) > MAX_CONTENT_SIZE:
        raise ContentTooLargeError(
            f"Content too large. Maximum size is {MAX_CONTENT_SIZE // (1024 * 1024)}MB",
            field="content",
        )

    if file_name is None:
        return None

    if not isinstance(file_name, str) or len(file_name) > MAX_FILENAME_LENGTH:
        raise ValidationError("Invalid filename", field="fileName")

    sanitized = sanitize_file_name(file_name)
    if not sanitized:
        return None

    if not sanitized.lower().endswith(tuple(ALLOWED_EXTENSIONS)):
        raise ValidationError(
            f"Invalid file type. Allowed: {', '.join(ALLOWED_EXTENSIONS)}",
            field="fileName",
        )

    return sanitized


# ---------------------------------------------------------------------------
# Orchestrator
# ---------------------------------------------------------------------------


def build_package_info(
    name: str,
    current_version: str,
    manager: PackageManager,
    info: PackageVersionInfo,
) -> PackageInfo:
    """Join a declared dependency with its registry lookup."""
    if info.error:
        return PackageInfo(
            name=name,
            current_version=current_version,
            latest_version=info.latest_version,
            status=PackageStatus.ERROR,
            package_manager=manager,
            error=info.error,
        )

    status = compare_versions(current_version, info.latest_version)
    return PackageInfo(
        name=name,
        current_version=current_version,
        latest_version=info.latest_version,
        status=status,
        package_manager=manager,
        description=info.description,
        homepage=info.homepage,
        error="Unable to compare versions" if status == PackageStatus.ERROR else None,
    )


class PackageAnalyzer:
    """Runs one analysis request end to end.

    Args:
        registry: Registry service used for lookups. Its lifecycle is
            managed by the caller.

    Example::

        >>> async with RegistryService() as registry:
        ...     result = await PackageAnalyzer(registry).analyze(
        ...         '{"dependencies": {"lodash": "4.17.20"}}', "package.json"
        ...     )
        >>> result.summary.to_dict()
        {'total': 1, 'upToDate': 0, 'outdated': 1, 'errors': 0}
    """

    def __init__(self, registry: RegistryService) -> None:
        self.registry = registry

    async def analyze(self, content: Any, file_name: Any = None) -> AnalysisResult:
        """Analyze a manifest.

        Raises:
            ValidationError: The request is malformed.
            ContentTooLargeError: The content is too large.
            ParseError: The manifest cannot be detected or parsed.
        """
        sanitized_name = validate_request(content, file_name)
        manifest = detect_file_type(content, sanitized_name)

        dependencies = manifest.all_dependencies()
        manager = manifest.package_manager or manifest.kind

        logger.info(
            "Analyzing %d %s dependencies%s",
            len(dependencies),
            manager.value,
            f" from {sanitized_name}" if sanitized_name else "",
        )

        if not dependencies:
            return AnalysisResult(packages=[], summary=AnalysisSummary(), manifest=manifest)

        queries = [PackageQuery(name=name, manager=manager) for name in dependencies]
        lookups = await self.registry.get_multiple_packages_info(queries)

        packages: List[PackageInfo] = [
            build_package_info(query.name, dependencies[query.name], manager, info)
            for query, info in zip(queries, lookups)
        ]
        summary = AnalysisSummary.from_packages(packages)

        logger.info(
            "Analysis complete: %d up-to-date, %d outdated, %d errors",
            summary.up_to_date,
            summary.outdated,
            summary.errors,
        )

        return AnalysisResult(packages=packages, summary=summary, manifest=manifest)
