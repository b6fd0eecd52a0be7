"""
Package data models for depscout.

This module defines registry lookup results, the final per-dependency
analysis record, the aggregated summary, and the options that control
which upgrades a regenerated manifest applies.
"""

from __future__ import annotations

from enum import Enum
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence

from depscout.constants import (
    DEFAULT_UPDATE_MAJOR,
    DEFAULT_UPDATE_MINOR,
    DEFAULT_UPDATE_PATCH,
    REGISTRY_PAGE_URLS,
)
from depscout.models.manifest import PackageManager, ParsedManifest


class PackageStatus(str, Enum):
    """Outcome of comparing a declared version against the registry."""

    UP_TO_DATE = "up-to-date"
    OUTDATED = "outdated"
    ERROR = "error"

    def __str__(self) -> str:
        return self.value


@dataclass
class PackageVersionInfo:
    """
    Registry lookup result for a single package.

    Either populated from a successful response or carrying ``error``;
    failed lookups report ``latest_version="unknown"``.
    """

    name: str
    latest_version: str
    description: Optional[str] = None
    homepage: Optional[str] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        """True when the lookup succeeded."""
        return self.error is None


@dataclass
class PackageInfo:
    """
    Final analysis record for one declared dependency.

    Attributes:
        name: Package name as declared in the manifest.
        current_version: Declared version spec (may carry ``^``/``~``/``>=``).
        latest_version: Latest version reported by the registry.
        status: Comparison outcome.
        package_manager: Registry family.
        description: Registry description, when available.
        homepage: Project homepage, when available.
        error: Lookup failure message; set if and only if ``status`` is
            :attr:`PackageStatus.ERROR`.
    """

    name: str
    current_version: str
    latest_version: str
    status: PackageStatus
    package_manager: PackageManager
    description: Optional[str] = None
    homepage: Optional[str] = None
    error: Optional[str] = None

    @property
    def registry_url(self) -> str:
        """Registry landing page for this package."""
        template = REGISTRY_PAGE_URLS.get(str(self.package_manager))
        if template is None:
            return self.homepage or "#"
        return template.format(package=self.name)

    @property
    def change_type(self) -> str:
        """Change classification between current and latest version."""
        from depscout.utils.version_utils import get_change_type

        return get_change_type(self.current_version, self.latest_version)

    def to_dict(self) -> Dict[str, Any]:
        """Render the camelCase wire representation, omitting empty fields."""
        data: Dict[str, Any] = {
            "name": self.name,
            "currentVersion": self.current_version,
            "latestVersion": self.latest_version,
            "status": str(self.status),
            "packageManager": str(self.package_manager),
        }
        if self.description is not None:
            data["description"] = self.description
        if self.homepage is not None:
            data["homepage"] = self.homepage
        if self.error is not None:
            data["error"] = self.error
        return data


@dataclass
class AnalysisSummary:
    """Status counts for one analysis; ``total`` always equals the sum."""

    total: int = 0
    up_to_date: int = 0
    outdated: int = 0
    errors: int = 0

    @classmethod
    def from_packages(cls, packages: Sequence[PackageInfo]) -> "AnalysisSummary":
        up_to_date = sum(1 for p in packages if p.status == PackageStatus.UP_TO_DATE)
        outdated = sum(1 for p in packages if p.status == PackageStatus.OUTDATED)
        errors = sum(1 for p in packages if p.status == PackageStatus.ERROR)
        return cls(
            total=up_to_date + outdated + errors,
            up_to_date=up_to_date,
            outdated=outdated,
            errors=errors,
        )

    def to_dict(self) -> Dict[str, int]:
        return {
            "total": self.total,
            "upToDate": self.up_to_date,
            "outdated": self.outdated,
            "errors": self.errors,
        }


@dataclass
class AnalysisResult:
    """Packages and summary produced by one analysis request."""

    packages: List[PackageInfo] = field(default_factory=list)
    summary: AnalysisSummary = field(default_factory=AnalysisSummary)
    manifest: Optional[ParsedManifest] = field(default=None, repr=False)

    @property
    def outdated_packages(self) -> List[PackageInfo]:
        return [p for p in self.packages if p.status == PackageStatus.OUTDATED]

    def to_dict(self) -> Dict[str, Any]:
        """Render the response contract ``{packages, summary}``."""
        return {
            "packages": [p.to_dict() for p in self.packages],
            "summary": self.summary.to_dict(),
        }


@dataclass(frozen=True)
class UpdateOptions:
    """Which change types a regenerated manifest is allowed to apply."""

    update_major: bool = DEFAULT_UPDATE_MAJOR
    update_minor: bool = DEFAULT_UPDATE_MINOR
    update_patch: bool = DEFAULT_UPDATE_PATCH

    def allows(self, change_type: str) -> bool:
        """Return whether ``change_type`` is enabled by these options."""
        return {
            "major": self.update_major,
            "minor": self.update_minor,
            "patch": self.update_patch,
        }.get(change_type, False)
