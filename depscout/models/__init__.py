"""
Unified data model exports for depscout.

This module re-exports all core data models to provide a stable and
convenient public API. Users can import models directly from
``depscout.models`` instead of individual submodules.

Example:
    >>> from depscout.models import PackageInfo, PackageStatus, ParsedManifest
"""

from __future__ import annotations

from depscout.models.manifest import (
    PackageManager,
    PackageQuery,
    ParsedManifest,
    get_all_dependencies,
)
from depscout.models.package import (
    AnalysisResult,
    AnalysisSummary,
    PackageInfo,
    PackageStatus,
    PackageVersionInfo,
    UpdateOptions,
)

__all__ = [
    "PackageManager",
    "PackageQuery",
    "ParsedManifest",
    "get_all_dependencies",
    "AnalysisResult",
    "AnalysisSummary",
    "PackageInfo",
    "PackageStatus",
    "PackageVersionInfo",
    "UpdateOptions",
]
