"""
Core functionality exports for depscout.

This module provides convenient access to the core subsystems of depscout:
manifest parsing, update generation, registry lookups, analysis and GitHub
repositories as a manifest source.

    from depscout.core import PackageAnalyzer, RegistryService
"""

from __future__ import annotations

from depscout.core.cache import CacheEntry, CacheStats, PackageCache
from depscout.core.parsers import (
    ManifestParser,
    detect_file_type,
    get_extension_from_kind,
    get_mime_from_kind,
    get_parser_for,
)
from depscout.core.generators import UpdateStrategy, generate_updated_manifest
from depscout.core.registry import (
    BaseRegistryClient,
    NpmRegistryClient,
    PubDevRegistryClient,
    PyPIRegistryClient,
    RegistryService,
)
from depscout.core.analyzer import PackageAnalyzer, sanitize_file_name, validate_request
from depscout.core.github import (
    GitHubClient,
    GitHubRepository,
    analyze_repository,
    parse_github_repository,
)

__all__ = [
    "CacheEntry",
    "CacheStats",
    "PackageCache",
    "ManifestParser",
    "detect_file_type",
    "get_extension_from_kind",
    "get_mime_from_kind",
    "get_parser_for",
    "UpdateStrategy",
    "generate_updated_manifest",
    "BaseRegistryClient",
    "NpmRegistryClient",
    "PubDevRegistryClient",
    "PyPIRegistryClient",
    "RegistryService",
    "PackageAnalyzer",
    "sanitize_file_name",
    "validate_request",
    "GitHubClient",
    "GitHubRepository",
    "analyze_repository",
    "parse_github_repository",
]
