"""
Manifest data model for depscout.

This module defines the parsed representation of a dependency manifest
(``package.json``, ``requirements.txt`` or ``pubspec.yaml``) and the
per-dependency query unit sent to the registries.
"""

from __future__ import annotations

from enum import Enum
from dataclasses import dataclass
from typing import Dict, Optional


class PackageManager(str, Enum):
    """Supported package managers.

    The value doubles as the manifest ``kind``: each manager owns exactly
    one manifest format.
    """

    NPM = "npm"
    PIP = "pip"
    PUB = "pub"

    @property
    def file_name(self) -> str:
        """Canonical manifest file name for this manager."""
        return _FILE_NAMES[self]

    def __str__(self) -> str:
        return self.value


_FILE_NAMES: Dict[PackageManager, str] = {
    PackageManager.NPM: "package.json",
    PackageManager.PIP: "requirements.txt",
    PackageManager.PUB: "pubspec.yaml",
}


@dataclass(frozen=True)
class ParsedManifest:
    """
    Dependencies extracted from a manifest.

    Attributes:
        kind: Manifest format that produced this result.
        dependencies: Mapping of package name to declared version spec.
        dev_dependencies: Development-only dependencies, or ``None`` when
            the manifest declares none.
        package_manager: Registry family the dependencies belong to.
    """

    kind: PackageManager
    dependencies: Dict[str, str]
    dev_dependencies: Optional[Dict[str, str]] = None
    package_manager: Optional[PackageManager] = None

    def __post_init__(self) -> None:
        if self.package_manager is None:
            object.__setattr__(self, "package_manager", self.kind)

    def all_dependencies(self) -> Dict[str, str]:
        """Shortcut for :func:`get_all_dependencies`."""
        return get_all_dependencies(self)


def get_all_dependencies(parsed: ParsedManifest) -> Dict[str, str]:
    """Merge regular and development dependencies into one mapping.

    Development entries win when a name appears in both maps.

    Example:
        >>> manifest = ParsedManifest(
        ...     kind=PackageManager.NPM,
        ...     dependencies={"react": "^18.0.0"},
        ...     dev_dependencies={"vitest": "^0.34.0"},
        ... )
        >>> get_all_dependencies(manifest)
        {'react': '^18.0.0', 'vitest': '^0.34.0'}
    """
    if parsed.dev_dependencies:
        return {**parsed.dependencies, **parsed.dev_dependencies}
    return dict(parsed.dependencies)


@dataclass(frozen=True)
class PackageQuery:
    """A single registry lookup request."""

    name: str
    manager: PackageManager
