"""
Version comparison utilities for depscout.

Manifests declare versions in three ecosystems with different range
syntaxes (``^1.2.3``, ``~=1.2``, ``>=1.0``). This module reduces each
declaration to a plain ``MAJOR.MINOR.PATCH`` triple by tolerant
coercion and then compares triples with :class:`packaging.version.Version`.

Two comparison helpers exist on purpose:

- :func:`compare_versions` decides the top-level analysis status
  (up-to-date / outdated / error).
- :func:`get_change_type` classifies a bump as major / minor / patch and
  drives which upgrades a regenerated manifest applies.
"""

from __future__ import annotations

import re
from typing import Optional, Tuple

from packaging.version import Version

from depscout.constants import LATEST_VERSION, UNKNOWN_VERSION
from depscout.models.package import PackageStatus, UpdateOptions

_RANGE_CHARS = re.compile(r"[\^~>=<]")
_V_PREFIX = re.compile(r"v", re.IGNORECASE)
_PREFIX = re.compile(r"^([\^~>=<]+)")

# First run of up to three dot-separated numeric components; each component
# is capped at 16 digits like node-semver's coerce.
_COERCE = re.compile(r"(?:^|[^\d])(\d{1,16})(?:\.(\d{1,16}))?(?:\.(\d{1,16}))?(?:$|[^\d])")

_WILDCARDS = frozenset({"any", "*", "x"})

#: Change type labels returned by :func:`get_change_type`.
CHANGE_MAJOR = "major"
CHANGE_MINOR = "minor"
CHANGE_PATCH = "patch"
CHANGE_NONE = "none"
CHANGE_ERROR = "error"


def clean_version(version: str) -> str:
    """Strip range operators and ``v`` markers from a version string.

    Examples:
        >>> clean_version("^1.2.3")
        '1.2.3'
        >>> clean_version(">=4.0.0")
        '4.0.0'
        >>> clean_version("v3.0.0")
        '3.0.0'
    """
    return _V_PREFIX.sub("", _RANGE_CHARS.sub("", version)).strip()


def get_version_prefix(version: str) -> str:
    """Return the leading range operator of ``version``, or ``""``.

    Examples:
        >>> get_version_prefix("^1.2.3")
        '^'
        >>> get_version_prefix(">=2.0")
        '>='
        >>> get_version_prefix("1.0.0")
        ''
    """
    match = _PREFIX.match(version)
    return match.group(1) if match else ""


def coerce_version(version: str) -> Optional[Version]:
    """Coerce a loosely formatted version into ``MAJOR.MINOR.PATCH``.

    Missing components default to zero and anything after the numeric
    triple (pre-release tags, build metadata) is dropped.

    Returns:
        The coerced version, or ``None`` if no digits are present.

    Examples:
        >>> coerce_version("1.0")
        <Version('1.0.0')>
        >>> coerce_version("2.0.0-beta.1")
        <Version('2.0.0')>
        >>> coerce_version("latest") is None
        True
    """
    match = _COERCE.search(version)
    if not match:
        return None
    major, minor, patch = match.groups()
    return Version(f"{int(major)}.{int(minor or 0)}.{int(patch or 0)}")


def _release_triple(version: Version) -> Tuple[int, int, int]:
    release = version.release
    major = release[0] if len(release) > 0 else 0
    minor = release[1] if len(release) > 1 else 0
    patch = release[2] if len(release) > 2 else 0
    return major, minor, patch


def get_change_type(current_version: str, latest_version: str) -> str:
    """Classify the change between two versions.

    Returns:
        One of ``"major"``, ``"minor"``, ``"patch"``, ``"none"`` (equal
        after coercion) or ``"error"`` (either side cannot be coerced).

    Examples:
        >>> get_change_type("1.0.0", "2.0.0")
        'major'
        >>> get_change_type("^1.0.0", "1.1.0")
        'minor'
        >>> get_change_type("1.0.0", "1.0.0")
        'none'
    """
    current = coerce_version(clean_version(current_version))
    latest = coerce_version(clean_version(latest_version))

    if current is None or latest is None:
        return CHANGE_ERROR

    if current == latest:
        return CHANGE_NONE

    current_major, current_minor, _ = _release_triple(current)
    latest_major, latest_minor, _ = _release_triple(latest)

    # Direction is ignored: a downgrade is classified by its magnitude too
    if current_major != latest_major:
        return CHANGE_MAJOR
    if current_minor != latest_minor:
        return CHANGE_MINOR
    return CHANGE_PATCH


def compare_versions(current: str, latest: str) -> PackageStatus:
    """Determine whether ``current`` lags behind ``latest``.

    Rules, in order:

    1. Either side ``"unknown"`` → error.
    2. Either side ``"latest"`` → up-to-date.
    3. Wildcard current (``any``, ``*``, ``x``) → up-to-date.
    4. Identical cleaned strings → up-to-date.
    5. Coerce both; failure → error; ``current < latest`` → outdated;
       otherwise up-to-date.

    Examples:
        >>> compare_versions("^1.0.0", "1.0.0")
        <PackageStatus.UP_TO_DATE: 'up-to-date'>
        >>> compare_versions("1.0.0", "2.0.0")
        <PackageStatus.OUTDATED: 'outdated'>
        >>> compare_versions("unknown", "1.0.0")
        <PackageStatus.ERROR: 'error'>
    """
    if latest == UNKNOWN_VERSION or current == UNKNOWN_VERSION:
        return PackageStatus.ERROR

    if latest == LATEST_VERSION or current == LATEST_VERSION:
        return PackageStatus.UP_TO_DATE

    clean_current = clean_version(current)
    clean_latest = clean_version(latest)

    if clean_current in _WILDCARDS:
        return PackageStatus.UP_TO_DATE

    if clean_current == clean_latest:
        return PackageStatus.UP_TO_DATE

    current_semver = coerce_version(clean_current)
    latest_semver = coerce_version(clean_latest)

    if current_semver is None or latest_semver is None:
        return PackageStatus.ERROR

    if current_semver < latest_semver:
        return PackageStatus.OUTDATED

    return PackageStatus.UP_TO_DATE


def should_update_version(
    current_version: str,
    latest_version: str,
    options: UpdateOptions,
) -> bool:
    """Return whether a regenerated manifest should apply this bump.

    Example:
        >>> opts = UpdateOptions(update_major=False, update_minor=True, update_patch=True)
        >>> should_update_version("1.0.0", "1.0.1", opts)
        True
        >>> should_update_version("1.0.0", "2.0.0", opts)
        False
    """
    change_type = get_change_type(current_version, latest_version)

    if change_type in (CHANGE_ERROR, CHANGE_NONE):
        return False

    return options.allows(change_type)
