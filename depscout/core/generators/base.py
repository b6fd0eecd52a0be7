"""Common contract for manifest update strategies."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import List, Sequence

from depscout.utils.logger import get_logger
from depscout.utils.version_utils import should_update_version
from depscout.models import PackageInfo, PackageManager, PackageStatus, UpdateOptions


def detect_line_ending(content: str) -> str:
    """Return ``"\\r\\n"`` if the content uses Windows line endings anywhere."""
    return "\r\n" if "\r\n" in content else "\n"


def select_updates(
    packages: Sequence[PackageInfo], options: UpdateOptions
) -> List[PackageInfo]:
    """Filter ``packages`` down to the upgrades ``options`` allow.

    A package qualifies when it is outdated, has a non-empty latest
    version, and its change type is enabled in ``options``.
    """
    return [
        package
        for package in packages
        if package.status == PackageStatus.OUTDATED
        and package.latest_version
        and should_update_version(package.current_version, package.latest_version, options)
    ]


class UpdateStrategy(ABC):
    """Rewrites version strings in one manifest format.

    Attributes:
        kind: Manifest format handled by this strategy.
    """

    kind: PackageManager

    def __init__(self) -> None:
        self.logger = get_logger(f"generator.{self.kind.value}")

    def can_handle(self, kind: PackageManager) -> bool:
        return kind == self.kind

    @abstractmethod
    def generate_update(
        self,
        content: str,
        packages: Sequence[PackageInfo],
        options: UpdateOptions,
    ) -> str:
        """Return ``content`` with the allowed upgrades applied.

        Anything not touched by an upgrade is preserved verbatim.
        """

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(kind={self.kind.value!r})"
