"""Common contract for manifest parsers."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Optional

from depscout.models import PackageManager, ParsedManifest
from depscout.utils.logger import get_logger


class ManifestParser(ABC):
    """Base class for format-specific manifest parsers.

    Subclasses set :attr:`kind` and implement :meth:`can_parse_content` and
    :meth:`parse`. The file name hint is checked first; content heuristics
    only run when the name does not match.

    Attributes:
        kind: Manifest format handled by this parser.
        file_hint: Substring looked for in the file name.
    """

    kind: PackageManager
    file_hint: str

    def __init__(self) -> None:
        self.logger = get_logger(f"parser.{self.kind.value}")

    @property
    def package_manager(self) -> PackageManager:
        return self.kind

    def can_parse(self, content: str, file_name: Optional[str] = None) -> bool:
        """Return whether this parser claims ``content``.

        Args:
            content: Raw manifest text.
            file_name: Optional file name; a substring match against
                :attr:`file_hint` wins over any content check.
        """
        if file_name and self.file_hint in file_name.lower():
            return True
        return self.can_parse_content(content)

    @abstractmethod
    def can_parse_content(self, content: str) -> bool:
        """Content-based detection heuristic."""

    @abstractmethod
    def parse(self, content: str) -> ParsedManifest:
        """Parse ``content`` into a :class:`ParsedManifest`.

        Raises:
            ParseError: The content does not have the expected structure.
        """

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(kind={self.kind.value!r})"
