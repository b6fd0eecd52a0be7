"""Parser for Dart/Flutter ``pubspec.yaml`` manifests.

The pubspec is scanned line by line rather than loaded as YAML so that
only the direct children of ``dependencies:`` and ``dev_dependencies:`` are
picked up. A child whose value is empty and is followed by a more indented
block (path or git sources) is skipped, and so are the Flutter SDK
entries ``flutter`` and ``flutter_test`` whenever they carry no version.
"""

from __future__ import annotations

import re
from typing import Dict, List, Optional

from depscout.constants import ANY_VERSION
from depscout.models import PackageManager, ParsedManifest
from depscout.core.parsers.base import ManifestParser

_SECTION_HEADERS = ("dependencies:", "dev_dependencies:")
_FLUTTER_SDK_PACKAGES = frozenset({"flutter", "flutter_test"})
_DART_MARKERS = ("name:", "version:", "sdk: flutter")

_ENTRY = re.compile(r"^([^:\s]+)\s*:\s*(.*)$")
_TRAILING_COMMENT = re.compile(r"\s+#.*$")


def _indent_of(line: str) -> int:
    return len(line) - len(line.lstrip())


def _is_ignorable(line: str) -> bool:
    stripped = line.strip()
    return not stripped or stripped.startswith("#")


class PubManifestParser(ManifestParser):
    """Parse ``pubspec.yaml`` into regular and development dependencies.

    Example::

        >>> content = "name: app\\ndependencies:\\n  http: ^0.13.0\\n"
        >>> PubManifestParser().parse(content).dependencies
        {'http': '^0.13.0'}
    """

    kind = PackageManager.PUB
    file_hint = "pubspec"

    def can_parse_content(self, content: str) -> bool:
        has_sections = any(header in content for header in _SECTION_HEADERS)
        has_dart_fields = any(marker in content for marker in _DART_MARKERS)
        return has_sections and has_dart_fields

    def parse(self, content: str) -> ParsedManifest:
        dependencies: Dict[str, str] = {}
        dev_dependencies: Dict[str, str] = {}

        lines = content.splitlines()
        section: Optional[Dict[str, str]] = None
        header_indent = 0
        child_indent: Optional[int] = None

        for index, line in enumerate(lines):
            if _is_ignorable(line):
                continue

            indent = _indent_of(line)
            text = _TRAILING_COMMENT.sub("", line.strip())

            if text == "dependencies:":
                section, header_indent, child_indent = dependencies, indent, None
                continue
            if text == "dev_dependencies:":
                section, header_indent, child_indent = dev_dependencies, indent, None
                continue

            if section is None:
                continue

            if indent <= header_indent:
                section = None
                continue

            if child_indent is None:
                child_indent = indent

            # Deeper lines belong to a sub-map of the previous entry
            if indent != child_indent:
                continue

            match = _ENTRY.match(text)
            if match is None:
                continue

            name, value = match.group(1), match.group(2).strip()

            if not value:
                if name in _FLUTTER_SDK_PACKAGES:
                    self.logger.debug("Skipping Flutter SDK dependency %s", name)
                    continue
                next_indent = self._next_indent(lines, index)
                if next_indent is not None and next_indent > indent:
                    self.logger.debug("Skipping %s: declared with a nested source", name)
                    continue
                value = ANY_VERSION

            section[name] = value.replace('"', "").replace("'", "")

        self.logger.debug(
            "Parsed pubspec.yaml: %d dependencies, %d dev dependencies",
            len(dependencies),
            len(dev_dependencies),
        )

        return ParsedManifest(
            kind=self.kind,
            dependencies=dependencies,
            dev_dependencies=dev_dependencies or None,
        )

    @staticmethod
    def _next_indent(lines: List[str], index: int) -> Optional[int]:
        """Indent of the next meaningful line after ``index``, if any."""
        for line in lines[index + 1 :]:
            if not _is_ignorable(line):
                return _indent_of(line)
        return None
