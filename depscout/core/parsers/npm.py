"""Parser for npm ``package.json`` manifests."""

from __future__ import annotations

import json
from typing import Any, Dict, Optional

from depscout.exceptions import ParseError
from depscout.models import PackageManager, ParsedManifest
from depscout.core.parsers.base import ManifestParser

_MARKER_KEYS = ("dependencies", "devDependencies", "peerDependencies")


def _load_object(content: str) -> Optional[Dict[str, Any]]:
    try:
        data = json.loads(content)
    except ValueError:
        return None
    return data if isinstance(data, dict) else None


class NpmManifestParser(ManifestParser):
    """Parse ``package.json`` into regular and development dependencies.

    Only ``dependencies`` and ``devDependencies`` are read.
    ``peerDependencies`` is used as a detection marker but not analyzed.

    Example::

        >>> parser = NpmManifestParser()
        >>> parser.parse('{"dependencies": {"lodash": "^4.17.20"}}').dependencies
        {'lodash': '^4.17.20'}
    """

    kind = PackageManager.NPM
    file_hint = "package.json"

    def can_parse_content(self, content: str) -> bool:
        data = _load_object(content)
        if data is None:
            return False
        if any(key in data for key in _MARKER_KEYS):
            return True
        return "name" in data and "version" in data

    def parse(self, content: str) -> ParsedManifest:
        try:
            data = json.loads(content)
        except ValueError as exc:
            raise ParseError(
                f"Failed to parse package.json: {exc}", kind=self.kind.value
            ) from exc

        if not isinstance(data, dict):
            raise ParseError(
                "Failed to parse package.json: top-level value must be an object",
                kind=self.kind.value,
            )

        dependencies = self._read_section(data, "dependencies")
        dev_dependencies = self._read_section(data, "devDependencies")

        self.logger.debug(
            "Parsed package.json: %d dependencies, %d dev dependencies",
            len(dependencies),
            len(dev_dependencies),
        )

        return ParsedManifest(
            kind=self.kind,
            dependencies=dependencies,
            dev_dependencies=dev_dependencies or None,
        )

    def _read_section(self, data: Dict[str, Any], key: str) -> Dict[str, str]:
        section = data.get(key)
        if not section:
            return {}
        if not isinstance(section, dict):
            raise ParseError(
                f"Failed to parse package.json: '{key}' must be an object",
                kind=self.kind.value,
            )
        return {str(name): str(version) for name, version in section.items()}
