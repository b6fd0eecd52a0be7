"""Update strategy for ``package.json``."""

from __future__ import annotations

import re
import json
from typing import Any, Dict, Sequence

from depscout.utils.version_utils import get_version_prefix
from depscout.models import PackageInfo, PackageManager, UpdateOptions
from depscout.core.generators.base import UpdateStrategy, detect_line_ending, select_updates

_UPDATABLE_SECTIONS = ("dependencies", "devDependencies", "peerDependencies")
_FIRST_INDENT = re.compile(r"^(\s+)\S")
_DEFAULT_INDENT = "  "


def detect_indentation(content: str) -> str:
    """Return the leading whitespace of the first indented line.

    Example::

        >>> detect_indentation('{\\n\\t"name": "app"\\n}')
        '\\t'
        >>> detect_indentation('{"name": "app"}')
        '  '
    """
    for line in re.split(r"\r?\n", content):
        match = _FIRST_INDENT.match(line)
        if match:
            return match.group(1)
    return _DEFAULT_INDENT


class NpmUpdateStrategy(UpdateStrategy):
    """Re-serialize ``package.json`` with updated versions.

    The document is loaded, updated in ``dependencies``,
    ``devDependencies`` and ``peerDependencies`` wherever the package is a
    key, then dumped with the original indentation and line endings plus a
    trailing newline. The current range prefix (``^``, ``~``, ``>=``) is
    carried over to the new version.

    Raises:
        ValueError: The content is not valid JSON. The top-level
            :func:`~depscout.core.generators.generate_updated_manifest`
            turns this into an unchanged result.
    """

    kind = PackageManager.NPM

    def generate_update(
        self,
        content: str,
        packages: Sequence[PackageInfo],
        options: UpdateOptions,
    ) -> str:
        document: Dict[str, Any] = json.loads(content)
        updates = select_updates(packages, options)

        if not updates:
            return content

        changed = False
        for package in updates:
            new_version = get_version_prefix(package.current_version) + package.latest_version

            for section_name in _UPDATABLE_SECTIONS:
                section = document.get(section_name)
                if isinstance(section, dict) and section.get(package.name):
                    section[package.name] = new_version
                    changed = True
                    self.logger.debug(
                        "Updated %s %s: %s -> %s",
                        section_name,
                        package.name,
                        package.current_version,
                        new_version,
                    )

        if not changed:
            return content

        eol = detect_line_ending(content)
        rendered = json.dumps(
            document, indent=detect_indentation(content), ensure_ascii=False
        )
        return rendered.replace("\n", eol) + eol
