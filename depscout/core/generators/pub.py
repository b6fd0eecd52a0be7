"""Update strategy for ``pubspec.yaml``."""

from __future__ import annotations

import re
from typing import Sequence

from depscout.models import PackageInfo, PackageManager, UpdateOptions
from depscout.core.generators.base import UpdateStrategy, select_updates

_DEFAULT_PREFIX = "^"


class PubUpdateStrategy(UpdateStrategy):
    """Rewrite indented ``name: version`` lines in a pubspec.

    The line's leading whitespace is kept. A ``^`` or ``~`` prefix on the
    old value is re-applied to the new version; anything else gets ``^``.
    Every indented line declaring the package is rewritten.
    """

    kind = PackageManager.PUB

    def generate_update(
        self,
        content: str,
        packages: Sequence[PackageInfo],
        options: UpdateOptions,
    ) -> str:
        updated = content

        for package in select_updates(packages, options):
            pattern = re.compile(
                rf"^([ \t]+{re.escape(package.name)}:[ \t]*)([^\r\n]*)",
                re.MULTILINE,
            )
            latest = package.latest_version

            def _rewrite(match: "re.Match[str]") -> str:
                old_value = match.group(2)
                prefix = old_value[0] if old_value[:1] in ("^", "~") else _DEFAULT_PREFIX
                return f"{match.group(1)}{prefix}{latest}"

            updated, count = pattern.subn(_rewrite, updated)

            if count:
                self.logger.debug(
                    "Updated pubspec dependency %s -> %s (%d line(s))",
                    package.name,
                    latest,
                    count,
                )

        return updated
