"""Update strategy for ``requirements.txt``."""

from __future__ import annotations

import re
from typing import Sequence

from depscout.models import PackageInfo, PackageManager, UpdateOptions
from depscout.core.generators.base import UpdateStrategy, select_updates


class PipUpdateStrategy(UpdateStrategy):
    """Pin upgraded requirements as ``name==latest``.

    For each upgrade, the first line that starts with the package name
    (optionally followed by an operator and anything else) is replaced
    with ``name==<latest>``. Any previous operator, range or marker on that
    line is dropped. Line endings are left untouched.
    """

    kind = PackageManager.PIP

    def generate_update(
        self,
        content: str,
        packages: Sequence[PackageInfo],
        options: UpdateOptions,
    ) -> str:
        updated = content

        for package in select_updates(packages, options):
            # No boundary after the name: "django" also matches a "django-environ"
            # line, and the first match is the one rewritten.
            pattern = re.compile(
                rf"^({re.escape(package.name)})(==|>=|<=|>|<|~=|!=)?([^\r\n]*)",
                re.MULTILINE,
            )
            new_line = f"{package.name}=={package.latest_version}"
            updated, count = pattern.subn(lambda _m: new_line, updated, count=1)

            if count:
                self.logger.debug("Updated requirement %s -> %s", package.name, new_line)

        return updated
