"""Parser for pip ``requirements.txt`` manifests.

Line-oriented, following the subset of pip's requirement syntax that maps
onto a single registry lookup:

- ``name==1.0`` / ``name>=1.0`` / ``name~=1.0`` ... keep the first bound
  of the range, operators stripped
- ``name`` with no operator is reported as ``latest``
- ``name[extra]==1.0`` keeps the base name only
- Environment markers (``; python_version < "3.8"``), hash pins
  (``--hash=sha256:...``) and inline comments are stripped

Skipped entirely: blank lines, ``#`` comments, option lines (``-r``,
``--requirement``, ``-e``, ``--editable``, ``-c``, ``--index-url`` ...) and
VCS or URL requirements (``git+``, ``hg+``, ``svn+``, ``bzr+``,
``http://``, ``https://``, ``file://``, ``name @ url``).
"""

from __future__ import annotations

import re
from typing import Dict, Optional, Tuple

from depscout.constants import LATEST_VERSION, PIP_URL_PREFIXES, PIP_VERSION_OPERATORS
from depscout.models import PackageManager, ParsedManifest
from depscout.core.parsers.base import ManifestParser

# Content heuristics used when no file name hint is available
_PIP_LINE_PATTERNS = (
    re.compile(r"^[\w-]+==\d+[.\d]*"),
    re.compile(r"^[\w-]+>=\d+[.\d]*"),
    re.compile(r"^[\w-]+~=\d+[.\d]*"),
    re.compile(r"^[\w-]+\[[\w,]+\]"),
    re.compile(r"^-e\s+"),
    re.compile(r"^git\+"),
)

_INLINE_COMMENT = re.compile(r"(^|\s+)#.*$")
_HASH_OPTION = re.compile(r"\s*--hash[=\s]+\S+")
_EXTRAS = re.compile(r"\[[^\]]*\]")
_OPERATOR = re.compile("|".join(re.escape(op) for op in PIP_VERSION_OPERATORS))
_VALID_NAME = re.compile(r"^[A-Za-z0-9][A-Za-z0-9._-]*$")


class PipManifestParser(ManifestParser):
    """Parse ``requirements.txt`` into a name to version mapping.

    Example::

        >>> parser = PipManifestParser()
        >>> parser.parse("Django==4.1.0\\n# comment\\n-e .").dependencies
        {'Django': '4.1.0'}
    """

    kind = PackageManager.PIP
    file_hint = "requirements"

    def can_parse_content(self, content: str) -> bool:
        for line in content.splitlines():
            stripped = line.strip()
            if not stripped or stripped.startswith("#"):
                continue
            if any(pattern.match(stripped) for pattern in _PIP_LINE_PATTERNS):
                return True
        return False

    def parse(self, content: str) -> ParsedManifest:
        dependencies: Dict[str, str] = {}

        for line_number, line_text in enumerate(content.splitlines(), start=1):
            parsed = self.parse_line(line_text)
            if parsed is None:
                continue
            name, version = parsed
            dependencies[name] = version
            self.logger.debug("Line %d: %s -> %s", line_number, name, version)

        self.logger.debug("Parsed requirements: %d dependencies", len(dependencies))

        return ParsedManifest(kind=self.kind, dependencies=dependencies)

    def parse_line(self, line_text: str) -> Optional[Tuple[str, str]]:
        """Parse one requirement line.

        Returns:
            ``(name, version)``, or ``None`` if the line declares nothing
            this parser tracks.

        Example::

            >>> PipManifestParser().parse_line("requests[socks]>=2.25,<3")
            ('requests', '2.25')
            >>> PipManifestParser().parse_line("-r base.txt") is None
            True
        """
        spec = line_text.strip()
        if not spec or spec.startswith("#"):
            return None

        spec = _INLINE_COMMENT.sub("", spec).rstrip("\\").strip()

        # Option lines: -r, -e, -c, --index-url, ...
        if not spec or spec.startswith("-"):
            return None

        spec = _HASH_OPTION.sub("", spec).strip()

        if spec.lower().startswith(tuple(PIP_URL_PREFIXES)) or "://" in spec:
            return None

        # Environment markers may contain operators of their own
        spec = spec.split(";", 1)[0].strip()

        name, version = self._split_specifier(spec)
        name = _EXTRAS.sub("", name).strip()

        if not _VALID_NAME.match(name):
            self.logger.debug("Skipping unrecognized requirement: %s", line_text.strip())
            return None

        return name, version

    def _split_specifier(self, spec: str) -> Tuple[str, str]:
        match = _OPERATOR.search(spec)
        if match is None:
            return spec, LATEST_VERSION

        name = spec[: match.start()]
        first_bound = spec[match.end() :].split(",", 1)[0]
        version = re.sub(r"[<>=!~]", "", first_bound).strip()
        return name, version or LATEST_VERSION
