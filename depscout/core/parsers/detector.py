"""Manifest type detection and dispatch.

Parsers are tried in a fixed order: npm, pip, then pub. The first parser
whose :meth:`~depscout.core.parsers.base.ManifestParser.can_parse` accepts
the content wins; the order matters because more than one format can claim
ambiguous content.
"""

from __future__ import annotations

import re
from typing import Dict, Optional, Tuple

from depscout.utils.logger import get_logger
from depscout.core.parsers.npm import NpmManifestParser
from depscout.core.parsers.pip import PipManifestParser
from depscout.core.parsers.pub import PubManifestParser
from depscout.core.parsers.base import ManifestParser
from depscout.models import PackageManager, ParsedManifest
from depscout.exceptions import ParseError, UnsupportedFileTypeError

logger = get_logger("detector")

#: Registered parsers, in priority order.
PARSERS: Tuple[ManifestParser, ...] = (
    NpmManifestParser(),
    PipManifestParser(),
    PubManifestParser(),
)

_SINGLE_REQUIREMENT = re.compile(r"^[\w-]+(==|>=|<=|~=|!=|>|<)[\d.]+")

_EXTENSIONS: Dict[PackageManager, str] = {
    PackageManager.NPM: ".json",
    PackageManager.PIP: ".txt",
    PackageManager.PUB: ".yaml",
}

_MIME_TYPES: Dict[PackageManager, str] = {
    PackageManager.NPM: "application/json",
    PackageManager.PIP: "text/plain",
    PackageManager.PUB: "application/x-yaml",
}


def get_parser_for(content: str, file_name: Optional[str] = None) -> ManifestParser:
    """Pick the parser responsible for ``content``.

    Args:
        content: Raw manifest text.
        file_name: Optional file name used as a detection hint.

    Returns:
        The first registered parser that accepts the content, or the pip
        parser for a lone ``name<op>version`` line.

    Raises:
        ParseError: Content is empty or looks like broken JSON.
        UnsupportedFileTypeError: No supported format matched.
    """
    for parser in PARSERS:
        if parser.can_parse(content, file_name):
            logger.debug("Detected %s manifest", parser.kind.value)
            return parser

    trimmed = content.strip()
    if not trimmed:
        raise ParseError("File content is empty")

    if trimmed.startswith("{"):
        raise ParseError(
            "Invalid JSON format - file may be corrupted", kind=PackageManager.NPM.value
        )

    if _SINGLE_REQUIREMENT.match(trimmed):
        logger.debug("Falling back to requirements parser")
        return _pip_parser()

    raise UnsupportedFileTypeError(
        "Unable to detect file type. Supported formats: "
        "package.json, requirements.txt, pubspec.yaml"
    )


def detect_file_type(content: str, file_name: Optional[str] = None) -> ParsedManifest:
    """Detect the manifest format of ``content`` and parse it.

    Example::

        >>> detect_file_type('{"dependencies": {"lodash": "4.17.20"}}').kind
        <PackageManager.NPM: 'npm'>
        >>> detect_file_type("Django==4.1.0").dependencies
        {'Django': '4.1.0'}

    Raises:
        ParseError: Detection or parsing failed.
        UnsupportedFileTypeError: No supported format matched.
    """
    return get_parser_for(content, file_name).parse(content)


def get_extension_from_kind(kind: PackageManager) -> str:
    """File extension, dot included, for a manifest kind."""
    return _EXTENSIONS.get(PackageManager(kind), ".txt")


def get_mime_from_kind(kind: PackageManager) -> str:
    """MIME type for a manifest kind."""
    return _MIME_TYPES.get(PackageManager(kind), "text/plain")


def _pip_parser() -> ManifestParser:
    return next(p for p in PARSERS if p.kind is PackageManager.PIP)
