"""Manifest parsers and type detection."""

from __future__ import annotations

from depscout.core.parsers.base import ManifestParser
from depscout.core.parsers.npm import NpmManifestParser
from depscout.core.parsers.pip import PipManifestParser
from depscout.core.parsers.pub import PubManifestParser
from depscout.core.parsers.detector import (
    PARSERS,
    detect_file_type,
    get_extension_from_kind,
    get_mime_from_kind,
    get_parser_for,
)

__all__ = [
    "ManifestParser",
    "NpmManifestParser",
    "PipManifestParser",
    "PubManifestParser",
    "PARSERS",
    "detect_file_type",
    "get_extension_from_kind",
    "get_mime_from_kind",
    "get_parser_for",
]
