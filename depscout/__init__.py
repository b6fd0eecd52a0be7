"""
depscout: dependency freshness checks for npm, pip and pub manifests

depscout reads a ``package.json``, ``requirements.txt`` or ``pubspec.yaml``,
asks the matching registry (npm, PyPI, pub.dev) for the latest release of
every declared dependency, and reports which ones are outdated.

Features include:
    • Automatic manifest type detection
    • Major / minor / patch change classification
    • Format-preserving manifest regeneration with selectable upgrades
    • Cached, retried and concurrency-bounded registry lookups
"""

from __future__ import annotations

from depscout.__version__ import __version__

# ---------------------------------------------------------------------------
# Package Metadata
# ---------------------------------------------------------------------------

__author__ = "depscout Contributors"
__license__ = "Apache-2.0"
__description__ = "Find and update outdated dependencies in npm, pip and pub manifests."

__all__ = [
    "__version__",
]
