"""Top-level manifest regeneration.

:func:`generate_updated_manifest` never raises: if detection or the
strategy fails, the original content is returned unchanged. Callers tell a
no-op from a real update by comparing the output to the input.
"""

from __future__ import annotations

from typing import Optional, Sequence, Tuple

from depscout.utils.logger import get_logger
from depscout.core.parsers import get_parser_for
from depscout.core.generators.base import UpdateStrategy
from depscout.core.generators.npm import NpmUpdateStrategy
from depscout.core.generators.pip import PipUpdateStrategy
from depscout.core.generators.pub import PubUpdateStrategy
from depscout.models import PackageInfo, PackageManager, UpdateOptions

logger = get_logger("generator")

#: Registered strategies, tried in the same order as the parsers.
STRATEGIES: Tuple[UpdateStrategy, ...] = (
    NpmUpdateStrategy(),
    PipUpdateStrategy(),
    PubUpdateStrategy(),
)


def get_strategy_for(kind: PackageManager) -> Optional[UpdateStrategy]:
    """Return the strategy handling ``kind``, if any."""
    return next((s for s in STRATEGIES if s.can_handle(kind)), None)


def generate_updated_manifest(
    content: str,
    packages: Sequence[PackageInfo],
    options: Optional[UpdateOptions] = None,
    file_name: Optional[str] = None,
) -> str:
    """Apply the upgrades allowed by ``options`` to a manifest.

    Args:
        content: Original manifest text.
        packages: Analysis results for the manifest's dependencies.
        options: Which change types to apply. Defaults to minor and patch.
        file_name: Optional file name used as a detection hint.

    Returns:
        The regenerated manifest, or ``content`` unchanged when nothing
        applies or anything goes wrong.

    Example::

        >>> generate_updated_manifest("Django==4.1.0\\n", packages, UpdateOptions())
        'Django==4.1.7\\n'
    """
    options = options or UpdateOptions()

    try:
        kind = get_parser_for(content, file_name).kind
        strategy = get_strategy_for(kind)

        if strategy is None:
            logger.error("No update strategy found for %s manifests", kind.value)
            return content

        logger.debug(
            "Regenerating %s manifest for %d package(s) with %s",
            kind.value,
            len(packages),
            options,
        )
        return strategy.generate_update(content, packages, options)

    except Exception as exc:
        logger.warning("Manifest regeneration failed, keeping original: %s", exc)
        return content
