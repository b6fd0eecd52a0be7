"""Manifest update strategies."""

from __future__ import annotations

from depscout.core.generators.base import UpdateStrategy, select_updates
from depscout.core.generators.npm import NpmUpdateStrategy, detect_indentation
from depscout.core.generators.pip import PipUpdateStrategy
from depscout.core.generators.pub import PubUpdateStrategy
from depscout.core.generators.update_generator import (
    STRATEGIES,
    generate_updated_manifest,
    get_strategy_for,
)

__all__ = [
    "UpdateStrategy",
    "select_updates",
    "NpmUpdateStrategy",
    "detect_indentation",
    "PipUpdateStrategy",
    "PubUpdateStrategy",
    "STRATEGIES",
    "generate_updated_manifest",
    "get_strategy_for",
]
