"""
Per-invocation state handed from the ``depscout`` group to its subcommands.

The group callback builds one :class:`DepScoutContext` and stores it as the
Click context object; commands receive it through :data:`pass_context`.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import click

from depscout.config import DepScoutConfig


class DepScoutContext:
    """Resolved global options for a single depscout run.

    Attributes:
        config_path: File the settings were loaded from; ``None`` for defaults.
        verbose: Number of ``-v`` flags given.
        color: ``False`` after ``--no-color``.
        config: Effective settings, command-line overrides included.
    """

    __slots__ = ("config_path", "verbose", "color", "config")

    def __init__(
        self,
        *,
        config: Optional[DepScoutConfig] = None,
        config_path: Optional[Path] = None,
        verbose: int = 0,
        color: bool = True,
    ) -> None:
        self.config: DepScoutConfig = config if config is not None else DepScoutConfig()
        self.config_path = config_path
        self.verbose = verbose
        self.color = color

    @property
    def settings_source(self) -> str:
        """Where the settings came from, for log messages."""
        return str(self.config_path) if self.config_path else "built-in defaults"


pass_context = click.make_pass_decorator(DepScoutContext, ensure=True)
