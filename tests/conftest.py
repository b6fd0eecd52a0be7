from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterator

import pytest
from click.testing import CliRunner

from depscout.utils.console import reconfigure_console


@pytest.fixture
def cli_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Iterator[CliRunner]:
    """CliRunner in an empty directory with colors off.

    Restores the depscout logger and console state the CLI group mutates.
    """
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("NO_COLOR", "1")
    monkeypatch.delenv("DEPSCOUT_CONFIG", raising=False)
    monkeypatch.delenv("DEPSCOUT_COLOR", raising=False)

    root_logger = logging.getLogger("depscout")
    handlers = list(root_logger.handlers)
    level = root_logger.level
    propagate = root_logger.propagate

    yield CliRunner()

    root_logger.handlers[:] = handlers
    root_logger.setLevel(level)
    root_logger.propagate = propagate
    reconfigure_console()
