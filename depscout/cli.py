"""
depscout command-line interface.

The ``depscout`` group resolves settings once per run and hands them to the
subcommands through :class:`~depscout.context.DepScoutContext`. Registry
settings are layered: built-in defaults, then the config file, then the
``--timeout`` / ``--max-concurrency`` options.
"""

from __future__ import annotations

import os
import sys
import logging
from pathlib import Path
from typing import Optional

import click

from depscout.config import DepScoutConfig, load_config
from depscout.__version__ import __version__
from depscout.context import DepScoutContext
from depscout.exceptions import ConfigError, DepScoutError
from depscout.utils.logger import get_logger, setup_logging
from depscout.utils.console import print_error, print_warning, reconfigure_console

logger = get_logger("cli")

_VERBOSITY_LEVELS = (logging.WARNING, logging.INFO, logging.DEBUG)


@click.group(context_settings={"help_option_names": ["-h", "--help"]})
@click.option(
    "--config",
    "-c",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    envvar="DEPSCOUT_CONFIG",
    help="Config file (default: ./depscout.toml or [tool.depscout] in ./pyproject.toml).",
)
@click.option(
    "--timeout",
    type=click.FloatRange(min=0, min_open=True),
    default=None,
    help="Seconds to wait for each registry response.",
)
@click.option(
    "--max-concurrency",
    type=click.IntRange(min=1),
    default=None,
    help="Registry lookups allowed in flight at once.",
)
@click.option(
    "--verbose",
    "-v",
    count=True,
    help="Show progress (-v) or debug output (-vv).",
)
@click.option(
    "--color/--no-color",
    default=True,
    envvar="DEPSCOUT_COLOR",
    help="Enable or disable colored output.",
)
@click.version_option(__version__, prog_name="depscout", message="%(prog)s %(version)s")
@click.pass_context
def cli(
    ctx: click.Context,
    config: Optional[Path],
    timeout: Optional[float],
    max_concurrency: Optional[int],
    verbose: int,
    color: bool,
) -> None:
    """Find outdated dependencies in npm, pip and pub manifests.

    \b
    Examples:
      depscout check package.json
      depscout check requirements.txt --format json
      depscout check --github pallets/flask
      depscout update pubspec.yaml --dry-run
      depscout --timeout 5 -v update package.json --major
    """
    if color:
        os.environ.pop("NO_COLOR", None)
    else:
        os.environ["NO_COLOR"] = "1"
    reconfigure_console(color=None if color else False)

    _configure_logging(verbose)

    try:
        settings = load_config(config)
    except ConfigError as exc:
        print_error(str(exc))
        raise SystemExit(1) from exc

    _apply_overrides(settings, timeout=timeout, max_concurrency=max_concurrency)

    ctx.obj = DepScoutContext(
        config=settings,
        config_path=config or settings.source_path,
        verbose=verbose,
        color=color,
    )

    logger.debug("depscout %s, settings from %s", __version__, ctx.obj.settings_source)
    logger.debug("Effective settings: %s", settings.to_log_dict())


def _configure_logging(verbose: int) -> None:
    level = _VERBOSITY_LEVELS[min(max(verbose, 0), len(_VERBOSITY_LEVELS) - 1)]
    setup_logging(level=level)


def _apply_overrides(
    settings: DepScoutConfig,
    *,
    timeout: Optional[float],
    max_concurrency: Optional[int],
) -> None:
    """Let command-line registry options win over the config file."""
    if timeout is not None:
        settings.timeout = timeout
    if max_concurrency is not None:
        settings.max_concurrency = max_concurrency


from depscout.commands.check import check  # noqa: E402
from depscout.commands.update import update  # noqa: E402

cli.add_command(check)
cli.add_command(update)


def main() -> int:
    """Run the CLI and translate the outcome into a process exit code.

    Returns:
        0 on success, 1 for depscout or unexpected errors, Click's own code
        (2) for usage errors and 130 when interrupted.
    """
    try:
        cli(standalone_mode=False)
    except click.ClickException as exc:
        exc.show()
        return exc.exit_code
    except (click.exceptions.Abort, KeyboardInterrupt):
        print_warning("\nOperation cancelled by user")
        return 130
    except DepScoutError as exc:
        print_error(str(exc))
        logger.debug("Error details: %s", exc.details or "<none>", exc_info=True)
        return 1
    except Exception as exc:
        print_error(f"Unexpected error: {exc}")
        logger.exception("Unhandled exception in CLI")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
