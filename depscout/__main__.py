"""
``python -m depscout`` entry point; behaves exactly like the ``depscout`` script.
"""

from __future__ import annotations

import sys


def _installed_version() -> str:
    try:
        from depscout.__version__ import __version__
    except Exception:
        return "<unknown>"
    return __version__


def _print_startup_error(exc: BaseException) -> None:
    """Explain on stderr why the CLI could not be loaded."""
    report = (
        "depscout failed to start.",
        f"Python version : {sys.version}",
        f"depscout version: {_installed_version()}",
        f"{type(exc).__name__}: {exc}",
    )
    sys.stderr.write("\n".join(report) + "\n")


def main() -> int:
    """Load the CLI and run it.

    Returns:
        The CLI's exit code, or 1 when a dependency of the CLI is missing.
    """
    try:
        from depscout.cli import main as cli_main
    except ImportError as exc:
        _print_startup_error(exc)
        return 1

    return cli_main()


if __name__ == "__main__":
    sys.exit(main())
