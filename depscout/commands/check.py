"""Check command implementation for depscout.

Reads a manifest, looks up every declared dependency on its registry and
reports which ones are outdated.

Typical usage::

    # Show every dependency
    $ depscout check package.json

    # Only outdated ones, as plain lines
    $ depscout check requirements.txt --outdated-only --format simple

    # Machine-readable output in the analysis response shape
    $ depscout check pubspec.yaml --format json > report.json

    # Every manifest at the root of a GitHub repository
    $ GITHUB_TOKEN=... depscout check --github pallets/flask
"""

from __future__ import annotations

import sys
import json
import asyncio
from pathlib import Path
from typing import Any, Dict, List, Optional

import click

from depscout.config import DepScoutConfig
from depscout.core import PackageAnalyzer, RegistryService
from depscout.core.github import (
    GitHubClient,
    RepositoryAnalysis,
    analyze_repository,
    parse_github_repository,
)
from depscout.exceptions import DepScoutError
from depscout.context import pass_context, DepScoutContext
from depscout.models import AnalysisResult, PackageInfo, PackageStatus
from depscout.utils.filesystem import safe_read_file
from depscout.utils.logger import get_logger
from depscout.utils.console import (
    colorize_change_type,
    colorize_status,
    get_raw_console,
    print_error,
    print_success,
    print_table,
    print_warning,
)

logger = get_logger("commands.check")


@click.command()
@click.argument(
    "file",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    required=False,
)
@click.option(
    "--github",
    "repository",
    metavar="OWNER/REPO",
    help="Check the manifests at the root of a GitHub repository instead of FILE.",
)
@click.option(
    "--outdated-only",
    is_flag=True,
    help="Show only outdated packages.",
)
@click.option(
    "--format",
    "-f",
    type=click.Choice(["table", "simple", "json"], case_sensitive=False),
    default="table",
    help="Output format.",
)
@pass_context
def check(
    ctx: DepScoutContext,
    file: Optional[Path],
    repository: Optional[str],
    outdated_only: bool,
    format: str,
) -> None:
    """Check a manifest for outdated dependencies.

    FILE is a package.json, requirements.txt or pubspec.yaml. With
    --github, every such file at the repository root is checked instead;
    set GITHUB_TOKEN for private repositories and a higher rate limit.
    """
    if (file is None) == (repository is None):
        raise click.UsageError("Pass either a manifest FILE or --github OWNER/REPO.")

    if repository is not None:
        _check_repository(ctx, repository, outdated_only, format)
        return

    try:
        result = asyncio.run(analyze_file(ctx, file))
    except DepScoutError as e:
        print_error(f"{e}")
        sys.exit(1)

    if format == "json":
        click.echo(json.dumps(_json_report(result, outdated_only), indent=2))
        return

    _display_result(result, file.name, outdated_only, format)


def _check_repository(
    ctx: DepScoutContext, repository: str, outdated_only: bool, format: str
) -> None:
    try:
        analysis = asyncio.run(analyze_github(ctx, repository))
    except DepScoutError as e:
        print_error(f"{e}")
        sys.exit(1)

    if format == "json":
        data = {
            "repository": analysis.repository.url,
            "files": [
                {"name": found.name, "path": found.path, **_json_report(result, outdated_only)}
                for found, result in analysis.manifests
            ],
        }
        click.echo(json.dumps(data, indent=2))
        return

    for found, result in analysis.manifests:
        _display_result(result, f"{analysis.repository}/{found.path}", outdated_only, format)


def _display_result(
    result: AnalysisResult, label: str, outdated_only: bool, format: str
) -> None:
    packages = result.outdated_packages if outdated_only else result.packages

    if not result.packages:
        print_warning(f"No dependencies found in {label}")
        return

    if packages:
        if format == "table":
            _display_table(packages, label)
        else:
            _display_simple(packages)

    _display_summary(result)


# ---------------------------------------------------------------------------
# Analysis
# ---------------------------------------------------------------------------


def _registry_service(config: DepScoutConfig) -> RegistryService:
    return RegistryService(
        cache=config.create_cache(),
        retry_policy=config.retry_policy(),
        max_concurrency=config.max_concurrency,
        timeout=config.timeout,
    )


async def analyze_file(ctx: DepScoutContext, file: Path) -> AnalysisResult:
    """Read ``file`` and run a full analysis with the configured registry.

    Raises:
        DepScoutError: The file cannot be read, validated or parsed.
    """
    content = safe_read_file(file)

    logger.info("Analyzing %s...", file)

    async with _registry_service(ctx.config) as registry:
        return await PackageAnalyzer(registry).analyze(content, file.name)


async def analyze_github(ctx: DepScoutContext, repository: str) -> RepositoryAnalysis:
    """Download and analyze the manifests of a GitHub repository.

    The token, if any, comes from ``$GITHUB_TOKEN``.

    Raises:
        DepScoutError: The reference is invalid, GitHub refused a request,
            no manifest was found, or one failed to parse.
    """
    config = ctx.config
    target = parse_github_repository(repository)

    logger.info("Analyzing GitHub repository %s...", target)

    async with GitHubClient.from_environment(
        timeout=config.timeout, retry_policy=config.retry_policy()
    ) as github, _registry_service(config) as registry:
        return await analyze_repository(github, PackageAnalyzer(registry), target)


# ---------------------------------------------------------------------------
# Display renderers
# ---------------------------------------------------------------------------


def _display_table(packages: List[PackageInfo], file_name: str) -> None:
    data = [_create_table_row(pkg) for pkg in packages]

    column_styles: Dict[str, Dict[str, Any]] = {
        "Status": {"justify": "center", "no_wrap": True},
        "Package": {"style": "bold cyan", "no_wrap": True},
        "Current": {"justify": "center", "style": "dim"},
        "Latest": {"justify": "center", "style": "bold green"},
        "Change": {"justify": "center"},
        "Details": {"justify": "left"},
    }

    print_table(data, title=f"Dependency Status: {file_name}", column_styles=column_styles)


def _create_table_row(pkg: PackageInfo) -> Dict[str, str]:
    change = "[dim]-[/dim]"
    if pkg.status == PackageStatus.OUTDATED:
        change = colorize_change_type(pkg.change_type)

    if pkg.status == PackageStatus.ERROR:
        details = f"[red]{pkg.error}[/red]"
    else:
        details = pkg.description or "[dim]-[/dim]"

    return {
        "Status": colorize_status(str(pkg.status)),
        "Package": pkg.name,
        "Current": pkg.current_version,
        "Latest": pkg.latest_version,
        "Change": change,
        "Details": details,
    }


def _display_simple(packages: List[PackageInfo]) -> None:
    """One line per package, suitable for piping.

    Example::

        [OUTDATED] lodash               4.17.20    -> 4.17.21
        [ERROR] left-pad             1.0.0      -> unknown (Package not found)
    """
    console = get_raw_console()

    for pkg in packages:
        status = str(pkg.status).upper()
        line = f"[{status}] {pkg.name:20} {pkg.current_version:10} -> {pkg.latest_version}"
        if pkg.error:
            line += f" ({pkg.error})"
        console.print(line, markup=False, highlight=False)


def _json_report(result: AnalysisResult, outdated_only: bool) -> Dict[str, Any]:
    """``{packages, summary}``; the summary always covers every package."""
    data = result.to_dict()
    if outdated_only:
        data["packages"] = [pkg.to_dict() for pkg in result.outdated_packages]
    return data


def _display_summary(result: AnalysisResult) -> None:
    summary = result.summary

    get_raw_console().print(
        f"\n{summary.total} package(s): {summary.up_to_date} up to date, "
        f"{summary.outdated} outdated, {summary.errors} error(s)"
    )

    if summary.outdated:
        print_warning(f"{summary.outdated} package(s) have updates available")
    elif summary.errors:
        print_warning(f"{summary.errors} package(s) could not be checked")
    else:
        print_success("All packages are up to date!")
