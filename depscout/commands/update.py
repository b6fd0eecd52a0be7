"""Update command implementation for depscout.

Analyzes a manifest, regenerates it with the upgrades the selected change
types allow, previews the plan and writes the result atomically.

Which upgrades apply is decided per package from the change between the
declared and the latest version: by default minor and patch upgrades are
applied and major ones are left alone.

Typical usage::

    # Apply minor and patch upgrades in place
    $ depscout update package.json

    # Include major upgrades, preview only
    $ depscout update requirements.txt --major --dry-run

    # Write to a new file, no prompt
    $ depscout update pubspec.yaml --output pubspec.updated.yaml -y
"""

from __future__ import annotations

import sys
import asyncio
from pathlib import Path
from typing import List, Optional

import click

from depscout.core.generators import generate_updated_manifest, select_updates
from depscout.core.parsers import (
    detect_file_type,
    get_extension_from_kind,
    get_mime_from_kind,
)
from depscout.commands.check import analyze_file
from depscout.exceptions import DepScoutError
from depscout.context import pass_context, DepScoutContext
from depscout.models import AnalysisResult, PackageInfo, UpdateOptions
from depscout.utils.filesystem import safe_read_file, safe_write_file
from depscout.utils.version_utils import get_version_prefix
from depscout.utils.logger import get_logger
from depscout.utils.console import (
    colorize_change_type,
    print_error,
    print_success,
    print_table,
    print_warning,
)

logger = get_logger("commands.update")


@click.command()
@click.argument(
    "file",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
)
@click.option(
    "--major/--no-major",
    default=None,
    help="Apply major upgrades (default from config: off).",
)
@click.option(
    "--minor/--no-minor",
    default=None,
    help="Apply minor upgrades (default from config: on).",
)
@click.option(
    "--patch/--no-patch",
    default=None,
    help="Apply patch upgrades (default from config: on).",
)
@click.option(
    "--dry-run",
    is_flag=True,
    help="Preview changes without applying them.",
)
@click.option(
    "--backup",
    is_flag=True,
    help="Create backup file before updating.",
)
@click.option(
    "--output",
    "-o",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Write the updated manifest here instead of overwriting FILE.",
)
@click.option(
    "--yes",
    "-y",
    is_flag=True,
    help="Skip confirmation prompt.",
)
@pass_context
def update(
    ctx: DepScoutContext,
    file: Path,
    major: Optional[bool],
    minor: Optional[bool],
    patch: Optional[bool],
    dry_run: bool,
    backup: bool,
    output: Optional[Path],
    yes: bool,
) -> None:
    """Update outdated dependencies in a manifest.

    FILE is a package.json, requirements.txt or pubspec.yaml.
    """
    defaults = ctx.config.update_options()
    options = UpdateOptions(
        update_major=defaults.update_major if major is None else major,
        update_minor=defaults.update_minor if minor is None else minor,
        update_patch=defaults.update_patch if patch is None else patch,
    )
    logger.debug("Update options: %s", options)

    try:
        result = asyncio.run(analyze_file(ctx, file))
        _apply(file, result, options, dry_run=dry_run, backup=backup, output=output, yes=yes)
    except DepScoutError as e:
        print_error(f"{e}")
        sys.exit(1)


def _apply(
    file: Path,
    result: AnalysisResult,
    options: UpdateOptions,
    *,
    dry_run: bool,
    backup: bool,
    output: Optional[Path],
    yes: bool,
) -> None:
    """Regenerate the manifest and write it unless told otherwise.

    Raises:
        DepScoutError: Reading or writing the file failed.
    """
    if result.summary.errors:
        print_warning(f"{result.summary.errors} package(s) could not be checked and are skipped")

    updates = select_updates(result.packages, options)
    if not updates:
        skipped = len(result.outdated_packages)
        if skipped:
            print_warning(
                f"{skipped} outdated package(s) excluded by the selected change types"
            )
        else:
            print_success("All packages are up to date!")
        return

    content = safe_read_file(file)
    updated = generate_updated_manifest(content, result.packages, options, file.name)

    applied = _applied_updates(content, updated, updates, file.name)
    if not applied:
        print_warning("Manifest could not be regenerated; no changes to apply")
        return

    missed = [pkg.name for pkg in updates if pkg not in applied]
    if missed:
        print_warning(f"No matching line rewritten for: {', '.join(missed)}")

    _display_update_plan(applied, dry_run)

    if dry_run:
        print_warning("\nDry run mode - no changes applied")
        return

    target = _output_path(file, output, result)
    if not yes and not _confirm_update(len(applied), target):
        logger.info("Update cancelled by user")
        return

    if result.manifest is not None:
        logger.debug("Writing %s as %s", target, get_mime_from_kind(result.manifest.kind))

    backup_path = safe_write_file(target, updated, create_backup=backup and target == file)
    if backup_path:
        logger.info("Created backup: %s", backup_path)

    print_success(f"Updated {len(applied)} package(s) in {target}")


def _applied_updates(
    content: str,
    updated: str,
    updates: List[PackageInfo],
    file_name: str,
) -> List[PackageInfo]:
    """Upgrades whose declared version really differs in ``updated``.

    Both manifests are parsed again; a selected upgrade whose line the
    generator did not rewrite is left out.
    """
    if updated == content:
        return []

    before = detect_file_type(content, file_name).all_dependencies()
    after = detect_file_type(updated, file_name).all_dependencies()
    return [pkg for pkg in updates if after.get(pkg.name) != before.get(pkg.name)]


def _output_path(file: Path, output: Optional[Path], result: AnalysisResult) -> Path:
    """Write target; an ``--output`` without a suffix gets the manifest's extension."""
    if output is None:
        return file
    if not output.suffix and result.manifest is not None:
        return output.with_suffix(get_extension_from_kind(result.manifest.kind))
    return output


def _display_update_plan(updates: List[PackageInfo], dry_run: bool) -> None:
    title = "Update Plan (Dry Run)" if dry_run else "Update Plan"

    data = [
        {
            "Package": pkg.name,
            "Current": pkg.current_version,
            "New Version": f"[bold green]{_target_version(pkg)}[/bold green]",
            "Change": colorize_change_type(pkg.change_type),
        }
        for pkg in updates
    ]

    column_styles = {
        "Package": {"style": "bold cyan", "no_wrap": True},
        "Current": {"justify": "center", "style": "dim"},
        "New Version": {"justify": "center"},
        "Change": {"justify": "center"},
    }

    print_table(data, title=title, column_styles=column_styles)


def _target_version(pkg: PackageInfo) -> str:
    """Version string as it will appear in the regenerated manifest."""
    if str(pkg.package_manager) == "pip":
        return f"=={pkg.latest_version}"
    if str(pkg.package_manager) == "pub":
        prefix = get_version_prefix(pkg.current_version)
        return (prefix if prefix in ("^", "~") else "^") + pkg.latest_version
    return get_version_prefix(pkg.current_version) + pkg.latest_version


def _confirm_update(count: int, target: Path) -> bool:
    plural = "package" if count == 1 else "packages"
    response = click.prompt(
        f"\nUpdate {count} {plural} in {target}?",
        type=click.Choice(["y", "n"], case_sensitive=False),
        default="y",
        show_choices=True,
    )
    return response.lower() == "y"
