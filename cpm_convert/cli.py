"""CLI entry point for cpm-convert."""

from __future__ import annotations

from pathlib import Path

import click

from cpm_convert.errors import ConversionError
from cpm_convert.pipeline import discover_projects, run_convert, run_revert
from cpm_convert.versions import VersionStrategy

_directory = click.argument(
    "directory",
    type=click.Path(exists=True, file_okay=False, path_type=Path),
)
_dry_run = click.option(
    "--dry-run", is_flag=True, help="Report what would change without touching any files."
)
_force = click.option("--force", is_flag=True, help="Do not ask for confirmation.")


def _confirm(projects: list[Path], *, dry_run: bool, force: bool) -> bool:
    """Ask before rewriting project files, unless forced or simulating."""
    if force or dry_run:
        return True
    click.echo("WARNING: You are about to make changes to the following project files:")
    for project in projects:
        click.echo(f" {project.name}")
    if not click.confirm("Are you sure you want to continue?", default=False):
        click.echo("Aborting...")
        return False
    return True


@click.group()
@click.version_option(package_name="cpm-convert")
def cli() -> None:
    """Move NuGet package versions into a central Directory.Packages.props."""


@cli.command()
@_directory
@_dry_run
@_force
@click.option(
    "--versions",
    "strategy",
    type=click.Choice([s.value for s in VersionStrategy]),
    default=VersionStrategy.ORDINAL.value,
    show_default=True,
    help="How to pick between different versions of the same package.",
)
def convert(directory: Path, dry_run: bool, force: bool, strategy: str) -> None:
    """Convert a solution to central package management.

    Migrates Paket (paket.dependencies, paket.lock, paket.references) when
    present.
    """
    projects = discover_projects(directory)
    if not _confirm(projects, dry_run=dry_run, force=force):
        return
    try:
        run_convert(
            directory,
            dry_run=dry_run,
            strategy=VersionStrategy(strategy),
            projects=projects,
        )
    except ConversionError as exc:
        raise click.ClickException(str(exc)) from exc


@cli.command()
@_directory
@_dry_run
@_force
def revert(directory: Path, dry_run: bool, force: bool) -> None:
    """Put the central versions back into each project and delete the manifest."""
    projects = discover_projects(directory)
    if not _confirm(projects, dry_run=dry_run, force=force):
        return
    try:
        run_revert(directory, dry_run=dry_run, projects=projects)
    except ConversionError as exc:
        raise click.ClickException(str(exc)) from exc
