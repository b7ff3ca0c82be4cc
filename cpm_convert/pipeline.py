"""Conversion pipeline: discover → migrate Paket → convert → write manifest.

This module orchestrates both directions of a cpm-convert run:

Convert:
1. Discover all project files below the solution directory
2. Seed the registry from paket.dependencies / paket.lock (if present)
3. Strip versions from every project's PackageReferences into the registry
4. Replace paket.references files with PackageReferences
5. Write Directory.Packages.props

Revert:
1. Read Directory.Packages.props into the registry
2. Put the versions back on every project's PackageReferences
3. Delete Directory.Packages.props

Projects are processed one at a time, sorted by file name, so the version
conflict rule always sees them in the same order.
"""

from __future__ import annotations

from pathlib import Path

from .manifest import MANIFEST_NAME, read_manifest, write_manifest
from .models import RevertResult
from .paket import DEPENDENCIES_FILE, migrate_paket
from .paket_references import convert_references_file
from .references import convert_project, revert_project
from .registry import VersionRegistry
from .report import echo, step
from .versions import VersionStrategy

PROJECT_EXTENSIONS = frozenset({".csproj", ".vbproj", ".props", ".targets"})

DRY_RUN_BANNER = "Dry run enabled - no changes will be made on disk."


def discover_projects(root: Path) -> list[Path]:
    """Find every project, props and targets file below root.

    The manifest itself is excluded. Files are sorted by name (then by path,
    for files sharing a name) so runs are deterministic.
    """
    projects = [
        path for path in root.rglob("*")
        if path.is_file()
        and path.suffix.lower() in PROJECT_EXTENSIONS
        and path.name != MANIFEST_NAME
    ]
    return sorted(projects, key=lambda p: (p.name, str(p)))


def run_convert(
    root: Path,
    *,
    dry_run: bool = False,
    strategy: VersionStrategy = VersionStrategy.ORDINAL,
    projects: list[Path] | None = None,
) -> VersionRegistry:
    """Move every pinned version below root into Directory.Packages.props.

    Args:
        root: Solution directory.
        dry_run: If True, report everything but leave the files on disk
                 untouched (app/web.config cleanup excepted).
        strategy: How conflicting versions of the same package are resolved.
        projects: Project files to process; discovered when not given.

    Returns:
        The registry the manifest was written from.
    """
    if dry_run:
        echo(DRY_RUN_BANNER)

    if projects is None:
        projects = discover_projects(root)
    registry = VersionRegistry(strategy)

    if (root / DEPENDENCIES_FILE).exists():
        step("Migrating Paket dependencies")
        migrate_paket(root, registry, dry_run=dry_run)

    step(f"Converting {len(projects)} project files")
    for project in projects:
        # Projects inside removed Paket directories are gone by now
        if not project.exists():
            continue
        convert_project(project, registry, dry_run=dry_run)
        convert_references_file(project, dry_run=dry_run)

    manifest_path = root / MANIFEST_NAME
    if len(registry):
        step(f"Writing {MANIFEST_NAME}")
        write_manifest(manifest_path, registry, dry_run=dry_run)
    else:
        echo("No versioned references found in project files!")

    return registry


def run_revert(
    root: Path,
    *,
    dry_run: bool = False,
    projects: list[Path] | None = None,
) -> list[RevertResult]:
    """Move the versions of Directory.Packages.props back into the projects.

    Args:
        root: Solution directory containing Directory.Packages.props.
        dry_run: If True, report everything but leave the files on disk untouched.
        projects: Project files to process; discovered when not given.

    Raises:
        MissingFileError: If there is no Directory.Packages.props.
    """
    if dry_run:
        echo(DRY_RUN_BANNER)

    if projects is None:
        projects = discover_projects(root)
    manifest_path = root / MANIFEST_NAME

    step(f"Reading {MANIFEST_NAME}")
    registry = VersionRegistry()
    read_manifest(manifest_path, registry)

    step(f"Reverting {len(projects)} project files")
    results = [revert_project(project, registry, dry_run=dry_run) for project in projects]

    echo(f"Deleting {manifest_path}...")
    if not dry_run:
        manifest_path.unlink()

    return results
