"""Paket migration: seed the registry from paket.dependencies and paket.lock.

paket.dependencies names the packages a solution asks for; paket.lock holds
the versions Paket actually resolved. Root packages in the lock file are
indented by exactly four spaces, their transitive dependencies by six:

    NUGET
      remote: https://api.nuget.org/v3/index.json
        SomeLib (3.2.1)
          TransitiveDep (>= 0.1.0)

Once the versions are in the registry, the Paket artifacts (lock file,
dependencies file, .paket/, paket-files/ and the packages/ cache) are
deleted.
"""

from __future__ import annotations

import shutil
from pathlib import Path

from .errors import MissingFileError, PaketLookupError
from .models import LegacyDependencyEntry, LegacyLockEntry
from .registry import VersionRegistry
from .report import echo

DEPENDENCIES_FILE = "paket.dependencies"
LOCK_FILE = "paket.lock"
PACKAGES_DIR = "packages"
PAKET_DIR = ".paket"
PAKET_FILES_DIR = "paket-files"

_KEYWORD = "nuget"
_ROOT_INDENT = " " * 4


def _read_lines(path: Path) -> list[str]:
    try:
        return path.read_text(encoding="utf-8-sig").splitlines()
    except OSError as exc:
        raise MissingFileError(path, exc.strerror) from exc


def parse_dependencies_file(path: Path) -> list[LegacyDependencyEntry]:
    """Read the `nuget <name> [metadata...]` lines of paket.dependencies.

    Raises:
        MissingFileError: If the file does not exist.
    """
    entries: list[LegacyDependencyEntry] = []
    for line in _read_lines(path):
        if not line.startswith(_KEYWORD):
            continue
        tokens = line.split()
        # "nugetfoo" or a bare "nuget" line is not a package declaration
        if tokens[0] != _KEYWORD or len(tokens) < 2:
            continue
        entries.append(LegacyDependencyEntry(name=tokens[1], metadata=tokens[2:]))
    return entries


def parse_lock_file(path: Path) -> list[LegacyLockEntry]:
    """Read the root package entries of paket.lock.

    Only lines indented by exactly four spaces are root packages; deeper
    indented lines are transitive dependencies and are skipped. The version
    token is stripped of its parentheses: `SomeLib (3.2.1)` → 3.2.1.

    Raises:
        MissingFileError: If the file does not exist.
    """
    entries: list[LegacyLockEntry] = []
    for line in _read_lines(path):
        if not line.startswith(_ROOT_INDENT) or line[len(_ROOT_INDENT):].startswith(" "):
            continue
        tokens = line.split()
        if len(tokens) < 2:
            continue
        entries.append(LegacyLockEntry(name=tokens[0], version=tokens[1].strip("()")))
    return entries


def migrate_paket(
    root: Path, registry: VersionRegistry, *, dry_run: bool = False
) -> list[LegacyLockEntry]:
    """Seed the registry from Paket's files, then remove Paket from the tree.

    Packages named in paket.dependencies go in first, with their locked
    versions, followed by every other root package of the lock file. Both
    passes only add names the registry does not have yet.

    Args:
        root: Solution directory containing paket.dependencies and paket.lock.
        registry: Registry to seed.
        dry_run: If True, leave the Paket files and directories on disk.

    Returns:
        The lock entries that were added to the registry.

    Raises:
        MissingFileError: If either Paket file is missing.
        PaketLookupError: If a declared package has no root lock entry.
    """
    dependencies_file = root / DEPENDENCIES_FILE
    lock_file = root / LOCK_FILE

    declared = parse_dependencies_file(dependencies_file)
    locked = parse_lock_file(lock_file)

    # Paket package names are case-insensitive; when several lock groups
    # pin the same package, the first one wins
    lock_versions: dict[str, LegacyLockEntry] = {}
    for entry in locked:
        lock_versions.setdefault(entry.name.casefold(), entry)

    added: list[LegacyLockEntry] = []
    for dep in declared:
        entry = lock_versions.get(dep.name.casefold())
        if entry is None:
            raise PaketLookupError(dep.name, lock_file)
        if registry.add_if_absent(dep.name, entry.version):
            added.append(LegacyLockEntry(name=dep.name, version=entry.version))

    for entry in lock_versions.values():
        if registry.add_if_absent(entry.name, entry.version):
            added.append(entry)

    echo(f"Read {len(added)} references from {dependencies_file} and {lock_file}")

    remove_paket_artifacts(root, dry_run=dry_run)
    return added


def remove_paket_artifacts(root: Path, *, dry_run: bool = False) -> None:
    """Delete the packages cache, Paket's directories and its two files.

    A missing packages/ directory is reported because it may live somewhere
    else and must then be removed by hand. Other missing items are skipped.
    """
    packages_dir = root / PACKAGES_DIR
    if not packages_dir.is_dir():
        echo("Packages directory not found, you must delete it manually.")
    elif not dry_run:
        shutil.rmtree(packages_dir)

    if dry_run:
        return

    for directory in (root / PAKET_DIR, root / PAKET_FILES_DIR):
        if directory.is_dir():
            shutil.rmtree(directory)

    for file in (root / DEPENDENCIES_FILE, root / LOCK_FILE):
        if file.exists():
            file.unlink()
