"""PackageReference handling for project files.

Provides the two rewrites at the heart of a conversion:
- convert_project moves every `Version` attribute of a project's
  PackageReference nodes into the registry and strips it from the file.
- revert_project puts the registry's versions back.

Both keep the project's formatting and comments intact.
"""

from __future__ import annotations

from pathlib import Path

from lxml import etree

from .manifest import MANIFEST_NAME
from .models import (
    ConversionResult,
    IncludeDeclaration,
    PackageDeclaration,
    PackagePin,
    RevertResult,
    UpdateDeclaration,
)
from .registry import VersionRegistry
from .report import echo
from .xmldoc import XmlDocument, get_attribute, has_child_elements, remove_node

PACKAGE_REFERENCE = "PackageReference"
INCLUDE = "Include"
UPDATE = "Update"
VERSION = "Version"


def read_declaration(node: etree._Element) -> PackageDeclaration | None:
    """Classify a PackageReference node by the attribute carrying its name.

    Include introduces a reference; Update amends one made elsewhere (for
    example in Directory.Build.props). Returns None if neither is set.
    """
    name = get_attribute(node, INCLUDE)
    if name:
        return IncludeDeclaration(name=name)
    name = get_attribute(node, UPDATE)
    if name:
        return UpdateDeclaration(name=name)
    return None


def _is_vestigial(node: etree._Element) -> bool:
    """An Update node with nothing but its Update attribute left."""
    return len(node.attrib) == 1 and not has_child_elements(node)


def convert_project(
    project: Path, registry: VersionRegistry, *, dry_run: bool = False
) -> ConversionResult:
    """Move a project's package versions into the registry.

    For each PackageReference, in document order:
    1. Remove its Version attribute.
    2. Offer the version to the registry, which keeps one version per
       package (see VersionRegistry.offer for the conflict rule).
    3. Queue Update-only nodes left without attributes or children for
       removal; they no longer change anything.

    The file is saved only if at least one version was removed.

    Args:
        project: Project file to rewrite.
        registry: Registry collecting the versions.
        dry_run: If True, do everything except saving the file.

    Returns:
        What was found, resolved and removed.
    """
    echo(f"Processing references for {project}...")

    doc = XmlDocument.load(project, preserve_whitespace=True)
    result = ConversionResult(path=str(project))
    to_remove: list[etree._Element] = []

    for node in doc.find_all(PACKAGE_REFERENCE):
        declaration = read_declaration(node)
        if declaration is None:
            continue

        version = get_attribute(node, VERSION, remove=True)
        if not version:
            continue

        if isinstance(declaration, UpdateDeclaration) and declaration.remove_if_empty:
            if _is_vestigial(node):
                to_remove.append(node)

        doc.dirty = True
        result.versions_removed += 1

        pin = PackagePin(name=declaration.name, version=version)
        if registry.offer(declaration.name, version):
            echo(f" Found new reference: {declaration.name} {version}")
            result.added.append(pin)
        else:
            kept = registry.get(declaration.name)
            echo(f" Keeping {declaration.name} {kept} (ignoring {version})")
            result.conflicts.append(pin)

    for node in to_remove:
        remove_node(node)
    result.pruned = len(to_remove)

    result.written = doc.save(dry_run=dry_run)
    return result


def revert_project(
    project: Path, registry: VersionRegistry, *, dry_run: bool = False
) -> RevertResult:
    """Put central versions back on a project's PackageReference nodes.

    Packages without a registry entry are reported and left unversioned;
    this is not an error.

    Args:
        project: Project file to rewrite.
        registry: Registry filled from Directory.Packages.props.
        dry_run: If True, do everything except saving the file.
    """
    doc = XmlDocument.load(project, preserve_whitespace=True)
    result = RevertResult(path=str(project))

    for node in doc.find_all(PACKAGE_REFERENCE):
        declaration = read_declaration(node)
        if declaration is None:
            continue

        version = registry.get(declaration.name)
        if version is None:
            echo(f"No version found in {MANIFEST_NAME} file for {declaration.name}! Skipping...")
            result.skipped.append(declaration.name)
            continue

        node.set(VERSION, version)
        doc.dirty = True
        result.restored.append(PackagePin(name=declaration.name, version=version))

    result.written = doc.save(dry_run=dry_run)
    return result
