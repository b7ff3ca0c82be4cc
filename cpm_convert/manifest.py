"""Directory.Packages.props reading and writing.

The manifest enables NuGet central package management for every project
below it and pins one version per package:

    <Project>
      <PropertyGroup>
        <ManagePackageVersionsCentrally>true</ManagePackageVersionsCentrally>
      </PropertyGroup>
      <ItemGroup>
        <PackageVersion Include="SomeLib" Version="3.2.1"/>
      </ItemGroup>
    </Project>

The file is always regenerated from the registry; an existing manifest is
overwritten, not merged.
"""

from __future__ import annotations

from pathlib import Path

from lxml import etree

from .registry import VersionRegistry
from .report import echo
from .xmldoc import XmlDocument, get_attribute

MANIFEST_NAME = "Directory.Packages.props"

PACKAGE_VERSION = "PackageVersion"

# Implicit references cause build error NU1009 with central package
# management, so they are never pinned in the manifest
IMPLICIT_REFERENCES = frozenset(name.casefold() for name in ["NETStandard.Library"])


def render_manifest(registry: VersionRegistry) -> str:
    """Build the manifest text for every pinnable package, sorted by name."""
    project = etree.Element("Project")
    properties = etree.SubElement(project, "PropertyGroup")
    etree.SubElement(properties, "ManagePackageVersionsCentrally").text = "true"
    items = etree.SubElement(project, "ItemGroup")

    for name, version in registry.sorted_items():
        if name.casefold() in IMPLICIT_REFERENCES:
            continue
        etree.SubElement(items, PACKAGE_VERSION, Include=name, Version=version)

    return etree.tostring(project, encoding="unicode", pretty_print=True)


def write_manifest(path: Path, registry: VersionRegistry, *, dry_run: bool = False) -> str:
    """Write the registry to Directory.Packages.props.

    In a dry run the manifest is printed instead of written.

    Returns:
        The manifest text.
    """
    text = render_manifest(registry)
    echo(f"Writing {len(registry)} refs to {MANIFEST_NAME} to {path}...")

    if dry_run:
        for line in text.splitlines():
            echo(line)
    else:
        path.write_text(text, encoding="utf-8")
    return text


def read_manifest(path: Path, registry: VersionRegistry) -> int:
    """Load every PackageVersion of a manifest into the registry.

    Later entries for the same name overwrite earlier ones. Entries missing
    their Include or Version attribute are skipped.

    Returns:
        Number of entries read.

    Raises:
        MissingFileError: If the manifest does not exist.
        DocumentParseError: If the manifest is not well-formed XML.
    """
    doc = XmlDocument.load(path, preserve_whitespace=False)

    count = 0
    for node in doc.find_all(PACKAGE_VERSION):
        name = get_attribute(node, "Include")
        version = get_attribute(node, "Version")
        if not name or version is None:
            echo(f"Skipping incomplete {PACKAGE_VERSION} entry on line {node.sourceline}")
            continue
        registry.set(name, version)
        count += 1

    echo(f"Read {len(registry)} references from {path}")
    return count
