"""Data models for cpm-convert.

These Pydantic models represent the records passed between the stages of a
conversion. The XML documents themselves live in xmldoc.XmlDocument.
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field


class PackagePin(BaseModel):
    """A package name with the version it is pinned to."""

    name: str
    version: str


class LegacyDependencyEntry(BaseModel):
    """A `nuget <name> ...` line from paket.dependencies.

    Attributes:
        name: Package name (second token of the line).
        metadata: Remaining tokens (version constraints, options). Not used
                  for the conversion, the resolved version comes from the
                  lock file.
    """

    name: str
    metadata: list[str] = Field(default_factory=list)


class LegacyLockEntry(BaseModel):
    """A root package entry from paket.lock (indented by exactly four spaces)."""

    name: str
    version: str


class IncludeDeclaration(BaseModel):
    """A `PackageReference Include=".."` node: introduces a reference."""

    kind: Literal["include"] = "include"
    name: str


class UpdateDeclaration(BaseModel):
    """A `PackageReference Update=".."` node: amends a reference made elsewhere.

    Attributes:
        remove_if_empty: The node is pruned once only the Update attribute
                         remains after its version was moved to the manifest.
    """

    kind: Literal["update"] = "update"
    name: str
    remove_if_empty: bool = True


PackageDeclaration = IncludeDeclaration | UpdateDeclaration


class ConversionResult(BaseModel):
    """Outcome of extracting versions from one project file.

    Attributes:
        path: Project file path.
        added: Pins that changed the registry (new names or replaced versions).
        conflicts: Pins that lost a conflict and were discarded.
        versions_removed: Number of Version attributes stripped.
        pruned: Update-only nodes deleted because nothing else was left.
        written: Whether the file was saved.
    """

    path: str
    added: list[PackagePin] = Field(default_factory=list)
    conflicts: list[PackagePin] = Field(default_factory=list)
    versions_removed: int = 0
    pruned: int = 0
    written: bool = False


class InjectionResult(BaseModel):
    """Outcome of replacing a paket.references file with PackageReferences."""

    path: str
    references: list[str] = Field(default_factory=list)
    configs_cleaned: list[str] = Field(default_factory=list)
    written: bool = False


class RevertResult(BaseModel):
    """Outcome of putting central versions back into one project file."""

    path: str
    restored: list[PackagePin] = Field(default_factory=list)
    skipped: list[str] = Field(default_factory=list)
    written: bool = False
