"""Replace a project's paket.references file with PackageReference items.

paket.references lists one package per line, optionally followed by Paket
settings and a `#` comment:

    Newtonsoft.Json
    Serilog copy_local: true   # logging

Each package becomes an unversioned `<PackageReference Include=".."/>`; the
version comes from the central manifest. The Paket targets import is
removed from the project, and the binding redirects Paket generated into
app.config / web.config files are cleaned up.
"""

from __future__ import annotations

from pathlib import Path

from lxml import etree

from .models import InjectionResult
from .report import echo
from .xmldoc import (
    XmlDocument,
    get_attribute,
    has_child_elements,
    insert_after,
    insert_before,
    local_name,
    remove_node,
)

REFERENCES_FILE = "paket.references"
PAKET_IMPORT_MARKER = ".paket"

ASM_NS = "urn:schemas-microsoft-com:asm.v1"
DEPENDENT_ASSEMBLY = f"{{{ASM_NS}}}dependentAssembly"
PAKET_MARKER = f"{{{ASM_NS}}}Paket"

_COMMENT = "#"
_CONFIG_SUFFIX = ".config"
_CONFIG_MARKERS = ("app.", "web.")


def read_references_file(path: Path) -> list[tuple[str, str | None]]:
    """Split the non-empty lines of paket.references into (declaration, comment).

    Only the text between the first and second `#` is kept as the comment;
    the comment is None when there is none.
    """
    lines: list[tuple[str, str | None]] = []
    for line in path.read_text(encoding="utf-8-sig").splitlines():
        if not line:
            continue
        parts = line.split(_COMMENT)
        comment = parts[1] if len(parts) > 1 and parts[1] else None
        lines.append((parts[0], comment))
    return lines


def _comment_text(text: str) -> str:
    """Make free text legal inside an XML comment.

    `--` may not appear in a comment and it may not end with `-`; both are
    split with a space, as MSBuild's own writer does.
    """
    while "--" in text:
        text = text.replace("--", "- -")
    if text.endswith("-"):
        text += " "
    return text


def _find_or_create_group(doc: XmlDocument) -> etree._Element:
    """Return the ItemGroup holding PackageReferences, creating one if needed.

    A new group goes where Visual Studio would put it: before the
    ProjectReference group, else after the last top-level PropertyGroup,
    else at the end of the project.
    """
    existing = doc.find_first("PackageReference")
    if existing is not None:
        return existing.getparent()

    group = doc.make_element("ItemGroup")

    project_reference = doc.find_first("ProjectReference")
    if project_reference is not None:
        insert_before(project_reference.getparent(), group)
        return group

    property_groups = [
        child for child in doc.root.iterchildren(etree.Element)
        if local_name(child) == "PropertyGroup"
    ]
    if property_groups:
        insert_after(property_groups[-1], group)
    else:
        doc.root.append(group)
    return group


def inject_references(doc: XmlDocument, lines: list[tuple[str, str | None]]) -> list[str]:
    """Add an unversioned PackageReference for every paket.references line.

    Comments are carried over as XML comments ahead of their package. Paket
    settings after the package name are dropped.

    Returns:
        The package names added, in file order.
    """
    if not lines:
        return []

    group = _find_or_create_group(doc)
    added: list[str] = []
    for declaration, comment in lines:
        if comment:
            group.append(etree.Comment(_comment_text(comment)))
        tokens = declaration.split()
        if tokens:
            group.append(doc.make_element("PackageReference", Include=tokens[0]))
            added.append(tokens[0])
    return added


def remove_paket_import(doc: XmlDocument, *, dry_run: bool = False) -> int:
    """Remove `<Import Project="..\\.paket\\Paket.Restore.targets"/>` style nodes.

    The nodes are looked up in a dry run too, but only removed otherwise.

    Returns:
        Number of imports found.
    """
    imports = [
        node for node in doc.find_all("Import")
        if PAKET_IMPORT_MARKER in (get_attribute(node, "Project") or "")
    ]
    if not dry_run:
        for node in imports:
            remove_node(node)
    return len(imports)


def _is_paket_generated(assembly: etree._Element) -> bool:
    markers = list(assembly.iter(PAKET_MARKER))
    return bool(markers) and all(marker.text == "True" for marker in markers)


def clean_binding_redirects(config: Path) -> int:
    """Remove Paket-generated binding redirects from a runtime config file.

    A dependentAssembly block is Paket's if every `<Paket>` flag inside it
    is True. When the blocks are gone and their assemblyBinding has no
    elements left, the assemblyBinding is removed too.

    The file is always written back, in a dry run as well.

    Returns:
        Number of dependentAssembly blocks removed.
    """
    doc = XmlDocument.load(config, preserve_whitespace=False)

    generated = [node for node in doc.root.iter(DEPENDENT_ASSEMBLY) if _is_paket_generated(node)]
    binding = generated[0].getparent() if generated else None
    for node in generated:
        remove_node(node)
    if binding is not None and not has_child_elements(binding):
        remove_node(binding)

    doc.write()
    return len(generated)


def find_runtime_configs(directory: Path) -> list[Path]:
    """List app/web .config files in a project directory."""
    configs = []
    for path in sorted(directory.iterdir()):
        name = path.name.lower()
        if not path.is_file() or not name.endswith(_CONFIG_SUFFIX):
            continue
        if any(marker in name for marker in _CONFIG_MARKERS):
            configs.append(path)
    return configs


def convert_references_file(project: Path, *, dry_run: bool = False) -> InjectionResult | None:
    """Replace the paket.references file next to a project.

    Returns:
        None if the project directory has no paket.references file.
    """
    references_file = project.parent / REFERENCES_FILE
    if not references_file.exists():
        return None

    doc = XmlDocument.load(project, preserve_whitespace=False)
    result = InjectionResult(path=str(project))

    result.references = inject_references(doc, read_references_file(references_file))
    remove_paket_import(doc, dry_run=dry_run)

    for config in find_runtime_configs(project.parent):
        clean_binding_redirects(config)
        result.configs_cleaned.append(str(config))

    echo(f"Deleting {references_file}")
    doc.dirty = True
    result.written = doc.save(dry_run=dry_run)
    if not dry_run:
        references_file.unlink()
    return result
