"""Tests for cpm_convert.references."""

from __future__ import annotations

from pathlib import Path

import pytest
from lxml import etree

from cpm_convert.models import IncludeDeclaration, UpdateDeclaration
from cpm_convert.references import convert_project, read_declaration, revert_project
from cpm_convert.registry import VersionRegistry
from cpm_convert.xmldoc import XmlDocument


def _references(path: Path) -> list[dict[str, str]]:
    doc = XmlDocument.load(path)
    return [dict(node.attrib) for node in doc.find_all("PackageReference")]


class TestReadDeclaration:
    def test_include(self) -> None:
        node = etree.Element("PackageReference", Include="Serilog")
        assert read_declaration(node) == IncludeDeclaration(name="Serilog")

    def test_update(self) -> None:
        node = etree.Element("PackageReference", Update="xunit")
        assert read_declaration(node) == UpdateDeclaration(name="xunit")

    def test_empty_include_falls_back_to_update(self) -> None:
        node = etree.Element("PackageReference", Include="", Update="xunit")
        assert isinstance(read_declaration(node), UpdateDeclaration)

    def test_no_name(self) -> None:
        assert read_declaration(etree.Element("PackageReference", Version="1.0")) is None


class TestConvertProject:
    def test_collects_versions(self, sdk_project: Path) -> None:
        registry = VersionRegistry()
        result = convert_project(sdk_project, registry)

        assert registry.sorted_items() == [
            ("Moq", "4.20.0"),
            ("Newtonsoft.Json", "13.0.3"),
            ("Serilog", "3.1.1"),
            ("xunit", "2.6.2"),
        ]
        assert result.versions_removed == 4
        assert [pin.name for pin in result.added] == ["Serilog", "Newtonsoft.Json", "xunit", "Moq"]
        assert result.written

    def test_strips_versions(self, sdk_project: Path) -> None:
        convert_project(sdk_project, VersionRegistry())
        refs = _references(sdk_project)
        assert all("Version" not in attrib for attrib in refs)

    def test_prunes_vestigial_update_nodes(self, sdk_project: Path) -> None:
        result = convert_project(sdk_project, VersionRegistry())
        assert result.pruned == 1
        assert _references(sdk_project) == [
            {"Include": "Serilog"},
            {"Include": "Newtonsoft.Json"},
            {"Update": "Moq", "PrivateAssets": "all"},
        ]

    def test_keeps_include_nodes_even_when_empty(self, make_project) -> None:
        project = make_project("A/A.csproj", '<PackageReference Include="Serilog" Version="3.1.1"/>')
        convert_project(project, VersionRegistry())
        assert _references(project) == [{"Include": "Serilog"}]

    def test_keeps_update_nodes_with_children(self, make_project) -> None:
        project = make_project(
            "A/A.csproj",
            '<PackageReference Update="xunit" Version="2.6.2"><PrivateAssets>all</PrivateAssets></PackageReference>',
        )
        result = convert_project(project, VersionRegistry())
        assert result.pruned == 0
        assert _references(project) == [{"Update": "xunit"}]

    def test_preserves_formatting(self, sdk_project: Path) -> None:
        convert_project(sdk_project, VersionRegistry())
        text = sdk_project.read_text()
        assert text.startswith('<Project Sdk="Microsoft.NET.Sdk">\n\n  <PropertyGroup>\n')
        assert "    <!-- logging -->\n" in text
        assert '    <PackageReference Include="Serilog"/>\n' in text
        # the pruned xunit line leaves no blank line behind
        assert '    </PackageReference>\n    <PackageReference Update="Moq" PrivateAssets="all"/>\n  </ItemGroup>' in text
        assert text.endswith("\n</Project>\n")

    def test_preserves_crlf_line_endings(self, tmp_path: Path) -> None:
        project = tmp_path / "Win.csproj"
        project.write_bytes(
            b'<?xml version="1.0" encoding="utf-8"?>\r\n'
            b'<Project Sdk="Microsoft.NET.Sdk">\r\n'
            b"  <ItemGroup>\r\n"
            b'    <PackageReference Include="A" Version="1.0.0" />\r\n'
            b'    <PackageReference Update="B" Version="2.0.0" />\r\n'
            b"  </ItemGroup>\r\n"
            b"</Project>\r\n"
        )

        convert_project(project, VersionRegistry())

        assert project.read_bytes() == (
            b'<?xml version="1.0" encoding="utf-8"?>\r\n'
            b'<Project Sdk="Microsoft.NET.Sdk">\r\n'
            b"  <ItemGroup>\r\n"
            b'    <PackageReference Include="A"/>\r\n'
            b"  </ItemGroup>\r\n"
            b"</Project>\r\n"
        )

    def test_namespaced_project(self, tmp_path: Path) -> None:
        project = tmp_path / "Old.csproj"
        project.write_text(
            '<Project xmlns="http://schemas.microsoft.com/developer/msbuild/2003">\n'
            '  <ItemGroup>\n    <PackageReference Include="Serilog" Version="3.1.1" />\n  </ItemGroup>\n'
            "</Project>\n"
        )
        registry = VersionRegistry()
        convert_project(project, registry)
        assert registry.get("Serilog") == "3.1.1"

    def test_unversioned_project_is_not_written(self, make_project) -> None:
        project = make_project("A/A.csproj", '<PackageReference Include="Serilog"  />')
        before = project.read_bytes()

        result = convert_project(project, VersionRegistry())

        assert not result.written
        assert project.read_bytes() == before

    def test_conflict_keeps_lower_string(
        self, make_project, capsys: pytest.CaptureFixture[str]
    ) -> None:
        first = make_project("A/A.csproj", '<PackageReference Include="PkgX" Version="1.0.0"/>')
        second = make_project("B/B.csproj", '<PackageReference Include="pkgx" Version="2.0.0"/>')
        registry = VersionRegistry()

        convert_project(first, registry)
        result = convert_project(second, registry)

        assert registry.get("PkgX") == "1.0.0"
        assert result.added == []
        assert [pin.version for pin in result.conflicts] == ["2.0.0"]
        # the losing version is still removed from the file
        assert _references(second) == [{"Include": "pkgx"}]
        out = capsys.readouterr().out
        assert " Found new reference: PkgX 1.0.0" in out
        assert " Keeping pkgx 1.0.0 (ignoring 2.0.0)" in out

    def test_reports_new_references(self, sdk_project: Path, capsys: pytest.CaptureFixture[str]) -> None:
        convert_project(sdk_project, VersionRegistry())
        out = capsys.readouterr().out
        assert f"Processing references for {sdk_project}..." in out
        assert " Found new reference: Serilog 3.1.1" in out

    def test_dry_run(self, sdk_project: Path, capsys: pytest.CaptureFixture[str]) -> None:
        before = sdk_project.read_bytes()
        dry_registry = VersionRegistry()

        result = convert_project(sdk_project, dry_registry, dry_run=True)
        dry_out = capsys.readouterr().out

        assert not result.written
        assert result.pruned == 1
        assert sdk_project.read_bytes() == before

        registry = VersionRegistry()
        convert_project(sdk_project, registry)
        assert capsys.readouterr().out == dry_out
        assert registry.sorted_items() == dry_registry.sorted_items()


class TestRevertProject:
    def test_restores_versions(self, make_project) -> None:
        project = make_project(
            "A/A.csproj",
            '<PackageReference Include="Serilog"/>',
            '<PackageReference Update="Moq" PrivateAssets="all"/>',
        )
        registry = VersionRegistry()
        registry.set("serilog", "3.1.1")
        registry.set("Moq", "4.20.0")

        result = revert_project(project, registry)

        assert result.written
        assert _references(project) == [
            {"Include": "Serilog", "Version": "3.1.1"},
            {"Update": "Moq", "PrivateAssets": "all", "Version": "4.20.0"},
        ]

    def test_missing_version_is_skipped(
        self, make_project, capsys: pytest.CaptureFixture[str]
    ) -> None:
        project = make_project(
            "A/A.csproj",
            '<PackageReference Include="Foo"/>',
            '<PackageReference Include="Serilog"/>',
        )
        registry = VersionRegistry()
        registry.set("Serilog", "3.1.1")

        result = revert_project(project, registry)

        assert result.skipped == ["Foo"]
        assert _references(project) == [
            {"Include": "Foo"},
            {"Include": "Serilog", "Version": "3.1.1"},
        ]
        assert (
            "No version found in Directory.Packages.props file for Foo! Skipping..."
            in capsys.readouterr().out
        )

    def test_nothing_to_restore(self, make_project) -> None:
        project = make_project("A/A.csproj", '<PackageReference Include="Foo"  />')
        before = project.read_bytes()
        result = revert_project(project, VersionRegistry())
        assert not result.written
        assert project.read_bytes() == before

    def test_dry_run(self, make_project) -> None:
        project = make_project("A/A.csproj", '<PackageReference Include="Serilog"/>')
        before = project.read_bytes()
        registry = VersionRegistry()
        registry.set("Serilog", "3.1.1")

        result = revert_project(project, registry, dry_run=True)

        assert [pin.version for pin in result.restored] == ["3.1.1"]
        assert not result.written
        assert project.read_bytes() == before

    def test_preserves_formatting(self, make_project) -> None:
        project = make_project("A/A.csproj", "<!-- keep -->", '<PackageReference Include="Serilog"/>')
        registry = VersionRegistry()
        registry.set("Serilog", "3.1.1")
        revert_project(project, registry)
        assert project.read_text() == (
            '<Project Sdk="Microsoft.NET.Sdk">\n'
            "  <ItemGroup>\n"
            "    <!-- keep -->\n"
            '    <PackageReference Include="Serilog" Version="3.1.1"/>\n'
            "  </ItemGroup>\n"
            "</Project>\n"
        )
