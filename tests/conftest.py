"""Shared test fixtures."""

from __future__ import annotations

from pathlib import Path

import pytest

SDK_PROJECT = """\
<Project Sdk="Microsoft.NET.Sdk">

  <PropertyGroup>
    <TargetFramework>net8.0</TargetFramework>
  </PropertyGroup>

  <ItemGroup>
    <!-- logging -->
    <PackageReference Include="Serilog" Version="3.1.1"/>
    <PackageReference Include="Newtonsoft.Json" Version="13.0.3">
      <PrivateAssets>all</PrivateAssets>
    </PackageReference>
    <PackageReference Update="xunit" Version="2.6.2"/>
    <PackageReference Update="Moq" Version="4.20.0" PrivateAssets="all"/>
  </ItemGroup>

</Project>
"""

LEGACY_PROJECT = """\
<?xml version="1.0" encoding="utf-8"?>
<Project ToolsVersion="15.0" xmlns="http://schemas.microsoft.com/developer/msbuild/2003">
  <PropertyGroup>
    <OutputType>Exe</OutputType>
  </PropertyGroup>
  <PropertyGroup>
    <TargetFrameworkVersion>v4.7.2</TargetFrameworkVersion>
  </PropertyGroup>
  <ItemGroup>
    <Compile Include="Program.cs" />
  </ItemGroup>
  <Import Project="$(MSBuildToolsPath)\\Microsoft.CSharp.targets" />
  <Import Project="..\\..\\.paket\\Paket.Restore.targets" />
</Project>
"""

APP_CONFIG = """\
<?xml version="1.0" encoding="utf-8"?>
<configuration>
  <startup>
    <supportedRuntime version="v4.0" sku=".NETFramework,Version=v4.7.2" />
  </startup>
  <runtime>
    <assemblyBinding xmlns="urn:schemas-microsoft-com:asm.v1">
      <dependentAssembly>
        <Paket>True</Paket>
        <assemblyIdentity name="Newtonsoft.Json" publicKeyToken="30ad4fe6b2a6aeed" culture="neutral" />
        <bindingRedirect oldVersion="0.0.0.0-65535.65535.65535.65535" newVersion="13.0.0.0" />
      </dependentAssembly>
    </assemblyBinding>
  </runtime>
</configuration>
"""

PAKET_DEPENDENCIES = """\
source https://api.nuget.org/v3/index.json
framework: net472

nuget Newtonsoft.Json >= 13.0
nuget Serilog
"""

PAKET_LOCK = """\
NUGET
  remote: https://api.nuget.org/v3/index.json
    Newtonsoft.Json (13.0.3)
    Serilog (3.1.1)
      System.Diagnostics.DiagnosticSource (>= 7.0.2)
    System.Diagnostics.DiagnosticSource (7.0.2)
"""

PAKET_REFERENCES = """\
Newtonsoft.Json
Serilog # logging
"""


@pytest.fixture
def sdk_project(tmp_path: Path) -> Path:
    """Create an SDK-style project with pinned PackageReferences."""
    project = tmp_path / "src" / "Sdk" / "Sdk.csproj"
    project.parent.mkdir(parents=True)
    project.write_text(SDK_PROJECT)
    return project


@pytest.fixture
def legacy_project(tmp_path: Path) -> Path:
    """Create an old-style (namespaced) project with a paket.references file."""
    project_dir = tmp_path / "src" / "App"
    project_dir.mkdir(parents=True)
    (project_dir / "paket.references").write_text(PAKET_REFERENCES)
    (project_dir / "App.config").write_text(APP_CONFIG)
    project = project_dir / "App.csproj"
    project.write_text(LEGACY_PROJECT)
    return project


@pytest.fixture
def paket_solution(tmp_path: Path, legacy_project: Path) -> Path:
    """Create a solution directory managed by Paket."""
    (tmp_path / "paket.dependencies").write_text(PAKET_DEPENDENCIES)
    (tmp_path / "paket.lock").write_text(PAKET_LOCK)
    (tmp_path / ".paket").mkdir()
    (tmp_path / ".paket" / "Paket.Restore.targets").write_text("<Project />\n")
    (tmp_path / "paket-files").mkdir()
    cache = tmp_path / "packages" / "Serilog" / "build"
    cache.mkdir(parents=True)
    (cache / "Serilog.targets").write_text("<Project />\n")
    return tmp_path


def _write_project(path: Path, *references: str) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    items = "\n".join(f"    {ref}" for ref in references)
    path.write_text(
        '<Project Sdk="Microsoft.NET.Sdk">\n'
        "  <ItemGroup>\n"
        f"{items}\n"
        "  </ItemGroup>\n"
        "</Project>\n"
    )
    return path


@pytest.fixture
def make_project(tmp_path: Path):
    """Factory writing a minimal SDK project with the given PackageReference lines."""

    def _make(relative: str, *references: str) -> Path:
        return _write_project(tmp_path / relative, *references)

    return _make
