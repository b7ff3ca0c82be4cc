"""Exceptions raised by the conversion engine.

Every error here aborts the whole run. Non-fatal conditions (a revert that
finds no central version for a package, a version conflict between two
projects) are reported instead of raised.
"""

from __future__ import annotations

from pathlib import Path


class ConversionError(Exception):
    """Base class for fatal conversion errors."""


class MissingFileError(ConversionError):
    """A file required by the run does not exist or cannot be read."""

    def __init__(self, path: Path, reason: str | None = None) -> None:
        self.path = path
        message = f"Required file not found: {path}"
        if reason:
            message = f"{message} ({reason})"
        super().__init__(message)


class DocumentParseError(ConversionError):
    """A project, manifest or config file is not well-formed XML."""

    def __init__(self, path: Path | None, detail: str) -> None:
        self.path = path
        super().__init__(f"Failed to parse {path or '<string>'}: {detail}")


class PaketLookupError(ConversionError):
    """A package from paket.dependencies has no root entry in paket.lock."""

    def __init__(self, package: str, lock_path: Path) -> None:
        self.package = package
        super().__init__(f"Package {package} from paket.dependencies not found in {lock_path}")
