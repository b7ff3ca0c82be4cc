"""The version registry: one version per package name for the whole tree.

Package names are compared case-insensitively, as NuGet does. The first
spelling seen for a name is the one written to the manifest.
"""

from __future__ import annotations

from collections.abc import Iterator

from .versions import VersionStrategy, get_replace_rule


class VersionRegistry:
    """Case-insensitive mapping of package name → version.

    Built incrementally by the Paket migrator and the project extractor, then
    consumed by the manifest writer. During a revert it is filled from the
    manifest instead.
    """

    def __init__(self, strategy: VersionStrategy = VersionStrategy.ORDINAL) -> None:
        self.strategy = strategy
        self._replaces = get_replace_rule(strategy)
        # casefolded name → (original name, version)
        self._entries: dict[str, tuple[str, str]] = {}

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and name.casefold() in self._entries

    def __iter__(self) -> Iterator[str]:
        return (name for name, _ in self._entries.values())

    def get(self, name: str) -> str | None:
        entry = self._entries.get(name.casefold())
        return entry[1] if entry else None

    def set(self, name: str, version: str) -> None:
        """Insert or overwrite a version, keeping the first spelling of the name."""
        key = name.casefold()
        existing = self._entries.get(key)
        self._entries[key] = (existing[0] if existing else name, version)

    def add_if_absent(self, name: str, version: str) -> bool:
        """Insert a version only if the name is not registered yet.

        Returns:
            True if the entry was added.
        """
        if name in self:
            return False
        self._entries[name.casefold()] = (name, version)
        return True

    def offer(self, name: str, version: str) -> bool:
        """Record a version found in a project, resolving conflicts.

        New names are inserted. For a known name the strategy decides: with
        the ordinal strategy the candidate replaces the registered version
        only if it sorts strictly lower, so equal versions keep the first
        one seen.

        Returns:
            True if the registry changed (new name or replaced version).
        """
        existing = self.get(name)
        if existing is None:
            self.set(name, version)
            return True
        if self._replaces(existing, version):
            self.set(name, version)
            return True
        return False

    def sorted_items(self) -> list[tuple[str, str]]:
        """All (name, version) pairs sorted by name, case-insensitively."""
        return sorted(self._entries.values(), key=lambda item: (item[0].casefold(), item[0]))
