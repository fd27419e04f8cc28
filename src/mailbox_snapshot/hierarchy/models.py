"""Data models for the folder hierarchy: nodes and the resolved path table."""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from dataclasses import dataclass
from types import MappingProxyType

PATH_SEPARATOR = "/"


class NotFoundError(LookupError):
    """Raised when an exactly-one lookup matches nothing."""


class AmbiguousResultError(LookupError):
    """Raised when an exactly-one lookup matches more than one entry."""


@dataclass(frozen=True)
class Node:
    """A folder in a parent-linked hierarchy.

    Attributes:
        id: Unique folder identifier.
        parent_id: Identifier of the parent folder, or None for a root.
        display_name: Folder name as shown to the user.
    """

    id: str
    parent_id: str | None
    display_name: str


class PathTable(Mapping[str, str]):
    """Read-only mapping of folder id to its fully-qualified display path."""

    def __init__(self, paths: Mapping[str, str]) -> None:
        self._paths = MappingProxyType(dict(paths))

    def __getitem__(self, folder_id: str) -> str:
        return self._paths[folder_id]

    def __iter__(self) -> Iterator[str]:
        return iter(self._paths)

    def __len__(self) -> int:
        return len(self._paths)

    def __repr__(self) -> str:
        return f"PathTable({dict(self._paths)!r})"

    def find_id(self, path: str) -> str:
        """Return the id of the single folder whose path equals ``path``.

        Sibling folders may share a display name, so a path is not guaranteed
        to be unique.

        Raises:
            NotFoundError: If no folder has this path.
            AmbiguousResultError: If several folders have this path.
        """
        matches = [folder_id for folder_id, value in self._paths.items() if value == path]
        if not matches:
            raise NotFoundError(f"No folder with path {path!r}")
        if len(matches) > 1:
            raise AmbiguousResultError(f"{len(matches)} folders share the path {path!r}")
        return matches[0]
