"""Path resolver — reconstructs full folder paths from parent links."""

from __future__ import annotations

import logging
from collections.abc import Mapping

from mailbox_snapshot.hierarchy.models import PATH_SEPARATOR, Node, PathTable

logger = logging.getLogger(__name__)


class PathResolver:
    """Computes the root-to-node display path of every folder in a node map.

    Parents may appear anywhere in the map, so each path is resolved by
    walking parent links upward. A walk stops at a folder whose parent is
    unset or not in the map (treated as a root), or when it would revisit a
    folder it has already passed through (a cycle); the names collected so
    far form the path.

    Paths of folders whose walk reached a root are memoized and reused by
    later walks. Paths produced by a cycle are never reused, because the
    point at which a cycle is cut depends on where the walk started.
    """

    def __init__(self, nodes: Mapping[str, Node], separator: str = PATH_SEPARATOR) -> None:
        """Initialise the resolver.

        Args:
            nodes: Complete, read-only map of folder id to Node.
            separator: String placed between folder names.
        """
        self._nodes = nodes
        self._separator = separator
        self._rooted: dict[str, str] = {}

    def path_for(self, folder_id: str) -> str:
        """Return the display path of one folder.

        Raises:
            KeyError: If folder_id is not in the node map.
        """
        cached = self._rooted.get(folder_id)
        if cached is not None:
            return cached

        current = self._nodes[folder_id]
        chain = [current]
        visited = {current.id}
        prefix: str | None = None
        cyclic = False

        while True:
            parent_id = current.parent_id
            if not parent_id or parent_id not in self._nodes:
                break
            if parent_id in visited:
                logger.warning(
                    "[path_for] parent cycle detected; folder_id:%s;parent_id:%s",
                    folder_id,
                    parent_id,
                )
                cyclic = True
                break
            if parent_id in self._rooted:
                prefix = self._rooted[parent_id]
                break
            current = self._nodes[parent_id]
            visited.add(current.id)
            chain.append(current)

        # chain runs child -> ancestor; build paths from the top down.
        path = prefix
        paths: list[tuple[str, str]] = []
        for node in reversed(chain):
            if path is None:
                path = node.display_name
            else:
                path = f"{path}{self._separator}{node.display_name}"
            paths.append((node.id, path))

        if cyclic:
            return paths[-1][1]
        self._rooted.update(paths)
        return self._rooted[folder_id]

    def resolve_all(self) -> PathTable:
        """Resolve every folder in the node map into a PathTable."""
        table = PathTable({folder_id: self.path_for(folder_id) for folder_id in self._nodes})
        logger.info("[resolve_all] resolved folder paths; folder_count:%d", len(table))
        return table


def resolve_paths(nodes: Mapping[str, Node]) -> PathTable:
    """Build the PathTable for a complete node map."""
    return PathResolver(nodes).resolve_all()
