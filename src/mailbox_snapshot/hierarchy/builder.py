"""Folder graph builder — materializes the full node set ahead of path resolution."""

from __future__ import annotations

import logging
from collections.abc import Iterable

from mailbox_snapshot.hierarchy.models import Node

logger = logging.getLogger(__name__)


class InvalidNodeError(ValueError):
    """Raised when a folder record lacks its id."""


class DuplicateIdError(ValueError):
    """Raised when two different folders arrive with the same id."""

    def __init__(self, first: Node, second: Node) -> None:
        super().__init__(f"Duplicate folder id {first.id!r}: {first!r} vs {second!r}")
        self.first = first
        self.second = second


def build_node_map(nodes: Iterable[Node]) -> dict[str, Node]:
    """Drain a folder sequence into a map of id to node.

    The sequence is consumed to completion. A node repeated with identical
    content is ignored; a repeated id with different content is an error.

    Args:
        nodes: Hierarchy-eligible folders, in any order.

    Returns:
        Mapping of folder id to Node.

    Raises:
        InvalidNodeError: If a node has no id. No partial map is returned.
        DuplicateIdError: If an id is seen twice with differing content.
    """
    nodes_by_id: dict[str, Node] = {}
    for node in nodes:
        if not node.id:
            logger.error(
                "[build_node_map] folder without id; display_name:%s", node.display_name
            )
            raise InvalidNodeError(f"Folder {node.display_name!r} has no id")
        existing = nodes_by_id.get(node.id)
        if existing is None:
            nodes_by_id[node.id] = node
        elif existing != node:
            raise DuplicateIdError(existing, node)
        else:
            logger.debug("[build_node_map] ignoring repeated folder; id:%s", node.id)
    logger.info("[build_node_map] folder graph built; folder_count:%d", len(nodes_by_id))
    return nodes_by_id
