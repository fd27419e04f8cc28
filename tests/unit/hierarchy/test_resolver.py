"""Unit tests for hierarchy/resolver.py — path resolution over parent links."""

import pytest

from mailbox_snapshot.hierarchy.models import Node, PathTable
from mailbox_snapshot.hierarchy.resolver import PathResolver, resolve_paths

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

ROOT_ID = "msgfolderroot"


def _nodes(*nodes: Node) -> dict[str, Node]:
    return {n.id: n for n in nodes}


def _inbox_tree() -> dict[str, Node]:
    return _nodes(
        Node(id="archive", parent_id="work", display_name="Archive"),
        Node(id="work", parent_id="inbox", display_name="Work"),
        Node(id="inbox", parent_id=ROOT_ID, display_name="Inbox"),
    )


# ---------------------------------------------------------------------------
# Resolution
# ---------------------------------------------------------------------------


class TestResolvePaths:
    def test_inbox_work_archive_scenario(self) -> None:
        table = resolve_paths(_inbox_tree())

        assert dict(table) == {
            "inbox": "Inbox",
            "work": "Inbox/Work",
            "archive": "Inbox/Work/Archive",
        }

    def test_returns_path_table(self) -> None:
        assert isinstance(resolve_paths(_inbox_tree()), PathTable)

    def test_node_without_parent_resolves_to_own_name(self) -> None:
        table = resolve_paths(_nodes(Node(id="a", parent_id=None, display_name="Top")))

        assert table["a"] == "Top"

    def test_empty_parent_id_is_a_root(self) -> None:
        table = resolve_paths(_nodes(Node(id="a", parent_id="", display_name="Top")))

        assert table["a"] == "Top"

    def test_parent_missing_from_map_is_treated_as_root(self) -> None:
        table = resolve_paths(
            _nodes(
                Node(id="child", parent_id="gone", display_name="Child"),
                Node(id="leaf", parent_id="child", display_name="Leaf"),
            )
        )

        assert table["child"] == "Child"
        assert table["leaf"] == "Child/Leaf"

    def test_every_node_gets_exactly_one_entry(self) -> None:
        nodes = _inbox_tree()
        nodes["sent"] = Node(id="sent", parent_id=ROOT_ID, display_name="Sent Items")

        table = resolve_paths(nodes)

        assert sorted(table) == sorted(nodes)
        assert len(table) == 4

    def test_empty_map_gives_empty_table(self) -> None:
        assert len(resolve_paths({})) == 0

    def test_result_independent_of_map_order(self) -> None:
        nodes = list(_inbox_tree().values())
        forward = resolve_paths({n.id: n for n in nodes})
        backward = resolve_paths({n.id: n for n in reversed(nodes)})

        assert dict(forward) == dict(backward)

    def test_sibling_folders_with_same_name_keep_own_ids(self) -> None:
        table = resolve_paths(
            _nodes(
                Node(id="p", parent_id=None, display_name="Projects"),
                Node(id="x1", parent_id="p", display_name="2024"),
                Node(id="x2", parent_id="p", display_name="2024"),
            )
        )

        assert table["x1"] == table["x2"] == "Projects/2024"


# ---------------------------------------------------------------------------
# Cycles and idempotence
# ---------------------------------------------------------------------------


class TestCycles:
    def test_two_node_cycle_terminates_with_partial_paths(self) -> None:
        nodes = _nodes(
            Node(id="a", parent_id="b", display_name="A"),
            Node(id="b", parent_id="a", display_name="B"),
        )

        table = resolve_paths(nodes)

        assert table["a"] == "B/A"
        assert table["b"] == "A/B"

    def test_self_parent_resolves_to_own_name(self) -> None:
        table = resolve_paths(_nodes(Node(id="a", parent_id="a", display_name="A")))

        assert table["a"] == "A"

    def test_tail_leading_into_cycle_terminates(self) -> None:
        nodes = _nodes(
            Node(id="x", parent_id="a", display_name="X"),
            Node(id="a", parent_id="b", display_name="A"),
            Node(id="b", parent_id="c", display_name="B"),
            Node(id="c", parent_id="a", display_name="C"),
        )

        table = resolve_paths(nodes)

        assert table["x"] == "C/B/A/X"
        assert all(table[node_id] for node_id in nodes)

    def test_cycle_results_do_not_depend_on_resolution_order(self) -> None:
        nodes = _nodes(
            Node(id="a", parent_id="b", display_name="A"),
            Node(id="b", parent_id="a", display_name="B"),
        )

        first = PathResolver(nodes)
        a_then_b = (first.path_for("a"), first.path_for("b"))
        second = PathResolver(nodes)
        b_then_a = (second.path_for("b"), second.path_for("a"))

        assert a_then_b == ("B/A", "A/B")
        assert b_then_a == ("A/B", "B/A")


class TestPathResolver:
    def test_path_for_is_idempotent(self) -> None:
        resolver = PathResolver(_inbox_tree())

        assert resolver.path_for("archive") == resolver.path_for("archive")

    def test_memoized_ancestors_match_direct_resolution(self) -> None:
        nodes = _inbox_tree()
        warm = PathResolver(nodes)
        warm.path_for("archive")

        assert warm.path_for("work") == PathResolver(nodes).path_for("work")
        assert warm.path_for("inbox") == "Inbox"

    def test_unknown_id_raises_key_error(self) -> None:
        with pytest.raises(KeyError):
            PathResolver(_inbox_tree()).path_for("nope")

    def test_custom_separator(self) -> None:
        resolver = PathResolver(_inbox_tree(), separator="\\")

        assert resolver.path_for("archive") == "Inbox\\Work\\Archive"
