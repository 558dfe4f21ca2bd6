"""
Tests for the tree layout.

Covers:
- Geometric spacing per viewport class
- Pre-order node emission and one edge per non-root node
- Unfetched vs empty sides
- Collapsed visibility projection
- Determinism
"""

import json

import pytest

from reftree.models.graph import NodeKind, ViewportClass
from reftree.models.tree import UNFETCHED, EmptySlot, Side, TreeNode
from reftree.services.tree.layout import (
    LAYOUT_CONFIGS,
    graph_bounds,
    layout,
    viewport_for_width,
)
from reftree.services.tree.parser import parse_node


def _full_tree(depth: int, prefix: str = "n") -> TreeNode:
    """Complete binary tree with empty slots under the last level."""
    if depth == 0:
        return TreeNode(
            id=prefix,
            username=prefix,
            left=EmptySlot(prefix, prefix, Side.LEFT),
            right=EmptySlot(prefix, prefix, Side.RIGHT),
            children_fetched=True,
        )
    return TreeNode(
        id=prefix,
        username=prefix,
        left=_full_tree(depth - 1, prefix + "L"),
        right=_full_tree(depth - 1, prefix + "R"),
        children_fetched=True,
    )


class TestEndToEndScenario:
    """alice with an empty left slot and unfetched bob on the right."""

    def test_three_nodes_two_edges(self, sample_alice_tree):
        graph = layout(parse_node(sample_alice_tree, viewer_id="1"))

        assert [n.id for n in graph.nodes] == ["member-1", "empty-1-left", "member-2"]
        assert len(graph.edges) == 2
        assert graph.root_id == "member-1"

    def test_positions(self, sample_alice_tree):
        graph = layout(parse_node(sample_alice_tree, viewer_id="1"))

        alice = graph.node("member-1")
        slot = graph.node("empty-1-left")
        bob = graph.node("member-2")
        assert (alice.x, alice.y) == (0.0, 0.0)
        assert (slot.x, slot.y) == (-200.0, 200.0)
        assert (bob.x, bob.y) == (200.0, 200.0)

    def test_empty_slot_data(self, sample_alice_tree):
        graph = layout(parse_node(sample_alice_tree, viewer_id="1"))
        slot = graph.empty_slots()[0]

        assert slot.kind == NodeKind.EMPTY
        assert slot.fields == {"parent_id": "1", "parent_label": "alice", "side": "left"}


class TestSpacing:
    """Tests for the geometric offsets."""

    def test_second_level_offset_decays(self):
        graph = layout(_full_tree(2))

        assert graph.node("member-nL").x == pytest.approx(-200.0)
        assert graph.node("member-nLL").x == pytest.approx(-360.0)
        assert graph.node("member-nLR").x == pytest.approx(-40.0)
        assert graph.node("member-nLL").y == 400

    def test_compact_spacing(self):
        graph = layout(_full_tree(1), ViewportClass.COMPACT)

        assert graph.viewport == ViewportClass.COMPACT
        assert graph.node("member-nR").x == pytest.approx(140.0)
        assert graph.node("member-nR").y == 160

    def test_width_is_bounded(self):
        graph = layout(_full_tree(8))
        min_x, _, max_x, _ = graph_bounds(graph)
        bound = LAYOUT_CONFIGS[ViewportClass.STANDARD].max_half_width()

        assert bound == pytest.approx(1000.0)
        assert -bound < min_x
        assert max_x < bound

    @pytest.mark.parametrize(
        "width,expected",
        [(320, ViewportClass.COMPACT), (767, ViewportClass.COMPACT), (768, ViewportClass.STANDARD)],
    )
    def test_viewport_for_width(self, width, expected):
        assert viewport_for_width(width) == expected


class TestStructure:
    """Tests for node and edge emission."""

    def test_one_edge_per_non_root_node(self):
        graph = layout(_full_tree(3))

        assert len(graph.edges) == len(graph.nodes) - 1
        targets = {edge.target_id for edge in graph.edges}
        assert graph.root_id not in targets
        assert len(targets) == len(graph.nodes) - 1

    def test_pre_order(self):
        graph = layout(_full_tree(1))
        assert [n.id for n in graph.members()] == ["member-n", "member-nL", "member-nR"]

    def test_unfetched_sides_emit_nothing(self):
        graph = layout(TreeNode(id="x", username="x", left=UNFETCHED, right=UNFETCHED))
        assert len(graph.nodes) == 1
        assert graph.edges == ()

    def test_collapsed_node_hides_children(self):
        graph = layout(_full_tree(2), collapsed={"nL"})

        ids = {n.id for n in graph.nodes}
        assert "member-nL" in ids
        assert "member-nLL" not in ids
        assert "member-nRL" in ids

    def test_no_root(self):
        graph = layout(None)
        assert graph.is_empty
        assert graph_bounds(graph) == (0.0, 0.0, 0.0, 0.0)


class TestDeterminism:
    """Same snapshot and viewport give the same graph."""

    def test_identical_output(self, sample_alice_tree):
        root = parse_node(sample_alice_tree, viewer_id="1")

        first = json.dumps(layout(root).to_dict())
        second = json.dumps(layout(parse_node(sample_alice_tree, viewer_id="1")).to_dict())

        assert first == second
        assert layout(root) == layout(root)
