"""
Tree layout for the binary tree view.

Computes deterministic x/y positions with a pre-order traversal from the
view root:
- ``y = depth * vertical_spacing``
- root ``x = 0``; a child at depth ``d`` sits ``base_spacing * 0.8 ** (d - 1)``
  left or right of its parent

The horizontal offsets form a decreasing geometric series, so the canvas
width stays bounded by ``2 * base_spacing / (1 - 0.8)`` at any depth.

Unfetched sides emit nothing, empty slots always emit an ``empty`` node.
The function is pure: same snapshot and viewport class give the same graph.
"""

from collections.abc import Collection
from dataclasses import dataclass
from typing import Any

from reftree.config.constants import (
    COMPACT_BASE_SPACING,
    COMPACT_BREAKPOINT,
    COMPACT_VERTICAL_SPACING,
    SPACING_DECAY,
    STANDARD_BASE_SPACING,
    STANDARD_VERTICAL_SPACING,
)
from reftree.models.graph import (
    EMPTY_GRAPH,
    DisplayGraph,
    GraphEdge,
    NodeKind,
    PositionedNode,
    ViewportClass,
)
from reftree.models.tree import EmptySlot, Side, TreeNode


@dataclass(frozen=True)
class LayoutConfig:
    # Horizontal offset between the root and its children.
    base_spacing: float

    # Distance between consecutive levels.
    vertical_spacing: float

    # Ratio between the offsets of consecutive levels.
    decay: float = SPACING_DECAY

    def offset(self, depth: int) -> float:
        """Horizontal distance from a parent to its child at ``depth`` (>= 1)."""
        return self.base_spacing * self.decay ** (depth - 1)

    def max_half_width(self) -> float:
        """Upper bound of ``|x|`` for a tree of any depth."""
        return self.base_spacing / (1 - self.decay)


LAYOUT_CONFIGS: dict[ViewportClass, LayoutConfig] = {
    ViewportClass.STANDARD: LayoutConfig(
        base_spacing=STANDARD_BASE_SPACING,
        vertical_spacing=STANDARD_VERTICAL_SPACING,
    ),
    ViewportClass.COMPACT: LayoutConfig(
        base_spacing=COMPACT_BASE_SPACING,
        vertical_spacing=COMPACT_VERTICAL_SPACING,
    ),
}


def viewport_for_width(width: int, breakpoint: int = COMPACT_BREAKPOINT) -> ViewportClass:
    return ViewportClass.COMPACT if width < breakpoint else ViewportClass.STANDARD


def member_graph_id(node_id: str) -> str:
    return f"member-{node_id}"


def empty_graph_id(slot: EmptySlot) -> str:
    return f"empty-{slot.parent_id}-{slot.side.value}"


def _member_data(node: TreeNode) -> tuple[tuple[str, Any], ...]:
    return (
        ("user_id", node.id),
        ("username", node.username),
        ("display_name", node.display_name),
        ("sponsor_label", node.sponsor_label),
        ("is_current_viewer", node.is_current_viewer),
        ("children_fetched", node.children_fetched),
    )


def _empty_data(slot: EmptySlot) -> tuple[tuple[str, Any], ...]:
    return (
        ("parent_id", slot.parent_id),
        ("parent_label", slot.parent_label),
        ("side", slot.side.value),
    )


def layout(
    root: TreeNode | None,
    viewport: ViewportClass = ViewportClass.STANDARD,
    collapsed: Collection[str] = frozenset(),
) -> DisplayGraph:
    """
    Position every rendered node of the tree rooted at ``root``.

    Args:
        root: View root snapshot
        viewport: Compact or standard spacing
        collapsed: Ids whose children are hidden (fetch state untouched)

    Returns:
        DisplayGraph with nodes in pre-order and one edge per non-root node
    """
    if root is None:
        return DisplayGraph(viewport=viewport)

    cfg = LAYOUT_CONFIGS[viewport]
    nodes: list[PositionedNode] = []
    edges: list[GraphEdge] = []

    def add_edge(parent_gid: str, child_gid: str) -> None:
        edges.append(
            GraphEdge(
                id=f"edge-{parent_gid}-{child_gid}",
                source_id=parent_gid,
                target_id=child_gid,
            )
        )

    def traverse(node: TreeNode, depth: int, x: float) -> str:
        gid = member_graph_id(node.id)
        nodes.append(
            PositionedNode(
                id=gid,
                kind=NodeKind.MEMBER,
                x=x,
                y=depth * cfg.vertical_spacing,
                data=_member_data(node),
            )
        )
        if node.id in collapsed:
            return gid

        child_depth = depth + 1
        offset = cfg.offset(child_depth)
        for side, child in node.children():
            child_x = x - offset if side == Side.LEFT else x + offset
            if isinstance(child, TreeNode):
                add_edge(gid, traverse(child, child_depth, child_x))
            elif isinstance(child, EmptySlot):
                slot_gid = empty_graph_id(child)
                nodes.append(
                    PositionedNode(
                        id=slot_gid,
                        kind=NodeKind.EMPTY,
                        x=child_x,
                        y=child_depth * cfg.vertical_spacing,
                        data=_empty_data(child),
                    )
                )
                add_edge(gid, slot_gid)
            # UNFETCHED: nothing rendered
        return gid

    traverse(root, 0, 0.0)

    return DisplayGraph(
        nodes=tuple(nodes),
        edges=tuple(edges),
        viewport=viewport,
        root_id=member_graph_id(root.id),
    )


def graph_bounds(graph: DisplayGraph) -> tuple[float, float, float, float]:
    """
    Bounding box of a graph.

    Returns:
        (min_x, min_y, max_x, max_y); zeros for an empty graph
    """
    if graph is EMPTY_GRAPH or not graph.nodes:
        return 0.0, 0.0, 0.0, 0.0
    xs = [n.x for n in graph.nodes]
    ys = [n.y for n in graph.nodes]
    return min(xs), min(ys), max(xs), max(ys)
