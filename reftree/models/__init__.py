"""
Data models.

Immutable tree snapshot, render graph, reflink grants and member data.
"""

from reftree.models.graph import (
    EMPTY_GRAPH,
    DisplayGraph,
    GraphEdge,
    NodeKind,
    PositionedNode,
    ViewportClass,
)
from reftree.models.member import MemberDetail, MemberProfile, MemberRow, VisibleRow
from reftree.models.reflink import ReflinkGrant
from reftree.models.tree import (
    UNFETCHED,
    Child,
    EmptySlot,
    Side,
    TreeNode,
    find_node,
    slot_key,
)


__all__ = [
    # Tree
    "UNFETCHED",
    "Child",
    "EmptySlot",
    "Side",
    "TreeNode",
    "find_node",
    "slot_key",
    # Graph
    "EMPTY_GRAPH",
    "DisplayGraph",
    "GraphEdge",
    "NodeKind",
    "PositionedNode",
    "ViewportClass",
    # Reflinks and members
    "ReflinkGrant",
    "MemberDetail",
    "MemberProfile",
    "MemberRow",
    "VisibleRow",
]
