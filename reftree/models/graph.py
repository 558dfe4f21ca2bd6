"""
Render-ready graph produced by the layout engine.
"""

from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any


class ViewportClass(StrEnum):
    COMPACT = "compact"
    STANDARD = "standard"


class NodeKind(StrEnum):
    MEMBER = "member"
    EMPTY = "empty"


@dataclass(frozen=True)
class PositionedNode:
    """One rendered node with its coordinates."""

    id: str
    kind: NodeKind
    x: float
    y: float
    data: tuple[tuple[str, Any], ...] = ()

    @property
    def fields(self) -> dict[str, Any]:
        return dict(self.data)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "kind": self.kind.value,
            "x": self.x,
            "y": self.y,
            "data": dict(self.data),
        }


@dataclass(frozen=True)
class GraphEdge:
    """Connector from a rendered parent to a rendered child."""

    id: str
    source_id: str
    target_id: str

    def to_dict(self) -> dict[str, str]:
        return {"id": self.id, "source": self.source_id, "target": self.target_id}


@dataclass(frozen=True)
class DisplayGraph:
    """Ordered nodes and edges for the presentation surface."""

    nodes: tuple[PositionedNode, ...] = ()
    edges: tuple[GraphEdge, ...] = ()
    viewport: ViewportClass = ViewportClass.STANDARD
    root_id: str | None = field(default=None)

    @property
    def is_empty(self) -> bool:
        return not self.nodes

    def node(self, node_id: str) -> PositionedNode | None:
        for node in self.nodes:
            if node.id == node_id:
                return node
        return None

    def members(self) -> list[PositionedNode]:
        return [n for n in self.nodes if n.kind == NodeKind.MEMBER]

    def empty_slots(self) -> list[PositionedNode]:
        return [n for n in self.nodes if n.kind == NodeKind.EMPTY]

    def to_dict(self) -> dict[str, Any]:
        return {
            "viewport": self.viewport.value,
            "root": self.root_id,
            "nodes": [n.to_dict() for n in self.nodes],
            "edges": [e.to_dict() for e in self.edges],
        }


EMPTY_GRAPH = DisplayGraph()
