"""
Binary placement tree model.

Every occupied position is a ``TreeNode``. Each of its two sides is in
exactly one of three states:

- ``UNFETCHED`` - not requested yet
- ``EmptySlot`` - fetched and confirmed vacant
- ``TreeNode`` - occupied

Nodes are immutable and own their children by value. Updates build a
new path from the changed node up to the root.
"""

from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field, replace
from enum import StrEnum
from types import MappingProxyType
from typing import Any, Final, Union


class Side(StrEnum):
    LEFT = "left"
    RIGHT = "right"

    @property
    def wire(self) -> str:
        """Upper-case form used by the API."""
        return self.value.upper()

    @classmethod
    def parse(cls, value: "str | Side") -> "Side":
        """
        Parse a side from user or wire input.

        Raises:
            ValueError: If value is not left/right
        """
        if isinstance(value, Side):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError as exc:
            raise ValueError(f"Invalid side: {value!r}") from exc


class _Unfetched:
    """Sentinel type for a side that has not been requested."""

    _instance: "_Unfetched | None" = None

    def __new__(cls) -> "_Unfetched":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "UNFETCHED"

    def __bool__(self) -> bool:
        return False

    def __reduce__(self) -> str:
        return "UNFETCHED"


UNFETCHED: Final = _Unfetched()


def slot_key(parent_id: str, side: Side | str) -> str:
    """Unique key of a placement slot."""
    return f"{parent_id}:{Side.parse(side).value}"


@dataclass(frozen=True)
class EmptySlot:
    """Vacant placement position under a fetched node."""

    parent_id: str
    parent_label: str
    side: Side

    @property
    def slot_key(self) -> str:
        return slot_key(self.parent_id, self.side)


@dataclass(frozen=True)
class TreeNode:
    """Occupied position in the binary tree."""

    id: str
    username: str
    display_name: str = ""
    sponsor_label: str = ""
    is_current_viewer: bool = False
    left: "Child" = UNFETCHED
    right: "Child" = UNFETCHED
    children_fetched: bool = False
    summary: Mapping[str, Any] = field(
        default_factory=lambda: MappingProxyType({}), compare=False
    )

    def child(self, side: Side) -> "Child":
        return self.left if side == Side.LEFT else self.right

    def children(self) -> Iterator[tuple[Side, "Child"]]:
        yield Side.LEFT, self.left
        yield Side.RIGHT, self.right

    @property
    def label(self) -> str:
        return self.username or self.display_name or self.id

    def with_children(self, left: "Child", right: "Child") -> "TreeNode":
        """
        Copy with both sides replaced.

        ``children_fetched`` flips to True once both sides are resolved
        and never flips back.
        """
        resolved = left is not UNFETCHED and right is not UNFETCHED
        return replace(
            self,
            left=left,
            right=right,
            children_fetched=self.children_fetched or resolved,
        )

    def with_child(self, side: Side, child: "Child") -> "TreeNode":
        if side == Side.LEFT:
            return self.with_children(child, self.right)
        return self.with_children(self.left, child)


Child = Union[TreeNode, EmptySlot, _Unfetched]


def find_node(tree: TreeNode | None, node_id: str) -> TreeNode | None:
    """
    Depth-first lookup of a node by id.

    Args:
        tree: Root to search from
        node_id: Member id

    Returns:
        Matching node or None
    """
    if tree is None:
        return None
    stack: list[TreeNode] = [tree]
    while stack:
        node = stack.pop()
        if node.id == node_id:
            return node
        # Push right first so the left subtree is searched first
        for child in (node.right, node.left):
            if isinstance(child, TreeNode):
                stack.append(child)
    return None


def iter_nodes(tree: TreeNode | None) -> Iterator[TreeNode]:
    """Pre-order iteration over occupied nodes."""
    if tree is None:
        return
    yield tree
    for _, child in tree.children():
        if isinstance(child, TreeNode):
            yield from iter_nodes(child)


def build_parent_index(tree: TreeNode | None) -> dict[str, str | None]:
    """Map every node id to its parent id (root maps to None)."""
    index: dict[str, str | None] = {}
    if tree is None:
        return index
    index[tree.id] = None
    for node in iter_nodes(tree):
        for _, child in node.children():
            if isinstance(child, TreeNode):
                index[child.id] = node.id
    return index


def path_to(index: Mapping[str, str | None], node_id: str) -> list[str]:
    """Ids from the root down to ``node_id`` using the parent index."""
    path: list[str] = []
    current: str | None = node_id
    seen: set[str] = set()
    while current is not None:
        if current in seen:
            raise ValueError(f"Cycle in parent index at {current}")
        seen.add(current)
        path.append(current)
        current = index.get(current)
    path.reverse()
    return path


def replace_node(
    tree: TreeNode,
    index: Mapping[str, str | None],
    updated: TreeNode,
) -> TreeNode:
    """
    Return a new tree with ``updated`` installed at its id.

    Only nodes on the path from the root to the updated node are copied;
    every other subtree is shared with the previous snapshot.

    Args:
        tree: Current root
        index: Parent index of ``tree``
        updated: Replacement node (same id as the node it replaces)

    Returns:
        New root

    Raises:
        KeyError: If the node is not part of the tree
    """
    if updated.id not in index:
        raise KeyError(updated.id)

    path = path_to(index, updated.id)
    if path[0] != tree.id:
        raise KeyError(updated.id)

    # Collect the original nodes along the path
    nodes = [tree]
    for child_id in path[1:]:
        parent = nodes[-1]
        for _, child in parent.children():
            if isinstance(child, TreeNode) and child.id == child_id:
                nodes.append(child)
                break
        else:
            raise KeyError(child_id)

    rebuilt = updated
    for parent in reversed(nodes[:-1]):
        if isinstance(parent.left, TreeNode) and parent.left.id == rebuilt.id:
            rebuilt = replace(parent, left=rebuilt)
        else:
            rebuilt = replace(parent, right=rebuilt)
    return rebuilt


def count_nodes(tree: TreeNode | None) -> int:
    return sum(1 for _ in iter_nodes(tree))
