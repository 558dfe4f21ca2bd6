"""
Wire format to tree model conversion.

API format: ``{id, username, fullName, sponsorName, leftChild, rightChild,
hasLeftChild, hasRightChild, rank, sales, ...}``.

Side resolution:
- key absent -> UNFETCHED
- key present and null -> EmptySlot, unless ``hasLeftChild``/``hasRightChild``
  says the side is occupied (the server cut the tree at ``maxDepth``)
- key present with an object -> TreeNode
"""

from decimal import Decimal, InvalidOperation
from types import MappingProxyType
from typing import Any

from loguru import logger

from reftree.models.member import MemberProfile, MemberRow
from reftree.models.tree import UNFETCHED, Child, EmptySlot, Side, TreeNode


# Wire keys per side
_CHILD_KEYS = {
    Side.LEFT: ("leftChild", "hasLeftChild"),
    Side.RIGHT: ("rightChild", "hasRightChild"),
}

# Summary fields copied onto the node as-is
_SUMMARY_KEYS = (
    "rank",
    "rankName",
    "sales",
    "teamSales",
    "teamSalesLeft",
    "teamSalesRight",
    "side",
    "depth",
    "timeCreate",
    "isLockAccount",
)


def _text(value: Any) -> str:
    return "" if value is None else str(value)


def _decimal(value: Any) -> Decimal:
    if value is None or value == "":
        return Decimal("0")
    try:
        return Decimal(str(value))
    except (InvalidOperation, ValueError):
        logger.warning(f"Invalid decimal value in API payload: {value!r}")
        return Decimal("0")


def parse_node(raw: dict[str, Any], viewer_id: str | None = None) -> TreeNode:
    """
    Build a TreeNode (with its fetched subtree) from API JSON.

    Args:
        raw: Node JSON
        viewer_id: Id of the signed-in member, flags ``is_current_viewer``

    Returns:
        Immutable TreeNode

    Raises:
        ValueError: If the node has no id
    """
    if raw.get("id") is None:
        raise ValueError("Tree node without id")

    node_id = _text(raw["id"])
    username = _text(raw.get("username"))

    children: dict[Side, Child] = {}
    for side, (child_key, flag_key) in _CHILD_KEYS.items():
        if child_key not in raw:
            children[side] = UNFETCHED
            continue
        value = raw[child_key]
        if isinstance(value, dict):
            children[side] = parse_node(value, viewer_id)
        elif raw.get(flag_key) is True:
            children[side] = UNFETCHED
        else:
            children[side] = EmptySlot(
                parent_id=node_id, parent_label=username, side=side
            )

    left, right = children[Side.LEFT], children[Side.RIGHT]
    summary = {key: raw[key] for key in _SUMMARY_KEYS if key in raw}

    return TreeNode(
        id=node_id,
        username=username,
        display_name=_text(raw.get("fullName") or raw.get("name")),
        sponsor_label=_text(raw.get("sponsorName") or raw.get("sponsorUsername")),
        is_current_viewer=viewer_id is not None and node_id == viewer_id,
        left=left,
        right=right,
        children_fetched=left is not UNFETCHED and right is not UNFETCHED,
        summary=MappingProxyType(summary),
    )


def parse_children(
    parent: TreeNode,
    items: list[dict[str, Any]],
    viewer_id: str | None = None,
) -> tuple[Child, Child]:
    """
    Resolve both sides of ``parent`` from a children-of response.

    The response is authoritative: a side without a returned node is an
    EmptySlot. Returned children keep their own sides unfetched unless
    the item carries them. A returned child already known on the same
    side keeps its existing subtree.

    Returns:
        (left, right)
    """
    resolved: dict[Side, Child] = {}
    for item in items:
        try:
            side = Side.parse(item.get("side", ""))
        except ValueError:
            logger.warning(
                "Child without placement side ignored",
                extra={"parent_id": parent.id, "child_id": item.get("id")},
            )
            continue
        if side in resolved:
            logger.warning(
                "Duplicate child for side ignored",
                extra={"parent_id": parent.id, "side": side.value},
            )
            continue
        resolved[side] = parse_node(item, viewer_id)

    def _side(side: Side) -> Child:
        if side in resolved:
            existing = parent.child(side)
            if isinstance(existing, TreeNode) and existing.id == resolved[side].id:
                return existing
            return resolved[side]
        return EmptySlot(parent_id=parent.id, parent_label=parent.username, side=side)

    return _side(Side.LEFT), _side(Side.RIGHT)


def parse_profile(user_id: str, raw: dict[str, Any]) -> MemberProfile:
    """Extended member fields from the profile-detail endpoint."""
    return MemberProfile(
        user_id=user_id,
        rank=None if raw.get("rank") is None else str(raw["rank"]),
        rank_name=raw.get("rankName"),
        sales=_decimal(raw.get("sales")),
        team_sales=_decimal(raw.get("teamSales")),
        team_sales_left=_decimal(raw.get("teamSalesLeft")),
        team_sales_right=_decimal(raw.get("teamSalesRight")),
        total_investment=_decimal(raw.get("totalInvestment")),
        joined_at=raw.get("timeCreate"),
    )


def parse_member_row(raw: dict[str, Any]) -> MemberRow:
    """Member list row; branch sales fall back to team sales fields."""
    rank = raw.get("capVip") or raw.get("rankName")
    return MemberRow(
        id=_text(raw.get("id")),
        username=_text(raw.get("username") or raw.get("name")) or "N/A",
        sponsor_label=_text(raw.get("sponsorNode") or raw.get("sponsorUsername")),
        rank=str(rank) if rank else None,
        total_investment=_decimal(raw.get("totalInvestment")),
        left_sales=_decimal(raw.get("leftBranchSales") or raw.get("teamSalesLeft")),
        right_sales=_decimal(raw.get("rightBranchSales") or raw.get("teamSalesRight")),
    )
