"""
Member profile and member list data.
"""

from dataclasses import dataclass, field
from decimal import Decimal

from reftree.models.tree import TreeNode


@dataclass(frozen=True)
class MemberProfile:
    """Extended fields fetched when a node is selected."""

    user_id: str
    rank: str | None = None
    rank_name: str | None = None
    sales: Decimal = Decimal("0")
    team_sales: Decimal = Decimal("0")
    team_sales_left: Decimal = Decimal("0")
    team_sales_right: Decimal = Decimal("0")
    total_investment: Decimal = Decimal("0")
    joined_at: str | None = None


@dataclass(frozen=True)
class MemberDetail:
    """
    Node detail panel data.

    ``profile`` is None when the extended fetch failed; the summary
    fields of ``node`` are always present.
    """

    node: TreeNode
    profile: MemberProfile | None = None
    profile_error: str | None = None

    @property
    def is_degraded(self) -> bool:
        return self.profile is None


@dataclass
class MemberRow:
    """Row of the member list view."""

    id: str
    username: str
    sponsor_label: str = ""
    rank: str | None = None
    total_investment: Decimal = Decimal("0")
    left_sales: Decimal = Decimal("0")
    right_sales: Decimal = Decimal("0")
    children: list["MemberRow"] = field(default_factory=list)
    children_fetched: bool = False


@dataclass(frozen=True)
class VisibleRow:
    """Flattened row with its hierarchical index label."""

    row: MemberRow
    index_label: str
    level: int
    expanded: bool
    loading: bool = False
