"""
Tree services: store, layout, search, interaction controller, member list.
"""

from reftree.services.tree.controller import (
    InteractionController,
    Phase,
    SlotClaim,
    SlotStatus,
    ViewState,
)
from reftree.services.tree.layout import LayoutConfig, graph_bounds, layout, viewport_for_width
from reftree.services.tree.member_list import MemberListView
from reftree.services.tree.search import SearchCoordinator, SearchState, SearchStatus
from reftree.services.tree.store import TreeScope, TreeStore


__all__ = [
    "InteractionController",
    "LayoutConfig",
    "MemberListView",
    "Phase",
    "SearchCoordinator",
    "SearchState",
    "SearchStatus",
    "SlotClaim",
    "SlotStatus",
    "TreeScope",
    "TreeStore",
    "ViewState",
    "graph_bounds",
    "layout",
    "viewport_for_width",
]
