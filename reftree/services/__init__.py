"""
Services.

API client and tree view logic.
"""

# Base Service Infrastructure
from reftree.services.api_client import TreeApiClient
from reftree.services.base_service import BaseService, ServiceResult, log_operation

# Placement Links
from reftree.services.placement import CopyOutcome, PlacementLinkIssuer

# Tree View
from reftree.services.tree import (
    InteractionController,
    MemberListView,
    SearchCoordinator,
    TreeScope,
    TreeStore,
)


__all__ = [
    "BaseService",
    "CopyOutcome",
    "InteractionController",
    "MemberListView",
    "PlacementLinkIssuer",
    "SearchCoordinator",
    "ServiceResult",
    "TreeApiClient",
    "TreeScope",
    "TreeStore",
    "log_operation",
]
