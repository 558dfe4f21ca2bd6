"""
Tree store.

Owns one partial tree snapshot and mediates every fetch for it:
- Root retrieval with bounded depth reduction for oversized trees
- Lazy, single-flight expansion of a node's immediate children
- Copy-on-write updates along the root-to-node path

The snapshot is immutable: readers (e.g. a layout computed while a fetch
is outstanding) never observe a half-updated node.
"""

from enum import StrEnum
from typing import Any

from reftree.config.settings import settings
from reftree.models.tree import (
    TreeNode,
    build_parent_index,
    count_nodes,
    find_node,
    replace_node,
)
from reftree.services.base_service import BaseService, ServiceResult, log_operation
from reftree.services.tree.parser import parse_children, parse_node
from reftree.utils.exceptions import ErrorKind, TreeApiError
from reftree.utils.single_flight import SingleFlight


class TreeScope(StrEnum):
    """Which endpoints serve the tree."""

    MEMBER = "member"  # Viewer's own subtree
    ADMIN = "admin"  # System administrator, any subtree


class TreeStore(BaseService):
    """Partial binary tree with lazy per-node retrieval."""

    def __init__(
        self,
        client: Any,
        viewer_id: str | None = None,
        scope: TreeScope = TreeScope.MEMBER,
        min_depth: int | None = None,
        depth_step: int | None = None,
    ) -> None:
        """
        Initialize tree store.

        Args:
            client: TreeApiClient
            viewer_id: Signed-in member id (marks the current viewer's node)
            scope: Member or admin endpoints
            min_depth: Depth floor for halve-and-retry
            depth_step: Depth reduction per retry
        """
        super().__init__(client)
        self.viewer_id = viewer_id
        self.scope = scope
        self.min_depth = min_depth if min_depth is not None else settings.tree_min_depth
        self.depth_step = depth_step if depth_step is not None else settings.tree_depth_step

        self._root: TreeNode | None = None
        self._parents: dict[str, str | None] = {}
        self._expansions: SingleFlight[ServiceResult] = SingleFlight("expand")

        self.subject_id: str | None = None
        self.username: str | None = None
        self.effective_depth: int | None = None
        self.attempted_depths: list[int] = []

    # ------------------------------------------------------------------
    # Snapshot access
    # ------------------------------------------------------------------

    @property
    def root(self) -> TreeNode | None:
        return self._root

    def find(self, node_id: str) -> TreeNode | None:
        return find_node(self._root, node_id)

    def parent_id(self, node_id: str) -> str | None:
        """Parent id lookup (weak reference, never used for ownership)."""
        return self._parents.get(node_id)

    def is_expanding(self, node_id: str) -> bool:
        return self._expansions.is_pending(node_id)

    def _install(self, root: TreeNode) -> None:
        self._root = root
        self._parents = build_parent_index(root)

    # ------------------------------------------------------------------
    # Root retrieval
    # ------------------------------------------------------------------

    @log_operation
    async def fetch_root(
        self,
        max_depth: int | None = None,
        subject_id: str | None = None,
        username: str | None = None,
    ) -> ServiceResult:
        """
        Fetch the tree rooted at the viewer, ``subject_id`` or ``username``.

        Oversized trees are retried with ``max_depth - depth_step`` (never
        below ``min_depth``); TOO_LARGE is returned only after the attempt
        at the floor fails too.

        Args:
            max_depth: Levels to request (defaults to settings.tree_max_depth)
            subject_id: Member to root the tree at (admin/override views)
            username: Member username to root the tree at (search)

        Returns:
            ServiceResult with the root TreeNode as data
        """
        depth = max_depth if max_depth is not None else settings.tree_max_depth
        self.attempted_depths = []
        return await self._fetch_root_at(depth, subject_id, username)

    async def _fetch_root_at(
        self, depth: int, subject_id: str | None, username: str | None
    ) -> ServiceResult:
        self.attempted_depths.append(depth)
        try:
            raw = await self._request_tree(depth, subject_id, username)
        except TreeApiError as e:
            if e.kind == ErrorKind.TOO_LARGE and depth > self.min_depth:
                next_depth = max(depth - self.depth_step, self.min_depth)
                self.logger.warning(
                    f"Tree too large with maxDepth={depth}, "
                    f"retrying with maxDepth={next_depth}"
                )
                return await self._fetch_root_at(next_depth, subject_id, username)

            self.logger.warning(
                "Tree fetch failed",
                extra={
                    "subject_id": subject_id,
                    "username": username,
                    "max_depth": depth,
                    "kind": e.kind.value,
                },
            )
            return ServiceResult.from_error(e)

        try:
            root = parse_node(raw, self.viewer_id)
        except ValueError as e:
            self.logger.error(f"Malformed tree payload: {e}")
            return ServiceResult.fail(ErrorKind.UNKNOWN, str(e))

        # Replaces the previous snapshot wholesale
        self._install(root)
        self.subject_id = subject_id
        self.username = username
        self.effective_depth = depth

        self.logger.info(
            "Tree fetched",
            extra={
                "root_id": root.id,
                "max_depth": depth,
                "nodes": count_nodes(root),
                "attempts": len(self.attempted_depths),
            },
        )
        return ServiceResult.ok(root)

    async def _request_tree(
        self, depth: int, subject_id: str | None, username: str | None
    ) -> dict[str, Any]:
        if self.scope == TreeScope.ADMIN:
            if username is not None:
                return await self.client.search_admin_tree(username, depth)
            if subject_id is None:
                return await self.client.get_system_tree(depth)
            return await self.client.get_admin_user_tree(subject_id, depth)
        return await self.client.get_tree(depth, user_id=subject_id, username=username)

    # ------------------------------------------------------------------
    # Lazy expansion
    # ------------------------------------------------------------------

    async def expand_children(self, node_id: str) -> ServiceResult:
        """
        Fetch and install the immediate children of ``node_id``.

        Idempotent: no request once the node's children are fetched.
        Concurrent calls for the same node share one request.

        Args:
            node_id: Member id of an occupied node in this tree

        Returns:
            ServiceResult with the updated TreeNode as data
        """
        node = self.find(node_id)
        if node is None:
            return ServiceResult.fail(
                ErrorKind.VALIDATION_FAILED, f"Node {node_id} is not in the tree"
            )
        if node.children_fetched:
            return ServiceResult.ok(node)

        return await self._expansions.run(node_id, lambda: self._expand(node_id))

    async def _expand(self, node_id: str) -> ServiceResult:
        try:
            items = await self.client.get_children(node_id)
        except TreeApiError as e:
            self.logger.warning(
                "Children fetch failed",
                extra={"node_id": node_id, "kind": e.kind.value},
            )
            return ServiceResult.from_error(e)

        # Re-read: the snapshot may have been replaced while awaiting
        current = self.find(node_id)
        if current is None:
            return ServiceResult.fail(
                ErrorKind.VALIDATION_FAILED, f"Node {node_id} left the tree"
            )
        if current.children_fetched:
            return ServiceResult.ok(current)

        try:
            left, right = parse_children(current, items, self.viewer_id)
        except ValueError as e:
            self.logger.error(f"Malformed children payload for {node_id}: {e}")
            return ServiceResult.fail(ErrorKind.UNKNOWN, str(e))

        updated = current.with_children(left, right)
        self._install(replace_node(self._root, self._parents, updated))

        self.logger.debug(
            "Children installed",
            extra={"node_id": node_id, "returned": len(items)},
        )
        return ServiceResult.ok(updated)

