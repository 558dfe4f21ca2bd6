"""
Interaction controller for the binary tree view.

Sequences every viewer action against the stores:
- Initial load, refresh and re-rooting ("view this member's tree")
- Lazy expansion and collapse of nodes
- Debounced search whose result takes over the display
- Node selection with a cancellable profile fetch
- Placement slot claims (issue link, copy, notify)

Listeners registered with ``subscribe`` receive a fresh ``ViewState``
after every change; the display graph is recomputed on demand.
"""

import asyncio
from collections import Counter
from collections.abc import Callable
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any

from reftree.config.settings import settings
from reftree.models.graph import DisplayGraph
from reftree.models.member import MemberDetail
from reftree.models.reflink import ReflinkGrant
from reftree.models.tree import Side, TreeNode, slot_key
from reftree.services.base_service import BaseService, ServiceResult
from reftree.services.placement.link_issuer import (
    MANUAL_COPY_HINT,
    CopyOutcome,
    PlacementLinkIssuer,
    confirmation_message,
)
from reftree.services.tree.layout import layout, viewport_for_width
from reftree.services.tree.parser import parse_profile
from reftree.services.tree.search import SearchCoordinator, SearchState, SearchStatus
from reftree.services.tree.store import TreeScope, TreeStore
from reftree.utils.ephemeral import Toast, ToastCenter
from reftree.utils.exceptions import ErrorKind, TreeApiError
from reftree.utils.platform import Platform


class Phase(StrEnum):
    IDLE = "idle"
    LOADING = "loading"
    EXPANDING = "expanding"
    SEARCHING = "searching"


class SlotStatus(StrEnum):
    IDLE = "idle"
    LOADING = "loading"
    COPIED = "copied"


@dataclass
class TreeSession:
    """A tree store plus the ids whose children are hidden."""

    store: TreeStore
    collapsed: set[str] = field(default_factory=set)


@dataclass(frozen=True)
class SlotClaim:
    grant: ReflinkGrant
    link: str
    copy: CopyOutcome


@dataclass(frozen=True)
class ViewState:
    """Snapshot of everything the view renders besides the graph."""

    phase: Phase
    is_rerooted: bool
    view_root_id: str | None
    search: SearchState
    error: str | None = None
    error_code: ErrorKind | None = None
    toast: Toast | None = None
    copied_slot: str | None = None
    selected: MemberDetail | None = None

    @property
    def can_retry(self) -> bool:
        return self.error is not None


class InteractionController(BaseService):
    """Owns the view root, search and slot claims for one tree view."""

    def __init__(
        self,
        client: Any,
        platform: Platform,
        viewer_id: str | None = None,
        scope: TreeScope = TreeScope.MEMBER,
        max_depth: int | None = None,
        debounce_seconds: float | None = None,
        copy_ack_seconds: float | None = None,
        toast_seconds: float | None = None,
    ) -> None:
        """
        Initialize interaction controller.

        Args:
            client: TreeApiClient
            platform: Clipboard, origin and viewport provider
            viewer_id: Signed-in member id
            scope: Member or admin endpoints
            max_depth: Initial depth of root fetches
            debounce_seconds: Search debounce delay
            copy_ack_seconds: Lifetime of the "copied" slot state
            toast_seconds: Lifetime of a toast
        """
        super().__init__(client)
        self.platform = platform
        self.viewer_id = viewer_id
        self.scope = scope
        self.max_depth = max_depth

        self._original = TreeSession(self._new_store())
        self._view = self._original
        self._search_session: TreeSession | None = None
        self._view_generation = 0

        self.search = SearchCoordinator(
            self._new_store,
            debounce_seconds=debounce_seconds,
            on_change=self._on_search_change,
        )
        self.issuer = PlacementLinkIssuer(
            client,
            platform,
            copy_ack_seconds=copy_ack_seconds,
            on_ack_change=lambda _: self._notify(),
        )
        self.toasts = ToastCenter(
            dismiss_after=(
                toast_seconds if toast_seconds is not None else settings.toast_dismiss_seconds
            ),
            on_change=lambda _: self._notify(),
        )

        self._loads = 0
        self._expanding: Counter[str] = Counter()
        self._claiming: Counter[str] = Counter()
        self._failure: ServiceResult | None = None
        self._profile_task: asyncio.Task | None = None
        self.selected: MemberDetail | None = None
        self._listeners: list[Callable[[ViewState], None]] = []

    def _new_store(self) -> TreeStore:
        return TreeStore(self.client, viewer_id=self.viewer_id, scope=self.scope)

    # ------------------------------------------------------------------
    # Observable state
    # ------------------------------------------------------------------

    @property
    def display_session(self) -> TreeSession:
        """Search result while the query is non-empty and found, else the view."""
        if self.search.state.is_active and self._search_session is not None:
            return self._search_session
        return self._view

    @property
    def display_root(self) -> TreeNode | None:
        return self.display_session.store.root

    @property
    def is_rerooted(self) -> bool:
        return self._view is not self._original

    @property
    def phase(self) -> Phase:
        if self._loads:
            return Phase.LOADING
        if self._expanding:
            return Phase.EXPANDING
        if self.search.state.status in (SearchStatus.PENDING, SearchStatus.LOADING):
            return Phase.SEARCHING
        return Phase.IDLE

    @property
    def graph(self) -> DisplayGraph:
        """Layout of the displayed tree for the platform's viewport."""
        viewport = viewport_for_width(
            self.platform.viewport_width(), settings.compact_viewport_max_width
        )
        session = self.display_session
        return layout(session.store.root, viewport, frozenset(session.collapsed))

    @property
    def state(self) -> ViewState:
        root = self._view.store.root
        failure = self._failure
        return ViewState(
            phase=self.phase,
            is_rerooted=self.is_rerooted,
            view_root_id=root.id if root is not None else None,
            search=self.search.state,
            error=failure.error if failure is not None else None,
            error_code=failure.error_code if failure is not None else None,
            toast=self.toasts.current,
            copied_slot=self.issuer.copied.value,
            selected=self.selected,
        )

    def subscribe(self, callback: Callable[[ViewState], None]) -> Callable[[], None]:
        """
        Register a state listener.

        Returns:
            Function removing the listener
        """
        self._listeners.append(callback)

        def unsubscribe() -> None:
            if callback in self._listeners:
                self._listeners.remove(callback)

        return unsubscribe

    def _notify(self) -> None:
        if not self._listeners:
            return
        state = self.state
        for listener in list(self._listeners):
            try:
                listener(state)
            except Exception as e:
                self.logger.exception(f"State listener failed: {e}")

    # ------------------------------------------------------------------
    # Root retrieval and re-rooting
    # ------------------------------------------------------------------

    async def _fetch_into(self, session: TreeSession, **kwargs: Any) -> ServiceResult:
        self._loads += 1
        self._notify()
        try:
            result = await session.store.fetch_root(max_depth=self.max_depth, **kwargs)
        finally:
            self._loads -= 1
        return result

    def _settle(self, generation: int, result: ServiceResult) -> bool:
        """Record the outcome unless a newer view change superseded it."""
        if generation != self._view_generation:
            return False
        self._failure = None if result.success else result
        return result.success

    async def load(self) -> ServiceResult:
        """
        Fetch the viewer's tree and make it the original root.

        A failure keeps the previous tree and exposes the error for retry.
        """
        self._view_generation += 1
        generation = self._view_generation
        session = TreeSession(self._new_store())

        result = await self._fetch_into(session)
        if self._settle(generation, result):
            self._original = session
            self._view = session
        self._notify()
        return result

    async def refresh(self) -> ServiceResult:
        """Refetch the current view from scratch."""
        if self.is_rerooted and self._view.store.subject_id is not None:
            return await self.view_member_tree(self._view.store.subject_id)
        return await self.load()

    async def view_member_tree(self, subject_id: str) -> ServiceResult:
        """
        Re-root the view at ``subject_id`` with a fresh fetch.

        Any active search is cleared. The original tree is kept for
        ``return_to_root``.
        """
        if not subject_id:
            return ServiceResult.fail(ErrorKind.VALIDATION_FAILED, "Member id is required")

        self.search.clear()
        self._view_generation += 1
        generation = self._view_generation
        session = TreeSession(self._new_store())

        result = await self._fetch_into(session, subject_id=str(subject_id))
        if self._settle(generation, result):
            self._view = session
            self.logger.info(f"View re-rooted at member {subject_id}")
        self._notify()
        return result

    def return_to_root(self) -> None:
        """Restore the original tree without refetching."""
        self.search.clear()
        self._view_generation += 1
        self._view = self._original
        self._failure = None
        self._notify()

    # ------------------------------------------------------------------
    # Expansion
    # ------------------------------------------------------------------

    async def toggle_node(self, node_id: str) -> ServiceResult:
        """
        Expand or collapse a displayed node.

        Unfetched children are retrieved first; once fetched, toggling only
        flips visibility.
        """
        session = self.display_session
        node = session.store.find(node_id)
        if node is None:
            return ServiceResult.fail(
                ErrorKind.VALIDATION_FAILED, f"Node {node_id} is not displayed"
            )

        if node.children_fetched:
            if node_id in session.collapsed:
                session.collapsed.discard(node_id)
            else:
                session.collapsed.add(node_id)
            self._notify()
            return ServiceResult.ok(node)

        session.collapsed.discard(node_id)
        self._expanding[node_id] += 1
        self._notify()
        try:
            result = await session.store.expand_children(node_id)
        finally:
            self._expanding[node_id] -= 1
            if self._expanding[node_id] <= 0:
                del self._expanding[node_id]

        if not result.success:
            self.toasts.error(result.error or "Failed to load members")
        self._notify()
        return result

    # ------------------------------------------------------------------
    # Search
    # ------------------------------------------------------------------

    def set_search_query(self, text: str) -> None:
        self.search.set_query(text)

    def _on_search_change(self, state: SearchState) -> None:
        if state.status == SearchStatus.FOUND and state.store is not None:
            self._search_session = TreeSession(state.store)
        elif state.status != SearchStatus.FOUND:
            self._search_session = None
        self._notify()

    # ------------------------------------------------------------------
    # Selection
    # ------------------------------------------------------------------

    async def select_node(self, node_id: str) -> MemberDetail | None:
        """
        Select a node and fetch its extended profile.

        A newer selection cancels the older fetch, which then returns None.
        A failed fetch still yields the node's summary fields.
        """
        if self._profile_task is not None and not self._profile_task.done():
            self._profile_task.cancel()
        self._profile_task = None

        node = self.display_session.store.find(node_id)
        if node is None:
            self.selected = None
            self._notify()
            return None

        task = asyncio.create_task(self._load_detail(node))
        self._profile_task = task
        try:
            detail = await task
        except asyncio.CancelledError:
            current = asyncio.current_task()
            if current is not None and current.cancelling():
                raise
            return None

        self.selected = detail
        self._notify()
        return detail

    async def _load_detail(self, node: TreeNode) -> MemberDetail:
        try:
            raw = await self.client.get_profile(node.id)
        except TreeApiError as e:
            self.logger.warning(
                "Profile fetch failed, showing summary only",
                extra={"user_id": node.id, "kind": e.kind.value},
            )
            return MemberDetail(node=node, profile_error=e.message)
        return MemberDetail(node=node, profile=parse_profile(node.id, raw))

    def clear_selection(self) -> None:
        if self._profile_task is not None and not self._profile_task.done():
            self._profile_task.cancel()
        self._profile_task = None
        self.selected = None
        self._notify()

    # ------------------------------------------------------------------
    # Placement slots
    # ------------------------------------------------------------------

    def slot_status(self, parent_id: str, side: Side | str) -> SlotStatus:
        key = slot_key(parent_id, side)
        if self._claiming[key] or self.issuer.is_pending(parent_id, side):
            return SlotStatus.LOADING
        if self.issuer.copied.value == key:
            return SlotStatus.COPIED
        return SlotStatus.IDLE

    async def claim_slot(self, parent_id: str | None, side: Side | str) -> ServiceResult:
        """
        Issue a link for an empty slot, copy it and notify the viewer.

        Returns:
            ServiceResult with a SlotClaim; a clipboard failure still
            succeeds so the link can be copied manually
        """
        try:
            key = slot_key(parent_id, side) if parent_id else None
        except ValueError:
            key = None

        if key is not None:
            self._claiming[key] += 1
            self._notify()
        try:
            result = await self.issuer.issue(parent_id, side)
        finally:
            if key is not None:
                self._claiming[key] -= 1
                if self._claiming[key] <= 0:
                    del self._claiming[key]

        if not result.success:
            self.toasts.error(result.error or "Failed to create link")
            return result

        grant: ReflinkGrant = result.data
        link = self.issuer.build_link(grant)
        outcome = await self.issuer.copy_to_clipboard(link, key=grant.slot_key)
        if outcome == CopyOutcome.OK:
            self.toasts.success(confirmation_message(grant))
        else:
            self.toasts.error(f"{MANUAL_COPY_HINT}: {link}")

        self._notify()
        return ServiceResult.ok(SlotClaim(grant=grant, link=link, copy=outcome))

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def close(self) -> None:
        """Cancel pending search and profile work and drop listeners."""
        self._listeners.clear()
        self.search.close()
        if self._profile_task is not None and not self._profile_task.done():
            self._profile_task.cancel()
        self._profile_task = None
        self.toasts.dismiss()
        self.issuer.copied.clear()
