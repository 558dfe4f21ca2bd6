"""
Member list view.

Tabular alternative to the tree: the viewer's direct members, each row
expandable to show that member's own direct members. Rows are fetched
once; an empty or failed fetch leaves the row expanded with no members.
"""

from collections.abc import Iterator

from reftree.config.settings import settings
from reftree.models.member import MemberRow, VisibleRow
from reftree.models.tree import Side
from reftree.services.base_service import BaseService, ServiceResult, log_operation
from reftree.services.placement.link_issuer import build_register_link
from reftree.services.tree.parser import parse_member_row
from reftree.utils.exceptions import ErrorKind, TreeApiError
from reftree.utils.single_flight import SingleFlight


class MemberListView(BaseService):
    """Direct members with lazily expanded rows."""

    def __init__(self, client) -> None:
        super().__init__(client)
        self.members: list[MemberRow] = []
        self.left_ref: str | None = None
        self.right_ref: str | None = None
        self._expanded: set[str] = set()
        self._flights: SingleFlight[ServiceResult] = SingleFlight("member-rows")

    @log_operation
    async def load(self) -> ServiceResult:
        """
        Fetch the viewer's direct members and default referral codes.

        Returns:
            ServiceResult with the list of MemberRow as data
        """
        try:
            data = await self.client.get_member_list()
        except TreeApiError as e:
            self.logger.warning(f"Member list fetch failed: {e.message}")
            return ServiceResult.from_error(e)

        self.members = [parse_member_row(raw) for raw in data["members"]]
        self.left_ref = data.get("left_ref") or None
        self.right_ref = data.get("right_ref") or None
        self._expanded.clear()

        self.logger.info(f"Member list loaded: {len(self.members)} members")
        return ServiceResult.ok(self.members)

    def default_links(self, origin: str | None = None) -> dict[Side, str]:
        """Registration links for the viewer's default left/right codes."""
        origin = origin or settings.public_origin
        links = {}
        for side, code in ((Side.LEFT, self.left_ref), (Side.RIGHT, self.right_ref)):
            if code:
                links[side] = build_register_link(origin, code)
        return links

    def _iter_rows(self, rows: list[MemberRow]) -> Iterator[MemberRow]:
        for row in rows:
            yield row
            yield from self._iter_rows(row.children)

    def find(self, member_id: str) -> MemberRow | None:
        for row in self._iter_rows(self.members):
            if row.id == member_id:
                return row
        return None

    def is_expanded(self, member_id: str) -> bool:
        return member_id in self._expanded

    def is_loading(self, member_id: str) -> bool:
        return self._flights.is_pending(member_id)

    async def toggle(self, member_id: str) -> ServiceResult:
        """
        Expand or collapse a row.

        The first expansion fetches the member's direct members; concurrent
        toggles share that request.
        """
        row = self.find(member_id)
        if row is None:
            return ServiceResult.fail(
                ErrorKind.VALIDATION_FAILED, f"Member {member_id} is not listed"
            )

        if member_id in self._expanded:
            self._expanded.discard(member_id)
            return ServiceResult.ok(row)

        if not row.children_fetched:
            await self._flights.run(member_id, lambda: self._fetch_children(row))
        self._expanded.add(member_id)
        return ServiceResult.ok(row)

    async def _fetch_children(self, row: MemberRow) -> ServiceResult:
        try:
            items = await self.client.get_children(row.id)
        except TreeApiError as e:
            # Shown as "No members"; the row is not retried
            self.logger.warning(
                "Member children fetch failed",
                extra={"member_id": row.id, "kind": e.kind.value},
            )
            items = []

        row.children = [parse_member_row(item) for item in items]
        row.children_fetched = True
        return ServiceResult.ok(row)

    def rows(self) -> list[VisibleRow]:
        """Visible rows in display order with labels like ``1``, ``1.2``."""
        visible: list[VisibleRow] = []

        def walk(rows: list[MemberRow], prefix: str, level: int) -> None:
            for position, row in enumerate(rows, start=1):
                label = f"{prefix}.{position}" if prefix else str(position)
                expanded = row.id in self._expanded
                visible.append(
                    VisibleRow(
                        row=row,
                        index_label=label,
                        level=level,
                        expanded=expanded,
                        loading=self._flights.is_pending(row.id),
                    )
                )
                if expanded:
                    walk(row.children, label, level + 1)

        walk(self.members, "", 0)
        return visible
