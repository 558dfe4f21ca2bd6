"""
Placement link issuer.

Obtains shareable registration links for empty placement slots:
- One in-flight request per slot (concurrent callers share it)
- Session cache of the latest grant per slot
- Clipboard hand-off with a short-lived acknowledgment
"""

from collections.abc import Callable
from enum import StrEnum
from typing import Any
from urllib.parse import urlencode

from reftree.config.constants import REF_QUERY_PARAM, REGISTER_PATH
from reftree.config.settings import settings
from reftree.models.reflink import ReflinkGrant
from reftree.models.tree import Side, slot_key
from reftree.services.base_service import BaseService, ServiceResult
from reftree.utils.ephemeral import EphemeralValue
from reftree.utils.exceptions import ClipboardError, ErrorKind, TreeApiError
from reftree.utils.platform import Platform
from reftree.utils.single_flight import SingleFlight


MANUAL_COPY_HINT = "Cannot copy automatically, please copy manually"


class CopyOutcome(StrEnum):
    OK = "ok"
    FAILED = "failed"


def build_register_link(origin: str, code: str) -> str:
    """Registration URL pre-filled with a referral code."""
    query = urlencode({REF_QUERY_PARAM: code})
    return f"{origin.rstrip('/')}{REGISTER_PATH}?{query}"


def confirmation_message(grant: ReflinkGrant) -> str:
    """Viewer-facing text; default and temporary codes read differently."""
    if grant.is_default:
        return f"Copied default {grant.side.value} reflink!"
    return f"Copied temp reflink ({grant.code})"


class PlacementLinkIssuer(BaseService):
    """Issues and caches referral links for placement slots."""

    def __init__(
        self,
        client: Any,
        platform: Platform,
        copy_ack_seconds: float | None = None,
        on_ack_change: Callable[[str | None], None] | None = None,
    ) -> None:
        """
        Initialize link issuer.

        Args:
            client: TreeApiClient
            platform: Clipboard and origin provider
            copy_ack_seconds: How long the "copied" acknowledgment lasts
            on_ack_change: Called when the acknowledgment changes
        """
        super().__init__(client)
        self.platform = platform
        self.copy_ack_seconds = (
            copy_ack_seconds if copy_ack_seconds is not None else settings.copy_ack_seconds
        )
        self._grants: dict[str, ReflinkGrant] = {}
        self._flights: SingleFlight[ServiceResult] = SingleFlight("reflink")
        # Key of the link most recently copied, reverts to None
        self.copied: EphemeralValue[str | None] = EphemeralValue(
            None, on_change=on_ack_change
        )

    def cached(self, parent_id: str, side: Side | str) -> ReflinkGrant | None:
        return self._grants.get(slot_key(parent_id, side))

    def is_pending(self, parent_id: str, side: Side | str) -> bool:
        return self._flights.is_pending(slot_key(parent_id, side))

    async def issue(self, parent_id: str | None, side: Side | str) -> ServiceResult:
        """
        Request a registration code for the slot ``(parent_id, side)``.

        A second call for the same slot while the first is pending receives
        the first call's result. A failure leaves any cached grant untouched.

        Args:
            parent_id: Member id owning the slot
            side: ``left`` or ``right``

        Returns:
            ServiceResult with a ReflinkGrant as data
        """
        if not parent_id or not str(parent_id).strip():
            self.logger.warning("Reflink requested without parent", extra={"side": str(side)})
            return ServiceResult.fail(
                ErrorKind.VALIDATION_FAILED, "Cannot create link: missing info"
            )
        try:
            side = Side.parse(side)
        except ValueError as e:
            return ServiceResult.fail(ErrorKind.VALIDATION_FAILED, str(e))

        parent_id = str(parent_id)
        key = slot_key(parent_id, side)
        return await self._flights.run(key, lambda: self._issue(parent_id, side))

    async def _issue(self, parent_id: str, side: Side) -> ServiceResult:
        try:
            data = await self.client.create_placement_link(parent_id, side)
        except TreeApiError as e:
            self.logger.warning(
                "Reflink issuance failed",
                extra={"parent_id": parent_id, "side": side.value, "kind": e.kind.value},
            )
            return ServiceResult.from_error(e)

        grant = ReflinkGrant.for_slot(
            parent_id,
            side,
            code=str(data["refCode"]),
            is_default=bool(data.get("isDefault", False)),
        )
        # Supersedes (never mutates) an earlier grant for the slot
        self._grants[grant.slot_key] = grant

        self.logger.info(
            "Reflink issued",
            extra={
                "slot_key": grant.slot_key,
                "is_default": grant.is_default,
            },
        )
        return ServiceResult.ok(grant)

    def build_link(self, grant: ReflinkGrant) -> str:
        return build_register_link(self.platform.origin, grant.code)

    async def copy_to_clipboard(self, link: str, key: str | None = None) -> CopyOutcome:
        """
        Copy ``link``; never raises.

        On success the acknowledgment ``copied`` holds ``key`` (or the link)
        for ``copy_ack_seconds``.

        Args:
            link: Text to copy
            key: Acknowledgment key, usually the slot key

        Returns:
            CopyOutcome.OK or CopyOutcome.FAILED
        """
        try:
            await self.platform.write_clipboard(link)
        except ClipboardError as e:
            self.logger.warning(f"Clipboard write failed: {e}")
            self.copied.clear()
            return CopyOutcome.FAILED
        except Exception as e:
            self.logger.warning(f"Clipboard write raised unexpectedly: {e!r}")
            self.copied.clear()
            return CopyOutcome.FAILED

        self.copied.set(key or link, ttl=self.copy_ack_seconds)
        return CopyOutcome.OK
