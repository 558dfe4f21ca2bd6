"""
Referral link grants.
"""

from dataclasses import dataclass, field
from datetime import UTC, datetime

from reftree.models.tree import Side, slot_key


@dataclass(frozen=True)
class ReflinkGrant:
    """Result of a placement-slot link request."""

    slot_key: str
    code: str
    is_default: bool  # Sponsor's standing link rather than a fresh temporary code
    parent_id: str = ""
    side: Side = Side.LEFT
    issued_at: datetime = field(default_factory=lambda: datetime.now(UTC))

    @classmethod
    def for_slot(
        cls, parent_id: str, side: Side, code: str, is_default: bool
    ) -> "ReflinkGrant":
        return cls(
            slot_key=slot_key(parent_id, side),
            code=code,
            is_default=is_default,
            parent_id=parent_id,
            side=side,
        )
