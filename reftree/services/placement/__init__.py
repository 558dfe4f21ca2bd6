"""Placement slot referral links."""

from reftree.services.placement.link_issuer import (
    MANUAL_COPY_HINT,
    CopyOutcome,
    PlacementLinkIssuer,
    build_register_link,
    confirmation_message,
)


__all__ = [
    "MANUAL_COPY_HINT",
    "CopyOutcome",
    "PlacementLinkIssuer",
    "build_register_link",
    "confirmation_message",
]
