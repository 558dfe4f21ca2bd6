"""
Shared fixtures for unit tests.

This module provides common fixtures used across multiple test modules:
- TreeStore bound to the fake API
- PlacementLinkIssuer with a headless clipboard
- InteractionController with short timers
"""

import pytest

from reftree.services.placement.link_issuer import PlacementLinkIssuer
from reftree.services.tree.controller import InteractionController
from reftree.services.tree.store import TreeStore


@pytest.fixture
def store(fake_api):
    """
    Create TreeStore for viewer ``1`` (alice).

    Returns:
        TreeStore: Store using the fake API
    """
    return TreeStore(fake_api, viewer_id="1")


@pytest.fixture
def issuer(fake_api, platform):
    """
    Create PlacementLinkIssuer with a short acknowledgment.

    Returns:
        PlacementLinkIssuer: Issuer using the fake API and headless platform
    """
    return PlacementLinkIssuer(fake_api, platform, copy_ack_seconds=0.05)


@pytest.fixture
def controller(fake_api, platform):
    """
    Create InteractionController with millisecond timers.

    Default timers:
    - search debounce: 0.05s
    - copy acknowledgment: 0.05s
    - toast: 0.05s

    Returns:
        InteractionController: Controller for viewer ``1`` (alice)
    """
    return InteractionController(
        fake_api,
        platform,
        viewer_id="1",
        debounce_seconds=0.05,
        copy_ack_seconds=0.05,
        toast_seconds=0.05,
    )
