"""Pytest configuration and shared fixtures for all tests."""

import asyncio
from copy import deepcopy
from typing import Any

import pytest

from reftree.models.tree import Side
from reftree.utils.exceptions import ErrorKind, TreeApiError
from reftree.utils.platform import HeadlessPlatform


class FakeTreeApi:
    """
    In-memory stand-in for TreeApiClient.

    - ``calls`` records every request as ``(operation, *args)``
    - ``gates`` holds an asyncio.Event per operation; requests wait on it
    - ``errors`` holds an exception to raise per operation
    - ``max_allowed_depth`` makes deeper tree requests fail with TOO_LARGE
    """

    def __init__(self) -> None:
        self.trees: dict[str | None, dict[str, Any]] = {}
        self.usernames: dict[str, dict[str, Any]] = {}
        self.children: dict[str, list[dict[str, Any]]] = {}
        self.profiles: dict[str, dict[str, Any]] = {}
        self.member_list: dict[str, Any] = {
            "members": [],
            "left_ref": None,
            "right_ref": None,
        }
        self.default_slots: set[str] = set()
        self.max_allowed_depth: int | None = None
        self.errors: dict[str, Exception] = {}
        self.gates: dict[str, asyncio.Event] = {}
        self.calls: list[tuple] = []
        self._codes = 0

    def count(self, operation: str) -> int:
        return sum(1 for call in self.calls if call[0] == operation)

    def depths(self) -> list[int]:
        """maxDepth of every tree request, in order."""
        return [call[1] for call in self.calls if call[0] == "get_tree"]

    async def _enter(self, operation: str, *args: Any) -> None:
        self.calls.append((operation, *args))
        gate = self.gates.get(operation)
        if gate is not None:
            await gate.wait()
        error = self.errors.get(operation)
        if error is not None:
            raise error

    def _check_depth(self, max_depth: int) -> None:
        if self.max_allowed_depth is not None and max_depth > self.max_allowed_depth:
            raise TreeApiError(ErrorKind.TOO_LARGE, "Tree too large", status=413)

    async def get_tree(
        self,
        max_depth: int,
        user_id: str | None = None,
        username: str | None = None,
    ) -> dict[str, Any]:
        await self._enter("get_tree", max_depth, user_id, username)
        self._check_depth(max_depth)
        if username is not None:
            if username not in self.usernames:
                raise TreeApiError(ErrorKind.NOT_FOUND, "Member not found", status=404)
            return deepcopy(self.usernames[username])
        if user_id not in self.trees:
            raise TreeApiError(ErrorKind.NOT_FOUND, "Member not found", status=404)
        return deepcopy(self.trees[user_id])

    async def get_system_tree(self, max_depth: int) -> dict[str, Any]:
        await self._enter("get_system_tree", max_depth)
        self._check_depth(max_depth)
        return deepcopy(self.trees["system"])

    async def get_admin_user_tree(self, user_id: str, max_depth: int) -> dict[str, Any]:
        await self._enter("get_admin_user_tree", user_id, max_depth)
        self._check_depth(max_depth)
        if user_id not in self.trees:
            raise TreeApiError(ErrorKind.NOT_FOUND, "Member not found", status=404)
        return deepcopy(self.trees[user_id])

    async def search_admin_tree(self, username: str, max_depth: int) -> dict[str, Any]:
        await self._enter("search_admin_tree", username, max_depth)
        self._check_depth(max_depth)
        if username not in self.usernames:
            raise TreeApiError(ErrorKind.NOT_FOUND, "Member not found", status=404)
        return deepcopy(self.usernames[username])

    async def get_children(self, node_id: str) -> list[dict[str, Any]]:
        await self._enter("get_children", node_id)
        return deepcopy(self.children.get(node_id, []))

    async def get_member_list(self) -> dict[str, Any]:
        await self._enter("get_member_list")
        return deepcopy(self.member_list)

    async def get_profile(self, user_id: str) -> dict[str, Any]:
        await self._enter("get_profile", user_id)
        if user_id not in self.profiles:
            raise TreeApiError(ErrorKind.NOT_FOUND, "Member detail not found", status=404)
        return deepcopy(self.profiles[user_id])

    async def create_placement_link(self, parent_id: str, side: Side) -> dict[str, Any]:
        await self._enter("create_placement_link", parent_id, side)
        key = f"{parent_id}:{side.value}"
        if key in self.default_slots:
            return {"refCode": f"DEF-{parent_id}-{side.wire}", "isDefault": True}
        self._codes += 1
        return {"refCode": f"TMP{self._codes:03d}", "isDefault": False}


def alice_tree() -> dict[str, Any]:
    """
    Viewer ``alice`` with an empty left slot and ``bob`` on the right.

    ``bob`` carries no child keys, so both his sides are unfetched.
    """
    return {
        "id": "1",
        "username": "alice",
        "fullName": "Alice Admin",
        "leftChild": None,
        "rightChild": {"id": "2", "username": "bob", "sponsorName": "alice"},
    }


@pytest.fixture
def fake_api():
    """Fake API preloaded with alice's tree as the viewer tree."""
    api = FakeTreeApi()
    api.trees[None] = alice_tree()
    return api


@pytest.fixture
def platform():
    """Headless platform with a standard-width viewport."""
    return HeadlessPlatform(origin="https://app.example.com", width=1280)


@pytest.fixture
def sample_alice_tree():
    return alice_tree()
