"""
Tests for SearchCoordinator.

Covers:
- Debounce: a query typed within the window replaces the previous one
- Cancellation of in-flight requests (last request wins)
- Empty query clears immediately
- Not found vs failure classification
"""

import asyncio

import pytest

from reftree.services.tree.search import (
    SEARCH_FAILED_MESSAGE,
    SearchCoordinator,
    SearchStatus,
)
from reftree.services.tree.store import TreeStore
from reftree.utils.exceptions import ErrorKind, TreeApiError


@pytest.fixture
def coordinator(fake_api):
    fake_api.usernames["alice"] = {"id": "1", "username": "alice"}
    fake_api.usernames["bob"] = {"id": "2", "username": "bob"}
    return SearchCoordinator(lambda: TreeStore(fake_api), debounce_seconds=0.05)


class TestDebounce:
    """Tests for debounced lookups."""

    @pytest.mark.asyncio
    async def test_typing_within_window_sends_one_request(self, coordinator, fake_api):
        """'ali' then 'alice' inside the debounce window: one search for 'alice'."""
        coordinator.set_query("ali")
        await asyncio.sleep(0.01)
        coordinator.set_query("alice")
        await coordinator.wait()

        searches = [call for call in fake_api.calls if call[0] == "get_tree"]
        assert len(searches) == 1
        assert searches[0][3] == "alice"
        assert coordinator.state.status == SearchStatus.FOUND
        assert coordinator.state.result.username == "alice"

    @pytest.mark.asyncio
    async def test_pending_until_debounce_elapses(self, coordinator, fake_api):
        coordinator.set_query("bob")

        assert coordinator.state.status == SearchStatus.PENDING
        assert fake_api.calls == []

        await coordinator.wait()
        assert coordinator.state.status == SearchStatus.FOUND

    @pytest.mark.asyncio
    async def test_query_is_trimmed(self, coordinator, fake_api):
        coordinator.set_query("  bob ")
        await coordinator.wait()

        assert fake_api.calls[-1][3] == "bob"
        assert coordinator.state.query == "  bob "


class TestCancellation:
    """Tests for superseded queries."""

    @pytest.mark.asyncio
    async def test_in_flight_result_is_discarded(self, coordinator, fake_api):
        gate = asyncio.Event()
        fake_api.gates["get_tree"] = gate

        coordinator.set_query("alice")
        await asyncio.sleep(0.08)
        assert coordinator.state.status == SearchStatus.LOADING
        first_task = coordinator.task

        coordinator.set_query("bob")
        gate.set()
        await coordinator.wait()

        assert first_task.cancelled()
        assert coordinator.state.status == SearchStatus.FOUND
        assert coordinator.state.result.username == "bob"
        assert coordinator.requests_sent == 2

    @pytest.mark.asyncio
    async def test_empty_query_clears_immediately(self, coordinator, fake_api):
        coordinator.set_query("bob")
        await coordinator.wait()
        assert coordinator.state.result is not None

        coordinator.set_query("   ")

        assert coordinator.state.status == SearchStatus.IDLE
        assert coordinator.state.result is None
        assert coordinator.state.is_active is False
        assert coordinator.task is None

    @pytest.mark.asyncio
    async def test_clear_cancels_pending_timer(self, coordinator, fake_api):
        coordinator.set_query("bob")
        task = coordinator.task
        coordinator.clear()
        await asyncio.sleep(0.08)

        assert task.cancelled()
        assert fake_api.calls == []


class TestOutcomes:
    """Tests for result classification."""

    @pytest.mark.asyncio
    async def test_not_found(self, coordinator):
        coordinator.set_query("zed")
        await coordinator.wait()

        state = coordinator.state
        assert state.status == SearchStatus.NOT_FOUND
        assert state.result is None
        assert state.is_retryable is False

    @pytest.mark.asyncio
    async def test_failure_is_retryable(self, coordinator, fake_api):
        fake_api.errors["get_tree"] = TreeApiError(ErrorKind.NETWORK, "Network error")

        coordinator.set_query("bob")
        await coordinator.wait()

        assert coordinator.state.status == SearchStatus.FAILED
        assert coordinator.state.error == SEARCH_FAILED_MESSAGE
        assert coordinator.state.is_retryable is True

        del fake_api.errors["get_tree"]
        coordinator.retry()
        await coordinator.wait()

        assert coordinator.state.status == SearchStatus.FOUND
        assert coordinator.requests_sent == 2

    @pytest.mark.asyncio
    async def test_on_change_receives_every_state(self, fake_api):
        fake_api.usernames["bob"] = {"id": "2", "username": "bob"}
        seen = []
        coordinator = SearchCoordinator(
            lambda: TreeStore(fake_api), debounce_seconds=0, on_change=seen.append
        )

        coordinator.set_query("bob")
        await coordinator.wait()

        assert [s.status for s in seen] == [
            SearchStatus.PENDING,
            SearchStatus.LOADING,
            SearchStatus.FOUND,
        ]
