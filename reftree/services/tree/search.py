"""
Debounced member search.

Each keystroke supersedes the previous query: its debounce timer and any
in-flight request are cancelled through the query's token before the new
timer starts. At most one search request is outstanding, and a stale
result is never applied after a newer query was typed.
"""

import asyncio
from collections.abc import Callable
from dataclasses import dataclass
from enum import StrEnum

from loguru import logger

from reftree.config.settings import settings
from reftree.models.tree import TreeNode
from reftree.services.tree.store import TreeStore
from reftree.utils.cancellation import CancellationToken
from reftree.utils.exceptions import ErrorKind


SEARCH_FAILED_MESSAGE = "Failed to search"


class SearchStatus(StrEnum):
    IDLE = "idle"  # Empty query
    PENDING = "pending"  # Debounce timer running
    LOADING = "loading"  # Request in flight
    FOUND = "found"
    NOT_FOUND = "not_found"
    FAILED = "failed"


@dataclass(frozen=True)
class SearchState:
    query: str = ""
    status: SearchStatus = SearchStatus.IDLE
    store: TreeStore | None = None
    error: str | None = None

    @property
    def result(self) -> TreeNode | None:
        return self.store.root if self.store is not None else None

    @property
    def is_active(self) -> bool:
        return bool(self.query.strip())

    @property
    def is_retryable(self) -> bool:
        return self.status == SearchStatus.FAILED


class SearchCoordinator:
    """Owns the search query lifecycle for one tree session."""

    def __init__(
        self,
        store_factory: Callable[[], TreeStore],
        debounce_seconds: float | None = None,
        on_change: Callable[[SearchState], None] | None = None,
    ) -> None:
        """
        Initialize search coordinator.

        Args:
            store_factory: Creates the store that will hold a search result
            debounce_seconds: Delay before a query is sent
            on_change: Called with every new state
        """
        self.store_factory = store_factory
        self.debounce_seconds = (
            debounce_seconds
            if debounce_seconds is not None
            else settings.search_debounce_seconds
        )
        self._on_change = on_change
        self._state = SearchState()
        self._token: CancellationToken | None = None
        self._task: asyncio.Task | None = None
        self.requests_sent = 0

    @property
    def state(self) -> SearchState:
        return self._state

    @property
    def task(self) -> asyncio.Task | None:
        """Task of the current query (debounce + request), if any."""
        return self._task

    def _set_state(self, state: SearchState) -> None:
        self._state = state
        if self._on_change is not None:
            self._on_change(state)

    def set_query(self, text: str) -> None:
        """
        Replace the current query.

        The previous query is invalidated synchronously. An empty query
        clears the result at once; otherwise the lookup starts after the
        debounce delay.

        Args:
            text: Raw search input
        """
        self._cancel_current()

        query = text.strip()
        if not query:
            self._set_state(SearchState(query=text))
            return

        self._set_state(SearchState(query=text, status=SearchStatus.PENDING))
        self._start(query, text, self.debounce_seconds)

    def clear(self) -> None:
        self.set_query("")

    def retry(self) -> None:
        """Re-issue the current query immediately."""
        if self._state.is_active:
            self._cancel_current()
            self._start(self._state.query.strip(), self._state.query, 0)

    def _start(self, query: str, raw: str, delay: float) -> None:
        token = CancellationToken(label=query)
        self._token = token
        self._task = token.bind(asyncio.create_task(self._run(query, raw, token, delay)))

    def _cancel_current(self) -> None:
        if self._token is not None:
            self._token.cancel()
        self._token = None
        self._task = None

    async def _run(
        self,
        query: str,
        raw: str,
        token: CancellationToken,
        delay: float,
    ) -> None:
        await asyncio.sleep(delay)
        token.raise_if_cancelled()

        self._set_state(SearchState(query=raw, status=SearchStatus.LOADING))
        store = self.store_factory()
        self.requests_sent += 1
        logger.debug(f"Searching member: {query}")

        result = await store.fetch_root(username=query)

        # A newer query may have been typed while the request was in flight
        token.raise_if_cancelled()

        if result.success:
            state = SearchState(query=raw, status=SearchStatus.FOUND, store=store)
        elif result.error_code == ErrorKind.NOT_FOUND:
            state = SearchState(
                query=raw,
                status=SearchStatus.NOT_FOUND,
                error=result.error or f'No results for "{query}"',
            )
        else:
            state = SearchState(
                query=raw, status=SearchStatus.FAILED, error=SEARCH_FAILED_MESSAGE
            )
        self._set_state(state)

    async def wait(self) -> None:
        """Wait for the current query to settle (cancellation included)."""
        task = self._task
        if task is None:
            return
        try:
            await task
        except asyncio.CancelledError:
            current = asyncio.current_task()
            if current is not None and current.cancelling():
                raise

    def close(self) -> None:
        self._cancel_current()
