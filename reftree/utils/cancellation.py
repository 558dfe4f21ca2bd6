"""
Cancellation tokens.

A token is handed to an asynchronous operation when it starts. Whoever
supersedes the operation cancels the token synchronously; the operation
checks the token at every resumption point and any task bound to the
token is cancelled at the same moment.
"""

import asyncio


class OperationCancelled(asyncio.CancelledError):
    """Raised when work continues past a cancelled token."""


class CancellationToken:
    """Cooperative cancellation handle for one logical operation."""

    def __init__(self, label: str = "") -> None:
        self.label = label
        self._cancelled = False
        self._tasks: list[asyncio.Task] = []

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def bind(self, task: asyncio.Task) -> asyncio.Task:
        """
        Attach a task so that cancelling the token cancels it too.

        Args:
            task: Task running on behalf of this token

        Returns:
            The same task
        """
        if self._cancelled:
            task.cancel()
        else:
            self._tasks.append(task)
        return task

    def cancel(self) -> None:
        """Invalidate the token and cancel bound tasks that are still running."""
        if self._cancelled:
            return
        self._cancelled = True
        for task in self._tasks:
            if not task.done():
                task.cancel()
        self._tasks.clear()

    def raise_if_cancelled(self) -> None:
        if self._cancelled:
            raise OperationCancelled(self.label)

    def __repr__(self) -> str:
        state = "cancelled" if self._cancelled else "active"
        return f"CancellationToken({self.label!r}, {state})"
