"""
Short-lived UI state.

Copy acknowledgments and toast notifications hold a value for a few
seconds and then revert on their own. Timers only affect presentation.
"""

import asyncio
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import StrEnum
from typing import Generic, TypeVar

from loguru import logger


T = TypeVar("T")


class EphemeralValue(Generic[T]):
    """
    Value that reverts to ``default`` after a delay.

    Setting a new value restarts the timer; the previous timer never
    clears the newer value.
    """

    def __init__(
        self,
        default: T,
        on_change: Callable[[T], None] | None = None,
    ) -> None:
        self.default = default
        self._value = default
        self._handle: asyncio.TimerHandle | None = None
        self._on_change = on_change

    @property
    def value(self) -> T:
        return self._value

    @property
    def is_set(self) -> bool:
        return self._value != self.default

    def set(self, value: T, ttl: float | None = None) -> None:
        """
        Set the value, optionally reverting after ``ttl`` seconds.

        Args:
            value: New value
            ttl: Seconds until revert; ``None`` keeps the value until cleared
        """
        self._cancel_timer()
        self._update(value)
        if ttl is not None:
            loop = asyncio.get_running_loop()
            self._handle = loop.call_later(ttl, self.clear)

    def clear(self) -> None:
        self._cancel_timer()
        self._update(self.default)

    def _update(self, value: T) -> None:
        if value == self._value:
            return
        self._value = value
        if self._on_change is not None:
            self._on_change(value)

    def _cancel_timer(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None


class ToastType(StrEnum):
    SUCCESS = "success"
    ERROR = "error"
    INFO = "info"


@dataclass(frozen=True)
class Toast:
    """Notification shown to the viewer."""

    message: str
    type: ToastType = ToastType.SUCCESS
    created_at: datetime = field(default_factory=lambda: datetime.now(UTC))


class ToastCenter:
    """Holds the current toast and dismisses it after ``dismiss_after``."""

    def __init__(
        self,
        dismiss_after: float = 3.0,
        on_change: Callable[[Toast | None], None] | None = None,
    ) -> None:
        self.dismiss_after = dismiss_after
        self._current: EphemeralValue[Toast | None] = EphemeralValue(
            None, on_change=on_change
        )
        self.history: list[Toast] = []

    @property
    def current(self) -> Toast | None:
        return self._current.value

    def show(self, message: str, type: ToastType = ToastType.SUCCESS) -> Toast:
        toast = Toast(message=message, type=type)
        self.history.append(toast)
        self._current.set(toast, ttl=self.dismiss_after)
        if type == ToastType.ERROR:
            logger.warning(f"Toast shown: {message}")
        else:
            logger.debug(f"Toast shown: {message}")
        return toast

    def success(self, message: str) -> Toast:
        return self.show(message, ToastType.SUCCESS)

    def error(self, message: str) -> Toast:
        return self.show(message, ToastType.ERROR)

    def dismiss(self) -> None:
        self._current.clear()
