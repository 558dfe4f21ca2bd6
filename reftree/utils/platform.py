"""
Platform abstraction.

Clipboard access, the public origin used to build registration links
and the viewport width live behind this interface so that the tree
core runs without a browser.
"""

from typing import Protocol, runtime_checkable

from reftree.utils.exceptions import ClipboardError


@runtime_checkable
class Platform(Protocol):
    """Host environment services injected into the controller."""

    @property
    def origin(self) -> str:
        """Public origin, e.g. ``https://app.example.com``."""
        ...

    def viewport_width(self) -> int:
        ...

    async def write_clipboard(self, text: str) -> None:
        """
        Put ``text`` on the clipboard.

        Raises:
            ClipboardError: If the host refuses the write
        """
        ...


class HeadlessPlatform:
    """In-memory platform for tests, scripts and server-side rendering."""

    def __init__(
        self,
        origin: str = "http://localhost",
        width: int = 1280,
        clipboard_available: bool = True,
    ) -> None:
        self._origin = origin.rstrip("/")
        self.width = width
        self.clipboard_available = clipboard_available
        self.clipboard: str | None = None
        self.writes: list[str] = []

    @property
    def origin(self) -> str:
        return self._origin

    def viewport_width(self) -> int:
        return self.width

    async def write_clipboard(self, text: str) -> None:
        if not self.clipboard_available:
            raise ClipboardError("Clipboard is not available")
        self.clipboard = text
        self.writes.append(text)
