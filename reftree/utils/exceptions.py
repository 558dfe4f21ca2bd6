"""
Exception handling utilities.

Defines the error taxonomy shared by the tree store, the link issuer
and the API client, plus helpers to classify raw failures.
"""

import asyncio
from enum import StrEnum
from typing import Any

import aiohttp


class ErrorKind(StrEnum):
    """Categorized failure reasons returned across service boundaries."""

    NOT_FOUND = "not_found"  # Subject/username does not exist (user-correctable)
    NETWORK = "network"  # Transient, retryable by user action
    TOO_LARGE = "too_large"  # Resolved by depth reduction, surfaced only at the floor
    VALIDATION_FAILED = "validation_failed"  # Missing or malformed request context
    UNKNOWN = "unknown"


class TreeApiError(Exception):
    """Raised by the API client when a request fails."""

    def __init__(
        self,
        kind: ErrorKind,
        message: str = "",
        status: int | None = None,
    ) -> None:
        super().__init__(message or kind.value)
        self.kind = kind
        self.message = message or kind.value
        self.status = status

    def __repr__(self) -> str:
        return (
            f"TreeApiError(kind={self.kind.value!r}, "
            f"status={self.status!r}, message={self.message!r})"
        )


class ClipboardError(Exception):
    """Raised by a platform when writing to the clipboard fails."""
    pass


# Exception categories based on handling strategy

# Transient transport failures - retryable by the user
NETWORK_ERRORS = (
    aiohttp.ClientError,
    asyncio.TimeoutError,
    ConnectionError,
)

# Server error codes carried in the response envelope
ERROR_CODE_KINDS: dict[str, ErrorKind] = {
    "TREE_TOO_LARGE": ErrorKind.TOO_LARGE,
    "TOO_LARGE": ErrorKind.TOO_LARGE,
    "NOT_FOUND": ErrorKind.NOT_FOUND,
    "USER_NOT_FOUND": ErrorKind.NOT_FOUND,
    "VALIDATION_ERROR": ErrorKind.VALIDATION_FAILED,
}

USER_MESSAGES: dict[ErrorKind, str] = {
    ErrorKind.NOT_FOUND: "Member not found",
    ErrorKind.NETWORK: "Network error. Please check your connection and retry.",
    ErrorKind.TOO_LARGE: "Tree is too large to display. Try a smaller depth.",
    ErrorKind.VALIDATION_FAILED: "Cannot complete the request: missing info",
    ErrorKind.UNKNOWN: "An error occurred. Please try again.",
}


def kind_for_status(status: int) -> ErrorKind:
    """
    Map an HTTP status code to an error kind.

    Args:
        status: HTTP response status

    Returns:
        ErrorKind for the status
    """
    if status == 413:
        return ErrorKind.TOO_LARGE
    if status == 404:
        return ErrorKind.NOT_FOUND
    if status in (400, 422):
        return ErrorKind.VALIDATION_FAILED
    if status >= 500:
        return ErrorKind.NETWORK
    return ErrorKind.UNKNOWN


def kind_for_error_code(code: Any) -> ErrorKind:
    """Map an envelope ``errorCode`` (any JSON scalar) to an error kind."""
    if code is None or code == "":
        return ErrorKind.UNKNOWN
    return ERROR_CODE_KINDS.get(str(code).strip().upper(), ErrorKind.UNKNOWN)


def is_network_error(exc: BaseException) -> bool:
    """
    Check if exception is a transient transport failure.

    Args:
        exc: Exception to check

    Returns:
        True if the failure is retryable by the user
    """
    return isinstance(exc, NETWORK_ERRORS)


def user_message(kind: ErrorKind | None) -> str:
    """Display text for an error kind."""
    if kind is None:
        return USER_MESSAGES[ErrorKind.UNKNOWN]
    return USER_MESSAGES[kind]
