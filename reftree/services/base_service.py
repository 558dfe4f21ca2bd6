"""
Base service class.

Provides common functionality for tree services including the tagged
result container, logging with bound service context and a timing
decorator.
"""

import functools
import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, TypeVar

from loguru import logger

from reftree.utils.exceptions import ErrorKind, TreeApiError, user_message


# Type variable for generic decorator return types
T = TypeVar("T")


@dataclass
class ServiceResult:
    """
    Standard service result container.

    Services return it instead of raising across their public boundary.
    """
    success: bool
    data: Any = None
    error: str | None = None
    error_code: ErrorKind | None = None

    @classmethod
    def ok(cls, data: Any = None) -> "ServiceResult":
        return cls(success=True, data=data)

    @classmethod
    def fail(cls, kind: ErrorKind, error: str | None = None) -> "ServiceResult":
        return cls(success=False, error=error or user_message(kind), error_code=kind)

    @classmethod
    def from_error(cls, exc: TreeApiError) -> "ServiceResult":
        return cls(success=False, error=exc.message, error_code=exc.kind)


class BaseService:
    """
    Base service class.

    Provides common functionality for tree services:
    - API client access
    - Logging with bound service context
    """

    def __init__(self, client: Any) -> None:
        """
        Initialize base service.

        Args:
            client: TreeApiClient (or any object with the same coroutines)
        """
        self.client = client
        self.logger = logger.bind(service=self.__class__.__name__)


def log_operation(func: Callable[..., T]) -> Callable[..., T]:
    """
    Decorator to log method entry/exit with timing.

    Logs:
    - Method entry with arguments
    - Method exit with duration and result status
    - Exceptions if any

    Usage:
        @log_operation
        async def fetch_root(self, max_depth: int):
            ...

    Args:
        func: Async method returning ServiceResult

    Returns:
        Wrapped async method
    """
    @functools.wraps(func)
    async def wrapper(self: BaseService, *args: Any, **kwargs: Any) -> Any:
        start_time = time.monotonic()

        self.logger.debug(
            f"Starting {func.__name__}",
            extra={
                "function": func.__name__,
                "args_count": len(args),
                "kwargs_keys": list(kwargs.keys()),
            },
        )

        try:
            result = await func(self, *args, **kwargs)
        except Exception as e:
            duration = time.monotonic() - start_time
            self.logger.error(
                f"Failed {func.__name__}",
                extra={
                    "function": func.__name__,
                    "duration_seconds": round(duration, 3),
                    "error": str(e),
                    "success": False,
                },
            )
            raise

        duration = time.monotonic() - start_time
        success = getattr(result, "success", True)
        self.logger.debug(
            f"Completed {func.__name__}",
            extra={
                "function": func.__name__,
                "duration_seconds": round(duration, 3),
                "success": success,
            },
        )
        return result

    return wrapper
