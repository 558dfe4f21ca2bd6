"""
Tree API client.

Thin aiohttp wrapper around the collaborator API used by the tree core:
- Tree by subject (member scope) and system/user trees (admin scope)
- Children of a node and the direct member list
- Member profile detail
- Placement link issuance

Every failure is raised as ``TreeApiError`` with a structured
``ErrorKind``; oversized trees are recognized from the status code or
the envelope error code, never from message text.
"""

import asyncio
import json
from typing import Any

import aiohttp
from loguru import logger

from reftree.config.constants import (
    ADMIN_SEARCH_TREE_PATH,
    ADMIN_SYSTEM_TREE_PATH,
    ADMIN_USER_TREE_PATH,
    BINARY_TREE_PATH,
    CHILDREN_PATH,
    CREATE_TEMP_REFLINK_PATH,
    MEMBER_DETAIL_PATH,
    MEMBER_LIST_PATH,
)
from reftree.config.settings import settings
from reftree.models.tree import Side
from reftree.utils.exceptions import (
    ErrorKind,
    TreeApiError,
    is_network_error,
    kind_for_error_code,
    kind_for_status,
)


class TreeApiClient:
    """
    Client for the binary tree API.

    The aiohttp session is created lazily and can be shared with the
    host application by passing ``session``.
    """

    def __init__(
        self,
        base_url: str | None = None,
        token: str | None = None,
        timeout: float | None = None,
        session: aiohttp.ClientSession | None = None,
    ) -> None:
        """
        Initialize tree API client.

        Args:
            base_url: API origin (defaults to settings.api_base_url)
            token: Bearer token (defaults to settings.api_token)
            timeout: Total request timeout in seconds
            session: Externally managed aiohttp session
        """
        self.base_url = (base_url or settings.api_base_url).rstrip("/")
        self.token = token if token is not None else settings.api_token
        self.timeout = aiohttp.ClientTimeout(
            total=timeout or settings.request_timeout_seconds
        )
        self._session = session
        self._owns_session = session is None

    async def _get_session(self) -> aiohttp.ClientSession:
        """Get or create aiohttp session."""
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession()
            self._owns_session = True
        return self._session

    async def close(self) -> None:
        if self._owns_session and self._session is not None and not self._session.closed:
            await self._session.close()
        self._session = None

    async def __aenter__(self) -> "TreeApiClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()

    def _headers(self) -> dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        return headers

    async def _request(
        self,
        method: str,
        path: str,
        params: dict[str, Any] | None = None,
        payload: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        """
        Execute a request and unwrap the response envelope.

        Args:
            method: HTTP method
            path: Endpoint path
            params: Query parameters (None values are dropped)
            payload: JSON body

        Returns:
            Decoded JSON body of a successful response

        Raises:
            TreeApiError: On transport failure, HTTP error or
                ``success: false`` envelope
        """
        url = f"{self.base_url}{path}"
        query = {k: str(v) for k, v in (params or {}).items() if v is not None}

        try:
            session = await self._get_session()
            async with session.request(
                method,
                url,
                params=query or None,
                json=payload,
                headers=self._headers(),
                timeout=self.timeout,
            ) as response:
                body = await self._read_body(response)
                status = response.status
        except asyncio.CancelledError:
            raise
        except TreeApiError:
            raise
        except Exception as e:
            if is_network_error(e):
                logger.warning(f"API request failed: {method} {path}: {e!r}")
                raise TreeApiError(ErrorKind.NETWORK, str(e) or "Network error") from e
            raise

        if status >= 400:
            kind = kind_for_status(status)
            code_kind = kind_for_error_code(body.get("errorCode"))
            if code_kind != ErrorKind.UNKNOWN:
                kind = code_kind
            message = _error_message(body) or f"HTTP {status}"
            if status in (401, 403):
                logger.warning(f"API access denied: {method} {path} (HTTP {status})")
            raise TreeApiError(kind, message, status)

        if body.get("success") is False:
            kind = kind_for_error_code(body.get("errorCode"))
            raise TreeApiError(kind, _error_message(body) or kind.value, status)

        return body

    @staticmethod
    async def _read_body(response: aiohttp.ClientResponse) -> dict[str, Any]:
        content_type = response.headers.get("Content-Type", "")
        if "application/json" not in content_type:
            text = await response.text()
            if response.status >= 400:
                return {"message": text.strip()} if text.strip() else {}
            raise TreeApiError(
                ErrorKind.UNKNOWN,
                "Data format error from server",
                response.status,
            )
        text = await response.text()
        if not text.strip():
            return {}
        try:
            data = json.loads(text)
        except ValueError as e:
            raise TreeApiError(
                ErrorKind.UNKNOWN, "Data format error from server", response.status
            ) from e
        if not isinstance(data, dict):
            return {"data": data}
        return data

    # ------------------------------------------------------------------
    # Trees
    # ------------------------------------------------------------------

    async def get_tree(
        self,
        max_depth: int,
        user_id: str | None = None,
        username: str | None = None,
    ) -> dict[str, Any]:
        """
        Fetch a tree rooted at the viewer, a member id or a username.

        Returns:
            Root node JSON

        Raises:
            TreeApiError: NOT_FOUND when the response carries no root
        """
        body = await self._request(
            "GET",
            BINARY_TREE_PATH,
            params={"maxDepth": max_depth, "userId": user_id, "username": username},
        )
        return _extract_root(body)

    async def get_system_tree(self, max_depth: int) -> dict[str, Any]:
        """Admin: whole system tree."""
        body = await self._request(
            "GET", ADMIN_SYSTEM_TREE_PATH, params={"maxDepth": max_depth}
        )
        return _extract_root(body)

    async def get_admin_user_tree(self, user_id: str, max_depth: int) -> dict[str, Any]:
        """Admin: tree of any member."""
        body = await self._request(
            "GET",
            ADMIN_USER_TREE_PATH.format(user_id=user_id),
            params={"maxDepth": max_depth},
        )
        return _extract_root(body)

    async def search_admin_tree(self, username: str, max_depth: int) -> dict[str, Any]:
        """Admin: tree of any member looked up by username."""
        body = await self._request(
            "GET",
            ADMIN_SEARCH_TREE_PATH,
            params={"username": username, "maxDepth": max_depth},
        )
        return _extract_root(body)

    # ------------------------------------------------------------------
    # Children and member list
    # ------------------------------------------------------------------

    async def get_children(self, node_id: str) -> list[dict[str, Any]]:
        """Immediate children of a node (each item may carry ``side``)."""
        body = await self._request("GET", CHILDREN_PATH.format(node_id=node_id))
        data = body.get("data")
        return list(data) if isinstance(data, list) else []

    async def get_member_list(self) -> dict[str, Any]:
        """
        Direct members of the viewer.

        Returns:
            Dict with ``members`` plus default ``left_ref``/``right_ref`` codes
        """
        body = await self._request("GET", MEMBER_LIST_PATH)
        data = body.get("data")
        return {
            "members": list(data) if isinstance(data, list) else [],
            "left_ref": body.get("leftRef"),
            "right_ref": body.get("rightRef"),
        }

    # ------------------------------------------------------------------
    # Profile and reflinks
    # ------------------------------------------------------------------

    async def get_profile(self, user_id: str) -> dict[str, Any]:
        body = await self._request("GET", MEMBER_DETAIL_PATH.format(user_id=user_id))
        data = body.get("data")
        if not isinstance(data, dict):
            raise TreeApiError(ErrorKind.NOT_FOUND, "Member detail not found")
        return data

    async def create_placement_link(self, parent_id: str, side: Side) -> dict[str, Any]:
        """
        Request a registration code for one placement slot.

        Returns:
            Dict with ``refCode`` and ``isDefault``
        """
        body = await self._request(
            "POST",
            CREATE_TEMP_REFLINK_PATH,
            payload={"placementUserId": parent_id, "side": side.wire},
        )
        data = body.get("data")
        if not isinstance(data, dict) or not data.get("refCode"):
            raise TreeApiError(ErrorKind.UNKNOWN, "Failed to create referral link")
        return data


def _extract_root(body: dict[str, Any]) -> dict[str, Any]:
    data = body.get("data")
    root = data.get("root") if isinstance(data, dict) else None
    if not isinstance(root, dict):
        raise TreeApiError(
            ErrorKind.NOT_FOUND, _error_message(body) or "Member not found"
        )
    return root


def _error_message(body: dict[str, Any]) -> str | None:
    for key in ("message", "error"):
        value = body.get(key)
        if isinstance(value, str) and value.strip():
            return value.strip()
    return None
