"""
Tests for error classification and service results.
"""

import asyncio

import aiohttp
import pytest

from reftree.services.base_service import ServiceResult
from reftree.utils.exceptions import (
    ErrorKind,
    TreeApiError,
    is_network_error,
    kind_for_error_code,
    kind_for_status,
    user_message,
)


class TestClassification:
    """Tests for status and error code mapping."""

    @pytest.mark.parametrize(
        "status,kind",
        [
            (413, ErrorKind.TOO_LARGE),
            (404, ErrorKind.NOT_FOUND),
            (400, ErrorKind.VALIDATION_FAILED),
            (422, ErrorKind.VALIDATION_FAILED),
            (500, ErrorKind.NETWORK),
            (503, ErrorKind.NETWORK),
            (401, ErrorKind.UNKNOWN),
            (409, ErrorKind.UNKNOWN),
        ],
    )
    def test_kind_for_status(self, status, kind):
        assert kind_for_status(status) == kind

    @pytest.mark.parametrize(
        "code,kind",
        [
            ("TREE_TOO_LARGE", ErrorKind.TOO_LARGE),
            ("too_large", ErrorKind.TOO_LARGE),
            ("USER_NOT_FOUND", ErrorKind.NOT_FOUND),
            ("VALIDATION_ERROR", ErrorKind.VALIDATION_FAILED),
            ("SOMETHING_ELSE", ErrorKind.UNKNOWN),
            (None, ErrorKind.UNKNOWN),
            (413, ErrorKind.UNKNOWN),
            (0, ErrorKind.UNKNOWN),
        ],
    )
    def test_kind_for_error_code(self, code, kind):
        assert kind_for_error_code(code) == kind

    def test_network_errors(self):
        assert is_network_error(aiohttp.ClientConnectionError())
        assert is_network_error(asyncio.TimeoutError())
        assert not is_network_error(ValueError("bad"))


class TestServiceResult:
    """Tests for ServiceResult constructors."""

    def test_fail_uses_user_message(self):
        result = ServiceResult.fail(ErrorKind.NOT_FOUND)

        assert result.success is False
        assert result.error == user_message(ErrorKind.NOT_FOUND)
        assert result.error_code == ErrorKind.NOT_FOUND

    def test_from_error(self):
        result = ServiceResult.from_error(
            TreeApiError(ErrorKind.TOO_LARGE, "Tree too large", status=413)
        )

        assert result.error == "Tree too large"
        assert result.error_code == ErrorKind.TOO_LARGE

    def test_error_without_message(self):
        assert TreeApiError(ErrorKind.NETWORK).message == "network"
