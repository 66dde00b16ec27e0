"""Tests for ServiceResult and ServiceError."""

import json

import pytest
from pydantic import ValidationError

from profnet.services.result import ServiceError, ServiceResult


class TestServiceResult:
    def test_success_construction(self) -> None:
        result = ServiceResult(ok=True, op="send_message", data={"id": "MSG-0001"})
        assert result.ok is True
        assert result.op == "send_message"
        assert result.data == {"id": "MSG-0001"}
        assert result.error is None
        assert result.code is None

    def test_error_construction(self) -> None:
        error = ServiceError(code="NOT_FOUND", message="Message 'MSG-0009' not found")
        result = ServiceResult(ok=False, op="read_message", error=error)
        assert result.ok is False
        assert result.code == "NOT_FOUND"

    def test_json_serialization(self) -> None:
        result = ServiceResult(ok=True, op="list_friends", data={"items": ["bob"]})
        parsed = json.loads(result.model_dump_json())
        assert parsed["ok"] is True
        assert parsed["data"]["items"] == ["bob"]
        assert parsed["error"] is None

    def test_frozen(self) -> None:
        result = ServiceResult(ok=True, op="test")
        with pytest.raises(ValidationError):
            result.ok = False  # type: ignore[misc]


class TestServiceError:
    def test_with_detail(self) -> None:
        error = ServiceError(
            code="NOT_ELIGIBLE",
            message="too many friends",
            detail={"degree": 4, "degree_threshold": 4},
        )
        assert error.detail["degree"] == 4

    def test_default_detail(self) -> None:
        assert ServiceError(code="X", message="bad").detail == {}
