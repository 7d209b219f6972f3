"""Tests for the error taxonomy and its HTTP mapping."""

import json

import pytest
from starlette.requests import Request

from agora.api.errors import error_response, status_for
from agora.errors import (
    ConflictError,
    EntityNotFoundError,
    ForbiddenError,
    ForumError,
    StoreError,
    UnauthenticatedError,
    ValidationError,
)


def _request(path: str) -> Request:
    return Request({"type": "http", "method": "GET", "path": path, "headers": [], "query_string": b""})


class TestForumErrors:
    def test_details_default_to_empty(self) -> None:
        err = ValidationError("title and body are required")
        assert err.message == "title and body are required"
        assert err.details == {}
        assert str(err) == "title and body are required"

    def test_entity_not_found_carries_identifier(self) -> None:
        err = EntityNotFoundError("Thread", "abc")
        assert err.message == "Thread not found"
        assert err.details == {"entity_type": "Thread", "identifier": "abc"}
        assert isinstance(err, ForumError)


class TestStatusMapping:
    @pytest.mark.parametrize(
        ("error", "code"),
        [
            (ValidationError("bad"), 400),
            (UnauthenticatedError("who"), 401),
            (ForbiddenError("no"), 403),
            (EntityNotFoundError("Reply", "x"), 404),
            (ConflictError("dup"), 409),
            (StoreError("db"), 500),
            (ForumError("generic"), 500),
        ],
    )
    def test_status_for(self, error: ForumError, code: int) -> None:
        assert status_for(error) == code


class TestErrorResponseShape:
    def test_api_paths_get_json(self) -> None:
        response = error_response(_request("/api/v1/threads"), "Thread not found", 404)
        assert response.status_code == 404
        assert json.loads(response.body) == {"error": "Thread not found"}

    def test_pages_get_plain_text(self) -> None:
        response = error_response(_request("/dashboard/threads/x"), "Thread not found", 404)
        assert response.status_code == 404
        assert response.body == b"Thread not found"
        assert response.headers["content-type"].startswith("text/plain")
